"""
Secure grpc channel with macaroon authentication and the error handling of
unary calls, shared by the node clients.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from functools import wraps

import grpc

from closewatch.log import getLogger

# Closed channel lists of large nodes can exceed the default limit of 4MB.
MAX_MESSAGE_LENGTH = 50 * 1024 * 1024
KEEPALIVE_TIME_MS = 30000
KEEPALIVE_TIMEOUT_MS = 20000
# seconds until an unary call is aborted by the client
DEFAULT_RPC_TIMEOUT = 60

# lnd only accepts tls connections with ECDSA certificates.
os.environ["GRPC_SSL_CIPHER_SUITES"] = "HIGH+ECDSA"


class DeadlineExceeded(Exception): ...


class RpcResponseHandler:
    """
    Wraps unary calls of a client. A RpcError is passed to eval_error first,
    which raises a client specific exception if it knows the error. Exceeded
    deadlines are raised as DeadlineExceeded, all other errors as they are.
    """

    def __init__(self, eval_error: Callable[[grpc.RpcError, str], None]):
        self._eval_error = eval_error
        self._logger = getLogger(self.__module__)

    def decorator_rpc_unary(self, fnc):
        @wraps(fnc)
        def wrapper(*args, **kwargs):
            try:
                return fnc(*args, **kwargs)
            except grpc.RpcError as e:
                self.rpc_error_handler(e, fnc.__name__)

        return wrapper

    def rpc_error_handler(self, e: grpc.RpcError, rpc_name: str) -> None:
        code: grpc.StatusCode = e.code()  # type: ignore
        details: str = e.details()  # type: ignore

        self._logger.error(f"Rpc '{rpc_name}' failed; code: {code}; {details=}")

        self._eval_error(e, rpc_name)

        if code == grpc.StatusCode.DEADLINE_EXCEEDED:
            raise DeadlineExceeded(f"'{rpc_name}': {details}") from e

        raise e


class MacaroonMetadataPlugin(grpc.AuthMetadataPlugin):
    """Adds the hex encoded macaroon to the metadata of every call."""

    def __init__(self, macaroon_hex: str):
        self.macaroon_hex = macaroon_hex

    def __call__(self, context, callback):
        callback([("macaroon", self.macaroon_hex)], None)


def _read_file(file_path: str) -> bytes:
    with open(os.path.expanduser(file_path), "rb") as f:
        return f.read()


class SecureGrpcClient:
    """
    Holds one secure grpc channel for the lifetime of a session. grpc channels
    are thread safe, hence the channel can be shared by concurrent stages.
    """

    def __init__(
        self,
        ip_address: str,
        credentials: grpc.ChannelCredentials,
        timeout: float | None = DEFAULT_RPC_TIMEOUT,
    ):
        self.ip_address = ip_address
        self.timeout = timeout
        self._credentials = credentials
        self._grpc_channel: grpc.Channel | None = None
        self._channel_lock = threading.Lock()

    @classmethod
    def from_file(
        cls,
        ip_address: str,
        cert_filepath: str,
        macaroon_filepath: str | None,
        **kwargs,
    ):
        """
        Creates the client with the tls certificate and the macaroon read from
        disk. Without macaroon the calls are not authenticated.
        """

        credentials = grpc.ssl_channel_credentials(_read_file(cert_filepath))

        if macaroon_filepath:
            plugin = MacaroonMetadataPlugin(_read_file(macaroon_filepath).hex())
            credentials = grpc.composite_channel_credentials(
                credentials, grpc.metadata_call_credentials(plugin)
            )

        return cls(ip_address, credentials, **kwargs)

    @property
    def _channel(self) -> grpc.Channel:
        with self._channel_lock:
            if self._grpc_channel is None:
                self._grpc_channel = grpc.secure_channel(
                    self.ip_address,
                    self._credentials,
                    options=[
                        ("grpc.max_receive_message_length", MAX_MESSAGE_LENGTH),
                        ("grpc.keepalive_time_ms", KEEPALIVE_TIME_MS),
                        ("grpc.keepalive_timeout_ms", KEEPALIVE_TIMEOUT_MS),
                    ],
                )
            return self._grpc_channel

    def wait_ready(self, timeout: float) -> None:
        """
        Blocks until the channel is connected. Raises grpc.FutureTimeoutError if
        the server is not reachable within timeout seconds.
        """

        grpc.channel_ready_future(self._channel).result(timeout=timeout)

    def close(self) -> None:
        with self._channel_lock:
            if self._grpc_channel is not None:
                self._grpc_channel.close()
                self._grpc_channel = None
