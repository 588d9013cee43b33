"""
Opens the session to the lnd node described by the credentials.
"""

from __future__ import annotations

import grpc

from closewatch.config import LndCredentials
from closewatch.errors import SessionError
from closewatch.lightning.lnd import LNDClient
from closewatch.lnd.client import LndGrpc
from closewatch.log import getLogger

# seconds to wait for the grpc channel to become ready
DEFAULT_CONNECT_TIMEOUT = 15

logger = getLogger(__name__)


def open_session(
    credentials: LndCredentials, connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
) -> LNDClient:
    try:
        lndgrpc = LndGrpc.from_file(
            ip_address=credentials.ip_address,
            cert_filepath=credentials.cert_filepath,
            macaroon_filepath=credentials.macaroon_filepath,
        )
    except OSError as e:
        raise SessionError(f"cannot read lnd credentials: {e}") from e

    try:
        lndgrpc.wait_ready(connect_timeout)
    except grpc.FutureTimeoutError as e:
        lndgrpc.close()
        raise SessionError(
            f"cannot connect to lnd at {credentials.ip_address} "
            f"within {connect_timeout}s"
        ) from e

    logger.debug(f"Connected to lnd at {credentials.ip_address}")
    return LNDClient(lndgrpc)
