from __future__ import annotations

import grpc

from closewatch.grpc.client import RpcResponseHandler, SecureGrpcClient

from .grpc_generated import lightning_pb2 as ln
from .grpc_generated import lightning_pb2_grpc as lnrpc


class WalletLocked(grpc.RpcError): ...


class LndUnavailable(grpc.RpcError): ...


def _eval_lnd_rpc_error(rpc_error: grpc.RpcError, rpc_name: str) -> None:
    """Raises the lnd specific exception for known error states of the node."""

    code: grpc.StatusCode = rpc_error.code()  # type: ignore
    details: str = rpc_error.details() or ""  # type: ignore

    if code == grpc.StatusCode.UNAVAILABLE:
        raise LndUnavailable(f"'{rpc_name}': {details}") from rpc_error

    if code == grpc.StatusCode.UNKNOWN and details.startswith("wallet locked"):
        raise WalletLocked(f"'{rpc_name}': {details}") from rpc_error


lnd_handle_rpc_unary = RpcResponseHandler(_eval_lnd_rpc_error).decorator_rpc_unary


class LndGrpc(SecureGrpcClient):

    @property
    def _ln_stub(self) -> lnrpc.LightningStub:
        """
        Creates a LightningStub on the channel of the session.
        """

        return lnrpc.LightningStub(self._channel)

    @lnd_handle_rpc_unary
    def get_info(self) -> ln.GetInfoResponse:
        """
        Calls lnrpc.GetInfo

        GetInfo returns general information concerning the lightning node
        including it's identity pubkey, alias, the chains it is connected to,
        and information concerning the number of open+pending channels.
        """

        return self._ln_stub.GetInfo(ln.GetInfoRequest(), timeout=self.timeout)

    @lnd_handle_rpc_unary
    def closed_channels(self) -> ln.ClosedChannelsResponse:
        """
        Calls lnrpc.ClosedChannels

        ClosedChannels returns a description of all the closed channels that
        this node was a participant in. Without any filter flag set, channels of
        all closure types are returned.
        """

        return self._ln_stub.ClosedChannels(
            ln.ClosedChannelsRequest(), timeout=self.timeout
        )


def closure_type_name(num) -> str:
    return ln.ChannelCloseSummary.ClosureType.Name(num)
