from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import grpc

import closewatch.lnd.client as lnd
from closewatch.errors import ChainLookupError
from closewatch.grpc.client import DeadlineExceeded
from closewatch.lightning.client import ClosedChannelRecord
from closewatch.utils import split_outpoint

if TYPE_CHECKING:
    from closewatch.lnd.grpc_generated import lightning_pb2 as ln

# Exceptions of the grpc layer which are raised as ChainLookupError
_LOOKUP_ERRORS = (grpc.RpcError, DeadlineExceeded)


def _convert_closed_channel(channel: ln.ChannelCloseSummary) -> ClosedChannelRecord:
    close_type = lnd.closure_type_name(channel.close_type)
    txid, vout = split_outpoint(channel.channel_point)

    return ClosedChannelRecord(
        capacity=channel.capacity,
        partner_public_key=channel.remote_pubkey,
        transaction_id=txid,
        transaction_vout=vout,
        close_confirm_height=channel.close_height,
        close_transaction_id=channel.closing_tx_hash,
        is_breach_close=close_type == "BREACH_CLOSE",
        is_cooperative_close=close_type == "COOPERATIVE_CLOSE",
        is_local_force_close=close_type == "LOCAL_FORCE_CLOSE",
        is_remote_force_close=close_type == "REMOTE_FORCE_CLOSE",
        is_funding_cancel=close_type == "FUNDING_CANCELED",
        settled_balance=channel.settled_balance,
    )


class LNDClient:
    def __init__(self, lnd: lnd.LndGrpc) -> None:
        self.lnd = lnd

    @property
    def block_height(self) -> int:
        try:
            return self.lnd.get_info().block_height
        except _LOOKUP_ERRORS as e:
            raise ChainLookupError(f"cannot fetch block height: {e}") from e

    @property
    def closed_channels(self) -> list[ClosedChannelRecord]:
        try:
            resp = self.lnd.closed_channels()
        except _LOOKUP_ERRORS as e:
            raise ChainLookupError(f"cannot fetch closed channels: {e}") from e

        res = [_convert_closed_channel(c) for c in resp.channels]
        logging.debug(f"Received {len(res)} closed channels from lnd")

        return res

    def close(self) -> None:
        self.lnd.close()
