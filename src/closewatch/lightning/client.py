"""
Defines a Protocol for lightning client. Currently implemented for lnd only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ClosedChannelRecord:
    capacity: int
    partner_public_key: str

    # funding outpoint spent by the closing transaction
    transaction_id: str
    transaction_vout: int

    close_confirm_height: int
    close_transaction_id: str

    # At most one of the closure kinds is set by the backend.
    is_breach_close: bool = False
    is_cooperative_close: bool = False
    is_local_force_close: bool = False
    is_remote_force_close: bool = False

    # Channel was never opened; the record is not a real closure.
    is_funding_cancel: bool = False

    # Amount in sat which was settled to the local node.
    settled_balance: int = 0

    @property
    def has_close_transaction(self) -> bool:
        """
        False for closes without a transaction on chain, e.g. abandoned
        channels. lnd reports them with an all zero hash.
        """

        return self.close_transaction_id.strip("0") != ""


class LightningClient(Protocol):
    """
    Serves as a interface for a lightning client which is currently implemented
    by LNDClient.
    """

    @property
    def block_height(self) -> int:
        """
        Fetches the current block height from the lightning client.
        """
        ...

    @property
    def closed_channels(self) -> list[ClosedChannelRecord]:
        """
        Fetches all closed channels from the lightning client in the order the
        client reports them, oldest first.
        """
        ...

    def close(self) -> None:
        """
        Releases the connection to the lightning client.
        """
        ...
