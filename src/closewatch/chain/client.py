"""
Defines a Protocol for the source of raw on-chain transactions. Currently
implemented for esplora only.
"""

from __future__ import annotations

from typing import Protocol


class ChainSource(Protocol):

    def get_transaction(self, txid: str) -> bytes:
        """
        Returns the serialized transaction with the given txid. Raises a
        ChainLookupError if the transaction cannot be fetched.
        """
        ...

    def get_spending_transaction(self, txid: str, vout: int) -> bytes | None:
        """
        Returns the serialized transaction spending the output txid:vout or None
        if the output is unspent. Raises a ChainLookupError if the lookup fails.
        """
        ...
