from __future__ import annotations

from bitcoin.core import CTransaction, b2lx
from bitcoin.core.serialize import SerializationError

from closewatch.bolt03 import OutputResolution, channel_resolution, outputs_to_look_up
from closewatch.chain.client import ChainSource
from closewatch.errors import ChainLookupError
from closewatch.log import getLogger, log_func_call


def _deserialize(raw: bytes, name: str, txid: str | None = None) -> CTransaction:
    try:
        tx = CTransaction.deserialize(raw)
    except (SerializationError, ValueError) as e:
        raise ChainLookupError(f"cannot decode transaction {name}: {e}") from e

    if txid is not None and b2lx(tx.GetTxid()) != txid:
        raise ChainLookupError(
            f"chain source returned another transaction for {txid}"
        )

    return tx


class ChannelResolver:
    """
    Resolves the outputs of closing transactions with the transactions of a
    chain source.
    """

    def __init__(self, source: ChainSource) -> None:
        self._source = source
        self._logger = getLogger(self.__module__)

    @log_func_call
    def resolve(
        self,
        close_transaction_id: str,
        is_cooperative_close: bool,
        settled_balance: int = 0,
    ) -> list[OutputResolution]:
        """
        Returns the resolutions of the outputs of the closing transaction.

        A cooperative close needs the closing transaction only. For all other
        closes the spends of the script outputs are fetched too, because only
        the witness of the spend reveals the script.
        """

        raw = self._source.get_transaction(close_transaction_id)
        close_tx = _deserialize(raw, close_transaction_id, close_transaction_id)

        spends: dict[int, CTransaction | None] = {}
        if not is_cooperative_close:
            for vout in outputs_to_look_up(close_tx):
                raw_spend = self._source.get_spending_transaction(
                    close_transaction_id, vout
                )
                if raw_spend is None:
                    spends[vout] = None
                    continue

                name = f"spending {close_transaction_id}:{vout}"
                spends[vout] = _deserialize(raw_spend, name)

        res = channel_resolution(
            close_tx, spends, is_cooperative_close, settled_balance
        )

        self._logger.trace_lazy(
            lambda: f"Resolved {close_transaction_id}: {[r.to_dict() for r in res]}"
        )
        return res
