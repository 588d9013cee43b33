from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from bitcoin.core import CTransaction

from closewatch.log import getLogger

from .scripts import ScriptTemplate, match_template

# Value of an anchor output in sat
ANCHOR_OUTPUT_VALUE = 330

# Witness element selecting the revocation branch of a to_local output
_REVOCATION_SELECTOR = b"\x01"

logger = getLogger(__name__)


class ResolutionType(Enum):
    ANCHOR = "anchor"
    BREACH_REMEDY = "breach-remedy"
    HTLC_SUCCESS = "htlc-success"
    HTLC_TIMEOUT = "htlc-timeout"
    TO_LOCAL = "to-local"
    TO_REMOTE = "to-remote"


@dataclass(frozen=True)
class OutputResolution:
    type: ResolutionType
    value: int

    def to_dict(self) -> dict:
        return {"type": self.type.value, "value": self.value}


def outputs_to_look_up(close_tx: CTransaction) -> list[int]:
    """
    Returns the indexes of the outputs which can only be classified by the
    witness of their spend. These are all P2WSH outputs.
    """

    return [
        vout
        for vout, out in enumerate(close_tx.vout)
        if out.scriptPubKey.is_witness_v0_scripthash()
    ]


def spending_witness(
    spend_tx: CTransaction, txid: bytes, vout: int
) -> list[bytes] | None:
    """
    Returns the witness stack of the input of spend_tx spending txid:vout. txid
    is the hash in internal byte order.
    """

    for i, txin in enumerate(spend_tx.vin):
        if txin.prevout.hash != txid or txin.prevout.n != vout:
            continue

        if i >= len(spend_tx.wit.vtxinwit):
            return None

        return list(spend_tx.wit.vtxinwit[i].scriptWitness.stack)

    return None


def _resolve_witness(witness: list[bytes]) -> ResolutionType | None:
    """
    Evaluates which branch of the witness script was used to spend the output.
    The last element of a P2WSH witness is the witness script itself.
    """

    if not witness:
        return None

    template = match_template(witness[-1])
    args = witness[:-1]

    if template is ScriptTemplate.TO_LOCAL:
        if args and args[-1] == _REVOCATION_SELECTOR:
            return ResolutionType.BREACH_REMEDY
        return ResolutionType.TO_LOCAL

    if template is ScriptTemplate.TO_REMOTE_ANCHORS:
        return ResolutionType.TO_REMOTE

    if template is ScriptTemplate.ANCHOR:
        return ResolutionType.ANCHOR

    if template in (ScriptTemplate.OFFERED_HTLC, ScriptTemplate.RECEIVED_HTLC):
        # <revocation_sig> <revocationpubkey>
        if len(args) == 2 and len(args[1]) == 33:
            return ResolutionType.BREACH_REMEDY

        # Success paths reveal the payment preimage.
        if any(len(a) == 32 for a in args):
            return ResolutionType.HTLC_SUCCESS

        return ResolutionType.HTLC_TIMEOUT

    return None


def _resolve_script_output(
    spend_tx: CTransaction | None, txid: bytes, vout: int, value: int
) -> ResolutionType | None:

    if spend_tx is None:
        # Unspent anchors are common, they are not worth sweeping.
        if value == ANCHOR_OUTPUT_VALUE:
            return ResolutionType.ANCHOR
        return None

    if (witness := spending_witness(spend_tx, txid, vout)) is None:
        return None

    return _resolve_witness(witness)


def _cooperative_resolution(
    close_tx: CTransaction, settled_balance: int
) -> list[OutputResolution]:
    """
    A cooperative close pays both parties directly. The output with the
    settled balance of the local node is to-local, all others are to-remote.
    """

    res = []
    local_found = False
    for out in close_tx.vout:
        if not local_found and settled_balance > 0 and out.nValue == settled_balance:
            local_found = True
            res.append(OutputResolution(ResolutionType.TO_LOCAL, out.nValue))
        else:
            res.append(OutputResolution(ResolutionType.TO_REMOTE, out.nValue))

    return res


def channel_resolution(
    close_tx: CTransaction,
    spends: Mapping[int, CTransaction | None],
    is_cooperative_close: bool,
    settled_balance: int = 0,
) -> list[OutputResolution]:
    """
    Classifies the outputs of a closing transaction.

    spends maps the index of an output to the transaction spending it, None if
    the output is unspent. It needs entries for the outputs returned by
    outputs_to_look_up only. Outputs which cannot be classified are omitted.
    """

    if is_cooperative_close:
        return _cooperative_resolution(close_tx, settled_balance)

    txid = close_tx.GetTxid()
    res = []

    for vout, out in enumerate(close_tx.vout):
        script = out.scriptPubKey

        resolution_type: ResolutionType | None = None
        if script.is_witness_v0_keyhash():
            # Without anchors to_remote is a plain P2WPKH output.
            resolution_type = ResolutionType.TO_REMOTE
        elif script.is_witness_v0_scripthash():
            resolution_type = _resolve_script_output(
                spends.get(vout), txid, vout, out.nValue
            )

        if resolution_type is None:
            logger.debug(f"Skipping unknown output {vout} with value {out.nValue}")
            continue

        res.append(OutputResolution(resolution_type, out.nValue))

    return res
