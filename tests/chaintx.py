"""
Builders for commitment and spending transactions used by the tests.
"""

from __future__ import annotations

import hashlib

from bitcoin.core import (
    COutPoint,
    CTransaction,
    CTxIn,
    CTxInWitness,
    CTxOut,
    CTxWitness,
    b2lx,
)
from bitcoin.core.script import (
    OP_0,
    OP_CHECKLOCKTIMEVERIFY,
    OP_CHECKMULTISIG,
    OP_CHECKSEQUENCEVERIFY,
    OP_CHECKSIG,
    OP_CHECKSIGVERIFY,
    OP_DROP,
    OP_DUP,
    OP_ELSE,
    OP_ENDIF,
    OP_EQUAL,
    OP_EQUALVERIFY,
    OP_HASH160,
    OP_IF,
    OP_IFDUP,
    OP_NOTIF,
    OP_SIZE,
    OP_SWAP,
    CScript,
    CScriptWitness,
)

from closewatch.errors import ChainLookupError

SIG = b"\x30" * 71
PREIMAGE = b"\x42" * 32
FUNDING_TXID = b"\x01" * 32


def pubkey(n: int) -> bytes:
    return b"\x02" + bytes([n]) * 32


def hash160(n: int) -> bytes:
    return bytes([n]) * 20


def p2wsh(witness_script: CScript) -> CScript:
    return CScript([OP_0, hashlib.sha256(witness_script).digest()])


def p2wpkh(n: int) -> CScript:
    return CScript([OP_0, hash160(n)])


def to_local_script(to_self_delay: int = 144) -> CScript:
    return CScript(
        [
            OP_IF,
            pubkey(1),
            OP_ELSE,
            to_self_delay,
            OP_CHECKSEQUENCEVERIFY,
            OP_DROP,
            pubkey(2),
            OP_ENDIF,
            OP_CHECKSIG,
        ]
    )


def to_remote_anchors_script() -> CScript:
    return CScript([pubkey(3), OP_CHECKSIGVERIFY, 1, OP_CHECKSEQUENCEVERIFY])


def anchor_script() -> CScript:
    return CScript(
        [
            pubkey(4),
            OP_CHECKSIG,
            OP_IFDUP,
            OP_NOTIF,
            16,
            OP_CHECKSEQUENCEVERIFY,
            OP_ENDIF,
        ]
    )


def _htlc_revocation() -> list:
    return [
        OP_DUP,
        OP_HASH160,
        hash160(5),
        OP_EQUAL,
        OP_IF,
        OP_CHECKSIG,
        OP_ELSE,
        pubkey(6),
        OP_SWAP,
        OP_SIZE,
        32,
        OP_EQUAL,
    ]


def _csv_check(anchors: bool) -> list:
    return [1, OP_CHECKSEQUENCEVERIFY, OP_DROP] if anchors else []


def offered_htlc_script(anchors: bool = False) -> CScript:
    return CScript(
        _htlc_revocation()
        + [
            OP_NOTIF,
            OP_DROP,
            2,
            OP_SWAP,
            pubkey(7),
            2,
            OP_CHECKMULTISIG,
            OP_ELSE,
            OP_HASH160,
            hash160(8),
            OP_EQUALVERIFY,
            OP_CHECKSIG,
            OP_ENDIF,
        ]
        + _csv_check(anchors)
        + [OP_ENDIF]
    )


def received_htlc_script(anchors: bool = False, cltv_expiry: int = 800000) -> CScript:
    return CScript(
        _htlc_revocation()
        + [
            OP_IF,
            OP_HASH160,
            hash160(8),
            OP_EQUALVERIFY,
            2,
            OP_SWAP,
            pubkey(7),
            2,
            OP_CHECKMULTISIG,
            OP_ELSE,
            OP_DROP,
            cltv_expiry,
            OP_CHECKLOCKTIMEVERIFY,
            OP_DROP,
            OP_CHECKSIG,
            OP_ENDIF,
        ]
        + _csv_check(anchors)
        + [OP_ENDIF]
    )


def new_close_tx(outputs: list[tuple[int, CScript]]) -> CTransaction:
    """Closing transaction spending the funding output 0 of FUNDING_TXID."""

    return CTransaction(
        [CTxIn(COutPoint(FUNDING_TXID, 0))],
        [CTxOut(value, script) for value, script in outputs],
        nVersion=2,
    )


def new_spend_tx(
    prev: CTransaction, vout: int, witness: list[bytes], value: int = 1000
) -> CTransaction:
    """Transaction spending prev:vout with the given witness stack."""

    return CTransaction(
        [CTxIn(COutPoint(prev.GetTxid(), vout))],
        [CTxOut(value, p2wpkh(9))],
        nVersion=2,
        witness=CTxWitness([CTxInWitness(CScriptWitness(witness))]),
    )


def txid(tx: CTransaction) -> str:
    return b2lx(tx.GetTxid())


class FakeChainSource:
    """Chain source serving the given transactions and their spends."""

    def __init__(
        self,
        txs: list[CTransaction],
        spends: dict[tuple[str, int], CTransaction] | None = None,
    ) -> None:
        self.txs = {txid(tx): tx.serialize() for tx in txs}
        self.spends = {k: v.serialize() for k, v in (spends or {}).items()}
        self.calls: list[tuple] = []

    def get_transaction(self, txid: str) -> bytes:
        self.calls.append(("get_transaction", txid))
        if txid not in self.txs:
            raise ChainLookupError(f"transaction {txid} not found")
        return self.txs[txid]

    def get_spending_transaction(self, txid: str, vout: int) -> bytes | None:
        self.calls.append(("get_spending_transaction", txid, vout))
        return self.spends.get((txid, vout))
