"""
Witness script templates of the outputs of a commitment transaction as defined
in BOLT #3.

A template is a sequence of opcodes and placeholders for the data pushed by the
script. Matching a script compares the parsed script element by element with
the template. The concrete keys, hashes and delays are not checked.
"""

from __future__ import annotations

from enum import Enum

from bitcoin.core.script import (
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
    CScriptInvalidError,
)


class _Data:
    """Placeholder for a data push of a fixed length."""

    def __init__(self, length: int) -> None:
        self.length = length

    def accepts(self, element) -> bool:
        return isinstance(element, bytes) and len(element) == self.length


class _Number:
    """Placeholder for a script number, e.g. a delay or an expiry."""

    def accepts(self, element) -> bool:
        # Small numbers are encoded as OP_0 ... OP_16 and iterated as int.
        if isinstance(element, bytes):
            return 0 < len(element) <= 5
        return type(element) is int


PUBKEY = _Data(33)
HASH160 = _Data(20)
NUMBER = _Number()

# The preimage size compared by OP_SIZE, pushed as data.
_PREIMAGE_SIZE = bytes([32])


class ScriptTemplate(Enum):
    TO_LOCAL = "to_local"
    TO_REMOTE_ANCHORS = "to_remote_anchors"
    ANCHOR = "anchor"
    OFFERED_HTLC = "offered_htlc"
    RECEIVED_HTLC = "received_htlc"


# OP_IF <revocationpubkey> OP_ELSE `to_self_delay` OP_CHECKSEQUENCEVERIFY OP_DROP
# <local_delayedpubkey> OP_ENDIF OP_CHECKSIG
_TO_LOCAL = [
    OP_IF,
    PUBKEY,
    OP_ELSE,
    NUMBER,
    OP_CHECKSEQUENCEVERIFY,
    OP_DROP,
    PUBKEY,
    OP_ENDIF,
    OP_CHECKSIG,
]

# <remote_pubkey> OP_CHECKSIGVERIFY 1 OP_CHECKSEQUENCEVERIFY
_TO_REMOTE_ANCHORS = [PUBKEY, OP_CHECKSIGVERIFY, 1, OP_CHECKSEQUENCEVERIFY]

# <local_funding_pubkey> OP_CHECKSIG OP_IFDUP OP_NOTIF 16 OP_CHECKSEQUENCEVERIFY
# OP_ENDIF
_ANCHOR = [
    PUBKEY,
    OP_CHECKSIG,
    OP_IFDUP,
    OP_NOTIF,
    16,
    OP_CHECKSEQUENCEVERIFY,
    OP_ENDIF,
]

_HTLC_REVOCATION = [
    OP_DUP,
    OP_HASH160,
    HASH160,
    OP_EQUAL,
    OP_IF,
    OP_CHECKSIG,
    OP_ELSE,
    PUBKEY,
    OP_SWAP,
    OP_SIZE,
    _PREIMAGE_SIZE,
    OP_EQUAL,
]

_OFFERED_HTLC_BODY = [
    OP_NOTIF,
    OP_DROP,
    2,
    OP_SWAP,
    PUBKEY,
    2,
    OP_CHECKMULTISIG,
    OP_ELSE,
    OP_HASH160,
    HASH160,
    OP_EQUALVERIFY,
    OP_CHECKSIG,
    OP_ENDIF,
]

_RECEIVED_HTLC_BODY = [
    OP_IF,
    OP_HASH160,
    HASH160,
    OP_EQUALVERIFY,
    2,
    OP_SWAP,
    PUBKEY,
    2,
    OP_CHECKMULTISIG,
    OP_ELSE,
    OP_DROP,
    NUMBER,
    OP_CHECKLOCKTIMEVERIFY,
    OP_DROP,
    OP_CHECKSIG,
    OP_ENDIF,
]

# With option_anchors the htlc outputs are encumbered by a one block csv lock.
_ANCHORS_CSV = [1, OP_CHECKSEQUENCEVERIFY, OP_DROP]


def _htlc_templates(body: list) -> list[list]:
    return [
        _HTLC_REVOCATION + body + [OP_ENDIF],
        _HTLC_REVOCATION + body + _ANCHORS_CSV + [OP_ENDIF],
    ]


_TEMPLATES: list[tuple[ScriptTemplate, list]] = [
    (ScriptTemplate.TO_LOCAL, _TO_LOCAL),
    (ScriptTemplate.TO_REMOTE_ANCHORS, _TO_REMOTE_ANCHORS),
    (ScriptTemplate.ANCHOR, _ANCHOR),
    *[(ScriptTemplate.OFFERED_HTLC, t) for t in _htlc_templates(_OFFERED_HTLC_BODY)],
    *[
        (ScriptTemplate.RECEIVED_HTLC, t)
        for t in _htlc_templates(_RECEIVED_HTLC_BODY)
    ],
]


def _element_matches(element, pattern) -> bool:
    if isinstance(pattern, (_Data, _Number)):
        return pattern.accepts(element)

    if isinstance(pattern, bytes):
        return element == pattern

    # Opcodes and small ints. Data pushes never match an opcode.
    if isinstance(element, bytes):
        return False

    return element == pattern


def _matches(elements: list, template: list) -> bool:
    if len(elements) != len(template):
        return False

    return all(_element_matches(e, p) for e, p in zip(elements, template))


def match_template(witness_script: bytes) -> ScriptTemplate | None:
    """
    Returns the BOLT #3 template of the given witness script or None if the
    script doesn't match any template.
    """

    try:
        elements = list(CScript(witness_script))
    except CScriptInvalidError:
        return None

    for template, pattern in _TEMPLATES:
        if _matches(elements, pattern):
            return template

    return None
