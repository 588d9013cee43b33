"""
Report entries of closed channels.

Closure flags and output resolutions are sparse: they are set when true or not
empty and None otherwise. to_dict omits all None fields.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, fields

from closewatch.bolt03 import OutputResolution
from closewatch.lightning.client import ClosedChannelRecord


@dataclass(frozen=True)
class ClosureReportEntry:
    blocks_since_close: int
    capacity: int
    close_confirm_height: int
    close_transaction_id: str
    partner_public_key: str
    settled_balance: int
    transaction_id: str
    transaction_vout: int
    is_breach_close: bool | None = None
    is_cooperative_close: bool | None = None
    is_local_force_close: bool | None = None
    is_remote_force_close: bool | None = None
    output_resolutions: tuple[OutputResolution, ...] | None = None

    def to_dict(self) -> dict:
        res: dict = {}
        for f in fields(self):
            if (value := getattr(self, f.name)) is None:
                continue

            if f.name == "output_resolutions":
                value = [r.to_dict() for r in value]

            res[f.name] = value

        return res


@dataclass(frozen=True)
class ChannelCloses:
    closes: list[ClosureReportEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"closes": [c.to_dict() for c in self.closes]}


def new_report_entry(
    record: ClosedChannelRecord,
    resolutions: Sequence[OutputResolution],
    current_height: int,
) -> ClosureReportEntry:
    """
    Merges the record with its resolutions. blocks_since_close is not checked,
    a negative value is passed through.
    """

    return ClosureReportEntry(
        blocks_since_close=current_height - record.close_confirm_height,
        capacity=record.capacity,
        close_confirm_height=record.close_confirm_height,
        close_transaction_id=record.close_transaction_id,
        partner_public_key=record.partner_public_key,
        settled_balance=record.settled_balance,
        transaction_id=record.transaction_id,
        transaction_vout=record.transaction_vout,
        is_breach_close=record.is_breach_close or None,
        is_cooperative_close=record.is_cooperative_close or None,
        is_local_force_close=record.is_local_force_close or None,
        is_remote_force_close=record.is_remote_force_close or None,
        output_resolutions=tuple(resolutions) or None,
    )
