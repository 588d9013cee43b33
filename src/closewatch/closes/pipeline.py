from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, TypeVar

from closewatch.errors import ClosewatchError
from closewatch.log import getLogger
from closewatch.tasks.graph import TaskGraph

from .report import ChannelCloses, ClosureReportEntry, new_report_entry

if TYPE_CHECKING:
    from closewatch.config import LndCredentials
    from closewatch.lightning.client import ClosedChannelRecord, LightningClient

    from .resolver import ChannelResolver

DEFAULT_LIMIT = 20

T = TypeVar("T")
U = TypeVar("U")

logger = getLogger(__name__)


def select_most_recent(
    records: Sequence[T], limit: int, process: Callable[[T], U]
) -> list[U]:
    """
    Processes the most recent `limit` records and returns the results in the
    order of the records.

    records are ordered oldest first. They are reversed to take the most recent
    ones, processed one after another starting with the most recent, and the
    results are reversed again to restore the chronological order.
    """

    most_recent_first = list(reversed(records))[:limit]

    results = [process(r) for r in most_recent_first]

    results.reverse()
    return results


def _eval_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT

    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ValueError(f"limit must be a non-negative integer; got {limit!r}")

    return limit


class ChannelClosesPipeline:
    """
    Builds the closure report with a graph of stages:

    credentials -> session -> (closed_list, height) -> resolve

    closed_list and height run concurrently. The resolve stage resolves the
    selected channels strictly one after another.
    """

    def __init__(
        self,
        acquire_credentials: Callable[[str | None], LndCredentials],
        open_session: Callable[[LndCredentials], LightningClient],
        new_resolver: Callable[[LndCredentials], ChannelResolver],
    ) -> None:
        self._acquire_credentials = acquire_credentials
        self._open_session = open_session
        self._new_resolver = new_resolver

    def run(self, limit: int | None = None, node: str | None = None) -> ChannelCloses:
        limit = _eval_limit(limit)

        # Sessions opened during the run, closed when the run has finished.
        sessions: list[LightningClient] = []

        def open_session(credentials: LndCredentials) -> LightningClient:
            session = self._open_session(credentials)
            sessions.append(session)
            return session

        def resolve(
            credentials: LndCredentials,
            closed_list: list[ClosedChannelRecord],
            height: int,
        ) -> ChannelCloses:
            return self._resolve(credentials, closed_list, height, limit)

        graph = TaskGraph()
        graph.add("credentials", lambda: self._acquire_credentials(node))
        graph.add("session", open_session, ["credentials"])
        graph.add("closed_list", lambda session: session.closed_channels, ["session"])
        graph.add("height", lambda session: session.block_height, ["session"])
        graph.add("resolve", resolve, ["credentials", "closed_list", "height"])

        try:
            results = graph.run()
        finally:
            for session in sessions:
                session.close()

        return results["resolve"]

    def _resolve(
        self,
        credentials: LndCredentials,
        closed_list: list[ClosedChannelRecord],
        height: int,
        limit: int,
    ) -> ChannelCloses:

        closed_channels = [c for c in closed_list if not c.is_funding_cancel]
        logger.info(
            f"Resolving the last {min(limit, len(closed_channels))} of "
            f"{len(closed_channels)} closed channels at height {height}"
        )

        resolver = self._new_resolver(credentials)

        def resolve_channel(channel: ClosedChannelRecord) -> ClosureReportEntry:
            if not channel.has_close_transaction:
                logger.debug(
                    f"Channel {channel.transaction_id}:{channel.transaction_vout} "
                    "has no closing transaction; skipping resolution"
                )
                return new_report_entry(channel, [], height)

            try:
                resolutions = resolver.resolve(
                    channel.close_transaction_id,
                    channel.is_cooperative_close,
                    settled_balance=channel.settled_balance,
                )
            except ClosewatchError as e:
                if e.channel is None:
                    e.channel = channel.close_transaction_id
                raise e

            entry = new_report_entry(channel, resolutions, height)
            if entry.blocks_since_close < 0:
                logger.warning(
                    f"Height {height} is below the close height "
                    f"{channel.close_confirm_height} of "
                    f"{channel.close_transaction_id}; inconsistent chain view"
                )

            return entry

        closes = select_most_recent(closed_channels, limit, resolve_channel)
        return ChannelCloses(closes)
