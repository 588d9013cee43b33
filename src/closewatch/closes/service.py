from __future__ import annotations

from typing import TYPE_CHECKING

from closewatch.chain.esplora import EsploraClient
from closewatch.config import ClosewatchConfig, LndCredentials
from closewatch.utils import first_some

from .pipeline import ChannelClosesPipeline
from .report import ChannelCloses
from .resolver import ChannelResolver

if TYPE_CHECKING:
    from closewatch.lightning.lnd import LNDClient


def _open_session(credentials: LndCredentials) -> LNDClient:
    # The session needs the generated lnd stubs, they are loaded on first use.
    from closewatch.session import open_session

    return open_session(credentials)


def _new_resolver(credentials: LndCredentials) -> ChannelResolver:
    esplora = EsploraClient(credentials.esplora_url, credentials.esplora_timeout)
    return ChannelResolver(esplora)


def get_channel_closes(
    limit: int | None = None,
    node: str | None = None,
    *,
    config: ClosewatchConfig,
) -> ChannelCloses:
    """
    Returns the outcomes of the last closed channels of the node, oldest first.
    Without a limit the limit of the config is used.
    """

    pipeline = ChannelClosesPipeline(
        acquire_credentials=config.credentials,
        open_session=_open_session,
        new_resolver=_new_resolver,
    )

    return pipeline.run(limit=first_some(limit, config.limit), node=node)
