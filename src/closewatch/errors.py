"""
Errors raised while building a closure report.

Every error can be attributed to the stage of the pipeline it originates from.
Errors raised by a single channel resolution carry the close transaction id of
that channel too.
"""

from __future__ import annotations


class ClosewatchError(Exception):
    def __init__(
        self, msg: str, stage: str | None = None, channel: str | None = None
    ) -> None:
        super().__init__(msg)
        self.msg = msg
        self.stage = stage
        self.channel = channel

    def __str__(self) -> str:
        context = []
        if self.stage is not None:
            context.append(f"stage: {self.stage}")
        if self.channel is not None:
            context.append(f"channel: {self.channel}")

        if not context:
            return self.msg
        return f"{self.msg} ({'; '.join(context)})"


class SessionError(ClosewatchError):
    """Credentials could not be loaded or the session could not be opened."""


class ChainLookupError(ClosewatchError):
    """A query against the node or the chain source failed."""
