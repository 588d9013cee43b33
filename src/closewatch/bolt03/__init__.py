from .resolution import (
    ANCHOR_OUTPUT_VALUE,
    OutputResolution,
    ResolutionType,
    channel_resolution,
    outputs_to_look_up,
)
from .scripts import ScriptTemplate, match_template

__all__ = [
    "ANCHOR_OUTPUT_VALUE",
    "OutputResolution",
    "ResolutionType",
    "ScriptTemplate",
    "channel_resolution",
    "match_template",
    "outputs_to_look_up",
]
