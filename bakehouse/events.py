"""Progress events emitted by the pipeline.

The core never prints. It reports what it is doing through an EventHook,
and the CLI decides how to render it (see shell.console_hook).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

EventHook = Callable[[str, Mapping[str, object]], None]


def null_hook(event: str, fields: Mapping[str, object]) -> None:
    """Discard an event."""
