# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Protocol for the orchestrator event source.

The orchestrator is an external collaborator. The aggregator only needs
to register and deregister listeners by event name; emission happens on
the orchestrator's side and invokes listeners synchronously with the
event's positional arguments.

Example:
    >>> class Emitter:
    ...     def on(self, event, listener): ...
    ...     def off(self, event, listener): ...
    >>> isinstance(Emitter(), ProtocolEventSource)
    True
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

# Listener signature: positional event arguments, return value ignored
EventListener = Callable[..., Any]


@runtime_checkable
class ProtocolEventSource(Protocol):
    """Contract for an object that emits named orchestrator events.

    Implementations must invoke listeners in registration order, and
    ``off`` must remove the exact listener object passed to ``on``.
    """

    def on(self, event: str, listener: EventListener) -> Any:
        """Register ``listener`` for ``event``."""
        ...

    def off(self, event: str, listener: EventListener) -> Any:
        """Deregister ``listener`` from ``event``."""
        ...


__all__ = [
    "EventListener",
    "ProtocolEventSource",
]
