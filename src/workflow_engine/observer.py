"""
Execution Observer - Synchronous progress callbacks owned by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Tuple

from .graph import NodeOutput


class ExecutionObserver(Protocol):
    """Callbacks invoked in execution order, before the engine moves on."""

    def on_node_start(self, node_id: str) -> None:
        ...

    def on_node_complete(self, node_id: str, output: NodeOutput) -> None:
        ...

    def on_node_error(self, node_id: str, error: str) -> None:
        ...

    def on_node_skipped(self, node_id: str) -> None:
        ...


class NullObserver:
    """Observer that ignores every event."""

    def on_node_start(self, node_id: str) -> None:
        pass

    def on_node_complete(self, node_id: str, output: NodeOutput) -> None:
        pass

    def on_node_error(self, node_id: str, error: str) -> None:
        pass

    def on_node_skipped(self, node_id: str) -> None:
        pass


class CallbackObserver:
    """
    Adapt plain optional callables to the observer protocol.

    Usage:
        observer = CallbackObserver(on_node_start=lambda node_id: print(node_id))
    """

    def __init__(
        self,
        on_node_start: Optional[Callable[[str], Any]] = None,
        on_node_complete: Optional[Callable[[str, NodeOutput], Any]] = None,
        on_node_error: Optional[Callable[[str, str], Any]] = None,
        on_node_skipped: Optional[Callable[[str], Any]] = None,
    ):
        self._on_start = on_node_start
        self._on_complete = on_node_complete
        self._on_error = on_node_error
        self._on_skipped = on_node_skipped

    def on_node_start(self, node_id: str) -> None:
        if self._on_start:
            self._on_start(node_id)

    def on_node_complete(self, node_id: str, output: NodeOutput) -> None:
        if self._on_complete:
            self._on_complete(node_id, output)

    def on_node_error(self, node_id: str, error: str) -> None:
        if self._on_error:
            self._on_error(node_id, error)

    def on_node_skipped(self, node_id: str) -> None:
        if self._on_skipped:
            self._on_skipped(node_id)


@dataclass(frozen=True)
class ObservedEvent:
    event: str
    node_id: str
    detail: Any = None


class RecordingObserver:
    """Keeps an ordered log of every callback; used by the CLI and tests."""

    def __init__(self) -> None:
        self.events: List[ObservedEvent] = []

    def on_node_start(self, node_id: str) -> None:
        self.events.append(ObservedEvent("start", node_id))

    def on_node_complete(self, node_id: str, output: NodeOutput) -> None:
        self.events.append(ObservedEvent("complete", node_id, output.value))

    def on_node_error(self, node_id: str, error: str) -> None:
        self.events.append(ObservedEvent("error", node_id, error))

    def on_node_skipped(self, node_id: str) -> None:
        self.events.append(ObservedEvent("skipped", node_id))

    def sequence(self) -> List[Tuple[str, str]]:
        """(event, node_id) pairs in the order they were observed."""
        return [(event.event, event.node_id) for event in self.events]


__all__ = [
    "ExecutionObserver",
    "NullObserver",
    "CallbackObserver",
    "RecordingObserver",
    "ObservedEvent",
]
