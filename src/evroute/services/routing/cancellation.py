"""Cancellation tokens shared by the planner, the stitcher and the route flow."""

from __future__ import annotations

from .errors import OperationCancelled


class CancellationToken:
    """Flag checked between network calls of one invocation."""

    def __init__(self, generation: int = 0) -> None:
        self.generation = generation
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelled(f"request generation {self.generation} was cancelled")
