"""
Diagnostic sinks: where reported diagnostics go.
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterator, List

from treecheck.models.diagnostic import Diagnostic


class DiagnosticSink(ABC):
    """Receives each diagnostic once, in report order."""

    @abstractmethod
    def accept(self, diagnostic: Diagnostic) -> None:
        """
        Consume one diagnostic.

        Args:
            diagnostic: The reported finding
        """
        pass


class CollectingSink(DiagnosticSink):
    """Keeps diagnostics in memory."""

    def __init__(self):
        self.diagnostics: List[Diagnostic] = []

    def accept(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def clear(self) -> None:
        self.diagnostics.clear()

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.diagnostics)

    def __len__(self) -> int:
        return len(self.diagnostics)


class CallbackSink(DiagnosticSink):
    """Forwards each diagnostic to a host callback."""

    def __init__(self, callback: Callable[[Diagnostic], None]):
        self._callback = callback

    def accept(self, diagnostic: Diagnostic) -> None:
        self._callback(diagnostic)
