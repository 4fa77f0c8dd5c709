"""Diagnostic data models."""

from enum import Enum
from typing import Tuple, Union

from pydantic import BaseModel, ConfigDict

from treecheck.models.node import Position

DiagnosticArg = Union[str, int, float, bool]


class Severity(str, Enum):
    """Severity level of a diagnostic."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Diagnostic(BaseModel):
    """
    One reported finding.

    The host resolves ``message_key`` to localized text, substituting
    ``args`` in order.
    """

    model_config = ConfigDict(frozen=True)

    rule: str
    line: int
    column: int
    message_key: str
    args: Tuple[DiagnosticArg, ...] = ()
    severity: Severity = Severity.ERROR

    @property
    def position(self) -> Position:
        return Position(self.line, self.column)

    def sort_key(self) -> Tuple[int, int, str, str]:
        return (self.line, self.column, self.rule, self.message_key)
