"""Data models for the syntax-tree traversal core."""

from .diagnostic import Diagnostic, Severity
from .error import ErrorRecord, FailurePhase
from .node import (
    CONDITIONAL_OPERATORS,
    LITERAL_KINDS,
    RELATIONAL_OPERATORS,
    TYPE_DECLARATION_KINDS,
    Node,
    NodeKind,
    Position,
)
from .report import FileReport
from .tree import SyntaxTree

__all__ = [
    # Tree models
    "Node",
    "NodeKind",
    "Position",
    "SyntaxTree",
    "RELATIONAL_OPERATORS",
    "CONDITIONAL_OPERATORS",
    "TYPE_DECLARATION_KINDS",
    "LITERAL_KINDS",
    # Diagnostic models
    "Diagnostic",
    "Severity",
    # Error models
    "ErrorRecord",
    "FailurePhase",
    # Report models
    "FileReport",
]
