"""
Syntax-tree traversal and analysis core.

Rules from the ``checks`` package subscribe to node kinds and are called
back as the traversal engine walks a tree once, depth first.
"""

from treecheck.engine import TraversalEngine, TraversalResult
from treecheck.errors import (
    RuleConfigurationError,
    TreeCheckError,
    TreeInvariantError,
    UnsupportedNodeError,
)
from treecheck.models import Diagnostic, FileReport, Node, NodeKind, Severity, SyntaxTree

__version__ = "0.1.0"

__all__ = [
    "TraversalEngine",
    "TraversalResult",
    "TreeCheckError",
    "RuleConfigurationError",
    "UnsupportedNodeError",
    "TreeInvariantError",
    "Diagnostic",
    "FileReport",
    "Node",
    "NodeKind",
    "Severity",
    "SyntaxTree",
]
