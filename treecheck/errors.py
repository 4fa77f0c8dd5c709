"""
Exception types raised by the traversal core and by rules.

Configuration errors are raised before any traversal starts, unsupported
node errors mark a rule bug for the current file, and tree invariant
errors abort the whole traversal of a file.
"""

from typing import Optional, Tuple


class TreeCheckError(Exception):
    """Base class for all treecheck errors."""


class RuleConfigurationError(TreeCheckError):
    """Raised when a rule receives an unknown option or a malformed value."""

    def __init__(self, rule: str, message: str):
        self.rule = rule
        self.message = message
        super().__init__(f"Invalid configuration for rule '{rule}': {message}")


class UnsupportedNodeError(TreeCheckError):
    """
    Raised by a rule callback that received a node kind it cannot handle.

    This always indicates a mismatch between the rule's interest set and
    its callback logic.
    """

    def __init__(self, rule: str, kind: str, position: Optional[Tuple[int, int]] = None):
        self.rule = rule
        self.kind = kind
        self.position = position
        where = f" at {position[0]}:{position[1]}" if position else ""
        super().__init__(f"Rule '{rule}' cannot handle node kind '{kind}'{where}")


class TreeInvariantError(TreeCheckError):
    """Raised when a syntax tree is malformed (shared nodes, missing children, ...)."""

    def __init__(self, message: str, position: Optional[Tuple[int, int]] = None):
        self.message = message
        self.position = position
        where = f" (at {position[0]}:{position[1]})" if position else ""
        super().__init__(f"{message}{where}")
