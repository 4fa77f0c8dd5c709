"""
Base interface for traversal rules.

A rule subscribes to a closed set of node kinds and receives ``enter``
and ``leave`` callbacks for nodes of those kinds as the engine walks a
tree, plus ``begin_tree``/``finish`` around each walk. Findings are
reported through ``cursor.report``.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Annotated, Any, FrozenSet, List, Mapping, Optional, Union

from pydantic import BeforeValidator, ValidationError

from treecheck.config import OptionsModel
from treecheck.errors import RuleConfigurationError, UnsupportedNodeError
from treecheck.models.diagnostic import Severity
from treecheck.models.node import Node, NodeKind

if TYPE_CHECKING:
    from treecheck.engine.cursor import Cursor


def _node_kinds(value: Any) -> Any:
    if isinstance(value, str):
        value = [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple, set, frozenset)):
        # accept enum names ("CLASS_DECL") as well as values ("class_decl")
        return [
            NodeKind[item.upper()] if isinstance(item, str) and item.upper() in NodeKind.__members__ else item
            for item in value
        ]
    return value


NodeKindList = Annotated[List[NodeKind], BeforeValidator(_node_kinds)]


class Rule(ABC):
    """Base interface for analysis rules."""

    class Options(OptionsModel):
        """Options every rule accepts."""

        severity: Severity = Severity.ERROR

    def __init__(self, options: Optional[Union[Mapping[str, Any], OptionsModel]] = None):
        self.options = self.Options()
        self.configure(options or {})

    @property
    def name(self) -> str:
        """Return the rule name used in diagnostics and configuration."""
        return type(self).__name__

    @property
    @abstractmethod
    def interest_kinds(self) -> FrozenSet[NodeKind]:
        """Return the node kinds this rule wants callbacks for."""
        pass

    @property
    def severity(self) -> Severity:
        return self.options.severity

    def configure(self, options: Union[Mapping[str, Any], OptionsModel]) -> None:
        """
        Validate and apply options.

        Args:
            options: Option values keyed by name (camelCase or snake_case),
                or an already-built Options instance

        Raises:
            RuleConfigurationError: On unknown option names or malformed values
        """
        if isinstance(options, self.Options):
            self.options = options
            return
        if isinstance(options, OptionsModel):
            options = options.model_dump()
        try:
            self.options = self.Options.model_validate(dict(options))
        except ValidationError as e:
            raise RuleConfigurationError(self.name, str(e)) from e

    def begin_tree(self, cursor: "Cursor") -> None:
        """
        Called once before a tree is walked.

        Rules holding per-tree state reset it here.
        """
        pass

    def enter(self, node: Node, cursor: "Cursor") -> None:
        """
        Called when the walk enters a node of an interesting kind.

        Args:
            node: The node being entered
            cursor: Traversal state at this node
        """
        pass

    def leave(self, node: Node, cursor: "Cursor") -> None:
        """
        Called when the walk leaves a node of an interesting kind.

        Args:
            node: The node being left
            cursor: Traversal state at this node
        """
        pass

    def finish(self, cursor: "Cursor") -> None:
        """Called once after the whole tree has been walked."""
        pass

    def unsupported(self, node: Node) -> UnsupportedNodeError:
        """Build the error a callback raises for a node kind it cannot handle."""
        return UnsupportedNodeError(self.name, node.kind.name, node.position)

    def __repr__(self) -> str:
        return f"<Rule {self.name}>"
