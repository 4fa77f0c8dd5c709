"""
Limits the number of consecutive capital letters in declared names.

``getXMLParser`` holds the abbreviation ``XML``: the last capital of a
run is taken as the start of the next word, so the run ``XMLP`` counts as
three letters.
"""

from typing import FrozenSet, List, Optional

from pydantic import Field

from checks.base import NodeKindList, Rule
from treecheck.config import CommaSeparatedList
from treecheck.engine.cursor import Cursor
from treecheck.models.node import Node, NodeKind

MSG_KEY = "abbreviation.as.word"

DEFAULT_TARGETS = [
    NodeKind.CLASS_DECL,
    NodeKind.INTERFACE_DECL,
    NodeKind.ENUM_DECL,
    NodeKind.METHOD_DECL,
    NodeKind.FIELD_DECL,
    NodeKind.VARIABLE_DECL,
]

_VARIABLE_KINDS = frozenset({NodeKind.FIELD_DECL, NodeKind.VARIABLE_DECL})


class AbbreviationAsWordInName(Rule):
    """Reports declaration names holding an over-long capitalized abbreviation."""

    class Options(Rule.Options):
        targets: NodeKindList = DEFAULT_TARGETS
        allowed_abbreviation_length: int = Field(3, ge=0)
        allowed_abbreviations: CommaSeparatedList = []
        ignore_final: bool = True
        ignore_static: bool = True
        ignore_overridden_methods: bool = True

    @property
    def interest_kinds(self) -> FrozenSet[NodeKind]:
        return frozenset(self.options.targets)

    def enter(self, node: Node, cursor: Cursor) -> None:
        if self._is_ignored(node):
            return
        name_node = node.first_child_of_kind(NodeKind.IDENTIFIER)
        if name_node is None or not name_node.text:
            return
        if self.disallowed_abbreviation(name_node.text) is not None:
            cursor.report(name_node, MSG_KEY, self.options.allowed_abbreviation_length)

    def _is_ignored(self, node: Node) -> bool:
        if node.kind in _VARIABLE_KINDS:
            return (
                (self.options.ignore_final and node.has_modifier("final"))
                or (self.options.ignore_static and node.has_modifier("static"))
            )
        if node.kind == NodeKind.METHOD_DECL:
            return self.options.ignore_overridden_methods and node.has_modifier("@Override")
        return False

    def disallowed_abbreviation(self, name: str) -> Optional[str]:
        """
        Find the first capital run longer than allowed.

        Args:
            name: Declared name

        Returns:
            The offending abbreviation, or None if the name is acceptable
        """
        allowed_length = self.options.allowed_abbreviation_length
        allowed: List[str] = self.options.allowed_abbreviations
        begin: Optional[int] = None

        for index, symbol in enumerate(name):
            if symbol.isupper():
                if begin is None:
                    begin = index
                continue
            if begin is None:
                continue
            # the last capital usually starts the next word
            end = index - 1
            if end - begin > allowed_length:
                abbreviation = name[begin:end]
                if abbreviation not in allowed:
                    return abbreviation
            begin = None

        if begin is not None and len(name) - begin > allowed_length:
            abbreviation = name[begin:]
            if abbreviation not in allowed:
                return abbreviation
        return None
