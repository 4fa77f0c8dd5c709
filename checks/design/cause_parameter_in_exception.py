"""
Requires exception classes to offer a constructor taking the cause.

Which classes count as exceptions is decided by name. A class is reported
once the whole tree has been walked if none of its constructors declares
a parameter of one of the allowed cause types.
"""

import re
from typing import Dict, FrozenSet, Optional, Pattern

from checks.base import Rule
from treecheck.config import CommaSeparatedList
from treecheck.engine.cursor import Cursor
from treecheck.models.node import Node, NodeKind

MSG_KEY = "cause.parameter.in.exception"


class CauseParameterInException(Rule):
    """Reports exception classes without a cause-carrying constructor."""

    class Options(Rule.Options):
        class_names_regexp: Pattern = re.compile(".+Exception")
        ignored_class_names_regexp: Pattern = re.compile("")
        allowed_cause_types: CommaSeparatedList = ["Exception", "Throwable"]

    @property
    def interest_kinds(self) -> FrozenSet[NodeKind]:
        return frozenset({NodeKind.CLASS_DECL, NodeKind.CTOR_DECL})

    def begin_tree(self, cursor: Cursor) -> None:
        # insertion order is report order
        self._to_warn: Dict[Node, None] = {}

    def enter(self, node: Node, cursor: Cursor) -> None:
        if node.kind == NodeKind.CLASS_DECL:
            name = node.name or ""
            if (
                self.options.class_names_regexp.fullmatch(name)
                and not self.options.ignored_class_names_regexp.fullmatch(name)
            ):
                self._to_warn[node] = None
        elif node.kind == NodeKind.CTOR_DECL:
            owner = _owning_class(cursor)
            if owner in self._to_warn and self._has_cause_parameter(node):
                del self._to_warn[owner]
        else:
            raise self.unsupported(node)

    def finish(self, cursor: Cursor) -> None:
        for class_decl in self._to_warn:
            cursor.report(class_decl, MSG_KEY, class_decl.name)
        self._to_warn.clear()

    def _has_cause_parameter(self, ctor: Node) -> bool:
        parameters = ctor.first_child_of_kind(NodeKind.PARAMETER_LIST)
        for parameter in parameters.children_of_kind(NodeKind.PARAMETER):
            type_node = parameter.first_child_of_kind(NodeKind.TYPE)
            if type_node is not None and type_node.text in self.options.allowed_cause_types:
                return True
        return False


def _owning_class(cursor: Cursor) -> Optional[Node]:
    for frame in cursor.frames():
        if frame.node.kind == NodeKind.CLASS_DECL:
            return frame.node
    return None
