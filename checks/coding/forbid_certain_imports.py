"""
Forbids imports and fully qualified instantiations matching a regex,
in packages matching another regex.

Every pattern defaults to one that matches nothing. The rule subscribes
to nothing until both the package and the forbidden-imports patterns are
configured; without an excludes pattern no import is excluded.
"""

import re
from typing import FrozenSet, Optional, Pattern

from checks.base import Rule
from treecheck.engine.cursor import Cursor
from treecheck.models.node import Node, NodeKind

MSG_KEY = "forbid.certain.imports"

MATCH_NOTHING = re.compile(r"(?!)")


class ForbidCertainImports(Rule):
    """Reports forbidden imports and ``new a.b.C()`` of forbidden classes."""

    class Options(Rule.Options):
        package_name_regexp: Pattern = MATCH_NOTHING
        forbidden_imports_regexp: Pattern = MATCH_NOTHING
        forbidden_imports_excludes_regexp: Pattern = MATCH_NOTHING

    @property
    def is_active(self) -> bool:
        return all(
            pattern.pattern != MATCH_NOTHING.pattern
            for pattern in (self.options.package_name_regexp, self.options.forbidden_imports_regexp)
        )

    @property
    def interest_kinds(self) -> FrozenSet[NodeKind]:
        if not self.is_active:
            return frozenset()
        return frozenset({NodeKind.PACKAGE_DECL, NodeKind.IMPORT, NodeKind.NEW})

    def begin_tree(self, cursor: Cursor) -> None:
        self._package_matches = False

    def enter(self, node: Node, cursor: Cursor) -> None:
        if node.kind == NodeKind.PACKAGE_DECL:
            self._package_matches = self.options.package_name_regexp.fullmatch(node.text or "") is not None
        elif node.kind == NodeKind.IMPORT:
            if self._package_matches:
                self._check(node, node.text, cursor)
        elif node.kind == NodeKind.NEW:
            type_name = node.first_child_of_kind(NodeKind.TYPE).text or ""
            # only qualified names can be told apart from imported ones
            if self._package_matches and "." in type_name:
                self._check(node, type_name, cursor)
        else:
            raise self.unsupported(node)

    def _check(self, node: Node, qualified_name: Optional[str], cursor: Cursor) -> None:
        if qualified_name is None:
            return
        forbidden = self.options.forbidden_imports_regexp
        if forbidden.fullmatch(qualified_name) and not self.options.forbidden_imports_excludes_regexp.fullmatch(
            qualified_name
        ):
            cursor.report(node, MSG_KEY, forbidden.pattern, qualified_name)
