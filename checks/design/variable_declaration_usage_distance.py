"""
Measures how far a local variable is declared from its first use.

The distance is the number of statements between the declaration and the
statement holding the first usage; other declarations in between are not
counted. With ``validateBetweenScopes`` the count continues into the one
nested block (branch, loop body, case or try part) that holds every usage.
"""

import re
from typing import Dict, FrozenSet, List, Optional, Pattern, Sequence, Set

from pydantic import Field

from checks.base import Rule
from treecheck.engine.cursor import Cursor
from treecheck.models.node import Node, NodeKind

MSG_KEY = "variable.declaration.usage.distance"

_COMPOUND_KINDS = frozenset({
    NodeKind.IF,
    NodeKind.FOR,
    NodeKind.FOR_EACH,
    NodeKind.WHILE,
    NodeKind.DO_WHILE,
    NodeKind.SWITCH,
})

_LOOP_KINDS = frozenset({
    NodeKind.FOR,
    NodeKind.FOR_EACH,
    NodeKind.WHILE,
    NodeKind.DO_WHILE,
})

# Statements whose first usage ends the count one step further.
_SIMPLE_KINDS = frozenset({
    NodeKind.VARIABLE_DECL,
    NodeKind.EXPRESSION_STMT,
    NodeKind.RETURN,
    NodeKind.THROW,
})


class _Usages:
    """Membership test for subtrees holding a usage of one variable."""

    def __init__(self, usages: Sequence[Node]):
        self._marked: Set[int] = set()
        for usage in usages:
            self._marked.add(id(usage))
            self._marked.update(id(a) for a in usage.ancestors())

    def __call__(self, node: Optional[Node]) -> bool:
        return node is not None and id(node) in self._marked


class VariableDeclarationUsageDistance(Rule):
    """Reports local variables declared too far from their first usage."""

    class Options(Rule.Options):
        allowed_distance: int = Field(3, ge=0)
        ignore_variable_pattern: Pattern = re.compile("")
        validate_between_scopes: bool = False
        ignore_final: bool = True

    @property
    def interest_kinds(self) -> FrozenSet[NodeKind]:
        return frozenset({NodeKind.VARIABLE_DECL, NodeKind.IDENTIFIER, NodeKind.BLOCK})

    def begin_tree(self, cursor: Cursor) -> None:
        # declaration -> identifiers resolving to it
        self._usages: Dict[Node, List[Node]] = {}

    def enter(self, node: Node, cursor: Cursor) -> None:
        if node.kind == NodeKind.VARIABLE_DECL:
            if self._is_tracked(node):
                self._usages[node] = []
        elif node.kind == NodeKind.IDENTIFIER:
            if not self._usages:
                return
            symbol = cursor.resolve(node)
            if symbol is not None and symbol.node in self._usages:
                self._usages[symbol.node].append(node)

    def leave(self, node: Node, cursor: Cursor) -> None:
        if node.kind != NodeKind.BLOCK:
            return
        statements = node.children
        for index, statement in enumerate(statements):
            usages = self._usages.pop(statement, None)
            if usages is None:
                continue
            contains = _Usages(usages)
            following = statements[index + 1:]
            if self.options.validate_between_scopes:
                distance = _distance_between_scopes(following, contains)
            else:
                distance = _distance_in_single_scope(following, contains)
            if distance > self.options.allowed_distance:
                variable = statement.first_child_of_kind(NodeKind.IDENTIFIER)
                cursor.report(variable, MSG_KEY, variable.text, distance, self.options.allowed_distance)

    def _is_tracked(self, declaration: Node) -> bool:
        parent = declaration.parent
        if parent is None or parent.kind != NodeKind.BLOCK:
            return False
        if self.options.ignore_final and declaration.has_modifier("final"):
            return False
        return self.options.ignore_variable_pattern.fullmatch(declaration.name or "") is None


def _distance_in_single_scope(statements: Sequence[Node], contains: _Usages) -> int:
    distance = 0
    for statement in statements:
        if not contains(statement):
            if statement.kind != NodeKind.VARIABLE_DECL:
                distance += 1
            continue
        if statement.kind == NodeKind.VARIABLE_DECL:
            return distance + 1
        if statement.kind == NodeKind.BLOCK:
            return 0
        if statement.kind in _COMPOUND_KINDS:
            return distance + 1 if _in_header(statement, contains) else distance
        if statement.find_descendant(lambda n: n.kind == NodeKind.BLOCK) is not None:
            return 0
        return distance + 1
    # never used
    return 0


def _distance_between_scopes(statements: Sequence[Node], contains: _Usages) -> int:
    distance = 0
    users = []
    for statement in statements:
        if contains(statement):
            users.append(statement)
        elif not users and statement.kind != NodeKind.VARIABLE_DECL:
            distance += 1

    if not users:
        return 0
    if len(users) > 1:
        return distance + 1

    user = users[0]
    if user.kind in _SIMPLE_KINDS:
        return distance + 1
    inner = _inner_statements(user, contains)
    if inner is None:
        return distance
    return distance + _distance_between_scopes(inner, contains)


def _inner_statements(statement: Node, contains: _Usages) -> Optional[Sequence[Node]]:
    """Statements of the single nested block holding every usage, if any."""
    if statement.kind == NodeKind.BLOCK:
        return statement.children
    if statement.kind in _COMPOUND_KINDS and _in_header(statement, contains):
        return None
    if statement.kind in _LOOP_KINDS:
        body = _loop_body(statement)
        if body is None or body.kind in _SIMPLE_KINDS:
            return None
        return _statements_of(body)
    if statement.kind == NodeKind.IF:
        return _single_part(_if_branches(statement), contains)
    if statement.kind == NodeKind.SWITCH:
        cases = statement.children_of_kind(NodeKind.CASE)
        return _single_part([c.first_child_of_kind(NodeKind.BLOCK) for c in cases], contains)
    if statement.kind == NodeKind.TRY:
        parts = [statement.first_child_of_kind(NodeKind.BLOCK)]
        parts.extend(c.first_child_of_kind(NodeKind.BLOCK) for c in statement.children_of_kind(NodeKind.CATCH))
        finally_ = statement.first_child_of_kind(NodeKind.FINALLY)
        if finally_ is not None:
            parts.append(finally_.first_child_of_kind(NodeKind.BLOCK))
        return _single_part(parts, contains)
    return None


def _single_part(parts: Sequence[Optional[Node]], contains: _Usages) -> Optional[Sequence[Node]]:
    used = [part for part in parts if contains(part)]
    if len(used) != 1:
        return None
    return _statements_of(used[0])


def _statements_of(body: Node) -> Sequence[Node]:
    if body.kind == NodeKind.BLOCK:
        return body.children
    return (body,)


def _loop_body(loop: Node) -> Optional[Node]:
    if loop.kind == NodeKind.DO_WHILE:
        return loop.first_child
    return loop.last_child


def _if_branches(statement: Node) -> List[Node]:
    """Then-branches of an if/else-if chain followed by the final else."""
    branches = []
    current: Optional[Node] = statement
    while current is not None and current.kind == NodeKind.IF:
        branches.append(current.children[1])
        else_ = current.first_child_of_kind(NodeKind.ELSE)
        current = else_.first_child if else_ is not None else None
    if current is not None:
        branches.append(current)
    return branches


def _header_parts(statement: Node) -> List[Node]:
    if statement.kind in (NodeKind.IF, NodeKind.WHILE, NodeKind.SWITCH):
        return [statement.first_child]
    if statement.kind == NodeKind.DO_WHILE:
        return [statement.last_child]
    if statement.kind == NodeKind.FOR:
        return [
            statement.first_child_of_kind(NodeKind.FOR_INIT),
            statement.first_child_of_kind(NodeKind.FOR_CONDITION),
            statement.first_child_of_kind(NodeKind.FOR_UPDATE),
        ]
    if statement.kind == NodeKind.FOR_EACH:
        return list(statement.children[:2])
    return []


def _in_header(statement: Node, contains: _Usages) -> bool:
    """Whether the variable is used in a condition, including else-if conditions."""
    if any(contains(part) for part in _header_parts(statement)):
        return True
    if statement.kind == NodeKind.IF:
        else_ = statement.first_child_of_kind(NodeKind.ELSE)
        nested = else_.first_child if else_ is not None else None
        if nested is not None and nested.kind == NodeKind.IF:
            return _in_header(nested, contains)
    return False
