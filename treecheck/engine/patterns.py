"""
Declarative structural predicates over syntax nodes.

Predicates compose with ``&``, ``|`` and ``~``:

    relational_not = kind_is(NodeKind.LOGICAL_NOT) & child_matches(is_relational)

Regex predicates use full-match semantics: ``text_matches("A|B")``
accepts "A" and "B" but neither "CA" nor "AB". Wrap the expression in
``.*`` to get substring behaviour.
"""

import re
from typing import Callable, Iterable, Optional, Pattern, Union

from treecheck.models.node import (
    CONDITIONAL_OPERATORS,
    RELATIONAL_OPERATORS,
    Node,
    NodeKind,
)


class Predicate:
    """A pure boolean test over a node and its subtree."""

    def __init__(self, test: Callable[[Node], bool], description: str):
        self._test = test
        self.description = description

    def __call__(self, node: Optional[Node]) -> bool:
        return matches(node, self)

    def __and__(self, other: "Predicate") -> "Predicate":
        return all_of(self, other)

    def __or__(self, other: "Predicate") -> "Predicate":
        return any_of(self, other)

    def __invert__(self) -> "Predicate":
        return not_(self)

    def __repr__(self) -> str:
        return f"Predicate({self.description})"


def matches(node: Optional[Node], predicate: Predicate) -> bool:
    """
    Evaluate a predicate; never raises.

    Absent nodes and absent sub-structure evaluate to False.
    """
    if node is None:
        return False
    try:
        return bool(predicate._test(node))
    except (AttributeError, IndexError, TypeError):
        # missing structure compares as non-matching
        return False


def kind_is(*kinds: NodeKind) -> Predicate:
    accepted = frozenset(kinds)
    return Predicate(
        lambda node: node.kind in accepted,
        "kind in " + ",".join(k.name for k in kinds),
    )


def text_matches(regex: Union[str, Pattern]) -> Predicate:
    """Whole text must match ``regex``; nodes without text never match."""
    pattern = re.compile(regex) if isinstance(regex, str) else regex
    return Predicate(
        lambda node: node.text is not None and pattern.fullmatch(node.text) is not None,
        f"text ~ /{pattern.pattern}/",
    )


def op_in(operators: Iterable[str]) -> Predicate:
    accepted = frozenset(operators)
    return Predicate(
        lambda node: node.kind == NodeKind.BINARY_OP and node.text in accepted,
        "operator in " + ",".join(sorted(accepted)),
    )


def has_modifier(modifier: str) -> Predicate:
    return Predicate(lambda node: node.has_modifier(modifier), f"has modifier {modifier}")


def has_child_of_kind(kind: NodeKind) -> Predicate:
    return Predicate(
        lambda node: node.first_child_of_kind(kind) is not None,
        f"has child {kind.name}",
    )


def ancestor_has_kind(kind: NodeKind, stop_at: Iterable[NodeKind] = ()) -> Predicate:
    """Some enclosing node is of ``kind``, searching outward until a ``stop_at`` kind."""
    stops = frozenset(stop_at)

    def test(node: Node) -> bool:
        for ancestor in node.ancestors():
            if ancestor.kind == kind:
                return True
            if ancestor.kind in stops:
                return False
        return False

    return Predicate(test, f"ancestor {kind.name}")


def child_matches(predicate: Predicate) -> Predicate:
    return Predicate(
        lambda node: any(matches(child, predicate) for child in node.children),
        f"any child ({predicate.description})",
    )


def descendant_matches(predicate: Predicate) -> Predicate:
    return Predicate(
        lambda node: node.find_descendant(predicate) is not None,
        f"any descendant ({predicate.description})",
    )


def all_of(*predicates: Predicate) -> Predicate:
    return Predicate(
        lambda node: all(matches(node, p) for p in predicates),
        " and ".join(f"({p.description})" for p in predicates),
    )


def any_of(*predicates: Predicate) -> Predicate:
    return Predicate(
        lambda node: any(matches(node, p) for p in predicates),
        " or ".join(f"({p.description})" for p in predicates),
    )


def not_(predicate: Predicate) -> Predicate:
    return Predicate(lambda node: not matches(node, predicate), f"not ({predicate.description})")


def unwrap_parens(node: Optional[Node]) -> Optional[Node]:
    """Strip any number of PAREN wrappers."""
    while node is not None and node.kind == NodeKind.PAREN:
        node = node.first_child
    return node


is_relational = op_in(RELATIONAL_OPERATORS)
is_conditional = op_in(CONDITIONAL_OPERATORS)
is_literal = kind_is(
    NodeKind.STRING_LITERAL,
    NodeKind.CHAR_LITERAL,
    NodeKind.NUMBER_LITERAL,
    NodeKind.BOOLEAN_LITERAL,
    NodeKind.NULL_LITERAL,
)
