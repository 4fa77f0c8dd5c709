"""
Finds private instance methods that could be declared static.

A method qualifies when its body never touches instance state: no
``this``/``super``, no instance fields, no instance methods and no
instances of non-static inner classes. References are resolved with the
scope index as they are met. Names the index cannot resolve yet (members
declared further down the class) are re-resolved when the walk leaves the
class, at which point every member of the class has been declared.
"""

import re
from typing import Dict, FrozenSet, Iterator, List, NamedTuple, Optional

from checks.base import Rule
from treecheck.config import CommaSeparatedList
from treecheck.engine.cursor import Cursor
from treecheck.engine.frames import CLASS_LIKE_FRAMES, Frame, FrameKind
from treecheck.engine.scope import Namespace, Symbol, reference_namespace
from treecheck.models.node import Node, NodeKind

MSG_KEY = "static.method.candidate"

DEFAULT_SKIPPED_METHODS = [
    "writeObject",
    "readObject",
    "readObjectNoData",
    "readResolve",
    "writeReplace",
]

_TYPE_NAME = re.compile(r"[A-Za-z_$][\w$]*")


_CLASS_KINDS = frozenset({
    NodeKind.CLASS_DECL,
    NodeKind.INTERFACE_DECL,
    NodeKind.ENUM_DECL,
    NodeKind.NEW,
    NodeKind.ENUM_CONSTANT,
})


class _Deferred(NamedTuple):
    """A reference the scope index could not resolve when it was met."""

    name: str
    namespace: Namespace
    arguments: Optional[int]
    # class-like nodes between the reference and the candidate method
    inner_classes: FrozenSet[Node]


class _Candidate:
    """A method still believed to be static-able."""

    def __init__(self, node: Node, owner: Node):
        self.node = node
        self.owner = owner
        self.disqualified = False
        self.deferred: List[_Deferred] = []


class StaticMethodCandidate(Rule):
    """Reports private non-static methods that use no instance state."""

    class Options(Rule.Options):
        skipped_methods: CommaSeparatedList = DEFAULT_SKIPPED_METHODS

    @property
    def interest_kinds(self) -> FrozenSet[NodeKind]:
        return _CLASS_KINDS | {
            NodeKind.METHOD_DECL,
            NodeKind.THIS,
            NodeKind.SUPER,
            NodeKind.IDENTIFIER,
            NodeKind.TYPE,
        }

    def begin_tree(self, cursor: Cursor) -> None:
        self._candidates: Dict[Node, _Candidate] = {}

    def enter(self, node: Node, cursor: Cursor) -> None:
        if node.kind in _CLASS_KINDS:
            return
        if node.kind == NodeKind.METHOD_DECL:
            self._enter_method(node, cursor)
            return
        if not self._candidates:
            return
        if node.kind in (NodeKind.THIS, NodeKind.SUPER):
            self._disqualify_until(cursor, cursor.enclosing_frame(*CLASS_LIKE_FRAMES))
        elif node.kind == NodeKind.IDENTIFIER:
            self._check_identifier(node, cursor)
        elif node.kind == NodeKind.TYPE:
            self._check_type_reference(node, cursor)
        else:
            raise self.unsupported(node)

    def leave(self, node: Node, cursor: Cursor) -> None:
        if node.kind not in _CLASS_KINDS:
            return
        frame = cursor.frame
        if frame is None or frame.node is not node:
            # NEW without a class body
            return
        self._settle_inner_references(node, cursor)
        owned = [c for c in self._candidates.values() if c.owner is node]
        for candidate in owned:
            del self._candidates[candidate.node]
            if not candidate.disqualified and self._deferred_resolve_static(candidate, cursor):
                cursor.report(candidate.node, MSG_KEY, candidate.node.name)

    # -- candidates -----------------------------------------------------------

    def _enter_method(self, node: Node, cursor: Cursor) -> None:
        frame = cursor.frame
        if not frame.static_candidate_eligible:
            return
        if node.name in self.options.skipped_methods:
            return
        owner = frame.parent
        self._candidates[node] = _Candidate(node, owner.node)

    def _open_candidates(self, cursor: Cursor, stop: Optional[Frame] = None) -> Iterator[_Candidate]:
        """Candidates whose method frame lies inside ``stop`` (all if None)."""
        for frame in cursor.frames():
            if frame is stop:
                return
            if frame.kind == FrameKind.METHOD:
                candidate = self._candidates.get(frame.node)
                if candidate is not None:
                    yield candidate

    def _disqualify_until(self, cursor: Cursor, stop: Optional[Frame]) -> None:
        for candidate in self._open_candidates(cursor, stop):
            candidate.disqualified = True

    def _defer(self, cursor: Cursor, name: str, namespace: Namespace, arguments: Optional[int] = None) -> None:
        inner: List[Node] = []
        for frame in cursor.frames():
            if frame.is_class_like:
                inner.append(frame.node)
            elif frame.kind == FrameKind.METHOD:
                candidate = self._candidates.get(frame.node)
                if candidate is not None:
                    candidate.deferred.append(_Deferred(name, namespace, arguments, frozenset(inner)))

    def _settle_inner_references(self, node: Node, cursor: Cursor) -> None:
        """Drop deferred references that a class nested in a candidate declares itself."""
        for candidate in self._candidates.values():
            if candidate.owner is node:
                continue
            candidate.deferred = [
                d for d in candidate.deferred
                if node not in d.inner_classes or not _declared_in_current_frame(d, cursor)
            ]

    # -- references -----------------------------------------------------------

    def _check_identifier(self, node: Node, cursor: Cursor) -> None:
        namespace = reference_namespace(node)
        if namespace is None:
            return
        parent = node.parent
        if namespace == Namespace.METHOD:
            if parent.first_child is not node:
                # obj.method(): the receiver is checked on its own
                return
            arguments = len(parent.first_child_of_kind(NodeKind.ARGUMENTS).children)
            self._check_call(node.text, arguments, cursor)
            return

        found = cursor.lookup_with_frame(node.text)
        if found is not None:
            symbol, declaring = found
            if symbol.is_instance_member:
                self._disqualify_until(cursor, declaring)
            return
        if _is_receiver(node) and node.text[:1].isupper():
            # Type.member: static access through a type name
            return
        self._defer(cursor, node.text, Namespace.VARIABLE)

    def _check_call(self, name: str, arguments: int, cursor: Cursor) -> None:
        found = cursor.lookup_overloads_with_frame(name)
        overloads = _with_arity(found[0], arguments) if found is not None else []
        if not overloads:
            self._defer(cursor, name, Namespace.METHOD, arguments)
        elif any(not s.is_static for s in overloads):
            self._disqualify_until(cursor, found[1])

    def _check_type_name(self, type_name: Optional[str], cursor: Cursor) -> None:
        for name in _TYPE_NAME.findall(type_name or ""):
            found = cursor.lookup_with_frame(name, Namespace.TYPE)
            if found is None:
                self._defer(cursor, name, Namespace.TYPE)
            elif found[0].is_instance_member:
                self._disqualify_until(cursor, found[1])

    def _check_type_reference(self, node: Node, cursor: Cursor) -> None:
        names = set(_TYPE_NAME.findall(node.text or ""))
        for frame in cursor.frames():
            if frame.kind == FrameKind.METHOD and _type_parameters(frame.node) & names:
                # the method's own type variable shadows the class one
                return
            if frame.is_class_like and _type_parameters(frame.node) & names:
                self._disqualify_until(cursor, frame)
                return
        self._check_type_name(node.text, cursor)

    def _deferred_resolve_static(self, candidate: _Candidate, cursor: Cursor) -> bool:
        for name, namespace, arguments, _ in candidate.deferred:
            if namespace == Namespace.METHOD:
                overloads = _with_arity(cursor.lookup_overloads(name), arguments)
                if not overloads or any(not s.is_static for s in overloads):
                    return False
                continue
            symbol: Optional[Symbol] = cursor.lookup(name, namespace)
            if symbol is None:
                # unknown types are external; unknown variables may be inherited state
                if namespace == Namespace.VARIABLE:
                    return False
            elif symbol.is_instance_member:
                return False
        return True


def _with_arity(overloads: List[Symbol], arguments: Optional[int]) -> List[Symbol]:
    return [s for s in overloads if s.parameter_count == arguments]


def _declared_in_current_frame(reference: _Deferred, cursor: Cursor) -> bool:
    if reference.namespace == Namespace.METHOD:
        found = cursor.lookup_overloads_with_frame(reference.name)
        return (
            found is not None
            and found[1] is cursor.frame
            and bool(_with_arity(found[0], reference.arguments))
        )
    found = cursor.lookup_with_frame(reference.name, reference.namespace)
    return found is not None and found[1] is cursor.frame


def _is_receiver(node: Node) -> bool:
    parent = node.parent
    return (
        parent is not None
        and parent.kind in (NodeKind.FIELD_ACCESS, NodeKind.METHOD_CALL)
        and parent.first_child is node
        and len(parent.children) > 1
        and node.next_sibling.kind == NodeKind.IDENTIFIER
    )


def _type_parameters(node: Node) -> set:
    return {p.name for p in node.children_of_kind(NodeKind.TYPE_PARAMETER)}
