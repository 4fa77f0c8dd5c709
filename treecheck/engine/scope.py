"""
Scope/symbol index built incrementally during a walk.

Declarations are recorded in the frame that encloses them at the moment
the declaring node is entered, never retroactively. A lookup therefore
sees exactly the names declared before the current point of the walk,
with the innermost declaration shadowing outer ones.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from treecheck.engine.frames import Frame
from treecheck.models.node import Node, NodeKind


class Namespace(str, Enum):
    """Separate name spaces of the analysed language."""

    VARIABLE = "variable"
    METHOD = "method"
    TYPE = "type"


class SymbolKind(str, Enum):
    """What a declared name stands for."""

    FIELD = "field"
    LOCAL = "local"
    PARAMETER = "parameter"
    METHOD = "method"
    ENUM_CONSTANT = "enum_constant"
    TYPE = "type"


_NAMESPACES = {
    SymbolKind.FIELD: Namespace.VARIABLE,
    SymbolKind.LOCAL: Namespace.VARIABLE,
    SymbolKind.PARAMETER: Namespace.VARIABLE,
    SymbolKind.ENUM_CONSTANT: Namespace.VARIABLE,
    SymbolKind.METHOD: Namespace.METHOD,
    SymbolKind.TYPE: Namespace.TYPE,
}

DECLARATION_KINDS = frozenset({
    NodeKind.FIELD_DECL,
    NodeKind.VARIABLE_DECL,
    NodeKind.PARAMETER,
    NodeKind.METHOD_DECL,
    NodeKind.ENUM_CONSTANT,
    NodeKind.CLASS_DECL,
    NodeKind.INTERFACE_DECL,
    NodeKind.ENUM_DECL,
})

_NAMED_KINDS = DECLARATION_KINDS | {NodeKind.CTOR_DECL, NodeKind.TYPE_PARAMETER}


@dataclass(frozen=True)
class Symbol:
    """A declared name and the node declaring it."""

    name: str
    node: Node
    kind: SymbolKind
    is_static: bool = False

    @property
    def namespace(self) -> Namespace:
        return _NAMESPACES[self.kind]

    @property
    def is_instance_member(self) -> bool:
        """True for non-static fields, methods and inner types."""
        return self.kind in (SymbolKind.FIELD, SymbolKind.METHOD, SymbolKind.TYPE) and not self.is_static

    @property
    def parameter_count(self) -> int:
        params = self.node.first_child_of_kind(NodeKind.PARAMETER_LIST)
        return len(params.children) if params is not None else 0


def reference_namespace(identifier: Node) -> Optional[Namespace]:
    """
    Classify an IDENTIFIER occurrence.

    Returns:
        The namespace the identifier refers into, or None when it names
        a declaration or selects a member of another expression.
    """
    parent = identifier.parent
    if parent is None:
        return Namespace.VARIABLE
    if parent.kind in _NAMED_KINDS:
        if parent.first_child_of_kind(NodeKind.IDENTIFIER) is identifier:
            return None
        return Namespace.VARIABLE
    if parent.kind == NodeKind.METHOD_CALL:
        following = identifier.next_sibling
        if following is not None and following.kind == NodeKind.ARGUMENTS:
            return Namespace.METHOD
        return Namespace.VARIABLE
    if parent.kind == NodeKind.FIELD_ACCESS:
        if parent.last_child is identifier and len(parent.children) > 1:
            return None
        return Namespace.VARIABLE
    if parent.kind in (NodeKind.ANNOTATION, NodeKind.BREAK, NodeKind.CONTINUE):
        return None
    return Namespace.VARIABLE


class ScopeIndex:
    """Layered name table, one layer per frame."""

    def __init__(self):
        self.declared_count = 0

    def declare(
        self,
        name: str,
        node: Node,
        frame: Frame,
        kind: SymbolKind,
        is_static: bool = False,
    ) -> Symbol:
        """
        Record a declaration in a frame.

        Args:
            name: Declared name
            node: Declaring node
            frame: Frame the declaration belongs to
            kind: Symbol kind
            is_static: Whether the symbol is bound to the type rather than an instance

        Returns:
            The new Symbol
        """
        symbol = Symbol(name=name, node=node, kind=kind, is_static=is_static)
        table = frame.symbols.setdefault(symbol.namespace.value, {})
        table.setdefault(name, []).append(symbol)
        self.declared_count += 1
        return symbol

    def declare_node(self, node: Node, frame: Frame) -> Optional[Symbol]:
        """Declare whatever a declaration-kind node introduces into ``frame``."""
        if node.kind not in DECLARATION_KINDS:
            return None
        name = node.name
        if not name:
            return None
        kind, is_static = _classify(node, frame)
        return self.declare(name, node, frame, kind, is_static)

    def lookup_local(
        self,
        name: str,
        frame: Frame,
        namespace: Namespace = Namespace.VARIABLE,
    ) -> Optional[Symbol]:
        """Most recent declaration of ``name`` in ``frame`` alone."""
        declared = frame.symbols.get(namespace.value, {}).get(name)
        return declared[-1] if declared else None

    def lookup_with_frame(
        self,
        name: str,
        from_frame: Frame,
        namespace: Namespace = Namespace.VARIABLE,
    ) -> Optional[Tuple[Symbol, Frame]]:
        """Innermost visible declaration together with the frame declaring it."""
        for frame in from_frame.chain():
            symbol = self.lookup_local(name, frame, namespace)
            if symbol is not None:
                return symbol, frame
        return None

    def lookup(
        self,
        name: str,
        from_frame: Frame,
        namespace: Namespace = Namespace.VARIABLE,
    ) -> Optional[Symbol]:
        """
        Resolve a name from a point in the walk.

        Walks the frame chain outward and returns the nearest declaration,
        or None if the name is not (yet) declared.
        """
        found = self.lookup_with_frame(name, from_frame, namespace)
        return found[0] if found is not None else None

    def lookup_overloads_with_frame(
        self,
        name: str,
        from_frame: Frame,
    ) -> Optional[Tuple[List[Symbol], Frame]]:
        """Methods called ``name`` in the nearest frame declaring any, with that frame."""
        for frame in from_frame.chain():
            declared = frame.symbols.get(Namespace.METHOD.value, {}).get(name)
            if declared:
                return list(declared), frame
        return None

    def lookup_overloads(self, name: str, from_frame: Frame) -> List[Symbol]:
        """All methods called ``name`` in the nearest frame declaring any."""
        found = self.lookup_overloads_with_frame(name, from_frame)
        return found[0] if found is not None else []


def _classify(node: Node, frame: Frame) -> Tuple[SymbolKind, bool]:
    in_interface = frame.node.kind == NodeKind.INTERFACE_DECL
    if node.kind == NodeKind.PARAMETER:
        return SymbolKind.PARAMETER, False
    if node.kind == NodeKind.ENUM_CONSTANT:
        return SymbolKind.ENUM_CONSTANT, True
    if node.kind == NodeKind.METHOD_DECL:
        return SymbolKind.METHOD, node.has_modifier("static")
    if node.kind in (NodeKind.FIELD_DECL, NodeKind.VARIABLE_DECL):
        if frame.is_class_like:
            return SymbolKind.FIELD, in_interface or node.has_modifier("static")
        return SymbolKind.LOCAL, False
    # type declarations
    if not frame.is_class_like:
        return SymbolKind.TYPE, True
    is_static = (
        in_interface
        or node.kind != NodeKind.CLASS_DECL
        or node.has_modifier("static")
    )
    return SymbolKind.TYPE, is_static
