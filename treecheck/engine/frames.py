"""
Traversal frames: the enclosing constructs that scope names and nesting.

A frame is opened when the walk enters a frame-introducing node and is
closed when it leaves that node. Frames form a chain through weak parent
references; only the engine's frame stack keeps them alive.
"""

import weakref
from enum import Enum
from typing import Dict, Iterator, List, Optional

from treecheck.models.node import Node, NodeKind


class FrameKind(str, Enum):
    """Kinds of enclosing constructs."""

    ROOT = "root"
    CLASS = "class"
    METHOD = "method"
    INITIALIZER = "initializer"
    BLOCK = "block"
    LOOP = "loop"
    SWITCH = "switch"
    TRY = "try"
    CATCH = "catch"
    FINALLY = "finally"
    LAMBDA = "lambda"
    ANONYMOUS_CLASS = "anonymous_class"
    ENUM_CONSTANT_BODY = "enum_constant_body"


# Frames whose members belong to a class instance.
CLASS_LIKE_FRAMES = frozenset({
    FrameKind.CLASS,
    FrameKind.ANONYMOUS_CLASS,
    FrameKind.ENUM_CONSTANT_BODY,
})

# Frames that start a new body of executable code.
CODE_BOUNDARY_FRAMES = CLASS_LIKE_FRAMES | {
    FrameKind.METHOD,
    FrameKind.LAMBDA,
    FrameKind.INITIALIZER,
}

# These never host static-method candidates.
NEVER_ELIGIBLE_FRAMES = frozenset({
    FrameKind.LAMBDA,
    FrameKind.ANONYMOUS_CLASS,
    FrameKind.ENUM_CONSTANT_BODY,
    FrameKind.INITIALIZER,
})

_FRAME_KINDS = {
    NodeKind.COMPILATION_UNIT: FrameKind.ROOT,
    NodeKind.CLASS_DECL: FrameKind.CLASS,
    NodeKind.INTERFACE_DECL: FrameKind.CLASS,
    NodeKind.ENUM_DECL: FrameKind.CLASS,
    NodeKind.METHOD_DECL: FrameKind.METHOD,
    NodeKind.CTOR_DECL: FrameKind.METHOD,
    NodeKind.STATIC_INIT: FrameKind.INITIALIZER,
    NodeKind.INSTANCE_INIT: FrameKind.INITIALIZER,
    NodeKind.BLOCK: FrameKind.BLOCK,
    NodeKind.FOR: FrameKind.LOOP,
    NodeKind.FOR_EACH: FrameKind.LOOP,
    NodeKind.WHILE: FrameKind.LOOP,
    NodeKind.DO_WHILE: FrameKind.LOOP,
    NodeKind.SWITCH: FrameKind.SWITCH,
    NodeKind.TRY: FrameKind.TRY,
    NodeKind.CATCH: FrameKind.CATCH,
    NodeKind.FINALLY: FrameKind.FINALLY,
    NodeKind.LAMBDA: FrameKind.LAMBDA,
}


def frame_kind_for(node: Node) -> Optional[FrameKind]:
    """
    Return the kind of frame a node opens, or None.

    NEW opens a frame only when it carries an anonymous class body and
    ENUM_CONSTANT only when the constant has its own body.
    """
    if node.kind == NodeKind.NEW:
        if node.first_child_of_kind(NodeKind.CLASS_BODY) is not None:
            return FrameKind.ANONYMOUS_CLASS
        return None
    if node.kind == NodeKind.ENUM_CONSTANT:
        if node.first_child_of_kind(NodeKind.CLASS_BODY) is not None:
            return FrameKind.ENUM_CONSTANT_BODY
        return None
    return _FRAME_KINDS.get(node.kind)


class Frame:
    """
    One enclosing construct during a walk.

    Rules may read a frame inside a callback but must not keep it after
    the leave callback of the node that opened it.
    """

    def __init__(self, kind: FrameKind, node: Node, parent: Optional["Frame"] = None):
        self.kind = kind
        self.node = node
        self._parent = weakref.ref(parent) if parent is not None else None
        self.depth = parent.depth + 1 if parent is not None else 0
        # namespace -> name -> declarations, in declaration order
        self.symbols: Dict[str, Dict[str, List]] = {}
        self.static_candidate_eligible = _static_candidate_eligible(kind, node, parent)
        self.in_finally = _in_finally(kind, parent)

    def __repr__(self) -> str:
        return f"<Frame {self.kind.value} {self.node!r}>"

    @property
    def parent(self) -> Optional["Frame"]:
        if self._parent is None:
            return None
        return self._parent()

    @property
    def is_class_like(self) -> bool:
        return self.kind in CLASS_LIKE_FRAMES

    @property
    def name(self) -> Optional[str]:
        return self.node.name

    def chain(self) -> Iterator["Frame"]:
        """Yield this frame and its ancestors, innermost first."""
        frame: Optional[Frame] = self
        while frame is not None:
            yield frame
            frame = frame.parent

    def enclosing(self, *kinds: FrameKind) -> Optional["Frame"]:
        for frame in self.chain():
            if frame.kind in kinds:
                return frame
        return None


def _static_candidate_eligible(kind: FrameKind, node: Node, parent: Optional[Frame]) -> bool:
    if parent is None:
        return True
    if kind in NEVER_ELIGIBLE_FRAMES:
        return False
    inherited = parent.static_candidate_eligible
    if kind == FrameKind.CLASS:
        if node.kind == NodeKind.INTERFACE_DECL:
            return False
        if node.kind == NodeKind.ENUM_DECL:
            return inherited
        # inner and local classes cannot declare static methods
        return inherited and (parent.kind == FrameKind.ROOT or node.has_modifier("static"))
    if kind == FrameKind.METHOD:
        if node.kind == NodeKind.CTOR_DECL:
            return False
        return inherited and node.has_modifier("private") and not node.has_modifier("static")
    return inherited


def _in_finally(kind: FrameKind, parent: Optional[Frame]) -> bool:
    if kind == FrameKind.FINALLY:
        return True
    if parent is None or kind in CODE_BOUNDARY_FRAMES:
        return False
    return parent.in_finally
