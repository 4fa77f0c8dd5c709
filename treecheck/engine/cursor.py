"""
The per-step handle a rule receives in its callbacks.
"""

from typing import Callable, Iterator, List, Optional, Tuple, Union

from treecheck.engine.frames import Frame, FrameKind
from treecheck.engine.scope import Namespace, ScopeIndex, Symbol, reference_namespace
from treecheck.models.diagnostic import Diagnostic, DiagnosticArg
from treecheck.models.node import Node, NodeKind, Position


class Cursor:
    """
    Read-only view of the walk at the current node.

    Exposes the current node, the frame chain and the scope index as of
    this point in the walk, and the ``report`` channel. The engine reuses
    one cursor per traversal; rules must not keep it between callbacks.
    """

    def __init__(self, file_path: str, deliver: Callable[[Diagnostic], None]):
        self.file_path = file_path
        self._deliver = deliver
        self.scope = ScopeIndex()
        self._frames: List[Frame] = []
        self.node: Optional[Node] = None
        self.rule = None

    # -- frames ---------------------------------------------------------------

    @property
    def frame(self) -> Optional[Frame]:
        return self._frames[-1] if self._frames else None

    @property
    def depth(self) -> int:
        return len(self._frames)

    def frames(self) -> Iterator[Frame]:
        """Yield the open frames, innermost first."""
        return reversed(self._frames)

    def enclosing_frame(self, *kinds: FrameKind) -> Optional[Frame]:
        """Innermost open frame of one of ``kinds``."""
        for frame in self.frames():
            if frame.kind in kinds:
                return frame
        return None

    def _push(self, frame: Frame) -> None:
        self._frames.append(frame)

    def _pop(self) -> Frame:
        return self._frames.pop()

    # -- scope ----------------------------------------------------------------

    def lookup(self, name: str, namespace: Namespace = Namespace.VARIABLE) -> Optional[Symbol]:
        """Resolve ``name`` from the current frame outward."""
        if self.frame is None:
            return None
        return self.scope.lookup(name, self.frame, namespace)

    def lookup_local(self, name: str, namespace: Namespace = Namespace.VARIABLE) -> Optional[Symbol]:
        if self.frame is None:
            return None
        return self.scope.lookup_local(name, self.frame, namespace)

    def lookup_with_frame(
        self,
        name: str,
        namespace: Namespace = Namespace.VARIABLE,
    ) -> Optional[Tuple[Symbol, Frame]]:
        if self.frame is None:
            return None
        return self.scope.lookup_with_frame(name, self.frame, namespace)

    def lookup_overloads(self, name: str) -> List[Symbol]:
        if self.frame is None:
            return []
        return self.scope.lookup_overloads(name, self.frame)

    def lookup_overloads_with_frame(self, name: str) -> Optional[Tuple[List[Symbol], Frame]]:
        if self.frame is None:
            return None
        return self.scope.lookup_overloads_with_frame(name, self.frame)

    def resolve(self, identifier: Node) -> Optional[Symbol]:
        """
        Resolve an IDENTIFIER occurrence to its declaration.

        Declaration names and member selectors (``x`` in ``a.x``) resolve
        to None, as do names not declared before this point.
        """
        if identifier.kind != NodeKind.IDENTIFIER or identifier.text is None:
            return None
        namespace = reference_namespace(identifier)
        if namespace is None:
            return None
        return self.lookup(identifier.text, namespace)

    # -- reporting ------------------------------------------------------------

    def report(self, where: Union[Node, Position], message_key: str, *args: DiagnosticArg) -> Diagnostic:
        """
        Emit a diagnostic for the rule currently being called.

        Args:
            where: Node or position the finding is attached to
            message_key: Key the host resolves to a message
            *args: Message arguments, in order

        Returns:
            The diagnostic handed to the sink
        """
        position = where.position if isinstance(where, Node) else Position(*where)
        rule = self.rule
        diagnostic = Diagnostic(
            rule=rule.name,
            line=position.line,
            column=position.column,
            message_key=message_key,
            args=tuple(args),
            severity=rule.severity,
        )
        self._deliver(diagnostic)
        return diagnostic
