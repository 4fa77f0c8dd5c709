"""
Traversal engine: one deterministic depth-first walk per tree.

For every node the engine, in order, declares the symbol the node
introduces (into the enclosing frame), records suppression ranges,
pushes the frame the node opens, calls ``enter`` on each subscribed rule
in registration order, walks the children, calls ``leave`` in the same
order and pops the frame. Nodes nobody subscribes to still take part in
frame and scope bookkeeping.
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Set, Union

from treecheck.config import settings
from treecheck.engine.cursor import Cursor
from treecheck.engine.frames import Frame, FrameKind, frame_kind_for
from treecheck.engine.sink import DiagnosticSink
from treecheck.engine.suppression import SuppressionIndex, SuppressionOptions
from treecheck.errors import RuleConfigurationError
from treecheck.models.diagnostic import Diagnostic
from treecheck.models.error import ErrorRecord, FailurePhase
from treecheck.models.node import Node, NodeKind
from treecheck.models.report import FileReport
from treecheck.models.tree import SyntaxTree
from treecheck.utils.logging import get_logger, log_rule_failure, log_traversal_phase
from treecheck.utils.metrics import TraversalMetrics

if TYPE_CHECKING:
    from checks.base import Rule

logger = logging.getLogger(__name__)


class TraversalResult:
    """Outcome of walking one tree."""

    def __init__(
        self,
        file_path: str,
        diagnostics: List[Diagnostic],
        failures: List[ErrorRecord],
        metrics: TraversalMetrics,
    ):
        self.file_path = file_path
        self.diagnostics = diagnostics
        self.failures = failures
        self.metrics = metrics

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_report(self) -> FileReport:
        return FileReport(
            file_path=self.file_path,
            diagnostics=list(self.diagnostics),
            failures=list(self.failures),
            nodes_visited=self.metrics.nodes_visited,
        )


class _WalkState:
    """Mutable state owned by a single walk."""

    def __init__(self, file_path: str, suppression: Optional[SuppressionIndex]):
        self.file_path = file_path
        self.suppression = suppression
        self.diagnostics: List[Diagnostic] = []
        self.failures: List[ErrorRecord] = []
        self.disabled: Set[int] = set()
        self.metrics = TraversalMetrics(file_path)
        self.log = get_logger(__name__, file_path=file_path)


class TraversalEngine:
    """
    Walks syntax trees and dispatches node events to rules.

    The dispatch table is resolved once from the rules' interest sets.
    An engine may walk any number of trees one after another; every walk
    owns its own cursor, frame stack, scope index and suppression ranges.
    """

    def __init__(
        self,
        rules: Sequence["Rule"],
        sink: Optional[DiagnosticSink] = None,
        fail_fast: Optional[bool] = None,
        suppression: Optional[SuppressionOptions] = None,
        honor_suppressions: Optional[bool] = None,
    ):
        """
        Initialize the engine.

        A rule with an invalid interest set, or sharing its name with an
        earlier rule, is left out; the rejection is kept in
        ``configuration_failures`` and added to every walk's failures.

        Args:
            rules: Configured rules, in registration order
            sink: Receives every non-suppressed diagnostic as it is reported
            fail_fast: Re-raise rule failures instead of isolating them
                (defaults to ``settings.fail_fast``)
            suppression: Suppression filter options
            honor_suppressions: Drop diagnostics inside suppressed ranges
                (defaults to ``settings.honor_suppressions``)

        Raises:
            RuleConfigurationError: With ``fail_fast``, on the first rejected rule
        """
        self.sink = sink
        self.fail_fast = settings.fail_fast if fail_fast is None else fail_fast
        self.configuration_failures: List[ErrorRecord] = []
        self.rules = self._accept_rules(rules)
        self.honor_suppressions = (
            settings.honor_suppressions if honor_suppressions is None else honor_suppressions
        )
        self.suppression_options = suppression or SuppressionOptions()
        self._dispatch = self._build_dispatch(self.rules)

    def _accept_rules(self, rules: Sequence["Rule"]) -> List["Rule"]:
        accepted = []
        names = set()
        for rule in rules:
            try:
                _check_rule(rule, names)
            except RuleConfigurationError as e:
                if self.fail_fast:
                    raise
                logger.error(f"Rule '{rule.name}' rejected: {e.message}")
                self.configuration_failures.append(
                    ErrorRecord.from_exception(e, FailurePhase.CONFIGURE, rule.name)
                )
                continue
            names.add(rule.name)
            accepted.append(rule)
        return accepted

    @staticmethod
    def _build_dispatch(rules: Sequence["Rule"]) -> Dict[NodeKind, List["Rule"]]:
        dispatch: Dict[NodeKind, List["Rule"]] = {}
        for rule in rules:
            for kind in rule.interest_kinds:
                dispatch.setdefault(kind, []).append(rule)
        return dispatch

    def subscribers(self, kind: NodeKind) -> List["Rule"]:
        """Rules receiving callbacks for ``kind``, in registration order."""
        return list(self._dispatch.get(kind, ()))

    def walk(self, tree: Union[SyntaxTree, Node], file_path: Optional[str] = None) -> TraversalResult:
        """
        Walk a tree once and collect what the rules report.

        Args:
            tree: Linked tree, or a root node to link first
            file_path: Overrides the tree's file path

        Returns:
            TraversalResult with diagnostics in report order, rule
            failures and traversal metrics

        Raises:
            TreeInvariantError: If a bare root node fails validation
        """
        if isinstance(tree, Node):
            tree = SyntaxTree(tree, file_path=file_path or "<memory>")
        path = file_path or tree.file_path

        suppression = SuppressionIndex(self.suppression_options) if self.honor_suppressions else None
        state = _WalkState(path, suppression)
        state.failures.extend(self.configuration_failures)
        cursor = Cursor(path, lambda diagnostic: self._deliver(state, diagnostic))
        state.metrics.start()

        root = tree.root
        cursor._push(Frame(FrameKind.ROOT, root))
        state.metrics.record_frame(cursor.depth)
        cursor.node = root

        log_traversal_phase(state.log, path, "begin_tree", "started", rules=len(self.rules))
        for rule in self.rules:
            self._call(state, rule, "begin_tree", cursor)

        self._walk_nodes(root, cursor, state)

        cursor.node = root
        for rule in self.rules:
            self._call(state, rule, "finish", cursor)
        cursor._pop()

        state.metrics.symbols_declared = cursor.scope.declared_count
        state.metrics.failures = len(state.failures)
        state.metrics.complete("completed" if not state.failures else "completed_with_failures")
        log_traversal_phase(
            state.log, path, "finish", "completed",
            diagnostics=len(state.diagnostics),
            failures=len(state.failures),
        )
        return TraversalResult(path, state.diagnostics, state.failures, state.metrics)

    def _walk_nodes(self, root: Node, cursor: Cursor, state: _WalkState) -> None:
        # (node, leaving, pushed a frame)
        stack = [(root, False, False)]
        while stack:
            node, leaving, pushed = stack.pop()
            if leaving:
                self._leave(node, pushed, cursor, state)
                continue
            pushed = self._enter(node, cursor, state)
            stack.append((node, True, pushed))
            for child in reversed(node.children):
                stack.append((child, False, False))

    def _enter(self, node: Node, cursor: Cursor, state: _WalkState) -> bool:
        state.metrics.record_node()
        cursor.scope.declare_node(node, cursor.frame)
        if state.suppression is not None:
            state.suppression.observe(node)

        pushed = False
        kind = frame_kind_for(node)
        # the root frame is opened before the walk
        if kind is not None and kind != FrameKind.ROOT:
            cursor._push(Frame(kind, node, cursor.frame))
            state.metrics.record_frame(cursor.depth)
            pushed = True

        cursor.node = node
        for rule in self._dispatch.get(node.kind, ()):
            self._call(state, rule, "enter", cursor, node)
        return pushed

    def _leave(self, node: Node, pushed: bool, cursor: Cursor, state: _WalkState) -> None:
        cursor.node = node
        for rule in self._dispatch.get(node.kind, ()):
            self._call(state, rule, "leave", cursor, node)
        if pushed:
            cursor._pop()

    def _call(
        self,
        state: _WalkState,
        rule: "Rule",
        phase: str,
        cursor: Cursor,
        node: Optional[Node] = None,
    ) -> None:
        if id(rule) in state.disabled:
            return
        state.metrics.record_callback(rule.name)
        cursor.rule = rule
        try:
            if node is None:
                getattr(rule, phase)(cursor)
            else:
                getattr(rule, phase)(node, cursor)
        except Exception as e:
            if self.fail_fast:
                raise
            state.disabled.add(id(rule))
            state.failures.append(ErrorRecord.from_exception(e, FailurePhase.RULE, rule.name))
            state.metrics.record_failure()
            log_rule_failure(state.log, state.file_path, rule.name, phase, e)
        finally:
            cursor.rule = None

    def _deliver(self, state: _WalkState, diagnostic: Diagnostic) -> None:
        if state.suppression is not None and state.suppression.is_suppressed(diagnostic):
            state.metrics.record_suppressed()
            logger.debug(
                f"Suppressed {diagnostic.rule} diagnostic at {diagnostic.line}:{diagnostic.column}"
            )
            return
        state.diagnostics.append(diagnostic)
        state.metrics.record_diagnostic(diagnostic.rule)
        if self.sink is not None:
            self.sink.accept(diagnostic)


def _check_rule(rule: "Rule", seen_names: Set[str]) -> None:
    if rule.name in seen_names:
        raise RuleConfigurationError(rule.name, "rule registered more than once")
    unknown = [k for k in rule.interest_kinds if not isinstance(k, NodeKind)]
    if unknown:
        raise RuleConfigurationError(rule.name, f"interest set contains unknown node kinds: {unknown}")
