"""
Unit tests for the traversal engine.
"""

from typing import List

import pytest

from checks.base import Rule
from checks.design import AvoidConditionInversion
from checks.manager import RuleManager
from treecheck.engine.sink import CallbackSink, CollectingSink
from treecheck.engine.traversal import TraversalEngine
from treecheck.errors import RuleConfigurationError, TreeInvariantError, UnsupportedNodeError
from treecheck.models import NodeKind, Severity
from treecheck.models.builder import (
    binop,
    block,
    class_decl,
    field,
    ident,
    if_,
    method,
    not_,
    paren,
    ret,
    stmt,
    tree,
    while_,
)
from treecheck.models.error import FailurePhase


class Recorder(Rule):
    """Records every callback it receives."""

    def __init__(self, label: str, kinds, events: List, options=None):
        self.label = label
        self._kinds = frozenset(kinds)
        self.events = events
        super().__init__(options)

    @property
    def name(self) -> str:
        return self.label

    @property
    def interest_kinds(self):
        return self._kinds

    def begin_tree(self, cursor):
        self.events.append((self.label, "begin_tree", None))

    def enter(self, node, cursor):
        self.events.append((self.label, "enter", node))

    def leave(self, node, cursor):
        self.events.append((self.label, "leave", node))

    def finish(self, cursor):
        self.events.append((self.label, "finish", None))


class Exploding(Recorder):
    """Reports once, then raises on the first IF it enters."""

    def enter(self, node, cursor):
        super().enter(node, cursor)
        if node.kind == NodeKind.IDENTIFIER:
            cursor.report(node, "seen.identifier", node.text)
        if node.kind == NodeKind.IF:
            raise RuntimeError("boom")


class Confused(Recorder):
    """Subscribes to a kind its callback does not handle."""

    def enter(self, node, cursor):
        raise self.unsupported(node)


def sample_tree():
    return tree(
        class_decl(
            "A",
            field("flag", "boolean"),
            method(
                "m",
                if_(not_(paren(binop("==", ident("a"), ident("b")))), block(ret())),
                while_(ident("flag"), block(stmt(ident("c")))),
            ),
        )
    )


ALL_KINDS = list(NodeKind)


class TestDispatch:
    """Test subscription and callback order."""

    def test_rules_only_see_subscribed_kinds(self):
        events = []
        engine = TraversalEngine([Recorder("ifs", [NodeKind.IF], events)])

        engine.walk(sample_tree())

        kinds = {node.kind for _, phase, node in events if node is not None}
        assert kinds == {NodeKind.IF}

    def test_begin_and_finish_wrap_the_walk(self):
        events = []
        TraversalEngine([Recorder("r", [NodeKind.IF], events)]).walk(sample_tree())

        assert events[0][1] == "begin_tree"
        assert events[-1][1] == "finish"

    def test_rules_called_in_registration_order(self):
        events = []
        engine = TraversalEngine([
            Recorder("first", [NodeKind.IF], events),
            Recorder("second", [NodeKind.IF], events),
        ])

        engine.walk(sample_tree())

        calls = [(label, phase) for label, phase, node in events if node is not None]
        assert calls == [
            ("first", "enter"),
            ("second", "enter"),
            ("first", "leave"),
            ("second", "leave"),
        ]

    def test_subscribers(self):
        first = Recorder("first", [NodeKind.IF, NodeKind.WHILE], [])
        second = Recorder("second", [NodeKind.WHILE], [])
        engine = TraversalEngine([first, second])

        assert engine.subscribers(NodeKind.WHILE) == [first, second]
        assert engine.subscribers(NodeKind.RETURN) == []

    def test_empty_interest_set_is_allowed(self):
        result = TraversalEngine([Recorder("idle", [], [])]).walk(sample_tree())

        assert result.ok
        assert result.metrics.nodes_visited == len(sample_tree())


class TestCompleteness:
    """Every node is entered and left exactly once, properly nested."""

    def test_enter_leave_pairs_nest(self):
        events = []
        syntax_tree = sample_tree()
        TraversalEngine([Recorder("all", ALL_KINDS, events)]).walk(syntax_tree)

        stack = []
        entered = []
        for _, phase, node in events:
            if phase == "enter":
                if stack:
                    assert node.parent is stack[-1]
                stack.append(node)
                entered.append(node)
            elif phase == "leave":
                assert stack.pop() is node
        assert stack == []
        assert len(entered) == len(syntax_tree)
        assert {id(n) for n in entered} == {id(n) for n in syntax_tree}

    def test_children_in_source_order(self):
        events = []
        syntax_tree = sample_tree()
        TraversalEngine([Recorder("all", ALL_KINDS, events)]).walk(syntax_tree)

        entered = [node for _, phase, node in events if phase == "enter"]
        assert entered == list(syntax_tree)


class TestDeterminism:
    """Repeated runs give identical results."""

    def test_same_diagnostics_twice(self):
        manager = RuleManager.with_builtin_rules()
        syntax_tree = sample_tree()

        first = TraversalEngine(manager.instantiate()).walk(syntax_tree).diagnostics
        second = TraversalEngine(manager.instantiate()).walk(syntax_tree).diagnostics

        assert first == second
        assert [d.model_dump_json() for d in first] == [d.model_dump_json() for d in second]

    def test_engine_reusable_across_trees(self):
        engine = TraversalEngine([AvoidConditionInversion()])

        first = engine.walk(sample_tree(), file_path="A.java")
        second = engine.walk(sample_tree(), file_path="B.java")

        assert len(first.diagnostics) == len(second.diagnostics) == 1
        assert second.file_path == "B.java"


class TestReporting:
    """Test the diagnostic channel."""

    def test_report_goes_to_sink_immediately(self):
        sink = CollectingSink()
        result = TraversalEngine([AvoidConditionInversion()], sink=sink).walk(sample_tree())

        assert list(sink) == result.diagnostics
        assert len(sink) == 1

    def test_callback_sink(self):
        received = []
        TraversalEngine([AvoidConditionInversion()], sink=CallbackSink(received.append)).walk(sample_tree())

        assert [d.rule for d in received] == ["AvoidConditionInversion"]

    def test_diagnostic_fields(self):
        rule = AvoidConditionInversion({"severity": "warning"})

        diagnostic = TraversalEngine([rule]).walk(sample_tree()).diagnostics[0]

        assert diagnostic.rule == "AvoidConditionInversion"
        assert diagnostic.message_key == "avoid.condition.inversion"
        assert diagnostic.args == ()
        assert diagnostic.severity == Severity.WARNING

    def test_to_report(self):
        result = TraversalEngine([AvoidConditionInversion()]).walk(sample_tree(), file_path="A.java")

        report = result.to_report()

        assert report.file_path == "A.java"
        assert report.ok
        assert report.nodes_visited == result.metrics.nodes_visited
        assert len(report.diagnostics_for("AvoidConditionInversion")) == 1


class TestFailureIsolation:
    """A failing rule is disabled for the file; others keep running."""

    def test_failing_rule_is_disabled(self):
        events = []
        exploding = Exploding("exploding", [NodeKind.IF, NodeKind.WHILE, NodeKind.IDENTIFIER], events)
        healthy = Recorder("healthy", [NodeKind.WHILE], events)

        result = TraversalEngine([exploding, healthy]).walk(sample_tree())

        exploding_calls = [(phase, node.kind if node is not None else None) for label, phase, node in events if label == "exploding"]
        assert exploding_calls[-1] == ("enter", NodeKind.IF)
        assert ("finish", None) not in exploding_calls
        assert ("healthy", "finish", None) in events
        assert [e[1] for e in events if e[0] == "healthy"].count("enter") == 1

        assert len(result.failures) == 1
        failure = result.failures[0]
        assert failure.phase == FailurePhase.RULE
        assert failure.rule == "exploding"
        assert failure.error_type == "RuntimeError"
        assert "boom" in failure.stack_trace
        assert not result.ok
        assert result.metrics.status == "completed_with_failures"

    def test_diagnostics_before_failure_are_kept(self):
        exploding = Exploding("exploding", [NodeKind.IF, NodeKind.IDENTIFIER], [])

        result = TraversalEngine([exploding]).walk(sample_tree())

        # identifiers before the IF
        assert [d.args for d in result.diagnostics] == [("A",), ("flag",), ("m",)]

    def test_fail_fast_reraises(self):
        exploding = Exploding("exploding", [NodeKind.IF], [])

        with pytest.raises(RuntimeError, match="boom"):
            TraversalEngine([exploding], fail_fast=True).walk(sample_tree())

    def test_unsupported_node_is_recorded(self):
        result = TraversalEngine([Confused("confused", [NodeKind.RETURN], [])]).walk(sample_tree())

        assert result.failures[0].error_type == UnsupportedNodeError.__name__
        assert "RETURN" in result.failures[0].message

    def test_unsupported_node_propagates_with_fail_fast(self):
        with pytest.raises(UnsupportedNodeError):
            TraversalEngine([Confused("confused", [NodeKind.RETURN], [])], fail_fast=True).walk(sample_tree())


class TestConfigurationErrors:
    """Bad rules are rejected before any traversal, one rule at a time."""

    def test_unknown_interest_kind_rejects_only_that_rule(self):
        events = []
        good = Recorder("good", [NodeKind.IF], events)

        engine = TraversalEngine([Recorder("bad", ["if"], events), good], fail_fast=False)

        assert engine.rules == [good]
        assert [f.rule for f in engine.configuration_failures] == ["bad"]
        assert engine.configuration_failures[0].phase == FailurePhase.CONFIGURE
        assert "unknown node kinds" in engine.configuration_failures[0].message

    def test_rejected_rule_is_reported_with_each_walk(self):
        events = []
        engine = TraversalEngine(
            [Recorder("bad", ["if"], events), Recorder("good", [NodeKind.IF], events)],
            fail_fast=False,
        )

        result = engine.walk(sample_tree())

        assert not result.ok
        assert [(f.rule, f.phase) for f in result.failures] == [("bad", FailurePhase.CONFIGURE)]
        assert {label for label, _, _ in events} == {"good"}

    def test_duplicate_rule_names(self):
        first = Recorder("dup", [NodeKind.IF], [])

        engine = TraversalEngine([first, Recorder("dup", [NodeKind.IF], [])], fail_fast=False)

        assert engine.rules == [first]
        assert "more than once" in engine.configuration_failures[0].message

    def test_fail_fast_raises_on_bad_rule(self):
        with pytest.raises(RuleConfigurationError, match="unknown node kinds"):
            TraversalEngine([Recorder("bad", ["if"], [])], fail_fast=True)

    def test_malformed_bare_tree(self):
        shared = ident("x")

        with pytest.raises(TreeInvariantError):
            TraversalEngine([AvoidConditionInversion()]).walk(block(stmt(shared), stmt(shared)))


class TestMetrics:
    """Test metrics gathered during a walk."""

    def test_counters(self):
        syntax_tree = sample_tree()

        result = TraversalEngine([AvoidConditionInversion()]).walk(syntax_tree)
        metrics = result.metrics

        assert metrics.nodes_visited == len(syntax_tree)
        assert metrics.frames_opened >= 4
        assert metrics.max_frame_depth >= 4
        assert metrics.symbols_declared == 3
        assert metrics.diagnostics == {"AvoidConditionInversion": 1}
        assert metrics.status == "completed"
        assert metrics.duration_ms is not None
