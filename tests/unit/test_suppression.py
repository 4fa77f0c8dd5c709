"""
Unit tests for annotation-based suppression.
"""

import pytest

from checks.design import AvoidConditionInversion
from treecheck.engine.suppression import SuppressionIndex, SuppressionOptions
from treecheck.engine.traversal import TraversalEngine
from treecheck.models import Diagnostic, NodeKind, SyntaxTree
from treecheck.models.builder import (
    binop,
    block,
    class_decl,
    ident,
    if_,
    method,
    modifiers,
    node,
    not_,
    paren,
    ret,
    tree,
    type_,
)


def inverted_if(line: int):
    return if_(not_(paren(binop("==", ident("a"), ident("b")))), block(ret()), line=line)


def suppressed_class():
    return tree(
        class_decl(
            "A",
            method("quiet", inverted_if(4), mods=["@SuppressWarnings"], line=3, end_line=6),
            method("loud", inverted_if(9), line=8, end_line=10),
            line=1,
            end_line=11,
        )
    )


class TestSuppressionDuringWalk:
    """Test suppression applied by the engine."""

    def test_diagnostic_inside_annotated_method_is_dropped(self):
        result = TraversalEngine([AvoidConditionInversion()], honor_suppressions=True).walk(suppressed_class())

        assert [d.position for d in result.diagnostics] == [(9, 1)]
        assert result.metrics.suppressed == 1

    def test_honor_suppressions_disabled(self):
        result = TraversalEngine([AvoidConditionInversion()], honor_suppressions=False).walk(suppressed_class())

        assert [d.line for d in result.diagnostics] == [4, 9]

    def test_exempt_rules_are_never_suppressed(self):
        options = SuppressionOptions(exempt_rules=["Avoid.*"])

        result = TraversalEngine(
            [AvoidConditionInversion()], suppression=options, honor_suppressions=True
        ).walk(suppressed_class())

        assert [d.line for d in result.diagnostics] == [4, 9]

    def test_other_annotations_do_not_suppress(self):
        options = SuppressionOptions(annotation_names=["Generated"])

        result = TraversalEngine(
            [AvoidConditionInversion()], suppression=options, honor_suppressions=True
        ).walk(suppressed_class())

        assert len(result.diagnostics) == 2

    def test_annotated_class_suppresses_members(self):
        syntax_tree = tree(
            class_decl(
                "A",
                method("loud", inverted_if(3), line=2, end_line=4),
                mods=["@SuppressWarnings"],
                line=1,
                end_line=5,
            )
        )

        result = TraversalEngine([AvoidConditionInversion()], honor_suppressions=True).walk(syntax_tree)

        assert result.diagnostics == []


class TestSuppressionOptions:
    """Test option parsing."""

    def test_defaults(self):
        options = SuppressionOptions()

        assert options.annotation_names == ["SuppressWarnings"]
        assert options.exempt_rules == []
        assert options.modifiers_excluded is True

    def test_qualified_annotation_names(self):
        options = SuppressionOptions.model_validate({"annotationNames": "@java.lang.SuppressWarnings, Generated"})

        assert options.annotation_names == ["SuppressWarnings", "Generated"]

    def test_exempt_rules_from_string(self):
        options = SuppressionOptions.model_validate({"exemptRules": "Nested.*, ForbidCertainImports"})

        assert [p.pattern for p in options.exempt_rules] == ["Nested.*", "ForbidCertainImports"]


class TestSuppressionIndex:
    """Test suppressed ranges directly."""

    @pytest.fixture
    def annotated_method(self):
        # @SuppressWarnings on line 2, signature on line 3, body until line 5
        decl = node(
            NodeKind.METHOD_DECL,
            modifiers("@SuppressWarnings", line=2, column=5),
            type_("void", line=3, column=5),
            ident("m", line=3, column=10),
            node(NodeKind.PARAMETER_LIST, line=3, column=11),
            block(line=3, column=14, end_line=5),
            line=2,
            column=5,
            end_line=5,
        )
        syntax_tree = SyntaxTree(decl)
        return syntax_tree, decl

    @staticmethod
    def diagnostic(line: int, column: int, rule: str = "SomeRule") -> Diagnostic:
        return Diagnostic(rule=rule, line=line, column=column, message_key="some.key")

    def test_range_excludes_modifiers(self, annotated_method):
        _, decl = annotated_method
        index = SuppressionIndex()

        index.observe(decl)

        assert len(index.ranges) == 1
        assert index.ranges[0].start == (3, 5)
        assert index.ranges[0].end_line == 5
        assert not index.is_suppressed(self.diagnostic(2, 5))
        assert index.is_suppressed(self.diagnostic(3, 10))
        assert index.is_suppressed(self.diagnostic(5, 1))
        assert not index.is_suppressed(self.diagnostic(6, 1))

    def test_range_including_modifiers(self, annotated_method):
        _, decl = annotated_method
        index = SuppressionIndex(SuppressionOptions(modifiers_excluded=False))

        index.observe(decl)

        assert index.is_suppressed(self.diagnostic(2, 5))

    def test_exempt_rule(self, annotated_method):
        _, decl = annotated_method
        index = SuppressionIndex(SuppressionOptions(exempt_rules=["Some.*"]))

        index.observe(decl)

        assert index.is_exempt("SomeRule")
        assert not index.is_suppressed(self.diagnostic(4, 1))

    def test_unannotated_node_has_no_range(self):
        index = SuppressionIndex()

        index.observe(method("m", line=1))

        assert index.ranges == []
