"""
Unit tests for the coding rules.
"""

import pytest

from checks.coding import (
    AvoidHidingCauseException,
    AvoidNotShortCircuitOperatorsForBoolean,
    ForbidCertainImports,
    ForbidReturnInFinallyBlock,
    NestedTernary,
)
from checks.coding.forbid_certain_imports import MATCH_NOTHING
from treecheck.models import NodeKind
from treecheck.models.builder import (
    assign,
    binop,
    block,
    boolean,
    call,
    catch,
    class_decl,
    ctor,
    field,
    ident,
    if_,
    lambda_,
    local,
    method,
    new,
    num,
    param,
    paren,
    ret,
    stmt,
    string,
    ternary,
    throw,
    access,
    tree,
    try_,
)


def in_method(*statements, **method_options):
    return tree(class_decl("A", method("m", *statements, **method_options)))


def try_catch(*handler):
    return try_(block(stmt(call("work"))), catch(param("e", "IOException"), block(*handler)))


class TestForbidReturnInFinallyBlock:
    """Test suite for ForbidReturnInFinallyBlock."""

    def test_return_in_finally(self, run_rules):
        syntax_tree = in_method(
            try_(block(stmt(call("work"))), finally_=block(ret()), line=2),
            line=1,
        )

        diagnostics = run_rules(syntax_tree, ForbidReturnInFinallyBlock())

        assert len(diagnostics) == 1
        assert diagnostics[0].message_key == "forbid.return.in.finally.block"
        assert diagnostics[0].line == 2

    def test_return_nested_in_finally(self, run_rules):
        syntax_tree = in_method(
            try_(block(), finally_=block(if_(ident("done"), block(ret())), ret())),
        )

        assert len(run_rules(syntax_tree, ForbidReturnInFinallyBlock())) == 2

    def test_return_in_try_and_catch(self, run_rules):
        syntax_tree = in_method(
            try_(
                block(ret()),
                catch(param("e", "Exception"), block(ret())),
                finally_=block(stmt(call("close"))),
            ),
        )

        assert run_rules(syntax_tree, ForbidReturnInFinallyBlock()) == []

    def test_return_in_lambda_inside_finally(self, run_rules):
        syntax_tree = in_method(
            try_(block(), finally_=block(stmt(call("submit", lambda_([], block(ret())))))),
        )

        assert run_rules(syntax_tree, ForbidReturnInFinallyBlock()) == []

    def test_return_in_anonymous_class_inside_finally(self, run_rules):
        runnable = new("Runnable", body=[method("run", ret(), mods=["public"])])
        syntax_tree = in_method(try_(block(), finally_=block(stmt(call("submit", runnable)))))

        assert run_rules(syntax_tree, ForbidReturnInFinallyBlock()) == []


class TestForbidCertainImports:
    """Test suite for ForbidCertainImports."""

    OPTIONS = {
        "packageNameRegexp": r"com\.app\..*",
        "forbiddenImportsRegexp": r"org\.legacy\..*",
        "forbiddenImportsExcludesRegexp": r"org\.legacy\.api\..*",
    }

    @staticmethod
    def source(package):
        return tree(
            class_decl("A", method("m", stmt(new("org.legacy.Thing")), stmt(new("Thing")))),
            package=package,
            imports=["org.legacy.Util", "org.legacy.api.Client", "java.util.List"],
        )

    def test_forbidden_imports_and_instantiations(self, run_rules):
        diagnostics = run_rules(self.source("com.app.core"), ForbidCertainImports(self.OPTIONS))

        assert [d.args for d in diagnostics] == [
            (r"org\.legacy\..*", "org.legacy.Util"),
            (r"org\.legacy\..*", "org.legacy.Thing"),
        ]
        assert diagnostics[0].message_key == "forbid.certain.imports"

    def test_other_packages(self, run_rules):
        assert run_rules(self.source("com.other"), ForbidCertainImports(self.OPTIONS)) == []

    def test_inactive_by_default(self, run_rules):
        rule = ForbidCertainImports()

        assert rule.options.package_name_regexp.pattern == MATCH_NOTHING.pattern
        assert rule.options.forbidden_imports_excludes_regexp.fullmatch("") is None
        assert not rule.is_active
        assert run_rules(self.source("com.app.core"), rule) == []

    def test_inactive_without_forbidden_pattern(self, run_rules):
        partial = ForbidCertainImports({
            "packageNameRegexp": r"com\.app\..*",
            "forbiddenImportsExcludesRegexp": r"org\.legacy\.api\..*",
        })

        assert not partial.is_active
        assert partial.interest_kinds == frozenset()
        assert run_rules(self.source("com.app.core"), partial) == []

    def test_without_excludes_nothing_is_excluded(self, run_rules):
        rule = ForbidCertainImports({
            "packageNameRegexp": r"com\.app\..*",
            "forbiddenImportsRegexp": r"org\.legacy\..*",
        })

        diagnostics = run_rules(self.source("com.app.core"), rule)

        assert rule.is_active
        assert [d.args[1] for d in diagnostics] == [
            "org.legacy.Util",
            "org.legacy.api.Client",
            "org.legacy.Thing",
        ]

    def test_active_with_all_patterns(self):
        rule = ForbidCertainImports(self.OPTIONS)

        assert rule.is_active
        assert rule.interest_kinds == frozenset({NodeKind.PACKAGE_DECL, NodeKind.IMPORT, NodeKind.NEW})


class TestNestedTernary:
    """Test suite for NestedTernary."""

    def test_nested_in_branch(self, run_rules):
        syntax_tree = in_method(
            ret(ternary(ident("a"), num(1), paren(ternary(ident("b"), num(2), num(3)), line=2), line=1)),
            line=1,
        )

        diagnostics = run_rules(syntax_tree, NestedTernary())

        assert len(diagnostics) == 1
        assert diagnostics[0].line == 2
        assert diagnostics[0].message_key == "nested.ternary"

    def test_nested_in_condition(self, run_rules):
        syntax_tree = in_method(ret(ternary(paren(ternary(ident("a"), ident("b"), ident("c"))), num(1), num(2))))

        assert len(run_rules(syntax_tree, NestedTernary())) == 1

    def test_chained(self, run_rules):
        syntax_tree = in_method(
            ret(ternary(ident("a"), num(1), ternary(ident("b"), num(2), ternary(ident("c"), num(3), num(4))))),
        )

        assert len(run_rules(syntax_tree, NestedTernary())) == 2

    def test_single_ternary(self, run_rules):
        assert run_rules(in_method(ret(ternary(ident("a"), num(1), num(2)))), NestedTernary()) == []

    def test_ignore_final(self, run_rules):
        def nested():
            return ternary(ident("a"), num(1), ternary(ident("b"), num(2), num(3)))

        rule_options = {"ignoreFinal": True}
        final_local = in_method(local("x", init=nested(), mods=["final"]))
        plain_local = in_method(local("x", init=nested()))
        final_in_ctor = tree(class_decl("A", ctor("A", local("x", init=nested(), mods=["final"]))))

        assert run_rules(final_local, NestedTernary(rule_options)) == []
        assert len(run_rules(final_local, NestedTernary())) == 1
        assert len(run_rules(plain_local, NestedTernary(rule_options))) == 1
        assert len(run_rules(final_in_ctor, NestedTernary(rule_options))) == 1


class TestAvoidHidingCauseException:
    """Test suite for AvoidHidingCauseException."""

    def test_cause_dropped(self, run_rules):
        syntax_tree = in_method(try_catch(throw(new("RuntimeException", string("failed")))))

        diagnostics = run_rules(syntax_tree, AvoidHidingCauseException())

        assert [d.args for d in diagnostics] == [("e",)]
        assert diagnostics[0].message_key == "avoid.hiding.cause.exception"

    @pytest.mark.parametrize("handler", [
        [throw(ident("e"))],
        [throw(new("RuntimeException", string("failed"), ident("e")))],
        [
            local("wrapped", "RuntimeException", init=new("RuntimeException", ident("e"))),
            throw(ident("wrapped")),
        ],
        [
            local("wrapped", "RuntimeException"),
            stmt(assign(ident("wrapped"), new("RuntimeException", ident("e")))),
            throw(ident("wrapped")),
        ],
        [local("same", "IOException", init=ident("e")), throw(ident("same"))],
    ])
    def test_cause_kept(self, run_rules, handler):
        syntax_tree = in_method(try_catch(*handler))

        assert run_rules(syntax_tree, AvoidHidingCauseException()) == []

    def test_only_message_passed(self, run_rules):
        syntax_tree = in_method(
            try_catch(throw(new("RuntimeException", call("getMessage", target=ident("e"))))),
        )

        assert len(run_rules(syntax_tree, AvoidHidingCauseException())) == 1

    def test_field_of_cause_passed(self, run_rules):
        syntax_tree = in_method(try_catch(throw(new("RuntimeException", access(ident("e"), "detail")))))

        assert len(run_rules(syntax_tree, AvoidHidingCauseException())) == 1

    def test_throw_in_lambda_is_not_checked(self, run_rules):
        syntax_tree = in_method(
            try_catch(stmt(call("later", lambda_([], block(throw(new("IllegalStateException"))))))),
        )

        assert run_rules(syntax_tree, AvoidHidingCauseException()) == []

    def test_throw_in_nested_try_is_not_checked(self, run_rules):
        syntax_tree = in_method(
            try_catch(try_(block(throw(new("IllegalStateException"))), catch(param("x"), block()))),
        )

        assert run_rules(syntax_tree, AvoidHidingCauseException()) == []


class TestAvoidNotShortCircuitOperatorsForBoolean:
    """Test suite for AvoidNotShortCircuitOperatorsForBoolean."""

    def test_boolean_locals(self, run_rules):
        syntax_tree = in_method(
            local("a", "boolean"),
            local("b", "boolean"),
            local("c", "boolean", init=binop("|", ident("a"), ident("b"))),
        )

        diagnostics = run_rules(syntax_tree, AvoidNotShortCircuitOperatorsForBoolean())

        assert [d.args for d in diagnostics] == [("|",)]
        assert diagnostics[0].message_key == "avoid.not.short.circuit.operators.for.boolean"

    def test_integer_operands(self, run_rules):
        syntax_tree = in_method(
            local("x"),
            local("y"),
            local("z", init=binop("|", ident("x"), ident("y"))),
            stmt(assign(ident("z"), ident("x"), op="&=")),
        )

        assert run_rules(syntax_tree, AvoidNotShortCircuitOperatorsForBoolean()) == []

    def test_boolean_literal(self, run_rules):
        syntax_tree = in_method(if_(binop("&", ident("unknown"), boolean(True)), block()))

        assert [d.args for d in run_rules(syntax_tree, AvoidNotShortCircuitOperatorsForBoolean())] == [("&",)]

    def test_compound_assignment_to_boolean_field(self, run_rules):
        syntax_tree = tree(class_decl(
            "A",
            field("done", "boolean"),
            method("m", stmt(assign(ident("done"), call("check"), op="|="))),
        ))

        assert [d.args for d in run_rules(syntax_tree, AvoidNotShortCircuitOperatorsForBoolean())] == [("|=",)]

    def test_boolean_wrapper_parameter(self, run_rules):
        syntax_tree = in_method(
            ret(binop("&", ident("flag"), call("other"))),
            params=[param("flag", "Boolean")],
            return_type="boolean",
        )

        assert len(run_rules(syntax_tree, AvoidNotShortCircuitOperatorsForBoolean())) == 1

    def test_call_results_are_not_inspected(self, run_rules):
        syntax_tree = in_method(
            local("flag", "boolean"),
            local("mask", init=binop("|", call("bits", ident("flag")), num(4))),
        )

        assert run_rules(syntax_tree, AvoidNotShortCircuitOperatorsForBoolean()) == []
