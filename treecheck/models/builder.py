"""
Terse constructors for assembling syntax trees in code.

Hosts that already hold a parsed tree convert it with
``SyntaxTree.from_dict``; these helpers cover adapters and tests that
build trees by hand. A node built without a ``line`` is unpositioned:
when it is placed under a positioned parent it takes the position of
its preceding sibling (or of the parent), so sibling positions stay in
source order. Placing copies the unpositioned subtree, so hold on to
positioned nodes if you need to compare identities later.
"""

from typing import Iterable, Optional, Sequence, Union

from treecheck.models.node import Node, NodeKind, Position
from treecheck.models.tree import SyntaxTree

Statement = Node


def _is_positioned(node: Node) -> bool:
    return "line" in node.model_fields_set


def _place(node: Node, position: Position) -> Node:
    if _is_positioned(node):
        return node
    return Node(
        kind=node.kind,
        text=node.text,
        line=position.line,
        column=position.column,
        end_line=node.end_line,
        children=_placed_children(node.children, position),
    )


def _placed_children(children: Iterable[Node], position: Position) -> tuple:
    placed = []
    current = position
    for child in children:
        child = _place(child, current)
        current = max(current, child.position)
        placed.append(child)
    return tuple(placed)


def node(
    kind: NodeKind,
    *children: Node,
    text: Optional[str] = None,
    line: Optional[int] = None,
    column: Optional[int] = None,
    end_line: Optional[int] = None,
) -> Node:
    """Build a node; unpositioned children are placed when ``line`` is given."""
    fields = {"kind": kind, "text": text, "end_line": end_line}
    kids = tuple(c for c in children if c is not None)
    if line is not None:
        position = Position(line, column or 1)
        fields["line"] = position.line
        fields["column"] = position.column
        kids = _placed_children(kids, position)
    return Node(children=kids, **fields)


# -- leaves -----------------------------------------------------------------

def ident(name: str, **pos) -> Node:
    return node(NodeKind.IDENTIFIER, text=name, **pos)


def type_(name: str, **pos) -> Node:
    return node(NodeKind.TYPE, text=name, **pos)


def num(value: Union[int, float, str], **pos) -> Node:
    return node(NodeKind.NUMBER_LITERAL, text=str(value), **pos)


def string(value: str, **pos) -> Node:
    return node(NodeKind.STRING_LITERAL, text=f'"{value}"', **pos)


def boolean(value: bool, **pos) -> Node:
    return node(NodeKind.BOOLEAN_LITERAL, text="true" if value else "false", **pos)


def null(**pos) -> Node:
    return node(NodeKind.NULL_LITERAL, text="null", **pos)


def this(**pos) -> Node:
    return node(NodeKind.THIS, **pos)


def super_(**pos) -> Node:
    return node(NodeKind.SUPER, **pos)


def annotation(name: str, *values: Node, **pos) -> Node:
    return node(NodeKind.ANNOTATION, *values, text=name.lstrip("@"), **pos)


def modifiers(*names: Union[str, Node], **pos) -> Optional[Node]:
    """MODIFIERS node; names starting with '@' become annotations."""
    if not names:
        return None
    children = []
    for name in names:
        if isinstance(name, Node):
            children.append(name)
        elif name.startswith("@"):
            children.append(annotation(name))
        else:
            children.append(node(NodeKind.MODIFIER, text=name))
    return node(NodeKind.MODIFIERS, *children, **pos)


# -- declarations -------------------------------------------------------------

def unit(*children: Node, package: Optional[str] = None, imports: Sequence[str] = ()) -> Node:
    """COMPILATION_UNIT rooted at 1:1."""
    head = []
    if package:
        head.append(node(NodeKind.PACKAGE_DECL, text=package))
    head.extend(node(NodeKind.IMPORT, text=name) for name in imports)
    return node(NodeKind.COMPILATION_UNIT, *head, *children, line=1, column=1)


def tree(*children: Node, file_path: str = "<memory>", **kwargs) -> SyntaxTree:
    """Wrap declarations in a compilation unit and link it."""
    return SyntaxTree(unit(*children, **kwargs), file_path=file_path)


def _type_decl(
    kind: NodeKind,
    name: str,
    members: Sequence[Node],
    mods: Sequence[str],
    extends: Optional[str],
    implements: Sequence[str],
    type_params: Sequence[str],
    line: Optional[int],
    column: Optional[int],
    end_line: Optional[int],
) -> Node:
    children = [modifiers(*mods), ident(name)]
    children.extend(node(NodeKind.TYPE_PARAMETER, ident(p)) for p in type_params)
    if extends:
        children.append(node(NodeKind.EXTENDS, type_(extends)))
    if implements:
        children.append(node(NodeKind.IMPLEMENTS, *(type_(t) for t in implements)))
    children.append(node(NodeKind.CLASS_BODY, *members, end_line=end_line))
    return node(kind, *children, line=line, column=column, end_line=end_line)


def class_decl(
    name: str,
    *members: Node,
    mods: Sequence[str] = (),
    extends: Optional[str] = None,
    implements: Sequence[str] = (),
    type_params: Sequence[str] = (),
    line: Optional[int] = None,
    column: Optional[int] = None,
    end_line: Optional[int] = None,
) -> Node:
    return _type_decl(
        NodeKind.CLASS_DECL, name, members, mods, extends, implements,
        type_params, line, column, end_line,
    )


def interface_decl(name: str, *members: Node, mods: Sequence[str] = (), **pos) -> Node:
    return _type_decl(
        NodeKind.INTERFACE_DECL, name, members, mods, None, (), (),
        pos.get("line"), pos.get("column"), pos.get("end_line"),
    )


def enum_decl(name: str, *members: Node, mods: Sequence[str] = (), **pos) -> Node:
    return _type_decl(
        NodeKind.ENUM_DECL, name, members, mods, None, (), (),
        pos.get("line"), pos.get("column"), pos.get("end_line"),
    )


def enum_constant(name: str, *args: Node, body: Optional[Sequence[Node]] = None, **pos) -> Node:
    children = [ident(name)]
    if args:
        children.append(node(NodeKind.ARGUMENTS, *args))
    if body is not None:
        children.append(node(NodeKind.CLASS_BODY, *body))
    return node(NodeKind.ENUM_CONSTANT, *children, **pos)


def field(
    name: str,
    type_name: str = "int",
    init: Optional[Node] = None,
    mods: Sequence[str] = (),
    **pos,
) -> Node:
    return node(NodeKind.FIELD_DECL, modifiers(*mods), type_(type_name), ident(name), init, **pos)


def local(
    name: str,
    type_name: str = "int",
    init: Optional[Node] = None,
    mods: Sequence[str] = (),
    **pos,
) -> Node:
    return node(NodeKind.VARIABLE_DECL, modifiers(*mods), type_(type_name), ident(name), init, **pos)


def param(name: str, type_name: str = "Object", mods: Sequence[str] = (), **pos) -> Node:
    return node(NodeKind.PARAMETER, modifiers(*mods), type_(type_name), ident(name), **pos)


def _params(params: Sequence[Union[str, Node]]) -> Node:
    return node(
        NodeKind.PARAMETER_LIST,
        *(p if isinstance(p, Node) else param(p) for p in params),
    )


def method(
    name: str,
    *statements: Node,
    mods: Sequence[str] = (),
    params: Sequence[Union[str, Node]] = (),
    return_type: Optional[str] = "void",
    throws: Sequence[str] = (),
    abstract: bool = False,
    line: Optional[int] = None,
    column: Optional[int] = None,
    end_line: Optional[int] = None,
) -> Node:
    children = [
        modifiers(*mods),
        type_(return_type) if return_type else None,
        ident(name),
        _params(params),
    ]
    if throws:
        children.append(node(NodeKind.THROWS, *(type_(t) for t in throws)))
    if not abstract:
        children.append(block(*statements, end_line=end_line))
    return node(NodeKind.METHOD_DECL, *children, line=line, column=column, end_line=end_line)


def ctor(
    name: str,
    *statements: Node,
    mods: Sequence[str] = (),
    params: Sequence[Union[str, Node]] = (),
    **pos,
) -> Node:
    return node(
        NodeKind.CTOR_DECL,
        modifiers(*mods),
        ident(name),
        _params(params),
        block(*statements, end_line=pos.get("end_line")),
        **pos,
    )


def static_init(*statements: Node, **pos) -> Node:
    return node(NodeKind.STATIC_INIT, block(*statements), **pos)


# -- statements ---------------------------------------------------------------

def block(*statements: Node, **pos) -> Node:
    return node(NodeKind.BLOCK, *statements, **pos)


def stmt(expression: Node, **pos) -> Node:
    return node(NodeKind.EXPRESSION_STMT, expression, **pos)


def if_(condition: Node, then: Node, else_: Optional[Node] = None, **pos) -> Node:
    else_node = node(NodeKind.ELSE, else_) if else_ is not None else None
    return node(NodeKind.IF, condition, then, else_node, **pos)


def while_(condition: Node, body: Node, **pos) -> Node:
    return node(NodeKind.WHILE, condition, body, **pos)


def do_while(body: Node, condition: Node, **pos) -> Node:
    return node(NodeKind.DO_WHILE, body, condition, **pos)


def for_(
    init: Sequence[Node],
    condition: Optional[Node],
    update: Sequence[Node],
    body: Node,
    **pos,
) -> Node:
    return node(
        NodeKind.FOR,
        node(NodeKind.FOR_INIT, *init),
        node(NodeKind.FOR_CONDITION, condition),
        node(NodeKind.FOR_UPDATE, *update),
        body,
        **pos,
    )


def for_each(variable: Node, iterable: Node, body: Node, **pos) -> Node:
    return node(NodeKind.FOR_EACH, variable, iterable, body, **pos)


def switch(selector: Node, *cases: Node, **pos) -> Node:
    return node(NodeKind.SWITCH, selector, *cases, **pos)


def case(labels: Sequence[Node], *statements: Node, **pos) -> Node:
    """CASE with its statements wrapped in a BLOCK; no labels means default."""
    return node(NodeKind.CASE, *labels, block(*statements), **pos)


def catch(parameter: Node, body: Node, **pos) -> Node:
    return node(NodeKind.CATCH, parameter, body, **pos)


def try_(
    body: Node,
    *catches: Node,
    finally_: Optional[Node] = None,
    resources: Sequence[Node] = (),
    **pos,
) -> Node:
    children = []
    if resources:
        children.append(node(NodeKind.RESOURCES, *resources))
    children.append(body)
    children.extend(catches)
    if finally_ is not None:
        children.append(node(NodeKind.FINALLY, finally_))
    return node(NodeKind.TRY, *children, **pos)


def ret(expression: Optional[Node] = None, **pos) -> Node:
    return node(NodeKind.RETURN, expression, **pos)


def throw(expression: Node, **pos) -> Node:
    return node(NodeKind.THROW, expression, **pos)


# -- expressions --------------------------------------------------------------

def binop(op: str, left: Node, right: Node, **pos) -> Node:
    return node(NodeKind.BINARY_OP, left, right, text=op, **pos)


def not_(operand: Node, **pos) -> Node:
    return node(NodeKind.LOGICAL_NOT, operand, text="!", **pos)


def paren(expression: Node, **pos) -> Node:
    return node(NodeKind.PAREN, expression, **pos)


def assign(target: Node, value: Node, op: str = "=", **pos) -> Node:
    return node(NodeKind.ASSIGN, target, value, text=op, **pos)


def ternary(condition: Node, when_true: Node, when_false: Node, **pos) -> Node:
    return node(NodeKind.TERNARY, condition, when_true, when_false, **pos)


def call(name: str, *args: Node, target: Optional[Node] = None, **pos) -> Node:
    return node(
        NodeKind.METHOD_CALL,
        target,
        ident(name),
        node(NodeKind.ARGUMENTS, *args),
        **pos,
    )


def access(target: Node, name: str, **pos) -> Node:
    return node(NodeKind.FIELD_ACCESS, target, ident(name), **pos)


def new(type_name: str, *args: Node, body: Optional[Sequence[Node]] = None, **pos) -> Node:
    body_node = node(NodeKind.CLASS_BODY, *body) if body is not None else None
    return node(NodeKind.NEW, type_(type_name), node(NodeKind.ARGUMENTS, *args), body_node, **pos)


def lambda_(params: Sequence[Union[str, Node]], body: Node, **pos) -> Node:
    return node(NodeKind.LAMBDA, _params(params), body, **pos)
