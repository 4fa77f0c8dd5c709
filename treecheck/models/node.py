"""
Syntax tree node model.

A tree is built bottom-up (children first) and is immutable afterwards.
Parent references are weak and are filled in by ``SyntaxTree`` when the
tree is linked, so a bare ``Node`` has no parent until then.

Shape conventions (``?`` optional, ``*`` repeated), in source order:

    COMPILATION_UNIT  PACKAGE_DECL? IMPORT* type declarations
    PACKAGE_DECL      text = dotted package name
    IMPORT            text = dotted import name
    CLASS_DECL        MODIFIERS? IDENTIFIER TYPE_PARAMETER* EXTENDS? IMPLEMENTS? CLASS_BODY
    INTERFACE_DECL    same as CLASS_DECL
    ENUM_DECL         MODIFIERS? IDENTIFIER IMPLEMENTS? CLASS_BODY
    ENUM_CONSTANT     MODIFIERS? IDENTIFIER ARGUMENTS? CLASS_BODY?
    CLASS_BODY        members
    MODIFIERS         (MODIFIER | ANNOTATION)*   MODIFIER.text = "private", "static", ...
    ANNOTATION        text = annotation name, children = element values
    FIELD_DECL        MODIFIERS? TYPE IDENTIFIER initializer?
    METHOD_DECL       MODIFIERS? TYPE_PARAMETER* TYPE? IDENTIFIER PARAMETER_LIST THROWS? BLOCK?
    CTOR_DECL         MODIFIERS? IDENTIFIER PARAMETER_LIST THROWS? BLOCK
    PARAMETER_LIST    PARAMETER*
    PARAMETER         MODIFIERS? TYPE? IDENTIFIER
    VARIABLE_DECL     MODIFIERS? TYPE IDENTIFIER initializer?
    BLOCK             statements; end_line = line of the closing brace
    IF                condition statement ELSE?
    WHILE             condition statement
    DO_WHILE          statement condition
    FOR               FOR_INIT FOR_CONDITION FOR_UPDATE statement
    FOR_EACH          VARIABLE_DECL expression statement
    SWITCH            expression CASE*; end_line = line of the closing brace
    CASE              label expressions (none for default) BLOCK
    TRY               RESOURCES? BLOCK CATCH* FINALLY?
    CATCH             PARAMETER BLOCK
    FINALLY           BLOCK
    RETURN            expression?
    METHOD_CALL       receiver? IDENTIFIER ARGUMENTS
    FIELD_ACCESS      receiver IDENTIFIER
    NEW               TYPE ARGUMENTS? CLASS_BODY?
    LAMBDA            PARAMETER_LIST (expression | BLOCK)
    BINARY_OP         left right, text = operator
    ASSIGN            target value, text = operator
    LOGICAL_NOT       operand
"""

import weakref
from enum import Enum
from typing import Callable, FrozenSet, Iterator, List, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class NodeKind(str, Enum):
    """Closed set of syntax node kinds."""

    COMPILATION_UNIT = "compilation_unit"
    PACKAGE_DECL = "package_decl"
    IMPORT = "import"

    CLASS_DECL = "class_decl"
    INTERFACE_DECL = "interface_decl"
    ENUM_DECL = "enum_decl"
    ENUM_CONSTANT = "enum_constant"
    CLASS_BODY = "class_body"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    THROWS = "throws"

    MODIFIERS = "modifiers"
    MODIFIER = "modifier"
    ANNOTATION = "annotation"
    TYPE = "type"
    TYPE_PARAMETER = "type_parameter"

    FIELD_DECL = "field_decl"
    METHOD_DECL = "method_decl"
    CTOR_DECL = "ctor_decl"
    PARAMETER_LIST = "parameter_list"
    PARAMETER = "parameter"
    VARIABLE_DECL = "variable_decl"
    STATIC_INIT = "static_init"
    INSTANCE_INIT = "instance_init"

    BLOCK = "block"
    EXPRESSION_STMT = "expression_stmt"
    IF = "if"
    ELSE = "else"
    WHILE = "while"
    DO_WHILE = "do_while"
    FOR = "for"
    FOR_INIT = "for_init"
    FOR_CONDITION = "for_condition"
    FOR_UPDATE = "for_update"
    FOR_EACH = "for_each"
    SWITCH = "switch"
    CASE = "case"
    TRY = "try"
    RESOURCES = "resources"
    CATCH = "catch"
    FINALLY = "finally"
    RETURN = "return"
    THROW = "throw"
    BREAK = "break"
    CONTINUE = "continue"

    IDENTIFIER = "identifier"
    STRING_LITERAL = "string_literal"
    CHAR_LITERAL = "char_literal"
    NUMBER_LITERAL = "number_literal"
    BOOLEAN_LITERAL = "boolean_literal"
    NULL_LITERAL = "null_literal"
    THIS = "this"
    SUPER = "super"
    BINARY_OP = "binary_op"
    LOGICAL_NOT = "logical_not"
    UNARY_OP = "unary_op"
    ASSIGN = "assign"
    TERNARY = "ternary"
    PAREN = "paren"
    METHOD_CALL = "method_call"
    ARGUMENTS = "arguments"
    FIELD_ACCESS = "field_access"
    NEW = "new"
    LAMBDA = "lambda"
    CAST = "cast"
    INSTANCEOF = "instanceof"
    ARRAY_ACCESS = "array_access"


RELATIONAL_OPERATORS: FrozenSet[str] = frozenset({"<", "<=", ">", ">=", "==", "!="})
CONDITIONAL_OPERATORS: FrozenSet[str] = frozenset({"&&", "||"})

TYPE_DECLARATION_KINDS: FrozenSet[NodeKind] = frozenset({
    NodeKind.CLASS_DECL,
    NodeKind.INTERFACE_DECL,
    NodeKind.ENUM_DECL,
})

LITERAL_KINDS: FrozenSet[NodeKind] = frozenset({
    NodeKind.STRING_LITERAL,
    NodeKind.CHAR_LITERAL,
    NodeKind.NUMBER_LITERAL,
    NodeKind.BOOLEAN_LITERAL,
    NodeKind.NULL_LITERAL,
})

# Kinds whose nodes always carry a lexeme.
TEXT_KINDS: FrozenSet[NodeKind] = frozenset({
    NodeKind.IDENTIFIER,
    NodeKind.MODIFIER,
    NodeKind.ANNOTATION,
    NodeKind.TYPE,
    NodeKind.IMPORT,
    NodeKind.PACKAGE_DECL,
    NodeKind.BINARY_OP,
    NodeKind.ASSIGN,
}) | LITERAL_KINDS

# Children a node of the given kind cannot be without.
REQUIRED_CHILDREN = {
    NodeKind.CLASS_DECL: (NodeKind.IDENTIFIER, NodeKind.CLASS_BODY),
    NodeKind.INTERFACE_DECL: (NodeKind.IDENTIFIER, NodeKind.CLASS_BODY),
    NodeKind.ENUM_DECL: (NodeKind.IDENTIFIER, NodeKind.CLASS_BODY),
    NodeKind.ENUM_CONSTANT: (NodeKind.IDENTIFIER,),
    NodeKind.FIELD_DECL: (NodeKind.IDENTIFIER,),
    NodeKind.METHOD_DECL: (NodeKind.IDENTIFIER, NodeKind.PARAMETER_LIST),
    NodeKind.CTOR_DECL: (NodeKind.IDENTIFIER, NodeKind.PARAMETER_LIST, NodeKind.BLOCK),
    NodeKind.PARAMETER: (NodeKind.IDENTIFIER,),
    NodeKind.VARIABLE_DECL: (NodeKind.IDENTIFIER,),
    NodeKind.CATCH: (NodeKind.PARAMETER, NodeKind.BLOCK),
    NodeKind.FINALLY: (NodeKind.BLOCK,),
    NodeKind.STATIC_INIT: (NodeKind.BLOCK,),
    NodeKind.INSTANCE_INIT: (NodeKind.BLOCK,),
    NodeKind.METHOD_CALL: (NodeKind.IDENTIFIER, NodeKind.ARGUMENTS),
    NodeKind.FIELD_ACCESS: (NodeKind.IDENTIFIER,),
    NodeKind.NEW: (NodeKind.TYPE,),
    NodeKind.LAMBDA: (NodeKind.PARAMETER_LIST,),
    NodeKind.FOR: (NodeKind.FOR_CONDITION,),
}


class Position(NamedTuple):
    """1-based source position."""

    line: int
    column: int


class Node(BaseModel):
    """A single syntax construct."""

    model_config = ConfigDict(frozen=True)

    kind: NodeKind
    text: Optional[str] = None
    line: int = Field(1, ge=1)
    column: int = Field(1, ge=1)
    end_line: Optional[int] = Field(None, ge=1)
    children: Tuple['Node', ...] = ()

    _parent: Optional[weakref.ref] = PrivateAttr(default=None)

    # Nodes are compared by identity: two structurally equal subtrees in
    # different places of a tree are different nodes.
    def __eq__(self, other: object) -> bool:
        return self is other

    def __hash__(self) -> int:
        return id(self)

    def __repr__(self) -> str:
        text = f" {self.text!r}" if self.text is not None else ""
        return f"<Node {self.kind.name}{text} @{self.line}:{self.column}>"

    __str__ = __repr__

    @property
    def position(self) -> Position:
        return Position(self.line, self.column)

    @property
    def parent(self) -> Optional['Node']:
        """Enclosing node, or None for the root or an unlinked node."""
        if self._parent is None:
            return None
        return self._parent()

    def _link_parent(self, parent: 'Node') -> None:
        self._parent = weakref.ref(parent)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def last_line(self) -> int:
        """Last source line covered by this node's subtree."""
        if self.end_line is not None:
            return self.end_line
        last = self.line
        for child in self.children:
            last = max(last, child.last_line)
        return last

    @property
    def name(self) -> Optional[str]:
        """Text of the first IDENTIFIER child (declaration name)."""
        ident = self.first_child_of_kind(NodeKind.IDENTIFIER)
        return ident.text if ident is not None else None

    @property
    def modifiers(self) -> Optional['Node']:
        return self.first_child_of_kind(NodeKind.MODIFIERS)

    def has_modifier(self, modifier: str) -> bool:
        """Check the MODIFIERS child for a keyword modifier or an annotation name."""
        modifiers = self.modifiers
        if modifiers is None:
            return False
        name = modifier.lstrip("@")
        for child in modifiers.children:
            if child.kind == NodeKind.MODIFIER and child.text == modifier:
                return True
            if child.kind == NodeKind.ANNOTATION and child.text is not None:
                if child.text.rsplit(".", 1)[-1] == name:
                    return True
        return False

    def first_child_of_kind(self, kind: NodeKind) -> Optional['Node']:
        for child in self.children:
            if child.kind == kind:
                return child
        return None

    def children_of_kind(self, kind: NodeKind) -> List['Node']:
        return [child for child in self.children if child.kind == kind]

    @property
    def first_child(self) -> Optional['Node']:
        return self.children[0] if self.children else None

    @property
    def last_child(self) -> Optional['Node']:
        return self.children[-1] if self.children else None

    def index_in_parent(self) -> Optional[int]:
        parent = self.parent
        if parent is None:
            return None
        for index, sibling in enumerate(parent.children):
            if sibling is self:
                return index
        return None

    @property
    def next_sibling(self) -> Optional['Node']:
        index = self.index_in_parent()
        if index is None or index + 1 >= len(self.parent.children):
            return None
        return self.parent.children[index + 1]

    @property
    def previous_sibling(self) -> Optional['Node']:
        index = self.index_in_parent()
        if not index:
            return None
        return self.parent.children[index - 1]

    def ancestors(self) -> Iterator['Node']:
        """Yield enclosing nodes, innermost first."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def iter_descendants(self) -> Iterator['Node']:
        """Yield all nodes below this one in depth-first pre-order."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find_descendant(self, predicate: Callable[['Node'], bool]) -> Optional['Node']:
        """
        Return the first descendant (pre-order) satisfying the predicate.

        Args:
            predicate: Callable taking a node and returning a boolean

        Returns:
            The first matching node, or None
        """
        for node in self.iter_descendants():
            if predicate(node):
                return node
        return None


# Enable forward references for recursive model
Node.model_rebuild()
