"""lslpy/ast.py – Typed syntax tree for LSL scripts.

The front end (parser, symbol resolver, type checker and the desugaring
pass that makes every implicit coercion an explicit cast) produces this
tree; the code generator only reads it.

Design invariants
-----------------
* Every node is a frozen dataclass (immutable after construction).
* Nodes that carry children use tuples, never lists.
* Every expression node carries its resolved ``LSLType``.
* Every reference resolves to exactly one ``Symbol``.
* Operators, types, scopes and coordinate members are closed ``Enum``s;
  the node kinds themselves are closed ``Union``s with dispatch tables
  (§4), so an unknown kind is detected instead of silently ignored.

Module layout
-------------
§1  Closed enumerations (types, scopes, members, operators)
§2  Expressions
§3  Statements and top-level declarations
§4  Node-kind tables and canonical values
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Optional, Tuple, Union

__all__ = [
    "LSLType",
    "SymbolScope",
    "CoordMember",
    "BinaryOp",
    "UnaryOp",
    "Symbol",
    "Parameter",
    "IntegerConstant",
    "FloatConstant",
    "StringConstant",
    "KeyConstant",
    "VectorConstant",
    "QuaternionConstant",
    "ListConstant",
    "VectorExpression",
    "QuaternionExpression",
    "ListExpression",
    "TypecastExpression",
    "FunctionCall",
    "LValue",
    "BinaryExpression",
    "UnaryExpression",
    "PrintExpression",
    "ParenthesisExpression",
    "BoolConversion",
    "NopStatement",
    "CompoundStatement",
    "ExpressionStatement",
    "Declaration",
    "IfStatement",
    "ForStatement",
    "WhileStatement",
    "DoStatement",
    "JumpStatement",
    "LabelStatement",
    "ReturnStatement",
    "StateStatement",
    "GlobalVariable",
    "GlobalFunction",
    "EventHandler",
    "State",
    "Script",
    "Expression",
    "Constant",
    "Statement",
    "EXPRESSION_KINDS",
    "STATEMENT_KINDS",
    "zero_value",
    "one_value",
]


# ════════════════════════════════════════════════════════════════════════
# §1  Closed enumerations
# ════════════════════════════════════════════════════════════════════════


class LSLType(Enum):
    """The closed set of LSL value types."""

    NONE = auto()
    INTEGER = auto()
    FLOAT = auto()
    STRING = auto()
    KEY = auto()
    VECTOR = auto()
    QUATERNION = auto()
    LIST = auto()
    ERROR = auto()

    @property
    def py_name(self) -> str:
        """Name of the Python type used for annotations and typecasts."""
        return _PY_TYPE_NAMES[self]

    @classmethod
    def from_name(cls, name: str) -> "LSLType":
        """Look up a type by its LSL spelling (``integer``, ``rotation`` ...)."""
        try:
            return _LSL_TYPE_NAMES[name]
        except KeyError:
            raise ValueError(f"Unknown LSL type: {name!r}") from None


_PY_TYPE_NAMES: Dict[LSLType, str] = {
    LSLType.NONE: "None",
    LSLType.INTEGER: "int",
    LSLType.FLOAT: "float",
    LSLType.STRING: "str",
    LSLType.KEY: "Key",
    LSLType.VECTOR: "Vector",
    LSLType.QUATERNION: "Quaternion",
    LSLType.LIST: "list",
    LSLType.ERROR: "<ERROR>",
}

_LSL_TYPE_NAMES: Dict[str, LSLType] = {
    "none": LSLType.NONE,
    "void": LSLType.NONE,
    "integer": LSLType.INTEGER,
    "float": LSLType.FLOAT,
    "string": LSLType.STRING,
    "key": LSLType.KEY,
    "vector": LSLType.VECTOR,
    "quaternion": LSLType.QUATERNION,
    "rotation": LSLType.QUATERNION,
    "list": LSLType.LIST,
    "error": LSLType.ERROR,
}


class SymbolScope(Enum):
    """Where a symbol lives."""

    BUILTIN = auto()
    GLOBAL = auto()
    LOCAL = auto()


class CoordMember(Enum):
    """Component selectors of vectors and quaternions, valued by offset."""

    X = 0
    Y = 1
    Z = 2
    S = 3

    @property
    def offset(self) -> int:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "CoordMember":
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown coordinate member: {name!r}") from None


class BinaryOp(Enum):
    """Binary operators, valued by their LSL spelling."""

    ASSIGN = "="
    ADD_ASSIGN = "+="
    SUB_ASSIGN = "-="
    MUL_ASSIGN = "*="
    DIV_ASSIGN = "/="
    MOD_ASSIGN = "%="
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    EQ = "=="
    NEQ = "!="
    GREATER = ">"
    LESS = "<"
    GEQ = ">="
    LEQ = "<="
    BOOLEAN_AND = "&&"
    BOOLEAN_OR = "||"
    BIT_AND = "&"
    BIT_OR = "|"
    BIT_XOR = "^"
    SHIFT_LEFT = "<<"
    SHIFT_RIGHT = ">>"

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def is_assignment(self) -> bool:
        return self is BinaryOp.ASSIGN or self in _COMPOUND_BASE

    @property
    def is_compound_assignment(self) -> bool:
        return self in _COMPOUND_BASE

    def compound_base(self) -> "BinaryOp":
        """The arithmetic operator behind a compound assignment (``*=`` → ``*``)."""
        return _COMPOUND_BASE[self]


_COMPOUND_BASE: Dict[BinaryOp, BinaryOp] = {
    BinaryOp.ADD_ASSIGN: BinaryOp.ADD,
    BinaryOp.SUB_ASSIGN: BinaryOp.SUB,
    BinaryOp.MUL_ASSIGN: BinaryOp.MUL,
    BinaryOp.DIV_ASSIGN: BinaryOp.DIV,
    BinaryOp.MOD_ASSIGN: BinaryOp.MOD,
}


class UnaryOp(Enum):
    """Unary operators, valued by their tree-dump spelling."""

    NEG = "-"
    BIT_NOT = "~"
    BOOL_NOT = "!"
    PRE_INCR = "pre++"
    PRE_DECR = "pre--"
    POST_INCR = "post++"
    POST_DECR = "post--"

    @property
    def is_step(self) -> bool:
        """True for the four increment/decrement forms."""
        return self in (
            UnaryOp.PRE_INCR,
            UnaryOp.PRE_DECR,
            UnaryOp.POST_INCR,
            UnaryOp.POST_DECR,
        )

    @property
    def is_post(self) -> bool:
        return self in (UnaryOp.POST_INCR, UnaryOp.POST_DECR)

    @property
    def is_decrement(self) -> bool:
        return self in (UnaryOp.PRE_DECR, UnaryOp.POST_DECR)


@dataclass(frozen=True, slots=True)
class Symbol:
    """A resolved identifier: name, declared type and scope classification."""

    name: str
    type: LSLType
    scope: SymbolScope

    @property
    def is_global(self) -> bool:
        return self.scope is SymbolScope.GLOBAL


@dataclass(frozen=True, slots=True)
class Parameter:
    """A function or event-handler parameter."""

    name: str
    type: LSLType


# ════════════════════════════════════════════════════════════════════════
# §2  Expressions
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class IntegerConstant:
    value: int
    type: LSLType = field(default=LSLType.INTEGER, init=False)


@dataclass(frozen=True, slots=True)
class FloatConstant:
    """A float literal; ``value`` holds a binary32-representable number."""

    value: float
    type: LSLType = field(default=LSLType.FLOAT, init=False)


@dataclass(frozen=True, slots=True)
class StringConstant:
    value: str
    type: LSLType = field(default=LSLType.STRING, init=False)


@dataclass(frozen=True, slots=True)
class KeyConstant:
    value: str
    type: LSLType = field(default=LSLType.KEY, init=False)


@dataclass(frozen=True, slots=True)
class VectorConstant:
    value: Tuple[float, float, float]
    type: LSLType = field(default=LSLType.VECTOR, init=False)


@dataclass(frozen=True, slots=True)
class QuaternionConstant:
    """Components in ``(x, y, z, s)`` order."""

    value: Tuple[float, float, float, float]
    type: LSLType = field(default=LSLType.QUATERNION, init=False)


@dataclass(frozen=True, slots=True)
class ListConstant:
    elements: Tuple["Constant", ...] = ()
    type: LSLType = field(default=LSLType.LIST, init=False)


@dataclass(frozen=True, slots=True)
class VectorExpression:
    components: Tuple["Expression", "Expression", "Expression"]
    type: LSLType = field(default=LSLType.VECTOR, init=False)


@dataclass(frozen=True, slots=True)
class QuaternionExpression:
    components: Tuple["Expression", "Expression", "Expression", "Expression"]
    type: LSLType = field(default=LSLType.QUATERNION, init=False)


@dataclass(frozen=True, slots=True)
class ListExpression:
    elements: Tuple["Expression", ...] = ()
    type: LSLType = field(default=LSLType.LIST, init=False)


@dataclass(frozen=True, slots=True)
class TypecastExpression:
    """``(type)expr`` – explicit, or inserted by the desugaring pass."""

    type: LSLType
    expr: "Expression"


@dataclass(frozen=True, slots=True)
class FunctionCall:
    symbol: Symbol
    arguments: Tuple["Expression", ...] = ()

    @property
    def type(self) -> LSLType:
        return self.symbol.type


@dataclass(frozen=True, slots=True)
class LValue:
    """A reference to a variable, optionally narrowed to one coordinate member."""

    symbol: Symbol
    member: Optional[CoordMember] = None

    @property
    def type(self) -> LSLType:
        if self.member is not None:
            return LSLType.FLOAT
        return self.symbol.type


@dataclass(frozen=True, slots=True)
class BinaryExpression:
    """Binary operation, including plain and compound assignment.

    For assignments ``lhs`` is always an ``LValue``.
    """

    op: BinaryOp
    lhs: "Expression"
    rhs: "Expression"
    type: LSLType


@dataclass(frozen=True, slots=True)
class UnaryExpression:
    """Unary operation; the step forms always wrap an ``LValue``."""

    op: UnaryOp
    expr: "Expression"
    type: LSLType


@dataclass(frozen=True, slots=True)
class PrintExpression:
    expr: "Expression"

    @property
    def type(self) -> LSLType:
        return self.expr.type


@dataclass(frozen=True, slots=True)
class ParenthesisExpression:
    expr: "Expression"

    @property
    def type(self) -> LSLType:
        return self.expr.type


@dataclass(frozen=True, slots=True)
class BoolConversion:
    """Truthiness test inserted around conditions."""

    expr: "Expression"
    type: LSLType = field(default=LSLType.INTEGER, init=False)


Constant = Union[
    IntegerConstant,
    FloatConstant,
    StringConstant,
    KeyConstant,
    VectorConstant,
    QuaternionConstant,
    ListConstant,
]

Expression = Union[
    IntegerConstant,
    FloatConstant,
    StringConstant,
    KeyConstant,
    VectorConstant,
    QuaternionConstant,
    ListConstant,
    VectorExpression,
    QuaternionExpression,
    ListExpression,
    TypecastExpression,
    FunctionCall,
    LValue,
    BinaryExpression,
    UnaryExpression,
    PrintExpression,
    ParenthesisExpression,
    BoolConversion,
]


# ════════════════════════════════════════════════════════════════════════
# §3  Statements and top-level declarations
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class NopStatement:
    pass


@dataclass(frozen=True, slots=True)
class CompoundStatement:
    statements: Tuple["Statement", ...] = ()


@dataclass(frozen=True, slots=True)
class ExpressionStatement:
    expr: Expression


@dataclass(frozen=True, slots=True)
class Declaration:
    """Local variable declaration; ``initializer`` may be omitted."""

    symbol: Symbol
    initializer: Optional[Expression] = None


@dataclass(frozen=True, slots=True)
class IfStatement:
    condition: Expression
    then_branch: "Statement"
    else_branch: Optional["Statement"] = None


@dataclass(frozen=True, slots=True)
class ForStatement:
    init: Tuple[Expression, ...]
    condition: Expression
    increment: Tuple[Expression, ...]
    body: "Statement"


@dataclass(frozen=True, slots=True)
class WhileStatement:
    condition: Expression
    body: "Statement"


@dataclass(frozen=True, slots=True)
class DoStatement:
    body: "Statement"
    condition: Expression


@dataclass(frozen=True, slots=True)
class JumpStatement:
    label: str


@dataclass(frozen=True, slots=True)
class LabelStatement:
    name: str


@dataclass(frozen=True, slots=True)
class ReturnStatement:
    value: Optional[Expression] = None


@dataclass(frozen=True, slots=True)
class StateStatement:
    """``state foo;`` – switch the script to another state."""

    target: str


Statement = Union[
    NopStatement,
    CompoundStatement,
    ExpressionStatement,
    Declaration,
    IfStatement,
    ForStatement,
    WhileStatement,
    DoStatement,
    JumpStatement,
    LabelStatement,
    ReturnStatement,
    StateStatement,
]


@dataclass(frozen=True, slots=True)
class GlobalVariable:
    symbol: Symbol
    initializer: Optional[Expression] = None


@dataclass(frozen=True, slots=True)
class GlobalFunction:
    name: str
    return_type: LSLType
    parameters: Tuple[Parameter, ...]
    body: CompoundStatement


@dataclass(frozen=True, slots=True)
class EventHandler:
    name: str
    parameters: Tuple[Parameter, ...]
    body: CompoundStatement

    @property
    def return_type(self) -> LSLType:
        return LSLType.NONE


@dataclass(frozen=True, slots=True)
class State:
    name: str
    handlers: Tuple[EventHandler, ...] = ()


@dataclass(frozen=True, slots=True)
class Script:
    """Root node: ordered globals (variables and functions) and states."""

    globals: Tuple[Union[GlobalVariable, GlobalFunction], ...] = ()
    states: Tuple[State, ...] = ()

    def global_variables(self) -> Tuple[GlobalVariable, ...]:
        return tuple(g for g in self.globals if isinstance(g, GlobalVariable))

    def global_functions(self) -> Tuple[GlobalFunction, ...]:
        return tuple(g for g in self.globals if isinstance(g, GlobalFunction))


# ════════════════════════════════════════════════════════════════════════
# §4  Node-kind tables and canonical values
# ════════════════════════════════════════════════════════════════════════
#
# Since we use Union types rather than a class hierarchy with virtual
# ``accept`` methods, visitors route a node through these tables.

EXPRESSION_KINDS: Dict[type, str] = {
    IntegerConstant: "integer_constant",
    FloatConstant: "float_constant",
    StringConstant: "string_constant",
    KeyConstant: "key_constant",
    VectorConstant: "vector_constant",
    QuaternionConstant: "quaternion_constant",
    ListConstant: "list_constant",
    VectorExpression: "vector_expression",
    QuaternionExpression: "quaternion_expression",
    ListExpression: "list_expression",
    TypecastExpression: "typecast",
    FunctionCall: "function_call",
    LValue: "lvalue",
    BinaryExpression: "binary_expression",
    UnaryExpression: "unary_expression",
    PrintExpression: "print_expression",
    ParenthesisExpression: "parenthesis_expression",
    BoolConversion: "bool_conversion",
}

STATEMENT_KINDS: Dict[type, str] = {
    NopStatement: "nop",
    CompoundStatement: "compound",
    ExpressionStatement: "expression_statement",
    Declaration: "declaration",
    IfStatement: "if",
    ForStatement: "for",
    WhileStatement: "while",
    DoStatement: "do",
    JumpStatement: "jump",
    LabelStatement: "label",
    ReturnStatement: "return",
    StateStatement: "state_change",
}

CONSTANT_KINDS: Tuple[type, ...] = (
    IntegerConstant,
    FloatConstant,
    StringConstant,
    KeyConstant,
    VectorConstant,
    QuaternionConstant,
    ListConstant,
)


def zero_value(lsl_type: LSLType) -> Constant:
    """The value a variable of *lsl_type* holds when declared without initializer."""
    if lsl_type is LSLType.INTEGER:
        return IntegerConstant(0)
    if lsl_type is LSLType.FLOAT:
        return FloatConstant(0.0)
    if lsl_type is LSLType.STRING:
        return StringConstant("")
    if lsl_type is LSLType.KEY:
        return KeyConstant("")
    if lsl_type is LSLType.VECTOR:
        return VectorConstant((0.0, 0.0, 0.0))
    if lsl_type is LSLType.QUATERNION:
        # ZERO_ROTATION
        return QuaternionConstant((0.0, 0.0, 0.0, 1.0))
    if lsl_type is LSLType.LIST:
        return ListConstant(())
    raise ValueError(f"No zero value for type {lsl_type.name}")


def one_value(lsl_type: LSLType) -> Constant:
    """Step used by ``++`` / ``--`` on a variable of *lsl_type*."""
    if lsl_type is LSLType.INTEGER:
        return IntegerConstant(1)
    if lsl_type is LSLType.FLOAT:
        return FloatConstant(1.0)
    raise ValueError(f"No one value for type {lsl_type.name}")
