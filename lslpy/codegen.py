#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
lslpy/codegen.py
================

Code generator: typed LSL tree → Python source.

The generated module defines one class deriving from the runtime's
``BaseLSLScript``:

1. ``from lummao import *`` brings in the runtime helpers
2. Global variables are declared (annotated) at class level, in source order
3. ``__init__`` assigns every global its initializer, in source order, so a
   later initializer sees the values of earlier globals
4. Each global function becomes a method
5. Each event handler becomes a method named ``e<state><event>``

Translation rules
-----------------
- Operators never map to Python operators.  Every arithmetic, comparison,
  logical and bitwise operator calls a runtime helper (``radd``, ``rless``
  ...) that implements LSL's per-type overload table.  Helpers receive the
  right operand first, then the left one.
- Vectors and quaternions are immutable; storing to a member rebinds the
  whole variable to a copy with one component replaced.
- Assignments whose value is used inside a larger expression become
  ``(name := value)`` for locals and ``assign(self.__dict__, "name", value)``
  for globals, since ``:=`` cannot target attributes.
- Increments and decrements whose value is used, or that target a member,
  call ``preincr`` / ``postdecr`` ... with the owning namespace and name.
- Every loop is a ``while``; ``for`` and ``do`` become ``while True`` with
  an explicit ``break`` test, so clause evaluation order is LSL's.
- ``jump`` / ``@label`` become ``goto .label`` / ``label .label``; every
  method carries the ``@with_goto`` decorator that makes them work.
- ``state foo;`` raises ``StateChangeException('foo')``.
- Float literals go through :func:`lslpy.floats.encode_float`.
"""

from __future__ import annotations

import keyword
import logging
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from lslpy import ast as A
from lslpy.config import GeneratorConfig
from lslpy.errors import ContractViolation, OutputError
from lslpy.floats import encode_float
from lslpy.visitor import ASTVisitor

__all__ = [
    "generate",
    "PythonGenerator",
    "CodeEmitter",
    "GeneratedScript",
    "escape_string",
]

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# RUNTIME HELPER NAMES
# ═══════════════════════════════════════════════════════════════════════════

BINARY_HELPERS: Dict[A.BinaryOp, str] = {
    A.BinaryOp.ADD: "radd",
    A.BinaryOp.SUB: "rsub",
    A.BinaryOp.MUL: "rmul",
    A.BinaryOp.DIV: "rdiv",
    A.BinaryOp.MOD: "rmod",
    A.BinaryOp.EQ: "req",
    A.BinaryOp.NEQ: "rneq",
    A.BinaryOp.GREATER: "rgreater",
    A.BinaryOp.LESS: "rless",
    A.BinaryOp.GEQ: "rgeq",
    A.BinaryOp.LEQ: "rleq",
    A.BinaryOp.BOOLEAN_AND: "rbooland",
    A.BinaryOp.BOOLEAN_OR: "rboolor",
    A.BinaryOp.BIT_AND: "rbitand",
    A.BinaryOp.BIT_OR: "rbitor",
    A.BinaryOp.BIT_XOR: "rbitxor",
    A.BinaryOp.SHIFT_LEFT: "rshl",
    A.BinaryOp.SHIFT_RIGHT: "rshr",
}

UNARY_HELPERS: Dict[A.UnaryOp, str] = {
    A.UnaryOp.NEG: "neg",
    A.UnaryOp.BIT_NOT: "bitnot",
    A.UnaryOp.BOOL_NOT: "boolnot",
}

STEP_HELPERS: Dict[A.UnaryOp, str] = {
    A.UnaryOp.PRE_INCR: "preincr",
    A.UnaryOp.PRE_DECR: "predecr",
    A.UnaryOp.POST_INCR: "postincr",
    A.UnaryOp.POST_DECR: "postdecr",
}

# Bare names the generated methods rely on (helpers, and the builtin types
# typecast() and annotations name); locals must not shadow them.
_RUNTIME_NAMES = frozenset({
    "self",
    "super",
    "locals",
    "print",
    "float",
    "int",
    "str",
    "list",
    "bin2float",
    "typecast",
    "cond",
    "assign",
    "replace_coord_axis",
    "Key",
    "Vector",
    "Quaternion",
    "goto",
    "label",
    "StateChangeException",
    *BINARY_HELPERS.values(),
    *UNARY_HELPERS.values(),
    *STEP_HELPERS.values(),
})

_ESCAPES: Dict[str, str] = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def escape_string(s: str) -> str:
    """Escape *s* for use inside a double-quoted Python string literal.

    Generated literals are always written as ``"..."``, also inside
    ``Key("...")``, so the quote character is fixed here rather than
    chosen per value the way ``repr`` does.  Control characters become
    ``\\xNN`` and everything else, non-ASCII included, is kept verbatim.
    """
    out = []
    for ch in s:
        escaped = _ESCAPES.get(ch)
        if escaped is not None:
            out.append(escaped)
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(ch)
    return "".join(out)


# ═══════════════════════════════════════════════════════════════════════════
# CODE EMITTER
# ═══════════════════════════════════════════════════════════════════════════

class CodeEmitter:
    """Append-only output buffer with scoped indentation.

    ``block()`` and ``indented()`` restore the previous depth when the
    ``with`` body exits, whichever way it exits.
    """

    def __init__(self, indent_str: str = "    ") -> None:
        self._buffer = StringIO()
        self._indent_str = indent_str
        self._indent_level = 0

    @property
    def level(self) -> int:
        return self._indent_level

    def emit(self, code: str) -> None:
        """Emit a line of code at the current indentation."""
        if code:
            self._buffer.write(self._indent_str * self._indent_level)
            self._buffer.write(code)
        self._buffer.write("\n")

    def emit_blank(self, count: int = 1) -> None:
        """Emit blank lines."""
        self._buffer.write("\n" * count)

    def indented(self) -> "CodeEmitter._IndentContext":
        """Context manager: one level deeper for the ``with`` body."""
        return self._IndentContext(self)

    def block(self, header: str) -> "CodeEmitter._IndentContext":
        """Emit *header* (``if x:``, ``def f():`` ...) and indent its body."""
        self.emit(header)
        return self._IndentContext(self)

    class _IndentContext:
        """Saves the depth on entry and puts it back on exit."""

        def __init__(self, emitter: "CodeEmitter") -> None:
            self._emitter = emitter
            self._saved = emitter._indent_level

        def __enter__(self) -> "CodeEmitter":
            self._saved = self._emitter._indent_level
            self._emitter._indent_level = self._saved + 1
            return self._emitter

        def __exit__(self, *args: Any) -> None:
            self._emitter._indent_level = self._saved

    def get_code(self) -> str:
        """Get the generated code."""
        return self._buffer.getvalue()


# ═══════════════════════════════════════════════════════════════════════════
# GENERATED SCRIPT CONTAINER
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class GeneratedScript:
    """Generated Python source plus the names of what it defines."""

    code: str
    class_name: str
    globals: List[str] = field(default_factory=list)
    functions: List[str] = field(default_factory=list)
    handlers: List[str] = field(default_factory=list)

    def write_to_file(self, path: Union[str, Path]) -> None:
        """Write the generated code to *path*; failures raise ``OutputError``."""
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write(self.code)
        except OSError as exc:
            raise OutputError(str(path), cause=exc) from exc


# ═══════════════════════════════════════════════════════════════════════════
# MAIN CODE GENERATOR
# ═══════════════════════════════════════════════════════════════════════════

class PythonGenerator(ASTVisitor):
    """Translate a typed ``A.Script`` into Python source.

    Expression visitors return source text; statement visitors write lines
    to the emitter.  Expression visitors take ``needed``: False only when the
    expression is a whole statement (an expression statement, or a ``for``
    init/increment clause), which lets assignments and increments use
    statement forms.

    One instance can generate any number of scripts; each call to
    :meth:`generate` works on a fresh emitter.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None) -> None:
        self.config = config or GeneratorConfig()
        problems = self.config.validate()
        for problem in problems:
            logger.error("GeneratorConfig: %s", problem)
        if problems:
            raise ValueError(f"Invalid generator configuration: {problems[0]}")
        self._out = CodeEmitter(self.config.indent)

    @property
    def emitter(self) -> CodeEmitter:
        """The emitter statement visitors are currently writing to."""
        return self._out

    # ─── Entry point ──────────────────────────────────────────────────────

    def generate(self, script: A.Script) -> GeneratedScript:
        """Generate the Python module for *script*."""
        self._out = CodeEmitter(self.config.indent)
        cfg = self.config
        variables = script.global_variables()
        functions = script.global_functions()
        logger.debug(
            "Generating %d global(s), %d function(s), %d state(s)",
            len(variables), len(functions), len(script.states),
        )

        result = GeneratedScript(code="", class_name=cfg.class_name)
        out = self._out
        out.emit(f"from {cfg.runtime_module} import *")
        out.emit_blank(2)
        with out.block(f"class {cfg.class_name}({cfg.base_class}):"):
            for var in variables:
                name = self._safe_name(var.symbol.name)
                out.emit(f"{name}: {self._py_type(var.symbol.type)}")
                result.globals.append(name)
            out.emit_blank()

            with out.block("def __init__(self):"):
                out.emit("super().__init__()")
                for var in variables:
                    self._emit_global_init(var)
                out.emit_blank()

            for func in functions:
                name = self._safe_name(func.name)
                self._emit_method(name, func.parameters, func.return_type, func.body)
                result.functions.append(name)

            for state in script.states:
                for handler in state.handlers:
                    name = f"{cfg.event_prefix}{state.name}{handler.name}"
                    self._emit_method(
                        name, handler.parameters, handler.return_type, handler.body
                    )
                    result.handlers.append(name)

        result.code = out.get_code()
        return result

    # ─── Top-level pieces ─────────────────────────────────────────────────

    def _emit_global_init(self, var: A.GlobalVariable) -> None:
        initializer = var.initializer
        if initializer is None:
            initializer = self._zero_value(var.symbol.type)
        value = self.visit_expression(initializer)
        self._out.emit(f"self.{self._safe_name(var.symbol.name)} = {value}")

    def _emit_method(
        self,
        name: str,
        parameters: Sequence[A.Parameter],
        return_type: A.LSLType,
        body: A.CompoundStatement,
    ) -> None:
        params = "".join(
            f", {self._safe_name(p.name, local=True)}: {self._py_type(p.type)}"
            for p in parameters
        )
        ret = self._py_type(return_type, allow_none=True)
        self._out.emit(f"@{self.config.goto_decorator}")
        with self._out.block(f"def {name}(self{params}) -> {ret}:"):
            self.visit_statement(body)
            self._out.emit_blank()

    # ─── Names and types ──────────────────────────────────────────────────

    def _safe_name(self, name: str, local: bool = False) -> str:
        """Python spelling of an LSL identifier.

        A name whose stem (the name without trailing underscores) is
        reserved gets one more ``_``.  Keywords are reserved everywhere;
        for locals and parameters so are the bare names the generated
        method bodies use.  ``self`` becomes ``self_`` and a user's own
        ``self_`` becomes ``self__``, so two distinct LSL names never map
        to the same Python name.
        """
        stem = name.rstrip("_")
        reserved = keyword.iskeyword(stem) or (
            local
            and (stem in _RUNTIME_NAMES or stem == self.config.builtins_namespace)
        )
        return name + "_" if reserved else name

    def _variable_name(self, symbol: A.Symbol) -> str:
        """Name of the variable as it appears in its namespace."""
        if symbol.scope is A.SymbolScope.GLOBAL:
            return self._safe_name(symbol.name)
        if symbol.scope is A.SymbolScope.LOCAL:
            return self._safe_name(symbol.name, local=True)
        raise ContractViolation(
            f"Builtin symbol {symbol.name!r} used as an assignment target",
            node=symbol,
        )

    def _variable_ref(self, symbol: A.Symbol) -> str:
        """Python expression reading *symbol*."""
        if symbol.scope is A.SymbolScope.GLOBAL:
            return f"self.{self._safe_name(symbol.name)}"
        if symbol.scope is A.SymbolScope.LOCAL:
            return self._safe_name(symbol.name, local=True)
        return symbol.name

    @staticmethod
    def _py_type(lsl_type: A.LSLType, allow_none: bool = False) -> str:
        if lsl_type is A.LSLType.ERROR or (
            lsl_type is A.LSLType.NONE and not allow_none
        ):
            raise ContractViolation(f"Unexpected type {lsl_type.name}", node=lsl_type)
        return lsl_type.py_name

    @staticmethod
    def _zero_value(lsl_type: A.LSLType) -> A.Constant:
        try:
            return A.zero_value(lsl_type)
        except ValueError as exc:
            raise ContractViolation(str(exc), node=lsl_type) from exc

    # ─── Constants ────────────────────────────────────────────────────────

    def visit_integer_constant(self, node: A.IntegerConstant, needed: bool = True) -> str:
        return str(node.value)

    def visit_float_constant(self, node: A.FloatConstant, needed: bool = True) -> str:
        return encode_float(node.value)

    def visit_string_constant(self, node: A.StringConstant, needed: bool = True) -> str:
        return f'"{escape_string(node.value)}"'

    def visit_key_constant(self, node: A.KeyConstant, needed: bool = True) -> str:
        return f'Key("{escape_string(node.value)}")'

    def visit_vector_constant(self, node: A.VectorConstant, needed: bool = True) -> str:
        return f"Vector(({', '.join(encode_float(v) for v in node.value)}))"

    def visit_quaternion_constant(
        self, node: A.QuaternionConstant, needed: bool = True
    ) -> str:
        return f"Quaternion(({', '.join(encode_float(v) for v in node.value)}))"

    def visit_list_constant(self, node: A.ListConstant, needed: bool = True) -> str:
        return f"[{self._join(node.elements)}]"

    # ─── Composite expressions ────────────────────────────────────────────

    def visit_vector_expression(
        self, node: A.VectorExpression, needed: bool = True
    ) -> str:
        return f"Vector(({self._join(node.components)}))"

    def visit_quaternion_expression(
        self, node: A.QuaternionExpression, needed: bool = True
    ) -> str:
        return f"Quaternion(({self._join(node.components)}))"

    def visit_list_expression(self, node: A.ListExpression, needed: bool = True) -> str:
        return f"[{self._join(node.elements)}]"

    def _join(self, exprs: Sequence[A.Expression]) -> str:
        return ", ".join(self.visit_expression(e) for e in exprs)

    def visit_typecast(self, node: A.TypecastExpression, needed: bool = True) -> str:
        child = self.visit_expression(node.expr)
        if node.expr.type is A.LSLType.INTEGER and node.type is A.LSLType.FLOAT:
            return f"float({child})"
        return f"typecast({child}, {self._py_type(node.type)})"

    def visit_function_call(self, node: A.FunctionCall, needed: bool = True) -> str:
        symbol = node.symbol
        if symbol.scope is A.SymbolScope.BUILTIN:
            callee = f"{self.config.builtins_namespace}.{symbol.name}"
        elif symbol.scope is A.SymbolScope.GLOBAL:
            callee = f"self.{self._safe_name(symbol.name)}"
        else:
            raise ContractViolation(
                f"Call to non-function symbol {symbol.name!r}", node=node
            )
        return f"{callee}({self._join(node.arguments)})"

    def visit_lvalue(self, node: A.LValue, needed: bool = True) -> str:
        ref = self._variable_ref(node.symbol)
        if node.member is not None:
            return f"{ref}[{node.member.offset}]"
        return ref

    # ─── Assignment ───────────────────────────────────────────────────────

    def _assignment(self, target: A.Expression, value: str, needed: bool) -> str:
        """Store *value* (already translated) into *target*.

        Member stores build a new coordinate with ``replace_coord_axis`` and
        rebind the whole variable.  When the value is needed the result is
        the stored value (the member component for member stores).
        """
        if not isinstance(target, A.LValue):
            raise ContractViolation(
                f"Assignment to non-lvalue {type(target).__name__}", node=target
            )
        symbol = target.symbol
        name = self._variable_name(symbol)
        ref = self._variable_ref(symbol)
        member = target.member
        if member is not None:
            value = f"replace_coord_axis({ref}, {member.offset}, {value})"

        if not needed:
            return f"{ref} = {value}"

        if symbol.is_global:
            stored = f'assign(self.__dict__, "{name}", {value})'
        else:
            stored = f"({name} := {value})"
        if member is not None:
            stored += f"[{member.offset}]"
        return stored

    def _compound_assignment(self, node: A.BinaryExpression, needed: bool) -> str:
        target = node.lhs
        helper = BINARY_HELPERS[node.op.compound_base()]
        value = (
            f"{helper}({self.visit_expression(node.rhs)}, "
            f"{self.visit_expression(target)})"
        )
        target_type = target.type
        if node.rhs.type is not target_type and target_type in (
            A.LSLType.INTEGER,
            A.LSLType.FLOAT,
        ):
            # e.g. integer *= float narrows back to integer
            value = f"typecast({value}, {self._py_type(target_type)})"
        return self._assignment(target, value, needed)

    # ─── Operators ────────────────────────────────────────────────────────

    def visit_binary_expression(
        self, node: A.BinaryExpression, needed: bool = True
    ) -> str:
        op = node.op
        if op is A.BinaryOp.ASSIGN:
            return self._assignment(node.lhs, self.visit_expression(node.rhs), needed)
        if op.is_compound_assignment:
            return self._compound_assignment(node, needed)
        helper = BINARY_HELPERS.get(op)
        if helper is None:
            raise ContractViolation(f"Unknown binary operator {op!r}", node=node)
        rhs = self.visit_expression(node.rhs)
        lhs = self.visit_expression(node.lhs)
        return f"{helper}({rhs}, {lhs})"

    def visit_unary_expression(
        self, node: A.UnaryExpression, needed: bool = True
    ) -> str:
        op = node.op
        if op.is_step:
            return self._step(node, needed)
        helper = UNARY_HELPERS.get(op)
        if helper is None:
            raise ContractViolation(f"Unknown unary operator {op!r}", node=node)
        return f"{helper}({self.visit_expression(node.expr)})"

    def _step(self, node: A.UnaryExpression, needed: bool) -> str:
        target = node.expr
        if not isinstance(target, A.LValue):
            raise ContractViolation(
                f"{node.op.value} applied to non-lvalue {type(target).__name__}",
                node=node,
            )
        symbol = target.symbol
        name = self._variable_name(symbol)

        if needed or target.member is not None:
            container = "self.__dict__" if symbol.is_global else "locals()"
            args = f'{container}, "{name}"'
            if target.member is not None:
                args += f", {target.member.offset}"
            return f"{STEP_HELPERS[node.op]}({args})"

        try:
            step = A.one_value(target.type)
        except ValueError as exc:
            raise ContractViolation(str(exc), node=node) from exc
        operator = "-=" if node.op.is_decrement else "+="
        return f"{self._variable_ref(symbol)} {operator} {self.visit_expression(step)}"

    # ─── Thin wrappers ────────────────────────────────────────────────────

    def visit_print_expression(self, node: A.PrintExpression, needed: bool = True) -> str:
        return f"print({self.visit_expression(node.expr)})"

    def visit_parenthesis_expression(
        self, node: A.ParenthesisExpression, needed: bool = True
    ) -> str:
        return f"({self.visit_expression(node.expr)})"

    def visit_bool_conversion(self, node: A.BoolConversion, needed: bool = True) -> str:
        return f"cond({self.visit_expression(node.expr)})"

    # ─── Statements ───────────────────────────────────────────────────────

    def visit_nop(self, node: A.NopStatement) -> None:
        self._out.emit("pass")

    def visit_compound(self, node: A.CompoundStatement) -> None:
        if not node.statements:
            self._out.emit("pass")
            return
        for stmt in node.statements:
            self.visit_statement(stmt)

    def visit_expression_statement(self, node: A.ExpressionStatement) -> None:
        self._out.emit(self.visit_expression(node.expr, needed=False))

    def visit_declaration(self, node: A.Declaration) -> None:
        symbol = node.symbol
        initializer = node.initializer
        if initializer is None:
            initializer = self._zero_value(symbol.type)
        self._out.emit(
            f"{self._safe_name(symbol.name, local=True)}: {self._py_type(symbol.type)} = "
            f"{self.visit_expression(initializer)}"
        )

    def visit_if(self, node: A.IfStatement) -> None:
        out = self._out
        with out.block(f"if {self.visit_expression(node.condition)}:"):
            self.visit_statement(node.then_branch)
        if node.else_branch is not None:
            with out.block("else:"):
                self.visit_statement(node.else_branch)

    def visit_for(self, node: A.ForStatement) -> None:
        out = self._out
        for expr in node.init:
            out.emit(self.visit_expression(expr, needed=False))
        with out.block("while True:"):
            with out.block(f"if not {self.visit_expression(node.condition)}:"):
                out.emit("break")
            self.visit_statement(node.body)
            for expr in node.increment:
                out.emit(self.visit_expression(expr, needed=False))

    def visit_while(self, node: A.WhileStatement) -> None:
        with self._out.block(f"while {self.visit_expression(node.condition)}:"):
            self.visit_statement(node.body)

    def visit_do(self, node: A.DoStatement) -> None:
        out = self._out
        with out.block("while True:"):
            self.visit_statement(node.body)
            with out.block(f"if not {self.visit_expression(node.condition)}:"):
                out.emit("break")

    def visit_jump(self, node: A.JumpStatement) -> None:
        self._out.emit(f"goto .{self._safe_name(node.label)}")

    def visit_label(self, node: A.LabelStatement) -> None:
        self._out.emit(f"label .{self._safe_name(node.name)}")

    def visit_return(self, node: A.ReturnStatement) -> None:
        if node.value is None:
            self._out.emit("return")
        else:
            self._out.emit(f"return {self.visit_expression(node.value)}")

    def visit_state_change(self, node: A.StateStatement) -> None:
        self._out.emit(f"raise StateChangeException('{node.target}')")


# ═══════════════════════════════════════════════════════════════════════════
# CONVENIENCE
# ═══════════════════════════════════════════════════════════════════════════

def generate(script: A.Script, config: Optional[GeneratorConfig] = None) -> str:
    """Generate Python source for *script*."""
    return PythonGenerator(config).generate(script).code
