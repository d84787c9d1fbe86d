"""lslpy/parser.py – S-expression tree dump → typed LSL AST loader.

The front end (LSL parser, symbol resolver, type checker, desugaring pass)
runs elsewhere and serializes its result as S-expressions.  This module
turns what the ``sexpdata`` reader produces (nested Python lists,
:class:`sexpdata.Symbol`, strings, ints, floats) into the nodes of
:mod:`lslpy.ast`.

Design principles
-----------------
* **Head-symbol dispatch** – every list ``(tag ...)`` is dispatched on
  ``tag`` to a dedicated ``_parse_<tag>`` helper registered in a table.
* **Strict shapes** – anything unexpected raises ``TreeFormatError``;
  nothing is silently ignored.
* **Binary32 floats** – every float is narrowed to single precision on
  load, so the tree only ever holds values LSL can represent.

Public API
----------
``parse(text, filename="<string>") -> CompilationUnit``
    Load a complete dump: optional diagnostics plus the script.

``parse_file(path) -> CompilationUnit``
    Same, reading from a file.

``parse_expression(text)`` / ``parse_statement(text)``
    Load a single standalone form (tests, REPL).

Dump syntax
-----------
::

    (diagnostics (error LINE COL "msg") (warning LINE COL "msg") ...)
    (script
      (global NAME TYPE [EXPR])
      (function NAME RETTYPE ((PARAM TYPE) ...) STMT ...)
      (state NAME
        (event NAME ((PARAM TYPE) ...) STMT ...)))

    ;; expressions
    (int N)  (float F)  (string "s")  (key "k")
    (vector X Y Z)  (quaternion X Y Z S)   ;; numbers → constant, else composite
    (list E ...)
    (cast TYPE E)
    (call NAME builtin|global RETTYPE E ...)
    (ref NAME global|local|builtin TYPE [x|y|z|s])
    (OP TYPE LHS RHS)              ;; + - * / % == != > < >= <= && || & | ^ << >>
    (= LHS RHS)  (+= LHS RHS) ...  ;; assignments, typed by their target
    (- TYPE E)  (~ TYPE E)  (! TYPE E)
    (pre++ REF)  (pre-- REF)  (post++ REF)  (post-- REF)
    (print E)  (paren E)  (bool E)

    ;; statements
    (nop)  (block S ...)  (expr E)  (decl NAME TYPE [E])
    (if E S [S])  (for (E ...) E (E ...) S)  (while E S)  (do S E)
    (jump NAME)  (label NAME)  (return [E])  (state NAME)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import sexpdata
from sexpdata import Symbol

from lslpy import ast as A
from lslpy.errors import (
    ErrorMessage,
    ErrorReporter,
    LslPyErrorCodes,
    SourceSpan,
    TreeFormatError,
)
from lslpy.floats import to_f32

__all__ = [
    "CompilationUnit",
    "parse",
    "parse_file",
    "parse_expression",
    "parse_statement",
]

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
#  Result type
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CompilationUnit:
    """A loaded dump: the script (if any) and the front end's diagnostics."""

    script: Optional[A.Script]
    diagnostics: Tuple[ErrorMessage, ...] = ()

    @property
    def error_count(self) -> int:
        return sum(
            1 for d in self.diagnostics if d.severity and d.severity.is_error()
        )


# ═══════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════

# Raw sexpdata output
Sexp = Any  # Union[list, Symbol, str, int, float]

_current_file: str = "<string>"

# Spellings a (float ...) payload may use for values without a numeral
_NON_FINITE = frozenset({"inf", "infinity", "nan"})


def _error(message: str) -> TreeFormatError:
    return TreeFormatError(message, span=SourceSpan(file=_current_file))


def _sym_name(s: Sexp) -> str:
    """Extract the string name from a ``sexpdata.Symbol``, or raise."""
    if isinstance(s, Symbol):
        return str(s)
    raise _error(f"Expected symbol, got {type(s).__name__}: {s!r}")


def _expect_list(s: Sexp, *, min_len: int = 0, tag: Optional[str] = None) -> list:
    """Assert that *s* is a list, optionally with a minimum length and head tag."""
    if not isinstance(s, list):
        raise _error(
            f"Expected list{f' ({tag} ...)' if tag else ''}, "
            f"got {type(s).__name__}: {s!r}"
        )
    if len(s) < min_len:
        raise _error(
            f"List too short: expected at least {min_len} elements, "
            f"got {len(s)}: {s!r}"
        )
    if tag is not None and _head(s) != tag:
        raise _error(f"Expected ({tag} ...), got ({_head(s)} ...)")
    return s


def _expect_len(s: list, *lengths: int) -> None:
    if len(s) not in lengths:
        raise _error(f"Wrong number of operands in ({_head(s)} ...): {s!r}")


def _head(s: list) -> str:
    """Return the head symbol name of a list form ``(tag ...)``."""
    if not s:
        raise _error("Unexpected empty list")
    return _sym_name(s[0])


def _as_str(s: Sexp) -> str:
    """Coerce *s* to a Python ``str`` – accepts Symbol or string literal."""
    if isinstance(s, Symbol):
        return str(s)
    if isinstance(s, str):
        return s
    raise _error(f"Expected string or symbol, got {type(s).__name__}: {s!r}")


def _as_string_literal(s: Sexp) -> str:
    if isinstance(s, str) and not isinstance(s, Symbol):
        return s
    raise _error(f"Expected string literal, got {type(s).__name__}: {s!r}")


def _as_int(s: Sexp) -> int:
    if isinstance(s, int) and not isinstance(s, bool):
        return s
    raise _error(f"Expected integer, got {type(s).__name__}: {s!r}")


def _as_float(s: Sexp) -> float:
    if isinstance(s, (int, float)) and not isinstance(s, bool):
        return to_f32(float(s))
    if isinstance(s, Symbol) and str(s).lower().lstrip("+-") in _NON_FINITE:
        return float(str(s))
    raise _error(f"Expected number, got {type(s).__name__}: {s!r}")


def _is_number(s: Sexp) -> bool:
    return isinstance(s, (int, float)) and not isinstance(s, bool)


def _as_type(s: Sexp) -> A.LSLType:
    try:
        return A.LSLType.from_name(_as_str(s))
    except ValueError as exc:
        raise _error(str(exc)) from None


def _as_scope(s: Sexp) -> A.SymbolScope:
    name = _as_str(s)
    try:
        return A.SymbolScope[name.upper()]
    except KeyError:
        raise _error(f"Unknown symbol scope: {name!r}") from None


# ═══════════════════════════════════════════════════════════════════════
#  Dispatch registry
# ═══════════════════════════════════════════════════════════════════════

_EXPR_DISPATCH: Dict[str, Callable[[list], A.Expression]] = {}
_STMT_DISPATCH: Dict[str, Callable[[list], A.Statement]] = {}


def _register(table: dict, *tags: str):
    """Decorator: register a parser function under each of *tags* in *table*."""
    def deco(fn):
        for tag in tags:
            table[tag] = fn
        return fn
    return deco


# ═══════════════════════════════════════════════════════════════════════
#  Expressions
# ═══════════════════════════════════════════════════════════════════════

def _parse_expr(s: Sexp) -> A.Expression:
    form = _expect_list(s, min_len=1)
    tag = _head(form)
    handler = _EXPR_DISPATCH.get(tag)
    if handler is None:
        raise TreeFormatError(
            f"Unknown expression form ({tag} ...)",
            code=LslPyErrorCodes.UNKNOWN_FORM,
            span=SourceSpan(file=_current_file),
        )
    return handler(form)


@_register(_EXPR_DISPATCH, "int")
def _parse_int(s: list) -> A.IntegerConstant:
    _expect_len(s, 2)
    return A.IntegerConstant(_as_int(s[1]))


@_register(_EXPR_DISPATCH, "float")
def _parse_float(s: list) -> A.FloatConstant:
    _expect_len(s, 2)
    return A.FloatConstant(_as_float(s[1]))


@_register(_EXPR_DISPATCH, "string")
def _parse_string(s: list) -> A.StringConstant:
    _expect_len(s, 2)
    return A.StringConstant(_as_string_literal(s[1]))


@_register(_EXPR_DISPATCH, "key")
def _parse_key(s: list) -> A.KeyConstant:
    _expect_len(s, 2)
    return A.KeyConstant(_as_string_literal(s[1]))


@_register(_EXPR_DISPATCH, "vector")
def _parse_vector(s: list) -> Union[A.VectorConstant, A.VectorExpression]:
    _expect_len(s, 4)
    if all(_is_number(c) for c in s[1:]):
        return A.VectorConstant(tuple(_as_float(c) for c in s[1:]))
    return A.VectorExpression(tuple(_parse_expr(c) for c in s[1:]))


@_register(_EXPR_DISPATCH, "quaternion", "rotation")
def _parse_quaternion(s: list) -> Union[A.QuaternionConstant, A.QuaternionExpression]:
    _expect_len(s, 5)
    if all(_is_number(c) for c in s[1:]):
        return A.QuaternionConstant(tuple(_as_float(c) for c in s[1:]))
    return A.QuaternionExpression(tuple(_parse_expr(c) for c in s[1:]))


@_register(_EXPR_DISPATCH, "list")
def _parse_list(s: list) -> Union[A.ListConstant, A.ListExpression]:
    elements = tuple(_parse_expr(e) for e in s[1:])
    if all(isinstance(e, A.CONSTANT_KINDS) for e in elements):
        return A.ListConstant(elements)
    return A.ListExpression(elements)


@_register(_EXPR_DISPATCH, "cast")
def _parse_cast(s: list) -> A.TypecastExpression:
    _expect_len(s, 3)
    return A.TypecastExpression(_as_type(s[1]), _parse_expr(s[2]))


@_register(_EXPR_DISPATCH, "call")
def _parse_call(s: list) -> A.FunctionCall:
    _expect_list(s, min_len=4)
    symbol = A.Symbol(_as_str(s[1]), _as_type(s[3]), _as_scope(s[2]))
    return A.FunctionCall(symbol, tuple(_parse_expr(a) for a in s[4:]))


@_register(_EXPR_DISPATCH, "ref")
def _parse_ref(s: list) -> A.LValue:
    _expect_len(s, 4, 5)
    symbol = A.Symbol(_as_str(s[1]), _as_type(s[3]), _as_scope(s[2]))
    member = None
    if len(s) == 5:
        try:
            member = A.CoordMember.from_name(_as_str(s[4]))
        except ValueError as exc:
            raise _error(str(exc)) from None
    return A.LValue(symbol, member)


def _parse_binary(s: list) -> A.BinaryExpression:
    op = A.BinaryOp(_head(s))
    if op.is_assignment:
        # Assignments are typed by their target
        _expect_len(s, 3)
        lhs = _parse_expr(s[1])
        if not isinstance(lhs, A.LValue):
            raise _error(f"Assignment target must be a ref: {s[1]!r}")
        return A.BinaryExpression(op, lhs, _parse_expr(s[2]), lhs.type)
    _expect_len(s, 4)
    return A.BinaryExpression(op, _parse_expr(s[2]), _parse_expr(s[3]), _as_type(s[1]))


for _op in A.BinaryOp:
    if _op is not A.BinaryOp.SUB:
        _EXPR_DISPATCH[_op.value] = _parse_binary


@_register(_EXPR_DISPATCH, "-")
def _parse_minus(s: list) -> Union[A.BinaryExpression, A.UnaryExpression]:
    """``(- TYPE E)`` is negation, ``(- TYPE L R)`` subtraction."""
    if len(s) == 4:
        return _parse_binary(s)
    return _parse_unary(s)


@_register(_EXPR_DISPATCH, "~", "!")
def _parse_unary(s: list) -> A.UnaryExpression:
    _expect_len(s, 3)
    return A.UnaryExpression(A.UnaryOp(_head(s)), _parse_expr(s[2]), _as_type(s[1]))


@_register(_EXPR_DISPATCH, "pre++", "pre--", "post++", "post--")
def _parse_step(s: list) -> A.UnaryExpression:
    _expect_len(s, 2)
    target = _parse_expr(s[1])
    if not isinstance(target, A.LValue):
        raise _error(f"{_head(s)} needs a ref operand: {s[1]!r}")
    return A.UnaryExpression(A.UnaryOp(_head(s)), target, target.type)


@_register(_EXPR_DISPATCH, "print")
def _parse_print(s: list) -> A.PrintExpression:
    _expect_len(s, 2)
    return A.PrintExpression(_parse_expr(s[1]))


@_register(_EXPR_DISPATCH, "paren")
def _parse_paren(s: list) -> A.ParenthesisExpression:
    _expect_len(s, 2)
    return A.ParenthesisExpression(_parse_expr(s[1]))


@_register(_EXPR_DISPATCH, "bool")
def _parse_bool(s: list) -> A.BoolConversion:
    _expect_len(s, 2)
    return A.BoolConversion(_parse_expr(s[1]))


# ═══════════════════════════════════════════════════════════════════════
#  Statements
# ═══════════════════════════════════════════════════════════════════════

def _parse_stmt(s: Sexp) -> A.Statement:
    form = _expect_list(s, min_len=1)
    tag = _head(form)
    handler = _STMT_DISPATCH.get(tag)
    if handler is None:
        raise TreeFormatError(
            f"Unknown statement form ({tag} ...)",
            code=LslPyErrorCodes.UNKNOWN_FORM,
            span=SourceSpan(file=_current_file),
        )
    return handler(form)


def _parse_body(forms: List[Sexp]) -> A.CompoundStatement:
    return A.CompoundStatement(tuple(_parse_stmt(f) for f in forms))


def _parse_expr_list(s: Sexp) -> Tuple[A.Expression, ...]:
    return tuple(_parse_expr(e) for e in _expect_list(s))


@_register(_STMT_DISPATCH, "nop")
def _parse_nop(s: list) -> A.NopStatement:
    _expect_len(s, 1)
    return A.NopStatement()


@_register(_STMT_DISPATCH, "block")
def _parse_block(s: list) -> A.CompoundStatement:
    return _parse_body(s[1:])


@_register(_STMT_DISPATCH, "expr")
def _parse_expr_stmt(s: list) -> A.ExpressionStatement:
    _expect_len(s, 2)
    return A.ExpressionStatement(_parse_expr(s[1]))


@_register(_STMT_DISPATCH, "decl")
def _parse_decl(s: list) -> A.Declaration:
    _expect_len(s, 3, 4)
    symbol = A.Symbol(_as_str(s[1]), _as_type(s[2]), A.SymbolScope.LOCAL)
    initializer = _parse_expr(s[3]) if len(s) == 4 else None
    return A.Declaration(symbol, initializer)


@_register(_STMT_DISPATCH, "if")
def _parse_if(s: list) -> A.IfStatement:
    _expect_len(s, 3, 4)
    else_branch = _parse_stmt(s[3]) if len(s) == 4 else None
    return A.IfStatement(_parse_expr(s[1]), _parse_stmt(s[2]), else_branch)


@_register(_STMT_DISPATCH, "for")
def _parse_for(s: list) -> A.ForStatement:
    _expect_len(s, 5)
    return A.ForStatement(
        init=_parse_expr_list(s[1]),
        condition=_parse_expr(s[2]),
        increment=_parse_expr_list(s[3]),
        body=_parse_stmt(s[4]),
    )


@_register(_STMT_DISPATCH, "while")
def _parse_while(s: list) -> A.WhileStatement:
    _expect_len(s, 3)
    return A.WhileStatement(_parse_expr(s[1]), _parse_stmt(s[2]))


@_register(_STMT_DISPATCH, "do")
def _parse_do(s: list) -> A.DoStatement:
    _expect_len(s, 3)
    return A.DoStatement(_parse_stmt(s[1]), _parse_expr(s[2]))


@_register(_STMT_DISPATCH, "jump")
def _parse_jump(s: list) -> A.JumpStatement:
    _expect_len(s, 2)
    return A.JumpStatement(_as_str(s[1]))


@_register(_STMT_DISPATCH, "label")
def _parse_label(s: list) -> A.LabelStatement:
    _expect_len(s, 2)
    return A.LabelStatement(_as_str(s[1]))


@_register(_STMT_DISPATCH, "return")
def _parse_return(s: list) -> A.ReturnStatement:
    _expect_len(s, 1, 2)
    return A.ReturnStatement(_parse_expr(s[1]) if len(s) == 2 else None)


@_register(_STMT_DISPATCH, "state")
def _parse_state_change(s: list) -> A.StateStatement:
    _expect_len(s, 2)
    return A.StateStatement(_as_str(s[1]))


# ═══════════════════════════════════════════════════════════════════════
#  Top level
# ═══════════════════════════════════════════════════════════════════════

def _parse_params(s: Sexp) -> Tuple[A.Parameter, ...]:
    params = []
    for p in _expect_list(s):
        p = _expect_list(p, min_len=2)
        _expect_len(p, 2)
        params.append(A.Parameter(_as_str(p[0]), _as_type(p[1])))
    return tuple(params)


def _parse_global(s: list) -> A.GlobalVariable:
    _expect_len(s, 3, 4)
    symbol = A.Symbol(_as_str(s[1]), _as_type(s[2]), A.SymbolScope.GLOBAL)
    initializer = _parse_expr(s[3]) if len(s) == 4 else None
    return A.GlobalVariable(symbol, initializer)


def _parse_function(s: list) -> A.GlobalFunction:
    _expect_list(s, min_len=4)
    return A.GlobalFunction(
        name=_as_str(s[1]),
        return_type=_as_type(s[2]),
        parameters=_parse_params(s[3]),
        body=_parse_body(s[4:]),
    )


def _parse_event(s: Sexp) -> A.EventHandler:
    form = _expect_list(s, min_len=3, tag="event")
    return A.EventHandler(
        name=_as_str(form[1]),
        parameters=_parse_params(form[2]),
        body=_parse_body(form[3:]),
    )


def _parse_state(s: list) -> A.State:
    _expect_list(s, min_len=2)
    return A.State(
        name=_as_str(s[1]),
        handlers=tuple(_parse_event(e) for e in s[2:]),
    )


def _parse_script(s: Sexp) -> A.Script:
    form = _expect_list(s, min_len=1, tag="script")
    globals_: List[Union[A.GlobalVariable, A.GlobalFunction]] = []
    states: List[A.State] = []
    for item in form[1:]:
        item = _expect_list(item, min_len=1)
        tag = _head(item)
        if tag == "global":
            globals_.append(_parse_global(item))
        elif tag == "function":
            globals_.append(_parse_function(item))
        elif tag == "state":
            states.append(_parse_state(item))
        else:
            raise TreeFormatError(
                f"Unknown script item ({tag} ...)",
                code=LslPyErrorCodes.UNKNOWN_FORM,
                span=SourceSpan(file=_current_file),
            )
    return A.Script(tuple(globals_), tuple(states))


def _parse_diagnostics(s: list, reporter: ErrorReporter) -> None:
    for d in s[1:]:
        d = _expect_list(d, min_len=4)
        _expect_len(d, 4)
        kind = _head(d)
        if kind == "error":
            report = reporter.error
        elif kind == "warning":
            report = reporter.warning
        else:
            raise _error(f"Unknown diagnostic kind: {kind!r}")
        report(_as_string_literal(d[3]), _as_int(d[1]), _as_int(d[2]))


class _DumpParser(sexpdata.Parser):
    """``sexpdata.Parser`` that only reads numerals as numbers.

    The stock atom reader hands every token to ``int()``/``float()``, which
    also accept ``nan``, ``inf`` and ``Infinity``.  Those are legal LSL
    identifiers, so only tokens that start like a numeral are converted.
    """

    def atom(self, token):
        first = token[:1]
        if first.isdigit() or (
            first in "+-." and len(token) > 1 and (token[1].isdigit() or token[1] == ".")
        ):
            return super().atom(token)
        return Symbol(token)


def _load(text: str) -> List[Sexp]:
    # nil/t must stay plain symbols
    try:
        return _DumpParser(text, nil=None, true=None, false=None).parse()
    except TreeFormatError:
        raise
    except Exception as e:
        raise _error(f"S-expression syntax error: {e}") from e


# ═══════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════

def parse(text: str, filename: str = "<string>") -> CompilationUnit:
    """Load a complete tree dump.

    The dump holds at most one ``(diagnostics ...)`` form and at most one
    ``(script ...)`` form.  A dump whose front end reported errors may have
    no script at all.

    Raises
    ------
    TreeFormatError
        If the input is malformed or contains unrecognized forms.
    """
    global _current_file
    _current_file = filename

    script: Optional[A.Script] = None
    reporter = ErrorReporter(filename)
    for form in _load(text):
        form = _expect_list(form, min_len=1)
        tag = _head(form)
        if tag == "diagnostics":
            _parse_diagnostics(form, reporter)
        elif tag == "script":
            if script is not None:
                raise _error("More than one (script ...) form")
            script = _parse_script(form)
        else:
            raise TreeFormatError(
                f"Unknown top-level form ({tag} ...)",
                code=LslPyErrorCodes.UNKNOWN_FORM,
                span=SourceSpan(file=filename),
            )

    unit = CompilationUnit(script, tuple(reporter.diagnostics))
    if script is None and unit.error_count == 0:
        raise _error("Dump contains no (script ...) form")
    logger.debug(
        "Loaded %s: %d diagnostic(s), script=%s",
        filename, len(unit.diagnostics), script is not None,
    )
    return unit


def parse_file(path: Union[str, Path]) -> CompilationUnit:
    """Read and load a tree dump file."""
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    return parse(text, filename=str(p))


def _parse_single(text: str, parse_fn: Callable[[Sexp], Any]) -> Any:
    global _current_file
    _current_file = "<string>"
    forms = _load(text)
    if len(forms) != 1:
        raise _error(f"Expected exactly one form, got {len(forms)}")
    return parse_fn(forms[0])


def parse_expression(text: str) -> A.Expression:
    """Load one standalone expression form, e.g. ``(+ integer (int 1) (int 2))``."""
    return _parse_single(text, _parse_expr)


def parse_statement(text: str) -> A.Statement:
    """Load one standalone statement form, e.g. ``(return (int 0))``."""
    return _parse_single(text, _parse_stmt)
