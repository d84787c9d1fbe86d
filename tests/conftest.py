# tests/conftest.py
"""
Shared tree dumps and helpers for the lslpy test suite.
"""

import sys
import types

import pytest

from lslpy.codegen import PythonGenerator
from lslpy.parser import parse, parse_expression, parse_statement


# ---------------------------------------------------------------------------
# Tree dumps
# ---------------------------------------------------------------------------

MINIMAL_DUMP = """
(script
  (state default
    (event state_entry ())))
"""

MINIMAL_EXPECTED = (
    "from lummao import *\n"
    "\n"
    "\n"
    "class Script(BaseLSLScript):\n"
    "\n"
    "    def __init__(self):\n"
    "        super().__init__()\n"
    "\n"
    "    @with_goto\n"
    "    def edefaultstate_entry(self) -> None:\n"
    "        pass\n"
    "\n"
)

GLOBALS_DUMP = """
; globals, a user function and two handlers
(script
  (global counter integer (int 5))
  (global pos vector)
  (global greeting string (string "hi"))
  (function add integer ((a integer) (b integer))
    (return (+ integer (ref a local integer) (ref b local integer))))
  (state default
    (event state_entry ()
      (expr (= (ref counter global integer)
               (call add global integer (int 1) (int 2)))))
    (event touch_start ((num integer))
      (expr (call llSay builtin none (int 0) (ref greeting global string))))))
"""

CONTROL_FLOW_DUMP = """
(script
  (function loops none ()
    (decl i integer)
    (for ((= (ref i local integer) (int 0)))
         (bool (< integer (ref i local integer) (int 10)))
         ((post++ (ref i local integer)))
      (block
        (expr (call llOwnerSay builtin none (cast string (ref i local integer))))))
    (while (bool (ref i local integer))
      (expr (post-- (ref i local integer))))
    (do (block) (bool (int 0)))
    (if (bool (== integer (ref i local integer) (int 3)))
        (jump done)
        (block (return)))
    (label done))
  (state default
    (event state_entry ()
      (state other)))
  (state other
    (event state_entry ())))
"""

COORDINATES_DUMP = """
(script
  (global spot vector (vector 1 2 3))
  (global turn rotation)
  (state default
    (event state_entry ()
      (decl v vector (vector (float 0.5) (ref spot global vector y) (float 0)))
      (expr (= (ref v local vector x) (float 2)))
      (expr (+= (ref turn global rotation s) (float 1)))
      (expr (post++ (ref v local vector z)))
      (expr (call llOwnerSay builtin none
              (cast string (= (ref spot global vector z) (float 4))))))))
"""

EXPRESSION_USE_DUMP = """
(script
  (global total integer)
  (function bump integer ((step integer))
    (decl n integer (int 0))
    (if (bool (paren (= (ref n local integer) (ref step local integer))))
        (return (pre++ (ref total global integer))))
    (expr (*= (ref n local integer) (float 1.5)))
    (return (+ integer (post-- (ref n local integer)) (ref total global integer))))
  (state default
    (event timer ()
      (expr (print (call bump global integer (int 2)))))))
"""

GLOBAL_INIT_ORDER_DUMP = """
; later initializers read earlier globals
(script
  (global base integer (int 3))
  (global next integer (+ integer (ref base global integer) (int 1)))
  (global label string (cast string (ref next global integer)))
  (state default (event state_entry ())))
"""

SHADOWING_DUMP = """
; locals named after the builtin types typecast() and list literals use
(script
  (function parse_num integer ((int string))
    (decl str integer (cast integer (ref int local string)))
    (decl list list (list (ref str local integer)))
    (return (cast integer (cast string (ref str local integer)))))
  (state default (event state_entry ())))
"""

DIAGNOSTICS_DUMP = """
(diagnostics
  (error 3 7 "`foo` is undeclared")
  (warning 5 1 "unused variable `x`")
  (error 9 2 "type mismatch"))
"""

ALL_DUMPS = [
    MINIMAL_DUMP,
    GLOBALS_DUMP,
    CONTROL_FLOW_DUMP,
    COORDINATES_DUMP,
    EXPRESSION_USE_DUMP,
    GLOBAL_INIT_ORDER_DUMP,
    SHADOWING_DUMP,
]

ALL_DUMP_IDS = [
    "minimal",
    "globals",
    "control_flow",
    "coordinates",
    "expression_use",
    "global_init_order",
    "shadowing",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def gen_script(dump: str, config=None) -> str:
    """Load a dump and return the generated Python source."""
    return PythonGenerator(config).generate(parse(dump).script).code


def gen_expr(text: str, needed: bool = True) -> str:
    """Translate one expression form."""
    return PythonGenerator().visit_expression(parse_expression(text), needed=needed)


def gen_stmt(text: str) -> list:
    """Translate one statement form; return the emitted lines."""
    generator = PythonGenerator()
    generator.visit_statement(parse_statement(text))
    return generator.emitter.get_code().splitlines()


def compile_check(code: str) -> None:
    """Assert code is valid Python."""
    compile(code, "<test>", "exec")


@pytest.fixture
def dump_file(tmp_path):
    """Write a dump to a temporary file and return its path."""
    def _write(text: str, name: str = "script.sexp"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def run_generated(monkeypatch):
    """Execute generated code against a stand-in ``lummao`` module.

    Only the pieces the tests exercise are provided.  Returns a function
    that executes the code and instantiates its ``Script`` class.
    """
    runtime = types.ModuleType("lummao")

    class BaseLSLScript:
        def __init__(self):
            pass

    runtime.BaseLSLScript = BaseLSLScript
    runtime.with_goto = lambda fn: fn
    runtime.typecast = lambda value, to_type: to_type(value)
    runtime.radd = lambda rhs, lhs: lhs + rhs
    runtime.rsub = lambda rhs, lhs: lhs - rhs
    runtime.Key = str
    runtime.Vector = tuple
    runtime.Quaternion = tuple
    runtime.lslfuncs = types.SimpleNamespace()
    monkeypatch.setitem(sys.modules, "lummao", runtime)

    def _run(code: str):
        namespace = {}
        exec(compile(code, "<generated>", "exec"), namespace)
        return namespace["Script"]()
    return _run
