"""lslpy — LSL to Python code generator.

Translates the typed syntax tree of a Linden Scripting Language script
into a Python module that runs on the ``lummao`` runtime library.

Submodules
----------
ast
    Immutable typed tree: closed type, scope, member and operator enums;
    expression, statement and top-level nodes.

parser
    Loader for the front end's S-expression tree dump.

codegen
    ``PythonGenerator`` (the tree → Python translator), ``CodeEmitter``
    and ``GeneratedScript``.

floats
    Exact binary32 float literal encoding.

errors
    Exception hierarchy, ``LSLPY-NNNN`` error codes and ``ErrorReporter``.

config
    ``GeneratorConfig``: names of runtime symbols and indentation.

main
    CLI entry-point: ``lslpy <input> <output>``.

Usage
-----
Library::

    from lslpy.parser import parse
    from lslpy.codegen import generate

    unit = parse(dump_text, filename="script.sexp")
    source = generate(unit.script)

Command-line::

    lslpy script.sexp script.py
"""

__version__ = "0.1.0"
