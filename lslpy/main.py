#!/usr/bin/env python3
"""lslpy/main.py — CLI entry-point for the LSL → Python generator.

Usage examples
--------------
    # Translate a tree dump to a Python module
    lslpy script.lsl.sexp script.py

    # Read the dump from stdin, write the module to stdout
    lslc --dump-tree script.lsl | lslpy - -

    # Target a differently named runtime package
    lslpy script.lsl.sexp script.py --runtime-module my_runtime

Exit codes
----------
    0   Success.
    N   The front end reported N errors; nothing was generated.
    1   The input could not be read or the dump is malformed, the
        generator hit a node it cannot translate, or the output could not
        be written.

The module doubles as ``python -m lslpy`` via ``lslpy/__main__.py``.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from typing import Optional, Sequence

from lslpy import __version__
from lslpy.codegen import PythonGenerator
from lslpy.config import GeneratorConfig
from lslpy.errors import (
    CodeGenError,
    ErrorReporter,
    InputError,
    OutputError,
    TreeFormatError,
)
from lslpy.parser import parse

_log = logging.getLogger("lslpy")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INTERRUPTED: int = 130

STDIO_MARKER = "-"

_HANDLER_NAME = "lslpy-cli"


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the root ``lslpy`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("lslpy")
    root.setLevel(level)
    # Repeated calls (tests, embedding) replace the previous CLI handler
    for old in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(old)
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(handler)


def _read_input(source: str) -> str:
    """Read the tree dump from *source* (``-`` → stdin)."""
    if source == STDIO_MARKER:
        return sys.stdin.read()
    try:
        with open(source, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as exc:
        raise InputError(source, cause=exc) from exc


def _build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="lslpy",
        description=(
            "Translate a typed LSL syntax tree dump into a Python module\n"
            "that runs on the lummao runtime."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              lslpy script.sexp script.py
              lslpy - -  < script.sexp > script.py
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )
    parser.add_argument(
        "input",
        help="Tree dump to translate, or '-' for stdin.",
    )
    parser.add_argument(
        "output",
        help="Python file to write, or '-' for stdout.",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=4,
        metavar="N",
        help="Spaces per indentation level (default: 4).",
    )
    parser.add_argument(
        "--runtime-module",
        default="lummao",
        metavar="MODULE",
        help="Module the generated code star-imports (default: lummao).",
    )
    return parser


# ===========================================================================
# Pipeline
# ===========================================================================

def run(args: argparse.Namespace) -> int:
    """Load, check, generate and write; return the exit status."""
    filename = "<stdin>" if args.input == STDIO_MARKER else args.input
    reporter = ErrorReporter(filename)
    try:
        unit = parse(_read_input(args.input), filename=filename)
    except (InputError, TreeFormatError) as exc:
        reporter.add_exception(exc)
        reporter.report()
        return EXIT_ERROR

    for diag in unit.diagnostics:
        reporter.add(diag)
    reporter.report()
    if reporter.has_errors():
        _log.info("Not generating code: %d error(s)", reporter.error_count)
        return reporter.error_count

    config = GeneratorConfig(
        indent=" " * args.indent,
        runtime_module=args.runtime_module,
    )
    try:
        generator = PythonGenerator(config)
    except ValueError as exc:
        _log.error("%s", exc)
        return EXIT_ERROR

    try:
        result = generator.generate(unit.script)
    except CodeGenError as exc:
        _log.error("%s", exc.to_gcc_format())
        return EXIT_ERROR

    _log.info(
        "Generated %s: %d global(s), %d function(s), %d handler(s)",
        result.class_name,
        len(result.globals),
        len(result.functions),
        len(result.handlers),
    )

    if args.output == STDIO_MARKER:
        sys.stdout.write(result.code)
        sys.stdout.flush()
        return EXIT_OK
    try:
        result.write_to_file(args.output)
    except OutputError as exc:
        _log.debug("write to %s failed: %s", exc.path, exc.cause)
        _log.error("%s", exc.error_message.message)
        return EXIT_ERROR
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the lslpy CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if args.indent < 1:
        parser.error("--indent must be at least 1")

    try:
        return run(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return EXIT_INTERRUPTED
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_ERROR
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
