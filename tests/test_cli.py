# tests/test_cli.py
"""
Tests for the lslpy command-line driver.
"""

import io
import logging

import pytest

from lslpy import __version__
from lslpy.main import EXIT_ERROR, EXIT_OK, main
from tests.conftest import (
    DIAGNOSTICS_DUMP,
    GLOBALS_DUMP,
    MINIMAL_DUMP,
    MINIMAL_EXPECTED,
    compile_check,
)


class TestCliSuccess:

    def test_file_to_file(self, dump_file, tmp_path):
        src = dump_file(MINIMAL_DUMP)
        out = tmp_path / "script.py"
        assert main([str(src), str(out)]) == EXIT_OK
        assert out.read_text(encoding="utf-8") == MINIMAL_EXPECTED

    def test_stdin_to_stdout(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(GLOBALS_DUMP))
        assert main(["-", "-"]) == EXIT_OK
        code = capsys.readouterr().out
        assert "class Script(BaseLSLScript):" in code
        compile_check(code)

    def test_runtime_module_option(self, dump_file, capsys):
        src = dump_file(MINIMAL_DUMP)
        assert main([str(src), "-", "--runtime-module", "other_runtime"]) == EXIT_OK
        assert capsys.readouterr().out.startswith("from other_runtime import *\n")

    def test_indent_option(self, dump_file, capsys):
        src = dump_file(MINIMAL_DUMP)
        assert main([str(src), "-", "--indent", "2"]) == EXIT_OK
        assert "\n  def __init__(self):\n    super().__init__()\n" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--version"])
        assert info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestCliFailures:

    def test_front_end_errors_are_exit_status(self, dump_file, tmp_path, caplog):
        src = dump_file(DIAGNOSTICS_DUMP, name="bad.sexp")
        out = tmp_path / "bad.py"
        with caplog.at_level(logging.ERROR, logger="lslpy"):
            assert main([str(src), str(out)]) == 2
        assert not out.exists()
        assert "`foo` is undeclared" in caplog.text

    def test_warnings_do_not_block(self, dump_file, tmp_path):
        src = dump_file('(diagnostics (warning 1 1 "hmm"))' + MINIMAL_DUMP)
        out = tmp_path / "ok.py"
        assert main([str(src), str(out)]) == EXIT_OK
        assert out.exists()

    def test_missing_input(self, tmp_path, caplog):
        with caplog.at_level(logging.ERROR, logger="lslpy"):
            status = main([str(tmp_path / "missing.sexp"), str(tmp_path / "x.py")])
        assert status == EXIT_ERROR
        assert "couldn't open" in caplog.text
        assert "[LSLPY-2002]" in caplog.text

    def test_malformed_input(self, dump_file, tmp_path, caplog):
        src = dump_file("(script (state default")
        with caplog.at_level(logging.ERROR, logger="lslpy"):
            assert main([str(src), str(tmp_path / "x.py")]) == EXIT_ERROR
        assert "LSLPY-2000" in caplog.text

    def test_unwritable_output(self, dump_file, tmp_path, caplog):
        src = dump_file(MINIMAL_DUMP)
        out = tmp_path / "no" / "such" / "dir" / "x.py"
        with caplog.at_level(logging.ERROR, logger="lslpy"):
            assert main([str(src), str(out)]) == EXIT_ERROR
        assert f"Couldn't open '{out}'" in caplog.text

    def test_untranslatable_tree(self, dump_file, tmp_path, caplog):
        src = dump_file(
            "(script (state default (event state_entry ()"
            " (expr (cast error (int 1))))))"
        )
        with caplog.at_level(logging.ERROR, logger="lslpy"):
            assert main([str(src), str(tmp_path / "x.py")]) == EXIT_ERROR
        assert "LSLPY-4001" in caplog.text

    def test_bad_indent(self, dump_file):
        src = dump_file(MINIMAL_DUMP)
        with pytest.raises(SystemExit):
            main([str(src), "-", "--indent", "0"])
