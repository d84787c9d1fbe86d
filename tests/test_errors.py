# tests/test_errors.py
"""
Tests for error codes, formatting and the diagnostic reporter.
"""

import logging

from lslpy.errors import (
    CodeGenError,
    ContractViolation,
    ErrorCode,
    ErrorMessage,
    ErrorPhase,
    ErrorReporter,
    ErrorSeverity,
    InputError,
    LslPyError,
    LslPyErrorCodes,
    OutputError,
    SourceSpan,
    TreeFormatError,
)


class TestErrorCode:

    def test_format(self):
        assert str(LslPyErrorCodes.MALFORMED_TREE) == "LSLPY-2000"

    def test_equality(self):
        assert LslPyErrorCodes.FRONTEND_ERROR == "LSLPY-1000"
        assert LslPyErrorCodes.FRONTEND_ERROR == ErrorCode("LSLPY", 1000, ErrorPhase.LOAD)
        assert LslPyErrorCodes.FRONTEND_ERROR != LslPyErrorCodes.FRONTEND_WARNING

    def test_default_severity(self):
        assert LslPyErrorCodes.FRONTEND_WARNING.default_severity is ErrorSeverity.WARNING
        assert LslPyErrorCodes.CONTRACT_VIOLATION.default_severity is ErrorSeverity.FATAL


class TestSeverity:

    def test_is_error(self):
        assert ErrorSeverity.FATAL.is_error()
        assert ErrorSeverity.ERROR.is_error()
        assert not ErrorSeverity.WARNING.is_error()


class TestSourceSpan:

    def test_full(self):
        assert str(SourceSpan("a.lsl", 3, 5)) == "a.lsl:3:5"

    def test_partial(self):
        assert str(SourceSpan("a.lsl")) == "a.lsl"
        assert str(SourceSpan()) == "<unknown location>"


class TestErrorMessage:

    def test_gcc_format(self):
        msg = ErrorMessage(
            code=LslPyErrorCodes.FRONTEND_ERROR,
            message="`x` is undeclared",
            span=SourceSpan("a.lsl", 2, 4),
        )
        assert msg.to_gcc_format() == "a.lsl:2:4: error: `x` is undeclared [LSLPY-1000]"

    def test_hint_line(self):
        msg = ErrorMessage(LslPyErrorCodes.INTERNAL_ERROR, "boom", hint="report it")
        assert msg.to_gcc_format().splitlines()[1] == "hint: report it"


class TestExceptions:

    def test_hierarchy(self):
        assert issubclass(ContractViolation, CodeGenError)
        for cls in (InputError, TreeFormatError, CodeGenError, OutputError):
            assert issubclass(cls, LslPyError)

    def test_default_codes(self):
        assert TreeFormatError("x").code == LslPyErrorCodes.MALFORMED_TREE
        assert CodeGenError("x").code == LslPyErrorCodes.CODEGEN_FAILURE

    def test_contract_violation(self):
        node = object()
        exc = ContractViolation("bad operator", node=node)
        assert exc.node is node
        assert exc.error_message.severity is ErrorSeverity.FATAL
        assert "hint:" in str(exc)

    def test_output_error(self):
        cause = PermissionError("denied")
        exc = OutputError("/x/y.py", cause=cause)
        assert exc.error_message.message == "Couldn't open '/x/y.py'"
        assert exc.path == "/x/y.py"
        assert exc.cause is cause

    def test_input_error(self):
        cause = FileNotFoundError(2, "No such file or directory")
        exc = InputError("gone.sexp", cause=cause)
        assert exc.code == LslPyErrorCodes.INPUT_UNREADABLE
        assert exc.span.file == "gone.sexp"
        assert exc.error_message.message == (
            "couldn't open 'gone.sexp': No such file or directory"
        )
        assert exc.to_gcc_format().endswith("[LSLPY-2002]")


class TestErrorReporter:

    def test_counts(self):
        reporter = ErrorReporter("a.lsl")
        reporter.error("one", 1, 1)
        reporter.warning("two", 2, 1)
        reporter.error("three", 3, 1)
        assert reporter.error_count == 2
        assert reporter.warning_count == 1
        assert reporter.has_errors()
        assert [m.message for m in reporter.diagnostics] == ["one", "two", "three"]
        assert reporter.diagnostics[1].span == SourceSpan("a.lsl", 2, 1)

    def test_empty(self):
        reporter = ErrorReporter()
        assert reporter.error_count == 0
        assert not reporter.has_errors()

    def test_add_exception(self):
        reporter = ErrorReporter()
        reporter.add_exception(TreeFormatError("broken"))
        assert reporter.error_count == 1
        assert reporter.diagnostics[0].code == LslPyErrorCodes.MALFORMED_TREE

    def test_report_logs(self, caplog):
        reporter = ErrorReporter("a.lsl")
        reporter.error("bad thing", 4, 2)
        reporter.warning("odd thing", 5, 1)
        with caplog.at_level(logging.INFO, logger="lslpy"):
            reporter.report()
        assert "a.lsl:4:2: error: bad thing [LSLPY-1000]" in caplog.text
        assert "a.lsl:5:1: warning: odd thing [LSLPY-1001]" in caplog.text
        assert "1 error(s), 1 warning(s)" in caplog.text
