# lslpy/errors.py
"""
lslpy Error Types and Reporting Module

Error handling for the LSL → Python generator and its driver.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│                          Error Hierarchy                                     │
├─────────────────────────────────────────────────────────────────────────────┤
│  LslPyError (base)                                                          │
│  ├── InputError        - Tree dump could not be read                        │
│  ├── TreeFormatError   - Malformed serialized syntax tree                   │
│  ├── CodeGenError      - Generation failures                                │
│  │   └── ContractViolation - Node/operator/type outside the closed sets     │
│  └── OutputError       - Destination could not be opened or written         │
└─────────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error has a code ``LSLPY-NNNN``:
  - 1000-1999: Front-end diagnostics
  - 2000-2999: Tree loading errors
  - 4000-4999: Code generation errors
  - 6000-6999: I/O errors
  - 9000-9999: Internal errors

A ``ContractViolation`` means the front end broke its contract (an
operator, type tag or node kind it promised never to produce); it is not
a diagnostic about the user's script.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR SEVERITY AND CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""

    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    def is_error(self) -> bool:
        """Check if this severity represents an error (not warning/info)."""
        return self in (ErrorSeverity.FATAL, ErrorSeverity.ERROR)


@unique
class ErrorPhase(Enum):
    """Pipeline phase where the error occurred."""

    FRONTEND = "frontend"
    LOAD = "load"
    CODEGEN = "codegen"
    OUTPUT = "output"
    INTERNAL = "internal"


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """Structured error code ``PREFIX-NNNN``."""

    __slots__ = ("prefix", "number", "phase", "default_severity")

    def __init__(
        self,
        prefix: str,
        number: int,
        phase: ErrorPhase,
        default_severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.phase.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class LslPyErrorCodes:
    """Predefined error codes."""

    # Front end (1000-1999)
    FRONTEND_ERROR = ErrorCode("LSLPY", 1000, ErrorPhase.FRONTEND)
    FRONTEND_WARNING = ErrorCode(
        "LSLPY", 1001, ErrorPhase.FRONTEND, ErrorSeverity.WARNING
    )

    # Tree loading (2000-2999)
    MALFORMED_TREE = ErrorCode("LSLPY", 2000, ErrorPhase.LOAD)
    UNKNOWN_FORM = ErrorCode("LSLPY", 2001, ErrorPhase.LOAD)
    INPUT_UNREADABLE = ErrorCode("LSLPY", 2002, ErrorPhase.LOAD)

    # Code generation (4000-4999)
    CODEGEN_FAILURE = ErrorCode("LSLPY", 4000, ErrorPhase.CODEGEN)
    CONTRACT_VIOLATION = ErrorCode(
        "LSLPY", 4001, ErrorPhase.CODEGEN, ErrorSeverity.FATAL
    )

    # Output (6000-6999)
    OUTPUT_UNWRITABLE = ErrorCode("LSLPY", 6000, ErrorPhase.OUTPUT)

    # Internal (9000-9999)
    INTERNAL_ERROR = ErrorCode(
        "LSLPY", 9000, ErrorPhase.INTERNAL, ErrorSeverity.FATAL
    )


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """A position in the LSL source, as the front end reported it."""

    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"

        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))

        return ":".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGE FORMATTING
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ErrorMessage:
    """A complete error message with all context."""

    code: ErrorCode
    message: str
    span: SourceSpan = field(default_factory=SourceSpan)
    severity: Optional[ErrorSeverity] = None  # None means use code's default
    hint: str = ""

    def __post_init__(self) -> None:
        if self.severity is None:
            self.severity = self.code.default_severity

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        severity = self.severity.value if self.severity else "error"
        lines = [f"{self.span}: {severity}: {self.message} [{self.code}]"]
        if self.hint:
            lines.append(f"hint: {self.hint}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_gcc_format()


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class LslPyError(Exception):
    """
    Base exception for all lslpy errors.

    Carries a structured ``ErrorMessage`` that can be pretty-printed.
    """

    default_code: ErrorCode = LslPyErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[BaseException] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.error_message = ErrorMessage(
            code=code or self.default_code,
            message=message,
            span=span or SourceSpan(),
            severity=severity,
            hint=hint,
        )
        self.cause = cause

    @property
    def code(self) -> ErrorCode:
        return self.error_message.code

    @property
    def span(self) -> SourceSpan:
        return self.error_message.span

    def to_gcc_format(self) -> str:
        return self.error_message.to_gcc_format()

    def __str__(self) -> str:
        return self.to_gcc_format()


class InputError(LslPyError):
    """The tree dump could not be read from its source."""

    default_code = LslPyErrorCodes.INPUT_UNREADABLE

    def __init__(self, path: str, cause: Optional[OSError] = None) -> None:
        reason = (cause.strerror or str(cause)) if cause is not None else ""
        super().__init__(
            f"couldn't open '{path}'" + (f": {reason}" if reason else ""),
            span=SourceSpan(file=path),
            cause=cause,
        )
        self.path = path


class TreeFormatError(LslPyError):
    """The serialized syntax tree could not be mapped to AST nodes."""

    default_code = LslPyErrorCodes.MALFORMED_TREE


class CodeGenError(LslPyError):
    """Error during code generation."""

    default_code = LslPyErrorCodes.CODEGEN_FAILURE


class ContractViolation(CodeGenError):
    """The generator met a node, operator or type outside its closed sets."""

    default_code = LslPyErrorCodes.CONTRACT_VIOLATION

    def __init__(self, message: str, node: Any = None, **kwargs: Any) -> None:
        super().__init__(
            message,
            hint="the tree violates the front-end contract",
            **kwargs,
        )
        self.node = node


class OutputError(LslPyError):
    """The generated program could not be written to its destination."""

    default_code = LslPyErrorCodes.OUTPUT_UNWRITABLE

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Couldn't open '{path}'", cause=cause)
        self.path = path


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR REPORTER
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorReporter:
    """
    Collects diagnostics and keeps the running error count.

    The driver's exit status is ``error_count``: generation only runs when
    it is zero.
    """

    def __init__(self, source_file: str = "") -> None:
        self.source_file = source_file
        self._messages: List[ErrorMessage] = []

    def add(self, message: ErrorMessage) -> None:
        self._messages.append(message)

    def error(
        self,
        message: str,
        line: int = 0,
        column: int = 0,
        code: ErrorCode = LslPyErrorCodes.FRONTEND_ERROR,
    ) -> None:
        self.add(ErrorMessage(
            code=code,
            message=message,
            span=SourceSpan(file=self.source_file, line=line, column=column),
        ))

    def warning(
        self,
        message: str,
        line: int = 0,
        column: int = 0,
        code: ErrorCode = LslPyErrorCodes.FRONTEND_WARNING,
    ) -> None:
        self.add(ErrorMessage(
            code=code,
            message=message,
            span=SourceSpan(file=self.source_file, line=line, column=column),
            severity=ErrorSeverity.WARNING,
        ))

    def add_exception(self, exc: LslPyError) -> None:
        self.add(exc.error_message)

    @property
    def diagnostics(self) -> List[ErrorMessage]:
        return list(self._messages)

    @property
    def error_count(self) -> int:
        return sum(1 for m in self._messages if m.severity and m.severity.is_error())

    @property
    def warning_count(self) -> int:
        return sum(1 for m in self._messages if m.severity is ErrorSeverity.WARNING)

    def has_errors(self) -> bool:
        return self.error_count > 0

    def report(self) -> None:
        """Log every collected diagnostic at a level matching its severity."""
        for msg in self._messages:
            if msg.severity and msg.severity.is_error():
                logger.error("%s", msg.to_gcc_format())
            elif msg.severity is ErrorSeverity.WARNING:
                logger.warning("%s", msg.to_gcc_format())
            else:
                logger.info("%s", msg.to_gcc_format())
        if self._messages:
            logger.info(
                "%d error(s), %d warning(s)", self.error_count, self.warning_count
            )
