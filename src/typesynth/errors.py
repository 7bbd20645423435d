"""Structured error handling with actionable feedback.

Every error typesynth raises on purpose derives from `TypesynthError`, which
carries a category, an optional suggestion and a recoverability flag.
`handle_error` turns any exception into an `ErrorResult` for reporting.

Usage:
    from typesynth.errors import TypesynthError, handle_error

    try:
        synthesizer.synthesize(spec)
    except Exception as e:
        result = handle_error(e)
        print(result.to_compact())
"""

from __future__ import annotations

import builtins
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Any


class ErrorCategory(Enum):
    """Categories of errors for appropriate handling."""

    FILE_NOT_FOUND = auto()  # Missing task or config files
    PARSE_ERROR = auto()  # Malformed task/config content
    CONFIG = auto()  # Bad configuration values
    VALIDATION = auto()  # Invalid input/state
    TIMEOUT = auto()  # Wall-clock budget exhausted
    SEARCH = auto()  # Search space exhausted
    EXTERNAL = auto()  # Oracle/executor process failures
    CANCELLED = auto()  # User cancellation
    INTERNAL = auto()  # Engine invariant violations


@dataclass
class ErrorResult:
    """Structured error result with context and suggestions."""

    category: ErrorCategory
    message: str
    original: Exception | None = None
    suggestion: str | None = None
    context: dict[str, Any] | None = None
    recoverable: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "category": self.category.name,
            "message": self.message,
            "suggestion": self.suggestion,
            "recoverable": self.recoverable,
            "context": self.context,
        }

    def to_compact(self) -> str:
        """Format as compact string."""
        parts = [f"[{self.category.name}] {self.message}"]
        if self.suggestion:
            parts.append(f"  Try: {self.suggestion}")
        return "\n".join(parts)


class TypesynthError(Exception):
    """Base exception for typesynth with structured error handling."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        suggestion: str | None = None,
        context: dict[str, Any] | None = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.category = category
        self.suggestion = suggestion
        self.context = context or {}
        self.recoverable = recoverable

    def to_result(self) -> ErrorResult:
        """Convert to ErrorResult."""
        return ErrorResult(
            category=self.category,
            message=str(self),
            original=self,
            suggestion=self.suggestion,
            context=self.context,
            recoverable=self.recoverable,
        )


class ConfigError(TypesynthError):
    """Configuration file or setting issue."""

    def __init__(
        self,
        message: str,
        file: str | Path | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(
            message,
            category=ErrorCategory.CONFIG,
            suggestion="Check typesynth.toml or pyproject.toml [tool.typesynth]",
            context={"file": str(file) if file else None, **(context or {})},
        )


class TaskFileError(TypesynthError):
    """A task file could not be read or does not have the expected shape."""

    def __init__(self, path: str | Path, detail: str = "", context: dict[str, Any] | None = None):
        msg = f"Invalid task file {path}"
        if detail:
            msg += f": {detail}"
        super().__init__(
            msg,
            category=ErrorCategory.PARSE_ERROR,
            suggestion='Expected a JSON list of {"name", "examples"} objects '
            'or {"functions": [...]}',
            context={"path": str(path), **(context or {})},
        )


# Error classification for exceptions raised outside typesynth
_ERROR_PATTERNS: list[tuple[type, ErrorCategory, str | None]] = [
    (builtins.FileNotFoundError, ErrorCategory.FILE_NOT_FOUND, "Check path exists"),
    (builtins.KeyboardInterrupt, ErrorCategory.CANCELLED, None),
    (builtins.TimeoutError, ErrorCategory.TIMEOUT, "Increase the timeout"),
    (builtins.OSError, ErrorCategory.EXTERNAL, None),
    (builtins.ValueError, ErrorCategory.VALIDATION, None),
    (builtins.TypeError, ErrorCategory.VALIDATION, None),
]


def handle_error(error: BaseException, context: dict[str, Any] | None = None) -> ErrorResult:
    """Convert any exception to a structured ErrorResult."""
    if isinstance(error, TypesynthError):
        result = error.to_result()
        if context:
            result.context = {**(result.context or {}), **context}
        return result

    for error_type, category, suggestion in _ERROR_PATTERNS:
        if isinstance(error, error_type):
            return ErrorResult(
                category=category,
                message=str(error),
                original=error if isinstance(error, Exception) else None,
                suggestion=suggestion,
                context=context,
                recoverable=True,
            )

    return ErrorResult(
        category=ErrorCategory.INTERNAL,
        message=str(error),
        original=error if isinstance(error, Exception) else None,
        suggestion="This may be a bug in the synthesis engine",
        context=context,
        recoverable=False,
    )


class ErrorCollector:
    """Collect multiple errors without stopping execution.

    Used for batch synthesis where every function is attempted and the
    failures are reported at the end.
    """

    def __init__(self):
        self.errors: list[ErrorResult] = []
        self.successes: int = 0

    def record(self, error: BaseException, context: dict[str, Any] | None = None) -> None:
        """Record an error."""
        self.errors.append(handle_error(error, context))

    def success(self) -> None:
        """Record a successful operation."""
        self.successes += 1

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def summary(self) -> str:
        """Get summary of collected errors."""
        total = self.successes + len(self.errors)
        if not self.errors:
            return f"All {total} functions synthesized"

        lines = [f"{self.successes}/{total} synthesized, {len(self.errors)} errors:"]
        for i, err in enumerate(self.errors[:10], 1):
            lines.append(f"  {i}. {err.to_compact()}")
        if len(self.errors) > 10:
            lines.append(f"  ... and {len(self.errors) - 10} more")
        return "\n".join(lines)
