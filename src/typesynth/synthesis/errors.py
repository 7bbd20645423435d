"""Errors raised by the synthesis engine.

NoSolutionFound and TimedOut are the ordinary ways a search ends without a
program; the caller can retry with a larger context or budget. The other
three abort a search: TypeInterpretationError and InvariantViolation signal
an engine bug, OperationalError a broken test oracle.

Every search error carries the call's Instrumentation in `stats` once the
engine has one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from typesynth.errors import ErrorCategory, TypesynthError

if TYPE_CHECKING:
    from typesynth.synthesis.terms import Term
    from typesynth.synthesis.types import Instrumentation


class SynthesisError(TypesynthError):
    """Base class for synthesis failures."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        suggestion: str | None = None,
        context: dict[str, Any] | None = None,
        recoverable: bool = True,
        stats: Instrumentation | None = None,
    ):
        super().__init__(message, category, suggestion, context, recoverable)
        self.stats = stats


class TypeInterpretationError(SynthesisError):
    """The interpreter met a term it cannot classify."""

    def __init__(self, message: str, term: Term | None = None):
        super().__init__(
            message,
            category=ErrorCategory.INTERNAL,
            context={"term": repr(term)} if term is not None else None,
            recoverable=False,
        )
        self.term = term


class InvariantViolation(SynthesisError):
    """An internal bookkeeping invariant of the search was broken."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(
            message,
            category=ErrorCategory.INTERNAL,
            context=context,
            recoverable=False,
        )


class NoSolutionFound(SynthesisError):
    """The queue emptied without a passing program."""

    def __init__(self, message: str = "No candidates found", stats: Instrumentation | None = None):
        super().__init__(
            message,
            category=ErrorCategory.SEARCH,
            suggestion="Increase max_size, add literals to the pools or extend the catalog",
            stats=stats,
        )


class TimedOut(SynthesisError):
    """The wall-clock budget ran out."""

    def __init__(self, timeout: float, stats: Instrumentation | None = None):
        super().__init__(
            f"Synthesis timed out after {timeout}s",
            category=ErrorCategory.TIMEOUT,
            suggestion="Increase the timeout or lower max_size",
            context={"timeout": timeout},
            stats=stats,
        )
        self.timeout = timeout


class OperationalError(SynthesisError):
    """The test oracle itself failed (not the candidate under test)."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(
            message,
            category=ErrorCategory.EXTERNAL,
            suggestion="Check the Python executable used to run candidates",
            context=context,
            recoverable=False,
        )
