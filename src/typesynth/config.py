"""Configuration for typesynth runs."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field

from typesynth.synthesis.expansion import ExpansionLimits

EXECUTORS = ("subprocess", "inprocess")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS = ("text", "json")


@dataclass
class SynthesisConfig:
    """Settings for synthesizing functions from examples.

    Attributes:
        max_size: Largest program (in AST nodes) the search keeps
        timeout_seconds: Wall-clock budget per function
        max_pool_size: Literals kept per pool (strings, ints)
        max_literal_length: Longer strings are left out of the pool
        executor: How candidates are run against examples
        python: Interpreter for the subprocess executor
        example_timeout_seconds: Budget for running one example
        limits: Bounds on the template grammars
        log_level: Level for the typesynth logger
        log_format: "text" or "json"
    """

    max_size: int = 50
    timeout_seconds: float = 60
    max_pool_size: int = 20
    max_literal_length: int = 20
    executor: str = "subprocess"
    python: str = field(default_factory=lambda: sys.executable or "python3")
    example_timeout_seconds: float = 10
    limits: ExpansionLimits = field(default_factory=ExpansionLimits)
    log_level: str = "WARNING"
    log_format: str = "text"

    def validate(self) -> list[str]:
        """Validate the configuration and return any errors."""
        errors = []

        if self.max_size < 1:
            errors.append("max_size must be at least 1")
        if self.timeout_seconds <= 0:
            errors.append("timeout_seconds must be positive")
        if self.max_pool_size < 0:
            errors.append("max_pool_size must not be negative")
        if self.max_literal_length < 1:
            errors.append("max_literal_length must be at least 1")
        if self.executor not in EXECUTORS:
            errors.append(f"executor must be one of {', '.join(EXECUTORS)}")
        if self.example_timeout_seconds <= 0:
            errors.append("example_timeout_seconds must be positive")
        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        if self.log_format not in LOG_FORMATS:
            errors.append(f"log_format must be one of {', '.join(LOG_FORMATS)}")
        if self.limits.max_array_arity < 0:
            errors.append("limits.max_array_arity must not be negative")

        return errors
