"""Core data types for a synthesis call.

- SynthesisContext: the read-only inputs of one call (environment, goal,
  literal pools, size bound, scoring, catalog)
- Instrumentation: counters owned by one call
- SearchResult: the program found plus the call's counters
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from typesynth.synthesis.catalog import SignatureCatalog, default_catalog
from typesynth.synthesis.lattice import Type
from typesynth.synthesis.terms import Term, program_size


@dataclass(frozen=True)
class LiteralPools:
    """Terminal literals the expander may use, in preference order."""

    strings: tuple[str, ...] = ()
    ints: tuple[int, ...] = ()

    @classmethod
    def of(cls, strings: list[str] | tuple[str, ...] = (), ints: list[int] | tuple[int, ...] = ()):
        return cls(tuple(strings), tuple(ints))

    def to_dict(self) -> dict[str, list[Any]]:
        return {"str": list(self.strings), "int": list(self.ints)}


@dataclass(frozen=True)
class SynthesisContext:
    """Inputs of one synthesis call.

    Attributes:
        env: Abstract environment, variable name -> type
        goal: Type the synthesized program must have
        pools: Literal terminals
        max_size: Largest program (in nodes) the search keeps
        score: Priority of a partial program; lower is explored first
        catalog: Method signatures for interpretation and expansion
    """

    env: Mapping[str, Type]
    goal: Type
    pools: LiteralPools = field(default_factory=LiteralPools)
    max_size: int = 50
    score: Callable[[Term], int] = program_size
    catalog: SignatureCatalog = field(default_factory=default_catalog)

    def __post_init__(self) -> None:
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    def summary(self) -> str:
        env = ", ".join(f"{name}: {t}" for name, t in self.env.items())
        return f"({env}) -> {self.goal}"


@dataclass
class Instrumentation:
    """Counters for one synthesis call.

    Attributes:
        example_count: Examples the oracle checks candidates against
        tested_programs: Oracle invocations
        eliminated_programs: Candidates rejected by type pruning
    """

    example_count: int = 0
    tested_programs: int = 0
    eliminated_programs: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "examples": self.example_count,
            "tested": self.tested_programs,
            "eliminated": self.eliminated_programs,
        }


@dataclass
class SearchResult:
    """A passing Closed program and the counters of the call that found it."""

    program: Term
    stats: Instrumentation
    size: int = 0
