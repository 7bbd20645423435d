"""Function-level synthesis from task files.

A task file lists functions to synthesize, each with a name and its
input/output examples:

    [
      {"name": "add", "examples": [{"input": [1, 2], "output": 3}]},
      {"name": "shout", "examples": [{"input": "hi", "output": "HI"}]}
    ]

The list may also sit under a top-level "functions" key, and the file may be
YAML instead of JSON.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from typesynth.config import SynthesisConfig
from typesynth.errors import ErrorCollector, ErrorResult, TaskFileError, handle_error
from typesynth.logging import get_logger
from typesynth.synthesis.catalog import SignatureCatalog
from typesynth.synthesis.engine import SearchEngine
from typesynth.synthesis.errors import NoSolutionFound, TimedOut
from typesynth.synthesis.examples import Example, build_context, normalize_examples
from typesynth.synthesis.expansion import TypeDirectedExpander
from typesynth.synthesis.oracle import (
    ExampleOracle,
    Executor,
    InProcessExecutor,
    SubprocessExecutor,
)
from typesynth.synthesis.terms import Term
from typesynth.synthesis.types import Instrumentation
from typesynth.synthesis.unparse import build_function

log = get_logger("tasks")

YAML_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class FunctionSpec:
    """A function to synthesize."""

    name: str
    examples: tuple[Example, ...]

    @property
    def arity(self) -> int:
        return len(self.examples[0].inputs) if self.examples else 0


@dataclass
class FunctionSynthesisResult:
    """Outcome of synthesizing one function."""

    name: str
    code: str | None = None
    term: Term | None = None
    stats: Instrumentation | None = None
    error: ErrorResult | None = None
    elapsed_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.code is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "success": self.success,
            "code": self.code,
            "stats": self.stats.to_dict() if self.stats else None,
            "error": self.error.to_dict() if self.error else None,
            "elapsed_ms": round(self.elapsed_ms, 2),
        }


# =============================================================================
# Task Files
# =============================================================================


def parse_function_specs(data: Any, source: str | Path = "<data>") -> list[FunctionSpec]:
    """Build FunctionSpecs from decoded task file content."""
    if isinstance(data, dict) and "functions" in data:
        data = data["functions"]
    if not isinstance(data, list):
        raise TaskFileError(source, "top level must be a list of functions")

    specs = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict) or "name" not in entry:
            raise TaskFileError(source, f"function #{i} has no name")
        raw_examples = entry.get("examples") or []
        try:
            examples = normalize_examples(raw_examples)
        except (ValueError, TypeError) as e:
            raise TaskFileError(source, f"{entry['name']}: {e}") from e
        specs.append(FunctionSpec(str(entry["name"]), tuple(examples)))
    return specs


def load_function_specs(path: Path) -> list[FunctionSpec]:
    """Read a JSON or YAML task file.

    Raises:
        FileNotFoundError: The file does not exist
        TaskFileError: The file cannot be parsed or has the wrong shape
    """
    text = path.read_text()
    try:
        if path.suffix in YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise TaskFileError(path, str(e)) from e
    return parse_function_specs(data, path)


# =============================================================================
# Synthesis
# =============================================================================


def make_executor(config: SynthesisConfig) -> Executor:
    if config.executor == "inprocess":
        return InProcessExecutor()
    return SubprocessExecutor(config.python, config.example_timeout_seconds)


class FunctionSynthesizer:
    """Synthesizes named functions from their examples.

    A function that cannot be found (search exhausted, timeout, unusable
    examples) yields a failed result; errors that mean the synthesizer
    itself is broken propagate.
    """

    def __init__(
        self,
        config: SynthesisConfig | None = None,
        engine: SearchEngine | None = None,
        executor: Executor | None = None,
        catalog: SignatureCatalog | None = None,
    ) -> None:
        self.config = config or SynthesisConfig()
        self.engine = engine or SearchEngine(TypeDirectedExpander(limits=self.config.limits))
        self.executor = executor or make_executor(self.config)
        self.catalog = catalog

    def synthesize(self, spec: FunctionSpec) -> FunctionSynthesisResult:
        flog = log.with_operation("synthesize").with_context(function=spec.name)
        result = FunctionSynthesisResult(spec.name)

        if not spec.examples:
            result.error = handle_error(ValueError(f"{spec.name} has no examples"))
            flog.warning("Skipping function without examples")
            return result

        with flog.timed(spec.name, examples=len(spec.examples)) as timing:
            try:
                context = build_context(spec.examples, self.config, self.catalog)
                flog.debug(f"Searching {context.summary()}")
                oracle = ExampleOracle(spec.examples, self.executor, spec.arity)
                found = self.engine.synthesize(
                    context,
                    oracle,
                    timeout=self.config.timeout_seconds,
                    example_count=len(spec.examples),
                )
            except (NoSolutionFound, TimedOut) as e:
                result.stats = e.stats
                result.error = e.to_result()
                timing["outcome"] = e.category.name
            except ValueError as e:
                result.error = handle_error(e, {"function": spec.name})
                timing["outcome"] = result.error.category.name
            else:
                result.term = found.program
                result.stats = found.stats
                result.code = build_function(spec.name, spec.arity, found.program)
                timing["outcome"] = "FOUND"
        result.elapsed_ms = timing["elapsed_ms"]
        return result

    def synthesize_all(
        self,
        specs: Iterable[FunctionSpec],
        collector: ErrorCollector | None = None,
    ) -> list[FunctionSynthesisResult]:
        """Synthesize every function, continuing past failures."""
        results = []
        for spec in specs:
            result = self.synthesize(spec)
            if collector is not None:
                if result.success:
                    collector.success()
                elif result.error is not None:
                    collector.errors.append(result.error)
            results.append(result)
        return results


def combine_code(results: Sequence[FunctionSynthesisResult]) -> str:
    """One module holding every synthesized function.

    Functions that were not found are listed as comments.
    """
    chunks = []
    for result in results:
        if result.code is not None:
            chunks.append(result.code)
        else:
            reason = result.error.message if result.error else "not synthesized"
            chunks.append(f"# {result.name}: {reason}\n")
    return "\n\n".join(chunk.rstrip("\n") for chunk in chunks) + "\n"
