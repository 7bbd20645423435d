"""Test oracles that run candidate programs against examples.

An executor runs one generated function on one argument list and returns
its JSON-compatible result. `ExampleOracle` wraps an executor into the
`Callable[[Term], bool]` the search engine expects.

Two executors are provided:

- SubprocessExecutor: runs each example under a separate Python process with
  a timeout. Candidates cannot hang or corrupt the synthesizer.
- InProcessExecutor: exec()s the function in a fresh namespace. Much faster,
  but a non-terminating candidate blocks the search.

A candidate that raises, times out or returns the wrong value simply fails.
Only a failure to run anything at all (for example a missing interpreter) is
an OperationalError.
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from typesynth.synthesis.errors import OperationalError
from typesynth.synthesis.examples import Example
from typesynth.synthesis.terms import Term
from typesynth.synthesis.unparse import build_function

logger = logging.getLogger(__name__)

CANDIDATE_FUNCTION = "synthesized_function"

_RUNNER = """\
import json
import sys

{code}

print(json.dumps({function_name}(*json.loads(sys.argv[1]))))
"""


class CandidateFailure(Exception):
    """The candidate could not produce a result for an example."""


@runtime_checkable
class Executor(Protocol):
    """Runs a generated function on one argument list."""

    def execute(self, code: str, function_name: str, inputs: Sequence[Any]) -> Any:
        """Return the function's JSON-compatible result.

        Raises:
            CandidateFailure: the candidate raised, timed out or returned junk
            OperationalError: the executor itself is broken
        """
        ...


class SubprocessExecutor:
    """Run candidates under a separate Python interpreter."""

    def __init__(self, python: str = "python3", timeout: float = 10) -> None:
        self.python = python
        self.timeout = timeout

    def execute(self, code: str, function_name: str, inputs: Sequence[Any]) -> Any:
        script = _RUNNER.format(code=code, function_name=function_name)
        try:
            proc = subprocess.run(
                [self.python, "-c", script, json.dumps(list(inputs))],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise OperationalError(
                f"Python interpreter not found: {self.python}",
                context={"python": self.python},
            ) from e
        except subprocess.TimeoutExpired as e:
            raise CandidateFailure(f"timed out after {self.timeout}s") from e
        except OSError as e:
            raise OperationalError(f"Could not run {self.python}: {e}") from e

        if proc.returncode != 0:
            lines = proc.stderr.strip().splitlines()
            raise CandidateFailure(lines[-1] if lines else f"exit status {proc.returncode}")
        try:
            return json.loads(proc.stdout)
        except json.JSONDecodeError as e:
            raise CandidateFailure(f"non-JSON output: {proc.stdout[:100]!r}") from e


class InProcessExecutor:
    """Run candidates with exec() in this process."""

    def execute(self, code: str, function_name: str, inputs: Sequence[Any]) -> Any:
        namespace: dict[str, Any] = {"__builtins__": __builtins__}
        try:
            exec(code, namespace)
            result = namespace[function_name](*inputs)
            # same normalization as the subprocess JSON round trip
            return json.loads(json.dumps(result))
        except Exception as e:
            raise CandidateFailure(f"{type(e).__name__}: {e}") from e


def compare_outputs(actual: Any, expected: Any) -> bool:
    """Deep comparison of a result against an expected output.

    Expected dict keys must all be present in the result with matching
    values; extra keys in the result are allowed. Lists must match
    element-wise.
    """
    if isinstance(expected, dict):
        if not isinstance(actual, dict):
            return False
        return all(
            str(key) in actual and compare_outputs(actual[str(key)], value)
            for key, value in expected.items()
        )
    if isinstance(expected, (list, tuple)):
        if not isinstance(actual, (list, tuple)) or len(actual) != len(expected):
            return False
        return all(compare_outputs(a, e) for a, e in zip(actual, expected))
    if isinstance(expected, bool) or isinstance(actual, bool):
        return actual is expected
    return actual == expected


@dataclass
class ExampleResult:
    """Outcome of running a candidate on one example."""

    example: Example
    match: bool
    actual: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "input": list(self.example.inputs),
            "expected": self.example.output,
            "actual": self.actual,
            "match": self.match,
            "error": self.error,
        }


class ExampleOracle:
    """Accepts a Closed term iff it reproduces every example.

    Examples are run in order and checking stops at the first mismatch.
    """

    def __init__(
        self,
        examples: Sequence[Example],
        executor: Executor | None = None,
        arity: int | None = None,
    ) -> None:
        self.examples = list(examples)
        self.executor = executor if executor is not None else SubprocessExecutor()
        if arity is None:
            arity = len(self.examples[0].inputs) if self.examples else 0
        self.arity = arity

    def run(self, term: Term, stop_at_failure: bool = False) -> list[ExampleResult]:
        """Run `term` on every example."""
        code = build_function(CANDIDATE_FUNCTION, self.arity, term)
        results = []
        for example in self.examples:
            try:
                actual = self.executor.execute(code, CANDIDATE_FUNCTION, example.inputs)
            except CandidateFailure as e:
                results.append(ExampleResult(example, False, error=str(e)))
            else:
                results.append(
                    ExampleResult(example, compare_outputs(actual, example.output), actual)
                )
            if stop_at_failure and not results[-1].match:
                break
        return results

    def __call__(self, term: Term) -> bool:
        results = self.run(term, stop_at_failure=True)
        passed = all(r.match for r in results)
        if passed:
            logger.debug("Candidate passed %d examples", len(results))
        return passed
