"""Tests for candidate executors and the example oracle."""

import sys

import pytest

from typesynth.synthesis.errors import OperationalError
from typesynth.synthesis.examples import Example
from typesynth.synthesis.oracle import (
    CandidateFailure,
    ExampleOracle,
    Executor,
    InProcessExecutor,
    SubprocessExecutor,
    compare_outputs,
)
from typesynth.synthesis.terms import call, lit, var

ADD = "def f(a, b):\n    return a + b\n"
FAIL = "def f(a):\n    raise ValueError('nope')\n"


@pytest.fixture
def subprocess_executor():
    return SubprocessExecutor(sys.executable, timeout=10)


class TestCompareOutputs:
    """Tests for result comparison."""

    def test_scalars(self):
        assert compare_outputs(3, 3)
        assert compare_outputs("a", "a")
        assert not compare_outputs("3", 3)

    def test_bools_are_not_ints(self):
        assert not compare_outputs(1, True)
        assert not compare_outputs(True, 1)
        assert compare_outputs(False, False)

    def test_lists(self):
        assert compare_outputs([1, 2], [1, 2])
        assert compare_outputs([1, 2], (1, 2))
        assert not compare_outputs([1, 2], [1, 2, 3])
        assert not compare_outputs("12", [1, 2])

    def test_dicts_allow_extra_keys(self):
        assert compare_outputs({"a": "1", "b": "2"}, {"a": "1"})
        assert not compare_outputs({"a": "1"}, {"a": "1", "b": "2"})
        assert not compare_outputs({"a": "2"}, {"a": "1"})
        assert not compare_outputs(["a"], {"a": "1"})

    def test_nested(self):
        assert compare_outputs({"xs": [1, {"k": "v"}]}, {"xs": [1, {"k": "v"}]})


class TestInProcessExecutor:
    """Tests for exec()-based execution."""

    def test_satisfies_protocol(self):
        assert isinstance(InProcessExecutor(), Executor)

    def test_runs_function(self):
        assert InProcessExecutor().execute(ADD, "f", [1, 2]) == 3

    def test_json_normalization(self):
        code = "def f():\n    return (1, 2)\n"
        assert InProcessExecutor().execute(code, "f", []) == [1, 2]

    def test_candidate_error(self):
        with pytest.raises(CandidateFailure, match="ValueError"):
            InProcessExecutor().execute(FAIL, "f", [1])

    def test_unserializable_result(self):
        code = "def f():\n    return object()\n"
        with pytest.raises(CandidateFailure):
            InProcessExecutor().execute(code, "f", [])


class TestSubprocessExecutor:
    """Tests for subprocess execution."""

    def test_runs_function(self, subprocess_executor):
        assert subprocess_executor.execute(ADD, "f", [1, 2]) == 3
        assert subprocess_executor.execute(ADD, "f", ["a", "b"]) == "ab"

    def test_candidate_error(self, subprocess_executor):
        with pytest.raises(CandidateFailure, match="nope"):
            subprocess_executor.execute(FAIL, "f", [1])

    def test_candidate_timeout(self):
        executor = SubprocessExecutor(sys.executable, timeout=0.5)
        code = "def f():\n    while True:\n        pass\n"
        with pytest.raises(CandidateFailure, match="timed out"):
            executor.execute(code, "f", [])

    def test_missing_interpreter(self, tmp_path):
        executor = SubprocessExecutor(str(tmp_path / "no-such-python"))
        with pytest.raises(OperationalError):
            executor.execute(ADD, "f", [1, 2])


class TestExampleOracle:
    """Tests for ExampleOracle."""

    EXAMPLES = [Example((1, 2), 3), Example((5, 7), 12)]

    def test_accepts_matching_program(self):
        oracle = ExampleOracle(self.EXAMPLES, InProcessExecutor())
        assert oracle.arity == 2
        assert oracle(call(var("arg0"), "__add__", var("arg1")))

    def test_rejects_partial_match(self):
        oracle = ExampleOracle(self.EXAMPLES, InProcessExecutor())
        assert not oracle(lit(3))

    def test_run_reports_every_example(self):
        oracle = ExampleOracle(self.EXAMPLES, InProcessExecutor())
        results = oracle.run(lit(3))
        assert [r.match for r in results] == [True, False]
        assert results[1].to_dict() == {
            "input": [5, 7],
            "expected": 12,
            "actual": 3,
            "match": False,
            "error": None,
        }

    def test_stops_at_first_failure(self):
        oracle = ExampleOracle(self.EXAMPLES, InProcessExecutor())
        results = oracle.run(lit(0), stop_at_failure=True)
        assert len(results) == 1

    def test_candidate_error_is_a_mismatch(self):
        oracle = ExampleOracle(self.EXAMPLES, InProcessExecutor())
        results = oracle.run(call(var("arg0"), "upper"))
        assert not results[0].match
        assert "AttributeError" in results[0].error

    def test_through_subprocess(self, subprocess_executor):
        oracle = ExampleOracle([Example(("hi",), "HI")], subprocess_executor)
        assert oracle(call(var("arg0"), "upper"))
        assert not oracle(call(var("arg0"), "lower"))
