"""Tests for examples, signature inference and literal pools."""

import pytest

from typesynth.config import SynthesisConfig
from typesynth.synthesis.catalog import SignatureCatalog
from typesynth.synthesis.examples import (
    Example,
    arg_names,
    as_arguments,
    build_context,
    extract_literal_pools,
    infer_signature,
    normalize_examples,
)
from typesynth.synthesis.lattice import (
    INTEGER,
    STRING,
    FiniteRecord,
    PreciseString,
    Singleton,
    list_of,
)


class TestExample:
    """Tests for Example construction."""

    def test_from_dict(self):
        ex = Example.from_dict({"input": [1, 2], "output": 3})
        assert ex == Example((1, 2), 3)
        assert ex.to_dict() == {"input": [1, 2], "output": 3}

    def test_bare_input_is_one_argument(self):
        assert Example.from_dict({"input": "hi", "output": "HI"}).inputs == ("hi",)
        assert as_arguments(5) == (5,)
        assert as_arguments((1, 2)) == (1, 2)

    def test_missing_keys(self):
        with pytest.raises(ValueError, match="input"):
            Example.from_dict({"output": 1})

    def test_normalize_mixed_arity(self):
        with pytest.raises(ValueError, match="argument count"):
            normalize_examples([{"input": [1], "output": 1}, {"input": [1, 2], "output": 1}])

    def test_normalize_keeps_examples(self):
        ex = Example((1,), 1)
        assert normalize_examples([ex, {"input": 2, "output": 2}]) == [ex, Example((2,), 2)]

    def test_arg_names(self):
        assert arg_names(3) == ["arg0", "arg1", "arg2"]
        assert arg_names(0) == []


class TestInferSignature:
    """Tests for environment and goal inference."""

    def test_varying_arguments_are_promoted(self):
        env, goal = infer_signature([Example((1, "a"), 2), Example((5, "b"), 6)])
        assert env == {"arg0": INTEGER, "arg1": STRING}
        assert goal == INTEGER

    def test_constant_argument_stays_precise(self):
        env, goal = infer_signature([Example(("1234567890",), "(123) 456-7890")])
        assert env == {"arg0": PreciseString("1234567890")}
        assert goal == STRING

    def test_same_value_in_every_example(self):
        env, _ = infer_signature([Example((5,), 1), Example((5,), 2)])
        assert env == {"arg0": Singleton(5)}

    def test_record_goal(self):
        _, goal = infer_signature([Example(("a=1",), {"a": "1"})])
        assert goal == FiniteRecord.of({"a": STRING})

    def test_list_goal(self):
        _, goal = infer_signature([Example(("a b",), ["a", "b"])])
        assert goal == list_of(STRING)

    def test_no_examples(self):
        with pytest.raises(ValueError):
            infer_signature([])


class TestLiteralPools:
    """Tests for literal extraction."""

    def test_order_and_dedupe(self):
        examples = [Example(("x", 3), "y"), Example(("y", 3), "x")]
        pools = extract_literal_pools(examples)
        assert pools.strings == ("x", "y")
        assert pools.ints == (3,)

    def test_inputs_before_output(self):
        pools = extract_literal_pools([Example((1, 2), 3)])
        assert pools.ints == (1, 2, 3)

    def test_skips_bools_and_empty_strings(self):
        pools = extract_literal_pools([Example((True, ""), False)])
        assert pools.strings == ()
        assert pools.ints == ()

    def test_long_strings_skipped(self):
        pools = extract_literal_pools([Example(("abcd", "ab"), "")], max_literal_length=4)
        assert pools.strings == ("ab",)

    def test_nested_values_and_keys(self):
        pools = extract_literal_pools([Example(([1, "a"],), {"k": 2})])
        assert pools.strings == ("a", "k")
        assert pools.ints == (1, 2)

    def test_pool_size(self):
        pools = extract_literal_pools([Example(tuple(range(10)), 0)], max_pool_size=3)
        assert pools.ints == (0, 1, 2)


class TestBuildContext:
    """Tests for build_context."""

    def test_uses_config(self):
        config = SynthesisConfig(max_size=7, max_pool_size=1)
        ctx = build_context([Example((1, 2), 3)], config)
        assert ctx.max_size == 7
        assert ctx.pools.ints == (1,)
        assert ctx.goal == INTEGER

    def test_default_config_and_catalog(self):
        catalog = SignatureCatalog.empty()
        ctx = build_context([Example(("a",), "A")], catalog=catalog)
        assert ctx.catalog is catalog
        assert ctx.max_size == SynthesisConfig().max_size
        assert ctx.summary() == "(arg0: " + str(PreciseString("a")) + ") -> " + str(STRING)
