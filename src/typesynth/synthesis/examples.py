"""Input/output examples and the synthesis context derived from them.

An example's input is always the function's argument list; a bare value is
treated as a single argument. Arguments are named arg0, arg1, ... in order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from typesynth.synthesis.catalog import SignatureCatalog, default_catalog
from typesynth.synthesis.lattice import Type, Union, promote, union, wrap
from typesynth.synthesis.types import LiteralPools, SynthesisContext

if TYPE_CHECKING:
    from typesynth.config import SynthesisConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Example:
    """One input/output pair."""

    inputs: tuple[Any, ...]
    output: Any

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Example:
        if "input" not in raw or "output" not in raw:
            raise ValueError(f"example needs 'input' and 'output': {dict(raw)!r}")
        return cls(as_arguments(raw["input"]), raw["output"])

    def to_dict(self) -> dict[str, Any]:
        return {"input": list(self.inputs), "output": self.output}


def as_arguments(value: Any) -> tuple[Any, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


def normalize_examples(raw: Iterable[Example | Mapping[str, Any]]) -> list[Example]:
    """Accept Example objects or {"input", "output"} dicts.

    Raises:
        ValueError: on a malformed example or examples of different arity
    """
    examples = [ex if isinstance(ex, Example) else Example.from_dict(ex) for ex in raw]
    arities = {len(ex.inputs) for ex in examples}
    if len(arities) > 1:
        raise ValueError(f"examples disagree on argument count: {sorted(arities)}")
    return examples


def arg_names(arity: int) -> list[str]:
    return [f"arg{i}" for i in range(arity)]


def infer_signature(examples: Sequence[Example]) -> tuple[dict[str, Type], Type]:
    """Abstract environment and goal type for a set of examples.

    An argument keeps its precise literal type when every example passes the
    same value, and is promoted to its general type otherwise. The goal is
    always general, so any value of the right kind can satisfy it.
    """
    if not examples:
        raise ValueError("cannot infer a signature without examples")

    env: dict[str, Type] = {}
    for i, name in enumerate(arg_names(len(examples[0].inputs))):
        column = union(*(wrap(ex.inputs[i]) for ex in examples))
        env[name] = promote(column) if isinstance(column, Union) else column

    goal = promote(union(*(wrap(ex.output) for ex in examples)))
    return env, goal


def extract_literal_pools(
    examples: Sequence[Example],
    max_pool_size: int = 20,
    max_literal_length: int = 20,
) -> LiteralPools:
    """Collect string and int constants appearing anywhere in the examples.

    Order of first appearance is kept, inputs before output within each
    example. Empty strings, strings of `max_literal_length` or more characters
    and bools are skipped; dict keys count as strings.
    """
    strings: list[str] = []
    ints: list[int] = []

    def visit(value: Any) -> None:
        if isinstance(value, bool):
            return
        if isinstance(value, str):
            if value and len(value) < max_literal_length and value not in strings:
                strings.append(value)
        elif isinstance(value, int):
            if value not in ints:
                ints.append(value)
        elif isinstance(value, (list, tuple)):
            for item in value:
                visit(item)
        elif isinstance(value, dict):
            for key, item in value.items():
                visit(key)
                visit(item)

    for ex in examples:
        for value in ex.inputs:
            visit(value)
        visit(ex.output)

    return LiteralPools.of(strings[:max_pool_size], ints[:max_pool_size])


def build_context(
    examples: Sequence[Example],
    config: SynthesisConfig | None = None,
    catalog: SignatureCatalog | None = None,
) -> SynthesisContext:
    """Everything the search needs to synthesize a function for `examples`."""
    if config is None:
        from typesynth.config import SynthesisConfig

        config = SynthesisConfig()

    env, goal = infer_signature(examples)
    pools = extract_literal_pools(examples, config.max_pool_size, config.max_literal_length)
    logger.debug("Pools: %s", pools.to_dict())
    return SynthesisContext(
        env=env,
        goal=goal,
        pools=pools,
        max_size=config.max_size,
        catalog=catalog if catalog is not None else default_catalog(),
    )
