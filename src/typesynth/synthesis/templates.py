"""Ad hoc templates for string formatting and "key=value" parsing.

These are fixed-shape grammars for common text tasks rather than products of
the type-directed rules. Each function has the candidate rule signature, so
the expander runs them like any other rule.
"""

from __future__ import annotations

from collections.abc import Iterable

from typesynth.synthesis.expansion import (
    ExpansionLimits,
    is_string_goal,
    string_variables,
)
from typesynth.synthesis.lattice import FiniteRecord, Type
from typesynth.synthesis.terms import (
    Literal,
    RecordLiteral,
    SliceExpr,
    Term,
    VariableRef,
    call,
    index,
    reverse,
)
from typesynth.synthesis.types import SynthesisContext

# "k=v&k=v" parsing covers at most this many pairs
MAX_QUERY_PAIRS = 2

SLICE_STARTS = (0, 1, 2, 3, 6)
SLICE_ENDS = (3, 6, 10)

CASE_METHODS = ("capitalize", "title", "upper", "lower")


def substring(receiver: Term, start: int, end: int) -> SliceExpr:
    return SliceExpr(receiver, Literal(start), Literal(end))


def phone_number(receiver: Term) -> Term:
    """`"(" + s[0:3] + ") " + s[3:6] + ("-" + s[6:10])`"""
    area = call(call(Literal("("), "__add__", substring(receiver, 0, 3)), "__add__", Literal(") "))
    exchange = call(area, "__add__", substring(receiver, 3, 6))
    return call(exchange, "__add__", call(Literal("-"), "__add__", substring(receiver, 6, 10)))


def format_templates(
    goal: Type, context: SynthesisContext, limits: ExpansionLimits
) -> Iterable[Term]:
    if not is_string_goal(goal):
        return
    for name in string_variables(context):
        yield phone_number(VariableRef(name))


def slice_templates(
    goal: Type, context: SynthesisContext, limits: ExpansionLimits
) -> Iterable[Term]:
    if not is_string_goal(goal):
        return
    for name in string_variables(context):
        yield reverse(VariableRef(name))
        for start in SLICE_STARTS:
            for end in SLICE_ENDS:
                if end > start:
                    yield substring(VariableRef(name), start, end)


def case_transform_templates(
    goal: Type, context: SynthesisContext, limits: ExpansionLimits
) -> Iterable[Term]:
    if not is_string_goal(goal):
        return
    for name in string_variables(context):
        for method in CASE_METHODS:
            yield call(VariableRef(name), method)


# =============================================================================
# Record parsing
# =============================================================================


def key_value_entry(pair: Term) -> tuple[Term, Term]:
    """`pair.split("=")[0]: pair.split("=")[1]`"""
    parts = call(pair, "split", Literal("="))
    return index(parts, 0), index(parts, 1)


def query_pairs(receiver: Term, count: int) -> list[Term]:
    """The first `count` items of `receiver.split("&")`."""
    pairs = call(receiver, "split", Literal("&"))
    return [index(pairs, i) for i in range(count)]


def query_string_templates(
    goal: Type, context: SynthesisContext, limits: ExpansionLimits
) -> Iterable[Term]:
    if not isinstance(goal, FiniteRecord):
        return
    for name in string_variables(context):
        v = VariableRef(name)
        yield RecordLiteral((key_value_entry(v),))
        for count in range(1, MAX_QUERY_PAIRS + 1):
            if count > 1 and len(goal.fields) < count:
                break
            yield RecordLiteral(tuple(key_value_entry(pair) for pair in query_pairs(v, count)))
