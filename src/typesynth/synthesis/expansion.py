"""Hole expansion: candidate generation for a single hole.

Given a hole and the call's context, a `HoleExpander` proposes fillings that
are plausible for the hole's goal type. Candidates are not checked against
the examples here; some of them contain fresh holes to be expanded later.

`TypeDirectedExpander` is the default expander. It runs an ordered list of
candidate rules, each a plain callable `(goal, context, limits) -> terms`, so
grammars can be extended or reordered without touching the search loop:

1. pool literals whose type fits the goal
2. the literal carried by a singleton goal
3. environment variables whose type fits
4. union goals: one dependent hole per member (case split)
5. list goals: small literal arrays
6. record goals: record literals with a hole per field
7. integer goals: add/multiply templates
8. string goals: concatenation, slicing and case templates
9. record goals: "key=value" parsing templates
10. catalog methods returning the goal, with holes for receiver and args,
    kept only when every such hole can eventually be closed

Rules 8 (partly) and 9 are ad hoc templates and live in `templates`.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from typesynth.synthesis.catalog import Signature
from typesynth.synthesis.lattice import (
    BOOL,
    BOTTOM,
    INTEGER,
    STRING,
    FiniteRecord,
    Generic,
    Nominal,
    PreciseString,
    Singleton,
    Type,
    Union,
    Var,
    is_integer_like,
    is_string_like,
    subtype,
    wrap,
)
from typesynth.synthesis.terms import (
    ArrayLiteral,
    FieldAccess,
    FilledHole,
    Hole,
    Literal,
    MethodCall,
    RecordLiteral,
    Term,
    VariableRef,
    call,
    transform,
)
from typesynth.synthesis.types import SynthesisContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpansionLimits:
    """Bounds on the template grammars.

    Attributes:
        max_array_arity: Longest literal array proposed for list goals
        arithmetic_constants: Pool ints combined with each int variable
        constant_pairs: Pool int pairs added together
        variable_triples: Ordered variable triples for three-way sums
        concat_constants: Pool strings concatenated with each str variable
    """

    max_array_arity: int = 3
    arithmetic_constants: int = 5
    constant_pairs: int = 10
    variable_triples: int = 6
    concat_constants: int = 3


CandidateRule = Callable[[Type, SynthesisContext, ExpansionLimits], Iterable[Term]]

# never proposed by catalog deepening; indexing is only built by templates
SKIPPED_METHODS = frozenset({"__getitem__"})


@runtime_checkable
class HoleExpander(Protocol):
    """Protocol for candidate generators."""

    def expand(self, hole: Hole, context: SynthesisContext) -> list[Term]:
        """Propose fillings for `hole`, in the order they should be tried."""
        ...


# =============================================================================
# Environment helpers
# =============================================================================


def variables_where(context: SynthesisContext, predicate: Callable[[Type], bool]) -> list[str]:
    return [name for name, t in context.env.items() if predicate(t)]


def int_variables(context: SynthesisContext) -> list[str]:
    return variables_where(context, is_integer_like)


def string_variables(context: SynthesisContext) -> list[str]:
    return variables_where(context, is_string_like)


def is_integer_goal(goal: Type) -> bool:
    if isinstance(goal, Union):
        return any(is_integer_like(member) for member in goal.types)
    return is_integer_like(goal)


def is_string_goal(goal: Type) -> bool:
    return is_string_like(goal)


# =============================================================================
# Principled rules
# =============================================================================


def pool_literals(goal: Type, context: SynthesisContext, limits: ExpansionLimits) -> Iterable[Term]:
    for value in context.pools.strings:
        if subtype(wrap(value), goal):
            yield Literal(value)
    for value in context.pools.ints:
        if subtype(wrap(value), goal):
            yield Literal(value)


def goal_literal(goal: Type, context: SynthesisContext, limits: ExpansionLimits) -> Iterable[Term]:
    if isinstance(goal, (Singleton, PreciseString)):
        yield Literal(goal.value)


def environment_variables(
    goal: Type, context: SynthesisContext, limits: ExpansionLimits
) -> Iterable[Term]:
    for name, t in context.env.items():
        if subtype(t, goal):
            yield VariableRef(name)


def union_case_split(
    goal: Type, context: SynthesisContext, limits: ExpansionLimits
) -> Iterable[Term]:
    if isinstance(goal, Union):
        for member in goal.types:
            yield Hole(member, dependent=True)


def array_literals(goal: Type, context: SynthesisContext, limits: ExpansionLimits) -> Iterable[Term]:
    if not (isinstance(goal, Generic) and goal.base == Nominal("list")):
        return
    element = goal.param

    if subtype(element, INTEGER):
        pool: Sequence[object] = context.pools.ints
    elif subtype(element, STRING):
        pool = context.pools.strings
    elif subtype(element, BOOL):
        yield ArrayLiteral((Literal(True), Literal(False)))
        yield ArrayLiteral((Literal(True), Literal(False), Literal(True)))
        return
    else:
        return

    for arity in range(1, limits.max_array_arity + 1):
        for values in itertools.permutations(pool, arity):
            yield ArrayLiteral(tuple(Literal(v) for v in values))


def record_literals(
    goal: Type, context: SynthesisContext, limits: ExpansionLimits
) -> Iterable[Term]:
    if not isinstance(goal, FiniteRecord):
        return
    keys = goal.keys()
    for width in range(1, len(keys) + 1):
        for selected in itertools.combinations(keys, width):
            yield RecordLiteral(
                tuple((Literal(key), Hole(goal.get(key) or BOTTOM)) for key in selected)
            )


def arithmetic_templates(
    goal: Type, context: SynthesisContext, limits: ExpansionLimits
) -> Iterable[Term]:
    if not is_integer_goal(goal):
        return
    names = int_variables(context)
    constants = context.pools.ints[: limits.arithmetic_constants]

    for first, second in itertools.permutations(names, 2):
        yield call(VariableRef(first), "__add__", VariableRef(second))
        yield call(VariableRef(first), "__mul__", VariableRef(second))

    for name in names:
        for c in constants:
            yield call(VariableRef(name), "__add__", Literal(c))
            yield call(Literal(c), "__add__", VariableRef(name))
            yield call(VariableRef(name), "__mul__", Literal(c))
            yield call(Literal(c), "__mul__", VariableRef(name))

    pairs = itertools.combinations(context.pools.ints, 2)
    for c1, c2 in itertools.islice(pairs, limits.constant_pairs):
        yield call(Literal(c1), "__add__", Literal(c2))

    if len(names) >= 3:
        triples = itertools.permutations(names, 3)
        for a, b, c in itertools.islice(triples, limits.variable_triples):
            yield call(call(VariableRef(a), "__add__", VariableRef(b)), "__add__", VariableRef(c))
            yield call(VariableRef(a), "__add__", call(VariableRef(b), "__add__", VariableRef(c)))


def concat_templates(
    goal: Type, context: SynthesisContext, limits: ExpansionLimits
) -> Iterable[Term]:
    if not is_string_goal(goal):
        return
    names = string_variables(context)
    constants = context.pools.strings[: limits.concat_constants]

    for name in names:
        for other in names:
            if other != name:
                yield call(VariableRef(name), "__add__", VariableRef(other))
        for c in constants:
            yield call(VariableRef(name), "__add__", Literal(c))
            yield call(Literal(c), "__add__", VariableRef(name))


def catalog_signature_types(
    goal: Type, cls_name: str, sig: Signature
) -> tuple[Type, Type] | None:
    """Receiver and return type of a catalog entry for `goal`, or None if unusable."""
    if any(t == BOTTOM for t in sig.arg_types):
        return None
    receiver: Type = Nominal(cls_name)
    returns = sig.return_type
    if isinstance(returns, Var):
        returns = goal
        receiver = Generic(Nominal(cls_name), goal)
    return receiver, returns


def is_inhabited(
    goal: Type,
    context: SynthesisContext,
    limits: ExpansionLimits,
    visiting: tuple[Type, ...] = (),
) -> bool:
    """Whether a hole of type `goal` can ever be closed.

    A goal is inhabited when a terminal fits it (a literal, an environment
    variable or a literal array), when one of its record fields is, or when
    some catalog method returns it with every receiver and argument hole
    inhabited. Goals in `visiting` are not reconsidered, so a method whose
    holes only recurse back into the goal does not count.
    """
    if isinstance(goal, (Singleton, PreciseString)):
        return True
    if isinstance(goal, Union):
        return any(is_inhabited(member, context, limits, visiting) for member in goal.types)
    if any(subtype(t, goal) for t in context.env.values()):
        return True
    if any(subtype(wrap(v), goal) for v in (*context.pools.strings, *context.pools.ints)):
        return True
    if next(iter(array_literals(goal, context, limits)), None) is not None:
        return True

    if any(goal == seen for seen in visiting):
        return False
    inner = (*visiting, goal)
    if isinstance(goal, FiniteRecord):
        return any(is_inhabited(t, context, limits, inner) for _, t in goal.fields)
    for cls_name, method, sig in context.catalog.entries():
        if method in SKIPPED_METHODS:
            continue
        types = catalog_signature_types(goal, cls_name, sig)
        if types is None or not subtype(types[1], goal):
            continue
        holes = (types[0], *sig.arg_types)
        if all(is_inhabited(t, context, limits, inner) for t in holes):
            return True
    return False


def catalog_calls(goal: Type, context: SynthesisContext, limits: ExpansionLimits) -> Iterable[Term]:
    for cls_name, method, sig in context.catalog.entries():
        if method in SKIPPED_METHODS:
            continue
        types = catalog_signature_types(goal, cls_name, sig)
        if types is None:
            continue
        receiver, returns = types
        if not subtype(returns, goal):
            continue
        # a hole no terminal can ever close would only grow the queue
        holes = (receiver, *sig.arg_types)
        if not all(is_inhabited(t, context, limits, (goal,)) for t in holes):
            continue

        args = tuple(Hole(t) for t in sig.arg_types)
        if sig.is_property:
            yield FieldAccess(Hole(receiver), method, args)
        else:
            yield MethodCall(Hole(receiver), method, args)


# =============================================================================
# Expander
# =============================================================================


def default_rules() -> tuple[CandidateRule, ...]:
    """The standard rule order (see module docstring)."""
    from typesynth.synthesis.templates import (
        case_transform_templates,
        format_templates,
        query_string_templates,
        slice_templates,
    )

    return (
        pool_literals,
        goal_literal,
        environment_variables,
        union_case_split,
        array_literals,
        record_literals,
        arithmetic_templates,
        concat_templates,
        format_templates,
        slice_templates,
        case_transform_templates,
        query_string_templates,
        catalog_calls,
    )


class TypeDirectedExpander:
    """Expander that applies candidate rules in order.

    Duplicate candidates are dropped, keeping the first occurrence.
    """

    def __init__(
        self,
        rules: Sequence[CandidateRule] | None = None,
        limits: ExpansionLimits | None = None,
    ) -> None:
        self.rules = tuple(rules) if rules is not None else default_rules()
        self.limits = limits or ExpansionLimits()

    def expand(self, hole: Hole, context: SynthesisContext) -> list[Term]:
        candidates: list[Term] = []
        seen: set[Term] = set()
        for rule in self.rules:
            for candidate in rule(hole.goal, context, self.limits):
                if candidate not in seen:
                    seen.add(candidate)
                    candidates.append(candidate)

        if not candidates:
            logger.debug("No expansions for goal type %s", hole.goal)
        else:
            logger.debug("Expanded hole %s into %d candidates", hole.goal, len(candidates))
        return candidates


def expand_holes(
    program: Term,
    expander: HoleExpander,
    context: SynthesisContext,
) -> tuple[Term, list[int]]:
    """Replace every regular hole of `program` with its frontier.

    Returns the expanded program and the candidate count of each frontier,
    in the pre-order `materialize` consumes them. Dependent holes are left
    for the engine to resolve.
    """
    counts: list[int] = []

    def fill(node: Term) -> Term | None:
        if isinstance(node, Hole):
            if node.dependent:
                return node
            candidates = expander.expand(node, context)
            counts.append(len(candidates))
            return FilledHole(node.goal, tuple(candidates))
        return None

    return transform(program, fill), counts
