"""Abstract syntax for synthesized programs.

Programs are trees of frozen dataclass nodes. A `Hole` is a placeholder
carrying the goal type its eventual filling must satisfy; a program with no
holes is Closed and can be handed to a test oracle.

During expansion a regular hole is replaced by a `FilledHole` listing its
candidate fillings (its frontier). `materialize` picks one candidate per
`FilledHole` to produce a concrete partial program again.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from typesynth.synthesis.lattice import Type


class Term:
    """Base class for AST nodes."""


@dataclass(frozen=True, eq=False)
class Literal(Term):
    """A constant value.

    Like `Singleton`, equality distinguishes 1, 1.0 and True.
    """

    value: Any

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Literal):
            return NotImplemented
        return type(self.value) is type(other.value) and self.value == other.value

    def __hash__(self) -> int:
        return hash((Literal, type(self.value).__name__, self.value))


@dataclass(frozen=True)
class VariableRef(Term):
    name: str


@dataclass(frozen=True)
class MethodCall(Term):
    receiver: Term
    name: str
    args: tuple[Term, ...] = ()


@dataclass(frozen=True)
class FieldAccess(Term):
    """Property or subscript access; `__getitem__` renders as `recv[arg]`."""

    receiver: Term
    name: str
    args: tuple[Term, ...] = ()


@dataclass(frozen=True)
class ArrayLiteral(Term):
    items: tuple[Term, ...] = ()


@dataclass(frozen=True)
class RecordLiteral(Term):
    """A dict display. Keys are terms so they may be computed."""

    entries: tuple[tuple[Term, Term], ...] = ()


@dataclass(frozen=True)
class SliceExpr(Term):
    receiver: Term
    start: Term
    end: Term
    step: Term | None = None


@dataclass(frozen=True)
class Hole(Term):
    """A placeholder for a subterm of type `goal`.

    Dependent holes come from case splits; the expansion pass leaves them
    alone and the engine fills them from context once a candidate has no
    regular holes left.
    """

    goal: Type
    dependent: bool = False


@dataclass(frozen=True)
class FilledHole(Term):
    """An expanded hole: the frontier of candidate fillings for `goal`."""

    goal: Type
    candidates: tuple[Term, ...]


# =============================================================================
# Constructors
# =============================================================================


def var(name: str) -> VariableRef:
    return VariableRef(name)


def lit(value: Any) -> Literal:
    return Literal(value)


def call(receiver: Term, name: str, *args: Term) -> MethodCall:
    return MethodCall(receiver, name, tuple(args))


def index(receiver: Term, position: int) -> FieldAccess:
    return FieldAccess(receiver, "__getitem__", (Literal(position),))


def reverse(receiver: Term) -> SliceExpr:
    return SliceExpr(receiver, Literal(None), Literal(None), Literal(-1))


def is_reverse_slice(term: Term) -> bool:
    return (
        isinstance(term, SliceExpr)
        and term.start == Literal(None)
        and term.end == Literal(None)
        and term.step == Literal(-1)
    )


# =============================================================================
# Traversal
# =============================================================================


def children(term: Term) -> tuple[Term, ...]:
    """Direct subterms in evaluation (left-to-right) order."""
    if isinstance(term, (MethodCall, FieldAccess)):
        return (term.receiver, *term.args)
    if isinstance(term, ArrayLiteral):
        return term.items
    if isinstance(term, RecordLiteral):
        return tuple(part for entry in term.entries for part in entry)
    if isinstance(term, SliceExpr):
        parts = (term.receiver, term.start, term.end)
        return parts if term.step is None else (*parts, term.step)
    return ()


def rebuild(term: Term, new_children: Sequence[Term]) -> Term:
    """Copy `term` with its direct subterms replaced, in `children` order."""
    if isinstance(term, MethodCall):
        return MethodCall(new_children[0], term.name, tuple(new_children[1:]))
    if isinstance(term, FieldAccess):
        return FieldAccess(new_children[0], term.name, tuple(new_children[1:]))
    if isinstance(term, ArrayLiteral):
        return ArrayLiteral(tuple(new_children))
    if isinstance(term, RecordLiteral):
        pairs = tuple(
            (new_children[i], new_children[i + 1]) for i in range(0, len(new_children), 2)
        )
        return RecordLiteral(pairs)
    if isinstance(term, SliceExpr):
        step = new_children[3] if len(new_children) > 3 else None
        return SliceExpr(new_children[0], new_children[1], new_children[2], step)
    return term


def walk(term: Term) -> Iterator[Term]:
    """Pre-order traversal, not descending into frontiers."""
    yield term
    for child in children(term):
        yield from walk(child)


def transform(term: Term, fn: Callable[[Term], Term | None]) -> Term:
    """Pre-order rewrite.

    `fn` returns a replacement (whose subterms are not visited again) or None
    to descend into the node's children.
    """
    replacement = fn(term)
    if replacement is not None:
        return replacement
    kids = children(term)
    if not kids:
        return term
    return rebuild(term, [transform(child, fn) for child in kids])


# =============================================================================
# Measures
# =============================================================================


def program_size(term: Term) -> int:
    """Number of nodes; holes and leaves count one."""
    return sum(1 for _ in walk(term))


def count_holes(term: Term) -> tuple[int, int]:
    """(regular holes, dependent holes) in a materialized program."""
    regular = 0
    dependent = 0
    for node in walk(term):
        if isinstance(node, Hole):
            if node.dependent:
                dependent += 1
            else:
                regular += 1
    return regular, dependent


def is_closed(term: Term) -> bool:
    return not any(isinstance(node, Hole) for node in walk(term))


def materialize(expanded: Term, selection: Sequence[int]) -> Term:
    """Replace each FilledHole with its selected candidate.

    Frontiers are consumed in the same pre-order as `expand_holes` produced
    them, so `selection[i]` picks the candidate of the i-th frontier.
    """
    picks = iter(selection)

    def pick(node: Term) -> Term | None:
        if isinstance(node, FilledHole):
            return node.candidates[next(picks)]
        return None

    return transform(expanded, pick)
