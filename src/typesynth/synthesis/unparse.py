"""Render terms as Python source."""

from __future__ import annotations

from collections.abc import Sequence

from typesynth.synthesis.terms import (
    ArrayLiteral,
    FieldAccess,
    FilledHole,
    Hole,
    Literal,
    MethodCall,
    RecordLiteral,
    SliceExpr,
    Term,
    VariableRef,
    is_reverse_slice,
)

HOLE_MARK = "□"

# dunder -> (operator, precedence)
BINARY_OPERATORS: dict[str, tuple[str, int]] = {
    "__add__": ("+", 1),
    "__sub__": ("-", 1),
    "__mul__": ("*", 2),
    "__truediv__": ("/", 2),
    "__floordiv__": ("//", 2),
    "__mod__": ("%", 2),
}

ATOM_PRECEDENCE = 10


def unparse(term: Term) -> str:
    """Python expression for `term`. Holes render as a box."""
    return _render(term)[0]


def _render(term: Term) -> tuple[str, int]:
    if isinstance(term, Literal):
        return repr(term.value), ATOM_PRECEDENCE
    if isinstance(term, VariableRef):
        return term.name, ATOM_PRECEDENCE
    if isinstance(term, (Hole, FilledHole)):
        return HOLE_MARK, ATOM_PRECEDENCE
    if isinstance(term, MethodCall):
        return _render_call(term)
    if isinstance(term, FieldAccess):
        return _render_field(term), ATOM_PRECEDENCE
    if isinstance(term, SliceExpr):
        return _render_slice(term), ATOM_PRECEDENCE
    if isinstance(term, ArrayLiteral):
        return "[" + _join(term.items) + "]", ATOM_PRECEDENCE
    if isinstance(term, RecordLiteral):
        entries = ", ".join(f"{unparse(k)}: {unparse(v)}" for k, v in term.entries)
        return "{" + entries + "}", ATOM_PRECEDENCE
    raise ValueError(f"cannot unparse {type(term).__name__}")


def _render_call(term: MethodCall) -> tuple[str, int]:
    if term.name in BINARY_OPERATORS and len(term.args) == 1:
        op, precedence = BINARY_OPERATORS[term.name]
        left, left_prec = _render(term.receiver)
        right, right_prec = _render(term.args[0])
        if left_prec < precedence:
            left = f"({left})"
        if right_prec <= precedence:
            right = f"({right})"
        return f"{left} {op} {right}", precedence
    return f"{_receiver(term.receiver)}.{term.name}({_join(term.args)})", ATOM_PRECEDENCE


def _render_field(term: FieldAccess) -> str:
    receiver = _receiver(term.receiver)
    if term.name == "__getitem__":
        return f"{receiver}[{_join(term.args)}]"
    if not term.args:
        return f"{receiver}.{term.name}"
    return f"{receiver}.{term.name}({_join(term.args)})"


def _render_slice(term: SliceExpr) -> str:
    receiver = _receiver(term.receiver)
    if is_reverse_slice(term):
        return f"{receiver}[::-1]"
    bounds = [_bound(term.start), _bound(term.end)]
    if term.step is not None:
        bounds.append(_bound(term.step))
    return f"{receiver}[{':'.join(bounds)}]"


def _bound(term: Term) -> str:
    if term == Literal(None):
        return ""
    return unparse(term)


def _receiver(term: Term) -> str:
    text, precedence = _render(term)
    if precedence < ATOM_PRECEDENCE:
        return f"({text})"
    if isinstance(term, Literal) and isinstance(term.value, (int, float)):
        return f"({text})"
    return text


def _join(terms: Sequence[Term]) -> str:
    return ", ".join(unparse(t) for t in terms)


def build_function(name: str, arity: int, term: Term) -> str:
    """A one-line function definition returning `term`.

    Parameters are named arg0, arg1, ... to match the synthesis environment.
    """
    params = ", ".join(f"arg{i}" for i in range(arity))
    return f"def {name}({params}):\n    return {unparse(term)}\n"
