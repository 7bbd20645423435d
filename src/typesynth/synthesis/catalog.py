"""Method signature catalog.

The catalog is the read-only table the interpreter and the expander consult
for method and property types: `(class name, method name) -> [Signature]`.
It is built once and never mutated; lookups that miss return None and the
interpreter treats them as Top.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

from typesynth.synthesis.lattice import (
    BOOL,
    INTEGER,
    STRING,
    Type,
    Var,
    list_of,
)


@dataclass(frozen=True)
class Signature:
    """One overload of a method.

    Attributes:
        arg_types: Parameter types, receiver excluded
        return_type: Result type; a Var stands for the receiver's parameter
        is_property: Rendered as field access rather than a call
    """

    arg_types: tuple[Type, ...]
    return_type: Type
    is_property: bool = False

    def __str__(self) -> str:
        args = ", ".join(str(t) for t in self.arg_types)
        return f"({args}) -> {self.return_type}"


class SignatureCatalog:
    """Immutable mapping of (class, method) to overloads."""

    def __init__(self, entries: Mapping[tuple[str, str], Sequence[Signature]] | None = None):
        frozen = {key: tuple(sigs) for key, sigs in (entries or {}).items()}
        self._entries = MappingProxyType(frozen)

    @classmethod
    def empty(cls) -> SignatureCatalog:
        return cls()

    def lookup(self, cls_name: str, method: str) -> tuple[Signature, ...] | None:
        """Overloads for a method, or None when the catalog has no entry."""
        return self._entries.get((cls_name, method))

    def entries(self) -> Iterator[tuple[str, str, Signature]]:
        """All (class, method, signature) triples in insertion order."""
        for (cls_name, method), sigs in self._entries.items():
            for sig in sigs:
                yield cls_name, method, sig

    def classes(self) -> list[str]:
        seen: list[str] = []
        for cls_name, _ in self._entries:
            if cls_name not in seen:
                seen.append(cls_name)
        return seen

    def __len__(self) -> int:
        return sum(len(sigs) for sigs in self._entries.values())

    def __contains__(self, key: object) -> bool:
        return key in self._entries


ELEMENT = Var("T")


def default_catalog() -> SignatureCatalog:
    """Signatures for the builtin str and list methods the grammar uses.

    Integer arithmetic is not listed; the interpreter types `__add__` and
    `__mul__` directly and the expander builds it from templates.
    """
    str_to_str = Signature((), STRING)
    return SignatureCatalog(
        {
            ("str", "upper"): [str_to_str],
            ("str", "lower"): [str_to_str],
            ("str", "capitalize"): [str_to_str],
            ("str", "title"): [str_to_str],
            ("str", "strip"): [str_to_str],
            ("str", "replace"): [Signature((STRING, STRING), STRING)],
            ("str", "split"): [Signature((STRING,), list_of(STRING))],
            ("str", "join"): [Signature((list_of(STRING),), STRING)],
            ("str", "startswith"): [Signature((STRING,), BOOL)],
            ("str", "__add__"): [Signature((STRING,), STRING)],
            ("str", "__getitem__"): [Signature((INTEGER,), STRING, is_property=True)],
            ("list", "__getitem__"): [Signature((INTEGER,), ELEMENT, is_property=True)],
        }
    )
