"""Abstract type domain for type-directed synthesis.

The domain is a small lattice of Python-flavoured types:

- Top / Bottom: the greatest and least elements
- Singleton: a literal int, float, bool or None value
- PreciseString: a literal string value
- Nominal: a class by name ("int", "str", "list", ...)
- Generic: a parameterized class ("list[int]")
- Union: a set of alternatives
- FiniteRecord: a dict with known string keys
- Var: a type variable, used by parametric catalog signatures

`subtype` is total and fail-closed: shape pairs it does not know return False
rather than raising, so pruning with it never rejects a program by accident
of an exception.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


class Type:
    """Base class for abstract type values."""

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Type):
            return NotImplemented
        return subtype(self, other)


# =============================================================================
# Type Variants
# =============================================================================


@dataclass(frozen=True)
class TopType(Type):
    """The type every value has."""

    def __str__(self) -> str:
        return "Top"


@dataclass(frozen=True)
class BottomType(Type):
    """The type no value has."""

    def __str__(self) -> str:
        return "Bottom"


@dataclass(frozen=True, eq=False)
class Singleton(Type):
    """The type of exactly one non-string literal.

    Equality compares the literal's Python type as well as its value, so
    Singleton(1), Singleton(1.0) and Singleton(True) are all distinct.
    """

    value: Any

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Singleton):
            return NotImplemented
        if type(self.value) is not type(other.value):
            return False
        return self.value is other.value or self.value == other.value

    def __hash__(self) -> int:
        return hash((Singleton, type(self.value).__name__, self.value))

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class PreciseString(Type):
    """The type of exactly one string literal."""

    value: str

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class Nominal(Type):
    """A class referenced by name."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Generic(Type):
    """A class applied to one type parameter, e.g. list[int]."""

    base: Nominal
    param: Type

    def __str__(self) -> str:
        return f"{self.base}[{self.param}]"


@dataclass(frozen=True, eq=False)
class Union(Type):
    """A union of alternatives.

    Members keep their construction order (used for deterministic case
    splits); equality and hashing ignore it. Build unions with `union()`
    rather than directly so nesting, duplicates, Top and Bottom are handled.
    """

    types: tuple[Type, ...]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Union):
            return NotImplemented
        return frozenset(self.types) == frozenset(other.types)

    def __hash__(self) -> int:
        return hash((Union, frozenset(self.types)))

    def __str__(self) -> str:
        return " | ".join(str(t) for t in self.types)


@dataclass(frozen=True, eq=False)
class FiniteRecord(Type):
    """A dict type with a fixed set of string keys."""

    fields: tuple[tuple[str, Type], ...]

    @classmethod
    def of(cls, fields: Mapping[str, Type]) -> FiniteRecord:
        return cls(tuple(fields.items()))

    @property
    def mapping(self) -> dict[str, Type]:
        return dict(self.fields)

    def keys(self) -> list[str]:
        return [key for key, _ in self.fields]

    def get(self, key: str) -> Type | None:
        for name, value in self.fields:
            if name == key:
                return value
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FiniteRecord):
            return NotImplemented
        return self.mapping == other.mapping

    def __hash__(self) -> int:
        return hash((FiniteRecord, frozenset(self.fields)))

    def __str__(self) -> str:
        inner = ", ".join(f"{key}: {value}" for key, value in self.fields)
        return "{" + inner + "}"


@dataclass(frozen=True)
class Var(Type):
    """A type variable standing for a generic receiver's parameter."""

    name: str

    def __str__(self) -> str:
        return f"?{self.name}"


# =============================================================================
# Well-known Types
# =============================================================================

TOP = TopType()
BOTTOM = BottomType()

INTEGER = Nominal("int")
FLOAT = Nominal("float")
STRING = Nominal("str")
BOOL = Nominal("bool")
NONE = Nominal("NoneType")
LIST = Nominal("list")
DICT = Nominal("dict")
OBJECT = Nominal("object")

TRUE = Singleton(True)
FALSE = Singleton(False)


def top() -> Type:
    return TOP


def bottom() -> Type:
    return BOTTOM


def list_of(param: Type) -> Generic:
    return Generic(LIST, param)


# =============================================================================
# Construction
# =============================================================================


def union(*types: Type) -> Type:
    """Build a canonical union.

    Nested unions are flattened, duplicates and Bottom dropped, and Top
    absorbs everything. Zero members give Bottom, one member is returned
    unchanged.
    """
    members: list[Type] = []
    for t in _flatten(types):
        if isinstance(t, TopType):
            return TOP
        if isinstance(t, BottomType) or t in members:
            continue
        members.append(t)

    if not members:
        return BOTTOM
    if len(members) == 1:
        return members[0]
    return Union(tuple(members))


def _flatten(types: Iterable[Type]) -> Iterable[Type]:
    for t in types:
        if isinstance(t, Union):
            yield from _flatten(t.types)
        else:
            yield t


def general_type_of(value: Any) -> Type:
    """The general nominal type of a raw Python value."""
    if isinstance(value, bool):
        return BOOL
    if isinstance(value, int):
        return INTEGER
    if isinstance(value, float):
        return FLOAT
    if isinstance(value, str):
        return STRING
    if value is None:
        return NONE
    if isinstance(value, (list, tuple)):
        return promote(wrap(list(value)))
    if isinstance(value, dict):
        return promote(wrap(value))
    return Nominal(type(value).__name__)


def wrap(value: Any) -> Type:
    """The most precise abstract type of a raw Python value."""
    if isinstance(value, (bool, int, float)) or value is None:
        return Singleton(value)
    if isinstance(value, str):
        return PreciseString(value)
    if isinstance(value, (list, tuple)):
        return list_of(promote(union(*(wrap(item) for item in value))))
    if isinstance(value, dict) and all(isinstance(key, str) for key in value):
        return FiniteRecord(tuple((key, wrap(item)) for key, item in value.items()))
    return Nominal(type(value).__name__)


def promote(t: Type) -> Type:
    """Widen literal types to their general nominal type.

    The result is always a supertype of the input.
    """
    if isinstance(t, Singleton):
        return general_type_of(t.value)
    if isinstance(t, PreciseString):
        return STRING
    if isinstance(t, Union):
        return union(*(promote(member) for member in t.types))
    if isinstance(t, Generic):
        return Generic(t.base, promote(t.param))
    if isinstance(t, FiniteRecord):
        return FiniteRecord(tuple((key, promote(value)) for key, value in t.fields))
    return t


# =============================================================================
# Subtyping
# =============================================================================


def subtype(a: Type, b: Type) -> bool:
    """Decide a <= b. Unrecognized shape pairs are never subtypes."""
    if a is b or a == b:
        return True
    if isinstance(a, BottomType) or isinstance(b, TopType):
        return True
    if isinstance(a, TopType) or isinstance(b, BottomType):
        return False

    # a union must fit entirely before b's alternatives are considered
    if isinstance(a, Union):
        return all(subtype(member, b) for member in a.types)
    if isinstance(b, Union):
        return any(subtype(a, member) for member in b.types)

    if isinstance(b, Nominal) and b == OBJECT:
        return True

    if isinstance(a, Singleton):
        if isinstance(b, Singleton):
            return False
        return subtype(general_type_of(a.value), b)
    if isinstance(a, PreciseString):
        if isinstance(b, PreciseString):
            return False
        return subtype(STRING, b)

    if isinstance(a, Nominal) and isinstance(b, Nominal):
        return a.name == b.name
    if isinstance(a, Generic):
        if isinstance(b, Generic):
            return subtype(a.base, b.base) and subtype(a.param, b.param)
        if isinstance(b, Nominal):
            return subtype(a.base, b)
        return False
    if isinstance(a, FiniteRecord):
        if isinstance(b, FiniteRecord):
            return _record_subtype(a, b)
        if isinstance(b, Nominal):
            return b == DICT
        return False

    return False


def _record_subtype(a: FiniteRecord, b: FiniteRecord) -> bool:
    fields = a.mapping
    for key, expected in b.fields:
        actual = fields.get(key)
        if actual is None or not subtype(actual, expected):
            return False
    return True


# =============================================================================
# Classification helpers
# =============================================================================


def is_integer_like(t: Type) -> bool:
    return not isinstance(t, BottomType) and subtype(t, INTEGER)


def is_string_like(t: Type) -> bool:
    return not isinstance(t, BottomType) and subtype(t, STRING)


def class_key(t: Type) -> str | None:
    """The nominal name used to look a receiver up in a signature catalog."""
    if isinstance(t, Generic):
        return t.base.name
    if isinstance(t, Nominal):
        return t.name
    if isinstance(t, (Singleton, PreciseString)):
        return class_key(promote(t))
    return None
