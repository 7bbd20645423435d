"""Abstract interpreter over the type lattice.

Computes the abstract type of a (possibly partial) program. Holes evaluate to
their goal type, so a partial program's type is what it would have if every
hole were filled as promised. No concrete evaluation takes place.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from typesynth.synthesis.catalog import Signature, SignatureCatalog, default_catalog
from typesynth.synthesis.errors import TypeInterpretationError
from typesynth.synthesis.lattice import (
    DICT,
    INTEGER,
    LIST,
    STRING,
    TOP,
    FiniteRecord,
    Generic,
    PreciseString,
    Type,
    Var,
    class_key,
    is_integer_like,
    is_string_like,
    list_of,
    promote,
    subtype,
    union,
    wrap,
)
from typesynth.synthesis.terms import (
    ArrayLiteral,
    FieldAccess,
    Hole,
    Literal,
    MethodCall,
    RecordLiteral,
    SliceExpr,
    Term,
    VariableRef,
)

logger = logging.getLogger(__name__)

Environment = Mapping[str, Type]

ARITHMETIC_METHODS = frozenset({"__add__", "__mul__"})


class AbstractInterpreter:
    """Type-level interpreter for synthesized terms.

    Method and property calls are resolved against a signature catalog; a
    call the catalog does not know evaluates to Top rather than failing,
    since synthesized calls are speculative.
    """

    def __init__(self, catalog: SignatureCatalog | None = None) -> None:
        self.catalog = catalog if catalog is not None else default_catalog()

    def interpret(self, env: Environment, term: Term) -> Type:
        """Return the abstract type of `term` under `env`.

        Raises:
            TypeInterpretationError: for an unknown node kind or an unbound
                variable; both mean the generator produced a malformed term.
        """
        if isinstance(term, Literal):
            return wrap(term.value)
        if isinstance(term, VariableRef):
            if term.name not in env:
                raise TypeInterpretationError(f"unbound variable {term.name!r}", term=term)
            return env[term.name]
        if isinstance(term, Hole):
            return term.goal
        if isinstance(term, (MethodCall, FieldAccess)):
            return self._interpret_call(env, term)
        if isinstance(term, SliceExpr):
            return self._interpret_slice(env, term)
        if isinstance(term, ArrayLiteral):
            items = [self.interpret(env, item) for item in term.items]
            return list_of(promote(union(*items)))
        if isinstance(term, RecordLiteral):
            return self._interpret_record(env, term)
        raise TypeInterpretationError(f"unexpected AST node {type(term).__name__}", term=term)

    def _interpret_call(self, env: Environment, term: MethodCall | FieldAccess) -> Type:
        receiver = self.interpret(env, term.receiver)
        args = [self.interpret(env, arg) for arg in term.args]

        if term.name in ARITHMETIC_METHODS and len(args) == 1:
            if is_integer_like(receiver) and is_integer_like(args[0]):
                return INTEGER
            if term.name == "__add__" and is_string_like(receiver) and is_string_like(args[0]):
                return STRING

        if term.name == "__getitem__" and args and is_string_like(receiver):
            return STRING

        key = class_key(receiver)
        if key is None:
            return TOP
        overloads = self.catalog.lookup(key, term.name)
        if overloads is None:
            logger.debug("No catalog entry for %s.%s", key, term.name)
            return TOP

        for sig in overloads:
            if len(sig.arg_types) != len(args):
                continue
            if _accepts(sig, args):
                return _return_type(sig, receiver)
        return TOP

    def _interpret_slice(self, env: Environment, term: SliceExpr) -> Type:
        receiver = self.interpret(env, term.receiver)
        if is_string_like(receiver):
            return STRING
        if isinstance(receiver, Generic) and receiver.base == LIST:
            return promote(receiver)
        return TOP

    def _interpret_record(self, env: Environment, term: RecordLiteral) -> Type:
        fields: list[tuple[str, Type]] = []
        values: list[Type] = []
        static_keys = True
        for key, value in term.entries:
            value_type = self.interpret(env, value)
            values.append(value_type)
            if isinstance(key, Literal) and isinstance(key.value, str):
                fields.append((key.value, value_type))
            else:
                key_type = self.interpret(env, key)
                if not isinstance(key_type, PreciseString):
                    static_keys = False
                else:
                    fields.append((key_type.value, value_type))

        if static_keys:
            return FiniteRecord(tuple(fields))
        return Generic(DICT, promote(union(*values)))


def _accepts(sig: Signature, args: Sequence[Type]) -> bool:
    for actual, expected in zip(args, sig.arg_types):
        if not (subtype(actual, expected) or subtype(promote(actual), expected)):
            return False
    return True


def _return_type(sig: Signature, receiver: Type) -> Type:
    if isinstance(sig.return_type, Var):
        if isinstance(receiver, Generic):
            return receiver.param
        return TOP
    return sig.return_type
