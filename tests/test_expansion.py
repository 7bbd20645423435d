"""Tests for hole expansion rules and the expansion pass."""

import pytest

from typesynth.synthesis.catalog import Signature, SignatureCatalog
from typesynth.synthesis.expansion import (
    ExpansionLimits,
    HoleExpander,
    TypeDirectedExpander,
    arithmetic_templates,
    array_literals,
    catalog_calls,
    concat_templates,
    default_rules,
    environment_variables,
    expand_holes,
    is_inhabited,
    goal_literal,
    pool_literals,
    record_literals,
    union_case_split,
)
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
    Var,
    list_of,
    union,
)
from typesynth.synthesis.terms import (
    ArrayLiteral,
    FieldAccess,
    FilledHole,
    Hole,
    MethodCall,
    RecordLiteral,
    call,
    lit,
    var,
)
from typesynth.synthesis.types import LiteralPools, SynthesisContext

LIMITS = ExpansionLimits()


def make_context(env=None, goal=INTEGER, strings=(), ints=(), catalog=None):
    kwargs = {}
    if catalog is not None:
        kwargs["catalog"] = catalog
    return SynthesisContext(
        env=env or {},
        goal=goal,
        pools=LiteralPools.of(strings, ints),
        **kwargs,
    )


class TestLiteralRules:
    """Pool literals, goal literals and variables."""

    def test_pool_literals_filtered_by_goal(self):
        ctx = make_context(strings=["a"], ints=[1, 2])
        assert list(pool_literals(INTEGER, ctx, LIMITS)) == [lit(1), lit(2)]
        assert list(pool_literals(STRING, ctx, LIMITS)) == [lit("a")]

    def test_goal_literal(self):
        ctx = make_context()
        assert list(goal_literal(Singleton(5), ctx, LIMITS)) == [lit(5)]
        assert list(goal_literal(PreciseString("x"), ctx, LIMITS)) == [lit("x")]
        assert list(goal_literal(INTEGER, ctx, LIMITS)) == []

    def test_environment_variables(self):
        ctx = make_context(env={"a": Singleton(5), "s": STRING, "b": INTEGER})
        assert list(environment_variables(INTEGER, ctx, LIMITS)) == [var("a"), var("b")]

    def test_union_case_split(self):
        goal = union(INTEGER, STRING)
        holes = list(union_case_split(goal, make_context(), LIMITS))
        assert holes == [Hole(INTEGER, dependent=True), Hole(STRING, dependent=True)]
        assert list(union_case_split(INTEGER, make_context(), LIMITS)) == []


class TestStructureRules:
    """Array and record literals."""

    def test_int_arrays(self):
        ctx = make_context(ints=[1, 2])
        arrays = list(array_literals(list_of(INTEGER), ctx, ExpansionLimits(max_array_arity=2)))
        assert arrays == [
            ArrayLiteral((lit(1),)),
            ArrayLiteral((lit(2),)),
            ArrayLiteral((lit(1), lit(2))),
            ArrayLiteral((lit(2), lit(1))),
        ]

    def test_bool_arrays(self):
        arrays = list(array_literals(list_of(BOOL), make_context(), LIMITS))
        assert arrays[0] == ArrayLiteral((lit(True), lit(False)))
        assert len(arrays) == 2

    def test_other_element_types(self):
        assert list(array_literals(list_of(list_of(INTEGER)), make_context(), LIMITS)) == []
        assert list(array_literals(INTEGER, make_context(), LIMITS)) == []

    def test_records_cover_field_subsets(self):
        goal = FiniteRecord.of({"a": STRING, "b": INTEGER})
        records = list(record_literals(goal, make_context(), LIMITS))
        assert records == [
            RecordLiteral(((lit("a"), Hole(STRING)),)),
            RecordLiteral(((lit("b"), Hole(INTEGER)),)),
            RecordLiteral(((lit("a"), Hole(STRING)), (lit("b"), Hole(INTEGER)))),
        ]


class TestArithmeticTemplates:
    """Integer templates."""

    def test_variable_pairs(self):
        ctx = make_context(env={"a": INTEGER, "b": INTEGER})
        assert list(arithmetic_templates(INTEGER, ctx, LIMITS)) == [
            call(var("a"), "__add__", var("b")),
            call(var("a"), "__mul__", var("b")),
            call(var("b"), "__add__", var("a")),
            call(var("b"), "__mul__", var("a")),
        ]

    def test_constants_are_bounded(self):
        ctx = make_context(env={"a": INTEGER}, ints=list(range(10)))
        limits = ExpansionLimits(arithmetic_constants=2, constant_pairs=3)
        candidates = list(arithmetic_templates(INTEGER, ctx, limits))
        with_variable = [c for c in candidates if var("a") in (c.receiver, *c.args)]
        constant_sums = [c for c in candidates if c not in with_variable]
        assert len(with_variable) == 8
        assert constant_sums == [
            call(lit(0), "__add__", lit(1)),
            call(lit(0), "__add__", lit(2)),
            call(lit(0), "__add__", lit(3)),
        ]

    def test_triples(self):
        ctx = make_context(env={"a": INTEGER, "b": INTEGER, "c": INTEGER})
        candidates = list(arithmetic_templates(INTEGER, ctx, LIMITS))
        nested = call(call(var("a"), "__add__", var("b")), "__add__", var("c"))
        assert nested in candidates
        assert call(var("a"), "__add__", call(var("b"), "__add__", var("c"))) in candidates

    def test_non_integer_goal(self):
        ctx = make_context(env={"a": INTEGER, "b": INTEGER})
        assert list(arithmetic_templates(STRING, ctx, LIMITS)) == []


class TestConcatTemplates:
    """String concatenation templates."""

    def test_pairs_and_constants(self):
        ctx = make_context(env={"s": STRING, "t": PreciseString("x")}, strings=["!"])
        assert list(concat_templates(STRING, ctx, LIMITS)) == [
            call(var("s"), "__add__", var("t")),
            call(var("s"), "__add__", lit("!")),
            call(lit("!"), "__add__", var("s")),
            call(var("t"), "__add__", var("s")),
            call(var("t"), "__add__", lit("!")),
            call(lit("!"), "__add__", var("t")),
        ]


class TestCatalogCalls:
    """Catalog-driven deepening."""

    def test_integer_goal(self):
        catalog = SignatureCatalog({("str", "count"): [Signature((STRING,), INTEGER)]})
        ctx = make_context(env={"s": STRING}, catalog=catalog)
        candidates = list(catalog_calls(INTEGER, ctx, LIMITS))
        assert candidates == [MethodCall(Hole(Nominal("str")), "count", (Hole(STRING),))]

    def test_default_catalog_has_no_integer_methods(self):
        ctx = make_context(env={"a": INTEGER}, ints=[1])
        assert list(catalog_calls(INTEGER, ctx, LIMITS)) == []

    def test_skips_getitem(self):
        ctx = make_context(env={"s": STRING})
        candidates = list(catalog_calls(STRING, ctx, LIMITS))
        assert MethodCall(Hole(Nominal("str")), "upper", ()) in candidates
        assert all(c.name != "__getitem__" for c in candidates)

    def test_skips_holes_without_terminals(self):
        assert list(catalog_calls(STRING, make_context(), LIMITS)) == []

    def test_recursive_method_needs_a_terminal(self):
        catalog = SignatureCatalog({("int", "__add__"): [Signature((INTEGER,), INTEGER)]})
        assert list(catalog_calls(INTEGER, make_context(catalog=catalog), LIMITS)) == []
        with_pool = make_context(ints=[1], catalog=catalog)
        assert list(catalog_calls(INTEGER, with_pool, LIMITS)) == [
            MethodCall(Hole(Nominal("int")), "__add__", (Hole(INTEGER),))
        ]

    def test_var_return_uses_goal(self):
        catalog = SignatureCatalog({("list", "pop"): [Signature((), Var("T"))]})
        ctx = make_context(strings=["x"], catalog=catalog)
        candidates = list(catalog_calls(STRING, ctx, LIMITS))
        assert candidates == [MethodCall(Hole(Generic(Nominal("list"), STRING)), "pop", ())]

    def test_property_signature(self):
        catalog = SignatureCatalog({("str", "first"): [Signature((), STRING, is_property=True)]})
        ctx = make_context(env={"s": STRING}, catalog=catalog)
        candidates = list(catalog_calls(STRING, ctx, LIMITS))
        assert candidates == [FieldAccess(Hole(Nominal("str")), "first", ())]

    def test_bottom_parameters_skipped(self):
        catalog = SignatureCatalog({("str", "never"): [Signature((BOTTOM,), STRING)]})
        ctx = make_context(env={"s": STRING}, catalog=catalog)
        assert list(catalog_calls(STRING, ctx, LIMITS)) == []


class TestIsInhabited:
    """Whether a hole type can ever be closed."""

    def test_terminals(self):
        assert is_inhabited(PreciseString("x"), make_context(), LIMITS)
        assert is_inhabited(INTEGER, make_context(env={"a": Singleton(3)}), LIMITS)
        assert is_inhabited(STRING, make_context(strings=["a"]), LIMITS)
        assert not is_inhabited(INTEGER, make_context(), LIMITS)

    def test_list_through_array_literal(self):
        assert is_inhabited(list_of(STRING), make_context(strings=["a"]), LIMITS)
        assert not is_inhabited(list_of(STRING), make_context(), LIMITS)

    def test_through_catalog_method(self):
        catalog = SignatureCatalog({("str", "count"): [Signature((STRING,), INTEGER)]})
        ctx = make_context(strings=["a"], catalog=catalog)
        assert is_inhabited(INTEGER, ctx, LIMITS)

    def test_union_member(self):
        ctx = make_context(ints=[1])
        assert is_inhabited(union(STRING, INTEGER), ctx, LIMITS)
        assert not is_inhabited(union(STRING, INTEGER), make_context(), LIMITS)


class TestTypeDirectedExpander:
    """The expander and the expansion pass."""

    def test_satisfies_protocol(self):
        assert isinstance(TypeDirectedExpander(), HoleExpander)

    def test_default_rule_order(self):
        rules = default_rules()
        assert rules[0] is pool_literals
        assert rules[-1] is catalog_calls

    def test_removes_duplicates(self):
        expander = TypeDirectedExpander(rules=[environment_variables, environment_variables])
        ctx = make_context(env={"a": INTEGER})
        assert expander.expand(Hole(INTEGER), ctx) == [var("a")]

    def test_default_expansion_starts_with_literals(self):
        ctx = make_context(env={"a": Singleton(5)}, ints=[5, 10])
        candidates = TypeDirectedExpander().expand(Hole(INTEGER), ctx)
        assert candidates[:3] == [lit(5), lit(10), var("a")]

    def test_no_candidates(self):
        expander = TypeDirectedExpander(rules=[])
        assert expander.expand(Hole(INTEGER), make_context()) == []


class FixedExpander:
    """Expander returning the same candidates for every hole."""

    def __init__(self, candidates):
        self.candidates = candidates
        self.calls = 0

    def expand(self, hole, context):
        self.calls += 1
        return list(self.candidates)


class TestExpandHoles:
    """Tests for expand_holes."""

    def test_replaces_regular_holes(self):
        program = call(Hole(INTEGER), "__add__", Hole(INTEGER))
        expander = FixedExpander([lit(1), lit(2)])
        expanded, counts = expand_holes(program, expander, make_context())
        assert counts == [2, 2]
        assert expanded == MethodCall(
            FilledHole(INTEGER, (lit(1), lit(2))),
            "__add__",
            (FilledHole(INTEGER, (lit(1), lit(2))),),
        )

    def test_leaves_dependent_holes(self):
        program = call(Hole(INTEGER, dependent=True), "__add__", lit(1))
        expander = FixedExpander([lit(3)])
        expanded, counts = expand_holes(program, expander, make_context())
        assert counts == []
        assert expanded == program
        assert expander.calls == 0

    @pytest.mark.parametrize("program", [lit(1), var("a"), call(var("a"), "upper")])
    def test_closed_program_unchanged(self, program):
        expanded, counts = expand_holes(program, FixedExpander([]), make_context())
        assert expanded == program
        assert counts == []
