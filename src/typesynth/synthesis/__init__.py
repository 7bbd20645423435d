"""Type-directed enumerative program synthesis.

Programs are searched best-first, smallest first. Partial programs contain
typed holes; an abstract interpreter over a small type lattice discards
partial programs whose type cannot fit the goal, and a test oracle checks
the Closed ones.

Core components:
- lattice: abstract types, subtyping and promotion
- terms: the program AST with holes
- catalog: method signatures known to the interpreter and expander
- interpreter: abstract interpretation of partial programs
- expansion / templates: candidate fillings for a hole
- engine: the search loop

Example usage:
    from typesynth.synthesis import (
        INTEGER,
        LiteralPools,
        SearchEngine,
        SynthesisContext,
    )

    context = SynthesisContext(
        env={"arg0": INTEGER, "arg1": INTEGER},
        goal=INTEGER,
        pools=LiteralPools.of(ints=[1, 2]),
    )
    result = SearchEngine().synthesize(context, oracle, timeout=10)
    print(unparse(result.program))
"""

from .catalog import Signature, SignatureCatalog, default_catalog
from .engine import (
    ProgramQueue,
    SearchEngine,
    fill_dependent_holes,
    resolve_dependent_holes,
    synthesize,
)
from .errors import (
    InvariantViolation,
    NoSolutionFound,
    OperationalError,
    SynthesisError,
    TimedOut,
    TypeInterpretationError,
)
from .examples import Example, build_context, extract_literal_pools, infer_signature
from .expansion import ExpansionLimits, HoleExpander, TypeDirectedExpander, expand_holes
from .interpreter import AbstractInterpreter
from .lattice import (
    BOOL,
    BOTTOM,
    INTEGER,
    STRING,
    TOP,
    FiniteRecord,
    Generic,
    Nominal,
    PreciseString,
    Singleton,
    Type,
    Union,
    promote,
    subtype,
    union,
    wrap,
)
from .oracle import ExampleOracle, InProcessExecutor, SubprocessExecutor, compare_outputs
from .terms import (
    ArrayLiteral,
    FieldAccess,
    Hole,
    Literal,
    MethodCall,
    RecordLiteral,
    SliceExpr,
    Term,
    VariableRef,
    is_closed,
    program_size,
)
from .types import Instrumentation, LiteralPools, SearchResult, SynthesisContext
from .unparse import build_function, unparse

__all__ = [
    "BOOL",
    "BOTTOM",
    "INTEGER",
    "STRING",
    "TOP",
    "AbstractInterpreter",
    "ArrayLiteral",
    "Example",
    "ExampleOracle",
    "ExpansionLimits",
    "FieldAccess",
    "FiniteRecord",
    "Generic",
    "Hole",
    "HoleExpander",
    "InProcessExecutor",
    "Instrumentation",
    "InvariantViolation",
    "Literal",
    "LiteralPools",
    "MethodCall",
    "NoSolutionFound",
    "Nominal",
    "OperationalError",
    "PreciseString",
    "ProgramQueue",
    "RecordLiteral",
    "SearchEngine",
    "SearchResult",
    "Signature",
    "SignatureCatalog",
    "Singleton",
    "SliceExpr",
    "SubprocessExecutor",
    "SynthesisContext",
    "SynthesisError",
    "Term",
    "TimedOut",
    "Type",
    "TypeDirectedExpander",
    "TypeInterpretationError",
    "Union",
    "VariableRef",
    "build_context",
    "build_function",
    "compare_outputs",
    "default_catalog",
    "expand_holes",
    "extract_literal_pools",
    "fill_dependent_holes",
    "infer_signature",
    "is_closed",
    "program_size",
    "promote",
    "resolve_dependent_holes",
    "subtype",
    "synthesize",
    "union",
    "unparse",
    "wrap",
]
