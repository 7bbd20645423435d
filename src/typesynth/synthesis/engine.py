"""Best-first search over partial programs.

The engine keeps a priority queue of partial programs, cheapest first. Each
popped program has all of its regular holes expanded at once; every
combination of fillings is then either

- pruned, when it still has holes and its abstract type does not fit the goal,
- queued again, when it still has holes and does fit, or
- tested with the oracle, when it is Closed.

The first Closed program the oracle accepts is returned.

Usage:
    engine = SearchEngine()
    result = engine.synthesize(context, oracle, timeout=10.0)
    print(unparse(result.program), result.stats.to_dict())
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from collections.abc import Callable

from typesynth.synthesis.errors import (
    InvariantViolation,
    NoSolutionFound,
    OperationalError,
    TimedOut,
)
from typesynth.synthesis.expansion import HoleExpander, TypeDirectedExpander, expand_holes
from typesynth.synthesis.interpreter import AbstractInterpreter
from typesynth.synthesis.lattice import PreciseString, Singleton, Type, subtype, wrap
from typesynth.synthesis.terms import (
    Hole,
    Literal,
    Term,
    VariableRef,
    count_holes,
    materialize,
    program_size,
    transform,
)
from typesynth.synthesis.types import Instrumentation, SearchResult, SynthesisContext

logger = logging.getLogger(__name__)

Oracle = Callable[[Term], bool]

SEED_SCORE = 1


class ProgramQueue:
    """Min-priority queue of partial programs.

    Equal scores come out in insertion order.
    """

    def __init__(self) -> None:
        self._heap: list[tuple[int, int, Term]] = []
        self._counter = itertools.count()

    def push(self, program: Term, score: int) -> None:
        heapq.heappush(self._heap, (score, next(self._counter), program))

    def pop(self) -> Term:
        return heapq.heappop(self._heap)[2]

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)


def resolve_dependent_holes(program: Term, context: SynthesisContext) -> Term | None:
    """Fill every dependent hole from context.

    A dependent hole takes the first environment variable whose type fits its
    goal, else the first pool literal that fits, else the literal carried by
    the goal itself. Returns None when some hole cannot be filled.
    """
    return fill_dependent_holes(program, context)[0]


def fill_dependent_holes(program: Term, context: SynthesisContext) -> tuple[Term | None, int]:
    """Like `resolve_dependent_holes`, also returning how many holes were filled."""
    unresolved = False
    filled = 0

    def fill(node: Term) -> Term | None:
        nonlocal unresolved, filled
        if isinstance(node, Hole) and node.dependent:
            filling = _dependent_filling(node.goal, context)
            if filling is None:
                unresolved = True
                return node
            filled += 1
            return filling
        return None

    resolved = transform(program, fill)
    return (None if unresolved else resolved), filled


def _dependent_filling(goal: Type, context: SynthesisContext) -> Term | None:
    for name, t in context.env.items():
        if subtype(t, goal):
            return VariableRef(name)
    for value in (*context.pools.strings, *context.pools.ints):
        if subtype(wrap(value), goal):
            return Literal(value)
    if isinstance(goal, (Singleton, PreciseString)):
        return Literal(goal.value)
    return None


class SearchEngine:
    """Type-directed enumerative synthesizer.

    The expander and interpreter are injected so alternative grammars or
    catalogs can be used; the engine itself holds no per-call state.
    """

    def __init__(
        self,
        expander: HoleExpander | None = None,
        interpreter: AbstractInterpreter | None = None,
    ) -> None:
        self.expander = expander if expander is not None else TypeDirectedExpander()
        self.interpreter = interpreter

    def synthesize(
        self,
        context: SynthesisContext,
        oracle: Oracle,
        timeout: float | None = None,
        example_count: int = 0,
    ) -> SearchResult:
        """Search for a Closed program of type `context.goal` the oracle accepts.

        Args:
            context: Environment, goal, pools and bounds for this call
            oracle: Returns True for an acceptable program
            timeout: Wall-clock budget in seconds (None for no limit)
            example_count: Recorded in the returned counters

        Returns:
            The first accepted program with this call's counters.

        Raises:
            NoSolutionFound: The search space was exhausted.
            TimedOut: The budget ran out first.
            OperationalError: The oracle could not run a candidate.
        """
        stats = Instrumentation(example_count=example_count)
        interpreter = self.interpreter or AbstractInterpreter(context.catalog)
        deadline = time.monotonic() + timeout if timeout is not None else None

        def check_deadline() -> None:
            if deadline is not None and time.monotonic() > deadline:
                logger.debug("Timed out: %s", stats.to_dict())
                raise TimedOut(timeout, stats=stats)

        queue = ProgramQueue()
        queue.push(Hole(context.goal), SEED_SCORE)
        logger.debug("Synthesizing %s", context.summary())

        while True:
            check_deadline()
            if not queue:
                logger.debug("Queue exhausted: %s", stats.to_dict())
                raise NoSolutionFound(stats=stats)

            current = queue.pop()
            expanded, counts = expand_holes(current, self.expander, context)
            selections = itertools.product(*(range(n) for n in counts)) if counts else [()]

            for selection in selections:
                check_deadline()
                candidate = materialize(expanded, selection) if counts else current
                regular, dependent = count_holes(candidate)

                if regular or dependent:
                    self._consider_partial(
                        candidate, regular, dependent, context, interpreter, queue, stats
                    )
                    continue

                if program_size(candidate) > context.max_size:
                    continue
                if self._test(candidate, oracle, stats):
                    logger.debug("Found program after %d tests", stats.tested_programs)
                    return SearchResult(candidate, stats, program_size(candidate))

    def _consider_partial(
        self,
        candidate: Term,
        regular: int,
        dependent: int,
        context: SynthesisContext,
        interpreter: AbstractInterpreter,
        queue: ProgramQueue,
        stats: Instrumentation,
    ) -> None:
        abstract = interpreter.interpret(context.env, candidate)
        if not subtype(abstract, context.goal):
            stats.eliminated_programs += 1
            return

        if regular == 0:
            resolved, filled = fill_dependent_holes(candidate, context)
            if resolved is None:
                logger.debug("Dropping candidate with unresolvable dependent hole")
                return
            if filled != dependent:
                raise InvariantViolation(
                    "dependent hole count changed during resolution",
                    {"counted": dependent, "filled": filled},
                )
            candidate = resolved

        if program_size(candidate) <= context.max_size:
            queue.push(candidate, context.score(candidate))

    def _test(self, candidate: Term, oracle: Oracle, stats: Instrumentation) -> bool:
        stats.tested_programs += 1
        try:
            return bool(oracle(candidate))
        except OperationalError:
            raise
        except Exception as e:
            logger.debug("Oracle raised %s for candidate, treating as failure", e)
            return False


def synthesize(
    context: SynthesisContext,
    oracle: Oracle,
    timeout: float | None = None,
    example_count: int = 0,
) -> SearchResult:
    """Run one search with the default engine."""
    return SearchEngine().synthesize(context, oracle, timeout, example_count)
