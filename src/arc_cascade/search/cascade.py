"""Cascade controller.

Runs the solving stages in a fixed order, cheapest first, and stops at the
first candidate that reproduces every training pair and every held-out
pair exactly:

    smart transforms -> cellular automaton -> heuristic 1-step
    -> heuristic 2-step -> bidirectional -> forward DAG
    -> brute-force enumeration -> genetic evolution -> unsolved

The wall-clock budget is polled before each of the four search stages. It
is cooperative, so a running stage can overrun it before the next check.
A candidate that fails verification is discarded and the cascade moves on
to the next stage.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from arc_cascade.core.data_models import ExamplePair, LearnedTransform, SolveResult, Task
from arc_cascade.perception.features import FeatureProfile, analyze_features
from arc_cascade.reasoning.dsl_engine import Prim, size
from arc_cascade.reasoning.mdl import description_length, mdl_score
from arc_cascade.reasoning.verification import Candidate, matches_all
from arc_cascade.solver.cellular import try_ca_solve
from arc_cascade.solver.smart_transforms import try_smart_transforms
from .bidirectional import BidirectionalSearcher
from .budget import Deadline
from .dag import DagSearcher
from .enumeration import EnumerationConfig, heuristic_compose2, heuristic_single, synthesize
from .evolution import EvolutionConfig, GeneticSearcher
from .heuristics import select_primitives

logger = logging.getLogger(__name__)


_STAGE_STATS: Dict[str, Dict[str, float]] = {
    # stage -> {'calls': float, 'wins': float, 'time': float}
}
_STATS_LOCK = threading.Lock()


def _record_stage(stage: str, win: bool, duration: float) -> None:
    with _STATS_LOCK:
        s = _STAGE_STATS.setdefault(stage, {'calls': 0.0, 'wins': 0.0, 'time': 0.0})
        s['calls'] += 1.0
        if win:
            s['wins'] += 1.0
        s['time'] += max(0.0, float(duration))


def get_stage_stats() -> Dict[str, Dict[str, float]]:
    with _STATS_LOCK:
        return {k: dict(v) for k, v in _STAGE_STATS.items()}


def reset_stage_stats() -> None:
    with _STATS_LOCK:
        _STAGE_STATS.clear()


@dataclass
class CascadeConfig:
    """Budgets and caps for every stage."""
    timeout_seconds: float = 10.0
    max_composite_size: int = 2
    ca_max_steps: int = 3
    bidir_max_nodes: int = 5000
    bidir_max_depth: int = 3
    dag_max_nodes: int = 20000
    dag_max_depth: int = 3
    enumeration: EnumerationConfig = field(default_factory=EnumerationConfig)
    evolution: EvolutionConfig = field(default_factory=EvolutionConfig)


@dataclass
class SolveContext:
    """Per-task state shared by the stages of one cascade run."""
    task: Task
    config: CascadeConfig
    deadline: Deadline
    max_composite_size: int
    profile: FeatureProfile = field(init=False)
    prims: List[Prim] = field(init=False)

    def __post_init__(self):
        self.profile = analyze_features(self.train)
        self.prims = select_primitives(self.profile)

    @property
    def train(self) -> List[ExamplePair]:
        return self.task.train

    @property
    def held_out(self) -> List[ExamplePair]:
        return self.task.test

    def accept(self, candidate: Candidate) -> bool:
        """Exact match on every training pair and every held-out pair."""
        return matches_all(candidate, self.train) and matches_all(candidate, self.held_out)


@dataclass
class StageOutcome:
    """What one stage produced.

    ``program_size`` and ``mdl`` are derived from the candidate when left
    unset.
    """
    candidate: Optional[Candidate]
    checked: int = 0
    method: str = ""
    program_size: Optional[int] = None
    mdl: Optional[float] = None


@dataclass
class Stage:
    name: str
    run: Callable[[SolveContext], StageOutcome]
    budgeted: bool = False


# Stage implementations

def _learned_outcome(transform: Optional[LearnedTransform], method: str) -> StageOutcome:
    if transform is None:
        return StageOutcome(None)
    return StageOutcome(transform, checked=1, method=method,
                        program_size=transform.size(), mdl=description_length(transform))


def run_smart(ctx: SolveContext) -> StageOutcome:
    transform = try_smart_transforms(ctx.train)
    return _learned_outcome(transform, f"smart_{transform.name}" if transform else "")


def run_cellular(ctx: SolveContext) -> StageOutcome:
    rule = try_ca_solve(ctx.train, ctx.config.ca_max_steps)
    return _learned_outcome(rule, rule.name if rule else "")


def run_heuristic_single(ctx: SolveContext) -> StageOutcome:
    program, checked = heuristic_single(ctx.prims, ctx.accept, ctx.deadline)
    return StageOutcome(program, checked, "heuristic_single")


def run_heuristic_compose2(ctx: SolveContext) -> StageOutcome:
    if ctx.max_composite_size < 2:
        return StageOutcome(None)
    program, checked = heuristic_compose2(ctx.prims, ctx.accept, ctx.deadline)
    return StageOutcome(program, checked, "heuristic_compose2")


def run_bidirectional(ctx: SolveContext) -> StageOutcome:
    searcher = BidirectionalSearcher(max_nodes=ctx.config.bidir_max_nodes)
    result = searcher.search_all(ctx.train, ctx.prims, ctx.config.bidir_max_depth, ctx.deadline)
    if result is None:
        return StageOutcome(None, searcher.nodes_explored)
    method = f"bidir_{result.forward_depth}f_{result.backward_depth}b"
    return StageOutcome(result.program, result.nodes_explored, method)


def run_dag(ctx: SolveContext) -> StageOutcome:
    searcher = DagSearcher(max_nodes=ctx.config.dag_max_nodes)
    first = ctx.train[0]
    program = searcher.search(first.input, first.output, ctx.prims,
                              ctx.config.dag_max_depth, ctx.deadline)
    if program is not None and not matches_all(program, ctx.train):
        program = None
    return StageOutcome(program, searcher.nodes_explored, "dag_search")


def run_enumeration(ctx: SolveContext) -> StageOutcome:
    max_size = min(ctx.max_composite_size, 2)
    program, checked = synthesize(ctx.train, max_size, ctx.config.enumeration, ctx.deadline)
    return StageOutcome(program, checked, "enumerate")


def run_evolution(ctx: SolveContext) -> StageOutcome:
    searcher = GeneticSearcher(ctx.config.evolution)
    program, evaluations = searcher.evolve(ctx.train, ctx.deadline)
    return StageOutcome(program, evaluations, "evolution")


def default_stages() -> List[Stage]:
    """The standard priority order."""
    return [
        Stage("smart", run_smart),
        Stage("cellular", run_cellular),
        Stage("heuristic_single", run_heuristic_single),
        Stage("heuristic_compose2", run_heuristic_compose2),
        Stage("bidirectional", run_bidirectional, budgeted=True),
        Stage("dag", run_dag, budgeted=True),
        Stage("enumerate", run_enumeration, budgeted=True),
        Stage("evolution", run_evolution, budgeted=True),
    ]


class CascadeRunner:
    """Runs stages in order until one yields a verified candidate."""

    def __init__(self, config: Optional[CascadeConfig] = None,
                 stages: Optional[Sequence[Stage]] = None):
        self.config = config or CascadeConfig()
        self.stages = list(stages) if stages is not None else default_stages()

    def solve(self, task: Task, max_composite_size: Optional[int] = None) -> SolveResult:
        """Solve one task.

        Args:
            task: Task with training and held-out pairs
            max_composite_size: Largest composition the heuristic and
                enumeration stages may build; config default when omitted

        Returns:
            SolveResult; ``method`` is ``"none"`` and ``mdl`` infinite when unsolved
        """
        start = time.perf_counter()
        if max_composite_size is None:
            max_composite_size = self.config.max_composite_size
        deadline = Deadline(self.config.timeout_seconds)
        ctx = SolveContext(task, self.config, deadline, max_composite_size)
        checked = 0

        for stage in self.stages:
            if stage.budgeted and deadline.expired():
                logger.info(f"Task {task.task_id}: budget exhausted before {stage.name} "
                            f"({deadline.elapsed():.2f}s)")
                break

            logger.debug(f"Task {task.task_id}: stage {stage.name}")
            stage_start = time.perf_counter()
            outcome = stage.run(ctx)
            checked += outcome.checked
            won = outcome.candidate is not None and ctx.accept(outcome.candidate)
            _record_stage(stage.name, won, time.perf_counter() - stage_start)

            if outcome.candidate is not None and not won:
                logger.debug(f"Task {task.task_id}: {stage.name} candidate failed verification")
            if won:
                result = self._build_result(task, outcome, checked, time.perf_counter() - start)
                logger.info(f"Task {task.task_id}: solved by {result.method} "
                            f"(size={result.program_size}, checked={checked})")
                return result

        logger.info(f"Task {task.task_id}: unsolved after {checked} checks")
        return SolveResult.unsolved(task.task_id, checked, time.perf_counter() - start)

    def _build_result(self, task: Task, outcome: StageOutcome, checked: int,
                      elapsed: float) -> SolveResult:
        candidate = outcome.candidate
        if outcome.program_size is not None:
            program_size = outcome.program_size
        elif isinstance(candidate, LearnedTransform):
            program_size = candidate.size()
        else:
            program_size = size(candidate)
        mdl = outcome.mdl if outcome.mdl is not None else mdl_score(candidate, task.train)
        return SolveResult(
            task_id=task.task_id,
            solved=True,
            method=outcome.method,
            program_size=program_size,
            checked=checked,
            mdl=mdl,
            program=candidate,
            elapsed=elapsed,
        )


def create_cascade_runner(stages: Optional[Sequence[Stage]] = None) -> CascadeRunner:
    """Factory function building a CascadeRunner from the loaded configuration.

    Args:
        stages: Optional replacement stage list

    Returns:
        CascadeRunner using configured budgets, or defaults when no config is loaded
    """
    from arc_cascade.config import get_parameter
    from .enumeration import create_enumeration_config
    from .evolution import create_genetic_searcher

    config = CascadeConfig(
        timeout_seconds=float(get_parameter('solver.timeout_seconds', 10.0)),
        max_composite_size=int(get_parameter('solver.max_composite_size', 2)),
        ca_max_steps=int(get_parameter('search.cellular.max_steps', 3)),
        bidir_max_nodes=int(get_parameter('search.bidirectional.max_nodes', 5000)),
        bidir_max_depth=int(get_parameter('search.bidirectional.max_depth', 3)),
        dag_max_nodes=int(get_parameter('search.dag.max_nodes', 20000)),
        dag_max_depth=int(get_parameter('search.dag.max_depth', 3)),
        enumeration=create_enumeration_config(),
        evolution=create_genetic_searcher().config,
    )
    return CascadeRunner(config, stages)


def solve_task(task: Task, max_composite_size: int = 2,
               runner: Optional[CascadeRunner] = None) -> SolveResult:
    """Solve ``task`` with the standard cascade."""
    runner = runner or create_cascade_runner()
    return runner.solve(task, max_composite_size)
