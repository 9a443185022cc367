"""Benchmark runner over a directory of ARC tasks.

Loads every task, solves it with the cascade and aggregates a report:
totals, score, average MDL over solved tasks, elapsed time, peak resident
memory and a histogram of winning methods. Tasks that fail to load are logged and skipped.
"""

import logging
import os
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import psutil

from arc_cascade.core.data_models import SolveResult, Task
from arc_cascade.search.cascade import CascadeRunner, create_cascade_runner
from .io import ARCDataLoader

logger = logging.getLogger(__name__)


@dataclass
class TaskReport:
    """One row of the per-task table."""
    task_id: str
    solved: bool
    method: str
    program_size: int
    checked: int
    mdl: float
    elapsed_ms: int

    @classmethod
    def from_result(cls, result: SolveResult, elapsed_ms: int) -> "TaskReport":
        return cls(result.task_id, result.solved, result.method, result.program_size,
                   result.checked, result.mdl, elapsed_ms)


@dataclass
class BenchmarkReport:
    """Aggregate benchmark outcome."""
    total_tasks: int = 0
    solved: int = 0
    score: float = 0.0
    avg_mdl: float = 0.0
    elapsed_ms: int = 0
    peak_memory_mb: float = 0.0
    by_method: List[Tuple[str, int]] = field(default_factory=list)
    per_task: List[TaskReport] = field(default_factory=list)

    @classmethod
    def from_tasks(cls, per_task: List[TaskReport], elapsed_ms: int,
                   peak_memory_mb: float = 0.0) -> "BenchmarkReport":
        solved = [t for t in per_task if t.solved]
        counts = Counter(t.method for t in solved)
        by_method = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return cls(
            total_tasks=len(per_task),
            solved=len(solved),
            score=len(solved) / len(per_task) if per_task else 0.0,
            avg_mdl=sum(t.mdl for t in solved) / max(1, len(solved)),
            elapsed_ms=elapsed_ms,
            peak_memory_mb=peak_memory_mb,
            by_method=by_method,
            per_task=per_task,
        )

    def summary(self) -> str:
        lines = [
            "=== ARC-AGI Benchmark Results ===",
            f"Tasks: {self.total_tasks} | Solved: {self.solved} | Score: {self.score * 100:.1f}%",
            f"Time: {self.elapsed_ms}ms | Avg MDL: {self.avg_mdl:.1f} | Peak RAM: {self.peak_memory_mb:.1f}MB",
            "",
            "By method:",
        ]
        for method, count in self.by_method:
            lines.append(f"  {method}: {count} ({count / max(1, self.solved) * 100:.1f}%)")
        return "\n".join(lines)

    def detail(self) -> str:
        lines = [self.summary(), "", "Per-task detail:"]
        for t in self.per_task:
            status = "OK" if t.solved else "--"
            lines.append(f"  [{status}] {t.task_id} | method={t.method} size={t.program_size} "
                         f"checked={t.checked} mdl={t.mdl:.1f} time={t.elapsed_ms}ms")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['by_method'] = dict(self.by_method)
        for row in data['per_task']:
            if row['mdl'] == float('inf'):
                row['mdl'] = None
        return data


def _rss_mb(process: psutil.Process) -> float:
    return process.memory_info().rss / 1024 / 1024


def _solve_one(runner: CascadeRunner, task: Task, max_composite_size: int) -> TaskReport:
    start = time.perf_counter()
    result = runner.solve(task, max_composite_size)
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    return TaskReport.from_result(result, elapsed_ms)


def run_benchmark(data_dir: Union[str, Path],
                  max_tasks: Optional[int] = None,
                  max_composite_size: int = 2,
                  workers: int = 1,
                  runner: Optional[CascadeRunner] = None) -> BenchmarkReport:
    """Solve every task in ``data_dir`` and aggregate the results.

    Args:
        data_dir: Directory of task JSON files
        max_tasks: Only the first N tasks in id order
        max_composite_size: Passed through to each cascade run
        workers: Thread count; tasks share no mutable state
        runner: Cascade runner to use; built from config when omitted

    Returns:
        BenchmarkReport with per-task rows in task id order
    """
    loader = ARCDataLoader(data_dir)
    runner = runner or create_cascade_runner()
    tasks = [task for _, task in loader.iter_tasks(skip_invalid=True, max_tasks=max_tasks)]
    logger.info(f"Benchmarking {len(tasks)} tasks from {data_dir} with {workers} worker(s)")

    process = psutil.Process(os.getpid())
    peak_memory_mb = _rss_mb(process)

    start = time.perf_counter()
    reports: List[TaskReport] = []
    if workers <= 1:
        for task in tasks:
            reports.append(_solve_one(runner, task, max_composite_size))
            peak_memory_mb = max(peak_memory_mb, _rss_mb(process))
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(_solve_one, runner, task, max_composite_size): task.task_id
                       for task in tasks}
            for future in as_completed(futures):
                reports.append(future.result())
                peak_memory_mb = max(peak_memory_mb, _rss_mb(process))
        reports.sort(key=lambda r: r.task_id)

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    report = BenchmarkReport.from_tasks(reports, elapsed_ms, peak_memory_mb)
    logger.info(f"Benchmark finished: {report.solved}/{report.total_tasks} solved")
    return report
