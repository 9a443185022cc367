"""Data loading and I/O operations for ARC tasks.

Tasks are JSON objects with ``train`` and ``test`` arrays of
``{"input": grid, "output": grid}`` pairs. Held-out (``test``) pairs are
only useful with their outputs, so pairs missing either grid are skipped.
A directory may also hold the combined Kaggle files, where challenges and
solutions live in separate documents keyed by task id.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from arc_cascade.core.data_models import ExamplePair, Task, to_grid

logger = logging.getLogger(__name__)

COMBINED_FILES = (
    ("arc-agi_training_challenges.json", "arc-agi_training_solutions.json"),
    ("arc-agi_evaluation_challenges.json", "arc-agi_evaluation_solutions.json"),
)


class TaskFormatError(ValueError):
    """Raised when a task file cannot be parsed into a Task."""
    pass


def _parse_pairs(task_id: str, section: str, raw: Any) -> List[ExamplePair]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise TaskFormatError(f"Task {task_id}: '{section}' must be a list")
    pairs = []
    for i, example in enumerate(raw):
        if not isinstance(example, dict) or 'input' not in example or 'output' not in example:
            logger.debug(f"Task {task_id}: skipping {section}[{i}] without input/output")
            continue
        try:
            pair = ExamplePair(to_grid(example['input']), to_grid(example['output']))
        except (TypeError, ValueError) as e:
            raise TaskFormatError(f"Task {task_id}: {section}[{i}] is not a grid: {e}") from e
        if (pair.input < 0).any() or (pair.output < 0).any():
            raise TaskFormatError(f"Task {task_id}: {section}[{i}] has negative colors")
        pairs.append(pair)
    return pairs


def parse_task(task_id: str, data: Dict[str, Any]) -> Task:
    """Build a Task from decoded JSON.

    Args:
        task_id: Identifier for the task
        data: Decoded task document

    Returns:
        Task with training and held-out pairs

    Raises:
        TaskFormatError: If the document has no usable training pairs
    """
    if not isinstance(data, dict):
        raise TaskFormatError(f"Task {task_id}: expected a JSON object")
    if 'train' not in data:
        raise TaskFormatError(f"Task {task_id}: missing 'train'")
    train = _parse_pairs(task_id, 'train', data['train'])
    test = _parse_pairs(task_id, 'test', data.get('test'))
    if not train:
        raise TaskFormatError(f"Task {task_id}: no complete training pairs")
    return Task(task_id=task_id, train=train, test=test)


def load_task(task_file: Union[str, Path]) -> Task:
    """Load a single ARC task from a JSON file path.

    The task_id is derived from the filename stem.
    """
    path = Path(task_file)
    if not path.exists():
        raise FileNotFoundError(f"Task file not found: {path}")
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise TaskFormatError(f"Task {path.stem}: invalid JSON: {e}") from e
    return parse_task(path.stem, data)


class ARCDataLoader:
    """Loader for a directory of ARC task files."""

    def __init__(self, data_dir: Union[str, Path]):
        """Initialize the data loader.

        Args:
            data_dir: Directory containing ARC JSON files
        """
        self.data_dir = Path(data_dir)
        if not self.data_dir.is_dir():
            raise FileNotFoundError(f"Data directory not found: {self.data_dir}")
        self._combined: Optional[Dict[str, Dict[str, Any]]] = None

    def _combined_tasks(self) -> Dict[str, Dict[str, Any]]:
        """Task documents from combined challenge files, with solutions merged in."""
        if self._combined is not None:
            return self._combined
        tasks: Dict[str, Dict[str, Any]] = {}
        for challenges_name, solutions_name in COMBINED_FILES:
            challenges_file = self.data_dir / challenges_name
            if not challenges_file.exists():
                continue
            with open(challenges_file, 'r') as f:
                challenges = json.load(f)
            solutions: Dict[str, Any] = {}
            solutions_file = self.data_dir / solutions_name
            if solutions_file.exists():
                with open(solutions_file, 'r') as f:
                    solutions = json.load(f)
            for task_id, doc in challenges.items():
                outputs = solutions.get(task_id, [])
                for example, output in zip(doc.get('test', []), outputs):
                    example.setdefault('output', output)
                tasks[task_id] = doc
        self._combined = tasks
        return tasks

    def task_files(self) -> List[Path]:
        """Per-task JSON files, sorted by name."""
        skip = {name for pair in COMBINED_FILES for name in pair}
        return sorted(p for p in self.data_dir.glob("*.json") if p.name not in skip)

    def get_task_ids(self) -> List[str]:
        ids = {p.stem for p in self.task_files()}
        ids.update(self._combined_tasks().keys())
        return sorted(ids)

    def load_task(self, task_id: str) -> Task:
        """Load a task by id from its own file or a combined file."""
        task_file = self.data_dir / f"{task_id}.json"
        if task_file.exists():
            return load_task(task_file)
        combined = self._combined_tasks()
        if task_id in combined:
            return parse_task(task_id, combined[task_id])
        raise FileNotFoundError(f"Task {task_id} not found in {self.data_dir}")

    def iter_tasks(self, skip_invalid: bool = True,
                   max_tasks: Optional[int] = None) -> Iterator[Tuple[str, Task]]:
        """Iterate over available tasks in id order.

        Args:
            skip_invalid: Log and skip malformed tasks instead of raising
            max_tasks: Stop after this many task ids

        Yields:
            Tuples of (task_id, Task)
        """
        task_ids = self.get_task_ids()
        if max_tasks is not None:
            task_ids = task_ids[:max_tasks]
        for task_id in task_ids:
            try:
                yield task_id, self.load_task(task_id)
            except (TaskFormatError, OSError) as e:
                if not skip_invalid:
                    raise
                logger.warning(f"Failed to load task {task_id}: {e}")


def save_results(results: Dict[str, Any], output_file: Union[str, Path]) -> None:
    """Save results dictionary to a JSON file."""
    out_path = Path(output_file)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, 'w') as f:
        json.dump(results, f, indent=2)
    logger.info(f"Results saved to {out_path}")
