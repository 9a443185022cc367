"""Core data models for the ARC cascade solver."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import math

import numpy as np


# Type aliases for clarity
Grid = np.ndarray  # 2D int32 array of colors 0-9
Color = int  # Integer representing a color in the grid
Position = Tuple[int, int]  # (row, col) position in the grid
BoundingBox = Tuple[int, int, int, int]  # (min_row, min_col, max_row, max_col)


def to_grid(rows: Any) -> Grid:
    """Convert nested lists (or an existing array) into an int32 grid.

    Empty input produces a ``(0, 0)`` grid so that degenerate results are
    still valid 2D arrays.
    """
    grid = np.asarray(rows, dtype=np.int32)
    if grid.size == 0:
        return np.zeros((0, 0), dtype=np.int32)
    if grid.ndim != 2:
        raise ValueError(f"Grid must be 2D, got {grid.ndim}D")
    return grid


def grids_equal(a: Grid, b: Grid) -> bool:
    """Exact, element-wise grid equality (shape included)."""
    return a.shape == b.shape and bool(np.array_equal(a, b))


@dataclass
class Blob:
    """A single-color connected component of non-zero cells."""

    id: int
    color: int
    pixels: List[Position]  # row-major order
    bounding_box: BoundingBox

    @property
    def area(self) -> int:
        return len(self.pixels)

    @property
    def height(self) -> int:
        return self.bounding_box[2] - self.bounding_box[0] + 1

    @property
    def width(self) -> int:
        return self.bounding_box[3] - self.bounding_box[1] + 1

    def to_grid(self) -> Grid:
        """Crop of the blob within its bounding box, background 0."""
        min_row, min_col = self.bounding_box[0], self.bounding_box[1]
        out = np.zeros((self.height, self.width), dtype=np.int32)
        for r, c in self.pixels:
            out[r - min_row, c - min_col] = self.color
        return out


@dataclass(frozen=True)
class ExamplePair:
    """A single (input, output) grid pair."""

    input: Grid
    output: Grid


@dataclass
class Task:
    """ARC task with training pairs and held-out pairs with known outputs."""

    task_id: str
    train: List[ExamplePair]
    test: List[ExamplePair] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate task structure."""
        if not self.train:
            raise ValueError(f"Task {self.task_id} must have at least one training pair")
        for i, pair in enumerate(self.train + self.test):
            if pair.input.ndim != 2 or pair.output.ndim != 2:
                raise ValueError(f"Task {self.task_id}: pair {i} grids must be 2D")

    @property
    def all_pairs(self) -> List[ExamplePair]:
        """Training pairs followed by held-out pairs."""
        return list(self.train) + list(self.test)

    @classmethod
    def from_lists(cls, task_id: str,
                   train: Sequence[Tuple[Any, Any]],
                   test: Sequence[Tuple[Any, Any]] = ()) -> "Task":
        """Build a task from nested-list (input, output) tuples."""
        return cls(
            task_id=task_id,
            train=[ExamplePair(to_grid(i), to_grid(o)) for i, o in train],
            test=[ExamplePair(to_grid(i), to_grid(o)) for i, o in test],
        )


class LearnedTransform(ABC):
    """A transform inferred directly from example data.

    Smart transforms and cellular-automaton rules are not DSL programs: they
    carry learned state (a color table, a tile, a rule table) but expose the
    same apply/size/description-length surface the cascade needs.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in result method names."""

    @abstractmethod
    def apply(self, grid: Grid) -> Grid:
        """Apply the learned transform to ``grid``."""

    def size(self) -> int:
        return 1

    def description_length(self) -> float:
        return 2.0

    def __str__(self) -> str:
        return self.name


@dataclass
class SearchNode:
    """Frontier entry: a grid reached from an origin by ``program``."""

    grid: Grid
    program: Any  # Program, or None for the origin
    depth: int


@dataclass(frozen=True)
class SolveResult:
    """Outcome of solving one task."""

    task_id: str
    solved: bool
    method: str
    program_size: int
    checked: int
    mdl: float
    program: Any = None
    elapsed: float = 0.0

    @classmethod
    def unsolved(cls, task_id: str, checked: int, elapsed: float = 0.0) -> "SolveResult":
        return cls(task_id=task_id, solved=False, method="none", program_size=0,
                   checked=checked, mdl=math.inf, elapsed=elapsed)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view (infinite MDL becomes ``None``)."""
        return {
            'task_id': self.task_id,
            'solved': self.solved,
            'method': self.method,
            'program_size': self.program_size,
            'checked': self.checked,
            'mdl': None if math.isinf(self.mdl) else round(self.mdl, 3),
            'program': None if self.program is None else str(self.program),
            'elapsed': round(self.elapsed, 4),
        }
