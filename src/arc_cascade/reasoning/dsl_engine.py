"""DSL Engine for program construction and execution.

A program is a finite tree over the closed set of leaf primitives
(:class:`Prim`) plus two composite forms:

* :class:`Sequence` ``(first, second)``: apply ``first``, then ``second`` to
  its result.
* :class:`Conditional` ``(cond, then, else_)``: apply ``cond``; if the result
  differs from the input, apply ``then`` to the original input, otherwise
  apply ``else_``.

All program nodes are frozen dataclasses, so subtrees are shared freely
between composed programs and are safe to use as dict keys.

The textual form produced by ``str(program)``::

    Program := Step (" -> " Step)*
    Step    := Leaf | "if(" Program ", " Program ", " Program ")" | "(" Program ")"
    Leaf    := Identifier ["(" Int ("," Int)* ")"]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from arc_cascade.core.data_models import Grid, grids_equal
from .primitives import PARAM_COUNTS, PRIMITIVE_FUNCTIONS, PrimKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prim:
    """A leaf primitive with its integer parameters."""

    kind: PrimKind
    params: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        expected = PARAM_COUNTS[self.kind]
        if len(self.params) != expected:
            raise ValueError(
                f"{self.kind} takes {expected} parameters, got {len(self.params)}"
            )

    def __str__(self) -> str:
        if not self.params:
            return str(self.kind)
        return f"{self.kind}({','.join(str(p) for p in self.params)})"


@dataclass(frozen=True)
class Sequence:
    """Apply ``first`` then ``second``."""

    first: "Program"
    second: "Program"

    def __str__(self) -> str:
        second = f"({self.second})" if isinstance(self.second, Sequence) else str(self.second)
        return f"{self.first} -> {second}"


@dataclass(frozen=True)
class Conditional:
    """Branch on whether ``cond`` changes the grid."""

    cond: "Program"
    then: "Program"
    else_: "Program"

    def __str__(self) -> str:
        return f"if({self.cond}, {self.then}, {self.else_})"


Program = Union[Prim, Sequence, Conditional]

IDENTITY = Prim(PrimKind.IDENTITY)


def apply(program: Program, grid: Grid) -> Grid:
    """Execute a program on a grid.

    Pure and deterministic; the input grid is never modified.

    Args:
        program: Program tree to execute
        grid: Input grid

    Returns:
        Transformed grid
    """
    if isinstance(program, Prim):
        return PRIMITIVE_FUNCTIONS[program.kind](grid, *program.params)
    if isinstance(program, Sequence):
        return apply(program.second, apply(program.first, grid))
    if isinstance(program, Conditional):
        tested = apply(program.cond, grid)
        branch = program.then if not grids_equal(tested, grid) else program.else_
        return apply(branch, grid)
    raise TypeError(f"Not a program: {program!r}")


def size(program: Program) -> int:
    """1 for a leaf, 1 + sum of children for a composite."""
    if isinstance(program, Prim):
        return 1
    if isinstance(program, Sequence):
        return 1 + size(program.first) + size(program.second)
    if isinstance(program, Conditional):
        return 1 + size(program.cond) + size(program.then) + size(program.else_)
    raise TypeError(f"Not a program: {program!r}")


def leaves(program: Program) -> Iterator[Prim]:
    """Yield leaf primitives in execution order (left to right)."""
    if isinstance(program, Prim):
        yield program
    elif isinstance(program, Sequence):
        yield from leaves(program.first)
        yield from leaves(program.second)
    elif isinstance(program, Conditional):
        yield from leaves(program.cond)
        yield from leaves(program.then)
        yield from leaves(program.else_)
    else:
        raise TypeError(f"Not a program: {program!r}")


def step_count(program: Program) -> int:
    """Number of leaf primitives in the program."""
    return sum(1 for _ in leaves(program))


def compose(*programs: Program) -> Program:
    """Right-nested sequence: ``compose(a, b, c) == Sequence(a, Sequence(b, c))``."""
    if not programs:
        return IDENTITY
    result = programs[-1]
    for program in reversed(programs[:-1]):
        result = Sequence(program, result)
    return result


def from_steps(steps: List[Prim]) -> Program:
    """Left-nested sequence of steps in execution order; Identity if empty."""
    if not steps:
        return IDENTITY
    result: Program = steps[0]
    for step in steps[1:]:
        result = Sequence(result, step)
    return result


# Inverses

_SELF_INVERSE = frozenset({
    PrimKind.IDENTITY,
    PrimKind.ROTATE_180,
    PrimKind.FLIP_H,
    PrimKind.FLIP_V,
    PrimKind.TRANSPOSE,
    PrimKind.INVERT,
})


def inverse(prim: Prim) -> Optional[Prim]:
    """Declared inverse of a leaf primitive, or None if it is lossy."""
    kind = prim.kind
    if kind in _SELF_INVERSE:
        return prim
    if kind is PrimKind.ROTATE_CW:
        return Prim(PrimKind.ROTATE_CCW)
    if kind is PrimKind.ROTATE_CCW:
        return Prim(PrimKind.ROTATE_CW)
    if kind is PrimKind.REPLACE_COLOR:
        source, target = prim.params
        return Prim(PrimKind.REPLACE_COLOR, (target, source))
    return None


def is_invertible(prim: Prim) -> bool:
    return inverse(prim) is not None


def invert_program(program: Program) -> Optional[Program]:
    """Invert a program by reversing sequence order and inverting each step.

    Conditionals are not invertible.
    """
    if isinstance(program, Prim):
        return inverse(program)
    if isinstance(program, Sequence):
        first = invert_program(program.second)
        second = invert_program(program.first)
        if first is None or second is None:
            return None
        return Sequence(first, second)
    return None


# Catalog

@lru_cache(maxsize=1)
def all_primitives() -> Tuple[Prim, ...]:
    """Full primitive catalog in a fixed order.

    Built once per process and returned as an immutable tuple.
    """
    prims: List[Prim] = [Prim(kind) for kind in (
        PrimKind.IDENTITY, PrimKind.ROTATE_CW, PrimKind.ROTATE_CCW, PrimKind.ROTATE_180,
        PrimKind.FLIP_H, PrimKind.FLIP_V, PrimKind.TRANSPOSE,
        PrimKind.GRAVITY_DOWN, PrimKind.GRAVITY_UP, PrimKind.GRAVITY_LEFT, PrimKind.GRAVITY_RIGHT,
        PrimKind.INVERT, PrimKind.MOST_FREQUENT_COLOR,
        PrimKind.SORT_ROWS_BY_COLOR, PrimKind.SORT_COLS_BY_COLOR,
        PrimKind.KEEP_LARGEST, PrimKind.KEEP_SMALLEST, PrimKind.CROP_TO_BBOX,
        PrimKind.MIRROR_H, PrimKind.MIRROR_V, PrimKind.COMPLETE_BBOX,
        PrimKind.EXTEND_LINES_H, PrimKind.EXTEND_LINES_V, PrimKind.EXTEND_CROSS,
        PrimKind.DIAG_FILL_TL, PrimKind.DIAG_FILL_TR,
    )]
    for c in range(10):
        prims.append(Prim(PrimKind.FILL_COLOR, (c,)))
        prims.append(Prim(PrimKind.FILTER_COLOR, (c,)))
        prims.append(Prim(PrimKind.BORDER_FILL, (c,)))
        for c2 in range(10):
            if c != c2:
                prims.append(Prim(PrimKind.REPLACE_COLOR, (c, c2)))
    for s in range(2, 5):
        prims.append(Prim(PrimKind.SCALE, (s,)))
        prims.append(Prim(PrimKind.DOWNSCALE, (s,)))
        prims.append(Prim(PrimKind.REPEAT_H, (s,)))
        prims.append(Prim(PrimKind.REPEAT_V, (s,)))
    return tuple(prims)


# Serialization

def to_dict(program: Program) -> Dict[str, Any]:
    """Convert program to a JSON-friendly dictionary."""
    if isinstance(program, Prim):
        return {'prim': program.kind.value, 'params': list(program.params)}
    if isinstance(program, Sequence):
        return {'seq': [to_dict(program.first), to_dict(program.second)]}
    if isinstance(program, Conditional):
        return {'if': [to_dict(program.cond), to_dict(program.then), to_dict(program.else_)]}
    raise TypeError(f"Not a program: {program!r}")


def from_dict(data: Dict[str, Any]) -> Program:
    """Create program from dictionary representation."""
    if 'prim' in data:
        return Prim(PrimKind(data['prim']), tuple(int(p) for p in data.get('params', [])))
    if 'seq' in data:
        first, second = data['seq']
        return Sequence(from_dict(first), from_dict(second))
    if 'if' in data:
        cond, then, else_ = data['if']
        return Conditional(from_dict(cond), from_dict(then), from_dict(else_))
    raise ValueError(f"Unrecognized program node: {data!r}")
