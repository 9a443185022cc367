"""Bidirectional meet-in-the-middle search.

Expands a forward frontier from the input with every candidate primitive and
a backward frontier from the target with the declared inverses of the
invertible ones, alternating one depth at a time. Frontiers are keyed by grid
fingerprint; a fingerprint hit in the opposite frontier is confirmed by exact
grid comparison before a program is rebuilt.

Frontier insertion treats fingerprint equality as grid equality. A hash
collision would silently drop a fresh state; with 64-bit hashes this is
accepted as noise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from arc_cascade.core.data_models import ExamplePair, Grid, SearchNode, grids_equal
from arc_cascade.reasoning.dsl_engine import (
    IDENTITY, Prim, Program, Sequence as Seq, apply, inverse, invert_program
)
from .budget import Deadline, expired
from .fingerprint import hash_grid

logger = logging.getLogger(__name__)

Frontier = Dict[int, SearchNode]


@dataclass
class BidirResult:
    """A program found by meeting in the middle."""
    program: Program
    forward_depth: int
    backward_depth: int
    nodes_explored: int
    method: str = "bidirectional"


def invertible_subset(prims: Sequence[Prim]) -> List[Tuple[Prim, Prim]]:
    """(primitive, inverse) pairs for the primitives that have one."""
    pairs = []
    for prim in prims:
        inv = inverse(prim)
        if inv is not None:
            pairs.append((prim, inv))
    return pairs


def _extend(program: Optional[Program], prim: Prim) -> Program:
    return prim if program is None else Seq(program, prim)


class BidirectionalSearcher:
    """Meet-in-the-middle search under a global node budget."""

    def __init__(self, max_nodes: int = 5000):
        self.max_nodes = max_nodes
        self.nodes_explored = 0

    def search(self, source: Grid, target: Grid, prims: Sequence[Prim],
               max_depth: int = 3, deadline: Optional[Deadline] = None) -> Optional[BidirResult]:
        """Find a program mapping ``source`` to ``target``.

        Args:
            source: Start grid
            target: Goal grid
            prims: Forward primitives; the invertible ones also drive the backward side
            max_depth: Maximum combined program length
            deadline: Optional cooperative deadline

        Returns:
            BidirResult or None when the budget or depth is exhausted
        """
        self.nodes_explored = 0
        if grids_equal(source, target):
            return BidirResult(IDENTITY, 0, 0, 0, method="identity")

        backward_prims = invertible_subset(prims)
        forward: Frontier = {hash_grid(source): SearchNode(source, None, 0)}
        backward: Frontier = {hash_grid(target): SearchNode(target, None, 0)}
        self.nodes_explored = 2
        half_depth = (max_depth + 1) // 2

        for depth in range(half_depth):
            result = self._expand_forward(forward, backward, prims, depth, source, target, deadline)
            if result is not None:
                return result
            if self.nodes_explored >= self.max_nodes or expired(deadline):
                break

            if backward_prims:
                result = self._expand_backward(forward, backward, backward_prims, depth,
                                               source, target, deadline)
                if result is not None:
                    return result
            if self.nodes_explored >= self.max_nodes or expired(deadline):
                break

        logger.debug(f"Bidirectional search exhausted after {self.nodes_explored} nodes")
        return None

    def _meet(self, forward_prog: Optional[Program], backward_path: Optional[Program],
              source: Grid, target: Grid) -> Optional[Program]:
        """Forward path followed by the inverted, reversed backward path.

        The rebuilt program is checked end to end, since inverses such as
        ReplaceColor are only exact when the replaced color was absent.
        """
        if backward_path is None:
            program = forward_prog if forward_prog is not None else IDENTITY
        else:
            tail = invert_program(backward_path)
            if tail is None:
                return None
            program = tail if forward_prog is None else Seq(forward_prog, tail)
        if grids_equal(apply(program, source), target):
            return program
        return None

    def _expand_forward(self, forward: Frontier, backward: Frontier, prims: Sequence[Prim],
                        depth: int, source: Grid, target: Grid,
                        deadline: Optional[Deadline]) -> Optional[BidirResult]:
        layer = [node for node in forward.values() if node.depth == depth]
        for node in layer:
            if expired(deadline):
                return None
            for prim in prims:
                result = apply(prim, node.grid)
                key = hash_grid(result)
                new_prog = _extend(node.program, prim)

                other = backward.get(key)
                if other is not None and grids_equal(result, other.grid):
                    program = self._meet(new_prog, other.program, source, target)
                    if program is not None:
                        return BidirResult(program, depth + 1, other.depth, self.nodes_explored)

                if key in forward or grids_equal(result, node.grid):
                    continue
                forward[key] = SearchNode(result, new_prog, depth + 1)
                self.nodes_explored += 1
                if self.nodes_explored >= self.max_nodes:
                    return None
        return None

    def _expand_backward(self, forward: Frontier, backward: Frontier,
                         inv_pairs: Sequence[Tuple[Prim, Prim]], depth: int,
                         source: Grid, target: Grid,
                         deadline: Optional[Deadline]) -> Optional[BidirResult]:
        # Backward node programs record the inverse steps applied from the target
        layer = [node for node in backward.values() if node.depth == depth]
        for node in layer:
            if expired(deadline):
                return None
            for _, inv in inv_pairs:
                result = apply(inv, node.grid)
                key = hash_grid(result)
                new_path = _extend(node.program, inv)

                other = forward.get(key)
                if other is not None and grids_equal(result, other.grid):
                    program = self._meet(other.program, new_path, source, target)
                    if program is not None:
                        return BidirResult(program, other.depth, depth + 1, self.nodes_explored)

                if key in backward or grids_equal(result, node.grid):
                    continue
                backward[key] = SearchNode(result, new_path, depth + 1)
                self.nodes_explored += 1
                if self.nodes_explored >= self.max_nodes:
                    return None
        return None

    def search_all(self, pairs: Sequence[ExamplePair], prims: Sequence[Prim],
                   max_depth: int = 3, deadline: Optional[Deadline] = None) -> Optional[BidirResult]:
        """Solve the first pair, then require the program to fit every other pair."""
        if not pairs:
            return None
        result = self.search(pairs[0].input, pairs[0].output, prims, max_depth, deadline)
        if result is None:
            return None
        if all(grids_equal(apply(result.program, p.input), p.output) for p in pairs[1:]):
            return result
        return None


def create_bidirectional_searcher(max_nodes: Optional[int] = None) -> BidirectionalSearcher:
    """Factory function reading ``search.bidirectional.max_nodes`` from config.

    Args:
        max_nodes: Explicit node budget; overrides configuration

    Returns:
        Configured BidirectionalSearcher instance
    """
    if max_nodes is None:
        from arc_cascade.config import get_parameter
        max_nodes = int(get_parameter('search.bidirectional.max_nodes', 5000))
    return BidirectionalSearcher(max_nodes=max_nodes)
