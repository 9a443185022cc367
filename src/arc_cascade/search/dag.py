"""Forward DAG search.

Breadth-first expansion from a single input grid, one depth at a time, over
the full candidate primitive list. Reached grids are deduplicated by
fingerprint so each distinct state is expanded once.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from arc_cascade.core.data_models import Grid, SearchNode, grids_equal
from arc_cascade.reasoning.dsl_engine import IDENTITY, Prim, Program, Sequence as Seq, apply
from arc_cascade.reasoning.verification import grid_similarity
from .budget import Deadline, expired
from .fingerprint import hash_grid

logger = logging.getLogger(__name__)


class DagSearcher:
    """Single-frontier forward search under a node budget."""

    def __init__(self, max_nodes: int = 20000):
        self.max_nodes = max_nodes
        self.nodes_explored = 0

    def _expand(self, source: Grid, target: Grid, prims: Sequence[Prim], max_depth: int,
                deadline: Optional[Deadline]) -> Tuple[Optional[Program], Dict[int, SearchNode]]:
        nodes: Dict[int, SearchNode] = {hash_grid(source): SearchNode(source, IDENTITY, 0)}
        if grids_equal(source, target):
            return IDENTITY, nodes

        for depth in range(max_depth):
            layer = [node for node in nodes.values() if node.depth == depth]
            new: Dict[int, SearchNode] = {}
            for node in layer:
                if expired(deadline):
                    nodes.update(new)
                    return None, nodes
                for prim in prims:
                    result = apply(prim, node.grid)
                    program = prim if node.depth == 0 else Seq(node.program, prim)
                    if grids_equal(result, target):
                        nodes.update(new)
                        return program, nodes

                    key = hash_grid(result)
                    if key in nodes or key in new or grids_equal(result, node.grid):
                        continue
                    new[key] = SearchNode(result, program, depth + 1)
                    if len(nodes) + len(new) >= self.max_nodes:
                        nodes.update(new)
                        return None, nodes
            if not new:
                break
            nodes.update(new)
        return None, nodes

    def search(self, source: Grid, target: Grid, prims: Sequence[Prim],
               max_depth: int = 3, deadline: Optional[Deadline] = None) -> Optional[Program]:
        """Find a program mapping ``source`` to ``target`` exactly.

        Args:
            source: Start grid
            target: Goal grid
            prims: Candidate primitives, expanded in order
            max_depth: Maximum program length
            deadline: Optional cooperative deadline

        Returns:
            The first program found in breadth-first order, or None
        """
        program, nodes = self._expand(source, target, prims, max_depth, deadline)
        self.nodes_explored = len(nodes)
        if program is None:
            logger.debug(f"DAG search exhausted after {self.nodes_explored} nodes")
        return program

    def search_scored(self, source: Grid, target: Grid, prims: Sequence[Prim],
                      max_depth: int = 3, top_n: int = 10,
                      deadline: Optional[Deadline] = None) -> List[Tuple[Program, float]]:
        """Best partial matches by cell similarity.

        An exact hit returns ``[(program, 1.0)]``. Otherwise every reached
        state is ranked by its similarity to the target, best first.
        """
        program, nodes = self._expand(source, target, prims, max_depth, deadline)
        self.nodes_explored = len(nodes)
        if program is not None:
            return [(program, 1.0)]
        scored = [(node.program, grid_similarity(node.grid, target))
                  for node in nodes.values() if node.depth > 0]
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored[:top_n]


def create_dag_searcher(max_nodes: Optional[int] = None) -> DagSearcher:
    """Factory function reading ``search.dag.max_nodes`` from config."""
    if max_nodes is None:
        from arc_cascade.config import get_parameter
        max_nodes = int(get_parameter('search.dag.max_nodes', 20000))
    return DagSearcher(max_nodes=max_nodes)
