"""Enumerative program search.

Two flavors share this module:

- Heuristic enumeration over the feature-selected primitive subset, one
  and two steps deep. Candidates are accepted through a caller-supplied
  predicate so held-out pairs can be checked inside the loop.
- Brute-force synthesis over the full catalog: every primitive, every
  pair, then triples drawn from the best-ranked primitives.

Each function returns ``(program_or_None, checked)`` so the caller can keep
a running count of candidates examined.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from arc_cascade.core.data_models import ExamplePair, Grid, grids_equal
from arc_cascade.reasoning.dsl_engine import Prim, Program, Sequence as Seq, all_primitives, apply
from arc_cascade.reasoning.verification import matches_all, partial_match_score
from .budget import Deadline, expired

logger = logging.getLogger(__name__)

Acceptor = Callable[[Program], bool]
EnumResult = Tuple[Optional[Program], int]


@dataclass
class EnumerationConfig:
    """Caps for brute-force synthesis."""
    pair_cap: int = 100000
    triple_cap: int = 500000
    top_k: int = 20
    min_partial_score: float = 0.3


def heuristic_single(prims: Sequence[Prim], accept: Acceptor,
                     deadline: Optional[Deadline] = None) -> EnumResult:
    """First selected primitive the acceptor takes."""
    checked = 0
    for prim in prims:
        if expired(deadline):
            break
        checked += 1
        if accept(prim):
            return prim, checked
    return None, checked


def heuristic_compose2(prims: Sequence[Prim], accept: Acceptor,
                       deadline: Optional[Deadline] = None) -> EnumResult:
    """First two-step composition ``a -> b`` of selected primitives the acceptor takes."""
    checked = 0
    for a in prims:
        for b in prims:
            if expired(deadline):
                return None, checked
            checked += 1
            candidate = Seq(a, b)
            if accept(candidate):
                return candidate, checked
    return None, checked


def bottom_up_enumerate(pairs: Sequence[ExamplePair], n: int,
                        prims: Optional[Sequence[Prim]] = None) -> List[Tuple[Prim, float]]:
    """Rank single primitives by partial match score.

    Primitives scoring zero are dropped. The result is sorted best first
    (stable in catalog order) and truncated to ``n`` entries.
    """
    prims = all_primitives() if prims is None else prims
    scored = []
    for prim in prims:
        score = partial_match_score(prim, pairs)
        if score > 0:
            scored.append((prim, score))
    scored.sort(key=lambda item: item[1], reverse=True)
    return scored[:n]


def _fits(outputs: Sequence[Grid], pairs: Sequence[ExamplePair]) -> bool:
    return all(grids_equal(out, pair.output) for out, pair in zip(outputs, pairs))


def synthesize(pairs: Sequence[ExamplePair], max_size: int = 3,
               config: Optional[EnumerationConfig] = None,
               deadline: Optional[Deadline] = None) -> EnumResult:
    """Brute-force search over the full catalog.

    Depth 1 checks every primitive. Depth 2 checks every ordered pair until
    ``pair_cap`` checks have been made. Depth 3 only composes the ``top_k``
    primitives by partial match score above ``min_partial_score``, and gives
    up once ``triple_cap`` checks have been made.

    Args:
        pairs: Training pairs every candidate must reproduce
        max_size: Maximum number of primitive steps (1 to 3)
        config: Search caps; defaults when omitted
        deadline: Optional cooperative deadline

    Returns:
        (program, checked) with program None if nothing fits
    """
    config = config or EnumerationConfig()
    pairs = list(pairs)
    if not pairs:
        return None, 0
    prims = all_primitives()
    checked = 0

    # First-step outputs are reused by every deeper composition
    first: List[List[Grid]] = []
    for prim in prims:
        checked += 1
        outputs = [apply(prim, pair.input) for pair in pairs]
        if _fits(outputs, pairs):
            return prim, checked
        first.append(outputs)

    if max_size < 2:
        return None, checked

    for a, outputs_a in zip(prims, first):
        if checked > config.pair_cap or expired(deadline):
            break
        for b in prims:
            checked += 1
            if _fits([apply(b, g) for g in outputs_a], pairs):
                return Seq(a, b), checked

    if max_size < 3 or expired(deadline):
        return None, checked

    ranked = [prim for prim, score in bottom_up_enumerate(pairs, config.top_k, prims)
              if score > config.min_partial_score]
    for a in ranked:
        for b in ranked:
            for c in ranked:
                checked += 1
                if checked > config.triple_cap:
                    logger.debug(f"Triple enumeration cap reached at {checked} checks")
                    return None, checked
                candidate = Seq(a, Seq(b, c))
                if matches_all(candidate, pairs):
                    return candidate, checked
            if expired(deadline):
                return None, checked
    return None, checked


def create_enumeration_config() -> EnumerationConfig:
    """Build an EnumerationConfig from the ``search.enumeration`` section."""
    from arc_cascade.config import get_parameter
    return EnumerationConfig(
        pair_cap=int(get_parameter('search.enumeration.pair_cap', 100000)),
        triple_cap=int(get_parameter('search.enumeration.triple_cap', 500000)),
        top_k=int(get_parameter('search.enumeration.top_k', 20)),
        min_partial_score=float(get_parameter('search.enumeration.min_partial_score', 0.3)),
    )
