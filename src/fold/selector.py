"""
Candidate selection by weighted interval scheduling.

Picks the maximum-score set of mutually non-overlapping candidates. Ties are
broken by fewer constructs, then by comparing the chosen candidate lists
element-wise on ``Candidate.sort_key`` so the result never depends on input
order.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .plan import Candidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    """Chosen candidates (ordered by span end) with their totals."""

    score: float = 0
    constructs: int = 0
    candidates: Tuple[Candidate, ...] = ()

    def extend(self, candidate: Candidate) -> "Selection":
        return Selection(
            score=self.score + candidate.score,
            constructs=self.constructs + candidate.constructs,
            candidates=self.candidates + (candidate,),
        )


EMPTY_SELECTION = Selection()


def compare_candidate_lists(a: Sequence[Candidate], b: Sequence[Candidate]) -> int:
    """Lexicographic three-way comparison on ``sort_key``; shorter prefix first."""
    for x, y in zip(a, b):
        kx, ky = x.sort_key(), y.sort_key()
        if kx != ky:
            return -1 if kx < ky else 1
    return (len(a) > len(b)) - (len(a) < len(b))


def better(a: Selection, b: Selection) -> Selection:
    """Return the preferred selection (``a`` wins exact ties)."""
    if a.score != b.score:
        return a if a.score > b.score else b
    if a.constructs != b.constructs:
        return a if a.constructs < b.constructs else b
    return a if compare_candidate_lists(a.candidates, b.candidates) <= 0 else b


def _order_key(candidate: Candidate):
    # Volta starts separate endings-split variants sharing start and span end
    return (
        (candidate.span_end, candidate.start)
        + candidate.sort_key()[1:]
        + tuple(v.start for v in candidate.voltas)
    )


def select_candidates(
    candidates: Sequence[Candidate],
    allow_multiple: bool = True,
) -> Optional[Selection]:
    """Choose the best non-overlapping subset.

    Args:
        candidates: Scored candidates in any order
        allow_multiple: If False, choose at most one candidate overall

    Returns:
        The winning ``Selection``, or None when nothing was chosen
    """
    if not candidates:
        return None

    if not allow_multiple:
        best = EMPTY_SELECTION
        for candidate in sorted(candidates, key=lambda c: c.sort_key()):
            best = better(best, EMPTY_SELECTION.extend(candidate))
        return best if best.candidates else None

    ordered = sorted(candidates, key=_order_key)
    span_ends = np.array([c.span_end for c in ordered], dtype=np.int64)

    # prev[i]: last candidate ending strictly before ordered[i] starts, or -1
    prev = np.searchsorted(span_ends, [c.start for c in ordered], side="left") - 1

    best: List[Selection] = []
    for i, candidate in enumerate(ordered):
        j = int(prev[i])
        include = (best[j] if j >= 0 else EMPTY_SELECTION).extend(candidate)
        exclude = best[i - 1] if i > 0 else EMPTY_SELECTION
        best.append(better(include, exclude))

    winner = best[-1]
    logger.debug(
        f"Selected {len(winner.candidates)} of {len(ordered)} candidates "
        f"(score={winner.score}, constructs={winner.constructs})"
    )
    return winner if winner.candidates else None
