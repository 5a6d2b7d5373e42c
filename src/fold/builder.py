"""
Fold building: chosen candidates -> printed positions + folded-coordinate plan.
"""

import logging
from typing import List, Optional, Sequence

from .plan import Candidate, FoldPlan, FoldResult, Repeat, Volta

logger = logging.getLogger(__name__)


def build_folded_plan(chosen: Sequence[Candidate], original_length: int) -> FoldResult:
    """Drop skipped positions and translate the chosen constructs.

    Args:
        chosen: Non-overlapping candidates from the selector
        original_length: Number of positions in the unfolded sequence

    Returns:
        FoldResult whose plan repeats are sorted by folded ``start``
    """
    skip = [False] * original_length
    for candidate in chosen:
        for skip_start, skip_end in candidate.skip_ranges:
            for i in range(skip_start, skip_end + 1):
                skip[i] = True

    folded_indices: List[int] = []
    index_map: List[Optional[int]] = [None] * original_length
    for i in range(original_length):
        if not skip[i]:
            index_map[i] = len(folded_indices)
            folded_indices.append(i)

    repeats: List[Repeat] = []
    for candidate in chosen:
        start = index_map[candidate.start]
        end = index_map[candidate.end]
        volta_ends = [(index_map[v.start], index_map[v.end]) for v in candidate.voltas]
        if start is None or end is None or any(
            s is None or e is None for s, e in volta_ends
        ):
            logger.debug(
                f"Dropping candidate at {candidate.start}: endpoint was skipped"
            )
            continue

        voltas = tuple(
            Volta(start=s, end=e, allowed_passes=tuple(v.allowed_passes))
            for (s, e), v in zip(volta_ends, candidate.voltas)
        )
        repeats.append(Repeat(start=start, end=end, times=candidate.times, voltas=voltas))

    repeats.sort(key=lambda r: r.start)
    return FoldResult(
        folded_indices=tuple(folded_indices),
        plan=FoldPlan(repeats=tuple(repeats)),
    )
