"""
Plan unrolling.

``unroll`` is the single replay routine: consumers use it to re-expand a
persisted folded score, and inference uses it to verify every plan before
returning it.
"""

import logging
from typing import Any, List, Optional, Sequence

from .plan import FoldPlan, FoldResult

logger = logging.getLogger(__name__)


def unroll(plan: Optional[FoldPlan], folded_length: int) -> List[int]:
    """Expand a plan into playback order.

    Args:
        plan: Plan in folded coordinates (None means no repeats)
        folded_length: Number of printed positions

    Returns:
        Folded indices in the order they are played
    """
    if plan is None or len(plan) == 0:
        return list(range(folded_length))

    indices: List[int] = []
    cursor = 0

    for repeat in sorted(plan.repeats, key=lambda r: r.start):
        indices.extend(range(cursor, repeat.start))

        voltas = {v.start: v for v in repeat.voltas}
        for pass_num in range(1, repeat.times + 1):
            i = repeat.start
            while i <= repeat.end:
                volta = voltas.get(i)
                if volta is None:
                    indices.append(i)
                    i += 1
                    continue
                if pass_num in volta.allowed_passes:
                    indices.extend(range(volta.start, volta.end + 1))
                i = volta.end + 1

        cursor = repeat.end + 1

    indices.extend(range(cursor, folded_length))
    return indices


def first_mismatch(a: Sequence[Any], b: Sequence[Any]) -> Optional[int]:
    """Index of the first difference, or None if the sequences are equal."""
    for i, (x, y) in enumerate(zip(a, b)):
        if x != y:
            return i
    if len(a) != len(b):
        return min(len(a), len(b))
    return None


def verify_fold(fingerprints: Sequence[Any], result: FoldResult) -> Optional[int]:
    """Check that a fold replays to the original fingerprints.

    Returns:
        None when the round trip matches, otherwise the first mismatching
        position in playback order
    """
    folded_fps = [fingerprints[i] for i in result.folded_indices]
    unrolled = [folded_fps[i] for i in unroll(result.plan, len(folded_fps))]
    return first_mismatch(unrolled, list(fingerprints))
