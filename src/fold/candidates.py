"""
Repeat and Volta Candidate Generation
=====================================

Enumerates every fold construct the score could use:

1. **Simple repeats** -- a unit of ``L`` measures played ``times >= 2`` in a
   row. Generation is exhaustive over ``(start, L)``; the selector decides
   which combination wins.
2. **Voltas** -- a shared prefix followed by a first ending, the prefix again,
   then a different second ending.

No candidate may contain a boundary position in its interior. Each candidate
is scored on emission and dropped unless its score is positive.
"""

import logging
from typing import Any, Hashable, List, Sequence, Tuple

import numpy as np

from .config import FoldOptions
from .plan import Candidate, Volta

logger = logging.getLogger(__name__)


def score_construct(
    expanded_length: int,
    printed_length: int,
    n_voltas: int,
    savings_weight: float = 10,
) -> Tuple[float, int]:
    """Score a construct.

    Returns:
        ``(score, constructs)`` where ``constructs = 1 + n_voltas`` and
        ``score = saved_measures * savings_weight - constructs``.
    """
    constructs = 1 + n_voltas
    saved = expanded_length - printed_length
    return saved * savings_weight - constructs, constructs


def boundary_positions(boundaries: Sequence[Any]) -> np.ndarray:
    """Sorted positions carrying a non-null boundary marker."""
    return np.array(
        [i for i, b in enumerate(boundaries) if b is not None], dtype=np.int64
    )


def max_span_end(positions: np.ndarray, start: int, length: int) -> int:
    """Last position a span starting at ``start`` may reach.

    One before the nearest boundary strictly after ``start``, or the last
    position of the sequence.
    """
    idx = int(np.searchsorted(positions, start, side="right"))
    if idx < len(positions):
        return int(positions[idx]) - 1
    return length - 1


def _segments_equal(fps: Sequence[Hashable], a: int, b: int, length: int) -> bool:
    return fps[a:a + length] == fps[b:b + length]


def find_simple_repeats(
    fps: Sequence[Hashable],
    boundaries: Sequence[Any],
    options: FoldOptions,
) -> List[Candidate]:
    """Emit one candidate per ``(start, unit length)`` that repeats."""
    fps = list(fps)
    total = len(fps)
    positions = boundary_positions(boundaries)
    candidates: List[Candidate] = []

    for start in range(total):
        limit = max_span_end(positions, start, total)

        for unit in range(options.min_repeat_len, options.max_repeat_len + 1):
            if start + 2 * unit - 1 > limit:
                break
            if not _segments_equal(fps, start, start + unit, unit):
                continue

            count = 2
            while (
                start + (count + 1) * unit - 1 <= limit
                and _segments_equal(fps, start, start + count * unit, unit)
            ):
                count += 1

            span_end = start + unit * count - 1
            expanded = unit * count
            score, constructs = score_construct(
                expanded, unit, 0, options.savings_weight
            )
            if score <= 0:
                continue

            candidates.append(Candidate(
                start=start,
                end=start + unit - 1,
                times=count,
                span_end=span_end,
                unit_length=unit,
                skip_ranges=((start + unit, span_end),),
                expanded_length=expanded,
                printed_length=unit,
                constructs=constructs,
                score=score,
            ))

    logger.debug(f"Simple-repeat candidates: {len(candidates)}")
    return candidates


def find_voltas(
    fps: Sequence[Hashable],
    boundaries: Sequence[Any],
    options: FoldOptions,
) -> List[Candidate]:
    """Emit prefix / ending-1 / prefix / ending-2 candidates."""
    fps = list(fps)
    total = len(fps)
    positions = boundary_positions(boundaries)
    candidates: List[Candidate] = []

    for start in range(total):
        limit = max_span_end(positions, start, total)

        for prefix in range(options.min_prefix_len, options.max_repeat_len + 1):
            # Shortest layout: both endings one measure long
            if start + 2 * prefix + 1 > limit:
                break

            for end_len1 in range(1, options.max_ending_len + 1):
                ending1 = start + prefix
                second_prefix = ending1 + end_len1
                ending2 = second_prefix + prefix
                if ending2 > limit:
                    break
                if not _segments_equal(fps, start, second_prefix, prefix):
                    continue

                for end_len2 in range(1, options.max_ending_len + 1):
                    span_end = ending2 + end_len2 - 1
                    if span_end > limit:
                        break
                    # Identical endings are a plain repeat, already covered
                    if end_len1 == end_len2 and _segments_equal(fps, ending1, ending2, end_len1):
                        continue

                    expanded = 2 * prefix + end_len1 + end_len2
                    printed = prefix + end_len1 + end_len2
                    voltas = (
                        Volta(start=ending1, end=second_prefix - 1, allowed_passes=(1,)),
                        Volta(start=ending2, end=span_end, allowed_passes=(2,)),
                    )
                    score, constructs = score_construct(
                        expanded, printed, len(voltas), options.savings_weight
                    )
                    if score <= 0:
                        continue

                    candidates.append(Candidate(
                        start=start,
                        end=span_end,
                        times=2,
                        span_end=span_end,
                        unit_length=prefix,
                        skip_ranges=((second_prefix, ending2 - 1),),
                        expanded_length=expanded,
                        printed_length=printed,
                        voltas=voltas,
                        constructs=constructs,
                        score=score,
                    ))

    logger.debug(f"Volta candidates: {len(candidates)}")
    return candidates


def generate_candidates(
    fps: Sequence[Hashable],
    boundaries: Sequence[Any],
    options: FoldOptions,
) -> List[Candidate]:
    """All simple-repeat candidates followed by all volta candidates."""
    return find_simple_repeats(fps, boundaries, options) + find_voltas(fps, boundaries, options)
