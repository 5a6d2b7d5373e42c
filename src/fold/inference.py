"""
Repeat/Volta Fold-Plan Inference
================================

Entry point tying the pipeline together::

    adapter -> candidates -> selection -> fold -> verification

Usage:
    from src.fold import ListSequence, infer_fold_plan

    result = infer_fold_plan(ListSequence.from_labels("ABCABCD"))
    result.folded_indices   # (0, 1, 2, 6)
    result.plan.repeats     # (Repeat(start=0, end=2, times=2, voltas=()),)

A plan that fails verification is never returned; the caller gets the
identity fold instead.
"""

import logging
from typing import Any, Optional

from .builder import build_folded_plan
from .candidates import generate_candidates
from .config import DEFAULT_OPTIONS, FoldOptions
from .plan import FoldResult
from .selector import select_candidates
from .sequence import read_sequence
from .unroll import verify_fold

logger = logging.getLogger(__name__)


def infer_fold_plan(
    adapter: Any,
    options: Optional[FoldOptions] = None,
    **overrides: Any,
) -> FoldResult:
    """Find a compact repeat/volta description of a measure sequence.

    Args:
        adapter: Object with ``__len__``, ``fingerprint(i)`` and optionally
            ``boundary(i)``
        options: Search options (defaults to ``FoldOptions()``)
        **overrides: Individual option overrides, e.g. ``max_repeat_len=4``

    Returns:
        FoldResult with the printed positions and the plan, or the identity
        fold with ``plan=None`` if no verified compression was found
    """
    opts = options or DEFAULT_OPTIONS
    if overrides:
        opts = opts.replace(**overrides)

    fingerprints, boundaries = read_sequence(adapter)
    length = len(fingerprints)

    candidates = generate_candidates(fingerprints, boundaries, opts)
    selection = select_candidates(candidates, opts.allow_multiple_repeats)
    if selection is None:
        return FoldResult.identity(length)

    folded = build_folded_plan(selection.candidates, length)
    if folded.plan is None or len(folded.plan) == 0:
        return FoldResult.identity(length)

    mismatch = verify_fold(fingerprints, folded)
    if mismatch is not None:
        logger.warning(
            f"Fold plan verification failed at position {mismatch}; "
            f"using identity fold"
        )
        return FoldResult.identity(length)

    logger.info(
        f"Folded {length} measures to {len(folded.folded_indices)} "
        f"with {len(folded.plan)} repeat(s)"
    )
    return folded
