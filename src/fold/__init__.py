"""
Repeat/volta fold-plan inference.

Usage:
    from src.fold import ListSequence, infer_fold_plan, unroll

    result = infer_fold_plan(ListSequence.from_labels("ABXABYD"))
    playback = unroll(result.plan, len(result.folded_indices))
"""

from .config import FoldOptions, DEFAULT_OPTIONS
from .inference import infer_fold_plan
from .markers import RepeatMarkers, format_volta, measure_markers, render_folded, repeat_markers
from .plan import Candidate, FoldPlan, FoldResult, PlanError, Repeat, Volta
from .sequence import ListSequence
from .unroll import unroll, verify_fold

__all__ = [
    'FoldOptions',
    'DEFAULT_OPTIONS',
    'infer_fold_plan',
    'unroll',
    'verify_fold',
    'ListSequence',
    'Candidate',
    'FoldPlan',
    'FoldResult',
    'PlanError',
    'Repeat',
    'Volta',
    'RepeatMarkers',
    'repeat_markers',
    'format_volta',
    'measure_markers',
    'render_folded',
]
