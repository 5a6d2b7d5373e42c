"""Score adapters for fold inference (tab-score JSON, music21)."""

from .tab_json import TabScoreSequence, fold_tab_score, load_tab_score
from .m21_fold import MeasureSequence, build_folded_part, expand_folded_part, extract_fold_plan, fold_part

__all__ = [
    "TabScoreSequence",
    "fold_tab_score",
    "load_tab_score",
    "MeasureSequence",
    "fold_part",
    "build_folded_part",
    "extract_fold_plan",
    "expand_folded_part",
]
