"""
Repeat and volta markers for printed (folded) measures.

Turns a ``FoldPlan`` into per-measure annotations:

- alphaTex bar metadata: ``\\ro`` (repeat open), ``\\ae 1`` / ``\\ae (1 2)``
  (alternate ending), ``\\rc N`` (repeat close, N passes)
- a compact one-line rendering for logs and golden tests:
  ``|: A B 1.[X] 2.[Y] :| D``
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .plan import FoldPlan, FoldResult


@dataclass
class RepeatMarkers:
    """Marker lookup keyed by folded index."""

    repeat_starts: Set[int] = field(default_factory=set)
    repeat_ends: Dict[int, int] = field(default_factory=dict)  # index -> times
    volta_starts: Dict[int, Tuple[int, ...]] = field(default_factory=dict)


def repeat_markers(plan: Optional[FoldPlan]) -> RepeatMarkers:
    markers = RepeatMarkers()
    if plan is None:
        return markers

    for repeat in plan:
        markers.repeat_starts.add(repeat.start)
        markers.repeat_ends[repeat.end] = repeat.times
        for volta in repeat.voltas:
            markers.volta_starts[volta.start] = tuple(volta.allowed_passes)
    return markers


def format_volta(passes: Iterable[int]) -> str:
    """``\\ae 1`` for a single pass, ``\\ae (1 2)`` for several."""
    normalized = sorted(int(p) for p in passes)
    if len(normalized) <= 1:
        return f"\\ae {normalized[0] if normalized else 1}"
    return f"\\ae ({' '.join(str(p) for p in normalized)})"


def measure_markers(plan_or_markers, folded_index: int) -> List[str]:
    """alphaTex marker tokens for one printed measure, in bar-meta order."""
    markers = (
        plan_or_markers
        if isinstance(plan_or_markers, RepeatMarkers)
        else repeat_markers(plan_or_markers)
    )
    tokens: List[str] = []
    if folded_index in markers.repeat_starts:
        tokens.append("\\ro")
    passes = markers.volta_starts.get(folded_index)
    if passes:
        tokens.append(format_volta(passes))
    times = markers.repeat_ends.get(folded_index)
    if times:
        tokens.append(f"\\rc {times}")
    return tokens


def _close_token(times: int) -> str:
    return ":|" if times == 2 else f":|x{times}"


def render_folded(labels: Sequence[str], result: FoldResult) -> str:
    """Render the printed measures with repeat and volta brackets.

    Args:
        labels: One label per original position
        result: Fold of the same sequence
    """
    folded = [str(labels[i]) for i in result.folded_indices]
    if result.plan is None:
        return " ".join(folded)

    starts = {r.start for r in result.plan}
    ends = {r.end: r.times for r in result.plan}
    voltas = {v.start: v for r in result.plan for v in r.voltas}

    rendered: List[str] = []
    i = 0
    while i < len(folded):
        if i in starts:
            rendered.append("|:")

        volta = voltas.get(i)
        if volta is not None:
            passes = ",".join(str(p) for p in sorted(volta.allowed_passes))
            body = " ".join(folded[volta.start:volta.end + 1])
            rendered.append(f"{passes}.[{body}]")
            i = volta.end + 1
        else:
            rendered.append(folded[i])
            i += 1

        if i - 1 in ends:
            rendered.append(_close_token(ends[i - 1]))

    return " ".join(rendered)
