"""
Fold Inference for Music21 Parts
================================

1. ``MeasureSequence`` -- fold-inference adapter over the measures of a
   ``music21.stream.Part``. Each measure is fingerprinted by its time
   signature and its notes/rests/chords (offset, quarter length, pitches,
   tie type). Time-signature changes, ``MetronomeMark``s and
   ``RehearsalMark``s after the first measure are fold boundaries.
2. ``fold_part()`` -- infer the fold plan for a part.
3. ``build_folded_part()`` -- write the printed measures into a new part with
   repeat barlines and volta brackets (``RepeatBracket`` spanners).
4. ``extract_fold_plan()`` / ``expand_folded_part()`` -- read that notation
   back and replay it through ``unroll``.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

import music21 as m21

from src.fold import FoldOptions, FoldPlan, FoldResult, Repeat, Volta, infer_fold_plan, unroll

logger = logging.getLogger(__name__)


def _element_fingerprint(el: m21.note.GeneralNote) -> Tuple[Any, ...]:
    if el.isRest:
        kind = "rest"
    elif el.isChord:
        kind = "chord"
    else:
        kind = "note"
    pitches = tuple(sorted(p.nameWithOctave for p in el.pitches))
    tie = el.tie.type if el.tie is not None else None
    return (kind, float(el.offset), float(el.quarterLength), pitches, tie)


def measure_fingerprint(
    measure: m21.stream.Measure,
    signature: Optional[str],
) -> Tuple[Any, ...]:
    """Hashable summary of a measure's printed content."""
    elements = sorted(
        _element_fingerprint(el) for el in measure.flatten().notesAndRests
    )
    return (signature, tuple(elements))


class MeasureSequence:
    """Fold-inference adapter over the measures of one part."""

    def __init__(self, measures: List[m21.stream.Measure]):
        self.measures = measures
        self._fingerprints: List[Tuple[Any, ...]] = []
        self._boundaries: List[Optional[str]] = []

        current_sig: Optional[str] = None
        for i, m_obj in enumerate(measures):
            boundary: Optional[str] = None

            ts = m_obj.timeSignature
            if ts is not None and ts.ratioString != current_sig:
                if current_sig is not None:
                    boundary = "signature"
                current_sig = ts.ratioString

            if i > 0 and boundary is None:
                if m_obj.recurse().getElementsByClass(m21.expressions.RehearsalMark).first() is not None:
                    boundary = "marker"
                elif m_obj.recurse().getElementsByClass(m21.tempo.MetronomeMark).first() is not None:
                    boundary = "tempo"

            self._fingerprints.append(measure_fingerprint(m_obj, current_sig))
            self._boundaries.append(boundary if i > 0 else None)

    @classmethod
    def from_part(cls, part: m21.stream.Part) -> "MeasureSequence":
        return cls(list(part.getElementsByClass(m21.stream.Measure)))

    def __len__(self) -> int:
        return len(self.measures)

    def fingerprint(self, index: int) -> Tuple[Any, ...]:
        return self._fingerprints[index]

    def boundary(self, index: int) -> Optional[str]:
        return self._boundaries[index]


def fold_part(
    part: m21.stream.Part,
    options: Optional[FoldOptions] = None,
) -> FoldResult:
    """Infer the repeat/volta fold plan for a part's measures."""
    sequence = MeasureSequence.from_part(part)
    logger.debug(f"Folding part {part.partName or part.id}: {len(sequence)} measures")
    return infer_fold_plan(sequence, options)


def _bracket_number(passes) -> Any:
    passes = sorted(passes)
    if len(passes) == 1:
        return passes[0]
    return ", ".join(str(p) for p in passes)


def build_folded_part(part: m21.stream.Part, result: FoldResult) -> m21.stream.Part:
    """Copy the printed measures into a new part and notate the plan.

    Repeats get a start barline on their first measure. Without voltas the
    end barline (with ``times``) closes the last measure; with voltas every
    ending except the last closes with an end barline and each ending gets a
    ``RepeatBracket``.

    Args:
        part: Source part (unfolded)
        result: Fold of ``part``'s measures

    Returns:
        New part with renumbered measures
    """
    source = list(part.getElementsByClass(m21.stream.Measure))

    folded_part = m21.stream.Part()
    folded_part.id = part.id
    folded_part.partName = part.partName

    folded: List[m21.stream.Measure] = []
    for number, index in enumerate(result.folded_indices, start=1):
        m_obj = copy.deepcopy(source[index])
        m_obj.number = number
        folded.append(m_obj)
        folded_part.append(m_obj)

    if result.plan is None:
        return folded_part

    for repeat in result.plan:
        folded[repeat.start].leftBarline = m21.bar.Repeat(direction="start")

        voltas = sorted(repeat.voltas, key=lambda v: v.start)
        if not voltas:
            folded[repeat.end].rightBarline = m21.bar.Repeat(
                direction="end", times=repeat.times
            )
            continue

        for volta in voltas[:-1]:
            folded[volta.end].rightBarline = m21.bar.Repeat(direction="end")
        for volta in voltas:
            bracket = m21.spanner.RepeatBracket(
                folded[volta.start:volta.end + 1],
                number=_bracket_number(volta.allowed_passes),
            )
            folded_part.insert(0, bracket)

    logger.info(
        f"Folded part {part.partName or part.id}: {len(source)} -> {len(folded)} measures"
    )
    return folded_part


def _is_repeat(barline, direction: str) -> bool:
    return isinstance(barline, m21.bar.Repeat) and barline.direction == direction


def extract_fold_plan(part: m21.stream.Part) -> Optional[FoldPlan]:
    """Read the repeat/volta plan notated on a part.

    Start barlines open a repeat; an end barline closes it with its
    ``times`` (2 when unset). A chain of adjacent ``RepeatBracket``s closes
    the open repeat at the end of the last bracket. An end barline with no
    open repeat repeats from the start of the part or the previous repeat.

    Returns:
        FoldPlan in measure-index coordinates, or None if the part has no
        repeat notation

    Raises:
        PlanError: If the notation does not form a valid plan
    """
    measures = list(part.getElementsByClass(m21.stream.Measure))
    position = {id(m_obj): i for i, m_obj in enumerate(measures)}

    brackets: Dict[int, Tuple[int, Tuple[int, ...]]] = {}
    for sp in part.spannerBundle.getByClass(m21.spanner.RepeatBracket):
        spanned = sorted(
            position[id(s)] for s in sp.getSpannedElements() if id(s) in position
        )
        if spanned:
            brackets[spanned[0]] = (spanned[-1], tuple(sorted(sp.numberRange)))

    repeats: List[Repeat] = []
    open_start: Optional[int] = None
    i = 0
    while i < len(measures):
        m_obj = measures[i]
        if _is_repeat(m_obj.leftBarline, "start"):
            open_start = i

        if i in brackets and open_start is not None:
            voltas: List[Volta] = []
            j = i
            while j in brackets:
                last, passes = brackets[j]
                voltas.append(Volta(start=j, end=last, allowed_passes=passes))
                j = last + 1
            times = max(max(v.allowed_passes, default=1) for v in voltas)
            repeats.append(Repeat(
                start=open_start, end=j - 1, times=max(times, 2), voltas=tuple(voltas)
            ))
            open_start = None
            i = j
            continue

        if _is_repeat(m_obj.rightBarline, "end"):
            if open_start is None:
                open_start = repeats[-1].end + 1 if repeats else 0
            times = m_obj.rightBarline.times or 2
            repeats.append(Repeat(start=open_start, end=i, times=times))
            open_start = None
        i += 1

    if not repeats:
        return None
    plan = FoldPlan(repeats=tuple(repeats))
    plan.validate()
    return plan


def expand_folded_part(part: m21.stream.Part) -> m21.stream.Part:
    """Unroll a part with repeat notation into playback order.

    Measures are copied, renumbered from 1 and stripped of repeat barlines.
    """
    measures = list(part.getElementsByClass(m21.stream.Measure))
    plan = extract_fold_plan(part)

    expanded = m21.stream.Part()
    expanded.id = part.id
    expanded.partName = part.partName

    for number, index in enumerate(unroll(plan, len(measures)), start=1):
        m_obj = copy.deepcopy(measures[index])
        m_obj.number = number
        if isinstance(m_obj.leftBarline, m21.bar.Repeat):
            m_obj.leftBarline = None
        if isinstance(m_obj.rightBarline, m21.bar.Repeat):
            m_obj.rightBarline = None
        expanded.append(m_obj)

    logger.debug(f"Expanded {len(measures)} -> {len(expanded.getElementsByClass(m21.stream.Measure))} measures")
    return expanded
