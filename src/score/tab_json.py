"""
Tab-score JSON adapter for fold inference.

Score JSON layout (fields the adapter reads)::

    {
      "measures": [
        {
          "signature": [4, 4],              # optional, carries forward
          "marker": {"text": "Verse"},      # optional rehearsal marker
          "voices": [{"rest": false, "beats": [
            {"duration": [1, 4], "palmMute": true,
             "notes": [{"string": 0, "fret": 3, "tie": false}]}
          ]}]
        }
      ],
      "automations": {"tempo": [{"measure": 4, "position": 0, "bpm": 96}]}
    }

Each measure is fingerprinted by a key-sorted JSON serialization of what the
tab notation prints for it. Signature changes, rehearsal markers and tempo
changes after the first measure are fold boundaries.
"""

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from src.fold import FoldOptions, FoldResult, infer_fold_plan

logger = logging.getLogger(__name__)

DEFAULT_SIGNATURE: Tuple[int, int] = (4, 4)

# Tab scores fold single repeated bars too
TAB_FOLD_OPTIONS = FoldOptions(min_repeat_len=1)


class ScoreFormatError(ValueError):
    """Score JSON does not have the expected structure."""


@dataclass
class MeasureInfo:
    """One measure with its resolved time signature."""

    measure: Dict[str, Any]
    index: int
    signature: Tuple[int, int]
    signature_changed: bool = False
    marker_text: str = ""

    @property
    def number(self) -> int:
        """1-based measure number."""
        return self.index + 1


def load_tab_score(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load and validate a tab-score JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ScoreFormatError: If the JSON is not a score object
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Score JSON not found: {path}")

    logger.info(f"Loading tab score: {path.name}")
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return parse_tab_score(raw)


def parse_tab_score(raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise ScoreFormatError("Score JSON must be an object")
    if not isinstance(raw.get("measures"), list):
        raise ScoreFormatError('Score JSON must include a "measures" array')
    return raw


def _validate_signature(signature: Any, number: int) -> Tuple[int, int]:
    try:
        num, den = signature
    except (TypeError, ValueError):
        raise ScoreFormatError(f"Invalid time signature in measure {number}") from None
    for value in (num, den):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ScoreFormatError(f"Invalid time signature in measure {number}")
    return num, den


def build_measure_infos(score: Dict[str, Any]) -> List[MeasureInfo]:
    """Resolve the running time signature and markers for each measure."""
    current = DEFAULT_SIGNATURE
    infos: List[MeasureInfo] = []

    for index, measure in enumerate(score["measures"]):
        if not isinstance(measure, dict):
            raise ScoreFormatError(f"Measure {index + 1} must be an object")

        changed = False
        if measure.get("signature"):
            signature = _validate_signature(measure["signature"], index + 1)
            if signature != current:
                current = signature
                changed = True

        marker = measure.get("marker") or {}
        infos.append(MeasureInfo(
            measure=measure,
            index=index,
            signature=current,
            signature_changed=changed,
            marker_text=(marker.get("text") or "") if isinstance(marker, dict) else "",
        ))

    return infos


def build_tempo_map(tempo: Optional[List[Any]]) -> Dict[int, float]:
    """Measure index -> bpm for tempo changes at the start of a measure.

    Entries that are not at position 0, lack an integer measure or a finite
    bpm are ignored; the first entry per measure wins.
    """
    tempo_map: Dict[int, float] = {}
    for entry in tempo or []:
        if not isinstance(entry, dict):
            continue
        measure = entry.get("measure")
        if isinstance(measure, bool) or not isinstance(measure, int):
            continue
        if (entry.get("position") or 0) != 0:
            continue
        bpm = entry.get("bpm")
        if isinstance(bpm, bool) or not isinstance(bpm, (int, float)) or not math.isfinite(bpm):
            continue
        tempo_map.setdefault(measure, bpm)
    return tempo_map


def _first_voice(measure: Dict[str, Any]) -> Dict[str, Any]:
    voices = measure.get("voices") or []
    return voices[0] if voices and isinstance(voices[0], dict) else {}


def _canonical_note(note: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "string": note.get("string"),
        "fret": note.get("fret"),
        "rest": bool(note.get("rest")),
        "tie": bool(note.get("tie")),
        "hp": bool(note.get("hp")),
        "slide": note.get("slide"),
        "ghost": bool(note.get("ghost")),
        "dead": bool(note.get("dead")),
    }


def _canonical_beat(beat: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "duration": beat.get("duration"),
        "dots": beat.get("dots", 0),
        "rest": bool(beat.get("rest")),
        "palmMute": bool(beat.get("palmMute")),
        "letRing": bool(beat.get("letRing")),
        "tuplet": beat.get("tuplet"),
        "tupletStart": bool(beat.get("tupletStart")),
        "tupletStop": bool(beat.get("tupletStop")),
        "notes": sorted(
            (_canonical_note(n) for n in beat.get("notes") or []),
            key=lambda n: json.dumps(n, sort_keys=True),
        ),
    }


def _measure_beats(info: MeasureInfo) -> List[Dict[str, Any]]:
    voice = _first_voice(info.measure)
    beats = voice.get("beats") or []
    if voice.get("rest") or not beats:
        # Empty and whole-rest measures print as a bar of rest beats
        num, den = info.signature
        return [{"rest": True, "duration": [1, den]} for _ in range(num)]
    return beats


def canonical_fingerprint(info: MeasureInfo) -> str:
    """Key-sorted JSON of everything that shows up in the measure's notation."""
    canon = {
        "signature": list(info.signature),
        "voice_rest": bool(_first_voice(info.measure).get("rest")),
        "beats": [_canonical_beat(b) for b in _measure_beats(info)],
    }
    return json.dumps(canon, sort_keys=True, separators=(",", ":"))


def build_boundary_ids(
    infos: List[MeasureInfo],
    tempo_map: Dict[int, float],
) -> List[Optional[str]]:
    boundaries: List[Optional[str]] = [None] * len(infos)
    for info in infos[1:]:
        if info.signature_changed:
            boundaries[info.index] = "signature"
        elif info.marker_text:
            boundaries[info.index] = "marker"
        elif info.index in tempo_map:
            boundaries[info.index] = "tempo"
    return boundaries


class TabScoreSequence:
    """Fold-inference adapter over a tab-score JSON object."""

    def __init__(self, score: Dict[str, Any]):
        score = parse_tab_score(score)
        automations = score.get("automations") or {}
        self.infos = build_measure_infos(score)
        self.tempo_map = build_tempo_map(automations.get("tempo"))
        self._fingerprints = [canonical_fingerprint(info) for info in self.infos]
        self._boundaries = build_boundary_ids(self.infos, self.tempo_map)

    def __len__(self) -> int:
        return len(self.infos)

    def fingerprint(self, index: int) -> str:
        return self._fingerprints[index]

    def boundary(self, index: int) -> Optional[str]:
        return self._boundaries[index]

    def label(self, index: int) -> str:
        return f"m{index + 1}"


def fold_tab_score(
    score: Dict[str, Any],
    options: Optional[FoldOptions] = None,
    infer_repeats: bool = True,
) -> FoldResult:
    """
    Infer repeats for a tab score.

    Args:
        score: Parsed score JSON
        options: Fold options (defaults to ``TAB_FOLD_OPTIONS``)
        infer_repeats: If False, return the identity fold

    Returns:
        FoldResult over measure indices
    """
    sequence = TabScoreSequence(score)
    if not infer_repeats:
        return FoldResult.identity(len(sequence))
    return infer_fold_plan(sequence, options or TAB_FOLD_OPTIONS)
