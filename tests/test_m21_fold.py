"""Tests for music21 fold adapter and folded-part writer."""

import music21 as m21
import pytest

from src.fold import FoldPlan, FoldResult, Repeat, Volta
from src.score.m21_fold import (
    MeasureSequence,
    build_folded_part,
    expand_folded_part,
    extract_fold_plan,
    fold_part,
)

PATTERNS = {
    "A": ["C4", "D4", "E4", "F4"],
    "B": ["G4", "A4", "B4", "C5"],
    "C": ["C4", "E4", "G4", "C5"],
    "X": ["D4", "D4", "D4", "D4"],
    "Y": ["E4", "E4", "E4", "E4"],
    "D": ["F4", "F4", "F4", "F4"],
    "E": ["G4", "G4", "E4", "C4"],
}


def make_measure(label, number, time_signature=None):
    measure = m21.stream.Measure(number=number)
    if time_signature:
        measure.insert(0, m21.meter.TimeSignature(time_signature))
    for pitch in PATTERNS[label]:
        measure.append(m21.note.Note(pitch, quarterLength=1))
    return measure


def make_part(labels):
    part = m21.stream.Part()
    part.partName = "Guitar"
    for number, label in enumerate(labels, start=1):
        part.append(make_measure(label, number, "4/4" if number == 1 else None))
    return part


class TestMeasureSequence:
    """Test music21 measure fingerprints and boundaries."""

    def test_equal_measures_share_fingerprint(self):
        """Same notes give the same fingerprint regardless of the time signature object."""
        seq = MeasureSequence.from_part(make_part("ABAB"))
        assert len(seq) == 4
        assert seq.fingerprint(0) == seq.fingerprint(2)
        assert seq.fingerprint(0) != seq.fingerprint(1)

    def test_rests_and_ties_are_fingerprinted(self):
        """A tied note differs from an untied one."""
        part = make_part("AA")
        first_note = part.getElementsByClass(m21.stream.Measure)[1].notes[0]
        first_note.tie = m21.tie.Tie("start")
        seq = MeasureSequence.from_part(part)
        assert seq.fingerprint(0) != seq.fingerprint(1)

    def test_boundaries(self):
        """Signature changes, rehearsal marks and tempo marks are boundaries."""
        part = make_part("AAAA")
        measures = list(part.getElementsByClass(m21.stream.Measure))
        measures[1].insert(0, m21.meter.TimeSignature("3/4"))
        measures[2].insert(0, m21.expressions.RehearsalMark("B"))
        measures[3].insert(0, m21.tempo.MetronomeMark(number=90))
        seq = MeasureSequence.from_part(part)
        assert [seq.boundary(i) for i in range(4)] == [None, "signature", "marker", "tempo"]

    def test_first_measure_never_boundary(self):
        """Marks on the first measure do not create a boundary."""
        part = make_part("AA")
        part.getElementsByClass(m21.stream.Measure)[0].insert(0, m21.tempo.MetronomeMark(number=90))
        assert MeasureSequence.from_part(part).boundary(0) is None


class TestFoldPart:
    """Test folding and writing repeat notation."""

    def test_fold_part_simple_repeat(self):
        """ABCABCD folds to four printed measures."""
        result = fold_part(make_part("ABCABCD"))
        assert result.plan.repeats == (Repeat(start=0, end=2, times=2),)
        assert result.folded_indices == (0, 1, 2, 6)

    def test_rehearsal_mark_blocks_fold(self):
        """A rehearsal mark inside the repeat keeps the part unfolded."""
        part = make_part("ABCABCD")
        part.getElementsByClass(m21.stream.Measure)[3].insert(0, m21.expressions.RehearsalMark("B"))
        assert fold_part(part).plan is None

    def test_build_simple_repeat(self):
        """Start and end repeat barlines wrap the repeated block."""
        part = make_part("ABABC")
        folded = build_folded_part(part, fold_part(part))
        measures = list(folded.getElementsByClass(m21.stream.Measure))
        assert [m.number for m in measures] == [1, 2, 3]
        assert isinstance(measures[0].leftBarline, m21.bar.Repeat)
        assert measures[0].leftBarline.direction == "start"
        assert isinstance(measures[1].rightBarline, m21.bar.Repeat)
        assert measures[1].rightBarline.direction == "end"
        assert measures[1].rightBarline.times == 2

    def test_build_multi_pass(self):
        """The end barline carries the pass count."""
        part = make_part("ABABABC")
        folded = build_folded_part(part, fold_part(part))
        measures = list(folded.getElementsByClass(m21.stream.Measure))
        assert len(measures) == 3
        assert measures[1].rightBarline.times == 3

    def test_build_volta(self):
        """Each ending gets a bracket; the first ending closes the repeat."""
        part = make_part("ABXABYD")
        folded = build_folded_part(part, fold_part(part))
        measures = list(folded.getElementsByClass(m21.stream.Measure))
        assert len(measures) == 5
        assert measures[0].leftBarline.direction == "start"
        assert isinstance(measures[2].rightBarline, m21.bar.Repeat)
        assert measures[2].rightBarline.direction == "end"

        brackets = list(folded.getElementsByClass(m21.spanner.RepeatBracket))
        assert len(brackets) == 2
        assert sorted(str(b.number) for b in brackets) == ["1", "2"]
        spanned = [b.getSpannedElements()[0] for b in brackets]
        assert sorted(m.number for m in spanned) == [3, 4]

    def test_build_identity(self):
        """Without a plan every measure is copied once and unmarked."""
        part = make_part("ABCD")
        folded = build_folded_part(part, fold_part(part))
        measures = list(folded.getElementsByClass(m21.stream.Measure))
        assert len(measures) == 4
        assert not any(isinstance(m.rightBarline, m21.bar.Repeat) for m in measures)

    def test_source_part_untouched(self):
        """Building the folded part does not modify the source measures."""
        part = make_part("ABAB")
        build_folded_part(part, fold_part(part))
        first = part.getElementsByClass(m21.stream.Measure)[0]
        assert first.leftBarline is None

    @pytest.mark.parametrize("labels", ["ABCABCD", "ABXABYD", "ABABCDCDE"])
    def test_folded_measure_content(self, labels):
        """Printed measures keep the content of their source measures."""
        part = make_part(labels)
        result = fold_part(part)
        folded = build_folded_part(part, result)
        source = MeasureSequence.from_part(part)
        printed = MeasureSequence.from_part(folded)
        for k, index in enumerate(result.folded_indices):
            assert printed.fingerprint(k) == source.fingerprint(index)


class TestExtractAndExpand:
    """Test reading repeat notation back and replaying it."""

    @pytest.mark.parametrize("labels", ["ABCABCD", "ABXABYD", "ABABABC", "ABABCDCDE"])
    def test_extract_matches_inferred_plan(self, labels):
        """Notation written by build_folded_part reads back as the same plan."""
        part = make_part(labels)
        result = fold_part(part)
        folded = build_folded_part(part, result)
        assert extract_fold_plan(folded) == result.plan

    @pytest.mark.parametrize("labels", ["ABCABCD", "ABXABYD", "ABABABC", "ABABCDCDE"])
    def test_expand_restores_playback_order(self, labels):
        """Expanding the folded part reproduces the original measures."""
        part = make_part(labels)
        folded = build_folded_part(part, fold_part(part))
        expanded = expand_folded_part(folded)
        source = MeasureSequence.from_part(part)
        replayed = MeasureSequence.from_part(expanded)
        assert len(replayed) == len(labels)
        for i in range(len(labels)):
            assert replayed.fingerprint(i) == source.fingerprint(i)
        measures = list(expanded.getElementsByClass(m21.stream.Measure))
        assert [m.number for m in measures] == list(range(1, len(labels) + 1))
        assert not any(isinstance(m.leftBarline, m21.bar.Repeat) for m in measures)

    def test_end_barline_without_start(self):
        """An end barline with no start repeats from the beginning."""
        part = make_part("ABC")
        part.getElementsByClass(m21.stream.Measure)[1].rightBarline = m21.bar.Repeat(direction="end")
        assert extract_fold_plan(part).repeats == (Repeat(start=0, end=1, times=2),)

    def test_no_notation(self):
        """A part without repeat barlines has no plan."""
        assert extract_fold_plan(make_part("ABCD")) is None

    def test_volta_passes_read_back(self):
        """Bracket numbers become the allowed passes of each ending."""
        part = make_part("ABXABYD")
        plan = extract_fold_plan(build_folded_part(part, fold_part(part)))
        (repeat,) = plan.repeats
        assert [v.allowed_passes for v in repeat.voltas] == [(1,), (2,)]
        assert repeat.times == 2

    def test_multi_pass_bracket_read_back(self):
        """A bracket covering passes 1 and 2 reads back as one ending."""
        part = make_part("ABXYD")
        plan = FoldPlan(repeats=(Repeat(
            start=0, end=3, times=3,
            voltas=(Volta(start=2, end=2, allowed_passes=(1, 2)),
                    Volta(start=3, end=3, allowed_passes=(3,))),
        ),))
        folded = build_folded_part(part, FoldResult(folded_indices=(0, 1, 2, 3, 4), plan=plan))
        assert extract_fold_plan(folded) == plan

    def test_expand_volta_part(self):
        """A folded volta part replays both endings in order."""
        part = make_part("ABXABYD")
        expanded = expand_folded_part(build_folded_part(part, fold_part(part)))
        source = MeasureSequence.from_part(part)
        replayed = MeasureSequence.from_part(expanded)
        assert [replayed.fingerprint(i) for i in range(7)] == [source.fingerprint(i) for i in range(7)]
