"""Tests for fold inference options."""

from pathlib import Path

import pytest

from src.fold import FoldOptions

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class TestFoldOptions:
    """Test FoldOptions construction and loading."""

    def test_defaults(self):
        """Defaults match the documented search bounds."""
        opts = FoldOptions()
        assert opts.min_repeat_len == 2
        assert opts.max_repeat_len == 16
        assert opts.min_prefix_len == 2
        assert opts.max_ending_len == 8
        assert opts.allow_multiple_repeats is True
        assert opts.savings_weight == 10

    @pytest.mark.parametrize("name", ["min_repeat_len", "max_repeat_len", "min_prefix_len", "max_ending_len"])
    def test_lengths_must_be_positive(self, name):
        """Length options below 1 are rejected."""
        with pytest.raises(ValueError, match=name):
            FoldOptions(**{name: 0})

    def test_non_positive_weight_rejected(self):
        """savings_weight must be positive."""
        with pytest.raises(ValueError, match="savings_weight"):
            FoldOptions(savings_weight=0)

    def test_fractional_weight(self):
        """savings_weight may be a float."""
        opts = FoldOptions.from_dict({"savingsWeight": 2.5})
        assert opts.savings_weight == 2.5

    def test_inverted_range_is_allowed(self):
        """max below min is legal; it just yields no candidates."""
        opts = FoldOptions(min_repeat_len=4, max_repeat_len=2)
        assert opts.max_repeat_len == 2

    def test_from_dict_accepts_camel_case(self):
        """Persisted camelCase keys map onto option fields."""
        opts = FoldOptions.from_dict({"maxRepeatLen": 4, "allowMultipleRepeats": False})
        assert opts.max_repeat_len == 4
        assert opts.allow_multiple_repeats is False
        assert opts.min_repeat_len == 2

    def test_from_dict_rejects_unknown(self):
        """Unknown keys are an error."""
        with pytest.raises(ValueError, match="Unknown fold option"):
            FoldOptions.from_dict({"maxRepeat": 4})

    def test_replace_returns_copy(self):
        """replace() leaves the original untouched."""
        opts = FoldOptions()
        other = opts.replace(max_ending_len=2)
        assert other.max_ending_len == 2
        assert opts.max_ending_len == 8

    def test_from_yaml_section(self, tmp_path):
        """Options are read from the fold: section."""
        path = tmp_path / "fold.yaml"
        path.write_text("fold:\n  min_repeat_len: 1\n  savings_weight: 5\n", encoding="utf-8")
        opts = FoldOptions.from_yaml(str(path))
        assert opts.min_repeat_len == 1
        assert opts.savings_weight == 5

    def test_from_yaml_top_level(self, tmp_path):
        """Options may also sit at the top level."""
        path = tmp_path / "fold.yaml"
        path.write_text("maxEndingLen: 3\n", encoding="utf-8")
        assert FoldOptions.from_yaml(str(path)).max_ending_len == 3

    def test_from_yaml_empty_file(self, tmp_path):
        """An empty file gives the defaults."""
        path = tmp_path / "fold.yaml"
        path.write_text("", encoding="utf-8")
        assert FoldOptions.from_yaml(str(path)) == FoldOptions()

    def test_shipped_config_matches_defaults(self):
        """configs/fold.yaml documents the default options."""
        opts = FoldOptions.from_yaml(str(PROJECT_ROOT / "configs" / "fold.yaml"))
        assert opts == FoldOptions()
