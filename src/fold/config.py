"""
Fold Inference Configuration
============================

Options controlling the repeat/volta fold-plan search.

Length options bound the search space (and therefore the cost) of candidate
generation. ``savings_weight`` is the scoring policy: each printed measure
saved is worth ``savings_weight`` points and each repeat or volta construct
costs one point.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

# camelCase spellings accepted from persisted/JSON configs
_CAMEL_ALIASES = {
    "minRepeatLen": "min_repeat_len",
    "maxRepeatLen": "max_repeat_len",
    "minPrefixLen": "min_prefix_len",
    "maxEndingLen": "max_ending_len",
    "allowMultipleRepeats": "allow_multiple_repeats",
    "savingsWeight": "savings_weight",
}


@dataclass(frozen=True)
class FoldOptions:
    """Search bounds and scoring policy for fold inference."""

    min_repeat_len: int = 2     # shortest simple-repeat unit
    max_repeat_len: int = 16    # longest repeat unit / volta prefix
    min_prefix_len: int = 2     # shortest shared volta prefix
    max_ending_len: int = 8     # longest volta ending
    allow_multiple_repeats: bool = True
    savings_weight: float = 10  # points per saved measure

    def __post_init__(self):
        for name in ("min_repeat_len", "max_repeat_len", "min_prefix_len", "max_ending_len"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")
        if not isinstance(self.savings_weight, (int, float)) or self.savings_weight <= 0:
            raise ValueError(f"savings_weight must be positive, got {self.savings_weight!r}")

    def replace(self, **overrides: Any) -> "FoldOptions":
        """Return a copy with ``overrides`` applied (camelCase keys allowed)."""
        merged = {f.name: getattr(self, f.name) for f in fields(self)}
        merged.update(_normalize_keys(overrides))
        return FoldOptions(**merged)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FoldOptions":
        """Build options from a mapping, filling gaps with defaults."""
        return cls().replace(**(data or {}))

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "FoldOptions":
        """Load options from YAML file.

        Options may sit under a top-level ``fold:`` key or at the top level.
        """
        import yaml

        with open(yaml_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}

        if not isinstance(cfg, dict):
            raise ValueError(f"Fold config must be a mapping: {yaml_path}")

        fold_cfg = cfg.get("fold", cfg)
        if not isinstance(fold_cfg, dict):
            raise ValueError(f"'fold' section must be a mapping: {yaml_path}")
        return cls.from_dict(fold_cfg)


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(FoldOptions)}
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        name = _CAMEL_ALIASES.get(key, key)
        if name not in known:
            raise ValueError(f"Unknown fold option: {key}")
        normalized[name] = value
    return normalized


DEFAULT_OPTIONS = FoldOptions()
