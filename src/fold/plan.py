"""
Fold plan data model.

Coordinates:
- ``Candidate`` lives in original measure positions.
- ``Repeat``/``Volta`` inside a ``FoldPlan`` live in folded-index
  coordinates (positions in ``FoldResult.folded_indices``).

Serialized plans use the camelCase keys of the persisted JSON format:
``{"repeats": [{"start", "end", "times", "voltas": [{"start", "end",
"allowedPasses"}]}]}``.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


class PlanError(ValueError):
    """A serialized fold plan violates the plan invariants."""


@dataclass(frozen=True)
class Volta:
    """Alternate ending played only on ``allowed_passes``."""

    start: int
    end: int
    allowed_passes: Tuple[int, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "allowedPasses": list(self.allowed_passes),
        }


@dataclass(frozen=True)
class Repeat:
    """Block ``[start, end]`` played ``times`` times, with optional voltas."""

    start: int
    end: int
    times: int = 2
    voltas: Tuple[Volta, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "times": self.times,
            "voltas": [v.to_dict() for v in self.voltas],
        }


@dataclass(frozen=True)
class Candidate:
    """A proposed repeat or volta construct in original positions.

    ``end`` is the repeat's closing position: the end of the first unit for
    a simple repeat, the end of the last ending for a volta construct.
    ``span_end`` is the last original position the construct accounts for.
    """

    start: int
    end: int
    times: int
    span_end: int
    unit_length: int
    skip_ranges: Tuple[Tuple[int, int], ...]
    expanded_length: int
    printed_length: int
    voltas: Tuple[Volta, ...] = ()
    constructs: int = 1
    score: float = 0

    @property
    def is_volta(self) -> bool:
        return bool(self.voltas)

    def sort_key(self) -> Tuple[int, int, int, int]:
        """Tie-break order: earlier start, longer unit, fewer constructs, earlier end."""
        return (self.start, -self.unit_length, self.constructs, self.span_end)


@dataclass(frozen=True)
class FoldPlan:
    """Repeats in folded coordinates, ordered by ``start``."""

    repeats: Tuple[Repeat, ...] = ()

    def __len__(self) -> int:
        return len(self.repeats)

    def __iter__(self):
        return iter(self.repeats)

    def to_dict(self) -> Dict[str, Any]:
        return {"repeats": [r.to_dict() for r in self.repeats]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FoldPlan":
        """Parse and validate a serialized plan.

        Raises:
            PlanError: If the plan is malformed or breaks an invariant.
        """
        if not isinstance(data, dict) or not isinstance(data.get("repeats"), list):
            raise PlanError("Plan must be an object with a 'repeats' list")

        repeats: List[Repeat] = []
        for i, raw in enumerate(data["repeats"]):
            try:
                voltas = tuple(
                    Volta(
                        start=int(v["start"]),
                        end=int(v["end"]),
                        allowed_passes=tuple(int(p) for p in v.get("allowedPasses", [])),
                    )
                    for v in raw.get("voltas", [])
                )
                repeat = Repeat(
                    start=int(raw["start"]),
                    end=int(raw["end"]),
                    times=int(raw.get("times", 2)),
                    voltas=voltas,
                )
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise PlanError(f"Malformed repeat #{i}: {e}") from e
            repeats.append(repeat)

        plan = cls(repeats=tuple(sorted(repeats, key=lambda r: r.start)))
        plan.validate()
        return plan

    def validate(self) -> None:
        """Check the plan invariants, raising ``PlanError`` on violation."""
        prev_end = -1
        for repeat in sorted(self.repeats, key=lambda r: r.start):
            if repeat.start < 0 or repeat.end < repeat.start:
                raise PlanError(f"Invalid repeat range [{repeat.start}, {repeat.end}]")
            if repeat.start <= prev_end:
                raise PlanError(f"Repeat at {repeat.start} overlaps the previous repeat")
            if repeat.times < 1:
                raise PlanError(f"Repeat at {repeat.start} has times={repeat.times}")

            volta_end = repeat.start - 1
            for volta in sorted(repeat.voltas, key=lambda v: v.start):
                if volta.end < volta.start:
                    raise PlanError(f"Invalid volta range [{volta.start}, {volta.end}]")
                if volta.start <= volta_end or volta.end > repeat.end:
                    raise PlanError(
                        f"Volta [{volta.start}, {volta.end}] is outside repeat "
                        f"[{repeat.start}, {repeat.end}] or overlaps another volta"
                    )
                if not volta.allowed_passes:
                    raise PlanError(f"Volta at {volta.start} has no allowed passes")
                if any(p < 1 or p > repeat.times for p in volta.allowed_passes):
                    raise PlanError(
                        f"Volta at {volta.start} passes {list(volta.allowed_passes)} "
                        f"outside 1..{repeat.times}"
                    )
                volta_end = volta.end
            prev_end = repeat.end


@dataclass(frozen=True)
class FoldResult:
    """Printed positions plus the plan that re-expands them."""

    folded_indices: Tuple[int, ...]
    plan: Optional[FoldPlan] = None

    @classmethod
    def identity(cls, length: int) -> "FoldResult":
        return cls(folded_indices=tuple(range(length)), plan=None)

    @property
    def is_folded(self) -> bool:
        return self.plan is not None and len(self.plan) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "foldedIndices": list(self.folded_indices),
            "plan": self.plan.to_dict() if self.plan is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FoldResult":
        try:
            indices = tuple(int(i) for i in data["foldedIndices"])
        except (KeyError, TypeError, ValueError) as e:
            raise PlanError(f"Malformed foldedIndices: {e}") from e
        if any(b <= a for a, b in zip(indices, indices[1:])):
            raise PlanError("foldedIndices must be strictly increasing")

        raw_plan = data.get("plan")
        plan = FoldPlan.from_dict(raw_plan) if raw_plan is not None else None
        if plan is not None:
            for repeat in plan:
                if repeat.end >= len(indices):
                    raise PlanError(
                        f"Repeat [{repeat.start}, {repeat.end}] exceeds "
                        f"{len(indices)} folded positions"
                    )
        return cls(folded_indices=indices, plan=plan)
