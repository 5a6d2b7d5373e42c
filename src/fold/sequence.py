"""
Sequence adapters for fold inference.

The engine only needs three things from a score: its length, a fingerprint
per position and (optionally) a boundary marker per position. Anything that
supports ``len()`` and ``fingerprint(i)`` works; ``boundary(i)`` may be
omitted when the source has no hard boundaries.
"""

from typing import Any, Hashable, Iterable, List, Optional, Sequence, Tuple


class ListSequence:
    """Adapter over precomputed fingerprint and boundary lists."""

    def __init__(
        self,
        fingerprints: Sequence[Hashable],
        boundaries: Optional[Sequence[Any]] = None,
    ):
        self._fingerprints = list(fingerprints)
        if boundaries is None:
            self._boundaries: List[Any] = [None] * len(self._fingerprints)
        else:
            self._boundaries = list(boundaries)
            if len(self._boundaries) < len(self._fingerprints):
                self._boundaries.extend(
                    [None] * (len(self._fingerprints) - len(self._boundaries))
                )

    @classmethod
    def from_labels(
        cls,
        labels: Iterable[str],
        boundary_positions: Iterable[int] = (),
    ) -> "ListSequence":
        """Build a sequence from labels, e.g. ``"ABCABCD"`` or ``["A", "B"]``.

        ``boundary_positions`` are tagged with the marker ``"boundary"``.
        """
        fps = list(labels)
        boundaries: List[Any] = [None] * len(fps)
        for pos in boundary_positions:
            boundaries[pos] = "boundary"
        return cls(fps, boundaries)

    def __len__(self) -> int:
        return len(self._fingerprints)

    def fingerprint(self, index: int) -> Hashable:
        return self._fingerprints[index]

    def boundary(self, index: int) -> Any:
        return self._boundaries[index]


def read_sequence(adapter: Any) -> Tuple[List[Any], List[Any]]:
    """Materialize ``(fingerprints, boundaries)`` from an adapter.

    Errors raised by the adapter (including a negative ``__len__``) are not
    caught here.
    """
    length = len(adapter)
    boundary_fn = getattr(adapter, "boundary", None)

    fingerprints = [adapter.fingerprint(i) for i in range(length)]
    if boundary_fn is None:
        boundaries: List[Any] = [None] * length
    else:
        boundaries = [boundary_fn(i) for i in range(length)]
    return fingerprints, boundaries
