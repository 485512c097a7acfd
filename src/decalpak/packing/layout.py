"""Segment map of an assembled entry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List

from ..errors import invariant_error, E_OVERLAP

__all__ = ["Segment", "SegmentMap"]


@dataclass(slots=True, frozen=True)
class Segment:
    name: str
    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length

    def absolute(self, start: int = 0, end: int | None = None) -> tuple[int, int]:
        """Translate a segment-relative range into buffer offsets."""
        stop = self.length if end is None else end
        if not (0 <= start <= stop <= self.length):
            raise ValueError(
                f"Range [{start}, {stop}) outside segment {self.name} "
                f"(length {self.length})"
            )
        return self.offset + start, self.offset + stop


class SegmentMap:
    """Ordered segments; contiguous from offset 0 with no gaps or overlap."""

    def __init__(self, segments: Iterable[Segment]):
        self._segments: List[Segment] = list(segments)
        self._by_name: Dict[str, Segment] = {}
        cursor = 0
        for seg in self._segments:
            if seg.offset != cursor:
                raise invariant_error(
                    E_OVERLAP,
                    f"Segment {seg.name} starts at {seg.offset}, expected {cursor}",
                )
            if seg.name in self._by_name:
                raise invariant_error(
                    E_OVERLAP, f"Duplicate segment name {seg.name}"
                )
            self._by_name[seg.name] = seg
            cursor = seg.end
        self.total_length = cursor

    @classmethod
    def from_lengths(cls, lengths: Iterable[tuple[str, int]]) -> "SegmentMap":
        segments = []
        cursor = 0
        for name, length in lengths:
            segments.append(Segment(name, cursor, length))
            cursor += length
        return cls(segments)

    def __getitem__(self, name: str) -> Segment:
        return self._by_name[name]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {
            s.name: {"offset": s.offset, "length": s.length}
            for s in self._segments
        }
