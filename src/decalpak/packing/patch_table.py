"""Declarative field locations inside the assembled entry.

Maps each semantic field (identifier text, digests) to the segment-relative
byte ranges it occupies. One field usually lands in several places: the
identifier appears in the asset header and three times in the index, and
each content digest is mirrored from its entry header into the index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping

from ..errors import invariant_error, E_PATCH_BOUNDS, E_OVERLAP
from .layout import SegmentMap

__all__ = ["PatchEntry", "PatchTable"]


@dataclass(slots=True, frozen=True)
class PatchEntry:
    field: str
    segment: str
    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length

    def absolute(self, segments: SegmentMap) -> tuple[int, int]:
        seg = segments[self.segment]
        return seg.offset + self.offset, seg.offset + self.end


class PatchTable:
    def __init__(self, entries: Iterable[PatchEntry]):
        self._entries: List[PatchEntry] = list(entries)
        self._by_field: Dict[str, List[PatchEntry]] = {}
        for e in self._entries:
            if e.offset < 0 or e.length <= 0:
                raise invariant_error(
                    E_PATCH_BOUNDS,
                    f"Field {e.field} has invalid range {e.offset}+{e.length}",
                )
            self._by_field.setdefault(e.field, []).append(e)
            # All copies of one field must share a width.
            if e.length != self._by_field[e.field][0].length:
                raise invariant_error(
                    E_PATCH_BOUNDS, f"Field {e.field} has mixed widths"
                )

    @classmethod
    def from_schema(
        cls, fields: Mapping[str, Iterable[Mapping[str, Any]]]
    ) -> "PatchTable":
        entries = []
        for name, locations in fields.items():
            for loc in locations:
                entries.append(
                    PatchEntry(
                        field=name,
                        segment=str(loc["segment"]),
                        offset=int(loc["offset"]),
                        length=int(loc["length"]),
                    )
                )
        return cls(entries)

    def __iter__(self) -> Iterator[PatchEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, field: object) -> bool:
        return field in self._by_field

    def entries_for(self, field: str) -> List[PatchEntry]:
        try:
            return list(self._by_field[field])
        except KeyError:
            raise invariant_error(
                E_PATCH_BOUNDS, f"Unknown patch field '{field}'"
            ) from None

    def width(self, field: str) -> int:
        return self.entries_for(field)[0].length

    def validate(self, segments: SegmentMap) -> None:
        """Check every entry lies inside its segment and none overlap."""
        spans: List[tuple[int, int, PatchEntry]] = []
        for e in self._entries:
            if e.segment not in segments:
                raise invariant_error(
                    E_PATCH_BOUNDS,
                    f"Field {e.field} targets unknown segment {e.segment}",
                )
            seg = segments[e.segment]
            if e.end > seg.length:
                raise invariant_error(
                    E_PATCH_BOUNDS,
                    f"Field {e.field} at {e.segment}+{e.offset} "
                    f"(length {e.length}) exceeds segment length {seg.length}",
                    {"field": e.field, "segment": e.segment},
                )
            start, end = e.absolute(segments)
            spans.append((start, end, e))
        spans.sort(key=lambda s: s[0])
        for (_, prev_end, prev), (start, _, cur) in zip(spans, spans[1:]):
            if start < prev_end:
                raise invariant_error(
                    E_OVERLAP,
                    f"Fields {prev.field} and {cur.field} overlap at {start}",
                )
