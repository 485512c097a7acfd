"""Lay out template segments and the compressed payload in one buffer.

Layout, in order: asset_header, data_header, payload, export_body, index.
The data_header template is placed at the payload's start offset and is
then overwritten by the payload itself; the data_header's own slot stays
zero-filled apart from fields patched later (its digest). This mirrors the
container the templates were captured from and must not be "fixed" into a
plain copy, or the emitted entry no longer matches the format.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from ..errors import invariant_error, E_ORDER, E_PATCH_BOUNDS, E_SIZE_MISMATCH
from ..logging import get_logger
from .layout import SegmentMap
from .patch_table import PatchTable
from .templates import TemplateSet

__all__ = ["AssembledEntry", "TemplateAssembler", "LAYOUT_ORDER"]

LAYOUT_ORDER = ("asset_header", "data_header", "payload", "export_body", "index")


class AssembledEntry:
    """The single mutable output buffer plus its segment map.

    Every patch goes through :meth:`write`. Ranges consumed by a digest are
    sealed; a later write into a sealed range means a digest no longer
    covers the final bytes and is rejected.
    """

    def __init__(self, buffer: bytearray, segments: SegmentMap):
        self.buffer = buffer
        self.segments = segments
        self._sealed: List[Tuple[int, int, str]] = []

    def __len__(self) -> int:
        return len(self.buffer)

    def view(self, start: int, end: int) -> memoryview:
        return memoryview(self.buffer)[start:end]

    def segment_bytes(self, name: str) -> bytes:
        seg = self.segments[name]
        return bytes(self.buffer[seg.offset : seg.end])

    def seal(self, start: int, end: int, owner: str) -> None:
        self._sealed.append((start, end, owner))

    def sealed_ranges(self) -> List[Tuple[int, int, str]]:
        return list(self._sealed)

    def write(self, start: int, data: bytes, field: str) -> None:
        end = start + len(data)
        if start < 0 or end > len(self.buffer):
            raise invariant_error(
                E_PATCH_BOUNDS,
                f"Write of {field} at {start}+{len(data)} outside buffer",
            )
        for s, e, owner in self._sealed:
            if start < e and s < end:
                raise invariant_error(
                    E_ORDER,
                    f"{field} written into [{start}, {end}) after {owner} "
                    f"hashed [{s}, {e})",
                    {"field": field, "digest": owner},
                )
        self.buffer[start:end] = data

    def patch(self, table: PatchTable, field: str, value: bytes) -> int:
        """Write ``value`` to every location of ``field``; returns the count."""
        entries = table.entries_for(field)
        for entry in entries:
            if len(value) != entry.length:
                raise invariant_error(
                    E_PATCH_BOUNDS,
                    f"Value for {field} is {len(value)} bytes, slot is "
                    f"{entry.length}",
                )
            start, _ = entry.absolute(self.segments)
            self.write(start, value, field)
        return len(entries)

    def read_field(self, table: PatchTable, field: str) -> List[bytes]:
        out = []
        for entry in table.entries_for(field):
            start, end = entry.absolute(self.segments)
            out.append(bytes(self.buffer[start:end]))
        return out


class TemplateAssembler:
    def __init__(self, templates: TemplateSet, table: Optional[PatchTable] = None):
        self.templates = templates
        self.table = table or PatchTable.from_schema(templates.fields)

    def segment_map(self) -> SegmentMap:
        lengths = {name: t.length for name, t in self.templates.templates.items()}
        lengths["payload"] = self.templates.payload_size
        return SegmentMap.from_lengths((n, lengths[n]) for n in LAYOUT_ORDER)

    def assemble(self, payload: bytes) -> AssembledEntry:
        t = self.templates
        if len(payload) != t.payload_size:
            raise invariant_error(
                E_SIZE_MISMATCH,
                f"Payload is {len(payload)} bytes, layout requires {t.payload_size}",
            )
        segments = self.segment_map()
        self.table.validate(segments)
        header = t["data_header"].data
        if len(header) > len(payload):
            raise invariant_error(
                E_SIZE_MISMATCH,
                "data_header template is longer than the payload it overlays",
            )

        buf = bytearray(segments.total_length)

        def place(offset: int, data: bytes) -> None:
            buf[offset : offset + len(data)] = data

        place(segments["asset_header"].offset, t["asset_header"].data)
        place(segments["payload"].offset, header)
        place(segments["payload"].offset, payload)
        place(segments["export_body"].offset, t["export_body"].data)
        place(segments["index"].offset, t["index"].data)

        if len(buf) != segments.total_length:
            raise invariant_error(
                E_SIZE_MISMATCH,
                f"Assembled {len(buf)} bytes, planned {segments.total_length}",
            )
        get_logger().debug(
            "Assembled %d bytes: %s",
            len(buf),
            ", ".join(f"{s.name}@{s.offset}+{s.length}" for s in segments),
        )
        return AssembledEntry(buf, segments)
