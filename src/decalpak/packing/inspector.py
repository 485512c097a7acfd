"""Re-read an emitted entry and check its internal cross-references.

Public functions:
- inspect_entry(source, templates) -> dict
- validate_entry(info) -> list[str]
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from .assembler import TemplateAssembler
from .hasher import IntegrityHasher, compute_digest, filename_stem
from .identifier import IDENTIFIER_FIELD
from .layout import SegmentMap
from .patch_table import PatchTable
from .templates import TemplateSet

__all__ = ["inspect_entry", "validate_entry"]


def _field_values(
    data: bytes, table: PatchTable, segments: SegmentMap, field: str
) -> List[bytes]:
    out = []
    for entry in table.entries_for(field):
        start, end = entry.absolute(segments)
        out.append(data[start:end])
    return out


def inspect_entry(
    source: str | Path | bytes, templates: TemplateSet
) -> Dict[str, Any]:
    """Describe an entry: layout, identifier copies, stored vs computed digests.

    ``source`` is a path (its stem is the filename the filename digest is
    checked against) or raw bytes (filename digest left unchecked).
    """
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
        stem = None
    else:
        path = Path(source)
        data = path.read_bytes()
        stem = filename_stem(path)

    assembler = TemplateAssembler(templates)
    table = assembler.table
    segments = assembler.segment_map()
    hasher = IntegrityHasher(templates.digests, table, segments)

    info: Dict[str, Any] = {
        "file_size": len(data),
        "expected_size": segments.total_length,
        "schema": templates.label,
        "segments": segments.to_dict(),
        "identifier": [],
        "digests": {},
    }
    if len(data) != segments.total_length:
        return info

    info["identifier"] = [
        v.decode("ascii", "replace")
        for v in _field_values(data, table, segments, IDENTIFIER_FIELD)
    ]
    for spec in templates.digests:
        stored = [
            v.hex() for v in _field_values(data, table, segments, spec.field)
        ]
        rng = hasher.input_range(spec)
        if rng is None:
            computed = (
                compute_digest(spec.algorithm, stem.encode("utf-8")).hex()
                if stem is not None
                else None
            )
        else:
            computed = compute_digest(spec.algorithm, data[rng[0] : rng[1]]).hex()
        info["digests"][spec.field] = {
            "algorithm": spec.algorithm,
            "range": list(rng) if rng else None,
            "stored": stored,
            "computed": computed,
        }
    return info


def validate_entry(info: Dict[str, Any]) -> List[str]:
    issues: List[str] = []
    if info["file_size"] != info["expected_size"]:
        issues.append(
            f"File size {info['file_size']} does not match layout size "
            f"{info['expected_size']}"
        )
        return issues
    ids = info["identifier"]
    if len(set(ids)) != 1:
        issues.append(f"Identifier copies disagree: {ids}")
    elif not (len(ids[0]) == 3 and ids[0].isdigit()):
        issues.append(f"Identifier '{ids[0]}' is not a 3-digit number")
    for field, d in info["digests"].items():
        if len(set(d["stored"])) != 1:
            issues.append(f"{field} copies disagree")
        if d["computed"] is not None and d["stored"][0] != d["computed"]:
            issues.append(
                f"{field} mismatch: stored {d['stored'][0]} "
                f"computed {d['computed']}"
            )
    return issues
