"""Optional JSON manifest summarising a built entry.

Only produced when explicitly requested (``--emit-manifest``).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Sequence

from .packing.hasher import DigestResult
from .packing.layout import SegmentMap
from .packing.templates import TemplateSet

__all__ = ["build_manifest", "manifest_dict"]


def manifest_dict(
    templates: TemplateSet,
    segments: SegmentMap,
    *,
    output_name: str,
    identifier: int,
    digests: Sequence[DigestResult],
    file_sha256: str,
    warnings: List[str] | None = None,
) -> dict[str, Any]:
    d: dict[str, Any] = {
        "version": 1,
        "schema": {"name": templates.schema, "version": templates.version},
        "entry_header": {
            "size": templates.entry_header_size,
            "hash_offset": templates.entry_header_hash_offset,
        },
        "output": output_name,
        "file_size": segments.total_length,
        "identifier": f"{identifier:03d}",
        "payload": {
            "format": templates.payload_format.value,
            "mip_levels": templates.mip_levels,
            "size": templates.payload_size,
        },
        "segments": [
            {"name": s.name, "offset": s.offset, "length": s.length}
            for s in segments
        ],
        "digests": {
            r.field: {
                "algorithm": r.algorithm,
                "value": r.hex,
                "range": None if r.start is None else [r.start, r.end],
            }
            for r in digests
        },
        "sha256": file_sha256,
    }
    if warnings:
        d["warnings"] = list(warnings)
    return d


def build_manifest(output_path: Path, manifest: dict[str, Any]) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2, sort_keys=True)
        f.write("\n")
    return output_path
