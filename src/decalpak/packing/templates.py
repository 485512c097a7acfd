"""Versioned template set: opaque segment blobs plus their schema.

A template directory holds one ``schema.yaml`` and one blob per segment.
The schema declares each blob's length and SHA-1, the patchable field
locations and the digest steps; blobs that do not match their declaration
are rejected so a layout change cannot slip in through a single file.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..errors import TemplateError, E_TEMPLATE
from ..texture.dxt import BlockFormat

__all__ = [
    "SEGMENT_ORDER",
    "Template",
    "RangeSpec",
    "DigestSpec",
    "TemplateSet",
    "load_templates",
    "default_template_dir",
]

# Template segments in output order; the payload sits between data_header
# and export_body.
SEGMENT_ORDER = ("asset_header", "data_header", "export_body", "index")
DIGEST_ALGORITHMS = {"md5": 16, "sha1": 20}


@dataclass(slots=True, frozen=True)
class Template:
    name: str
    data: bytes
    sha1: str

    @property
    def length(self) -> int:
        return len(self.data)


@dataclass(slots=True, frozen=True)
class RangeSpec:
    segment: str
    start: int = 0
    end: Optional[int] = None  # None: end of segment


@dataclass(slots=True, frozen=True)
class DigestSpec:
    field: str
    algorithm: str
    source: Optional[RangeSpec]  # None: output base filename

    @property
    def digest_size(self) -> int:
        return DIGEST_ALGORITHMS[self.algorithm]


@dataclass(slots=True)
class TemplateSet:
    schema: str
    version: int
    entry_header_size: int
    entry_header_hash_offset: int
    nominal_size: int
    mip_levels: int
    payload_format: BlockFormat
    payload_size: int
    templates: Dict[str, Template]
    fields: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    digests: List[DigestSpec] = field(default_factory=list)
    source_dir: Optional[str] = None

    def __getitem__(self, name: str) -> Template:
        return self.templates[name]

    @property
    def label(self) -> str:
        return f"{self.schema} v{self.version}"

    def total_length(self) -> int:
        return sum(t.length for t in self.templates.values()) + self.payload_size


def default_template_dir():
    return resources.files("decalpak") / "templates" / "v1"


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise TemplateError(E_TEMPLATE, f"Missing '{key}' in {where}")
    return data[key]


def _parse_digest(entry: Dict[str, Any]) -> DigestSpec:
    algorithm = _require(entry, "algorithm", "digest")
    if algorithm not in DIGEST_ALGORITHMS:
        raise TemplateError(
            E_TEMPLATE, f"Unsupported digest algorithm '{algorithm}'"
        )
    raw = _require(entry, "input", "digest")
    if raw == "filename":
        source = None
    elif isinstance(raw, dict):
        end = raw.get("end")
        source = RangeSpec(
            segment=_require(raw, "segment", "digest input"),
            start=int(raw.get("start", 0)),
            end=None if end is None else int(end),
        )
    else:
        raise TemplateError(E_TEMPLATE, f"Invalid digest input: {raw!r}")
    return DigestSpec(_require(entry, "field", "digest"), algorithm, source)


def load_templates(directory: str | Path | None = None) -> TemplateSet:
    """Load and verify a template set (bundled v1 set by default)."""
    root = Path(directory) if directory is not None else default_template_dir()
    schema_file = root / "schema.yaml"
    if not schema_file.is_file():
        raise TemplateError(
            E_TEMPLATE, f"Template schema not found: {schema_file}"
        )
    data = yaml.safe_load(schema_file.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise TemplateError(E_TEMPLATE, "Root of schema.yaml must be a mapping")

    templates: Dict[str, Template] = {}
    for seg in _require(data, "segments", "schema"):
        name = _require(seg, "name", "segment")
        blob_file = root / _require(seg, "file", f"segment {name}")
        if not blob_file.is_file():
            raise TemplateError(
                E_TEMPLATE, f"Template blob missing: {blob_file}"
            )
        blob = blob_file.read_bytes()
        length = int(_require(seg, "length", f"segment {name}"))
        if len(blob) != length:
            raise TemplateError(
                E_TEMPLATE,
                f"Template '{name}' is {len(blob)} bytes, schema says {length}",
            )
        digest = hashlib.sha1(blob).hexdigest()
        expected = str(_require(seg, "sha1", f"segment {name}")).lower()
        if digest != expected:
            raise TemplateError(
                E_TEMPLATE,
                f"Template '{name}' checksum mismatch",
                {"expected": expected, "actual": digest},
            )
        templates[name] = Template(name, blob, digest)

    missing = [n for n in SEGMENT_ORDER if n not in templates]
    if missing:
        raise TemplateError(E_TEMPLATE, f"Missing template segments: {missing}")

    header_size = int(_require(data, "entry_header_size", "schema"))
    for name in ("asset_header", "data_header", "export_body"):
        if templates[name].length < header_size:
            raise TemplateError(
                E_TEMPLATE,
                f"Template '{name}' is shorter than its {header_size}-byte "
                "entry header",
            )

    source = data.get("source", {}) or {}
    payload = _require(data, "payload", "schema")
    return TemplateSet(
        schema=str(_require(data, "schema", "schema")),
        version=int(_require(data, "version", "schema")),
        entry_header_size=header_size,
        entry_header_hash_offset=int(
            _require(data, "entry_header_hash_offset", "schema")
        ),
        nominal_size=int(source.get("nominal_size", 1024)),
        mip_levels=int(source.get("mip_levels", 11)),
        payload_format=BlockFormat(_require(payload, "format", "payload")),
        payload_size=int(_require(payload, "size", "payload")),
        templates={n: templates[n] for n in SEGMENT_ORDER},
        fields=dict(data.get("fields", {}) or {}),
        digests=[_parse_digest(d) for d in data.get("digests", []) or []],
        source_dir=str(root),
    )
