"""Build options and optional config file defaults (JSON/YAML)."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict

import yaml

__all__ = [
    "OUTPUT_PREFIX",
    "OUTPUT_SUFFIX",
    "DEFAULT_IDENTIFIER",
    "BuildOptions",
    "ConfigDefaults",
    "load_config",
    "derive_output_path",
]

OUTPUT_PREFIX = "DXM-WindowsNoEditor_Decal_"
OUTPUT_SUFFIX = "_P.pak"
DEFAULT_IDENTIFIER = "13"


@dataclass(slots=True)
class BuildOptions:
    input_image: Path
    output_path: Path | None = None
    identifier: str | int = DEFAULT_IDENTIFIER
    # Parallel resize+compress workers (1 = sequential)
    jobs: int = 1
    # Optional JSON manifest written next to the entry
    manifest_path: Path | None = None
    # Re-read and check the written entry
    verify: bool = False
    # Alternate template set directory (schema.yaml + blobs)
    template_dir: Path | None = None
    output_prefix: str = OUTPUT_PREFIX
    output_suffix: str = OUTPUT_SUFFIX


@dataclass(slots=True)
class ConfigDefaults:
    identifier: str = DEFAULT_IDENTIFIER
    jobs: int = 1
    reporter: str = "plain"
    verbose: int = 0
    template_dir: str | None = None
    output_prefix: str = OUTPUT_PREFIX
    output_suffix: str = OUTPUT_SUFFIX


def load_config(path: str | Path) -> ConfigDefaults:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        data: Any = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Root of config file must be an object")
    known = {f.name for f in fields(ConfigDefaults)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    values: Dict[str, Any] = dict(data)
    if "identifier" in values:
        values["identifier"] = str(values["identifier"])
    for key in ("jobs", "verbose"):
        if key in values:
            values[key] = int(values[key])
    return ConfigDefaults(**values)


def derive_output_path(
    input_image: Path,
    prefix: str = OUTPUT_PREFIX,
    suffix: str = OUTPUT_SUFFIX,
) -> Path:
    """Output path beside the input: ``<prefix><stem><suffix>``."""
    src = Path(input_image).resolve()
    return src.parent / f"{prefix}{src.stem}{suffix}"
