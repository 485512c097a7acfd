"""Error definitions for decalpak."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_ID_FORMAT = "E_ID_FORMAT"
E_ID_RANGE = "E_ID_RANGE"
E_TEMPLATE = "E_TEMPLATE"
E_CODEC = "E_CODEC"
E_SIZE_MISMATCH = "E_SIZE_MISMATCH"
E_PATCH_BOUNDS = "E_PATCH_BOUNDS"
E_OVERLAP = "E_OVERLAP"
E_ORDER = "E_ORDER"
E_CYCLE = "E_CYCLE"
E_WRITE_IO = "E_WRITE_IO"
E_INTERNAL = "E_INTERNAL"


@dataclass
class DecalPakError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class ValidationError(DecalPakError):
    """User input rejected before any buffer or file is touched."""


class InvariantError(DecalPakError):
    """Layout, size or ordering contract broken; always a defect."""


class TemplateError(DecalPakError):
    pass


class CodecError(DecalPakError):
    pass


class WriteError(DecalPakError):
    pass


def invariant_error(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> InvariantError:
    return InvariantError(code=code, message=message, context=context)


__all__ = [
    "DecalPakError",
    "ValidationError",
    "InvariantError",
    "TemplateError",
    "CodecError",
    "WriteError",
    "invariant_error",
    "E_ID_FORMAT",
    "E_ID_RANGE",
    "E_TEMPLATE",
    "E_CODEC",
    "E_SIZE_MISMATCH",
    "E_PATCH_BOUNDS",
    "E_OVERLAP",
    "E_ORDER",
    "E_CYCLE",
    "E_WRITE_IO",
    "E_INTERNAL",
]
