from .templates import TemplateSet, load_templates
from .layout import Segment, SegmentMap
from .patch_table import PatchEntry, PatchTable
from .assembler import AssembledEntry, TemplateAssembler
from .identifier import parse_identifier, format_identifier, patch_identifier
from .hasher import DigestResult, IntegrityHasher, compute_digest
from .writer import write_entry
from .inspector import inspect_entry, validate_entry

__all__ = [
    "TemplateSet",
    "load_templates",
    "Segment",
    "SegmentMap",
    "PatchEntry",
    "PatchTable",
    "AssembledEntry",
    "TemplateAssembler",
    "parse_identifier",
    "format_identifier",
    "patch_identifier",
    "DigestResult",
    "IntegrityHasher",
    "compute_digest",
    "write_entry",
    "inspect_entry",
    "validate_entry",
]
