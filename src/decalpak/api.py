"""High-level API for decalpak."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from PIL import Image

from .config import BuildOptions, derive_output_path
from .errors import invariant_error, E_INTERNAL
from .logging import get_logger, section, step
from .manifest import build_manifest, manifest_dict
from .packing.assembler import AssembledEntry, TemplateAssembler
from .packing.hasher import DigestResult, IntegrityHasher, filename_stem
from .packing.identifier import parse_identifier, patch_identifier
from .packing.inspector import inspect_entry, validate_entry
from .packing.layout import SegmentMap
from .packing.templates import TemplateSet, load_templates
from .packing.writer import write_entry
from .reporting import get_reporter, task
from .texture.compressor import CompressedChain, TextureCompressor
from .texture.dxt import BlockCodec, codec_for
from .texture.mips import MipChainBuilder, load_source_image

__all__ = [
    "BuildOptions",
    "BuildResult",
    "build_entry",
    "compress_image",
    "assemble_entry",
    "verify_entry",
]


@dataclass(slots=True)
class BuildResult:
    output_file: Path
    bytes_written: int
    identifier: int
    segments: SegmentMap
    digests: List[DigestResult]
    warnings: List[str] = field(default_factory=list)


def compress_image(
    image: Image.Image,
    templates: TemplateSet,
    *,
    jobs: int = 1,
    codec: BlockCodec | None = None,
    warnings: List[str] | None = None,
) -> CompressedChain:
    """Build the mip chain for ``image`` and compress it into the payload."""
    builder = MipChainBuilder(templates.mip_levels, templates.nominal_size)
    compressor = TextureCompressor(
        templates.payload_size,
        codec or codec_for(templates.payload_format),
        jobs=jobs,
    )
    chain = compressor.compress_chain(builder, image)
    if warnings is not None:
        warnings.extend(builder.warnings)
    return chain


def assemble_entry(
    payload: bytes,
    identifier: int,
    filename: str,
    templates: TemplateSet,
) -> tuple[AssembledEntry, List[DigestResult]]:
    """Assemble, patch the identifier, then run the digest chain in memory."""
    assembler = TemplateAssembler(templates)
    entry = assembler.assemble(payload)
    patch_identifier(entry, assembler.table, identifier)
    hasher = IntegrityHasher(templates.digests, assembler.table, entry.segments)
    with task("entry.digests", "Integrity digests", steps=len(templates.digests)):
        digests = hasher.run(entry, filename)
    return entry, digests


def verify_entry(path: str | Path, templates: TemplateSet | None = None) -> List[str]:
    info = inspect_entry(path, templates or load_templates())
    return validate_entry(info)


def build_entry(options: BuildOptions) -> BuildResult:
    logger = get_logger()
    rep = get_reporter()
    # Reject a bad identifier before touching the filesystem.
    identifier = parse_identifier(options.identifier)

    templates = load_templates(options.template_dir)
    output_path = Path(
        options.output_path
        or derive_output_path(
            options.input_image, options.output_prefix, options.output_suffix
        )
    )
    stem = filename_stem(output_path)
    rep.status(
        f"Template set {templates.label}: index={identifier:03d} "
        f"output={output_path.name}"
    )

    warnings: List[str] = []
    with section("Texture"):
        step(f"source {Path(options.input_image).name}")
        image = load_source_image(options.input_image)
        chain = compress_image(
            image, templates, jobs=options.jobs, warnings=warnings
        )

    with section("Assemble"):
        entry, digests = assemble_entry(chain.data, identifier, stem, templates)
        for d in digests:
            logger.debug("%s = %s", d.field, d.hex)

    bytes_written = write_entry(entry.buffer, output_path)

    if options.verify:
        problems = verify_entry(output_path, templates)
        if problems:
            raise invariant_error(
                E_INTERNAL,
                "Written entry failed verification: " + "; ".join(problems),
                {"path": str(output_path)},
            )
        rep.status(f"Verified {output_path.name}: digests and identifiers consistent")

    if options.manifest_path is not None:
        with task("manifest.emit", "Emit manifest"):
            manifest = manifest_dict(
                templates,
                entry.segments,
                output_name=output_path.name,
                identifier=identifier,
                digests=digests,
                file_sha256=hashlib.sha256(entry.buffer).hexdigest(),
                warnings=warnings,
            )
            build_manifest(Path(options.manifest_path), manifest)
        logger.info("Emitted manifest: %s", Path(options.manifest_path).name)

    rep.status(
        f"Build summary: file={output_path.name} bytes={bytes_written} "
        f"index={identifier:03d} warnings={len(warnings)}"
    )
    return BuildResult(
        output_file=output_path,
        bytes_written=bytes_written,
        identifier=identifier,
        segments=entry.segments,
        digests=digests,
        warnings=warnings,
    )
