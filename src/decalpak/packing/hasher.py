"""Integrity digests and the order they must be computed in.

Each digest step reads either the output's base filename or one segment
range, and its result is patched into every location of its field. A step
B depends on a step A when any location A writes falls inside the range B
reads; the steps run in a topological order of those dependencies. The
executor seals each range as it is hashed, so any later write into that
range (a wrong order, or a digest slot inside its own coverage) fails
instead of silently producing an entry whose digests do not verify.
"""

from __future__ import annotations

import hashlib
import heapq
from dataclasses import dataclass
from graphlib import CycleError, TopologicalSorter
from pathlib import PurePath
from typing import Dict, List, Optional, Set

from ..errors import invariant_error, E_CYCLE, E_PATCH_BOUNDS
from ..logging import get_logger
from .assembler import AssembledEntry
from .layout import SegmentMap
from .patch_table import PatchTable
from .templates import DigestSpec

__all__ = [
    "DigestResult",
    "IntegrityHasher",
    "compute_digest",
    "filename_stem",
]


def compute_digest(algorithm: str, data: bytes | memoryview) -> bytes:
    return hashlib.new(algorithm, data, usedforsecurity=False).digest()


def filename_stem(path: str | PurePath) -> str:
    """Base name of ``path`` without its final extension."""
    return PurePath(path).stem


@dataclass(slots=True, frozen=True)
class DigestResult:
    field: str
    algorithm: str
    value: bytes
    start: Optional[int] = None  # absolute input range; None for filename
    end: Optional[int] = None

    @property
    def hex(self) -> str:
        return self.value.hex()


class IntegrityHasher:
    def __init__(
        self,
        digests: List[DigestSpec],
        table: PatchTable,
        segments: SegmentMap,
    ):
        self.digests = list(digests)
        self.table = table
        self.segments = segments
        self._by_field = {d.field: d for d in self.digests}
        self._check_specs()

    def _check_specs(self) -> None:
        for spec in self.digests:
            width = self.table.width(spec.field)
            if width != spec.digest_size:
                raise invariant_error(
                    E_PATCH_BOUNDS,
                    f"{spec.field} slot is {width} bytes, {spec.algorithm} "
                    f"digest is {spec.digest_size}",
                )
            # Raises on ranges outside their segment.
            self.input_range(spec)

    def input_range(self, spec: DigestSpec) -> Optional[tuple[int, int]]:
        if spec.source is None:
            return None
        src = spec.source
        if src.segment not in self.segments:
            raise invariant_error(
                E_PATCH_BOUNDS,
                f"{spec.field} reads unknown segment {src.segment}",
            )
        try:
            return self.segments[src.segment].absolute(src.start, src.end)
        except ValueError as exc:
            raise invariant_error(E_PATCH_BOUNDS, str(exc)) from exc

    def dependencies(self) -> Dict[str, Set[str]]:
        """Map each digest field to the digest fields it must follow."""
        deps: Dict[str, Set[str]] = {d.field: set() for d in self.digests}
        for reader in self.digests:
            rng = self.input_range(reader)
            if rng is None:
                continue
            start, end = rng
            for writer in self.digests:
                if writer.field == reader.field:
                    continue
                for entry in self.table.entries_for(writer.field):
                    s, e = entry.absolute(self.segments)
                    if s < end and start < e:
                        deps[reader.field].add(writer.field)
                        break
        return deps

    def hash_order(self) -> List[str]:
        """Resolved step order; ties keep declaration order."""
        sorter = TopologicalSorter(self.dependencies())
        try:
            sorter.prepare()
        except CycleError as exc:
            raise invariant_error(
                E_CYCLE, f"Digest dependencies form a cycle: {exc.args[1]}"
            ) from exc
        rank = {d.field: i for i, d in enumerate(self.digests)}
        heap: List[tuple[int, str]] = []
        order: List[str] = []
        while sorter.is_active():
            for name in sorter.get_ready():
                heapq.heappush(heap, (rank[name], name))
            # Lowest declared rank among all ready steps goes next.
            _, name = heapq.heappop(heap)
            order.append(name)
            sorter.done(name)
        return order

    def run(self, entry: AssembledEntry, filename: str) -> List[DigestResult]:
        """Compute every digest in order and patch it into ``entry``."""
        logger = get_logger()
        results: List[DigestResult] = []
        for field in self.hash_order():
            spec = self._by_field[field]
            rng = self.input_range(spec)
            if rng is None:
                data: bytes | memoryview = filename.encode("utf-8")
                start = end = None
            else:
                start, end = rng
                data = entry.view(start, end)
            value = compute_digest(spec.algorithm, data)
            if rng is not None:
                entry.seal(start, end, field)
            copies = entry.patch(self.table, field, value)
            logger.debug(
                "%s %s over %s -> %s (%d copies)",
                spec.algorithm,
                field,
                "filename" if rng is None else f"[{start}, {end})",
                value.hex(),
                copies,
            )
            results.append(DigestResult(field, spec.algorithm, value, start, end))
        return results
