"""Compress a mip chain into one contiguous block buffer.

The destination is sized from the codec's storage size before any pixel is
touched and every level owns a disjoint, pre-computed slice of it, so
levels can be produced in any order (or concurrently) without locking.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List

from PIL import Image

from ..errors import invariant_error, E_SIZE_MISMATCH
from ..logging import get_logger
from ..reporting import task
from .dxt import BlockCodec, Dxt5Codec
from .mips import MipChainBuilder

__all__ = ["MipSlice", "CompressedChain", "TextureCompressor"]


@dataclass(slots=True, frozen=True)
class MipSlice:
    size: int
    offset: int
    length: int


@dataclass(slots=True)
class CompressedChain:
    data: bytes
    levels: List[MipSlice]

    def level_bytes(self, size: int) -> bytes:
        for lvl in self.levels:
            if lvl.size == size:
                return self.data[lvl.offset : lvl.offset + lvl.length]
        raise KeyError(size)


class TextureCompressor:
    def __init__(
        self,
        expected_size: int,
        codec: BlockCodec | None = None,
        jobs: int = 1,
    ):
        self.expected_size = expected_size
        self.codec = codec or Dxt5Codec()
        self.jobs = max(1, int(jobs))

    def plan(self, sizes: List[int]) -> List[MipSlice]:
        """Lay out level slices largest first and check the chain total."""
        slices: List[MipSlice] = []
        cursor = 0
        for size in sorted(sizes, reverse=True):
            length = self.codec.storage_size(size, size)
            slices.append(MipSlice(size, cursor, length))
            cursor += length
        if cursor != self.expected_size:
            raise invariant_error(
                E_SIZE_MISMATCH,
                f"Compressed mip chain is {cursor} bytes, layout requires "
                f"{self.expected_size}",
                {"format": self.codec.format.value, "levels": len(sizes)},
            )
        return slices

    def compress_chain(
        self, builder: MipChainBuilder, image: Image.Image
    ) -> CompressedChain:
        slices = self.plan(builder.sizes())
        builder.check_source(image)
        dest = bytearray(self.expected_size)
        view = memoryview(dest)

        def run_level(sl: MipSlice) -> None:
            mip = builder.level(image, sl.size)
            self.codec.compress(mip.pixels, view[sl.offset : sl.offset + sl.length])

        with task(
            "texture.compress",
            "Compress mip chain",
            total=len(slices),
            levels=len(slices),
            bytes=self.expected_size,
        ) as rep:
            if self.jobs == 1:
                for sl in slices:
                    run_level(sl)
                    rep.advance("texture.compress", current_item=f"{sl.size}px")
            else:
                with ThreadPoolExecutor(max_workers=self.jobs) as pool:
                    futures = [(sl, pool.submit(run_level, sl)) for sl in slices]
                    # Every level must finish before the buffer is handed on.
                    for sl, fut in futures:
                        fut.result()
                        rep.advance(
                            "texture.compress", current_item=f"{sl.size}px"
                        )
        get_logger().debug(
            "Compressed %d levels (%s) into %d bytes",
            len(slices),
            self.codec.format.value,
            len(dest),
        )
        return CompressedChain(bytes(dest), slices)
