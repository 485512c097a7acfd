"""DXT (S3TC / BC) block sizes and a vectorised DXT5 encoder.

Block layout for DXT5 (16 bytes per 4x4 block, little endian):
  +0  u8 alpha0, +1 u8 alpha1, +2 48 bits of 3-bit alpha indices
  +8  u16 color0 (RGB565), +10 u16 color1, +12 32 bits of 2-bit indices

Endpoints are the corners of the per-block bounding box that lie along the
block's colour covariance. Every texel picks the nearest palette entry, so
encoding is a pure function of the pixels.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol

import numpy as np

from ..errors import CodecError, E_CODEC

__all__ = [
    "BlockFormat",
    "BlockCodec",
    "Dxt5Codec",
    "storage_size",
    "chain_storage_size",
    "compress_dxt5",
    "codec_for",
]


class BlockFormat(Enum):
    DXT1 = "dxt1"
    DXT3 = "dxt3"
    DXT5 = "dxt5"

    @property
    def block_bytes(self) -> int:
        return 8 if self is BlockFormat.DXT1 else 16


def storage_size(width: int, height: int, fmt: BlockFormat) -> int:
    """Bytes needed for one ``width`` x ``height`` surface in ``fmt``.

    Partial blocks are rounded up, so 1x1 and 2x2 surfaces still occupy a
    whole block.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Invalid surface size {width}x{height}")
    blocks_w = max(1, (width + 3) // 4)
    blocks_h = max(1, (height + 3) // 4)
    return blocks_w * blocks_h * fmt.block_bytes


def chain_storage_size(top_size: int, levels: int, fmt: BlockFormat) -> int:
    total = 0
    for k in range(levels - 1, -1, -1):
        size = 1 << k
        if size > top_size:
            raise ValueError(f"Mip level {size} exceeds top size {top_size}")
        total += storage_size(size, size, fmt)
    return total


class BlockCodec(Protocol):
    format: BlockFormat

    def storage_size(self, width: int, height: int) -> int: ...

    def compress(self, rgba: np.ndarray, out: memoryview) -> None: ...


_W_R, _W_G, _W_B = 0.299, 0.587, 0.114


def _to_blocks(rgba: np.ndarray) -> np.ndarray:
    h, w = rgba.shape[:2]
    bh = max(1, (h + 3) // 4)
    bw = max(1, (w + 3) // 4)
    # Texels outside the surface repeat the last row/column.
    padded = np.pad(
        rgba, ((0, bh * 4 - h), (0, bw * 4 - w), (0, 0)), mode="edge"
    )
    blocks = padded.reshape(bh, 4, bw, 4, 4).transpose(0, 2, 1, 3, 4)
    return blocks.reshape(-1, 16, 4).astype(np.int32)


def _encode_alpha(alpha: np.ndarray) -> np.ndarray:
    a0 = alpha.max(axis=1)
    a1 = alpha.min(axis=1)
    # Keep a0 > a1 so every block uses the 8-value interpolation mode.
    flat = a0 == a1
    a0 = np.where(flat & (a1 < 255), a1 + 1, a0)
    a1 = np.where(flat & (a1 == 255), 254, a1)

    table = np.stack(
        [a0, a1]
        + [((7 - i) * a0 + i * a1) // 7 for i in range(1, 7)],
        axis=1,
    )
    dist = np.abs(alpha[:, :, None] - table[:, None, :])
    nearest = np.argmin(dist, axis=2).astype(np.uint64)

    shifts = np.arange(16, dtype=np.uint64) * np.uint64(3)
    bits = np.bitwise_or.reduce(nearest << shifts, axis=1)
    raw = bits.astype("<u8").view(np.uint8).reshape(-1, 8)

    out = np.empty((alpha.shape[0], 8), dtype=np.uint8)
    out[:, 0] = a0
    out[:, 1] = a1
    out[:, 2:8] = raw[:, :6]
    return out


def _to_565(rgb: np.ndarray) -> np.ndarray:
    return (
        ((rgb[:, 0] >> 3) << 11) | ((rgb[:, 1] >> 2) << 5) | (rgb[:, 2] >> 3)
    )


def _from_565(c: np.ndarray) -> np.ndarray:
    r = (c >> 11) & 0x1F
    g = (c >> 5) & 0x3F
    b = c & 0x1F
    return np.stack(
        [(r * 255 + 15) // 31, (g * 255 + 31) // 63, (b * 255 + 15) // 31],
        axis=1,
    )


def _endpoints(rgb: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Bounding-box corners along the block's main colour direction.

    Channels that vary against the widest-range channel take their
    min/max the other way round, so anti-correlated blocks get the
    opposite diagonal of the box.
    """
    lo = rgb.min(axis=1)
    hi = rgb.max(axis=1)
    centered = rgb - rgb.mean(axis=1, keepdims=True)
    main = np.argmax(hi - lo, axis=1)
    ref = np.take_along_axis(centered, main[:, None, None], axis=2)
    cov = (centered * ref).sum(axis=1)
    flip = cov < 0
    return np.where(flip, lo, hi), np.where(flip, hi, lo)


def _encode_color(rgb: np.ndarray) -> np.ndarray:
    e_hi, e_lo = _endpoints(rgb)
    c0 = _to_565(e_hi)
    c1 = _to_565(e_lo)
    # Keep c0 >= c1 so the block stays in 4-colour mode.
    swap = c0 < c1
    c0, c1 = np.where(swap, c1, c0), np.where(swap, c0, c1)

    e0 = _from_565(c0)
    e1 = _from_565(c1)
    palette = [e0, e1, (2 * e0 + e1) // 3, (e0 + 2 * e1) // 3]
    weights = np.array([_W_R, _W_G, _W_B], dtype=np.float32)
    dist = np.stack(
        [
            (((rgb - p[:, None, :]) ** 2).astype(np.float32) * weights).sum(
                axis=2
            )
            for p in palette
        ],
        axis=2,
    )
    idx = np.argmin(dist, axis=2).astype(np.uint64)
    # Equal endpoints would select the 3-color mode; index 0 is exact there.
    idx[c0 == c1] = 0

    shifts = np.arange(16, dtype=np.uint64) * np.uint64(2)
    bits = np.bitwise_or.reduce(idx << shifts, axis=1)

    out = np.empty((rgb.shape[0], 8), dtype=np.uint8)
    out[:, 0:2] = c0.astype("<u2").view(np.uint8).reshape(-1, 2)
    out[:, 2:4] = c1.astype("<u2").view(np.uint8).reshape(-1, 2)
    out[:, 4:8] = bits.astype("<u4").view(np.uint8).reshape(-1, 4)
    return out


def compress_dxt5(rgba: np.ndarray) -> bytes:
    """Encode an ``(h, w, 4)`` uint8 RGBA array as DXT5 blocks."""
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected (h, w, 4) RGBA array, got {rgba.shape}")
    blocks = _to_blocks(rgba)
    out = np.concatenate(
        [_encode_alpha(blocks[:, :, 3]), _encode_color(blocks[:, :, :3])],
        axis=1,
    )
    return out.tobytes()


class Dxt5Codec:
    format = BlockFormat.DXT5

    def storage_size(self, width: int, height: int) -> int:
        return storage_size(width, height, self.format)

    def compress(self, rgba: np.ndarray, out: memoryview) -> None:
        h, w = rgba.shape[:2]
        expected = self.storage_size(w, h)
        if len(out) != expected:
            raise CodecError(
                E_CODEC,
                f"Destination slice is {len(out)} bytes, need {expected}",
                {"width": w, "height": h},
            )
        out[:] = compress_dxt5(rgba)


def codec_for(fmt: BlockFormat) -> BlockCodec:
    if fmt is BlockFormat.DXT5:
        return Dxt5Codec()
    raise CodecError(E_CODEC, f"No encoder for block format {fmt.value}")
