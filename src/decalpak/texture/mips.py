"""Mip chain generation from a single source image."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List

import numpy as np
from PIL import Image

from ..logging import get_logger

__all__ = ["MipImage", "MipChainBuilder", "load_source_image", "resample"]

# Smallest mirrored border; grows with the reduction factor so the bicubic
# support never reaches past the padding.
_WRAP_BORDER_MIN = 4


@dataclass(slots=True)
class MipImage:
    size: int
    pixels: np.ndarray  # (size, size, 4) uint8 RGBA

    def __post_init__(self) -> None:
        if self.pixels.shape != (self.size, self.size, 4):
            raise ValueError(
                f"Mip {self.size} has pixel shape {self.pixels.shape}"
            )


def load_source_image(path: str | Path) -> Image.Image:
    # Levels are encoded in RGBA byte order, not the BGRA layout of a
    # 32bpp ARGB bitmap; payload and index digests follow from that.
    with Image.open(path) as im:
        im.load()
        return im.convert("RGBA")


def _mirror_pad(image: Image.Image, border: int) -> Image.Image:
    arr = np.asarray(image)
    padded = np.pad(
        arr, ((border, border), (border, border), (0, 0)), mode="symmetric"
    )
    return Image.fromarray(padded)


def resample(image: Image.Image, size: int) -> np.ndarray:
    """Resize ``image`` to ``size`` x ``size`` RGBA pixels.

    Same-size requests copy the pixels unchanged. Otherwise the source is
    mirrored around its edges and resampled bicubically over the original
    area, so border texels blend with their reflection instead of black.
    """
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    w, h = image.size
    if (w, h) == (size, size):
        return np.array(image, dtype=np.uint8)
    scale = max(w / size, h / size, 1.0)
    border = max(_WRAP_BORDER_MIN, int(np.ceil(2 * scale)))
    border = min(border, w, h)
    padded = _mirror_pad(image, border)
    out = padded.resize(
        (size, size),
        Image.Resampling.BICUBIC,
        box=(border, border, border + w, border + h),
    )
    return np.array(out, dtype=np.uint8)


class MipChainBuilder:
    """Produce square power-of-two levels, largest first."""

    def __init__(self, levels: int = 11, nominal_size: int | None = None):
        if levels < 1:
            raise ValueError("At least one mip level is required")
        self.levels = levels
        self.nominal_size = nominal_size or (1 << (levels - 1))
        self.warnings: List[str] = []

    def sizes(self) -> List[int]:
        return [1 << k for k in range(self.levels - 1, -1, -1)]

    def check_source(self, image: Image.Image) -> None:
        w, h = image.size
        n = self.nominal_size
        if (w, h) != (n, n):
            msg = (
                f"Source image is {w}x{h}, not {n}x{n}; "
                "resizing every level (quality may suffer)"
            )
            get_logger().warning(msg)
            self.warnings.append(msg)

    def level(self, image: Image.Image, size: int) -> MipImage:
        """One level of the chain, resampled from the full source."""
        if size not in self.sizes():
            raise ValueError(f"{size} is not a level of this chain")
        return MipImage(size, resample(image, size))

    def iter_levels(self, image: Image.Image) -> Iterator[MipImage]:
        self.check_source(image)
        for size in self.sizes():
            yield self.level(image, size)

    def build(self, image: Image.Image) -> List[MipImage]:
        return list(self.iter_levels(image))
