import pytest

from decalpak.errors import CodecError, InvariantError, E_SIZE_MISMATCH
from decalpak.texture.dxt import (
    BlockFormat,
    chain_storage_size,
    codec_for,
    storage_size,
)
from decalpak.texture.compressor import TextureCompressor
from decalpak.texture.mips import MipChainBuilder

FULL_CHAIN_DXT5 = 1398128


def test_block_rounding_small_surfaces():
    assert storage_size(1, 1, BlockFormat.DXT5) == 16
    assert storage_size(2, 2, BlockFormat.DXT5) == 16
    assert storage_size(4, 4, BlockFormat.DXT5) == 16
    assert storage_size(5, 4, BlockFormat.DXT5) == 32
    assert storage_size(1, 1, BlockFormat.DXT1) == 8


def test_top_level_size():
    assert storage_size(1024, 1024, BlockFormat.DXT5) == 1048576


def test_full_chain_total():
    total = sum(
        storage_size(1 << k, 1 << k, BlockFormat.DXT5) for k in range(11)
    )
    assert total == FULL_CHAIN_DXT5
    assert chain_storage_size(1024, 11, BlockFormat.DXT5) == FULL_CHAIN_DXT5


def test_invalid_surface_rejected():
    with pytest.raises(ValueError):
        storage_size(0, 4, BlockFormat.DXT5)


class _Dxt1SizedCodec:
    format = BlockFormat.DXT1

    def storage_size(self, width, height):
        return storage_size(width, height, self.format)

    def compress(self, rgba, out):  # pragma: no cover - never reached
        raise AssertionError("plan must fail first")


def test_dxt1_substitution_rejected():
    comp = TextureCompressor(FULL_CHAIN_DXT5, _Dxt1SizedCodec())
    with pytest.raises(InvariantError) as exc:
        comp.plan(MipChainBuilder(11).sizes())
    assert exc.value.code == E_SIZE_MISMATCH


def test_codec_for_only_dxt5():
    assert codec_for(BlockFormat.DXT5).format is BlockFormat.DXT5
    with pytest.raises(CodecError):
        codec_for(BlockFormat.DXT1)
