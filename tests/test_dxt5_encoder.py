import struct

import numpy as np
import pytest

from decalpak.errors import CodecError
from decalpak.texture.dxt import Dxt5Codec, compress_dxt5


def _solid(rgba, size=4):
    return np.tile(np.array(rgba, dtype=np.uint8), (size, size, 1))


def test_solid_opaque_red_block():
    out = compress_dxt5(_solid((255, 0, 0, 255)))
    assert out == bytes(
        [255, 254, 0, 0, 0, 0, 0, 0, 0x00, 0xF8, 0x00, 0xF8, 0, 0, 0, 0]
    )


def test_transparent_black_block():
    out = compress_dxt5(_solid((0, 0, 0, 0)))
    # a0 = 1, a1 = 0, every texel picks alpha index 1.
    assert out == bytes(
        [1, 0, 0x49, 0x92, 0x24, 0x49, 0x92, 0x24, 0, 0, 0, 0, 0, 0, 0, 0]
    )


def test_two_tone_color_indices():
    px = _solid((0, 0, 0, 255))
    px[0:2, :, :3] = 255
    out = compress_dxt5(px)
    assert out[8:16] == bytes([0xFF, 0xFF, 0x00, 0x00, 0x00, 0x00, 0x55, 0x55])


def test_partial_blocks_pad_to_whole_block():
    assert len(compress_dxt5(_solid((10, 20, 30, 40), size=1))) == 16
    assert len(compress_dxt5(_solid((10, 20, 30, 40), size=2))) == 16
    assert len(compress_dxt5(_solid((10, 20, 30, 40), size=8))) == 64


def test_encoding_is_deterministic():
    rng = np.random.RandomState(7)
    px = rng.randint(0, 256, size=(32, 32, 4), dtype=np.uint8)
    assert compress_dxt5(px) == compress_dxt5(px.copy())


def test_rejects_non_rgba():
    with pytest.raises(ValueError):
        compress_dxt5(np.zeros((4, 4, 3), dtype=np.uint8))


def test_codec_checks_destination_slice():
    codec = Dxt5Codec()
    buf = bytearray(32)
    codec.compress(_solid((1, 2, 3, 4)), memoryview(buf)[0:16])
    assert buf[16:] == bytes(16)
    with pytest.raises(CodecError):
        codec.compress(_solid((1, 2, 3, 4)), memoryview(buf))


def _decode_colors(block):
    c0, c1, bits = struct.unpack("<HHI", block[8:16])

    def expand(c):
        return np.array(
            [(c >> 11) * 255 // 31, ((c >> 5) & 63) * 255 // 63, (c & 31) * 255 // 31]
        )

    e0, e1 = expand(c0), expand(c1)
    palette = [e0, e1, (2 * e0 + e1) // 3, (e0 + 2 * e1) // 3]
    return np.array([palette[(bits >> (2 * i)) & 3] for i in range(16)])


def _ramp_block(red, green, blue):
    px = np.zeros((4, 4, 4), dtype=np.uint8)
    for ch, values in enumerate((red, green, blue)):
        px[..., ch] = np.broadcast_to(values, (16,)).reshape(4, 4)
    px[..., 3] = 255
    return px


def test_anti_correlated_channels_use_opposite_diagonal():
    t = np.arange(16) * 17
    px = _ramp_block(t, 255 - t, 0)
    out = compress_dxt5(px)
    # Endpoints (255, 0, 0) and (0, 255, 0), not black and yellow.
    assert out[8:12] == bytes([0x00, 0xF8, 0xE0, 0x07])
    err = np.abs(_decode_colors(out) - px[..., :3].reshape(16, 3)).mean()
    assert err < 20


def test_endpoints_reordered_for_four_color_mode():
    i = np.arange(16)
    px = _ramp_block(100 - 4 * i, 0, 17 * i)
    out = compress_dxt5(px)
    c0, c1 = struct.unpack("<HH", out[8:12])
    assert c0 > c1
    assert out[8:12] == bytes([0x00, 0x60, 0x1F, 0x28])
    err = np.abs(_decode_colors(out) - px[..., :3].reshape(16, 3)).mean()
    assert err < 20
