import numpy as np
import pytest
from PIL import Image

from decalpak.texture.mips import (
    MipChainBuilder,
    MipImage,
    load_source_image,
    resample,
)


def test_sizes_largest_first():
    assert MipChainBuilder().sizes() == [1 << k for k in range(10, -1, -1)]
    assert MipChainBuilder(3).sizes() == [4, 2, 1]


def test_nominal_size_defaults_to_top_level():
    assert MipChainBuilder(11).nominal_size == 1024
    assert MipChainBuilder(3).nominal_size == 4


def test_same_size_passthrough():
    rng = np.random.RandomState(3)
    px = rng.randint(0, 256, size=(8, 8, 4), dtype=np.uint8)
    out = resample(Image.fromarray(px), 8)
    assert np.array_equal(out, px)


def test_build_levels_shapes():
    img = Image.new("RGBA", (4, 4), (200, 100, 50, 255))
    levels = MipChainBuilder(3).build(img)
    assert [lvl.size for lvl in levels] == [4, 2, 1]
    for lvl in levels:
        assert lvl.pixels.shape == (lvl.size, lvl.size, 4)
    # A flat image stays flat at every level.
    assert tuple(levels[-1].pixels[0, 0]) == (200, 100, 50, 255)


def test_off_size_source_warns_and_resizes(caplog):
    img = Image.new("RGBA", (8, 6), (0, 0, 0, 255))
    builder = MipChainBuilder(3)
    levels = builder.build(img)
    assert len(builder.warnings) == 1
    assert "8x6" in builder.warnings[0]
    assert "8x6" in caplog.text
    assert levels[0].pixels.shape == (4, 4, 4)


def test_rgb_source_converted():
    img = Image.new("RGB", (4, 4), (1, 2, 3))
    out = resample(img, 2)
    assert out.shape == (2, 2, 4)
    assert (out[..., 3] == 255).all()


def test_mip_image_shape_checked():
    with pytest.raises(ValueError):
        MipImage(4, np.zeros((2, 2, 4), dtype=np.uint8))


def test_level_rejects_size_outside_chain():
    img = Image.new("RGBA", (4, 4))
    builder = MipChainBuilder(3)
    assert builder.level(img, 2).pixels.shape == (2, 2, 4)
    with pytest.raises(ValueError):
        builder.level(img, 3)


def test_loaded_pixels_keep_rgba_order(tmp_path):
    path = tmp_path / "px.png"
    Image.new("RGBA", (4, 4), (10, 20, 30, 40)).save(path)
    img = load_source_image(path)
    assert img.mode == "RGBA"
    level = MipChainBuilder(3).level(img, 4)
    assert tuple(level.pixels[0, 0]) == (10, 20, 30, 40)
