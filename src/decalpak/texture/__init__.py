from .dxt import BlockFormat, BlockCodec, Dxt5Codec, storage_size, codec_for
from .mips import MipImage, MipChainBuilder, load_source_image
from .compressor import CompressedChain, MipSlice, TextureCompressor

__all__ = [
    "BlockFormat",
    "BlockCodec",
    "Dxt5Codec",
    "storage_size",
    "codec_for",
    "MipImage",
    "MipChainBuilder",
    "load_source_image",
    "CompressedChain",
    "MipSlice",
    "TextureCompressor",
]
