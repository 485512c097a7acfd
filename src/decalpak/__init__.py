"""decalpak: build decal pak entries from a source image."""

from .api import BuildOptions, BuildResult, build_entry, verify_entry
from .errors import DecalPakError

__version__ = "0.1.0"

__all__ = [
    "BuildOptions",
    "BuildResult",
    "build_entry",
    "verify_entry",
    "DecalPakError",
    "__version__",
]
