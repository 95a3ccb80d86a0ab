"""
Static-site build glue: layout templating plus an ordered step pipeline.
"""

from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("sitewrap")
except _metadata.PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = ["__version__"]
