"""kinfold package initialization."""

from importlib.metadata import version, PackageNotFoundError

from .hierarchy import build_hierarchy
from .session import TreeSession

__all__ = ["__version__", "build_hierarchy", "TreeSession"]

try:
    __version__ = version("kinfold")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0"
