"""Local stub of the DataViz users API.

Exposes `__version__` from the installed distribution when available.
"""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("dataviz-devtools")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
