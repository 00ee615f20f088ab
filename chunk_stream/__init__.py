"""
Bounded-memory chunked reading of files from range-read file stores.
"""

from .cli import cli as main
from .version import __version__
