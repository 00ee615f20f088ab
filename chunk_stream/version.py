"""
Version module.
"""

from importlib import resources

__version__ = resources.files("chunk_stream").joinpath("version.txt").read_text().strip()


def get_version() -> str:
    """
    Return chunk-stream version.
    """
    return __version__
