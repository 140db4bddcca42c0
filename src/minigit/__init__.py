"""minigit - a minimal content-addressable object store.

minigit stores blobs, directory trees and commit records under identifiers
derived from their content, using the same object layout as Git.
"""

from loguru import logger

__version__ = "0.1.0"
__author__ = "minigit Contributors"

# Library logging is opt-in; the CLI enables it.
logger.disable("minigit")

__all__ = ["__version__", "__author__"]
