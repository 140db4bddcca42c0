"""Core engine layer for minigit.

This module provides repository bootstrap, reference handling, and the
identity and clock providers used when committing.
"""

from minigit.core.identity import identity_from_env, local_timestamp
from minigit.core.refs import HeadRef, RefError, RefStore
from minigit.core.repository import (
    Repository,
    RepositoryExistsError,
    RepositoryNotFoundError,
)

__all__ = [
    "Repository",
    "RepositoryExistsError",
    "RepositoryNotFoundError",
    "RefStore",
    "RefError",
    "HeadRef",
    "identity_from_env",
    "local_timestamp",
]
