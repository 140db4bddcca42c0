"""Identity and clock providers for commits."""

import os
import socket
import time
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from minigit.constants import (
    ENV_AUTHOR_EMAIL,
    ENV_AUTHOR_NAME,
    ENV_COMMITTER_EMAIL,
    ENV_COMMITTER_NAME,
)
from minigit.storage.commit_builder import Identity, Timestamp


def _default_username(environ: Mapping[str, str]) -> str:
    return environ.get("USER") or environ.get("USERNAME") or "unknown"


def identity_from_env(
    environ: Optional[Mapping[str, str]] = None,
    committer: bool = False,
) -> Identity:
    """Build an identity from environment variables.

    Reads GIT_AUTHOR_NAME/GIT_AUTHOR_EMAIL (or the GIT_COMMITTER_*
    variables when committer is True). Missing values fall back to the
    login name and ``<user>@<hostname>``.
    """
    if environ is None:
        environ = os.environ

    name_var, email_var = (
        (ENV_COMMITTER_NAME, ENV_COMMITTER_EMAIL)
        if committer
        else (ENV_AUTHOR_NAME, ENV_AUTHOR_EMAIL)
    )

    username = _default_username(environ)
    name = environ.get(name_var) or username
    email = environ.get(email_var) or f"{username}@{socket.gethostname()}"
    return Identity(name, email)


def local_timestamp(clock: Callable[[], float] = time.time) -> Timestamp:
    """Read the clock and attach the local UTC offset."""
    seconds = int(clock())
    local = datetime.fromtimestamp(seconds, tz=timezone.utc).astimezone()
    offset = local.utcoffset()
    offset_minutes = int(offset.total_seconds() // 60) if offset is not None else 0
    return Timestamp(seconds, offset_minutes)
