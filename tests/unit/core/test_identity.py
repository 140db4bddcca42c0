"""Unit tests for identity and clock providers."""

import socket

from minigit.core.identity import identity_from_env, local_timestamp
from minigit.storage.commit_builder import Identity


class TestIdentityFromEnv:
    """Test environment-based identity lookup."""

    def test_author_variables(self) -> None:
        environ = {"GIT_AUTHOR_NAME": "Ada", "GIT_AUTHOR_EMAIL": "ada@example.com"}
        assert identity_from_env(environ) == Identity("Ada", "ada@example.com")

    def test_committer_variables(self) -> None:
        environ = {
            "GIT_AUTHOR_NAME": "Ada",
            "GIT_AUTHOR_EMAIL": "ada@example.com",
            "GIT_COMMITTER_NAME": "Bot",
            "GIT_COMMITTER_EMAIL": "bot@example.com",
        }
        assert identity_from_env(environ, committer=True) == Identity("Bot", "bot@example.com")

    def test_fallback_to_user(self) -> None:
        identity = identity_from_env({"USER": "alice"})
        assert identity.name == "alice"
        assert identity.email == f"alice@{socket.gethostname()}"

    def test_fallback_unknown(self) -> None:
        assert identity_from_env({}).name == "unknown"


class TestLocalTimestamp:
    """Test clock reading."""

    def test_uses_clock(self) -> None:
        timestamp = local_timestamp(clock=lambda: 1700000000.75)
        assert timestamp.seconds == 1700000000
        assert -16 * 60 <= timestamp.offset_minutes <= 16 * 60

    def test_default_clock(self) -> None:
        assert local_timestamp().seconds > 1700000000
