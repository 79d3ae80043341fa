"""
npmtraffic settings.

Defaults suit the public npm APIs; environment variables override them.
"""

import os
from dataclasses import dataclass

from npmtraffic.exceptions import ConfigurationError
from npmtraffic.version import USER_AGENT

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR


@dataclass
class Settings:
    """Runtime configuration shared by transports and services."""

    downloads_base_url: str = "https://api.npmjs.org"
    registry_base_url: str = "https://registry.npmjs.org"
    timeout: float = 5.0
    user_agent: str = USER_AGENT

    traffic_fresh_ttl: int = 15 * MINUTE
    traffic_stale_ttl: int = DAY
    metadata_fresh_ttl: int = 6 * HOUR
    metadata_stale_ttl: int = 7 * DAY
    validate_positive_ttl: int = DAY
    validate_negative_ttl: int = HOUR
    repo_ttl: int = DAY
    search_fresh_ttl: int = 15 * MINUTE
    search_stale_ttl: int = DAY

    compare_min: int = 2
    compare_max: int = 5

    # Forces every traffic fetch to fail with this upstream status
    test_upstream_fail: int | None = None

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        for fresh, stale in (
            ("traffic_fresh_ttl", "traffic_stale_ttl"),
            ("metadata_fresh_ttl", "metadata_stale_ttl"),
            ("search_fresh_ttl", "search_stale_ttl"),
        ):
            if getattr(self, fresh) > getattr(self, stale):
                raise ConfigurationError(f"{fresh} must not exceed {stale}")
        if not 1 <= self.compare_min <= self.compare_max:
            raise ConfigurationError("compare_min must be between 1 and compare_max")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """
        Create settings from environment variables.

        Environment variables:
            NPMTRAFFIC_DOWNLOADS_URL: Base URL of the downloads API
            NPMTRAFFIC_REGISTRY_URL: Base URL of the registry
            NPMTRAFFIC_TIMEOUT: Per-attempt timeout in seconds
            NPMTRAFFIC_FRESH_TTL: Traffic fresh window in seconds
            NPMTRAFFIC_STALE_TTL: Traffic stale window in seconds
            NPMTRAFFIC_TEST_UPSTREAM_FAIL: Upstream status to simulate on every fetch

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Settings instance

        Raises:
            ConfigurationError: If a value is not a valid number
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}

        if env.get("NPMTRAFFIC_DOWNLOADS_URL"):
            kwargs["downloads_base_url"] = env["NPMTRAFFIC_DOWNLOADS_URL"]
        if env.get("NPMTRAFFIC_REGISTRY_URL"):
            kwargs["registry_base_url"] = env["NPMTRAFFIC_REGISTRY_URL"]
        if env.get("NPMTRAFFIC_TIMEOUT"):
            kwargs["timeout"] = _parse_number(env, "NPMTRAFFIC_TIMEOUT", float)
        if env.get("NPMTRAFFIC_FRESH_TTL"):
            kwargs["traffic_fresh_ttl"] = _parse_number(env, "NPMTRAFFIC_FRESH_TTL", int)
        if env.get("NPMTRAFFIC_STALE_TTL"):
            kwargs["traffic_stale_ttl"] = _parse_number(env, "NPMTRAFFIC_STALE_TTL", int)
        if env.get("NPMTRAFFIC_TEST_UPSTREAM_FAIL"):
            kwargs["test_upstream_fail"] = _parse_number(
                env, "NPMTRAFFIC_TEST_UPSTREAM_FAIL", int
            )

        return cls(**kwargs)  # type: ignore[arg-type]


def _parse_number(env: dict[str, str], name: str, kind: type) -> int | float:
    raw = env[name]
    try:
        return kind(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid {name}: {raw!r}") from None
