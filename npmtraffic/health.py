"""
Health recording for the status page.

The recorder keeps only the latest outcome of each kind; writers
overwrite each other.
"""

import os
import threading
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import datetime

from npmtraffic.dates import utc_now
from npmtraffic.types.health import BuildInfo, HealthSnapshot, StatusOverview


class HealthRecorder:
    """Process-wide snapshot of the last success and the last error."""

    def __init__(self, now: Callable[[], datetime] | None = None) -> None:
        """
        Args:
            now: Returns the current UTC time (default: datetime.now(timezone.utc))
        """
        self._state = HealthSnapshot()
        self._lock = threading.Lock()
        self._now = now or utc_now

    def record_success(self, cache_status: str, is_stale: bool) -> None:
        with self._lock:
            self._state.last_success_at = self._now()
            self._state.last_cache_status = cache_status
            self._state.last_is_stale = is_stale

    def record_error(self, code: str, reason: str | None = None) -> None:
        with self._lock:
            self._state.last_error_at = self._now()
            self._state.last_error_code = code
            if reason:
                self._state.last_error_reason = reason

    def snapshot(self) -> HealthSnapshot:
        """Return a copy of the current state."""
        with self._lock:
            return replace(self._state)

    def reset(self) -> None:
        with self._lock:
            self._state = HealthSnapshot()


def get_status_overview(
    recorder: HealthRecorder, environ: Mapping[str, str] | None = None
) -> StatusOverview:
    """
    Collect build info and the health snapshot for the status page.

    Args:
        recorder: Health recorder of the running process
        environ: Mapping to read instead of os.environ

    Returns:
        StatusOverview; has_health is False until something was recorded
    """
    env = os.environ if environ is None else environ
    commit = (
        env.get("VERCEL_GIT_COMMIT_SHA")
        or env.get("GITHUB_SHA")
        or env.get("COMMIT_SHA")
        or "unknown"
    )
    environment = (
        env.get("VERCEL_ENV")
        or env.get("NODE_ENV")
        or env.get("NEXT_PUBLIC_VERCEL_ENV")
        or "production"
    )
    health = recorder.snapshot()
    has_health = bool(
        health.last_success_at or health.last_error_at or health.last_cache_status
    )
    return StatusOverview(
        build=BuildInfo(commit=commit, environment=environment),
        health=health,
        has_health=has_health,
    )
