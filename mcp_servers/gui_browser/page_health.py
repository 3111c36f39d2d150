"""Deadline-bounded page health checks.

Each check runs on a worker thread and is given a deadline. What a missed deadline
means is a named policy: ``TimeoutPolicy.FAIL_SAFE`` (the default) reports the check
as failed, ``TimeoutPolicy.RAISE`` lets ``ProbeTimeout`` reach the caller.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Any

from .page import PageHandle

logger = logging.getLogger("mcp.gui_browser.page_health")

VISIBILITY_TIMEOUT = 5.0
RESPONSIVE_TIMEOUT = 5.0
LAST_RESORT_TIMEOUT = 2.0

VISIBILITY_SCRIPT = "document.visibilityState === 'visible'"
RESPONSIVE_SCRIPT = "1 + 1"
LAST_RESORT_SCRIPT = "document.readyState"

_TIMED_OUT = object()


class TimeoutPolicy(enum.Enum):
    FAIL_SAFE = "fail_safe"
    RAISE = "raise"


class ProbeTimeout(TimeoutError):
    def __init__(self, check: str, deadline: float) -> None:
        super().__init__(f"{check} check exceeded {deadline:.1f}s")
        self.check = check
        self.deadline = deadline


@dataclass(frozen=True)
class PageHealth:
    visible: bool
    healthy: bool

    @property
    def usable(self) -> bool:
        return self.visible or self.healthy


class PageHealthProbe:
    """Answer visibility and responsiveness questions about one page at a time.

    Health is never cached: every call talks to the page again.
    """

    def __init__(
        self,
        *,
        visibility_timeout: float = VISIBILITY_TIMEOUT,
        responsive_timeout: float = RESPONSIVE_TIMEOUT,
        last_resort_timeout: float = LAST_RESORT_TIMEOUT,
        policy: TimeoutPolicy = TimeoutPolicy.FAIL_SAFE,
        max_workers: int = 4,
    ) -> None:
        self.visibility_timeout = visibility_timeout
        self.responsive_timeout = responsive_timeout
        self.last_resort_timeout = last_resort_timeout
        self.policy = policy
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="page-probe")

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _await(self, check: str, future: Future, deadline: float) -> Any:
        try:
            return future.result(timeout=deadline)
        except FutureTimeout:
            future.cancel()
            if self.policy is TimeoutPolicy.RAISE:
                raise ProbeTimeout(check, deadline) from None
            logger.debug("probe_timeout check=%s deadline=%.1fs", check, deadline)
            return _TIMED_OUT

    def _start(self, page: PageHandle, script: str, deadline: float) -> Future:
        return self._executor.submit(page.evaluate, script, timeout=deadline)

    def _finish(self, page: PageHandle, check: str, future: Future, deadline: float, accept: Callable[[Any], bool]) -> bool:
        try:
            value = self._await(check, future, deadline)
        except ProbeTimeout:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.debug("probe_failed check=%s page=%s error=%s", check, page.target_id, exc)
            return False
        if value is _TIMED_OUT:
            return False
        return accept(value)

    def is_visible(self, page: PageHandle) -> bool:
        future = self._start(page, VISIBILITY_SCRIPT, self.visibility_timeout)
        return self._finish(page, "visibility", future, self.visibility_timeout, _is_true)

    def is_responsive(self, page: PageHandle) -> bool:
        future = self._start(page, RESPONSIVE_SCRIPT, self.responsive_timeout)
        return self._finish(page, "responsive", future, self.responsive_timeout, _is_two)

    def is_barely_responsive(self, page: PageHandle) -> bool:
        """Last-resort check: any completed evaluation counts."""
        future = self._start(page, LAST_RESORT_SCRIPT, self.last_resort_timeout)
        return self._finish(page, "last_resort", future, self.last_resort_timeout, lambda _v: True)

    def check(self, page: PageHandle) -> PageHealth:
        """Run the visibility and responsiveness checks concurrently."""
        visible = self._start(page, VISIBILITY_SCRIPT, self.visibility_timeout)
        healthy = self._start(page, RESPONSIVE_SCRIPT, self.responsive_timeout)
        return PageHealth(
            visible=self._finish(page, "visibility", visible, self.visibility_timeout, _is_true),
            healthy=self._finish(page, "responsive", healthy, self.responsive_timeout, _is_two),
        )


def _is_true(value: Any) -> bool:
    return value is True


def _is_two(value: Any) -> bool:
    return value == 2


__all__ = [
    "LAST_RESORT_TIMEOUT",
    "PageHealth",
    "PageHealthProbe",
    "ProbeTimeout",
    "RESPONSIVE_TIMEOUT",
    "TimeoutPolicy",
    "VISIBILITY_TIMEOUT",
]
