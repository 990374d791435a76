"""
Notification Service - Story Contest Platform
story_contest/services/notifications.py

Best-effort event delivery. Callers never see delivery failures: they are
logged and swallowed so a submission or a phase change is never rolled back
because a notification could not be sent.

Events:
    submission_confirmed   entry recorded for a competition
    phase_changed          competition moved to a new phase
    winners_announced      finalize selected winners
"""

import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential_jitter,
)

from story_contest.config import settings

logger = structlog.get_logger(__name__)


class Notifier(ABC):
    """Outbound notification collaborator."""

    def notify(self, event: str, payload: Dict[str, Any]) -> bool:
        """Send an event; returns False instead of raising on failure."""
        try:
            self.send(event, payload)
            return True
        except Exception as e:
            logger.warning("notification_failed", notify_event=event, error=str(e))
            return False

    @abstractmethod
    def send(self, event: str, payload: Dict[str, Any]) -> None:
        ...

    def close(self, wait: bool = True) -> None:
        """Release delivery resources; a no-op for synchronous notifiers."""


class LoggingNotifier(Notifier):
    """Default notifier: records the event in the log stream."""

    def send(self, event: str, payload: Dict[str, Any]) -> None:
        logger.info("notification_sent", notify_event=event, **payload)


class WebhookNotifier(Notifier):
    """
    POSTs events as JSON to NOTIFY_WEBHOOK_URL.

    With `background=True` delivery runs on a single worker thread and
    notify() returns as soon as the event is queued. Retries of one event
    stop after three attempts or NOTIFY_RETRY_BUDGET_SECONDS, whichever
    comes first.
    """

    def __init__(self, url: str, timeout: Optional[float] = None, background: Optional[bool] = None):
        self.url = url
        self.timeout = timeout or settings.NOTIFY_TIMEOUT_SECONDS
        self.background = settings.NOTIFY_IN_BACKGROUND if background is None else background
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    def notify(self, event: str, payload: Dict[str, Any]) -> bool:
        if not self.background:
            return super().notify(event, payload)
        try:
            self._worker().submit(super().notify, event, payload)
            return True
        except RuntimeError as e:
            # executor already shut down
            logger.warning("notification_dropped", notify_event=event, error=str(e))
            return False

    @retry(
        reraise=True,
        stop=stop_after_attempt(3) | stop_after_delay(settings.NOTIFY_RETRY_BUDGET_SECONDS),
        wait=wait_exponential_jitter(initial=0.5, max=2),
        retry=retry_if_exception_type(httpx.TransportError),
    )
    def send(self, event: str, payload: Dict[str, Any]) -> None:
        body = {
            "event": event,
            "sent_at": datetime.now(timezone.utc).isoformat(),
            "payload": payload,
        }
        resp = httpx.post(self.url, json=body, timeout=self.timeout)
        resp.raise_for_status()
        logger.info("webhook_delivered", notify_event=event, status_code=resp.status_code)

    def close(self, wait: bool = True) -> None:
        """Stop the delivery worker; with `wait` pending events are sent first."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def _worker(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="notify")
            return self._executor


@lru_cache
def get_notifier() -> Notifier:
    if settings.NOTIFY_WEBHOOK_URL:
        return WebhookNotifier(settings.NOTIFY_WEBHOOK_URL)
    return LoggingNotifier()
