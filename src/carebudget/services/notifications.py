"""In-process budget change bus.

Views subscribe to a ``(client_id, year)`` channel and are told when that
budget or its ledger changed. Delivery is best effort: a failing subscriber
is logged and skipped, and ``publish`` never raises.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Callable, Protocol

from ..logging_config import get_logger

logger = get_logger("notifications")

Subscriber = Callable[[str, dict], None]


class ChangePublisher(Protocol):
    def publish(self, client_id: str, year: int) -> None:  # pragma: no cover - interface
        ...


class BudgetChangeBus:
    """Fan out ``change`` events to subscribers of a client/year channel."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._channels: dict[str, list[Subscriber]] = {}

    @staticmethod
    def channel_key(client_id: str, year: int) -> str:
        return f"{client_id}:{year}"

    def subscribe(self, client_id: str, year: int, subscriber: Subscriber) -> Callable[[], None]:
        """Register ``subscriber``; returns a callable that unsubscribes it."""

        key = self.channel_key(client_id, year)
        with self._lock:
            self._channels.setdefault(key, []).append(subscriber)

        def _unsubscribe() -> None:
            with self._lock:
                subscribers = self._channels.get(key)
                if not subscribers:
                    return
                if subscriber in subscribers:
                    subscribers.remove(subscriber)
                if not subscribers:
                    self._channels.pop(key, None)

        return _unsubscribe

    def subscriber_count(self, client_id: str, year: int) -> int:
        with self._lock:
            return len(self._channels.get(self.channel_key(client_id, year), []))

    def publish(self, client_id: str, year: int) -> None:
        key = self.channel_key(client_id, year)
        with self._lock:
            subscribers = list(self._channels.get(key, []))
        payload = {"ts": int(datetime.now(timezone.utc).timestamp() * 1000)}
        for subscriber in subscribers:
            try:
                subscriber("change", payload)
            except Exception:
                logger.warning(
                    "Budget change subscriber failed",
                    exc_info=True,
                    extra={"client_id": client_id, "year": year},
                )


def safe_publish(publisher: ChangePublisher | None, client_id: str, year: int) -> None:
    """Publish without letting a broken publisher fail the calling action."""

    if publisher is None:
        return
    try:
        publisher.publish(client_id, year)
    except Exception:
        logger.warning(
            "Budget change publish failed",
            exc_info=True,
            extra={"client_id": client_id, "year": year},
        )
