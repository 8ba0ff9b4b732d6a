"""In-process outbox for side effects of committed state changes.

Services publish a ``DomainEvent`` only after their write has committed.
Handlers run later, either from ``drain()`` or from the background worker, and
their failures are logged and dropped. Nothing a handler does can reach back
into the publishing call.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

CHECK_IN_RECORDED = "check_in.recorded"
EXCUSE_DECIDED = "excuse.decided"


@dataclass(frozen=True)
class DomainEvent:
    name: str
    payload: dict[str, Any] = field(default_factory=dict)


Handler = Callable[[DomainEvent], None]


class Outbox:
    def __init__(self):
        self._queue: "queue.Queue[DomainEvent]" = queue.Queue()
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def subscribe(self, name: str, handler: Handler) -> None:
        self._handlers[name].append(handler)

    def publish(self, event: DomainEvent) -> None:
        self._queue.put(event)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self) -> int:
        """Deliver every queued event to its handlers. Returns the number of events processed."""
        processed = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return processed
            self._dispatch(event)
            processed += 1

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="notification-outbox", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self.drain()

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                event = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue
            self._dispatch(event)

    def _dispatch(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(event.name, []):
            try:
                handler(event)
            except Exception:
                logger.exception("Outbox handler %r failed for %s", getattr(handler, "__name__", handler), event.name)
