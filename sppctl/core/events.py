"""Asynchronous delivery of core events to the registered sink."""

from __future__ import annotations

import logging
import queue
import threading

from sppctl.core.model import Event, EventSink

LOGGER = logging.getLogger(__name__)

_STOP = object()


class EventDispatcher:
    """Hands events to a single sink on a dedicated worker thread.

    Events are delivered in the order they were posted. The sink never runs on
    the thread that called :meth:`post`, so producers holding locks or sitting
    on I/O threads are not blocked by slow consumers.
    """

    def __init__(self, sink: EventSink) -> None:
        self._sink = sink
        self._queue: queue.Queue[object] = queue.Queue()
        self._closed = False
        self._lock = threading.Lock()
        self._worker = threading.Thread(
            target=self._run,
            name="sppctl-events",
            daemon=True,
        )
        self._worker.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def post(self, event: Event) -> None:
        with self._lock:
            if self._closed:
                LOGGER.debug("Dropping %r posted after dispatcher close", event)
                return
            self._queue.put(event)

    def wait_idle(self) -> None:
        """Block until every event posted so far has been delivered."""
        self._queue.join()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_STOP)
        if threading.current_thread() is not self._worker:
            self._worker.join()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._sink(item)  # type: ignore[arg-type]
            except Exception:
                LOGGER.exception("Event sink failed while handling %r", item)
            finally:
                self._queue.task_done()
