"""
Fire-and-forget telemetry for function invocations.

Events are queued and drained by a daemon worker thread, so a slow or
failing sink never delays or changes the Result returned to the caller.
"""
import logging
import queue
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)

EVENT_COLUMNS = ["Timestamp", "Event Type", "Operation", "Tier", "Latency (ms)",
                 "Success", "Error Class", "Cache", "Conversation ID"]


@dataclass
class TelemetryEvent:
    event_type: str
    operation_name: str
    latency_ms: float = 0.0
    success: bool = True
    tier: Optional[str] = None
    error_class: Optional[str] = None
    cache: Optional[str] = None
    conversation_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self):
        return {key: value for key, value in asdict(self).items() if value is not None}

    def to_row(self):
        return [
            time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(self.timestamp)),
            self.event_type,
            self.operation_name,
            self.tier or "",
            round(self.latency_ms, 1),
            "TRUE" if self.success else "FALSE",
            self.error_class or "",
            self.cache or "",
            self.conversation_id or "",
        ]


class LoggingSink:
    """Writes events to the application log."""

    def emit(self, event):
        logger.info("telemetry %s", event.to_dict())


class SheetsSink:
    """Appends events as rows of an "Events" worksheet."""

    def __init__(self, worksheet):
        self.worksheet = worksheet

    def emit(self, event):
        self.worksheet.append_row(event.to_row())


class MemorySink:
    """Keeps events in a list; used by tests and local debugging."""

    def __init__(self):
        self.events: List[TelemetryEvent] = []

    def emit(self, event):
        self.events.append(event)

    def of_type(self, event_type):
        return [event for event in self.events if event.event_type == event_type]


class Telemetry:
    """Front door for event emission. `track` never raises."""

    def __init__(self, sinks=None, background=True, max_queue=1000):
        self.sinks = list(sinks) if sinks is not None else [LoggingSink()]
        self.background = background
        self._queue = queue.Queue(maxsize=max_queue)
        self._worker = None
        self._lock = threading.Lock()

    def track(self, event_type, operation_name, **fields):
        try:
            event = TelemetryEvent(event_type=event_type, operation_name=operation_name, **fields)
            if self.background:
                self._ensure_worker()
                self._queue.put_nowait(event)
            else:
                self._deliver(event)
        except queue.Full:
            logger.warning("Telemetry queue full, dropping %s event for %s", event_type, operation_name)
        except Exception:
            logger.exception("Failed to record telemetry event %s", event_type)

    def _ensure_worker(self):
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(target=self._drain, name="telemetry-worker", daemon=True)
                self._worker.start()

    def _drain(self):
        while True:
            event = self._queue.get()
            try:
                self._deliver(event)
            finally:
                self._queue.task_done()

    def _deliver(self, event):
        for sink in self.sinks:
            try:
                sink.emit(event)
            except Exception as e:
                logger.warning("Telemetry sink %s failed: %s", type(sink).__name__, e)

    def flush(self, timeout=5.0):
        """Wait until queued events are delivered. False if the timeout ran out first"""
        with self._queue.all_tasks_done:
            return self._queue.all_tasks_done.wait_for(lambda: not self._queue.unfinished_tasks, timeout)
