import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, List, Optional, Tuple

from tasksheet.config import AUTO_SAVE_DELAY_SECONDS

logger = logging.getLogger(__name__)


class DebounceScheduler:
    """Collapses repeated save requests per key into a single delayed call.

    Scheduling a key that already has a pending timer cancels that timer
    (and its future) and starts a new one, so only the last request fires.
    """

    def __init__(self, default_delay: float = AUTO_SAVE_DELAY_SECONDS):
        self.default_delay = default_delay
        self._pending: Dict[str, Tuple[threading.Timer, Future]] = {}
        self._lock = threading.Lock()

    def schedule(self, key: str, callback: Callable[[], object], delay: Optional[float] = None) -> Future:
        if delay is None:
            delay = self.default_delay

        future: Future = Future()
        timer = threading.Timer(delay, self._fire, args=(key, callback, future))
        timer.daemon = True

        with self._lock:
            previous = self._pending.pop(key, None)
            self._pending[key] = (timer, future)

        if previous is not None:
            self._cancel(previous)
            logger.debug("Rescheduled pending save for %s", key)

        timer.start()
        return future

    def cancel_pending(self, key: str) -> bool:
        with self._lock:
            entry = self._pending.pop(key, None)
        if entry is None:
            return False
        self._cancel(entry)
        return True

    def cancel_all(self) -> None:
        with self._lock:
            entries = list(self._pending.values())
            self._pending.clear()
        for entry in entries:
            self._cancel(entry)

    def pending_keys(self) -> List[str]:
        with self._lock:
            return list(self._pending)

    def _fire(self, key, callback, future):
        with self._lock:
            entry = self._pending.get(key)
            if entry is None or entry[1] is not future:
                return
            del self._pending[key]

        if not future.set_running_or_notify_cancel():
            return

        try:
            result = callback()
        except Exception as exc:
            logger.warning("Scheduled save for %s failed: %s", key, exc)
            future.set_exception(exc)
        else:
            future.set_result(result)

    @staticmethod
    def _cancel(entry):
        timer, future = entry
        timer.cancel()
        future.cancel()
