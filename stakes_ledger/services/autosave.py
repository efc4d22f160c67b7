from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AutoSaver:
    """Debounced background saves, one pending save per key.

    Every ``schedule`` call restarts the key's timer, so a burst of changes
    ends in a single save of whatever the save callback reads when it fires.

    Saves for one key never overlap. Timer saves, :meth:`flush`,
    :meth:`cancel` and :meth:`run_now` all hold the key's save lock while they
    take the pending save and run it, so once one of them returns no older
    save for that key is still in flight.

    Failed background saves are logged and dropped; the next change schedules
    a new one.
    """

    def __init__(self, delay_seconds: float) -> None:
        self.delay_seconds = delay_seconds
        self._lock = threading.Lock()
        self._timers: dict[str, threading.Timer] = {}
        self._pending: dict[str, Callable[[], object]] = {}
        self._save_locks: dict[str, threading.Lock] = {}

    def schedule(self, key: str, save: Callable[[], object]) -> None:
        timer = threading.Timer(self.delay_seconds, self._fire, args=(key,))
        timer.daemon = True
        with self._lock:
            previous = self._timers.pop(key, None)
            if previous is not None:
                previous.cancel()
                logger.debug("autosave for %s rescheduled", key)
            self._timers[key] = timer
            self._pending[key] = save
        timer.start()

    def pending(self) -> list[str]:
        with self._lock:
            return sorted(self._pending)

    def cancel(self, key: str) -> None:
        """Drop the pending save, waiting for one that is already running."""
        with self._save_lock(key):
            self._take(key)

    def flush(self, key: str) -> bool:
        """Run the pending save for ``key`` now. Returns whether the save succeeded."""
        with self._save_lock(key):
            save = self._take(key)
            if save is None:
                return True
            return self._run(key, save)

    def run_now(self, key: str, save: Callable[[], T]) -> T:
        """Run ``save`` in place of the pending one; errors propagate."""
        with self._save_lock(key):
            self._take(key)
            return save()

    def shutdown(self) -> None:
        for key in self.pending():
            self.flush(key)

    def _take(self, key: str) -> Callable[[], object] | None:
        with self._lock:
            timer = self._timers.pop(key, None)
            save = self._pending.pop(key, None)
        if timer is not None:
            timer.cancel()
        return save

    def _save_lock(self, key: str) -> threading.Lock:
        with self._lock:
            return self._save_locks.setdefault(key, threading.Lock())

    def _fire(self, key: str) -> None:
        with self._save_lock(key):
            with self._lock:
                if self._timers.get(key) is not threading.current_thread():
                    # superseded by a newer schedule(), or taken by flush/cancel
                    return
                del self._timers[key]
                save = self._pending.pop(key, None)
            if save is not None:
                self._run(key, save)

    def _run(self, key: str, save: Callable[[], object]) -> bool:
        try:
            save()
        except Exception:
            logger.warning("autosave for %s failed", key, exc_info=True)
            return False
        return True
