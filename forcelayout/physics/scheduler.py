from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from forcelayout.config import settings as C

logger = logging.getLogger(__name__)


class Ticker:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread.

    ``start`` while armed and ``stop`` while disarmed are no-ops; both return
    whether they changed anything. ``stop`` may be called from inside the
    callback, in which case the loop exits after the callback returns.
    """

    def __init__(
        self,
        callback: Callable[[], object],
        interval: float = C.TICK_INTERVAL,
        name: str = "forcelayout-ticker",
    ) -> None:
        self.callback = callback
        self.interval = interval
        self.name = name
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def running(self) -> bool:
        return self._thread is not None

    def start(self) -> bool:
        with self._lock:
            if self._thread is not None:
                return False
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run, args=(self._stop_event,), name=self.name, daemon=True
            )
            self._thread.start()
        logger.debug("Ticker armed (interval=%.4gs)", self.interval)
        return True

    def stop(self, timeout: Optional[float] = 1.0) -> bool:
        with self._lock:
            thread, event = self._thread, self._stop_event
            if thread is None or event is None:
                return False
            self._thread = None
            self._stop_event = None
            event.set()
        if thread is not threading.current_thread():
            thread.join(timeout)
        logger.debug("Ticker disarmed")
        return True

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Tick callback failed")
