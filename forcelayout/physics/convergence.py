from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from forcelayout.config import settings as C

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnergyMetrics:
    sum: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    threshold: float = 0.0


class ConvergenceMonitor:
    """Debounced stability detector.

    ``update`` returns True once the energy threshold has stayed at or below
    ``stop_threshold`` for longer than ``debounce`` seconds. Any tick above
    the threshold resets the timer, so a single quiet tick never stops the
    layout.
    """

    def __init__(
        self,
        stop_threshold: float = C.STOP_THRESHOLD,
        debounce: float = C.STOP_DEBOUNCE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stop_threshold = stop_threshold
        self.debounce = debounce
        self.clock = clock
        self.energy = EnergyMetrics()
        self.calm_since: Optional[float] = None

    def reset(self) -> None:
        self.calm_since = None

    def update(self, energy: EnergyMetrics) -> bool:
        self.energy = energy
        if energy.threshold <= self.stop_threshold:
            now = self.clock()
            if self.calm_since is None:
                self.calm_since = now
            if now - self.calm_since > self.debounce:
                logger.debug(
                    "Energy %.4g below %.4g for %.2fs",
                    energy.threshold, self.stop_threshold, now - self.calm_since,
                )
                return True
        else:
            self.calm_since = None
        return False
