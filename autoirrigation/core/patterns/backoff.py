from __future__ import annotations
import time, logging
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass
class BackoffRule:
    token: str
    window: float                         # seconds


class RateLimitWindow:
    """Suppression window that opens on a rate-limit error and closes by itself.

    Expiry is evaluated lazily: nothing runs in the background, the next call
    to `active()` after the deadline closes the window.
    """

    def __init__(self, rules: list[BackoffRule], clock: Callable[[], float] = time.monotonic):
        self.rules = rules
        self.clock = clock
        self.log   = logging.getLogger(self.__class__.__name__)
        self.until: Optional[float] = None

    def classify(self, error: str) -> Optional[BackoffRule]:
        """First rule whose token appears in the error text (case-insensitive)."""
        text = error.lower()
        for rule in self.rules:
            if rule.token in text:
                return rule
        return None

    def open(self, rule: BackoffRule):
        self.until = self.clock() + rule.window
        self.log.warning("rate limit (%s): suppressing for %.0fs", rule.token, rule.window)

    def active(self) -> bool:
        if self.until is None:
            return False
        if self.clock() >= self.until:
            self.until = None
            self.log.info("rate limit backoff ended")
            return False
        return True

    def remaining(self) -> float:
        if not self.active():
            return 0.0
        return self.until - self.clock()
