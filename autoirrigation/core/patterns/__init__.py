from .backoff import BackoffRule, RateLimitWindow
from .waiter import wait_for

__all__ = ["BackoffRule", "RateLimitWindow", "wait_for"]
