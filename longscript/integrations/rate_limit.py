"""Per-user sliding-window rate limiter."""

import time
from collections import deque
from typing import Callable, Deque, Dict

from ..errors import RateLimitExceededError


class RequestRateLimiter:
    """Allow ``max_requests`` per user in any ``window_seconds`` window."""

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._requests: Dict[str, Deque[float]] = {}

    def remaining(self, user_id: str) -> int:
        return max(0, self.max_requests - len(self._prune(user_id)))

    def check(self, user_id: str) -> None:
        """
        Record a request for ``user_id``.

        Raises:
            RateLimitExceededError: The user is over the limit for the current window
        """
        window = self._prune(user_id)
        if len(window) >= self.max_requests:
            retry_in = self.window_seconds - (self.clock() - window[0])
            raise RateLimitExceededError(
                f"{self.max_requests} requests per {self.window_seconds:.0f}s exceeded; "
                f"retry in {max(0.0, retry_in):.0f}s"
            )
        window.append(self.clock())

    def _prune(self, user_id: str) -> Deque[float]:
        window = self._requests.setdefault(user_id, deque())
        cutoff = self.clock() - self.window_seconds
        while window and window[0] <= cutoff:
            window.popleft()
        return window
