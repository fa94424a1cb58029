"""Per-route-class fixed-window admission control keyed by client address. Metrics-integrated."""

import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

GENERAL = "general"
LOGIN = "login"
SIGNUP = "signup"
VERIFICATION = "verification"
UPLOAD = "upload"
DOWNLOAD = "download"
DELETE = "delete"


@dataclass(frozen=True)
class LimitPolicy:
    window_seconds: int
    max_requests: int


DEFAULT_POLICIES: Dict[str, LimitPolicy] = {
    GENERAL: LimitPolicy(window_seconds=15 * 60, max_requests=100),
    LOGIN: LimitPolicy(window_seconds=15 * 60, max_requests=5),
    SIGNUP: LimitPolicy(window_seconds=60 * 60, max_requests=10),
    VERIFICATION: LimitPolicy(window_seconds=60 * 60, max_requests=20),
    UPLOAD: LimitPolicy(window_seconds=60, max_requests=10),
    DOWNLOAD: LimitPolicy(window_seconds=60, max_requests=30),
    DELETE: LimitPolicy(window_seconds=60, max_requests=20),
}


class RateLimited(Exception):
    """Raised when a client exceeds the request budget of a route class."""

    def __init__(self, route_class: str, retry_after_seconds: int) -> None:
        self.route_class = route_class
        self.retry_after_seconds = retry_after_seconds
        self.message = "Too many requests, please try again later."
        super().__init__(self.message)


class RateLimitBackend(Protocol):
    """Backend for rate limit state (e.g. Redis). Injected."""

    async def incr_window(self, key: str, window_seconds: int) -> int:
        """Atomically increment the counter for key and return the new value. Expires after window_seconds."""
        ...


class InMemoryRateLimitBackend:
    """
    In-memory fixed-window counters: key -> (count, expires_at). For tests or single-node.
    Expired keys are swept periodically so memory stays bounded by active clients.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: float = 60.0,
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._counters: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._counters)

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._counters = {k: v for k, v in self._counters.items() if v[1] > now}
        self._last_sweep = now

    async def incr_window(self, key: str, window_seconds: int) -> int:
        now = self._clock()
        with self._lock:
            self._sweep(now)
            count, expires_at = self._counters.get(key, (0, now + window_seconds))
            if expires_at <= now:
                count, expires_at = 0, now + window_seconds
            count += 1
            self._counters[key] = (count, expires_at)
            return count


class RouteLimiter:
    """
    One route class's limiter. Fixed window; key is (class, client, window index).
    """

    def __init__(
        self,
        route_class: str,
        backend: RateLimitBackend,
        policy: LimitPolicy,
        clock: Callable[[], float] = time.time,
        metrics_callback: Any = None,
    ) -> None:
        self._route_class = route_class
        self._backend = backend
        self._policy = policy
        self._clock = clock
        self._metrics = metrics_callback
        self._key_prefix = f"rate:{route_class}:"

    @property
    def policy(self) -> LimitPolicy:
        return self._policy

    async def check(self, client: str) -> None:
        """Count this request for client; raise RateLimited if over the window budget."""
        now = self._clock()
        window = self._policy.window_seconds
        window_index = int(now // window)
        key = f"{self._key_prefix}{client}:{window_index}"
        count = await self._backend.incr_window(key, window)
        if count <= self._policy.max_requests:
            return
        if self._metrics and hasattr(self._metrics, "increment"):
            self._metrics.increment("rate_limit_rejected", 1, category=self._route_class)
        retry_after = max(1, math.ceil((window_index + 1) * window - now))
        raise RateLimited(self._route_class, retry_after)


class AdmissionController:
    """
    Named set of independent limiters. The general limiter applies to every
    request; the class-specific one is applied on top of it.
    enabled=False is an explicit switch; settings refuse it in production.
    """

    def __init__(
        self,
        backend: RateLimitBackend,
        policies: Optional[Mapping[str, LimitPolicy]] = None,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
        metrics_callback: Any = None,
    ) -> None:
        merged = dict(DEFAULT_POLICIES)
        if policies:
            merged.update(policies)
        self._enabled = enabled
        self._limiters = {
            name: RouteLimiter(name, backend, policy, clock=clock, metrics_callback=metrics_callback)
            for name, policy in merged.items()
        }

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def admit(self, route_class: str, client: str) -> None:
        """Raises RateLimited before any handler logic runs. No-op when disabled."""
        if not self._enabled:
            return
        if route_class not in self._limiters:
            raise KeyError(f"Unknown route class: {route_class}")
        await self._limiters[GENERAL].check(client)
        if route_class != GENERAL:
            await self._limiters[route_class].check(client)
