"""Scalability layer: admission control, detached side writes, bounded I/O. No FastAPI."""

from docvault.scalability.background import DetachedTaskRunner
from docvault.scalability.rate_limiter import (
    AdmissionController,
    InMemoryRateLimitBackend,
    LimitPolicy,
    RateLimited,
    RouteLimiter,
)
from docvault.scalability.timeouts import bounded

__all__ = [
    "AdmissionController",
    "DetachedTaskRunner",
    "InMemoryRateLimitBackend",
    "LimitPolicy",
    "RateLimited",
    "RouteLimiter",
    "bounded",
]
