"""
In-memory per-client rate limiting for LLM-heavy endpoints.

Sliding window per client IP, process-local. Buckets are dropped once all of
their timestamps have expired.
"""
import logging
import math
import threading
import time
from collections import deque
from typing import Deque, Dict, Optional

from fastapi import HTTPException, Request, status

from app.core import config

logger = logging.getLogger(__name__)

# {client ip: timestamps of accepted requests, oldest first}
rate_limit_store: Dict[str, Deque[float]] = {}
_store_guard = threading.Lock()


def get_client_ip(request: Request) -> str:
    # First hop of X-Forwarded-For when behind a proxy
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


def _prune(now: float, window_seconds: int) -> None:
    """Drop expired timestamps, and buckets left empty, for every client."""
    cutoff = now - window_seconds
    for ip in list(rate_limit_store):
        bucket = rate_limit_store[ip]
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()
        if not bucket:
            del rate_limit_store[ip]


def check_rate_limit(
    request: Request,
    max_requests: int = 10,
    window_seconds: int = 60,
    now: Optional[float] = None,
) -> None:
    """
    Record one request from the caller, or reject it.

    Raises:
        HTTPException: 429 with a Retry-After header when the caller already
            made max_requests requests inside the window
    """
    ip = get_client_ip(request)
    now = time.time() if now is None else now

    with _store_guard:
        _prune(now, window_seconds)
        bucket = rate_limit_store.get(ip)
        if bucket is not None and len(bucket) >= max_requests:
            retry_after = max(1, math.ceil(bucket[0] + window_seconds - now))
            logger.warning(f"Rate limit exceeded for IP: {ip} ({len(bucket)} requests in {window_seconds}s)")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Rate limit exceeded. Maximum {max_requests} requests per {window_seconds} seconds.",
                headers={"Retry-After": str(retry_after)},
            )
        rate_limit_store.setdefault(ip, deque()).append(now)


def generation_rate_limit(request: Request) -> None:
    """FastAPI dependency applying the configured limit to generation endpoints."""
    check_rate_limit(
        request,
        max_requests=config.RATE_LIMIT_REQUESTS,
        window_seconds=config.RATE_LIMIT_WINDOW_SECONDS,
    )


def reset_rate_limits() -> None:
    with _store_guard:
        rate_limit_store.clear()
