"""
Shared pieces for the outbound vendor clients (Jira, Pipedrive).

Provides:
- ConfigurationError / VendorHTTPError
- is_endpoint_allowed(): endpoint allow-list check
- RequestSpacer: minimum gap between consecutive outbound calls
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable

import httpx

from landiq.config import PROXY_MIN_REQUEST_INTERVAL


class ConfigurationError(RuntimeError):
    """Required vendor credentials are missing."""

    pass


class VendorHTTPError(Exception):
    """Vendor answered with a non-2xx status."""

    def __init__(self, status: int, reason: str, text: str) -> None:
        super().__init__(f"HTTP {status}: {reason} - {text}")
        self.status = status
        self.reason = reason
        self.text = text

    @classmethod
    def from_response(cls, response: httpx.Response) -> VendorHTTPError:
        return cls(response.status_code, response.reason_phrase, response.text)


def is_endpoint_allowed(endpoint: str, allowed: Iterable[str]) -> bool:
    """
    True when the endpoint equals an allowed path, or extends one with a
    sub-path ("/") or a query string ("?").

    "/issue/ABC-1" and "/search?jql=x" pass; "/issuefoo" does not.
    """
    for prefix in allowed:
        if endpoint == prefix:
            return True
        if endpoint.startswith(prefix) and endpoint[len(prefix)] in "/?":
            return True
    return False


class RequestSpacer:
    """
    Enforces a minimum interval between outbound calls.

    One instance lives at module level per vendor. It only remembers when the
    last call started; concurrent callers may both pass the check.
    """

    def __init__(
        self,
        min_interval: float = PROXY_MIN_REQUEST_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self.last_request_time: float | None = None

    async def wait(self) -> float:
        """
        Sleep for whatever is left of the interval, then stamp the call.

        Returns:
            Seconds slept (0 when no wait was needed)
        """
        waited = 0.0
        if self.last_request_time is not None:
            elapsed = self._clock() - self.last_request_time
            if elapsed < self.min_interval:
                waited = self.min_interval - elapsed
                await self._sleep(waited)
        self.last_request_time = self._clock()
        return waited

    def reset(self) -> None:
        self.last_request_time = None
