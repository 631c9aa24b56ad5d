"""
WHOIS probe

Registry lookup for TLDs that publish no RDAP server. python-whois is
blocking, so every query runs in a worker thread, and queries from one probe
instance are spaced out to stay under registry rate limits.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional, Union

import whois
from whois.exceptions import WhoisDomainNotFoundError

from ..config import config
from ..models import Available, Taken
from ..validation import is_valid_full_domain
from .base import MalformedDomainError, ProbeClient, ProbeTimeout, ProbeTransientError, RateLimitError

logger = logging.getLogger(__name__)

RATE_LIMIT_PATTERNS = ("rate limit", "too many requests", "quota exceeded", "try again later", "blocked")

# Error text some registries return instead of a parseable record
AVAILABLE_PATTERNS = (
    "no match",
    "not found",
    "no entries found",
    "no data found",
    "not registered",
    "no matching record",
    "status: available",
    "no object found",
)
TAKEN_PATTERNS = ("registrar:", "creation date:", "registry expiry date:", "domain status: ok", "domain status: active")


def _first(value):
    # python-whois gives either a single value or a list of them
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _date(value) -> Optional[str]:
    value = _first(value)
    return str(value)[:10] if value else None


class WhoisProbe(ProbeClient):
    """
    WHOIS-based probe.

    A record with a domain name means taken; "not found" from the registry
    means available. Rate-limit replies raise RateLimitError so the retry
    policy backs off.
    """

    def __init__(
        self,
        rate_limit_delay: Optional[float] = None,
        lookup: Optional[Callable[[str], Any]] = None,
    ):
        """
        Initialize WHOIS probe.

        Args:
            rate_limit_delay: Minimum seconds between queries (defaults to config)
            lookup: Blocking lookup function (defaults to whois.whois)
        """
        self.rate_limit_delay = config.probe.whois_delay_seconds if rate_limit_delay is None else rate_limit_delay
        self._lookup = lookup or whois.whois
        self._last_request = float("-inf")
        self._throttle_lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "whois"

    async def _throttle(self):
        async with self._throttle_lock:
            wait = self._last_request + self.rate_limit_delay - time.monotonic()
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request = time.monotonic()

    async def check(self, domain: str) -> Union[Available, Taken]:
        domain = domain.lower().strip()
        if not is_valid_full_domain(domain) or "." not in domain:
            raise MalformedDomainError(f"Invalid domain format: {domain}")

        await self._throttle()
        try:
            record = await asyncio.to_thread(self._lookup, domain)
        except WhoisDomainNotFoundError:
            return Available(method=self.name)
        except TimeoutError as e:
            raise ProbeTimeout(f"WHOIS lookup timeout for {domain}: {e}")
        except Exception as e:
            return self._classify_error(domain, e)

        if not record or not _first(record.get("domain_name")):
            return Available(method=self.name)

        return Taken(
            method=self.name,
            registrar=_first(record.get("registrar")),
            expiration=_date(record.get("expiration_date")),
            created=_date(record.get("creation_date")),
        )

    def _classify_error(self, domain: str, error: Exception) -> Union[Available, Taken]:
        """Read a verdict out of a WHOIS error, or raise a transient failure."""
        message = str(error).lower()

        if any(p in message for p in RATE_LIMIT_PATTERNS):
            raise RateLimitError(f"WHOIS rate limited for {domain}", retry_after=self.rate_limit_delay or None)
        if any(p in message for p in AVAILABLE_PATTERNS):
            return Available(method=self.name)
        if any(p in message for p in TAKEN_PATTERNS):
            return Taken(method=self.name)

        logger.debug(f"WHOIS lookup for {domain} failed: {error!r}")
        raise ProbeTransientError(f"WHOIS lookup failed for {domain}: {error}")
