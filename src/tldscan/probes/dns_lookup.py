"""
DNS probe

Fast, non-authoritative availability check. A registered domain almost
always publishes NS records (and usually A/MX); an unregistered one gets
NXDOMAIN from its TLD's servers.
"""

import asyncio
import logging
from typing import Optional, Union

import dns.asyncresolver
import dns.exception
import dns.resolver

from ..config import config
from ..models import Available, Taken
from ..validation import is_valid_full_domain
from .base import MalformedDomainError, ProbeClient, ProbeTimeout, ProbeTransientError

logger = logging.getLogger(__name__)

RECORD_TYPES = ("A", "AAAA", "MX", "NS")

# Per-record-type lookup results
_NXDOMAIN = "nxdomain"
_NO_ANSWER = "no_answer"
_TIMEOUT = "timeout"
_FAILED = "failed"


class DnsProbe(ProbeClient):
    """
    DNS-based probe.

    Classification:
    - any record found, or NOERROR with no answer -> Taken (the name exists)
    - NXDOMAIN for every record type -> Available
    - otherwise (timeouts, SERVFAIL) -> transient error
    """

    def __init__(
        self,
        lifetime: Optional[float] = None,
        nameservers: Optional[list[str]] = None,
        resolver: Optional[dns.asyncresolver.Resolver] = None,
    ):
        """
        Initialize DNS probe.

        Args:
            lifetime: Seconds per lookup (defaults to config)
            nameservers: Override system nameservers
            resolver: Pre-built resolver (mostly for tests)
        """
        self._lifetime = lifetime or config.probe.dns_lifetime_seconds
        self._nameservers = nameservers
        self._resolver = resolver

    def _get_resolver(self) -> dns.asyncresolver.Resolver:
        """Lazy initialization of the resolver."""
        if self._resolver is None:
            resolver = dns.asyncresolver.Resolver()
            resolver.timeout = self._lifetime
            resolver.lifetime = self._lifetime
            if self._nameservers:
                resolver.nameservers = self._nameservers
            self._resolver = resolver
        return self._resolver

    @property
    def name(self) -> str:
        return "dns"

    async def check(self, domain: str) -> Union[Available, Taken]:
        domain = domain.lower().strip()
        if not is_valid_full_domain(domain):
            raise MalformedDomainError(f"Invalid domain format: {domain}")

        resolver = self._get_resolver()
        lookups = await asyncio.gather(
            *[self._lookup(resolver, domain, rdtype) for rdtype in RECORD_TYPES]
        )

        records = []
        outcomes = set()
        for rdtype, (outcome, values) in zip(RECORD_TYPES, lookups):
            if values:
                records.append(f"{rdtype}: {', '.join(values)}")
            else:
                outcomes.add(outcome)

        if records or _NO_ANSWER in outcomes:
            return Taken(method=self.name, records=tuple(records))

        if outcomes == {_NXDOMAIN}:
            return Available(method=self.name)

        if _TIMEOUT in outcomes and _NXDOMAIN not in outcomes:
            raise ProbeTimeout(f"DNS lookup timeout after {self._lifetime}s")

        # NXDOMAIN on some types, failures on others: not conclusive
        raise ProbeTransientError("Network error during DNS lookup")

    async def _lookup(
        self,
        resolver: dns.asyncresolver.Resolver,
        domain: str,
        rdtype: str,
    ) -> tuple[Optional[str], list[str]]:
        """Resolve one record type, folding DNS exceptions into a status tag."""
        try:
            answer = await resolver.resolve(domain, rdtype)
            return None, [rr.to_text() for rr in answer]
        except dns.resolver.NXDOMAIN:
            return _NXDOMAIN, []
        except dns.resolver.NoAnswer:
            return _NO_ANSWER, []
        except dns.exception.Timeout:
            return _TIMEOUT, []
        except dns.exception.DNSException as e:
            logger.debug(f"{rdtype} lookup for {domain} failed: {e}")
            return _FAILED, []
