"""
Hybrid probe - DNS and registry data in parallel

The registry lookup (RDAP, or WHOIS for TLDs without an RDAP server) is
authoritative when it answers; DNS covers everything else. Both sides share
one deadline, so a registry that hangs can't take an answered DNS lookup
down with it.
"""

import asyncio
import logging
from typing import Optional, Union

from ..config import config
from ..models import Available, Taken
from .base import (
    ProbeClient, ProbeError, ProbeTerminalError, ProbeTimeout, ProbeTransientError, UnsupportedTldError,
)
from .dns_lookup import DnsProbe
from .rdap import RdapProbe
from .whois_lookup import WhoisProbe

logger = logging.getLogger(__name__)


class HybridProbe(ProbeClient):
    """Runs DNS and RDAP/WHOIS concurrently and combines their answers."""

    def __init__(
        self,
        dns_probe: Optional[ProbeClient] = None,
        rdap_probe: Optional[ProbeClient] = None,
        whois_probe: Optional[ProbeClient] = None,
        whois_fallback: Optional[bool] = None,
        concurrent_timeout: Optional[float] = None,
    ):
        """
        Initialize hybrid probe.

        Args:
            dns_probe: DNS side (defaults to DnsProbe)
            rdap_probe: Registry side (defaults to RdapProbe)
            whois_probe: Used when RDAP has no server for the TLD
            whois_fallback: Build a WhoisProbe when none is given (defaults to config)
            concurrent_timeout: Seconds both sides get before the slow one is
                dropped; keep it below the retry policy's attempt timeout
        """
        if whois_fallback is None:
            whois_fallback = config.probe.whois_fallback
        if whois_probe is None and whois_fallback:
            whois_probe = WhoisProbe()

        self.dns_probe = dns_probe or DnsProbe()
        self.rdap_probe = rdap_probe or RdapProbe()
        self.whois_probe = whois_probe
        self.concurrent_timeout = concurrent_timeout or config.probe.hybrid_timeout_seconds

    @property
    def name(self) -> str:
        return "hybrid"

    @property
    def registry_label(self) -> str:
        return "RDAP" if self.whois_probe is None else "RDAP/WHOIS"

    async def _registry_check(self, domain: str) -> Union[Available, Taken]:
        try:
            return await self.rdap_probe.check(domain)
        except UnsupportedTldError as e:
            if self.whois_probe is None:
                raise
            logger.debug(f"{e}; falling back to WHOIS for {domain}")
            return await self.whois_probe.check(domain)

    def _settle(self, task: asyncio.Task, pending: set, label: str):
        """A finished task's answer or exception; a dropped one counts as a timeout."""
        if task in pending or task.cancelled():
            return ProbeTimeout(f"{label} lookup timeout after {self.concurrent_timeout:g}s")
        if task.exception() is not None:
            return task.exception()
        return task.result()

    async def check(self, domain: str) -> Union[Available, Taken]:
        dns_task = asyncio.ensure_future(self.dns_probe.check(domain))
        registry_task = asyncio.ensure_future(self._registry_check(domain))
        tasks = (dns_task, registry_task)

        pending = set()
        try:
            _, pending = await asyncio.wait(tasks, timeout=self.concurrent_timeout)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        dns_result = self._settle(dns_task, pending, "DNS")
        registry_result = self._settle(registry_task, pending, self.registry_label)

        # Anything that isn't a ProbeError is a bug; let it surface
        for result in (dns_result, registry_result):
            if isinstance(result, BaseException) and not isinstance(result, ProbeError):
                raise result

        if not isinstance(registry_result, ProbeError):
            note = f"DNS query failed: {dns_result}" if isinstance(dns_result, ProbeError) else None
            return self._merge(registry_result, dns_result, note)

        if not isinstance(dns_result, ProbeError):
            logger.debug(f"{self.registry_label} failed for {domain}, using DNS answer: {registry_result}")
            return self._merge(dns_result, None, f"{self.registry_label} query failed: {registry_result}")

        # Both failed
        reason = f"DNS query failed: {dns_result}; {self.registry_label} query failed: {registry_result}"
        if isinstance(dns_result, ProbeTerminalError) and isinstance(registry_result, ProbeTerminalError):
            raise ProbeTerminalError(reason)
        if isinstance(dns_result, ProbeTimeout) and isinstance(registry_result, ProbeTimeout):
            raise ProbeTimeout(f"Both lookups timed out: {reason}")
        raise ProbeTransientError(reason)

    def _merge(self, primary, secondary, note: Optional[str] = None) -> Union[Available, Taken]:
        """Stamp the hybrid method on the primary answer, borrowing DNS records."""
        if isinstance(primary, Available):
            return Available(method=self.name, note=note)
        records = primary.records
        if not records and isinstance(secondary, Taken):
            records = secondary.records
        return Taken(
            method=self.name,
            registrar=primary.registrar,
            expiration=primary.expiration,
            created=primary.created,
            records=records,
            note=note,
        )

    async def close(self):
        await self.dns_probe.close()
        await self.rdap_probe.close()
        if self.whois_probe is not None:
            await self.whois_probe.close()
