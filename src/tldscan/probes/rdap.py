"""
RDAP probe

Uses free RDAP (Registration Data Access Protocol) servers. No API keys
required. RDAP is the modern, IETF-standard replacement for WHOIS.

HOW IT WORKS:
1. Look up the RDAP server for the TLD using IANA's bootstrap file
   (fetched once per probe instance)
2. Query the RDAP server for domain registration data
3. If we get data back, domain is registered. If 404, it is available.
"""

import asyncio
import logging
from typing import Optional, Union

import httpx

from ..config import config
from ..models import Available, Taken
from ..validation import is_valid_full_domain
from .base import (
    MalformedDomainError, ProbeClient, ProbeTerminalError, ProbeTimeout,
    ProbeTransientError, RateLimitError, UnsupportedTldError,
)

logger = logging.getLogger(__name__)


def parse_bootstrap(data: dict) -> dict[str, str]:
    """
    Build a TLD -> RDAP server mapping from IANA's bootstrap document.

    Args:
        data: Parsed dns.json

    Returns:
        dict mapping bare TLD ("com") -> server base URL without trailing slash
    """
    tld_map = {}
    for entry in data.get("services", []):
        tlds = entry[0]
        servers = entry[1]
        if servers:
            server = servers[0].rstrip("/")
            for tld in tlds:
                tld_map[tld.lower()] = server
    return tld_map


def parse_registration(data: dict) -> dict:
    """Pull registrar and key dates out of an RDAP domain object."""
    details = {"registrar": None, "expiration": None, "created": None}

    for entity in data.get("entities", []):
        if "registrar" in entity.get("roles", []):
            # Try different places the name might be
            vcard = entity.get("vcardArray", [])
            if len(vcard) > 1:
                for item in vcard[1]:
                    if item[0] == "fn":
                        details["registrar"] = item[3]
                        break
            if not details["registrar"]:
                details["registrar"] = entity.get("handle")
            break

    for event in data.get("events", []):
        action = event.get("eventAction")
        date = event.get("eventDate", "")[:10]  # Just the date part
        if action == "expiration":
            details["expiration"] = date
        elif action == "registration":
            details["created"] = date

    return details


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


class RdapProbe(ProbeClient):
    """
    RDAP-based probe.

    Authoritative for TLDs that publish an RDAP server; raises
    UnsupportedTldError for the rest.
    """

    def __init__(
        self,
        bootstrap_url: Optional[str] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        servers: Optional[dict[str, str]] = None,
    ):
        """
        Initialize RDAP probe.

        Args:
            bootstrap_url: IANA bootstrap document URL (defaults to config)
            timeout: HTTP timeout in seconds (defaults to config)
            user_agent: User-Agent header
            client: Pre-built httpx client (e.g. with a MockTransport)
            servers: Pre-resolved TLD -> server map, skips the bootstrap fetch
        """
        self._bootstrap_url = bootstrap_url or config.probe.rdap_bootstrap_url
        self._timeout = timeout or config.probe.timeout_seconds
        self._user_agent = user_agent or config.probe.user_agent
        self._client = client
        self._servers = servers
        self._bootstrap_lock = asyncio.Lock()

    def _get_client(self) -> httpx.AsyncClient:
        """Lazy initialization of HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "User-Agent": self._user_agent,
                    "Accept": "application/rdap+json, application/json",
                },
                timeout=self._timeout,
                follow_redirects=True,
            )
        return self._client

    @property
    def name(self) -> str:
        return "rdap"

    async def get_servers(self) -> dict[str, str]:
        """Fetch (once) and return the TLD -> RDAP server map."""
        if self._servers is not None:
            return self._servers

        async with self._bootstrap_lock:
            if self._servers is None:
                client = self._get_client()
                try:
                    response = await client.get(self._bootstrap_url)
                    response.raise_for_status()
                    self._servers = parse_bootstrap(response.json())
                except httpx.TimeoutException as e:
                    raise ProbeTimeout(f"RDAP bootstrap timeout: {e}")
                except httpx.HTTPError as e:
                    raise ProbeTransientError(f"Could not fetch RDAP bootstrap: {e}")
                logger.debug(f"Loaded RDAP bootstrap with {len(self._servers)} TLDs")
        return self._servers

    async def get_server(self, domain: str) -> Optional[str]:
        """RDAP server URL for a domain's TLD, or None if unsupported."""
        tld = domain.lower().rsplit(".", 1)[-1]
        servers = await self.get_servers()
        return servers.get(tld)

    async def check(self, domain: str) -> Union[Available, Taken]:
        domain = domain.lower().strip()
        if not is_valid_full_domain(domain) or "." not in domain:
            raise MalformedDomainError(f"Invalid domain format: {domain}")

        server = await self.get_server(domain)
        if not server:
            raise UnsupportedTldError(f"No RDAP server found for TLD .{domain.rsplit('.', 1)[-1]}")

        client = self._get_client()
        try:
            response = await client.get(f"{server}/domain/{domain}")
        except httpx.TimeoutException as e:
            raise ProbeTimeout(f"RDAP lookup timeout for {domain}: {e}")
        except httpx.TransportError as e:
            raise ProbeTransientError(f"Connection error: {e}")

        if response.status_code == 404:
            return Available(method=self.name)
        if response.status_code == 429:
            raise RateLimitError(retry_after=_retry_after(response))
        if response.status_code >= 500:
            raise ProbeTransientError(f"HTTP {response.status_code}: {response.reason_phrase}")
        if response.status_code >= 400:
            raise ProbeTerminalError(f"HTTP {response.status_code}: {response.reason_phrase}")

        try:
            details = parse_registration(response.json())
        except ValueError:
            # Registered, but the body isn't usable JSON
            details = {}

        return Taken(method=self.name, **details)

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
