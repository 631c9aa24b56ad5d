"""
Availability probes for tldscan

All probes share one interface: check(domain) -> Available | Taken, raising
a classified ProbeError on failure.
Probes: DNS (dnspython), RDAP (httpx), WHOIS (python-whois), Hybrid, Mock
"""

from .base import (
    ProbeClient, ProbeError, ProbeTransientError, ProbeTimeout, RateLimitError,
    ProbeTerminalError, MalformedDomainError, UnsupportedTldError,
)
from .dns_lookup import DnsProbe
from .rdap import RdapProbe
from .whois_lookup import WhoisProbe
from .hybrid import HybridProbe
from .mock import MockProbe

__all__ = [
    # Base classes and errors
    "ProbeClient",
    "ProbeError",
    "ProbeTransientError",
    "ProbeTimeout",
    "RateLimitError",
    "ProbeTerminalError",
    "MalformedDomainError",
    "UnsupportedTldError",
    # Probes
    "DnsProbe",
    "RdapProbe",
    "WhoisProbe",
    "HybridProbe",
    "MockProbe",
    "get_probe",
]


def get_probe(name: str, **kwargs) -> ProbeClient:
    """
    Factory function to get a probe by name.

    Args:
        name: Probe name ('dns', 'rdap', 'whois', 'hybrid', 'mock')
        **kwargs: Probe-specific options

    Returns:
        Configured ProbeClient instance

    Raises:
        ValueError: If probe name is unknown
    """
    probes = {
        "dns": DnsProbe,
        "rdap": RdapProbe,
        "whois": WhoisProbe,
        "hybrid": HybridProbe,
        "mock": MockProbe,
    }

    if name not in probes:
        raise ValueError(f"Unknown probe: {name}. Valid options: {list(probes.keys())}")

    return probes[name](**kwargs)
