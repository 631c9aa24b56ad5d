"""
tldscan configuration

All magic numbers, timeouts, retry settings and pricing thresholds live here.
Environment variables override defaults for deployment flexibility.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal, Optional


@dataclass
class ProbeConfig:
    """Which availability source we hit and how long we wait on it"""
    method: Literal["dns", "rdap", "whois", "hybrid", "mock"] = os.getenv("TLDSCAN_PROBE", "hybrid")
    timeout_seconds: float = float(os.getenv("TLDSCAN_PROBE_TIMEOUT", "5.0"))
    dns_lifetime_seconds: float = float(os.getenv("TLDSCAN_DNS_LIFETIME", "3.0"))
    rdap_bootstrap_url: str = os.getenv("TLDSCAN_RDAP_BOOTSTRAP", "https://data.iana.org/rdap/dns.json")
    user_agent: str = os.getenv("TLDSCAN_USER_AGENT", "tldscan/0.1 (domain availability checker)")
    # Keep below timeout_seconds so a slow side can't cost the other side's answer
    hybrid_timeout_seconds: float = float(os.getenv("TLDSCAN_HYBRID_TIMEOUT", "4.0"))
    whois_fallback: bool = os.getenv("TLDSCAN_WHOIS_FALLBACK", "true").lower() == "true"
    whois_delay_seconds: float = float(os.getenv("TLDSCAN_WHOIS_DELAY", "1.0"))  # between WHOIS queries


@dataclass
class RetryConfig:
    """Retry/backoff between probe attempts"""
    max_retries: int = int(os.getenv("TLDSCAN_MAX_RETRIES", "2"))
    base_delay_seconds: float = float(os.getenv("TLDSCAN_RETRY_DELAY", "0.1"))
    backoff: Literal["fixed", "exponential"] = os.getenv("TLDSCAN_RETRY_BACKOFF", "fixed")
    max_delay_seconds: float = float(os.getenv("TLDSCAN_RETRY_MAX_DELAY", "2.0"))


@dataclass
class BatchConfig:
    """Fan-out behavior for one base domain"""
    max_concurrency: int = int(os.getenv("TLDSCAN_MAX_CONCURRENCY", "0"))  # 0 = unbounded
    batch_timeout_seconds: float = float(os.getenv("TLDSCAN_BATCH_TIMEOUT", "30.0"))
    pricing_timeout_seconds: float = float(os.getenv("TLDSCAN_PRICING_TIMEOUT", "2.0"))

    @property
    def concurrency_limit(self) -> Optional[int]:
        """Concurrency cap, or None when unbounded."""
        return self.max_concurrency if self.max_concurrency > 0 else None


@dataclass
class PricingConfig:
    """Price selection and premium thresholds"""
    policy: Literal["first_year", "total"] = os.getenv("TLDSCAN_PRICE_POLICY", "first_year")
    premium_above: Decimal = Decimal(os.getenv("TLDSCAN_PREMIUM_ABOVE", "50.00"))  # USD


@dataclass
class Config:
    """Master config, import this"""
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)

    # Quick presets
    @classmethod
    def fast_mode(cls) -> "Config":
        """For development/testing: short timeouts, barely any backoff"""
        cfg = cls()
        cfg.probe.timeout_seconds = 1.0
        cfg.probe.hybrid_timeout_seconds = 0.8
        cfg.probe.whois_delay_seconds = 0.0
        cfg.retry.base_delay_seconds = 0.01
        cfg.retry.max_delay_seconds = 0.05
        cfg.batch.batch_timeout_seconds = 5.0
        cfg.batch.pricing_timeout_seconds = 0.5
        return cfg


# Singleton
config = Config()
