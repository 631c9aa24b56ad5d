"""
tldscan: asynchronous domain availability checker across TLDs.

Probes every TLD for a base name in parallel (DNS and RDAP), retries
transient failures, and attaches indicative pricing to available domains.
"""

__version__ = "0.1.0"

from .models import (
    Available,
    Taken,
    Failed,
    FailureKind,
    ProbeOutcome,
    ProbeRequest,
    Pricing,
    PriceQuote,
    CheckStatus,
    DomainResult,
    CheckReport,
)
from .config import config
from .retry import RetryPolicy, BackoffStrategy
from .pricing import (
    PricingResolver,
    PricingUnavailable,
    SelectionPolicy,
    StaticPricingSource,
    RegistrarComparisonSource,
    get_domain_pricing,
    get_batch_pricing,
)
from .orchestrator import CheckOrchestrator, CheckOptions, DEFAULT_TLDS, quick_check
from .validation import ValidationError, InvalidRequest, validate_domain_name

__all__ = [
    # Models
    "Available",
    "Taken",
    "Failed",
    "FailureKind",
    "ProbeOutcome",
    "ProbeRequest",
    "Pricing",
    "PriceQuote",
    "CheckStatus",
    "DomainResult",
    "CheckReport",
    # Config
    "config",
    # Retry
    "RetryPolicy",
    "BackoffStrategy",
    # Pricing
    "PricingResolver",
    "PricingUnavailable",
    "SelectionPolicy",
    "StaticPricingSource",
    "RegistrarComparisonSource",
    "get_domain_pricing",
    "get_batch_pricing",
    # Orchestrator
    "CheckOrchestrator",
    "CheckOptions",
    "DEFAULT_TLDS",
    "quick_check",
    # Validation
    "ValidationError",
    "InvalidRequest",
    "validate_domain_name",
]
