"""
Core data model for availability checks.

Probe outcomes are a closed union of three frozen dataclasses
(Available / Taken / Failed). Everything the orchestrator hands back
(DomainResult, CheckReport) is immutable once built.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class CheckStatus(str, Enum):
    """Final classification of one domain."""
    AVAILABLE = "available"
    TAKEN = "taken"
    ERROR = "error"


class FailureKind(str, Enum):
    """Why a probe ended in a Failed outcome."""
    TIMEOUT = "timeout"
    TRANSIENT = "transient"
    RATE_LIMITED = "rate_limited"
    TERMINAL = "terminal"
    VALIDATION = "validation"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class ProbeRequest:
    """One probe to run: a full domain plus its timeout/retry budget."""
    full_domain: str
    tld: str
    timeout: float
    max_retries: int = 0

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")


@dataclass(frozen=True)
class Available:
    """The domain is not registered."""
    method: str
    elapsed: float = 0.0
    attempts: int = 1
    note: Optional[str] = None  # e.g. one side of a hybrid lookup failed


@dataclass(frozen=True)
class Taken:
    """The domain is registered."""
    method: str
    elapsed: float = 0.0
    attempts: int = 1
    registrar: Optional[str] = None
    expiration: Optional[str] = None
    created: Optional[str] = None
    records: tuple[str, ...] = ()
    note: Optional[str] = None


@dataclass(frozen=True)
class Failed:
    """No definitive answer could be obtained."""
    reason: str
    kind: FailureKind
    method: str
    elapsed: float = 0.0
    attempts: int = 1


ProbeOutcome = Union[Available, Taken, Failed]


def _money(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01")))


@dataclass(frozen=True)
class Pricing:
    """Indicative registration pricing for an available domain (USD)."""
    first_year_price: Decimal
    renewal_price: Decimal
    registrar: str
    registrar_url: str
    is_premium: bool = False
    notes: Optional[str] = None

    def __post_init__(self):
        if self.first_year_price < 0 or self.renewal_price < 0:
            raise ValueError("prices must be >= 0")

    def total_cost(self, years: int = 2) -> Decimal:
        """First year plus (years - 1) renewals."""
        if years < 1:
            raise ValueError("years must be >= 1")
        return self.first_year_price + (years - 1) * self.renewal_price

    def to_dict(self) -> dict:
        data = {
            "firstYearPrice": _money(self.first_year_price),
            "renewalPrice": _money(self.renewal_price),
            "registrar": self.registrar,
            "registrarUrl": self.registrar_url,
            "isPremium": self.is_premium,
        }
        if self.notes:
            data["notes"] = self.notes
        return data


@dataclass(frozen=True)
class PriceQuote:
    """A single pricing source's answer for one domain."""
    source: str
    pricing: Pricing


@dataclass(frozen=True)
class DomainResult:
    """Result for one requested TLD."""
    domain: str
    tld: str
    status: CheckStatus
    check_method: str
    execution_time: float = 0.0  # seconds
    pricing: Optional[Pricing] = None
    error: Optional[str] = None
    note: Optional[str] = None
    attempts: int = 0
    registrar: Optional[str] = None
    expiration: Optional[str] = None

    @property
    def is_available(self) -> bool:
        return self.status == CheckStatus.AVAILABLE

    @property
    def execution_time_ms(self) -> int:
        return int(round(self.execution_time * 1000))

    def to_dict(self) -> dict:
        data = {
            "domain": self.domain,
            "tld": self.tld,
            "status": self.status.value,
            "checkMethod": self.check_method,
            "executionTime": self.execution_time_ms,
            "retryCount": max(0, self.attempts - 1),
        }
        if self.pricing is not None:
            data["pricing"] = self.pricing.to_dict()
        if self.error is not None:
            data["error"] = self.error
        if self.note is not None:
            data["note"] = self.note
        if self.registrar is not None:
            data["registrar"] = self.registrar
        if self.expiration is not None:
            data["expiration"] = self.expiration
        return data


@dataclass(frozen=True)
class CheckReport:
    """Aggregate of one orchestrated check, results in TLD order."""
    base_domain: str
    results: tuple[DomainResult, ...] = field(default_factory=tuple)
    execution_time: float = 0.0  # seconds, whole batch

    @property
    def available(self) -> list[DomainResult]:
        return [r for r in self.results if r.status == CheckStatus.AVAILABLE]

    @property
    def taken(self) -> list[DomainResult]:
        return [r for r in self.results if r.status == CheckStatus.TAKEN]

    @property
    def errors(self) -> list[DomainResult]:
        return [r for r in self.results if r.status == CheckStatus.ERROR]

    @property
    def summary(self) -> dict:
        return {
            "total": len(self.results),
            "available": len(self.available),
            "taken": len(self.taken),
            "errors": len(self.errors),
        }

    @property
    def fastest_check_time(self) -> Optional[float]:
        """Quickest non-error check in seconds, None if every check failed."""
        times = [r.execution_time for r in self.results if r.status != CheckStatus.ERROR]
        return min(times) if times else None

    @property
    def average_check_time(self) -> Optional[float]:
        """Mean non-error check time in seconds, None if every check failed."""
        times = [r.execution_time for r in self.results if r.status != CheckStatus.ERROR]
        return sum(times) / len(times) if times else None

    def by_domain(self, domain: str) -> Optional[DomainResult]:
        domain = domain.lower()
        for result in self.results:
            if result.domain == domain:
                return result
        return None

    def to_dict(self) -> dict:
        return {
            "baseDomain": self.base_domain,
            "results": [r.to_dict() for r in self.results],
            "executionTime": int(round(self.execution_time * 1000)),
            "summary": self.summary,
        }
