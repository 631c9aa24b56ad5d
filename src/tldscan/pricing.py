"""
Indicative domain pricing

Best-effort: pricing never decides availability. Sources are queried in
parallel and the best quote wins under a configurable selection policy.
Prices are typical market rates from major registrars (2024 data), in USD.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from functools import reduce
from typing import Optional, Sequence

from .config import config
from .models import PriceQuote, Pricing

logger = logging.getLogger(__name__)


class PricingUnavailable(Exception):
    """No source could price the domain. Never fatal to a check."""
    pass


class SelectionPolicy(str, Enum):
    """Which quote counts as the best price."""
    FIRST_YEAR = "first_year"  # lowest first-year price
    TOTAL = "total"  # lowest first year + one renewal


NAMECHEAP_URL = "https://www.namecheap.com"

STANDARD_PRICES: dict[str, Pricing] = {
    ".com": Pricing(Decimal("8.99"), Decimal("14.99"), "Namecheap", NAMECHEAP_URL,
                    notes="Most popular and trusted extension"),
    ".net": Pricing(Decimal("10.99"), Decimal("15.99"), "Namecheap", NAMECHEAP_URL,
                    notes="Good alternative to .com"),
    ".org": Pricing(Decimal("9.99"), Decimal("14.99"), "Namecheap", NAMECHEAP_URL,
                    notes="Ideal for organizations and nonprofits"),
    ".ai": Pricing(Decimal("79.99"), Decimal("89.99"), "Namecheap", NAMECHEAP_URL, is_premium=True,
                   notes="Popular for AI and tech companies"),
    ".dev": Pricing(Decimal("12.99"), Decimal("17.99"), "Google Domains", "https://domains.google.com",
                    notes="Perfect for developers and tech projects"),
    ".io": Pricing(Decimal("49.99"), Decimal("59.99"), "Namecheap", NAMECHEAP_URL, is_premium=True,
                   notes="Popular with startups and tech companies"),
    ".co": Pricing(Decimal("24.99"), Decimal("32.99"), "Namecheap", NAMECHEAP_URL,
                   notes="Short alternative to .com"),
}

# Registrar -> (first-year markup, renewal markup, url) relative to the standard table
REGISTRAR_MARKUPS = {
    "Namecheap": (Decimal("0"), Decimal("0"), NAMECHEAP_URL),
    "GoDaddy": (Decimal("2"), Decimal("3"), "https://www.godaddy.com"),
    "Google Domains": (Decimal("1"), Decimal("1"), "https://domains.google.com"),
}


def tld_of(domain: str) -> str:
    return "." + domain.lower().rsplit(".", 1)[-1]


class PricingSource(ABC):
    """Something that can quote a price for a domain."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def quotes(self, domain: str) -> list[PriceQuote]:
        """
        Quote prices for a domain.

        Returns:
            Zero or more quotes; empty means "no pricing available"
        """
        pass


class StaticPricingSource(PricingSource):
    """Built-in per-TLD price table."""

    def __init__(self, table: Optional[dict[str, Pricing]] = None):
        self.table = STANDARD_PRICES if table is None else table

    @property
    def name(self) -> str:
        return "static"

    async def quotes(self, domain: str) -> list[PriceQuote]:
        pricing = self.table.get(tld_of(domain))
        return [PriceQuote(source=self.name, pricing=pricing)] if pricing else []


class RegistrarComparisonSource(PricingSource):
    """Per-registrar quotes derived from the standard table."""

    def __init__(self, table: Optional[dict[str, Pricing]] = None):
        self.table = STANDARD_PRICES if table is None else table

    @property
    def name(self) -> str:
        return "comparison"

    async def quotes(self, domain: str) -> list[PriceQuote]:
        base = self.table.get(tld_of(domain))
        if base is None:
            return []

        return [
            PriceQuote(
                source=self.name,
                pricing=replace(
                    base,
                    first_year_price=base.first_year_price + first_markup,
                    renewal_price=base.renewal_price + renewal_markup,
                    registrar=registrar,
                    registrar_url=url,
                ),
            )
            for registrar, (first_markup, renewal_markup, url) in REGISTRAR_MARKUPS.items()
        ]


@dataclass
class MockPricingSource(PricingSource):
    """Fixed quotes for tests; can be told to fail or stall."""

    prices: dict[str, Pricing] = field(default_factory=dict)  # keyed by TLD or full domain
    error: Optional[Exception] = None
    delay_seconds: float = 0.0
    _name: str = "mock"

    @property
    def name(self) -> str:
        return self._name

    async def quotes(self, domain: str) -> list[PriceQuote]:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        pricing = self.prices.get(domain.lower()) or self.prices.get(tld_of(domain))
        return [PriceQuote(source=self.name, pricing=pricing)] if pricing else []


class PricingResolver:
    """
    Resolves the best indicative price for an available domain.

    Queries every source, ignores the ones that fail, and folds the
    surviving quotes down to one.
    """

    def __init__(
        self,
        sources: Optional[Sequence[PricingSource]] = None,
        policy: Optional[SelectionPolicy] = None,
        premium_above: Optional[Decimal] = None,
    ):
        """
        Initialize resolver.

        Args:
            sources: Pricing sources (defaults to the static table)
            policy: Quote selection policy (defaults to config)
            premium_above: First-year price that marks a domain premium
        """
        self.sources = list(sources) if sources is not None else [StaticPricingSource()]
        self.policy = SelectionPolicy(policy or config.pricing.policy)
        self.premium_above = config.pricing.premium_above if premium_above is None else premium_above

    def _cost(self, quote: PriceQuote) -> Decimal:
        if self.policy == SelectionPolicy.TOTAL:
            return quote.pricing.total_cost(2)
        return quote.pricing.first_year_price

    def select(self, quotes: Sequence[PriceQuote]) -> PriceQuote:
        """Pick the cheapest quote; ties keep the earlier one."""
        if not quotes:
            raise PricingUnavailable("No pricing quotes to choose from")
        return reduce(lambda best, q: q if self._cost(q) < self._cost(best) else best, quotes)

    async def quotes(self, domain: str) -> list[PriceQuote]:
        """All quotes from all sources, in source order."""
        results = await asyncio.gather(
            *[source.quotes(domain) for source in self.sources],
            return_exceptions=True,
        )

        collected = []
        for source, result in zip(self.sources, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                logger.warning(f"Pricing source {source.name} failed for {domain}: {result}")
                continue
            collected.extend(result)
        return collected

    async def resolve(self, domain: str) -> Pricing:
        """
        Best price for a domain.

        Raises:
            PricingUnavailable: If no source produced a quote
        """
        quotes = await self.quotes(domain)
        if not quotes:
            raise PricingUnavailable(f"No pricing available for {domain}")

        best = self.select(quotes).pricing
        if not best.is_premium and best.first_year_price > self.premium_above:
            best = replace(best, is_premium=True)
        return best


async def get_domain_pricing(domain: str, resolver: Optional[PricingResolver] = None) -> Optional[Pricing]:
    """Best price for one domain, or None when nothing can price it."""
    resolver = resolver or PricingResolver()
    try:
        return await resolver.resolve(domain)
    except PricingUnavailable:
        return None


async def get_batch_pricing(
    domains: Sequence[str],
    resolver: Optional[PricingResolver] = None,
) -> dict[str, Pricing]:
    """Best prices for many domains; unpriceable domains are left out."""
    resolver = resolver or PricingResolver()
    prices = await asyncio.gather(*[get_domain_pricing(d, resolver) for d in domains])
    return {d: p for d, p in zip(domains, prices) if p is not None}
