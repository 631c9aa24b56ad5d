"""
Domain Check Orchestrator

Fans one base domain out across a set of TLDs:
1. One concurrent task per TLD (optionally capped)
2. Each task runs the retry-wrapped probe
3. Available domains get best-effort pricing
4. Results are collected in TLD order into a single CheckReport

A TLD that fails only ever produces an error result for itself; the only
thing that rejects a whole batch is a malformed request.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .config import config
from .models import (
    Available, CheckReport, CheckStatus, DomainResult, Failed, FailureKind,
    Pricing, ProbeOutcome, ProbeRequest, Taken,
)
from .pricing import PricingResolver, PricingUnavailable
from .probes import ProbeClient, MockProbe, get_probe
from .retry import RetryPolicy
from .validation import (
    InvalidRequest, ValidationError, is_valid_tld, normalize_tld, sanitize,
    split_domain, validate_domain_name,
)

logger = logging.getLogger(__name__)

DEFAULT_TLDS = (".com", ".net", ".org", ".ai", ".dev", ".io", ".co")


@dataclass(frozen=True)
class CheckOptions:
    """Per-request knobs; anything left alone comes from config."""
    concurrency_limit: Optional[int] = field(default_factory=lambda: config.batch.concurrency_limit)
    per_probe_timeout: float = field(default_factory=lambda: config.probe.timeout_seconds)
    max_retries: int = field(default_factory=lambda: config.retry.max_retries)
    batch_timeout: Optional[float] = field(default_factory=lambda: config.batch.batch_timeout_seconds)
    pricing_timeout: float = field(default_factory=lambda: config.batch.pricing_timeout_seconds)
    include_pricing: bool = True

    def validate(self):
        """Raise InvalidRequest if any option is out of range."""
        if self.concurrency_limit is not None and self.concurrency_limit < 1:
            raise InvalidRequest("concurrency_limit must be at least 1")
        if self.per_probe_timeout <= 0:
            raise InvalidRequest("per_probe_timeout must be positive")
        if self.max_retries < 0:
            raise InvalidRequest("max_retries must be >= 0")
        if self.batch_timeout is not None and self.batch_timeout <= 0:
            raise InvalidRequest("batch_timeout must be positive")
        if self.pricing_timeout <= 0:
            raise InvalidRequest("pricing_timeout must be positive")


class CheckOrchestrator:
    """
    Main orchestrator for availability checks.

    Owns every DomainResult and the CheckReport it builds; nothing is
    shared between concurrent batches except the (stateless) probe,
    retry policy and pricing resolver.
    """

    def __init__(
        self,
        probe: Optional[ProbeClient] = None,
        pricing: Optional[PricingResolver] = None,
        retry_policy: Optional[RetryPolicy] = None,
        use_mock: bool = False,
    ):
        """
        Initialize orchestrator.

        Args:
            probe: Availability probe (defaults to the configured method)
            pricing: Pricing resolver (defaults to the static price table)
            retry_policy: Retry/backoff policy (defaults to config)
            use_mock: Force a MockProbe
        """
        if use_mock:
            probe = MockProbe()
        elif probe is None:
            probe = get_probe(config.probe.method)

        self.probe = probe
        self.pricing = pricing or PricingResolver()
        self.retry_policy = retry_policy or RetryPolicy()

    async def __aenter__(self) -> "CheckOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        await self.probe.close()

    async def check(
        self,
        base_domain: str,
        tlds: Sequence[str],
        options: Optional[CheckOptions] = None,
    ) -> CheckReport:
        """
        Check a base domain across a set of TLDs.

        Args:
            base_domain: Domain without TLD (e.g. "example"), pre-validated
            tlds: TLDs in the order results should come back (".com", ...)
            options: Concurrency/timeout/retry overrides

        Returns:
            CheckReport with exactly one result per TLD, in TLD order

        Raises:
            InvalidRequest: If tlds is empty or options are out of range
            ValidationError: If base_domain or a TLD isn't even a string
        """
        options = options or CheckOptions()
        options.validate()

        if isinstance(tlds, str) or not tlds:
            raise InvalidRequest("At least one TLD is required")
        if not isinstance(base_domain, str):
            raise ValidationError("baseDomain must be a string")
        for tld in tlds:
            if not isinstance(tld, str) or not tld.strip():
                raise InvalidRequest(f"Invalid TLD entry: {tld!r}")

        base = sanitize(base_domain)
        validation = validate_domain_name(base)
        if not validation.is_valid:
            logger.warning(f"Base domain {base_domain!r} failed validation: {validation.error_message}")

        requests = [
            ProbeRequest(
                full_domain=f"{base}{normalize_tld(tld)}",
                tld=normalize_tld(tld),
                timeout=options.per_probe_timeout,
                max_retries=options.max_retries,
            )
            for tld in tlds
        ]

        start = time.monotonic()
        # One slot per TLD index, each written exactly once
        slots: list[Optional[DomainResult]] = [None] * len(requests)
        semaphore = asyncio.Semaphore(options.concurrency_limit) if options.concurrency_limit else None

        async def run(index: int, request: ProbeRequest):
            if semaphore is None:
                slots[index] = await self._check_one(request, options, validation.error_message)
                return
            async with semaphore:
                slots[index] = await self._check_one(request, options, validation.error_message)

        tasks = [asyncio.create_task(run(i, r)) for i, r in enumerate(requests)]
        try:
            _, pending = await asyncio.wait(tasks, timeout=options.batch_timeout)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        if pending:
            logger.warning(
                f"Batch deadline of {options.batch_timeout}s hit for {base}; "
                f"cancelled {len(pending)} of {len(tasks)} checks"
            )

        for index, task in enumerate(tasks):
            if slots[index] is not None:
                continue
            if not task.cancelled() and task.exception() is not None:
                logger.error(f"Check for {requests[index].full_domain} crashed: {task.exception()!r}")
                reason = f"Unexpected error: {task.exception()}"
            else:
                reason = "timeout"
            slots[index] = DomainResult(
                domain=requests[index].full_domain,
                tld=requests[index].tld,
                status=CheckStatus.ERROR,
                check_method=self.probe.name,
                execution_time=time.monotonic() - start,
                error=reason,
            )

        report = CheckReport(
            base_domain=base,
            results=tuple(slots),
            execution_time=time.monotonic() - start,
        )
        logger.info(f"Checked {base} across {len(requests)} TLDs in {report.execution_time:.2f}s: {report.summary}")
        return report

    async def check_domain(self, domain: str, options: Optional[CheckOptions] = None) -> DomainResult:
        """
        Check one full domain ("example.com").

        Raises:
            ValidationError: If the domain has no TLD
        """
        name, tld = split_domain(domain)
        report = await self.check(name, [tld], options)
        return report.results[0]

    async def _check_one(
        self,
        request: ProbeRequest,
        options: CheckOptions,
        base_error: Optional[str],
    ) -> DomainResult:
        """Probe one domain (with retries), price it if available."""
        start = time.monotonic()

        if base_error is not None:
            outcome = Failed(
                reason=f"Invalid domain format: {base_error}",
                kind=FailureKind.VALIDATION,
                method=self.probe.name,
                attempts=0,
            )
        elif not is_valid_tld(request.tld):
            outcome = Failed(
                reason=f"Invalid TLD: {request.tld}",
                kind=FailureKind.VALIDATION,
                method=self.probe.name,
                attempts=0,
            )
        else:
            outcome = await self.retry_policy.execute(
                lambda: self.probe.check(request.full_domain),
                request.max_retries,
                request.timeout,
                method=self.probe.name,
            )

        return await self._to_result(request, outcome, options, start)

    async def _to_result(
        self,
        request: ProbeRequest,
        outcome: ProbeOutcome,
        options: CheckOptions,
        start: float,
    ) -> DomainResult:
        if isinstance(outcome, Available):
            pricing, pricing_note = await self._resolve_pricing(request.full_domain, options)
            notes = [n for n in (outcome.note, pricing_note) if n]
            return DomainResult(
                domain=request.full_domain,
                tld=request.tld,
                status=CheckStatus.AVAILABLE,
                check_method=outcome.method,
                execution_time=time.monotonic() - start,
                pricing=pricing,
                note="; ".join(notes) or None,
                attempts=outcome.attempts,
            )

        if isinstance(outcome, Taken):
            return DomainResult(
                domain=request.full_domain,
                tld=request.tld,
                status=CheckStatus.TAKEN,
                check_method=outcome.method,
                execution_time=time.monotonic() - start,
                note=outcome.note,
                attempts=outcome.attempts,
                registrar=outcome.registrar,
                expiration=outcome.expiration,
            )

        if isinstance(outcome, Failed):
            logger.warning(
                f"{request.full_domain}: {outcome.kind.value} failure after "
                f"{outcome.attempts} attempt(s): {outcome.reason}"
            )
            return DomainResult(
                domain=request.full_domain,
                tld=request.tld,
                status=CheckStatus.ERROR,
                check_method=outcome.method,
                execution_time=time.monotonic() - start,
                error=outcome.reason,
                attempts=outcome.attempts,
            )

        raise TypeError(f"Unhandled probe outcome: {outcome!r}")

    async def _resolve_pricing(
        self,
        domain: str,
        options: CheckOptions,
    ) -> tuple[Optional[Pricing], Optional[str]]:
        """Best-effort pricing: (pricing, None) or (None, note)."""
        if not options.include_pricing:
            return None, None

        try:
            pricing = await asyncio.wait_for(self.pricing.resolve(domain), options.pricing_timeout)
            return pricing, None
        except PricingUnavailable as e:
            return None, str(e)
        except asyncio.TimeoutError:
            logger.warning(f"Pricing lookup for {domain} timed out")
            return None, "Pricing lookup timed out"
        except Exception as e:
            # Pricing is optional
            logger.warning(f"Pricing lookup for {domain} failed: {e}")
            return None, f"Pricing unavailable: {e}"


# Convenience function for quick checks
async def quick_check(
    base_domain: str,
    tlds: Optional[Sequence[str]] = None,
    use_mock: bool = False,
    **option_overrides,
) -> CheckReport:
    """
    Run a check with minimal setup.

    Args:
        base_domain: Domain without TLD
        tlds: TLDs to check (defaults to DEFAULT_TLDS)
        use_mock: Use the mock probe (True for testing)
        **option_overrides: CheckOptions fields

    Returns:
        CheckReport
    """
    async with CheckOrchestrator(use_mock=use_mock) as orchestrator:
        return await orchestrator.check(
            base_domain,
            list(tlds or DEFAULT_TLDS),
            CheckOptions(**option_overrides),
        )
