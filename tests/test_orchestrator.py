"""
Tests for the domain check orchestrator.
"""

import asyncio
from decimal import Decimal

import pytest
from unittest.mock import AsyncMock, patch

from tldscan.models import Available, CheckStatus, Pricing
from tldscan.orchestrator import CheckOptions, CheckOrchestrator, DEFAULT_TLDS, quick_check
from tldscan.pricing import MockPricingSource, PricingResolver
from tldscan.probes import HybridProbe, MockProbe, ProbeClient, UnsupportedTldError
from tldscan.retry import RetryPolicy
from tldscan.validation import InvalidRequest, ValidationError


ACME = Pricing(Decimal("35.00"), Decimal("45.00"), "Acme", "https://acme.example")


def options(**overrides) -> CheckOptions:
    values = dict(per_probe_timeout=1.0, max_retries=2, batch_timeout=5.0, pricing_timeout=1.0)
    values.update(overrides)
    return CheckOptions(**values)


def make_orchestrator(probe=None, prices=None, **pricing_kwargs) -> CheckOrchestrator:
    return CheckOrchestrator(
        probe=probe or MockProbe(),
        pricing=PricingResolver(sources=[MockPricingSource(prices=prices or {}, **pricing_kwargs)]),
        retry_policy=RetryPolicy(base_delay=0),
    )


class ConcurrencyTracker(ProbeClient):
    """Probe that records how many checks were in flight at once."""

    def __init__(self, delay: float):
        self.delay = delay
        self.in_flight = 0
        self.peak = 0

    @property
    def name(self) -> str:
        return "tracker"

    async def check(self, domain: str):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        return Available(method=self.name)


class TestCheckOptions:
    """Tests for CheckOptions validation."""

    def test_defaults_come_from_config(self):
        opts = CheckOptions()

        assert opts.per_probe_timeout > 0
        assert opts.max_retries >= 0
        assert opts.include_pricing

    @pytest.mark.parametrize("field,value", [
        ("concurrency_limit", 0),
        ("per_probe_timeout", 0),
        ("max_retries", -1),
        ("batch_timeout", -1.0),
        ("pricing_timeout", 0),
    ])
    def test_out_of_range(self, field, value):
        with pytest.raises(InvalidRequest):
            options(**{field: value}).validate()


class TestOrchestratorCheck:
    """Tests for CheckOrchestrator.check."""

    @pytest.mark.asyncio
    async def test_taken_and_available_with_pricing(self):
        """Test .com taken and .io available, with pricing only on the available one."""
        orchestrator = make_orchestrator(
            probe=MockProbe(scripts={".com": ["taken"], ".io": ["available"]}),
            prices={".io": ACME},
        )

        report = await orchestrator.check("example", [".com", ".io"], options(max_retries=2, per_probe_timeout=1.0))

        assert [r.domain for r in report.results] == ["example.com", "example.io"]
        com, io = report.results
        assert com.status == CheckStatus.TAKEN
        assert com.pricing is None
        assert io.status == CheckStatus.AVAILABLE
        assert io.pricing.first_year_price == Decimal("35.00")
        assert io.pricing.renewal_price == Decimal("45.00")
        assert io.pricing.registrar == "Acme"

    @pytest.mark.asyncio
    async def test_one_result_per_tld_in_order(self):
        """Test results follow TLD order even when later TLDs finish first."""
        probe = MockProbe(delays={".com": 0.1, ".net": 0.05, ".org": 0.0})
        orchestrator = make_orchestrator(probe=probe)
        tlds = [".com", ".net", ".org", ".dev"]

        report = await orchestrator.check("example", tlds, options())

        assert [r.tld for r in report.results] == tlds
        assert len(report.results) == len(tlds)

    @pytest.mark.asyncio
    async def test_duplicate_tlds_kept(self):
        probe = MockProbe()
        orchestrator = make_orchestrator(probe=probe)

        report = await orchestrator.check("example", [".com", ".io", ".com"], options())

        assert [r.domain for r in report.results] == ["example.com", "example.io", "example.com"]
        assert probe.call_count("example.com") == 2

    @pytest.mark.asyncio
    async def test_tld_without_dot_is_normalized(self):
        orchestrator = make_orchestrator()

        report = await orchestrator.check("Example", ["COM"], options())

        assert report.base_domain == "example"
        assert report.results[0].domain == "example.com"
        assert report.results[0].tld == ".com"

    @pytest.mark.asyncio
    async def test_transient_failures_isolated(self):
        """Test .net failing every attempt doesn't affect its siblings."""
        probe = MockProbe(scripts={".net": ["transient"], ".com": ["taken"]})
        orchestrator = make_orchestrator(probe=probe, prices={".org": ACME})

        report = await orchestrator.check("example", [".com", ".net", ".org"], options(max_retries=2))

        com, net, org = report.results
        assert net.status == CheckStatus.ERROR
        assert net.check_method == "mock"
        assert net.error is not None
        assert net.attempts == 3
        assert probe.call_count("example.net") == 3
        assert com.status == CheckStatus.TAKEN
        assert org.status == CheckStatus.AVAILABLE
        assert org.pricing.registrar == "Acme"

    @pytest.mark.asyncio
    async def test_always_timing_out(self):
        probe = MockProbe(scripts={".com": ["timeout"]})
        orchestrator = make_orchestrator(probe=probe)

        report = await orchestrator.check("example", [".com"], options(per_probe_timeout=0.05, max_retries=2))

        result = report.results[0]
        assert result.status == CheckStatus.ERROR
        assert "timeout" in result.error
        assert probe.call_count("example.com") == 3

    @pytest.mark.asyncio
    async def test_success_on_last_retry(self):
        probe = MockProbe(scripts={".com": ["timeout", "transient", "taken"]})
        orchestrator = make_orchestrator(probe=probe)

        report = await orchestrator.check("example", [".com"], options(per_probe_timeout=0.05, max_retries=2))

        result = report.results[0]
        assert result.status == CheckStatus.TAKEN
        assert result.attempts == 3
        assert result.to_dict()["retryCount"] == 2

    @pytest.mark.asyncio
    async def test_terminal_error_not_retried(self):
        probe = MockProbe(scripts={".zz": [UnsupportedTldError]})
        orchestrator = make_orchestrator(probe=probe)

        report = await orchestrator.check("example", [".zz"], options(max_retries=5))

        assert report.results[0].status == CheckStatus.ERROR
        assert probe.call_count("example.zz") == 1

    @pytest.mark.asyncio
    async def test_unexpected_probe_error_is_contained(self):
        probe = MockProbe(scripts={".com": [RuntimeError("boom")]})
        orchestrator = make_orchestrator(probe=probe)

        report = await orchestrator.check("example", [".com", ".io"], options())

        assert report.results[0].status == CheckStatus.ERROR
        assert "boom" in report.results[0].error
        assert report.results[1].status == CheckStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_pricing_iff_available(self):
        """Test pricing appears only on available results with a quote."""
        probe = MockProbe(scripts={".com": ["taken"], ".net": ["transient"]})
        prices = {".com": ACME, ".net": ACME, ".io": ACME}
        orchestrator = make_orchestrator(probe=probe, prices=prices)

        report = await orchestrator.check("example", [".com", ".net", ".io", ".dev"], options(max_retries=0))

        for result in report.results:
            has_quote = result.tld in prices
            assert (result.pricing is not None) == (result.status == CheckStatus.AVAILABLE and has_quote)

    @pytest.mark.asyncio
    async def test_missing_pricing_leaves_note(self):
        orchestrator = make_orchestrator()

        report = await orchestrator.check("example", [".dev"], options())

        result = report.results[0]
        assert result.status == CheckStatus.AVAILABLE
        assert result.pricing is None
        assert "No pricing available" in result.note

    @pytest.mark.asyncio
    async def test_pricing_failure_is_not_fatal(self):
        orchestrator = make_orchestrator(error=RuntimeError("pricing API down"))

        report = await orchestrator.check("example", [".com"], options())

        result = report.results[0]
        assert result.status == CheckStatus.AVAILABLE
        assert result.pricing is None
        assert result.error is None

    @pytest.mark.asyncio
    async def test_slow_pricing_times_out(self):
        orchestrator = make_orchestrator(prices={".com": ACME}, delay_seconds=1.0)

        report = await orchestrator.check("example", [".com"], options(pricing_timeout=0.05))

        result = report.results[0]
        assert result.status == CheckStatus.AVAILABLE
        assert result.pricing is None
        assert result.note == "Pricing lookup timed out"

    @pytest.mark.asyncio
    async def test_pricing_can_be_skipped(self):
        orchestrator = make_orchestrator(prices={".com": ACME})

        report = await orchestrator.check("example", [".com"], options(include_pricing=False))

        assert report.results[0].pricing is None
        assert report.results[0].note is None

    @pytest.mark.asyncio
    async def test_runs_concurrently(self):
        """Test N slow TLDs take about as long as one, not N times as long."""
        probe = MockProbe(delay_seconds=0.2)
        orchestrator = make_orchestrator(probe=probe)
        tlds = [".com", ".net", ".org", ".io", ".dev"]

        loop = asyncio.get_running_loop()
        start = loop.time()
        report = await orchestrator.check("example", tlds, options())
        elapsed = loop.time() - start

        assert len(report.results) == 5
        assert elapsed < 0.2 * len(tlds) / 2

    @pytest.mark.asyncio
    async def test_concurrency_limit(self):
        probe = ConcurrencyTracker(delay=0.05)
        orchestrator = make_orchestrator(probe=probe)

        report = await orchestrator.check("example", list(DEFAULT_TLDS), options(concurrency_limit=2))

        assert probe.peak == 2
        assert all(r.status == CheckStatus.AVAILABLE for r in report.results)

    @pytest.mark.asyncio
    async def test_unbounded_by_default(self):
        probe = ConcurrencyTracker(delay=0.05)
        orchestrator = make_orchestrator(probe=probe)

        await orchestrator.check("example", list(DEFAULT_TLDS), options(concurrency_limit=None))

        assert probe.peak == len(DEFAULT_TLDS)

    @pytest.mark.asyncio
    async def test_batch_deadline_cancels_outstanding(self):
        """Test checks still running at the deadline become timeout errors."""
        probe = MockProbe(delays={".com": 10.0})
        orchestrator = make_orchestrator(probe=probe)

        loop = asyncio.get_running_loop()
        start = loop.time()
        report = await orchestrator.check(
            "example", [".com", ".io"], options(per_probe_timeout=30.0, batch_timeout=0.1),
        )

        assert loop.time() - start < 1.0
        com, io = report.results
        assert com.status == CheckStatus.ERROR
        assert com.error == "timeout"
        assert io.status == CheckStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_hybrid_keeps_dns_answer_when_registry_hangs(self):
        """Test a hanging registry side still yields the DNS verdict, with a note."""
        probe = HybridProbe(
            dns_probe=MockProbe(scripts={".com": ["taken"]}, _name="dns"),
            rdap_probe=MockProbe(scripts={".com": ["timeout"]}, _name="rdap"),
            whois_fallback=False,
            concurrent_timeout=0.1,
        )
        orchestrator = make_orchestrator(probe=probe)

        result = await orchestrator.check_domain("example.com", options(per_probe_timeout=0.2, max_retries=1))

        assert result.status == CheckStatus.TAKEN
        assert result.check_method == "hybrid"
        assert result.attempts == 1
        assert "RDAP query failed" in result.note

    @pytest.mark.asyncio
    async def test_probe_note_joins_pricing_note(self):
        probe = HybridProbe(
            dns_probe=MockProbe(default="transient", _name="dns"),
            rdap_probe=MockProbe(default="available", _name="rdap"),
            whois_fallback=False,
        )
        orchestrator = make_orchestrator(probe=probe)

        result = await orchestrator.check_domain("example.zz", options())

        assert result.status == CheckStatus.AVAILABLE
        assert result.pricing is None
        assert result.note.startswith("DNS query failed")
        assert result.note.endswith("No pricing available for example.zz")

    @pytest.mark.asyncio
    async def test_idempotent_against_deterministic_probe(self):
        def verdict(domain):
            return "taken" if domain.endswith((".com", ".net")) else "available"

        orchestrator = make_orchestrator(probe=MockProbe(default=verdict), prices={".io": ACME, ".dev": ACME})
        tlds = [".com", ".net", ".io", ".dev"]

        first = await orchestrator.check("example", tlds, options())
        second = await orchestrator.check("example", tlds, options())

        def fingerprint(report):
            return [(r.status, r.pricing.registrar if r.pricing else None) for r in report.results]

        assert fingerprint(first) == fingerprint(second)

    @pytest.mark.asyncio
    async def test_invalid_base_domain_is_per_result_error(self):
        """Test a malformed base name yields errors, not an exception."""
        probe = MockProbe()
        orchestrator = make_orchestrator(probe=probe)

        report = await orchestrator.check("-bad-", [".com", ".io"], options())

        assert len(report.results) == 2
        assert all(r.status == CheckStatus.ERROR for r in report.results)
        assert all("Invalid domain format" in r.error for r in report.results)
        assert probe.calls == []

    @pytest.mark.asyncio
    async def test_invalid_tld_is_per_result_error(self):
        orchestrator = make_orchestrator()

        report = await orchestrator.check("example", [".com", ".c_m"], options())

        assert report.results[0].status == CheckStatus.AVAILABLE
        assert report.results[1].status == CheckStatus.ERROR
        assert report.results[1].error == "Invalid TLD: .c_m"

    @pytest.mark.asyncio
    async def test_empty_tlds_rejected(self):
        orchestrator = make_orchestrator()

        with pytest.raises(InvalidRequest):
            await orchestrator.check("example", [], options())

    @pytest.mark.asyncio
    async def test_string_tlds_rejected(self):
        orchestrator = make_orchestrator()

        with pytest.raises(InvalidRequest):
            await orchestrator.check("example", ".com", options())

    @pytest.mark.asyncio
    async def test_non_string_tld_rejected(self):
        orchestrator = make_orchestrator()

        with pytest.raises(InvalidRequest):
            await orchestrator.check("example", [".com", None], options())

    @pytest.mark.asyncio
    async def test_non_string_base_rejected(self):
        orchestrator = make_orchestrator()

        with pytest.raises(ValidationError):
            await orchestrator.check(None, [".com"], options())

    @pytest.mark.asyncio
    async def test_invalid_options_rejected_before_probing(self):
        probe = MockProbe()
        orchestrator = make_orchestrator(probe=probe)

        with pytest.raises(InvalidRequest):
            await orchestrator.check("example", [".com"], options(max_retries=-1))

        assert probe.calls == []


class TestOrchestratorHelpers:
    """Tests for single-domain checks, lifecycle and quick_check."""

    @pytest.mark.asyncio
    async def test_check_domain(self):
        orchestrator = make_orchestrator(probe=MockProbe(scripts={".io": ["taken"]}))

        result = await orchestrator.check_domain("Example.IO", options())

        assert result.domain == "example.io"
        assert result.status == CheckStatus.TAKEN

    @pytest.mark.asyncio
    async def test_check_domain_requires_tld(self):
        orchestrator = make_orchestrator()

        with pytest.raises(ValidationError):
            await orchestrator.check_domain("example", options())

    @pytest.mark.asyncio
    async def test_context_manager_closes_probe(self):
        probe = MockProbe()

        with patch.object(probe, "close", new=AsyncMock()) as close:
            async with make_orchestrator(probe=probe) as orchestrator:
                await orchestrator.check("example", [".com"], options())

        close.assert_awaited_once()

    def test_use_mock(self):
        orchestrator = CheckOrchestrator(use_mock=True)

        assert isinstance(orchestrator.probe, MockProbe)

    def test_default_probe_from_config(self):
        with patch("tldscan.orchestrator.get_probe", return_value=MockProbe()) as factory:
            CheckOrchestrator()

        factory.assert_called_once()

    @pytest.mark.asyncio
    async def test_quick_check(self):
        report = await quick_check("example", use_mock=True, per_probe_timeout=1.0, batch_timeout=5.0)

        assert [r.tld for r in report.results] == list(DEFAULT_TLDS)
        assert all(r.status == CheckStatus.AVAILABLE for r in report.results)
        assert report.by_domain("example.com").pricing.registrar == "Namecheap"
        assert report.by_domain("example.ai").pricing.is_premium
