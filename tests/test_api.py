"""
Tests for the request/response adapter.
"""

import pytest
from decimal import Decimal

from tldscan.api import error_response, handle_check, parse_request
from tldscan.models import Pricing
from tldscan.orchestrator import CheckOrchestrator, DEFAULT_TLDS
from tldscan.pricing import MockPricingSource, PricingResolver
from tldscan.probes import MockProbe
from tldscan.retry import RetryPolicy
from tldscan.validation import ValidationError


@pytest.fixture
def orchestrator():
    return CheckOrchestrator(
        probe=MockProbe(scripts={".com": ["taken"], ".io": ["available"], ".net": ["transient"]}),
        pricing=PricingResolver(sources=[MockPricingSource(prices={
            ".io": Pricing(Decimal("35.00"), Decimal("45.00"), "Acme", "https://acme.example"),
        })]),
        retry_policy=RetryPolicy(base_delay=0),
    )


class TestParseRequest:
    """Tests for parse_request."""

    def test_full_request(self):
        request = parse_request({
            "baseDomain": "Example",
            "tlds": [".com", ".io"],
            "options": {"concurrent": True, "timeout": 1500, "retries": 1, "deadline": 10000, "pricing": False},
        })

        assert request.base_domain == "example"
        assert request.tlds == (".com", ".io")
        assert request.options.per_probe_timeout == 1.5
        assert request.options.max_retries == 1
        assert request.options.batch_timeout == 10.0
        assert request.options.include_pricing is False

    def test_defaults(self):
        request = parse_request({"baseDomain": "example"})

        assert request.tlds == DEFAULT_TLDS
        assert request.options.include_pricing is True

    def test_sequential_means_concurrency_of_one(self):
        request = parse_request({"baseDomain": "example", "options": {"concurrent": False}})

        assert request.options.concurrency_limit == 1

    @pytest.mark.parametrize("payload", [
        None,
        [],
        {},
        {"baseDomain": ""},
        {"baseDomain": 42},
        {"baseDomain": "-bad-"},
        {"baseDomain": "example", "tlds": []},
        {"baseDomain": "example", "tlds": ".com"},
        {"baseDomain": "example", "tlds": [".com", 7]},
        {"baseDomain": "example", "options": "fast"},
        {"baseDomain": "example", "options": {"concurrent": "yes"}},
        {"baseDomain": "example", "options": {"timeout": 0}},
        {"baseDomain": "example", "options": {"timeout": True}},
        {"baseDomain": "example", "options": {"retries": -1}},
        {"baseDomain": "example", "options": {"retries": 1.5}},
        {"baseDomain": "example", "options": {"pricing": "no"}},
    ])
    def test_rejected(self, payload):
        with pytest.raises(ValidationError):
            parse_request(payload)

    def test_invalid_base_message(self):
        with pytest.raises(ValidationError, match="cannot start or end with a hyphen"):
            parse_request({"baseDomain": "-bad-"})


class TestHandleCheck:
    """Tests for handle_check."""

    @pytest.mark.asyncio
    async def test_report_shape(self, orchestrator):
        """Test .com taken and .io available with Acme pricing, in order."""
        body = await handle_check(
            {"baseDomain": "example", "tlds": [".com", ".io"], "options": {"retries": 2, "timeout": 1000}},
            orchestrator,
        )

        assert body["baseDomain"] == "example"
        assert isinstance(body["executionTime"], int)
        com, io = body["results"]
        assert com["domain"] == "example.com"
        assert com["status"] == "taken"
        assert "pricing" not in com
        assert io["domain"] == "example.io"
        assert io["status"] == "available"
        assert io["pricing"]["firstYearPrice"] == 35.0
        assert io["pricing"]["renewalPrice"] == 45.0
        assert io["pricing"]["registrar"] == "Acme"
        assert body["summary"] == {"total": 2, "available": 1, "taken": 1, "errors": 0}

    @pytest.mark.asyncio
    async def test_mixed_statuses_still_succeed(self, orchestrator):
        body = await handle_check(
            {"baseDomain": "example", "tlds": [".com", ".net"], "options": {"retries": 2}},
            orchestrator,
        )

        assert "error" not in body
        net = body["results"][1]
        assert net["status"] == "error"
        assert net["checkMethod"] == "mock"
        assert net["retryCount"] == 2

    @pytest.mark.asyncio
    async def test_validation_failure_body(self, orchestrator):
        body = await handle_check({"baseDomain": "example", "tlds": []}, orchestrator)

        assert body["error"] is True
        assert "tlds" in body["message"]
        assert "timestamp" in body
        assert orchestrator.probe.calls == []


class TestErrorResponse:
    """Tests for error_response."""

    def test_shape(self):
        body = error_response("Invalid request: baseDomain is required")

        assert body["error"] is True
        assert body["message"] == "Invalid request: baseDomain is required"
        assert body["timestamp"].endswith("+00:00")
