"""
Tests for the command-line interface.
"""

import json
from decimal import Decimal

import pytest

from tldscan.cli import format_domain_result, main
from tldscan.models import CheckStatus, DomainResult, Pricing


class TestFormatDomainResult:
    """Tests for terminal formatting."""

    def test_available_with_pricing(self):
        result = DomainResult(
            domain="example.ai",
            tld=".ai",
            status=CheckStatus.AVAILABLE,
            check_method="rdap",
            execution_time=0.25,
            pricing=Pricing(Decimal("79.99"), Decimal("89.99"), "Namecheap", "https://www.namecheap.com",
                            is_premium=True),
        )

        output = format_domain_result(result)

        assert "example.ai: ✓ AVAILABLE" in output
        assert "(rdap, 250ms)" in output
        assert "$79.99 first year" in output
        assert "premium" in output

    def test_taken_with_registrar(self):
        result = DomainResult(
            domain="example.com",
            tld=".com",
            status=CheckStatus.TAKEN,
            check_method="hybrid",
            registrar="Acme Registrar",
            expiration="2030-08-13",
        )

        output = format_domain_result(result)

        assert "✗ TAKEN" in output
        assert "Registrar: Acme Registrar | Expires: 2030-08-13" in output

    def test_error(self):
        result = DomainResult(
            domain="example.net",
            tld=".net",
            status=CheckStatus.ERROR,
            check_method="dns",
            error="timeout after 5s",
        )

        output = format_domain_result(result)

        assert "? ERROR" in output
        assert "Error: timeout after 5s" in output


class TestMain:
    """Tests for the CLI entry point."""

    def test_check_json(self, capsys):
        main(["check", "Example", "--method", "mock", "--tlds", ".com", ".io", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert data["baseDomain"] == "example"
        assert [r["domain"] for r in data["results"]] == ["example.com", "example.io"]
        assert all(r["status"] == "available" for r in data["results"])
        assert data["results"][0]["pricing"]["registrar"] == "Namecheap"

    def test_check_compare_total_policy(self, capsys):
        main([
            "check", "example", "--method", "mock", "--tlds", ".com",
            "--compare", "--policy", "total", "--json",
        ])

        data = json.loads(capsys.readouterr().out)
        assert data["results"][0]["pricing"]["firstYearPrice"] == 8.99

    def test_check_no_pricing(self, capsys):
        main(["check", "example", "--method", "mock", "--tlds", ".com", "--no-pricing", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert "pricing" not in data["results"][0]

    def test_check_text_report(self, capsys):
        main(["check", "example", "--method", "mock", "--tlds", ".dev", "--concurrency", "1"])

        out = capsys.readouterr().out
        assert "DOMAIN CHECK RESULTS FOR EXAMPLE" in out
        assert "example.dev" in out
        assert "1 available" in out

    def test_invalid_name(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["check", "ab--cd", "--method", "mock"])

        assert exc_info.value.code == 1
        assert "Invalid domain name" in capsys.readouterr().err

    def test_leading_hyphen_name(self, capsys):
        """Test a name starting with '-' reaches validation after '--'."""
        with pytest.raises(SystemExit) as exc_info:
            main(["check", "--method", "mock", "--", "-bad-"])

        assert exc_info.value.code == 1
        assert "Invalid domain name" in capsys.readouterr().err

    def test_invalid_concurrency(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["check", "example", "--method", "mock", "--concurrency", "-2"])

        assert exc_info.value.code == 1
        assert "Invalid request" in capsys.readouterr().err

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1

    def test_list_tlds(self, capsys):
        main(["tlds"])

        out = capsys.readouterr().out
        assert ".com" in out
        assert "$8.99" in out
        assert ".ai" in out and "(premium)" in out
