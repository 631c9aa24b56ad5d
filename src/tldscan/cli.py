"""
Command-line interface for tldscan

Checks one base name across TLDs with pricing information, as a colored
terminal summary or JSON.
"""

import asyncio
import sys
import argparse
import json
import logging
from typing import Optional

from .config import config
from .models import CheckReport, CheckStatus, DomainResult
from .orchestrator import DEFAULT_TLDS, CheckOptions, CheckOrchestrator
from .pricing import (
    PricingResolver, RegistrarComparisonSource, SelectionPolicy, StaticPricingSource, STANDARD_PRICES,
)
from .probes import get_probe
from .retry import RetryPolicy
from .validation import ValidationError, validate_domain_name


def format_domain_result(result: DomainResult) -> str:
    """Format a single domain result for terminal output."""
    if result.status == CheckStatus.AVAILABLE:
        status = "✓ AVAILABLE"
        color = "\033[92m"  # Green
    elif result.status == CheckStatus.TAKEN:
        status = "✗ TAKEN"
        color = "\033[91m"  # Red
    else:
        status = "? ERROR"
        color = "\033[93m"  # Yellow

    output = f"{color}{result.domain}: {status}\033[0m ({result.check_method}, {result.execution_time_ms}ms)"

    if result.pricing:
        pricing = result.pricing
        output += f" ${pricing.first_year_price} first year, ${pricing.renewal_price}/yr renewal via {pricing.registrar}"
        if pricing.is_premium:
            output += " 💎 premium"
    elif result.note:
        output += f"\n    Note: {result.note}"

    if result.status == CheckStatus.TAKEN:
        details = []
        if result.registrar:
            details.append(f"Registrar: {result.registrar}")
        if result.expiration:
            details.append(f"Expires: {result.expiration}")
        if details:
            output += f"\n    {' | '.join(details)}"

    if result.status == CheckStatus.ERROR and result.error:
        output += f"\n    Error: {result.error}"

    return output


def print_report(report: CheckReport):
    """Print a formatted summary of a report."""
    print("\n" + "=" * 60)
    print(f"DOMAIN CHECK RESULTS FOR {report.base_domain.upper()}")
    print("=" * 60)

    for result in report.results:
        print(f"  {format_domain_result(result)}")

    summary = report.summary
    print(
        f"\n{summary['available']} available • {summary['taken']} taken • "
        f"{summary['errors']} errors • {report.execution_time:.2f}s total"
    )
    if report.average_check_time is not None:
        print(f"Fastest check: {report.fastest_check_time:.2f}s • average: {report.average_check_time:.2f}s")
    print()


def build_orchestrator(args) -> CheckOrchestrator:
    """Wire probe, retry policy and pricing from CLI arguments."""
    sources = [StaticPricingSource()]
    if args.compare:
        sources.append(RegistrarComparisonSource())

    return CheckOrchestrator(
        probe=get_probe(args.method),
        pricing=PricingResolver(sources=sources, policy=SelectionPolicy(args.policy)),
        retry_policy=RetryPolicy(max_retries=args.retries, timeout=args.timeout),
    )


async def run_check(args) -> CheckReport:
    options = CheckOptions(
        concurrency_limit=args.concurrency or None,
        per_probe_timeout=args.timeout,
        max_retries=args.retries,
        batch_timeout=args.deadline,
        include_pricing=not args.no_pricing,
    )
    async with build_orchestrator(args) as orchestrator:
        return await orchestrator.check(args.name, args.tlds, options)


def list_tlds():
    """Print default TLDs with indicative pricing."""
    print(f"{'TLD':<8}{'First year':>12}{'Renewal':>10}  Registrar")
    for tld in DEFAULT_TLDS:
        pricing = STANDARD_PRICES[tld]
        premium = " (premium)" if pricing.is_premium else ""
        print(f"{tld:<8}{'$' + str(pricing.first_year_price):>12}{'$' + str(pricing.renewal_price):>10}  {pricing.registrar}{premium}")


def main(argv: Optional[list[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="tldscan",
        description="Domain availability checker across TLDs, with pricing",
        epilog="Example: tldscan check example --tlds .com .io .dev"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log probe attempts and failures to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Check command
    check_parser = subparsers.add_parser("check", help="Check a name across TLDs")
    check_parser.add_argument(
        "name",
        help="Base domain name without TLD (e.g. example)"
    )
    check_parser.add_argument(
        "--tlds",
        nargs="+",
        default=list(DEFAULT_TLDS),
        help=f"TLDs to check (default: {' '.join(DEFAULT_TLDS)})"
    )
    check_parser.add_argument(
        "--method",
        choices=["dns", "rdap", "whois", "hybrid", "mock"],
        default=config.probe.method,
        help=f"Availability probe (default: {config.probe.method})"
    )
    check_parser.add_argument(
        "--timeout",
        type=float,
        default=config.probe.timeout_seconds,
        help=f"Seconds per probe attempt (default: {config.probe.timeout_seconds})"
    )
    check_parser.add_argument(
        "--retries",
        type=int,
        default=config.retry.max_retries,
        help=f"Retries after a failed attempt (default: {config.retry.max_retries})"
    )
    check_parser.add_argument(
        "--concurrency",
        type=int,
        default=config.batch.max_concurrency,
        help="Maximum TLDs checked at once, 0 for unbounded (default: 0)"
    )
    check_parser.add_argument(
        "--deadline",
        type=float,
        default=config.batch.batch_timeout_seconds,
        help=f"Seconds before outstanding checks are cancelled (default: {config.batch.batch_timeout_seconds})"
    )
    check_parser.add_argument(
        "--policy",
        choices=[p.value for p in SelectionPolicy],
        default=config.pricing.policy,
        help="Best price by first-year cost or first year + renewal"
    )
    check_parser.add_argument(
        "--compare",
        action="store_true",
        help="Include per-registrar comparison quotes when pricing"
    )
    check_parser.add_argument(
        "--no-pricing",
        action="store_true",
        help="Skip pricing lookup"
    )
    check_parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON"
    )

    # TLD listing
    subparsers.add_parser("tlds", help="List default TLDs with indicative prices")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "tlds":
        list_tlds()
        return

    validation = validate_domain_name(args.name)
    if not validation.is_valid:
        print(f"Invalid domain name: {validation.error_message}", file=sys.stderr)
        sys.exit(1)
    args.name = validation.sanitized

    try:
        report = asyncio.run(run_check(args))
    except ValidationError as e:
        print(f"Invalid request: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print_report(report)


if __name__ == "__main__":
    main()
