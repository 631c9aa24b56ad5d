"""
Request/response adapter

Maps the JSON shape callers send
    {"baseDomain": "example", "tlds": [".com"], "options": {"concurrent": true, "timeout": 5000, "retries": 2}}
onto the orchestrator, and renders the report back as
    {"baseDomain": ..., "results": [...], "executionTime": <ms>, "summary": {...}}
Transport (HTTP, queues, ...) lives elsewhere.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .orchestrator import DEFAULT_TLDS, CheckOptions, CheckOrchestrator
from .validation import ValidationError, validate_domain_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckRequest:
    """A parsed, validated inbound request."""
    base_domain: str
    tlds: tuple[str, ...]
    options: CheckOptions


def _positive_ms(options: dict, key: str) -> Optional[float]:
    value = options.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValidationError(f"options.{key} must be a positive number of milliseconds")
    return value / 1000.0


def parse_request(payload) -> CheckRequest:
    """
    Validate an inbound request body.

    Args:
        payload: Decoded JSON body

    Returns:
        CheckRequest ready for the orchestrator

    Raises:
        ValidationError: On any shape or syntax problem
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    base_domain = payload.get("baseDomain")
    if not isinstance(base_domain, str) or not base_domain:
        raise ValidationError("Invalid request: baseDomain is required")

    validation = validate_domain_name(base_domain)
    if not validation.is_valid:
        raise ValidationError(validation.error_message)

    tlds = payload.get("tlds")
    if tlds is None:
        tlds = list(DEFAULT_TLDS)
    if not isinstance(tlds, list) or not tlds or not all(isinstance(t, str) and t.strip() for t in tlds):
        raise ValidationError("Invalid request: tlds must be a non-empty list of strings")

    raw_options = payload.get("options") or {}
    if not isinstance(raw_options, dict):
        raise ValidationError("Invalid request: options must be an object")

    overrides = {}
    concurrent = raw_options.get("concurrent", True)
    if not isinstance(concurrent, bool):
        raise ValidationError("options.concurrent must be a boolean")
    if not concurrent:
        overrides["concurrency_limit"] = 1

    timeout = _positive_ms(raw_options, "timeout")
    if timeout is not None:
        overrides["per_probe_timeout"] = timeout

    deadline = _positive_ms(raw_options, "deadline")
    if deadline is not None:
        overrides["batch_timeout"] = deadline

    retries = raw_options.get("retries")
    if retries is not None:
        if isinstance(retries, bool) or not isinstance(retries, int) or retries < 0:
            raise ValidationError("options.retries must be a non-negative integer")
        overrides["max_retries"] = retries

    include_pricing = raw_options.get("pricing", True)
    if not isinstance(include_pricing, bool):
        raise ValidationError("options.pricing must be a boolean")
    overrides["include_pricing"] = include_pricing

    return CheckRequest(
        base_domain=validation.sanitized,
        tlds=tuple(tlds),
        options=CheckOptions(**overrides),
    )


def error_response(message: str) -> dict:
    return {
        "error": True,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def handle_check(payload, orchestrator: CheckOrchestrator) -> dict:
    """
    Run a check for an inbound request body.

    Validation failures come back as an error body; everything else comes
    back as a report, however many of its results are errors.
    """
    try:
        request = parse_request(payload)
        report = await orchestrator.check(request.base_domain, request.tlds, request.options)
    except ValidationError as e:
        logger.info(f"Rejected check request: {e}")
        return error_response(str(e))

    return report.to_dict()
