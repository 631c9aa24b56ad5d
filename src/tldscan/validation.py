"""
Syntactic validation for base domains and TLDs.

This runs upstream of the checking engine. The engine itself only calls the
boolean helpers so a bad name that slips through becomes a per-result error
instead of a crash.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

MIN_LENGTH = 1
MAX_LENGTH = 63
MAX_FULL_LENGTH = 253

_VALID_CHARS = re.compile(r"^[a-z0-9-]+$")
_RESERVED_HYPHENS = re.compile(r"^.{2}--")
_LABEL = r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?"
_FULL_DOMAIN = re.compile(rf"^{_LABEL}(?:\.{_LABEL})*$")
_TLD = re.compile(r"^\.[a-z](?:[a-z0-9-]{0,61}[a-z0-9])?$")


class ValidationError(ValueError):
    """Input is malformed; the whole request is rejected before probing."""
    pass


class InvalidRequest(ValidationError):
    """The request shape itself is unusable (e.g. no TLDs)."""
    pass


@dataclass
class ValidationIssue:
    code: str
    message: str


@dataclass
class ValidationResult:
    """Outcome of validating a base domain."""
    is_valid: bool
    sanitized: str
    errors: list[ValidationIssue] = field(default_factory=list)

    @property
    def error_message(self) -> Optional[str]:
        return self.errors[0].message if self.errors else None


def sanitize(value: str) -> str:
    return value.strip().lower()


def validate_domain_name(value) -> ValidationResult:
    """
    Validate a base domain (no TLD).

    Rules:
    - 1-63 characters
    - letters, digits and hyphens only
    - no leading or trailing hyphen
    - no "--" at positions 3-4 (reserved for IDN "xn--" labels)
    - not all digits

    Args:
        value: Raw user input

    Returns:
        ValidationResult listing every rule the input breaks
    """
    if not isinstance(value, str) or not value.strip():
        return ValidationResult(
            is_valid=False,
            sanitized="",
            errors=[ValidationIssue("EMPTY_INPUT", "Domain name cannot be empty")],
        )

    name = sanitize(value)
    errors = []

    if not MIN_LENGTH <= len(name) <= MAX_LENGTH:
        errors.append(ValidationIssue(
            "INVALID_LENGTH",
            f"Domain name must be no more than {MAX_LENGTH} characters long",
        ))

    if not _VALID_CHARS.match(name):
        errors.append(ValidationIssue(
            "INVALID_CHARACTERS",
            "Domain name can only contain letters, numbers, and hyphens",
        ))

    if name.startswith("-") or name.endswith("-"):
        errors.append(ValidationIssue(
            "INVALID_FORMAT",
            "Domain name cannot start or end with a hyphen",
        ))

    if _RESERVED_HYPHENS.match(name):
        errors.append(ValidationIssue(
            "RESERVED_FORMAT",
            "Domain name cannot have consecutive hyphens at positions 3-4",
        ))

    if name.isdigit():
        errors.append(ValidationIssue("ALL_NUMERIC", "Domain name cannot be all numeric"))

    return ValidationResult(is_valid=not errors, sanitized=name, errors=errors)


def is_valid_base_domain(value) -> bool:
    return validate_domain_name(value).is_valid and value == sanitize(value)


def normalize_tld(tld: str) -> str:
    """Lowercase, trim and make sure the TLD starts with a dot."""
    tld = sanitize(tld)
    if tld and not tld.startswith("."):
        tld = "." + tld
    return tld


def is_valid_tld(tld: str) -> bool:
    return bool(_TLD.match(tld))


def is_valid_full_domain(domain) -> bool:
    if not isinstance(domain, str) or len(domain) > MAX_FULL_LENGTH:
        return False
    return bool(_FULL_DOMAIN.match(domain.lower()))


def split_domain(domain: str) -> tuple[str, str]:
    """
    Split "name.tld" into ("name", ".tld").

    Raises:
        ValidationError: If there is no TLD part
    """
    domain = sanitize(domain)
    name, dot, tld = domain.rpartition(".")
    if not dot or not name or not tld:
        raise ValidationError(f"Invalid domain format: missing TLD in {domain!r}")
    return name, "." + tld
