"""
Validation of shorten requests.

All checks are pure: they look only at their input and the configured
limits, never at the registry. Shortcode uniqueness is enforced by the
registry at insertion time.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlsplit

from shortlink_app.config import settings

RESERVED_SHORTCODES = frozenset({"api", "admin", "www", "shorturls", "health", "stats"})

_HOSTNAME_RE = re.compile(r"[a-zA-Z0-9.-]+")
_SHORTCODE_RE = re.compile(r"[a-zA-Z0-9]+")
_WHITESPACE_RE = re.compile(r"\s")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a single field check; ``value`` is the normalized input."""

    is_valid: bool
    error: Optional[str] = None
    value: Any = None

    @classmethod
    def ok(cls, value: Any = None) -> "ValidationResult":
        return cls(True, None, value)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(False, error, None)


@dataclass(frozen=True)
class NormalizedRequest:
    url: str
    shortcode: Optional[str]
    validity_minutes: int


@dataclass(frozen=True)
class InvalidRequest:
    """Per-field reasons for a rejected request, keyed by field name."""

    errors: Dict[str, str] = field(default_factory=dict)


def is_reserved_shortcode(code: str) -> bool:
    return code.lower() in RESERVED_SHORTCODES


def validate_url(raw: Any) -> ValidationResult:
    """Validate a long URL.

    Args:
        raw: Candidate URL as received

    Returns:
        ValidationResult whose value is the trimmed URL
    """
    if not raw or not isinstance(raw, str):
        return ValidationResult.fail("URL is required")

    url = raw.strip()
    if not url:
        return ValidationResult.fail("URL is required")

    if _WHITESPACE_RE.search(url):
        return ValidationResult.fail("URL cannot contain spaces")

    if len(url) > settings.max_url_length:
        return ValidationResult.fail(
            f"URL is too long (max {settings.max_url_length} characters)"
        )

    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        # Accessing the port validates it (raises on out-of-range values)
        parts.port
    except ValueError:
        return ValidationResult.fail("Invalid URL format")

    if not parts.scheme or not parts.netloc:
        return ValidationResult.fail("Invalid URL format")

    if parts.scheme.lower() not in ("http", "https"):
        return ValidationResult.fail("URL must use http:// or https:// protocol")

    if not hostname:
        return ValidationResult.fail("URL must have a valid hostname")

    if not _HOSTNAME_RE.fullmatch(hostname) or "." not in hostname:
        return ValidationResult.fail("URL must have a valid domain name")

    if hostname[0] in "-." or hostname[-1] in "-.":
        return ValidationResult.fail("URL domain name format is invalid")

    return ValidationResult.ok(url)


def validate_shortcode(code: Any) -> ValidationResult:
    """Validate an optional custom shortcode.

    ``None`` or an empty string means "generate one for me" and is valid;
    the result value is then None.
    """
    if code is None or code == "":
        return ValidationResult.ok(None)

    if not isinstance(code, str):
        return ValidationResult.fail("Shortcode must be a string")

    min_length = settings.short_code_min_length
    max_length = settings.short_code_max_length
    if not min_length <= len(code) <= max_length:
        return ValidationResult.fail(
            f"Shortcode must be between {min_length} and {max_length} characters long"
        )

    if not _SHORTCODE_RE.fullmatch(code):
        return ValidationResult.fail(
            "Shortcode can only contain alphanumeric characters (a-z, A-Z, 0-9)"
        )

    if is_reserved_shortcode(code):
        return ValidationResult.fail(
            "Shortcode uses a reserved word. Please choose a different shortcode."
        )

    return ValidationResult.ok(code)


def validate_validity(minutes: Any) -> ValidationResult:
    """Validate the validity window in minutes; None resolves to the default."""
    if minutes is None:
        return ValidationResult.ok(settings.default_validity_minutes)

    # JSON numbers like 30.0 arrive as floats; whole values count as integers
    if isinstance(minutes, float) and minutes.is_integer():
        minutes = int(minutes)

    # bool is a subclass of int but never a meaningful duration
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        return ValidationResult.fail("Validity must be an integer")

    if minutes < 1 or minutes > settings.max_validity_minutes:
        return ValidationResult.fail(
            f"Validity must be between 1 and {settings.max_validity_minutes} minutes (30 days)"
        )

    return ValidationResult.ok(minutes)


def validate_request(
    url: Any,
    shortcode: Any = None,
    validity: Any = None,
) -> Union[NormalizedRequest, InvalidRequest]:
    """Run all three checks and collect every failing field."""
    checks = {
        "url": validate_url(url),
        "shortcode": validate_shortcode(shortcode),
        "validity": validate_validity(validity),
    }

    errors = {name: result.error for name, result in checks.items() if not result.is_valid}
    if errors:
        return InvalidRequest(errors)

    return NormalizedRequest(
        url=checks["url"].value,
        shortcode=checks["shortcode"].value,
        validity_minutes=checks["validity"].value,
    )


def validate_batch(items: List[Dict[str, Any]]) -> List[Union[NormalizedRequest, InvalidRequest]]:
    """Validate each item on its own; one bad item never affects another."""
    return [
        validate_request(item.get("url"), item.get("shortcode"), item.get("validity"))
        for item in items
    ]
