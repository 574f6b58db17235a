"""HTTP validator helpers: entity tags and conditional-request freshness.

``generate_etag`` fingerprints a response body; ``is_fresh`` decides whether
the client's cached copy (described by its ``If-None-Match`` and
``If-Modified-Since`` headers) still matches the response about to be sent.
When it does, the caller answers ``304 Not Modified`` without a body.

Header mappings are looked up with lowercase names, which both plain dicts
built by callers and Starlette's case-insensitive ``Headers`` satisfy.
"""

import base64
import hashlib
import re
from collections.abc import Mapping
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Final

# Matches a no-cache directive anywhere in a Cache-Control value
NO_CACHE_PATTERN: Final[re.Pattern[str]] = re.compile(r"(?:^|,)\s*?no-cache\s*?(?:,|$)")

ETAG_HASH_LENGTH: Final[int] = 27
WEAK_PREFIX: Final[str] = "W/"


def generate_etag(body: bytes) -> str:
    """Build a strong entity tag for a response body.

    The tag combines the body length (hex) with a truncated base64 SHA-1
    digest, so identical bytes always produce the same tag.

    Args:
        body: The exact bytes that will be sent to the client.

    Returns:
        str: A quoted strong etag, e.g. ``"1a-2jmj7l5rSw0yVb/vlWAYkK/YBwk"``.
    """
    digest = base64.b64encode(hashlib.sha1(body).digest()).decode("ascii")  # noqa: S324 - fingerprint, not security
    return f'"{len(body):x}-{digest[:ETAG_HASH_LENGTH]}"'


def _strip_weak(tag: str) -> str:
    return tag[len(WEAK_PREFIX) :] if tag.startswith(WEAK_PREFIX) else tag


def _parse_token_list(value: str) -> list[str]:
    """Split a comma separated header value into its non-empty tokens."""
    return [token.strip() for token in value.split(",") if token.strip()]


def _parse_http_date(value: str) -> datetime | None:
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def _etag_matches(if_none_match: str, etag: str) -> bool:
    """Weak comparison of a response etag against an If-None-Match list."""
    current = _strip_weak(etag)
    return any(
        _strip_weak(token) == current for token in _parse_token_list(if_none_match)
    )


def _not_modified_since(if_modified_since: str, last_modified: str | None) -> bool:
    if not last_modified:
        return False

    since = _parse_http_date(if_modified_since)
    modified = _parse_http_date(last_modified)
    if since is None or modified is None:
        return False

    try:
        return modified <= since
    except TypeError:
        # Mixed naive/aware datetimes from non-GMT date strings
        return False


def is_fresh(
    request_headers: Mapping[str, str], response_headers: Mapping[str, str]
) -> bool:
    """Check whether a conditional request can be answered with 304.

    Args:
        request_headers: Incoming request headers (lowercase lookups).
        response_headers: Validators of the response, ``etag`` and/or
            ``last-modified``.

    Returns:
        bool: True if the client's cached representation is still current.
    """
    if_modified_since = request_headers.get("if-modified-since")
    if_none_match = request_headers.get("if-none-match")

    # Unconditional request
    if not if_modified_since and not if_none_match:
        return False

    # Client explicitly asked to revalidate end-to-end
    cache_control = request_headers.get("cache-control")
    if cache_control and NO_CACHE_PATTERN.search(cache_control):
        return False

    if if_none_match and if_none_match.strip() != "*":
        etag = response_headers.get("etag")
        if not etag or not _etag_matches(if_none_match, etag):
            return False

    if if_modified_since:
        last_modified = response_headers.get("last-modified")
        if not _not_modified_since(if_modified_since, last_modified):
            return False

    return True
