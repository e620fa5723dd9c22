"""CORS policy evaluation.

Decides, for a single request, whether the Origin is permitted and which
access-control-* headers to send back. Evaluation is a pure function of the
request method, the request headers and the (immutable) options, so one
CORSPolicy can serve any number of concurrent requests.

See:
- https://developer.mozilla.org/en-US/docs/Web/HTTP/Headers/Access-Control-Allow-Origin
- https://fetch.spec.whatwg.org/#cors-protocol-and-credentials
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import SplitResult, urlsplit

from starlette.datastructures import Headers

from corsgate.cors.options import ANY_DOMAIN, ANY_SCHEME, CORSOptions, prepare_options
from corsgate.errors import DomainProhibitedError, OriginParseError

ALLOW_ORIGIN = "Access-Control-Allow-Origin"
ALLOW_METHODS = "Access-Control-Allow-Methods"
ALLOW_HEADERS = "Access-Control-Allow-Headers"
ALLOW_CREDENTIALS = "Access-Control-Allow-Credentials"
MAX_AGE = "Access-Control-Max-Age"
REQUEST_HEADERS = "Access-Control-Request-Headers"
ORIGIN = "Origin"
VARY = "Vary"

PREFLIGHT_METHOD = "OPTIONS"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class CORSDecision:
    """Outcome of evaluating one request.

    Attributes:
        headers: Response headers to apply right before the response is sent.
        preflight: True for OPTIONS requests, which are answered directly.
        skip: True when the request carried no Origin on a non-wildcard
            policy. No CORS headers are sent in that case.
    """

    headers: dict[str, str] = field(default_factory=dict)
    preflight: bool = False
    skip: bool = False


def parse_origin(value: str) -> SplitResult:
    """Parse an Origin header value.

    Args:
        value: Raw Origin header value.

    Returns:
        The split URL.

    Raises:
        OriginParseError: If the value is not a well-formed URI.
    """
    if _CONTROL_CHARS.search(value):
        raise OriginParseError(value, "invalid control character in URL")
    if " " in value:
        raise OriginParseError(value, "invalid character ' ' in URL")
    if value.startswith(":"):
        raise OriginParseError(value, "missing protocol scheme")
    if _BAD_ESCAPE.search(value):
        raise OriginParseError(value, "invalid URL escape")

    try:
        parts = urlsplit(value)
        # Accessing port validates it (non-numeric or out of range raise)
        parts.port
    except ValueError as e:
        raise OriginParseError(value, str(e)) from e

    return parts


def to_headers(headers: Headers | Mapping[str, str]) -> Headers:
    """Case-insensitive view of request headers.

    HTTP header values are latin-1. A plain mapping with an Origin outside
    latin-1 is a malformed origin.

    Raises:
        OriginParseError: If the Origin value cannot be encoded as latin-1.
    """
    if isinstance(headers, Headers):
        return headers
    try:
        return Headers(headers=dict(headers))
    except UnicodeEncodeError as e:
        origin = next((v for k, v in headers.items() if k.lower() == "origin"), "")
        if any(ord(c) > 0xFF for c in origin):
            raise OriginParseError(origin, "invalid non-latin-1 character in URL") from e
        raise


class CORSPolicy:
    """Evaluates requests against a fixed set of CORS options.

    Args:
        options: CORSOptions, a mapping of option values, or None for defaults.
    """

    def __init__(self, options: CORSOptions | Mapping[str, Any] | None = None):
        self.options = prepare_options(options)

    def base_headers(self, headers: Headers) -> dict[str, str]:
        """Headers sent for every evaluated request."""
        return {
            ALLOW_METHODS: ",".join(self.options.methods),
            ALLOW_HEADERS: headers.get(REQUEST_HEADERS, ""),
            MAX_AGE: str(self.options.max_age_seconds),
        }

    def is_allowed_host(self, hostname: str) -> bool:
        """Check a hostname against the allowed domains, in order."""
        for domain in self.options.allow_domain:
            if hostname == domain:
                return True
            if self.options.allow_subdomain and hostname.endswith("." + domain):
                return True
            if domain == ANY_DOMAIN:
                return True
        return False

    def allowed_origin(self, parts: SplitResult) -> str:
        """Rewrite a matched origin to the configured scheme."""
        if self.options.scheme != ANY_SCHEME:
            parts = parts._replace(scheme=self.options.scheme)
        return parts.geturl()

    def evaluate(self, method: str, headers: Headers | Mapping[str, str]) -> CORSDecision:
        """Evaluate a request.

        Args:
            method: HTTP request method.
            headers: Request headers (case-insensitive lookup).

        Returns:
            The headers to schedule and how to continue the request.

        Raises:
            OriginParseError: If the Origin header is malformed.
            DomainProhibitedError: If the Origin does not match any allowed domain.
        """
        headers = to_headers(headers)
        preflight = method.upper() == PREFLIGHT_METHOD

        result = self.base_headers(headers)

        if self.options.allows_any_domain:
            result[ALLOW_ORIGIN] = "*"
            return CORSDecision(headers=result, preflight=preflight)

        origin = headers.get(ORIGIN)
        if not origin:
            # Same-origin or non-browser request
            return CORSDecision(preflight=preflight, skip=True)

        parts = parse_origin(origin)
        if not self.is_allowed_host(parts.hostname or ""):
            raise DomainProhibitedError(origin)

        result[ALLOW_ORIGIN] = self.allowed_origin(parts)
        result[ALLOW_CREDENTIALS] = "true" if self.options.allow_credentials else "false"
        result[VARY] = ORIGIN
        return CORSDecision(headers=result, preflight=preflight)
