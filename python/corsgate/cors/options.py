"""CORS policy options.

The policy is built once and never changes afterwards. Unset or empty
fields fall back to defaults:

- scheme: "http"
- allow_domain: ["*"]
- methods: ["GET", "OPTIONS", "POST"]
- max_age: 600 seconds

Special allow_domain values:
- "*": any domain may send requests *without* credentials. Must be the only
  entry; origin checks are skipped entirely.
- "!*": any domain is accepted, the requesting origin is echoed back in
  Access-Control-Allow-Origin, which allows credentialed requests from any
  domain.
"""

import re
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

WILDCARD_DOMAIN = "*"
ANY_DOMAIN = "!*"
ANY_SCHEME = "*"

DEFAULT_SCHEME = "http"
DEFAULT_ALLOW_DOMAIN = (WILDCARD_DOMAIN,)
DEFAULT_METHODS = ("GET", "OPTIONS", "POST")
DEFAULT_MAX_AGE = timedelta(seconds=600)

# RFC 3986 scheme = ALPHA *( ALPHA / DIGIT / "+" / "-" / "." )
SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.-]*$")


def _string_entries(v: Any, name: str) -> list[str]:
    """Stripped, non-empty entries of a string or a sequence of strings."""
    if v is None:
        return []
    if isinstance(v, str):
        v = [v]
    if not isinstance(v, (list, tuple)):
        raise ValueError(f"{name} must be a string or a list of strings")
    entries = []
    for item in v:
        if not isinstance(item, str):
            raise ValueError(f"{name} entries must be strings, got {type(item).__name__}")
        if item.strip():
            entries.append(item.strip())
    return entries


class CORSOptions(BaseModel):
    """Options for the CORS middleware."""

    scheme: str = Field(
        default=DEFAULT_SCHEME,
        description="Accepted origin scheme (http, https) or '*' to keep the origin's own",
    )
    allow_domain: tuple[str, ...] = Field(
        default=DEFAULT_ALLOW_DOMAIN,
        description="Domains allowed to run CORS requests, checked in order",
    )
    allow_subdomain: bool = Field(
        default=False,
        description="Also allow strict subdomains of the allowed domains",
    )
    methods: tuple[str, ...] = Field(
        default=DEFAULT_METHODS,
        description="HTTP methods advertised in preflight responses",
    )
    max_age: timedelta = Field(
        default=DEFAULT_MAX_AGE,
        description="Preflight cache lifetime (seconds accepted)",
    )
    allow_credentials: bool = Field(
        default=False,
        description="Emit Access-Control-Allow-Credentials: true on matched origins",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("scheme", mode="before")
    @classmethod
    def validate_scheme(cls, v: Any) -> str:
        """Default empty schemes and normalize to lowercase."""
        if v is None or v == "":
            return DEFAULT_SCHEME
        v = str(v).strip().lower()
        if v != ANY_SCHEME and not SCHEME_PATTERN.match(v):
            raise ValueError(f"Invalid scheme: {v!r}")
        return v

    @field_validator("allow_domain", mode="before")
    @classmethod
    def validate_allow_domain(cls, v: Any) -> tuple[str, ...]:
        """Default an empty list and lowercase every domain.

        A bare "*" short-circuits all origin checks, so it may not be combined
        with other entries.
        """
        domains = tuple(d.lower() for d in _string_entries(v, "allow_domain"))
        if not domains:
            return DEFAULT_ALLOW_DOMAIN
        if WILDCARD_DOMAIN in domains and len(domains) > 1:
            raise ValueError("'*' must be the only entry in allow_domain")
        return domains

    @field_validator("methods", mode="before")
    @classmethod
    def validate_methods(cls, v: Any) -> tuple[str, ...]:
        """Default an empty list and uppercase method names, keeping order."""
        methods = tuple(m.upper() for m in _string_entries(v, "methods"))
        return methods or DEFAULT_METHODS

    @field_validator("max_age", mode="after")
    @classmethod
    def validate_max_age(cls, v: timedelta) -> timedelta:
        """Durations under one whole second count as unset."""
        if int(v.total_seconds()) <= 0:
            return DEFAULT_MAX_AGE
        return v

    @property
    def max_age_seconds(self) -> int:
        """Max age in whole seconds."""
        return int(self.max_age.total_seconds())

    @property
    def allows_any_domain(self) -> bool:
        """Whether the bare wildcard skips origin checks."""
        return self.allow_domain[0] == WILDCARD_DOMAIN


def prepare_options(options: CORSOptions | Mapping[str, Any] | None = None) -> CORSOptions:
    """Build the effective policy from zero or one options object.

    Args:
        options: A CORSOptions instance, a mapping of field values, or None.

    Returns:
        CORSOptions with defaults applied to every unset field.

    Raises:
        ValidationError: If a field value is invalid.
    """
    if options is None:
        return CORSOptions()
    if isinstance(options, CORSOptions):
        return options
    # None values count as unset, same as omitting the key
    return CORSOptions(**{k: v for k, v in options.items() if v is not None})
