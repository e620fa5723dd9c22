"""Application settings loaded from environment variables.

Environment Configuration:
    CORSGATE_ENV: Deployment environment (local | test | staging | prod)
    CORSGATE_LOG_JSON: Emit JSON logs (default true); console logs otherwise

CORS Configuration:
    CORS_SCHEME: Accepted origin scheme: http, https or * (default http)
    CORS_ALLOW_DOMAIN: Comma-separated allowed domains, or * / !* (default *)
    CORS_ALLOW_SUBDOMAIN: Also allow subdomains of allowed domains (default false)
    CORS_METHODS: Comma-separated methods for preflight responses (default GET,OPTIONS,POST)
    CORS_MAX_AGE_S: Preflight cache lifetime in seconds (default 600)
    CORS_ALLOW_CREDENTIALS: Allow credentialed requests (default false)
"""

from datetime import timedelta
from enum import Enum
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

from corsgate.cors.options import ANY_SCHEME, WILDCARD_DOMAIN, CORSOptions


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - CORS_SCHEME must be http, https or *
    - A bare * in CORS_ALLOW_DOMAIN must be the only entry
    - CORS_MAX_AGE_S must be >= 0 (0 means the default of 600)
    - staging/prod refuse CORS_ALLOW_DOMAIN=* together with CORS_ALLOW_CREDENTIALS
    """

    corsgate_env: Environment = Field(default=Environment.LOCAL, alias="CORSGATE_ENV")
    log_json: bool = Field(default=True, alias="CORSGATE_LOG_JSON")

    cors_scheme: str = Field(default="http", alias="CORS_SCHEME")
    cors_allow_domain: str = Field(default=WILDCARD_DOMAIN, alias="CORS_ALLOW_DOMAIN")
    cors_allow_subdomain: bool = Field(default=False, alias="CORS_ALLOW_SUBDOMAIN")
    cors_methods: str = Field(default="GET,OPTIONS,POST", alias="CORS_METHODS")
    cors_max_age_s: int = Field(default=600, alias="CORS_MAX_AGE_S")
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_cors_settings(self) -> "Settings":
        """Reject CORS settings the middleware cannot honor."""
        scheme = self.cors_scheme.strip().lower()
        if scheme not in ("http", "https", ANY_SCHEME):
            raise ValueError(f"CORS_SCHEME must be one of http, https, *; got {scheme!r}")

        domains = self.allow_domain_list
        if WILDCARD_DOMAIN in domains and len(domains) > 1:
            raise ValueError("CORS_ALLOW_DOMAIN: '*' must be the only entry")

        if self.cors_max_age_s < 0:
            raise ValueError("CORS_MAX_AGE_S must be >= 0")

        if self.corsgate_env in (Environment.STAGING, Environment.PROD):
            if domains == [WILDCARD_DOMAIN] and self.cors_allow_credentials:
                raise ValueError(
                    "CORS_ALLOW_CREDENTIALS has no effect with CORS_ALLOW_DOMAIN=* "
                    f"and is refused for CORSGATE_ENV={self.corsgate_env.value}; "
                    "list explicit domains or use '!*'"
                )

        return self

    @property
    def allow_domain_list(self) -> list[str]:
        """Parse comma-separated domains into a list."""
        return _split_csv(self.cors_allow_domain)

    @property
    def method_list(self) -> list[str]:
        """Parse comma-separated methods into a list."""
        return _split_csv(self.cors_methods)

    def cors_options(self) -> CORSOptions:
        """Build the CORS options from these settings."""
        return CORSOptions(
            scheme=self.cors_scheme,
            allow_domain=self.allow_domain_list,
            allow_subdomain=self.cors_allow_subdomain,
            methods=self.method_list,
            max_age=timedelta(seconds=self.cors_max_age_s),
            allow_credentials=self.cors_allow_credentials,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
