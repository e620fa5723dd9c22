"""corsgate: CORS policy middleware for Starlette and FastAPI."""

from corsgate.cors import ANY_DOMAIN, CORSDecision, CORSOptions, CORSPolicy, prepare_options
from corsgate.errors import CORSError, DomainProhibitedError, OriginParseError
from corsgate.middleware import CORSMiddleware, add_cors_middleware

__all__ = [
    "ANY_DOMAIN",
    "CORSDecision",
    "CORSError",
    "CORSMiddleware",
    "CORSOptions",
    "CORSPolicy",
    "DomainProhibitedError",
    "OriginParseError",
    "add_cors_middleware",
    "prepare_options",
]
