"""Middleware modules for corsgate."""

from corsgate.middleware.cors import CORSMiddleware, add_cors_middleware, log_rejection

__all__ = ["CORSMiddleware", "add_cors_middleware", "log_rejection"]
