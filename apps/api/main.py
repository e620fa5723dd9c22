"""Thin API launcher.

This is the uvicorn entrypoint. All application logic lives in the corsgate package.
Run with: uvicorn main:app --reload

Note: The app instance is created here (not in corsgate.app) to avoid import-time
side effects. This allows tests to import create_app with their own options.
"""

from corsgate.app import create_app

# CORS policy is read from the CORS_* environment variables
app = create_app()

__all__ = ["app"]
