"""Error definitions.

All errors are defined here with their corresponding HTTP status codes.
CORS rejections are terminal for the request and always map to 400.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Standardized error codes.

    Format: E_CATEGORY_NAME
    """

    # CORS rejections (400)
    E_CORS_ORIGIN_INVALID = "E_CORS_ORIGIN_INVALID"
    E_CORS_DOMAIN_PROHIBITED = "E_CORS_DOMAIN_PROHIBITED"

    # Request errors
    E_INVALID_REQUEST = "E_INVALID_REQUEST"  # 400
    E_NOT_FOUND = "E_NOT_FOUND"  # 404
    E_METHOD_NOT_ALLOWED = "E_METHOD_NOT_ALLOWED"  # 405

    # Server errors
    E_INTERNAL = "E_INTERNAL"  # 500


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_CORS_ORIGIN_INVALID: 400,
    ApiErrorCode.E_CORS_DOMAIN_PROHIBITED: 400,
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_NOT_FOUND: 404,
    ApiErrorCode.E_METHOD_NOT_ALLOWED: 405,
    ApiErrorCode.E_INTERNAL: 500,
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
    """

    def __init__(self, code: ApiErrorCode, message: str):
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class CORSError(ApiError):
    """A CORS request rejected by the policy.

    Attributes:
        origin: The raw Origin header value that was rejected.
    """

    def __init__(self, code: ApiErrorCode, message: str, origin: str):
        self.origin = origin
        super().__init__(code, message)


class OriginParseError(CORSError):
    """The Origin header could not be parsed as a URI."""

    def __init__(self, origin: str, reason: str):
        self.reason = reason
        super().__init__(
            ApiErrorCode.E_CORS_ORIGIN_INVALID,
            f"Failed to parse CORS origin header. Reason: {reason}",
            origin,
        )


class DomainProhibitedError(CORSError):
    """The Origin header does not match any allowed domain."""

    def __init__(self, origin: str):
        super().__init__(
            ApiErrorCode.E_CORS_DOMAIN_PROHIBITED,
            f"CORS request from prohibited domain {origin}",
            origin,
        )
