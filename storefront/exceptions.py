"""
Storefront error taxonomy.

Routers raise these; main.py renders them as
{"success": false, "error": message} with the matching status code.
"""


class StorefrontError(Exception):
    """Base class for errors surfaced to storefront callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Required field missing or out of range."""

    status_code = 400


class AuthorizationError(StorefrontError):
    """API key does not match the account."""

    status_code = 401


class NotFoundError(StorefrontError):
    """Referenced account or fabric does not exist."""

    status_code = 404


class InternalError(StorefrontError):
    """Unexpected failure. The message is always generic."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
