"""
Request-level error taxonomy.

Every error raised from a route ends up as the JSON envelope
``{"success": false, "error": <message>}`` with the error's status code.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InputValidationError(AppError):
    """Malformed or out-of-range request body."""
    status_code = 400


class AuthenticationError(AppError):
    """Missing or invalid caller identity."""
    status_code = 401


class ConfigurationError(AppError):
    """Service credentials are not configured."""
    status_code = 500


class StoreError(AppError):
    status_code = 500


class NotFoundError(AppError):
    status_code = 404
