"""
Error taxonomy shared by the core services and the HTTP layer.

Every error carries the HTTP status and a machine readable code; the handlers
registered in ``main.py`` turn them into ``{"error": ..., "code": ...}`` bodies.
"""


class CloudVaultError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    headers = None

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class Unauthorized(CloudVaultError):
    status_code = 401
    code = "UNAUTHORIZED"
    headers = {"WWW-Authenticate": "Bearer"}


class ValidationError(CloudVaultError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFound(CloudVaultError):
    status_code = 404
    code = "NOT_FOUND"


class VersionNotFound(NotFound):
    code = "VERSION_NOT_FOUND"


class Forbidden(CloudVaultError):
    status_code = 403
    code = "ACCESS_DENIED"


class QuotaExceeded(CloudVaultError):
    status_code = 413
    code = "INSUFFICIENT_STORAGE"


class Conflict(CloudVaultError):
    status_code = 409
    code = "CONFLICT"


class UpstreamUnavailable(CloudVaultError):
    status_code = 503
    code = "SERVICE_UNAVAILABLE"

