"""
Unified exception hierarchy for TechLearn.

All domain exceptions inherit from TechLearnError and carry:
- error_code: machine-readable string (e.g. "VIDEO_NOT_FOUND")
- status_code: HTTP status code
- message: human-readable description
- context: optional structured metadata dict
"""

from typing import Optional, Dict, Any


class TechLearnError(Exception):
    """Base exception for all TechLearn domain errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        body = {"success": False, "error": self.error_code, "message": self.message}
        if self.context:
            body["context"] = self.context
        return body


class ValidationError(TechLearnError):
    """400-level validation / bad-request errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INVALID_INPUT",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=400, context=context)


class AuthError(TechLearnError):
    """401 errors reported by the identity provider."""

    def __init__(
        self,
        message: str,
        error_code: str = "AUTH_FAILED",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=401, context=context)


class NotFoundError(TechLearnError):
    """404 resource-not-found errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "NOT_FOUND",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=404, context=context)


class CollaboratorError(TechLearnError):
    """An external service (AI, video search, storage) could not be reached or failed."""

    def __init__(
        self,
        message: str,
        error_code: str = "COLLABORATOR_UNAVAILABLE",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=503, context=context)


class MalformedResponseError(TechLearnError):
    """An external service answered, but with data we cannot use."""

    def __init__(
        self,
        message: str,
        error_code: str = "MALFORMED_RESPONSE",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=502, context=context)


class StorageError(TechLearnError):
    """500-level database / storage failures."""

    def __init__(
        self,
        message: str,
        error_code: str = "STORAGE_ERROR",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=500, context=context)


class ConfigurationError(TechLearnError):
    """Required settings are missing or invalid."""

    def __init__(self, message: str, missing: Optional[list] = None):
        ctx = {"missing": missing} if missing else None
        super().__init__(message, error_code="CONFIGURATION_ERROR", status_code=500, context=ctx)
