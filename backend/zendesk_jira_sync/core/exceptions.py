"""Custom exceptions for application-specific error handling."""

from __future__ import annotations

from typing import Optional, Dict, Any


class SyncServiceException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class BadRequestError(SyncServiceException):
    """Raised when request is invalid."""

    def __init__(self, message: str = "bad_request", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="BAD_REQUEST", details=details, status_code=400)


# ===== ZENDESK EXCEPTIONS =====


class ZendeskException(SyncServiceException):
    """Base exception for Zendesk-related errors."""


class ZendeskRequestError(ZendeskException):
    """Raised when a Zendesk request keeps failing after retries."""

    def __init__(self, message: str = "Zendesk request failed", status_code: Optional[int] = None):
        details = {"status_code": status_code} if status_code else {}
        super().__init__(message, error_code="ZENDESK_REQUEST_ERROR", details=details, status_code=502)


# ===== JIRA EXCEPTIONS =====


class JiraException(SyncServiceException):
    """Base exception for Jira-related errors."""


class JiraRequestError(JiraException):
    """Raised when a Jira request keeps failing after retries."""

    def __init__(self, message: str = "Jira request failed", status_code: Optional[int] = None):
        details = {"status_code": status_code} if status_code else {}
        super().__init__(message, error_code="JIRA_REQUEST_ERROR", details=details, status_code=502)


# ===== VALIDATION EXCEPTIONS =====


class ValidationException(SyncServiceException):
    """Base exception for validation errors."""


class TicketMappingError(ValidationException):
    """Raised when a ticket selected for update cannot be turned into a payload."""

    def __init__(self, message: str, ticket_id: Optional[int] = None):
        details = {"ticket_id": ticket_id} if ticket_id is not None else {}
        super().__init__(message, error_code="TICKET_MAPPING_ERROR", details=details, status_code=422)


class InvalidConfigurationError(ValidationException):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"setting": setting} if setting else {}
        super().__init__(message, error_code="INVALID_CONFIG", details=details, status_code=500)
