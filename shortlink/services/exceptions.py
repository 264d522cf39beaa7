"""Exceptions for the shortlink service layer.

This module contains the exception hierarchy for the service layer,
providing domain-specific exceptions that abstract underlying implementation details.
"""


class ServiceError(Exception):
    """Base exception for all service-level errors."""
    pass


class LinkError(ServiceError):
    """Base exception for link-related errors."""
    pass


class LinkValidationError(LinkError):
    """Input failed validation before reaching the store."""
    pass


class InvalidURLError(LinkValidationError):
    """The URL is not an absolute URL with a scheme and a host."""
    pass


class InvalidCodeFormatError(LinkValidationError):
    """The short code is too short once normalized."""
    pass


class InvalidOwnerError(LinkValidationError):
    """The owner identity is missing."""
    pass


class LinkNotFoundError(LinkError):
    """No link is stored under the requested short code."""
    pass


class PersistenceError(LinkError):
    """The store failed while handling the request."""

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class AllocationConflictError(PersistenceError):
    """The allocated short code was taken by a concurrent insert."""

    def __init__(self, short_code: str, cause: Exception = None):
        super().__init__(f"Short code '{short_code}' was claimed by another link", cause)
        self.short_code = short_code


class InternalError(ServiceError):
    """Unanticipated failure caught at a request boundary."""

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause
