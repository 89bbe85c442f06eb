from __future__ import annotations


class DomainError(Exception):
    """Base class for errors raised by route collaborators that map to a client status."""

    status_code = 400
    error_code = "domain_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BusinessValidationError(DomainError):
    """Raised when a domain/business rule is violated."""

    status_code = 400
    error_code = "business_validation"


class AuthenticationError(DomainError):
    """Raised when credentials or a bearer token are missing or invalid."""

    status_code = 401
    error_code = "unauthorized"


class ResourceNotFoundError(DomainError):
    """Raised when a referenced offer, prebook or booking does not exist."""

    status_code = 404
    error_code = "not_found"


class ConflictError(DomainError):
    """Raised when a resource is in a state that does not allow the operation."""

    status_code = 409
    error_code = "conflict"


class StartupError(Exception):
    """Raised when the HTTP listener cannot be bound. Fatal; never retried."""
