"""
Ledger Exceptions - Typed failures for time session operations

Every ledger error is also an atams AppException, so the global exception
handlers render it with the right status code. The ``category`` in details
lets a client pick one of its generic notifications without parsing text.
"""
from typing import Optional, Dict, Any

from atams.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    ServiceUnavailableException,
)


class LedgerError:
    """Mixin shared by all ledger errors"""
    category = "unexpected"

    @classmethod
    def _details(cls, details: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        merged = {"category": cls.category}
        if details:
            merged.update(details)
        return merged


class ValidationError(LedgerError, BadRequestException):
    """Malformed or out-of-range input (hours, member codes)"""
    category = "invalid_input"

    def __init__(self, message: str = "Invalid input", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, self._details(details))


class AuthorizationError(LedgerError, ForbiddenException):
    """Actor lacks the privilege the operation requires"""
    category = "access_denied"

    def __init__(self, message: str = "Access denied", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, self._details(details))


class NotFoundError(LedgerError, NotFoundException):
    """Session missing, or in the wrong state for the operation"""
    category = "not_found"

    def __init__(self, message: str = "Session not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, self._details(details))


class AlreadyOpenError(LedgerError, ConflictException):
    """Member already has an open session"""
    category = "conflict"

    def __init__(
        self,
        message: str = "This user already has an active session.",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, self._details(details))


class TransportError(LedgerError, ServiceUnavailableException):
    """Store call failed, timed out, or returned an undecodable row"""
    category = "unexpected"

    def __init__(
        self,
        message: str = "An unexpected error occurred.",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, self._details(details))
