from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    INVALID_CODE = "INVALID_CODE"
    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"
    CONFLICT = "CONFLICT"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL = "INTERNAL"


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = ErrorKind.VALIDATION


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = ErrorKind.VALIDATION


class NotFoundError(DomainError):
    """Raised when a referenced course, session, student or user does not exist."""

    kind = ErrorKind.NOT_FOUND


class InvalidCodeError(DomainError):
    """Raised when a check-in code is unknown or belongs to an ended session."""

    kind = ErrorKind.INVALID_CODE


class AlreadyCheckedInError(DomainError):
    kind = ErrorKind.ALREADY_CHECKED_IN


class ConflictError(DomainError):
    """Raised when a unique key (course code, enrollment pair, username) is taken."""

    kind = ErrorKind.CONFLICT


class AuthenticationError(DomainError):
    """Raised when login credentials or tokens are invalid."""

    kind = ErrorKind.UNAUTHORIZED


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = ErrorKind.FORBIDDEN
