from src.core.exceptions.base import (
    AppException,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    DuplicateError,
    InvalidStateTransitionError,
    MissingFeeReferenceError,
    ConcurrencyConflictError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "DuplicateError",
    "InvalidStateTransitionError",
    "MissingFeeReferenceError",
    "ConcurrencyConflictError",
]
