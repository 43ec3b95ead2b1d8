from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id={identifier} not found"
        super().__init__(message=message, status_code=404)


class ValidationError(AppException):
    """Validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=422, details=details)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, status_code=401)


class AuthorizationError(AppException):
    """Not authorized to perform action."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message=message, status_code=403)


class DuplicateError(AppException):
    """Duplicate resource."""

    def __init__(self, resource: str, field: str, value: Any):
        message = f"{resource} with {field}={value} already exists"
        super().__init__(message=message, status_code=409, details={"field": field, "value": value})


class InvalidStateTransitionError(AppException):
    """Requested status change is not allowed from the current status."""

    def __init__(self, resource: str, current: str, target: str):
        message = f"Cannot move {resource} from '{current}' to '{target}'"
        super().__init__(
            message=message,
            status_code=409,
            details={"current": current, "target": target},
        )


class MissingFeeReferenceError(AppException):
    """Course was removed and the admission has no fee snapshot to fall back on."""

    def __init__(self, admission_id: int):
        super().__init__(
            message=f"Fee data unavailable for admission {admission_id}",
            status_code=409,
            details={"admission_id": admission_id},
        )


class ConcurrencyConflictError(AppException):
    """Optimistic-lock violation: someone else wrote the same record first."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} {identifier} was modified by another request, reload and try again",
            status_code=409,
        )
