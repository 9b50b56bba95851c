from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int
    extra: dict[str, Any] | None = None


class AppError(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.extra = extra
        super().__init__(self.message)


class NotFoundError(AppError):
    """A user or leave request does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class UnauthorizedError(AppError):
    """The acting role is not entitled to perform the operation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class AuthenticationError(AppError):
    """Login credentials did not match."""

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED)


class InvalidStateError(AppError):
    """The operation is not legal for the record's current status."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class ConflictError(AppError):
    """A uniqueness rule would be violated."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class ConcurrentUpdateError(AppError):
    """A version-checked write lost against a concurrent writer."""

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(
            f"{entity} {entity_id} was modified concurrently",
            status_code=status.HTTP_409_CONFLICT,
        )


class InvalidDateRangeError(AppError):
    """Leave dates are malformed or nonsensical."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class UnknownLeaveTypeError(AppError):
    """The leave type has no matching balance category."""

    def __init__(self, leave_type: str, known: frozenset[str] | set[str]) -> None:
        self.leave_type = leave_type
        super().__init__(
            f"Unknown leave type '{leave_type}'",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            extra={"leave_type": leave_type, "known": sorted(known)},
        )


class InsufficientBalanceError(AppError):
    """The user's balance for the category cannot cover the request."""

    def __init__(self, leave_type: str, required: float, available: float) -> None:
        self.leave_type = leave_type
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient {leave_type} leave balance. Required: {required:g}, Available: {available:g}",
            status_code=status.HTTP_400_BAD_REQUEST,
            extra={"leave_type": leave_type, "required": required, "available": available},
        )


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
            extra=exc.extra,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
