from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INVALID_DISCOUNT = ErrorDefinition(
        "INVALID_DISCOUNT",
        "Discount is outside the bounds of its type",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    PAYMENT_MISMATCH = ErrorDefinition(
        "PAYMENT_MISMATCH",
        "Payment channels do not add up to the sale total",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    RETURN_NOT_ELIGIBLE = ErrorDefinition(
        "RETURN_NOT_ELIGIBLE",
        "Return is not eligible",
        status.HTTP_409_CONFLICT,
    )
    DUPLICATE_SERIAL_IN_SALE = ErrorDefinition(
        "DUPLICATE_SERIAL_IN_SALE",
        "Serial number appears more than once in the sale",
        status.HTTP_409_CONFLICT,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)

    @property
    def messages(self) -> list[str]:
        if isinstance(self.details, dict):
            return list(self.details.get("messages") or [])
        return []


def fail(error: ErrorDefinition, *messages: str, **extra) -> AppError:
    """Build an AppError whose details carry a human-readable message list."""
    details = {"messages": list(messages)}
    details.update(extra)
    return AppError(error, details=details)
