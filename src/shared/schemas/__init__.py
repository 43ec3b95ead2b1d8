from src.shared.schemas.base import (
    ApiResponse,
    BaseSchema,
    PaginatedResponse,
    PositiveRupees,
    Rupees,
    SuccessResponse,
    ErrorResponse,
    ErrorDetail,
)

__all__ = [
    "ApiResponse",
    "BaseSchema",
    "PaginatedResponse",
    "PositiveRupees",
    "Rupees",
    "SuccessResponse",
    "ErrorResponse",
    "ErrorDetail",
]
