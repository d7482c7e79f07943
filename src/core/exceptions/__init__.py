from src.core.exceptions.base import (
    AppException,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
]
