"""Common API response schemas."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """JSON envelope; ``warnings`` lists side effects that failed without failing the request."""

    data: T
    warnings: list[str] = Field(default_factory=list)
