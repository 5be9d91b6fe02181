"""Response envelopes shared by every import endpoint."""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PaginationMeta(BaseModel):
    """Page size used and how many jobs exist in total."""

    limit: int
    total_items: int


class APIResponse(BaseModel, Generic[T]):
    """Success envelope: ``{"status": "success", "data": ..., "message": ...}``."""

    status: Literal["success"] = "success"
    data: T | None = None
    message: str | None = None
    pagination: PaginationMeta | None = None


class ErrorDetail(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Failure envelope rendered by the exception handlers."""

    status: Literal["error"] = "error"
    message: str
    code: str
    errors: list[ErrorDetail] | None = None

    def to_content(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
