"""
Shared Pydantic response models for API endpoints.

These models give FastAPI the type information it needs to generate
accurate OpenAPI schemas instead of empty `schema: {}`.

Usage:
    from api.response_models import ListResponse, MutationResponse

    @router.get("/endpoint", response_model=ListResponse)
    def my_endpoint(): ...
"""

from typing import Any

from pydantic import BaseModel, Field

# ==== List Envelope ====
# Shape: {items, total}


class ListResponse(BaseModel):
    """Standard list endpoint response."""

    items: list[Any] = Field(default_factory=list, description="Result items")
    total: int = Field(description="Total count")


# ==== Mutation Result ====
# Used by POST/PATCH/PUT/DELETE endpoints that return {success: bool, ...}.


class MutationResponse(BaseModel):
    """Standard mutation result."""

    success: bool = Field(description="Whether the operation succeeded")
    message: str | None = Field(default=None, description="Outcome message")

    model_config = {"extra": "allow"}


# ==== Detail / Single-Item Responses ====


class DetailResponse(BaseModel):
    """Single entity detail; shape varies per entity type."""

    model_config = {"extra": "allow"}


# ==== Health Check ====


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or error")
    schema_version: int = Field(description="Database schema version")
    timestamp: str = Field(description="ISO timestamp")


# ==== Day Layout ====


class PositionedBlockResponse(BaseModel):
    block: dict[str, Any]
    top_px: float
    height_px: float


class DayLayoutResponse(BaseModel):
    date: str
    items: list[PositionedBlockResponse] = Field(default_factory=list)
    now_fraction: float | None = Field(default=None, description="Position of the now line, 0-1")
    hour_height: int
    initial_scroll_px: float = 0.0
