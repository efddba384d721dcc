"""
Common API Response Schemas

Standardized error responses and pagination models.
"""
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Error Response Models
# ============================================================================

class ErrorResponse(BaseModel):
    """
    Standardized error response for all API errors.

    Error Codes:
        - VALIDATION_ERROR: Request validation failed (400/422)
        - NOT_FOUND: Resource not found (404)
        - ALREADY_PROCESSED: Production already completed (409)
        - INVALID_STATE: Operation not allowed in current state (409)
        - INSUFFICIENT_STOCK: Not enough stock available (422)
        - PERSISTENCE_ERROR: Transaction failed and was rolled back (500)
        - INTERNAL_ERROR: Unexpected internal error (500)
    """
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error context")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="When the error occurred (UTC)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "INSUFFICIENT_STOCK",
                "message": "Insufficient stock for product 3 in warehouse 1: requested 50, available 20",
                "details": {"product_id": "3", "warehouse_id": "1", "requested": "50", "available": "20"},
                "timestamp": "2026-01-15T10:30:00Z",
            }
        }
    )


# ============================================================================
# Pagination Models
# ============================================================================

class PaginationMeta(BaseModel):
    """Pagination metadata included in list responses."""
    total: int = Field(..., description="Total number of records matching the query")
    offset: int = Field(..., description="Number of records skipped")
    limit: int = Field(..., description="Maximum records per page")
    returned: int = Field(..., description="Number of records in this response")


T = TypeVar("T")


class ListResponse(BaseModel, Generic[T]):
    """Standardized list response wrapper with pagination."""
    items: List[T] = Field(..., description="List of items for the current page")
    pagination: PaginationMeta = Field(..., description="Pagination metadata")


class PaginationParams(BaseModel):
    """Offset-based pagination parameters for list endpoints."""
    offset: int = Field(default=0, ge=0, description="Number of records to skip")
    limit: int = Field(default=50, ge=1, le=500, description="Maximum number of records to return (1-500)")
