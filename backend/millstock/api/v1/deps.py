"""
API Dependencies

Common query parameter and caller-identity dependencies.
"""
from typing import Optional

from fastapi import Header, Query

from millstock.schemas.common import PaginationParams


def get_actor(
    x_user: Optional[str] = Header(default=None, description="Name recorded as created_by"),
) -> Optional[str]:
    """
    Identity recorded on created documents.

    Authentication is handled in front of this service; the authenticated
    user name is forwarded in the ``X-User`` header.
    """
    return x_user.strip() if x_user and x_user.strip() else None


def get_pagination_params(
    offset: int = Query(default=0, ge=0, description="Number of records to skip (for pagination)"),
    limit: int = Query(default=50, ge=1, le=500, description="Maximum number of records to return (1-500)"),
) -> PaginationParams:
    """Dependency for standardized pagination parameters."""
    return PaginationParams(offset=offset, limit=limit)
