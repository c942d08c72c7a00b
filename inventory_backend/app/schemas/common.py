"""
Response envelope shared by every endpoint.
"""

from pydantic import BaseModel
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Success envelope: ``{"success": true, "data": ..., "message": ...}``.

    Errors use the shape produced by ``core.exceptions``.
    """
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class Page(BaseModel, Generic[T]):
    """One page of a paginated listing."""
    items: List[T]
    total: int
    page: int
    page_size: int
    pages: int
