"""Shelf API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_current_user, get_shelf_service
from src.models.enums import SortField, SortOrder
from src.models.user import User
from src.schemas.shelf import ShelfResponse
from src.services.shelf_service import ShelfService

router = APIRouter(prefix="/api/v1/shelf", tags=["shelf"])


@router.get("", response_model=ShelfResponse)
def get_shelf(
    current_user: Annotated[User, Depends(get_current_user)],
    shelf_service: Annotated[ShelfService, Depends(get_shelf_service)],
    sort: Annotated[str, Query(max_length=20)] = SortField.CREATED_AT.value,
    order: Annotated[str, Query(max_length=20)] = SortOrder.DESC.value,
    type: Annotated[str | None, Query(max_length=50)] = None,
    min_rating: Annotated[int | None, Query(ge=1, le=5)] = None,
):
    """Get the current user's shelf merged with their friends' entries.

    Entries are grouped per alcohol. A failed load returns an empty shelf
    with `error` set rather than an error status.
    """
    shelf = shelf_service.list_shelf(
        current_user.id,
        sort_field=sort,
        sort_order=order,
        type_filter=type,
        min_rating=min_rating,
    )
    return ShelfResponse(
        groups=shelf.groups,
        alcohol_count=shelf.alcohol_count,
        entry_count=shelf.entry_count,
        is_shared=shelf.is_shared,
        error=shelf.error,
    )
