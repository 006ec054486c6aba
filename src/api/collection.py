"""Collection entry API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_collection_service, get_current_user
from src.models.user import User
from src.schemas.collection import (
    CollectionEntryCreate,
    CollectionEntryResponse,
    CollectionEntryUpdate,
)
from src.services.collection_service import (
    AlcoholNotFoundError,
    CollectionError,
    CollectionService,
)

router = APIRouter(prefix="/api/v1/collection", tags=["collection"])


@router.post("", response_model=CollectionEntryResponse, status_code=status.HTTP_201_CREATED)
def create_entry(
    data: CollectionEntryCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    collection_service: Annotated[CollectionService, Depends(get_collection_service)],
):
    """Save a reviewed bottle to the current user's collection."""
    try:
        return collection_service.save_collection(current_user.id, data)
    except AlcoholNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except CollectionError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        ) from e


@router.get("/{entry_id}", response_model=CollectionEntryResponse)
def get_entry(
    entry_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    collection_service: Annotated[CollectionService, Depends(get_collection_service)],
):
    """Get an entry of the current user or one of their friends."""
    entry = collection_service.get_entry(entry_id, current_user.id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return entry


@router.put("/{entry_id}", response_model=CollectionEntryResponse)
def update_entry(
    entry_id: int,
    data: CollectionEntryUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    collection_service: Annotated[CollectionService, Depends(get_collection_service)],
):
    """Update one of the current user's entries."""
    try:
        entry = collection_service.update_entry(entry_id, current_user.id, data)
    except CollectionError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        ) from e
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return entry


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    collection_service: Annotated[CollectionService, Depends(get_collection_service)],
):
    """Delete one of the current user's entries. Its photo is removed in the background."""
    try:
        deleted = collection_service.delete_entry(entry_id, current_user.id)
    except CollectionError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        ) from e
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
