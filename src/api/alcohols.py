"""Alcohol catalog and identification API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import (
    get_collection_service,
    get_current_user,
    get_identification_service,
)
from src.models.user import User
from src.schemas.alcohol import AlcoholInfo, AnalyzeResult, IdentifyRequest
from src.services.collection_service import CollectionService
from src.services.identification import IdentificationError, IdentificationService

router = APIRouter(prefix="/api/v1/alcohols", tags=["alcohols"])


@router.post("/identify", response_model=AnalyzeResult)
async def identify_alcohol(
    request: IdentifyRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    identification_service: Annotated[
        IdentificationService, Depends(get_identification_service)
    ],
):
    """Identify a bottle from a photo or a typed name.

    Returns one confident match (`unique`) or up to 5 candidates. Pass
    `rejected_name` to ask again while excluding a wrong answer.
    """
    try:
        return await identification_service.analyze(request)
    except IdentificationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e


@router.get("/{alcohol_id}", response_model=AlcoholInfo)
def get_alcohol(
    alcohol_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    collection_service: Annotated[CollectionService, Depends(get_collection_service)],
):
    """Get an alcohol on the current user's shelf, to add a review of it."""
    alcohol = collection_service.get_alcohol_info(alcohol_id, current_user.id)
    if alcohol is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alcohol not found")
    return alcohol
