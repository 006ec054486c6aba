"""Shelf sharing API endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_current_user, get_share_service
from src.models.enums import ShareErrorReason
from src.models.user import User
from src.schemas.share import (
    InviteResponse,
    JoinRequest,
    JoinResponse,
    SharesResponse,
)
from src.services.share_service import ShareService

router = APIRouter(prefix="/api/v1/shares", tags=["shares"])

ERROR_STATUS = {
    ShareErrorReason.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ShareErrorReason.SELF_INVITE: status.HTTP_400_BAD_REQUEST,
    ShareErrorReason.ALREADY_PROCESSED: status.HTTP_400_BAD_REQUEST,
    ShareErrorReason.ALREADY_USED: status.HTTP_409_CONFLICT,
    ShareErrorReason.ALREADY_FRIENDS: status.HTTP_409_CONFLICT,
    ShareErrorReason.GENERATION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ShareErrorReason.PURGE_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ShareErrorReason.JOIN_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ShareErrorReason.REMOVE_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_for_error(result: dict[str, Any]) -> dict[str, Any]:
    """Translate a service error dict into an HTTPException."""
    if "error" in result:
        reason = ShareErrorReason(result["reason"])
        raise HTTPException(
            status_code=ERROR_STATUS[reason],
            detail={"message": result["error"], "reason": reason.value},
        )
    return result


@router.get("", response_model=SharesResponse)
def list_shares(
    current_user: Annotated[User, Depends(get_current_user)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    """Get the current open invite and the friend list."""
    return share_service.get_shares_and_friends(current_user.id)


@router.post("/invite", response_model=InviteResponse)
def get_invite(
    current_user: Annotated[User, Depends(get_current_user)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    """Get the open invite code, creating one if needed."""
    return raise_for_error(share_service.get_or_create_invite(current_user.id))


@router.post("/invite/regenerate", response_model=InviteResponse)
def regenerate_invite(
    current_user: Annotated[User, Depends(get_current_user)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    """Revoke the unused invite code and issue a new one."""
    return raise_for_error(share_service.regenerate_invite(current_user.id))


@router.delete("/invite/{share_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invite(
    share_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    """Delete one of the current user's share rows."""
    raise_for_error(share_service.delete_invite(share_id, current_user.id))


@router.post("/join", response_model=JoinResponse)
def join_shelf(
    request: JoinRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    """Join a friend's shelf with an invite code.

    With `delete_collection`, the current user's own entries are removed first.
    """
    raise_for_error(
        share_service.join_by_code(
            request.code, current_user.id, delete_collection=request.delete_collection
        )
    )
    return JoinResponse()


@router.delete("/friends/{share_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_friend(
    share_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    share_service: Annotated[ShareService, Depends(get_share_service)],
):
    """Stop sharing with a friend. Either side may remove the friendship."""
    raise_for_error(share_service.remove_friend(share_id, current_user.id))
