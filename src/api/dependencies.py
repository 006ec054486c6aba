"""FastAPI dependencies for authentication, database and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.database import get_db
from src.models.user import User
from src.services.auth import decode_access_token
from src.services.collection_service import CollectionService
from src.services.identification import IdentificationService
from src.services.share_service import ShareService
from src.services.shelf_service import ShelfService
from src.services.storage import PhotoStorage

security = HTTPBearer()


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    token = credentials.credentials
    payload = decode_access_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == int(user_id)).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_collection_service(
    db: Annotated[Session, Depends(get_db)],
) -> CollectionService:
    """Get collection service with dependencies."""
    return CollectionService(db)


def get_share_service(
    db: Annotated[Session, Depends(get_db)],
) -> ShareService:
    """Get share service with dependencies."""
    return ShareService(db, CollectionService(db))


def get_shelf_service(
    db: Annotated[Session, Depends(get_db)],
) -> ShelfService:
    """Get shelf service with dependencies."""
    return ShelfService(db)


def get_identification_service() -> IdentificationService:
    """Get identification service instance."""
    return IdentificationService()


def get_photo_storage() -> PhotoStorage:
    """Get photo storage instance."""
    return PhotoStorage()
