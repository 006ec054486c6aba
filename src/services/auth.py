"""Authentication service for JWT and password handling."""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.user import Profile, User

settings = get_settings()

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(user_id: int, email: str) -> str:
    """Create a JWT access token."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.jwt_expiration_minutes)
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by email."""
    return db.query(User).filter(User.email == email).first()


def create_user(
    db: Session, email: str, password: str, display_name: str | None = None
) -> User:
    """Create a new user together with their public profile."""
    user = User(email=email, password_hash=get_password_hash(password))
    db.add(user)
    db.flush()

    # Default display name is the local part of the email address
    db.add(Profile(id=user.id, display_name=display_name or email.split("@")[0]))
    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, user: User, updates: dict) -> Profile:
    """Apply profile edits, creating the profile row if it is missing."""
    profile = user.profile
    if profile is None:
        profile = Profile(id=user.id, display_name=user.email.split("@")[0])
        db.add(profile)

    for field, value in updates.items():
        setattr(profile, field, value or None)

    db.commit()
    db.refresh(profile)
    return profile
