"""Auth service: JWT token management and password hashing."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from portal.config import get_settings
from portal.domain.models.user import ROLE_ADMIN, ROLE_CLIENT, User

logger = structlog.get_logger(__name__)
settings = get_settings()
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """The active user behind these credentials, or None."""
    user = get_user_by_email(db, email)
    if user is None or not user.is_active:
        return None
    return user if verify_password(password, user.password_hash) else None


def issue_token(user: User) -> str:
    """Bearer token carrying the user's email as subject and their role."""
    return create_access_token({"sub": user.email, "role": user.role})


def create_user(db: Session, name: str, email: str, password: str, role: str = ROLE_CLIENT) -> User:
    user = User(
        name=name.strip(),
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User created", user_id=user.id, role=role)
    return user


def register_client(db: Session, name: str, email: str, password: str) -> Optional[User]:
    """Self-signup. Always a client account; None when the email is taken."""
    if get_user_by_email(db, email):
        return None
    return create_user(db, name=name, email=email, password=password, role=ROLE_CLIENT)


def seed_default_admin(db: Session) -> Optional[User]:
    """Create the configured admin account on first start."""
    if get_user_by_email(db, settings.DEFAULT_ADMIN_EMAIL):
        return None
    return create_user(
        db,
        name=settings.DEFAULT_ADMIN_NAME,
        email=settings.DEFAULT_ADMIN_EMAIL,
        password=settings.DEFAULT_ADMIN_PASSWORD,
        role=ROLE_ADMIN,
    )
