"""User management: admin listing and role changes."""

from typing import List, Optional

import structlog
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from portal.core.exceptions import BusinessRuleViolationException, EntityNotFoundException
from portal.domain.models.user import ROLES, User

logger = structlog.get_logger(__name__)


def list_users(db: Session, search: Optional[str] = None) -> List[User]:
    """All users newest first, optionally filtered by a case-insensitive term on name, email or role."""
    query = db.query(User)
    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(User.name).like(term),
                func.lower(User.email).like(term),
                func.lower(User.role).like(term),
            )
        )
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def change_role(db: Session, actor: User, user_id: int, role: str) -> User:
    if role not in ROLES:
        raise BusinessRuleViolationException(f"Unknown role '{role}'", details={"allowed": list(ROLES)})

    user = db.get(User, user_id)
    if user is None:
        raise EntityNotFoundException("User not found", details={"user_id": user_id})
    if user.id == actor.id:
        raise BusinessRuleViolationException("You cannot change your own role")

    previous = user.role
    user.role = role
    db.commit()
    db.refresh(user)

    logger.info("User role changed", user_id=user.id, old_role=previous, new_role=role, by=actor.email)
    return user
