"""User management API: list users, change roles."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.interfaces.api.deps import require_admin
from portal.interfaces.deps import get_db
from portal.domain.models.user import User
from portal.domain.schemas.auth import RoleUpdate, UserRead
from portal.application.services.user_service import change_role, list_users

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=list[UserRead])
def get_users(
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    return list_users(db, q)


@router.patch("/{user_id}/role", response_model=UserRead)
def update_role(
    user_id: int,
    body: RoleUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    return change_role(db, user, user_id, body.role)
