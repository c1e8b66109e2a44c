"""Forum API routes: posts and replies with optional image attachments."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from portal.interfaces.api.deps import get_current_user
from portal.interfaces.deps import get_db, get_forum_repository
from portal.domain.repositories.forum_repository import ForumRepository
from portal.domain.models.user import User
from portal.domain.schemas.forum import ForumPostRead, ForumReplyRead
from portal.infrastructure.storage import LocalStorage, get_storage
from portal.application.services.forum_service import ImageUpload, add_reply, create_post, get_post, list_posts

router = APIRouter(prefix="/api/forum", tags=["Forum"])


async def _read_image(image: Optional[UploadFile]) -> Optional[ImageUpload]:
    # Browsers send an empty part when no file is picked.
    if image is None or not image.filename:
        return None
    return ImageUpload(filename=image.filename, content_type=image.content_type, content=await image.read())


@router.get("/posts", response_model=list[ForumPostRead])
def get_posts(
    db: Session = Depends(get_db),
    repo: ForumRepository = Depends(get_forum_repository),
    user: User = Depends(get_current_user),
):
    return list_posts(db, repo)


@router.get("/posts/{post_id}", response_model=ForumPostRead)
def get_single_post(
    post_id: int,
    db: Session = Depends(get_db),
    repo: ForumRepository = Depends(get_forum_repository),
    user: User = Depends(get_current_user),
):
    return get_post(db, repo, post_id)


@router.post("/posts", response_model=ForumPostRead, status_code=status.HTTP_201_CREATED)
async def new_post(
    title: str = Form(...),
    content: str = Form(...),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    repo: ForumRepository = Depends(get_forum_repository),
    storage: LocalStorage = Depends(get_storage),
    user: User = Depends(get_current_user),
):
    post = create_post(repo, storage, user, title, content, await _read_image(image))
    return get_post(db, repo, post.id)


@router.post("/posts/{post_id}/replies", response_model=ForumReplyRead, status_code=status.HTTP_201_CREATED)
async def new_reply(
    post_id: int,
    content: str = Form(...),
    image: Optional[UploadFile] = File(None),
    repo: ForumRepository = Depends(get_forum_repository),
    storage: LocalStorage = Depends(get_storage),
    user: User = Depends(get_current_user),
):
    reply = add_reply(repo, storage, user, post_id, content, await _read_image(image))
    return ForumReplyRead.model_validate(reply).model_copy(update={"author_name": user.name})
