"""Forum service: posts, replies and image attachments."""

from dataclasses import dataclass
from typing import Iterable, Optional

import structlog
from sqlalchemy.orm import Session

from portal.config import get_settings
from portal.core.exceptions import BusinessRuleViolationException, EntityNotFoundException
from portal.domain.models.forum import ForumPost
from portal.domain.models.user import User
from portal.domain.repositories.forum_repository import ForumRepository
from portal.domain.schemas.forum import ForumPostRead, ForumReplyRead
from portal.infrastructure.storage import FORUM_BUCKET, LocalStorage, timestamped_key

logger = structlog.get_logger(__name__)
settings = get_settings()

IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "bmp"}


@dataclass
class ImageUpload:
    filename: str
    content_type: Optional[str]
    content: bytes


def _author_names(db: Session, emails: Iterable[str]) -> dict[str, str]:
    emails = set(emails)
    if not emails:
        return {}
    rows = db.query(User.email, User.name).filter(User.email.in_(emails)).all()
    return {email: name for email, name in rows}


def _to_read(post: ForumPost, names: dict[str, str]) -> ForumPostRead:
    replies = [
        ForumReplyRead.model_validate(reply).model_copy(
            update={"author_name": names.get(reply.author_email, reply.author_email)}
        )
        for reply in post.replies
    ]
    return ForumPostRead(
        id=post.id,
        title=post.title,
        content=post.content,
        author_email=post.author_email,
        author_name=names.get(post.author_email, post.author_email),
        image_url=post.image_url,
        created_at=post.created_at,
        reply_count=len(replies),
        last_reply_at=replies[-1].created_at if replies else None,
        replies=replies,
    )


def list_posts(db: Session, repo: ForumRepository) -> list[ForumPostRead]:
    posts = repo.list_posts()
    emails = {p.author_email for p in posts} | {r.author_email for p in posts for r in p.replies}
    names = _author_names(db, emails)
    return [_to_read(post, names) for post in posts]


def get_post(db: Session, repo: ForumRepository, post_id: int) -> ForumPostRead:
    post = repo.get_by_id(post_id)
    if post is None:
        raise EntityNotFoundException("Post not found", details={"post_id": post_id})
    emails = {post.author_email} | {r.author_email for r in post.replies}
    return _to_read(post, _author_names(db, emails))


def store_image(storage: LocalStorage, image: Optional[ImageUpload]) -> Optional[str]:
    """Validate and store an attachment, returning its public URL."""
    if image is None or not image.content:
        return None

    if not (image.content_type or "").startswith("image/"):
        raise BusinessRuleViolationException("Only image files can be attached", details={"content_type": image.content_type})
    if len(image.content) > settings.FORUM_IMAGE_MAX_BYTES:
        raise BusinessRuleViolationException(
            "Image too large",
            details={"max_bytes": settings.FORUM_IMAGE_MAX_BYTES, "size": len(image.content)},
        )

    extension = image.filename.rsplit(".", 1)[-1].lower() if "." in image.filename else ""
    if extension not in IMAGE_EXTENSIONS:
        extension = image.content_type.split("/", 1)[1].split("+", 1)[0] or "png"

    key = timestamped_key(extension, prefix=f"{FORUM_BUCKET}/")
    return storage.upload(FORUM_BUCKET, key, image.content)


def create_post(
    repo: ForumRepository,
    storage: LocalStorage,
    author: User,
    title: str,
    content: str,
    image: Optional[ImageUpload] = None,
) -> ForumPost:
    title, content = (title or "").strip(), (content or "").strip()
    if not title or not content:
        raise BusinessRuleViolationException("Title and content are required")

    image_url = store_image(storage, image)
    post = repo.create({"title": title, "content": content, "author_email": author.email, "image_url": image_url})
    logger.info("Forum post created", post_id=post.id, author=author.email, has_image=bool(image_url))
    return post


def add_reply(
    repo: ForumRepository,
    storage: LocalStorage,
    author: User,
    post_id: int,
    content: str,
    image: Optional[ImageUpload] = None,
):
    post = repo.get_by_id(post_id)
    if post is None:
        raise EntityNotFoundException("Post not found", details={"post_id": post_id})

    content = (content or "").strip()
    if not content:
        raise BusinessRuleViolationException("Reply content is required")

    image_url = store_image(storage, image)
    reply = repo.add_reply(post, content, author.email, image_url)
    logger.info("Forum reply added", post_id=post.id, reply_id=reply.id, author=author.email)
    return reply
