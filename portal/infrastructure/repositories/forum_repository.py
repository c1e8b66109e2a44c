"""
SQLAlchemy Implementation of the Forum Repository.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from portal.domain.models.forum import ForumPost, ForumReply
from portal.domain.repositories.forum_repository import ForumRepository
from portal.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyForumRepository(SQLAlchemyRepository[ForumPost], ForumRepository):
    """Forum repository implementation using SQLAlchemy."""

    def list_posts(self) -> List[ForumPost]:
        return (
            self.db.query(ForumPost)
            .options(selectinload(ForumPost.replies))
            .order_by(ForumPost.created_at.desc(), ForumPost.id.desc())
            .all()
        )

    def add_reply(self, post: ForumPost, content: str, author_email: str, image_url: Optional[str]) -> ForumReply:
        reply = ForumReply(post_id=post.id, content=content, author_email=author_email, image_url=image_url)
        self.db.add(reply)
        self.db.commit()
        self.db.refresh(reply)
        return reply

    def latest_activity(self, author_email: str) -> Optional[datetime]:
        last_post = (
            self.db.query(func.max(ForumPost.created_at))
            .filter(ForumPost.author_email == author_email)
            .scalar()
        )
        last_reply = (
            self.db.query(func.max(ForumReply.created_at))
            .filter(ForumReply.author_email == author_email)
            .scalar()
        )
        candidates = [ts for ts in (last_post, last_reply) if ts is not None]
        return max(candidates) if candidates else None
