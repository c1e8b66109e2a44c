"""
Forum Repository Interface.
"""

from datetime import datetime
from typing import List, Optional

from portal.domain.repositories.base import BaseRepository
from portal.domain.models.forum import ForumPost, ForumReply


class ForumRepository(BaseRepository[ForumPost]):
    """Interface for forum posts and their replies."""

    def list_posts(self) -> List[ForumPost]:
        """Posts newest first with replies loaded."""
        ...

    def add_reply(self, post: ForumPost, content: str, author_email: str, image_url: Optional[str]) -> ForumReply:
        ...

    def latest_activity(self, author_email: str) -> Optional[datetime]:
        """Latest timestamp among the author's posts and replies."""
        ...
