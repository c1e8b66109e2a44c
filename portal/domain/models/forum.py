"""Forum posts and replies. Neither is ever edited or deleted."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from portal.infrastructure.database import Base


class ForumPost(Base):
    __tablename__ = "forum_posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(300), nullable=False)
    content = Column(Text, nullable=False)
    author_email = Column(String(255), nullable=False, index=True)
    image_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    replies = relationship(
        "ForumReply",
        back_populates="post",
        order_by="(ForumReply.created_at, ForumReply.id)",
    )

    def __repr__(self):
        return f"<ForumPost {self.id} - {self.title}>"


class ForumReply(Base):
    __tablename__ = "forum_replies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("forum_posts.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    author_email = Column(String(255), nullable=False, index=True)
    image_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    post = relationship("ForumPost", back_populates="replies")

    def __repr__(self):
        return f"<ForumReply {self.id} on post {self.post_id}>"
