"""Pydantic schemas for the forum."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ForumReplyRead(BaseModel):
    id: int
    post_id: int
    content: str
    author_email: str
    author_name: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ForumPostRead(BaseModel):
    id: int
    title: str
    content: str
    author_email: str
    author_name: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    reply_count: int = 0
    last_reply_at: Optional[datetime] = None
    replies: list[ForumReplyRead] = []

    model_config = {"from_attributes": True}
