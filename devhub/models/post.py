from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Like(BaseModel):
    id: str
    user: str


class Comment(BaseModel):
    id: str
    user: str
    text: str
    name: str
    avatar: Optional[str] = None
    date: datetime = Field(default_factory=utcnow)


class PostCreate(BaseModel):
    text: str = Field(..., min_length=1)


class CommentCreate(BaseModel):
    text: str = Field(..., min_length=1)


class PostOut(BaseModel):
    id: Optional[str] = None
    user: str
    text: str
    name: str
    avatar: Optional[str] = None
    likes: List[Like] = []
    comments: List[Comment] = []
    date: datetime = Field(default_factory=utcnow)


class Post(PostOut):
    version: int = 0


class MessageOut(BaseModel):
    msg: str
