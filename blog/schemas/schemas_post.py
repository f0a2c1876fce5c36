# blog/schemas/schemas_post.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuthorOut(BaseModel):
    """Public view of a post's author; the password hash never leaves the store."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str


class PostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    summary: str
    content: str
    cover: Optional[str] = None
    author: AuthorOut
    created_at: datetime
    updated_at: datetime


class DeleteResult(BaseModel):
    message: str
