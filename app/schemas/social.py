#app/schemas/social.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from .user import UserSummary

class CommentCreate(BaseModel):
    template_id: int
    text: str = Field(..., max_length=5000, examples=["Great template!"])

class CommentRead(BaseModel):
    id: int
    template_id: int
    author_id: int
    text: str
    created_at: Optional[datetime] = None
    author: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)

class LikeToggleResponse(BaseModel):
    liked: bool
    count: int

class LikeCountResponse(BaseModel):
    count: int

class LikeStatusResponse(BaseModel):
    liked: bool

class TagRead(BaseModel):
    id: int
    name: str
    count: int

    model_config = ConfigDict(from_attributes=True)
