# mafia_nights/schemas/profile.py

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Gender = Literal["male", "female", "other", "prefer_not_to_say"]


class ProfileUpdate(BaseModel):
    """PATCH /api/profiles/{user_id} 用（指定した項目だけ更新）"""
    username: Optional[str] = Field(default=None, min_length=3, max_length=20)
    name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=13, le=100)
    gender: Optional[Gender] = None
    avatar_character: Optional[str] = None


class ProfileOut(BaseModel):
    """レスポンス用"""
    id: str
    username: Optional[str] = None
    name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[Gender] = None
    avatar_character: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
