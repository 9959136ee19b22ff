# mafia_nights/schemas/player.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PlayerJoin(BaseModel):
    user_id: str
    username: str


class PlayerUpdate(BaseModel):
    role: Optional[str] = None
    is_alive: Optional[bool] = None


class PlayerOut(BaseModel):
    id: str
    room_id: str
    user_id: str
    username: str
    avatar_character: Optional[str] = None
    role: Optional[str] = None
    is_alive: bool
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)
