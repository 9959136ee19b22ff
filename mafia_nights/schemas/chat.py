# mafia_nights/schemas/chat.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator


class ChatMessageCreate(BaseModel):
    user_id: str
    username: str
    message: str

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message must not be empty")
        return v


class ChatMessageOut(BaseModel):
    id: str
    seq: int
    room_id: str
    user_id: str
    username: str
    message: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
