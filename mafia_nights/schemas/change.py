# mafia_nights/schemas/change.py
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict

ChangeType = Literal["INSERT", "UPDATE", "DELETE"]
FeedTable = Literal["game_rooms", "game_players", "chat_messages"]


class ChangeEventOut(BaseModel):
    id: int
    table_name: FeedTable
    event: ChangeType
    room_id: Optional[str] = None
    record: dict[str, Any]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChangeFeedOut(BaseModel):
    cursor: int
    events: list[ChangeEventOut]
