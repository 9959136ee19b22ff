# mafia_nights/schemas/room.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import DEFAULT_MAX_PLAYERS, MAX_PLAYERS, MIN_PLAYERS

RoomStatus = Literal["waiting", "playing", "finished"]
Phase = Literal["day", "night"]


class RoomCreate(BaseModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1)
    max_players: int = Field(default=DEFAULT_MAX_PLAYERS, ge=MIN_PLAYERS, le=MAX_PLAYERS)


class RoomStatusUpdate(BaseModel):
    status: RoomStatus


class RoomOut(BaseModel):
    id: str
    code: str
    name: str
    host_id: str
    status: RoomStatus
    max_players: int
    # 一覧画面でクライアント側が埋める（サーバーは返さない）
    current_players: Optional[int] = None
    phase: Optional[Phase] = None
    round_number: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    game_start_at: Optional[datetime] = None
    game_end_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
