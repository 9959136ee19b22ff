# mafia_nights/api/v1/chat.py

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...api.deps import get_current_user, get_db_dep
from ...changefeed import record_change
from ...models.auth import User
from ...models.room import ChatMessage, GameRoom
from ...schemas.chat import ChatMessageCreate, ChatMessageOut

router = APIRouter(prefix="/rooms/{room_id}/messages", tags=["chat"])


@router.get("", response_model=list[ChatMessageOut])
def list_messages(
    room_id: str,
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db_dep),
):
    """最新 limit 件を取り出し、古い順に並べ直して返す"""
    if not db.get(GameRoom, room_id):
        raise HTTPException(status_code=404, detail="Room not found")

    newest_first = (
        db.query(ChatMessage)
        .filter(ChatMessage.room_id == room_id)
        .order_by(ChatMessage.seq.desc())
        .limit(limit)
        .all()
    )
    return list(reversed(newest_first))


@router.post("", response_model=ChatMessageOut)
def send_message(
    room_id: str,
    data: ChatMessageCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_dep),
):
    if data.user_id != user.id:
        raise HTTPException(status_code=403, detail="Cannot post as another user")
    if not db.get(GameRoom, room_id):
        raise HTTPException(status_code=404, detail="Room not found")

    msg = ChatMessage(
        id=str(uuid.uuid4()),
        room_id=room_id,
        user_id=user.id,
        username=data.username,
        message=data.message,
    )
    db.add(msg)
    db.flush()
    record_change(db, "chat_messages", "INSERT", ChatMessageOut.model_validate(msg), room_id=room_id)
    db.commit()
    db.refresh(msg)
    return msg
