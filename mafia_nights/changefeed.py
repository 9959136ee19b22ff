# mafia_nights/changefeed.py
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from .models.change import ChangeEvent


def record_change(
    db: Session,
    table_name: str,
    event: str,
    record: BaseModel,
    room_id: Optional[str] = None,
) -> ChangeEvent:
    """
    行の変更を change_events に積む。commit は呼び出し側の責任
    （変更本体と同じトランザクションで確定させる）。
    """
    ev = ChangeEvent(
        table_name=table_name,
        event=event,
        room_id=room_id,
        record=record.model_dump(mode="json"),
    )
    db.add(ev)
    return ev


def latest_cursor(db: Session) -> int:
    last = db.query(ChangeEvent.id).order_by(ChangeEvent.id.desc()).first()
    return last[0] if last else 0


def events_after(
    db: Session,
    after: int,
    upto: Optional[int] = None,
    table_name: Optional[str] = None,
    room_id: Optional[str] = None,
    limit: int = 100,
) -> list[ChangeEvent]:
    q = db.query(ChangeEvent).filter(ChangeEvent.id > after)
    if upto is not None:
        q = q.filter(ChangeEvent.id <= upto)
    if table_name:
        q = q.filter(ChangeEvent.table_name == table_name)
    if room_id:
        q = q.filter(ChangeEvent.room_id == room_id)
    return q.order_by(ChangeEvent.id.asc()).limit(limit).all()
