# mafia_nights/api/v1/changes.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...api.deps import get_db_dep
from ...changefeed import events_after, latest_cursor
from ...schemas.change import ChangeEventOut, ChangeFeedOut, FeedTable

router = APIRouter(prefix="/changes", tags=["changes"])


@router.get("", response_model=ChangeFeedOut)
def poll_changes(
    table: Optional[FeedTable] = None,
    room_id: Optional[str] = None,
    after: Optional[int] = Query(default=None, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db_dep),
):
    """
    after 未指定なら「今」のカーソルだけ返す（購読開始用）。
    after 指定時はそれより新しいイベントを古い順に返す。
    """
    head = latest_cursor(db)
    if after is None:
        return ChangeFeedOut(cursor=head, events=[])

    events = events_after(db, after, upto=head, table_name=table, room_id=room_id, limit=limit)
    # 取り切れなかった場合だけ途中までしか進めない
    cursor = events[-1].id if len(events) == limit else max(after, head)
    return ChangeFeedOut(
        cursor=cursor,
        events=[ChangeEventOut.model_validate(e) for e in events],
    )
