# mafia_nights/api/v1/rooms.py

from datetime import datetime
from typing import Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...api.deps import get_current_user, get_db_dep
from ...changefeed import record_change
from ...models.auth import User
from ...models.profile import Profile
from ...models.room import GamePlayer, GameRoom
from ...schemas.player import PlayerJoin, PlayerOut, PlayerUpdate
from ...schemas.room import RoomCreate, RoomOut, RoomStatus, RoomStatusUpdate

router = APIRouter(
    prefix="/rooms",
    tags=["rooms"],
)


def _get_room_or_404(db: Session, room_id: str) -> GameRoom:
    room = db.get(GameRoom, room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return room


def _require_host(room: GameRoom, user: User) -> None:
    if room.host_id != user.id:
        raise HTTPException(status_code=403, detail="Only the host can do this")


def _require_self_or_host(room: GameRoom, user: User, user_id: str) -> None:
    if user.id != user_id and room.host_id != user.id:
        raise HTTPException(status_code=403, detail="Cannot modify another player")


def _get_player_or_404(db: Session, room_id: str, user_id: str) -> GamePlayer:
    player = (
        db.query(GamePlayer)
        .filter(GamePlayer.room_id == room_id, GamePlayer.user_id == user_id)
        .first()
    )
    if not player:
        raise HTTPException(status_code=404, detail="Player not found in this room")
    return player


# -----------------------------
# 部屋の作成・一覧
# -----------------------------

@router.post("", response_model=RoomOut)
def create_room(
    data: RoomCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_dep),
):
    code = data.code.strip().upper()

    # コードの一意性は waiting の部屋の中だけで保証する
    taken = (
        db.query(GameRoom)
        .filter(GameRoom.code == code, GameRoom.status == "waiting")
        .first()
    )
    if taken:
        raise HTTPException(status_code=409, detail="Room code already in use")

    room = GameRoom(
        id=str(uuid.uuid4()),
        code=code,
        name=data.name.strip(),
        host_id=user.id,
        status="waiting",
        max_players=data.max_players,
    )
    db.add(room)
    db.flush()
    record_change(db, "game_rooms", "INSERT", RoomOut.model_validate(room), room_id=room.id)
    db.commit()
    db.refresh(room)
    return room


@router.get("", response_model=list[RoomOut])
def list_rooms(
    status: Optional[RoomStatus] = None,
    db: Session = Depends(get_db_dep),
):
    """新しい順。status=waiting でロビー表示用に絞り込む"""
    q = db.query(GameRoom)
    if status is not None:
        q = q.filter(GameRoom.status == status)
    return q.order_by(GameRoom.created_at.desc()).all()


@router.get("/by-code/{code}", response_model=RoomOut)
def get_room_by_code(code: str, db: Session = Depends(get_db_dep)):
    room = (
        db.query(GameRoom)
        .filter(GameRoom.code == code.strip().upper(), GameRoom.status == "waiting")
        .first()
    )
    if not room:
        raise HTTPException(status_code=404, detail="Room not found or no longer available")
    return room


@router.get("/{room_id}", response_model=RoomOut)
def get_room(room_id: str, db: Session = Depends(get_db_dep)):
    return _get_room_or_404(db, room_id)


@router.patch("/{room_id}/status", response_model=RoomOut)
def update_room_status(
    room_id: str,
    data: RoomStatusUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_dep),
):
    room = _get_room_or_404(db, room_id)
    _require_host(room, user)

    now = datetime.utcnow()
    room.status = data.status
    room.updated_at = now
    if data.status == "playing" and room.game_start_at is None:
        room.game_start_at = now
    elif data.status == "finished":
        room.game_end_at = now

    db.add(room)
    db.flush()
    record_change(db, "game_rooms", "UPDATE", RoomOut.model_validate(room), room_id=room.id)
    db.commit()
    db.refresh(room)
    return room


@router.delete("/{room_id}", status_code=204)
def delete_room(
    room_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_dep),
):
    """参加者・チャットもまとめて削除される（ホストのみ）"""
    room = _get_room_or_404(db, room_id)
    _require_host(room, user)
    snapshot = RoomOut.model_validate(room)

    db.delete(room)
    record_change(db, "game_rooms", "DELETE", snapshot, room_id=room_id)
    db.commit()
    return


# -----------------------------
# 参加者（game_players）
# -----------------------------

@router.get("/{room_id}/players", response_model=list[PlayerOut])
def list_players(room_id: str, db: Session = Depends(get_db_dep)):
    _get_room_or_404(db, room_id)
    return (
        db.query(GamePlayer)
        .filter(GamePlayer.room_id == room_id)
        .order_by(GamePlayer.joined_at.asc())
        .all()
    )


@router.post("/{room_id}/players", response_model=PlayerOut)
def join_room(
    room_id: str,
    data: PlayerJoin,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_dep),
):
    if data.user_id != user.id:
        raise HTTPException(status_code=403, detail="Cannot join on behalf of another user")

    room = _get_room_or_404(db, room_id)
    if room.status != "waiting":
        raise HTTPException(status_code=400, detail="Room is not accepting players")

    already = (
        db.query(GamePlayer)
        .filter(GamePlayer.room_id == room_id, GamePlayer.user_id == user.id)
        .first()
    )
    if already:
        raise HTTPException(status_code=409, detail="Already joined this room")

    count = db.query(GamePlayer).filter(GamePlayer.room_id == room_id).count()
    if count >= room.max_players:
        raise HTTPException(status_code=400, detail="Room is full")

    profile = db.get(Profile, user.id)
    player = GamePlayer(
        id=str(uuid.uuid4()),
        room_id=room_id,
        user_id=user.id,
        username=data.username,
        avatar_character=profile.avatar_character if profile else None,
        is_alive=True,
    )
    db.add(player)
    try:
        db.flush()
    except IntegrityError:
        # 同時参加で一意制約に当たった場合
        db.rollback()
        raise HTTPException(status_code=409, detail="Already joined this room")

    record_change(db, "game_players", "INSERT", PlayerOut.model_validate(player), room_id=room_id)
    db.commit()
    db.refresh(player)
    return player


@router.patch("/{room_id}/players/{user_id}", response_model=PlayerOut)
def update_player(
    room_id: str,
    user_id: str,
    data: PlayerUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_dep),
):
    _require_self_or_host(_get_room_or_404(db, room_id), user, user_id)
    player = _get_player_or_404(db, room_id, user_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(player, field, value)

    db.add(player)
    db.flush()
    record_change(db, "game_players", "UPDATE", PlayerOut.model_validate(player), room_id=room_id)
    db.commit()
    db.refresh(player)
    return player


@router.delete("/{room_id}/players/{user_id}", status_code=204)
def leave_room(
    room_id: str,
    user_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_dep),
):
    """本人の退室か、ホストによる退室処理"""
    _require_self_or_host(_get_room_or_404(db, room_id), user, user_id)
    player = _get_player_or_404(db, room_id, user_id)
    snapshot = PlayerOut.model_validate(player)

    db.delete(player)
    record_change(db, "game_players", "DELETE", snapshot, room_id=room_id)
    db.commit()
    return
