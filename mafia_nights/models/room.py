# mafia_nights/models/room.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Boolean, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from ..db import Base


class GameRoom(Base):
    __tablename__ = "game_rooms"

    id = Column(String, primary_key=True)
    code = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    host_id = Column(String, ForeignKey("users.id"), nullable=False)

    status = Column(String, nullable=False, default="waiting")  # waiting / playing / finished
    max_players = Column(Integer, nullable=False, default=8)

    # 表示専用（ゲーム進行ロジックはない）
    phase = Column(String, nullable=True)  # day / night
    round_number = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    game_start_at = Column(DateTime, nullable=True)
    game_end_at = Column(DateTime, nullable=True)

    players = relationship("GamePlayer", back_populates="room", cascade="all, delete-orphan")
    messages = relationship("ChatMessage", back_populates="room", cascade="all, delete-orphan")


class GamePlayer(Base):
    __tablename__ = "game_players"
    __table_args__ = (UniqueConstraint("room_id", "user_id", name="uq_game_players_room_user"),)

    id = Column(String, primary_key=True)
    room_id = Column(String, ForeignKey("game_rooms.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    username = Column(String, nullable=False)
    avatar_character = Column(String, nullable=True)
    role = Column(String, nullable=True)
    is_alive = Column(Boolean, nullable=False, default=True)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    room = relationship("GameRoom", back_populates="players")


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    # 投稿順（created_at が同じでも順序が決まる）
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False, index=True)
    room_id = Column(String, ForeignKey("game_rooms.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    username = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    room = relationship("GameRoom", back_populates="messages")
