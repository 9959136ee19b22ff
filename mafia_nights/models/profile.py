# mafia_nights/models/profile.py

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from datetime import datetime

from ..db import Base


class Profile(Base):
    __tablename__ = "profiles"

    # ユーザーごとに1行（id = users.id）
    id = Column(String, ForeignKey("users.id"), primary_key=True, index=True)
    username = Column(String, nullable=True)
    name = Column(String, nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(String, nullable=True)  # 'male','female','other','prefer_not_to_say'
    avatar_character = Column(String, nullable=True)  # 'char1'..'char4'
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
