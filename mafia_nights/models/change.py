# mafia_nights/models/change.py
from sqlalchemy import Column, Integer, String, DateTime, JSON
from datetime import datetime

from ..db import Base


class ChangeEvent(Base):
    """
    変更フィード。id が購読カーソルを兼ねる（単調増加）。
    """
    __tablename__ = "change_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_name = Column(String, nullable=False, index=True)
    event = Column(String, nullable=False)  # INSERT / UPDATE / DELETE
    room_id = Column(String, nullable=True, index=True)
    record = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
