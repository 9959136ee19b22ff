# mafia_nights/models/auth.py
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Integer
from datetime import datetime

from ..db import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, unique=True, nullable=True, index=True)
    phone = Column(String, unique=True, nullable=True, index=True)
    password_hash = Column(String, nullable=True)  # "salt$hash"（hex）
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    access_token = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class OtpCode(Base):
    __tablename__ = "otp_codes"

    id = Column(String, primary_key=True)
    phone = Column(String, nullable=False, index=True)
    code = Column(String, nullable=False)
    consumed = Column(Boolean, nullable=False, default=False)
    attempts = Column(Integer, nullable=False, default=0)  # 入力ミスの回数
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
