# mafia_nights/api/deps.py

from collections.abc import Generator
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from ..db import SessionLocal
from ..models.auth import AuthSession, User


def get_db_dep() -> Generator[Session, None, None]:
    """
    FastAPI の Depends で使う DB セッション依存関数。
    エンドポイント側では `db: Session = Depends(get_db_dep)` で利用。
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def get_current_session(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db_dep),
) -> AuthSession:
    token = _bearer_token(authorization)
    if token is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    session = db.get(AuthSession, token)
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return session


def get_current_user(
    session: AuthSession = Depends(get_current_session),
    db: Session = Depends(get_db_dep),
) -> User:
    user = db.get(User, session.user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User no longer exists")
    return user
