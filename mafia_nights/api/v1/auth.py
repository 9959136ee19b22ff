# mafia_nights/api/v1/auth.py

import hashlib
import logging
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...api.deps import get_current_session, get_current_user, get_db_dep
from ...config import OAUTH_PROVIDER_URLS, OAUTH_REDIRECT_URL, OTP_MAX_ATTEMPTS, OTP_TTL_SEC
from ...models.auth import AuthSession, OtpCode, User
from ...models.profile import Profile
from ...schemas.auth import (
    OAuthProvider,
    OAuthRedirectOut,
    OtpRequest,
    OtpVerifyRequest,
    PasswordCredentials,
    SessionOut,
    UserOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

PBKDF2_ITER = 100_000
MIN_PASSWORD_LENGTH = 6


# -----------------------------
# パスワード・セッション補助
# -----------------------------

def _pbkdf2_hash(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITER)


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(16)
    return f"{salt.hex()}${_pbkdf2_hash(password, salt).hex()}"


def verify_password(password: str, stored: Optional[str]) -> bool:
    if not stored or "$" not in stored:
        return False
    salt_hex, hash_hex = stored.split("$", 1)
    test = _pbkdf2_hash(password, bytes.fromhex(salt_hex))
    return secrets.compare_digest(test.hex(), hash_hex)


def _issue_session(db: Session, user: User) -> SessionOut:
    session = AuthSession(access_token=secrets.token_urlsafe(32), user_id=user.id)
    db.add(session)
    db.commit()
    return SessionOut(access_token=session.access_token, user=UserOut.model_validate(user))


def _create_user(db: Session, **fields) -> User:
    """ユーザー作成と同時に空のプロフィールも作る（ホスト側トリガー相当）"""
    user = User(id=str(uuid.uuid4()), **fields)
    db.add(user)
    db.flush()
    db.add(Profile(id=user.id, gender="prefer_not_to_say"))
    return user


# -----------------------------
# メール + パスワード
# -----------------------------

@router.post("/signup", response_model=SessionOut)
def sign_up(
    data: PasswordCredentials,
    db: Session = Depends(get_db_dep),
):
    email = data.email.strip().lower()
    if len(data.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=422, detail="Password must be at least 6 characters")

    exists = db.query(User).filter(User.email == email).first()
    if exists:
        raise HTTPException(status_code=409, detail="User already registered")

    user = _create_user(db, email=email, password_hash=hash_password(data.password))
    return _issue_session(db, user)


@router.post("/token", response_model=SessionOut)
def sign_in_with_password(
    data: PasswordCredentials,
    db: Session = Depends(get_db_dep),
):
    email = data.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid login credentials")
    return _issue_session(db, user)


# -----------------------------
# OAuth（リダイレクト型）
# -----------------------------

@router.get("/authorize", response_model=OAuthRedirectOut)
def authorize(
    provider: OAuthProvider,
    redirect_to: Optional[str] = None,
):
    base = OAUTH_PROVIDER_URLS[provider]
    query = urlencode({"redirect_uri": redirect_to or OAUTH_REDIRECT_URL, "response_type": "code"})
    return OAuthRedirectOut(provider=provider, url=f"{base}?{query}")


# -----------------------------
# 電話番号 + SMS OTP
# -----------------------------

@router.post("/otp", status_code=204)
def send_otp(
    data: OtpRequest,
    db: Session = Depends(get_db_dep),
):
    phone = data.phone.strip()
    if not phone.startswith("+") or len(phone) < 12:
        raise HTTPException(status_code=422, detail="Invalid phone number")

    code = f"{secrets.randbelow(1_000_000):06d}"
    db.add(OtpCode(id=str(uuid.uuid4()), phone=phone, code=code))
    db.commit()
    # SMS 送信はしない（開発用バックエンド）
    logger.info("OTP issued for %s", phone)
    return


@router.post("/verify", response_model=SessionOut)
def verify_otp(
    data: OtpVerifyRequest,
    db: Session = Depends(get_db_dep),
):
    phone = data.phone.strip()
    otp = (
        db.query(OtpCode)
        .filter(OtpCode.phone == phone, OtpCode.consumed == False)  # noqa: E712
        .order_by(OtpCode.created_at.desc())
        .first()
    )
    if not otp:
        raise HTTPException(status_code=401, detail="Token has expired or is invalid")
    if otp.code != data.token.strip():
        # 総当たり対策: 規定回数間違えたらこのコードは失効
        otp.attempts = (otp.attempts or 0) + 1
        if otp.attempts >= OTP_MAX_ATTEMPTS:
            otp.consumed = True
            logger.info("otp locked after %d failed attempts phone=%s", otp.attempts, phone)
        db.add(otp)
        db.commit()
        raise HTTPException(status_code=401, detail="Token has expired or is invalid")
    if otp.created_at < datetime.utcnow() - timedelta(seconds=OTP_TTL_SEC):
        raise HTTPException(status_code=401, detail="Token has expired or is invalid")

    otp.consumed = True
    db.add(otp)

    user = db.query(User).filter(User.phone == phone).first()
    if not user:
        user = _create_user(db, phone=phone)
    return _issue_session(db, user)


# -----------------------------
# セッション
# -----------------------------

@router.post("/logout", status_code=204)
def sign_out(
    session: AuthSession = Depends(get_current_session),
    db: Session = Depends(get_db_dep),
):
    db.delete(session)
    db.commit()
    return


@router.get("/user", response_model=UserOut)
def get_user(user: User = Depends(get_current_user)):
    return user
