# mafia_nights/schemas/auth.py

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

OAuthProvider = Literal["google", "apple"]


class PasswordCredentials(BaseModel):
    """POST /api/auth/signup, /api/auth/token 共通"""
    email: str
    password: str


class OtpRequest(BaseModel):
    phone: str


class OtpVerifyRequest(BaseModel):
    phone: str
    token: str
    type: Literal["sms"] = "sms"


class UserOut(BaseModel):
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SessionOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class OAuthRedirectOut(BaseModel):
    provider: OAuthProvider
    url: str
