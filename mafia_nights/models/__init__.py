from .auth import User, AuthSession, OtpCode
from .profile import Profile
from .room import GameRoom, GamePlayer, ChatMessage
from .change import ChangeEvent

__all__ = [
    "User",
    "AuthSession",
    "OtpCode",
    "Profile",
    "GameRoom",
    "GamePlayer",
    "ChatMessage",
    "ChangeEvent",
]
