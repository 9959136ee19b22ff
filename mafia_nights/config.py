# mafia_nights/config.py
import os
from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- backend ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mafia_nights.db")
OTP_TTL_SEC = int(os.getenv("OTP_TTL_SEC", "300"))
# この回数だけ間違えたらコードは使えなくなる
OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))
OAUTH_REDIRECT_URL = os.getenv("OAUTH_REDIRECT_URL", "neon-mafia-nights://auth/callback")
OAUTH_PROVIDER_URLS = {
    "google": os.getenv("OAUTH_GOOGLE_URL", "https://accounts.google.com/o/oauth2/v2/auth"),
    "apple": os.getenv("OAUTH_APPLE_URL", "https://appleid.apple.com/auth/authorize"),
}

# --- client ---
API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000/api")
REQUEST_TIMEOUT_SEC = float(os.getenv("REQUEST_TIMEOUT_SEC", "10"))
CHAT_HISTORY_LIMIT = int(os.getenv("CHAT_HISTORY_LIMIT", "50"))

SYNC_STRATEGY = os.getenv("SYNC_STRATEGY", "poll").lower()  # poll | subscribe
POLL_INTERVAL_MS = int(os.getenv("POLL_INTERVAL_MS", "5000"))
FEED_POLL_INTERVAL_SEC = float(os.getenv("FEED_POLL_INTERVAL_SEC", "1.0"))
RECONNECT_BASE_DELAY_SEC = float(os.getenv("RECONNECT_BASE_DELAY_SEC", "0.5"))
RECONNECT_MAX_DELAY_SEC = float(os.getenv("RECONNECT_MAX_DELAY_SEC", "30"))

# 部屋設定の上下限
MIN_PLAYERS = 3
MAX_PLAYERS = 20
DEFAULT_MAX_PLAYERS = 8

# 起動時にテーブルを作成する（開発用）。本番で migrate 済みなら 0
AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "1") == "1"
