# mafia_nights/api/v1/diagnostics.py

from fastapi import APIRouter

from ...db import missing_tables
from ...schemas.diagnostics import SetupStatusOut

router = APIRouter(prefix="/rpc", tags=["diagnostics"])


@router.post("/check_game_setup", response_model=SetupStatusOut)
def check_game_setup():
    """テーブルが揃っているかどうかを返す（クライアントの起動時診断用）"""
    missing = missing_tables()
    return SetupStatusOut(status="error" if missing else "ok", missing_tables=missing)
