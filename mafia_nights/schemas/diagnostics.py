# mafia_nights/schemas/diagnostics.py
from typing import Literal

from pydantic import BaseModel


class SetupStatusOut(BaseModel):
    status: Literal["ok", "error"]
    missing_tables: list[str] = []
