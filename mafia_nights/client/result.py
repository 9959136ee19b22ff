# mafia_nights/client/result.py
"""
Facade の戻り値。data と error のどちらか一方だけが入る。

想定内の失敗（404, 409, 通信エラーなど）は例外にせず QueryResult.error で返す。
呼び出し側は ``if res.error: ...`` で分岐する。
"""
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, model_validator

T = TypeVar("T")


class ErrorKind(str, Enum):
    REMOTE = "remote"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    INVALID_REQUEST = "invalid_request"
    SETUP_MISSING = "setup_missing"
    TRANSPORT = "transport"
    INVALID_RESPONSE = "invalid_response"


_STATUS_KINDS = {
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
    422: ErrorKind.INVALID_REQUEST,
}


class BackendError(BaseModel):
    kind: ErrorKind
    message: str
    status_code: Optional[int] = None

    @classmethod
    def from_response(cls, status_code: int, body: object) -> "BackendError":
        code = None
        message = f"HTTP {status_code}"
        if isinstance(body, dict):
            code = body.get("code")
            detail = body.get("detail")
            if isinstance(detail, str):
                message = detail
            elif isinstance(detail, list) and detail:
                # FastAPI のバリデーションエラー（422）
                message = "; ".join(str(d.get("msg", d)) for d in detail if isinstance(d, dict)) or message

        if code == "setup_missing":
            kind = ErrorKind.SETUP_MISSING
        else:
            kind = _STATUS_KINDS.get(status_code, ErrorKind.REMOTE)
        return cls(kind=kind, message=message, status_code=status_code)


class QueryError(Exception):
    """QueryResult.unwrap() で error を例外にしたいとき用"""

    def __init__(self, error: BackendError):
        super().__init__(error.message)
        self.error = error


class QueryResult(BaseModel, Generic[T]):
    data: Optional[T] = None
    error: Optional[BackendError] = None

    @model_validator(mode="after")
    def _one_of(self):
        if self.data is not None and self.error is not None:
            raise ValueError("QueryResult cannot hold both data and error")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T) -> "QueryResult[T]":
        return cls(data=data)

    @classmethod
    def failure(cls, error: BackendError) -> "QueryResult[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise QueryError(self.error)
        return self.data
