# mafia_nights/client/backend.py
import logging
from functools import lru_cache
from typing import Any, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from ..config import API_BASE_URL, REQUEST_TIMEOUT_SEC
from .result import BackendError, ErrorKind, QueryResult

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


class BackendClient:
    """
    ホスト型バックエンドへの HTTP 接続。1リクエスト = 1 QueryResult。
    リトライ・キャッシュはしない。
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        *,
        timeout: float = REQUEST_TIMEOUT_SEC,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def call(
        self,
        method: str,
        path: str,
        response_type: Any = None,
        *,
        token: Optional[str] = None,
        json: Any = None,
        params: Optional[dict] = None,
    ) -> QueryResult:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            res = await self._http.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            return QueryResult.failure(BackendError(kind=ErrorKind.TRANSPORT, message=str(e) or type(e).__name__))

        if res.status_code >= 400:
            try:
                body = res.json()
            except ValueError:
                body = None
            error = BackendError.from_response(res.status_code, body)
            logger.debug("%s %s -> %s %s", method, path, res.status_code, error.message)
            return QueryResult.failure(error)

        if response_type is None or res.status_code == 204:
            return QueryResult.success(None)

        try:
            data = _adapter(response_type).validate_python(res.json())
        except (ValueError, ValidationError) as e:
            logger.error("%s %s returned an unexpected body: %s", method, path, e)
            return QueryResult.failure(
                BackendError(
                    kind=ErrorKind.INVALID_RESPONSE,
                    message="Unexpected response from server",
                    status_code=res.status_code,
                )
            )
        return QueryResult.success(data)
