# app/infra/api/client.py
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp

from app.domain.common.errors import RemotePersistenceError

logger = logging.getLogger(__name__)


def normalize_api_base(base_url: str) -> str:
    """Backend routes live under /api; accept the base with or without it."""
    base = base_url.strip().rstrip("/")
    return base if base.endswith("/api") else f"{base}/api"


def parse_body(text: str) -> Any:
    if not text:
        return {}
    try:
        return json.loads(text)
    except ValueError:
        return {"message": text}


def error_message(data: Any, status: int, reason: Optional[str]) -> str:
    if isinstance(data, dict):
        msg = data.get("error") or data.get("message")
        if msg:
            return str(msg)
    return f"HTTP {status}: {reason or ''}".strip()


class ApiClient:
    """
    JSON-over-HTTP helper for the task backend.

    One aiohttp session, created lazily. Any network problem or non-2xx
    answer becomes RemotePersistenceError.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout_seconds: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.base_url = normalize_api_base(base_url)
        self._token = token
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def request(self, method: str, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        session = self._get_session()
        logger.debug(f"{method} {url} body={body}")
        try:
            async with session.request(method, url, json=body, headers=self._headers()) as resp:
                text = await resp.text()
                data = parse_body(text)
                if resp.status >= 400:
                    raise RemotePersistenceError(error_message(data, resp.status, resp.reason), status=resp.status)
                return data
        except aiohttp.ClientError as e:
            raise RemotePersistenceError(f"Network error: {e}") from e
        except asyncio.TimeoutError as e:
            raise RemotePersistenceError("Request timed out") from e
        except UnicodeDecodeError as e:
            raise RemotePersistenceError("Invalid response encoding") from e
