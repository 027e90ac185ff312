from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from classrate.application.exceptions import ConfigurationError, PersistenceFailure


class RedisRestClient:
    """
    Minimal client for Redis-over-HTTP endpoints (Upstash, Vercel KV).

    A command is POSTed as a JSON array (``["SET", "k", "v"]``) and answered
    with ``{"result": ...}`` or ``{"error": "..."}``. Several commands can be
    sent in one round trip to ``/pipeline`` or, atomically, to ``/multi-exec``.
    """

    def __init__(
        self,
        url: str,
        token: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not url:
            raise ConfigurationError("KV_REST_API_URL is required for the key-value store")
        if not token:
            raise ConfigurationError("KV_REST_API_TOKEN is required for the key-value store")
        self._url = url.rstrip("/")
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {token}"},
        )
        self._logger = logging.getLogger(__name__)

    def _post(self, path: str, payload: Any) -> Any:
        try:
            resp = self._client.post(f"{self._url}{path}", json=payload)
        except httpx.HTTPError as e:
            self._logger.error("KV request failed", extra={"error": str(e)})
            raise PersistenceFailure(f"Key-value store unreachable: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code >= 400:
            error_message = body.get("error") if isinstance(body, dict) else resp.text
            self._logger.error(
                "KV command rejected",
                extra={"status": resp.status_code, "error": error_message},
            )
            raise PersistenceFailure(f"Key-value store error ({resp.status_code}): {error_message}")
        return body

    @staticmethod
    def _unwrap(reply: Any) -> Any:
        if not isinstance(reply, dict):
            raise PersistenceFailure(f"Unexpected key-value reply: {reply!r}")
        if reply.get("error"):
            raise PersistenceFailure(f"Key-value store error: {reply['error']}")
        return reply.get("result")

    def command(self, *args: Any) -> Any:
        return self._unwrap(self._post("", [str(a) for a in args]))

    def pipeline(self, commands: Sequence[Sequence[Any]], transaction: bool = False) -> list[Any]:
        path = "/multi-exec" if transaction else "/pipeline"
        replies = self._post(path, [[str(a) for a in cmd] for cmd in commands])
        if not isinstance(replies, list) or len(replies) != len(commands):
            raise PersistenceFailure(f"Unexpected key-value pipeline reply: {replies!r}")
        return [self._unwrap(r) for r in replies]

    def ping(self) -> bool:
        return self.command("PING") == "PONG"

    def get(self, key: str) -> str | None:
        return self.command("GET", key)

    def mget(self, keys: Sequence[str]) -> list[str | None]:
        if not keys:
            return []
        return self.command("MGET", *keys)

    def zrange_rev(self, key: str) -> list[str]:
        return self.command("ZRANGE", key, 0, -1, "REV") or []

    def zrem(self, key: str, member: str) -> int:
        return int(self.command("ZREM", key, member) or 0)
