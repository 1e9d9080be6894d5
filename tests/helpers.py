"""Shared test doubles for the HTTP and streaming layers."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any

import httpx


BASE_URL = "http://backend.test/api/v1"


class RecordingNavigator:
    """Navigator double: records redirects and moves to the target after yielding once."""

    def __init__(self, path: str = "/home") -> None:
        self.path = path
        self.redirects: list[str] = []

    def current_path(self) -> str:
        return self.path

    async def navigate(self, path: str) -> None:
        self.redirects.append(path)
        await asyncio.sleep(0)
        self.path = path


class ScriptedStream(httpx.AsyncByteStream):
    """Response body that yields the given chunks, then optionally breaks the connection."""

    def __init__(self, chunks: list[str], fail_with: Exception | None = None) -> None:
        self._chunks = chunks
        self._fail_with = fail_with

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            await asyncio.sleep(0)
            yield chunk.encode("utf-8")
        if self._fail_with is not None:
            raise self._fail_with

    async def aclose(self) -> None:
        return None


def sse(event: str | None, data: str) -> str:
    head = f"event: {event}\n" if event else ""
    body = "".join(f"data: {line}\n" for line in data.split("\n"))
    return f"{head}{body}\n"


def envelope(data: Any, code: int = 200, message: str = "ok") -> httpx.Response:
    return httpx.Response(200, json={"code": code, "message": message, "data": data})


def event_stream(chunks: list[str], fail_with: Exception | None = None) -> httpx.Response:
    return httpx.Response(
        200,
        headers={"content-type": "text/event-stream"},
        stream=ScriptedStream(chunks, fail_with),
    )


def json_body(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content.decode("utf-8"))
