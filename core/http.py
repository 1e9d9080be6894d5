import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional
import httpx
from httpx import codes
from config.settings import settings
from core.session_guard import SessionGuard, get_session_guard
from util.enums import ErrorMessage
from util.errors import (
    AppError,
    ApplicationError,
    AuthorizationError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from util.functions import clip_words
from util.timing import timed

logger = logging.getLogger(__name__)


def _backend_message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        for key in ("message", "msg"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def _as_code(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().lstrip("-").isdigit():
        return int(raw.strip())
    return None


def _is_json(res: httpx.Response) -> bool:
    media = res.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    return media == "application/json" or media.endswith("+json")


class ApiClient:
    """
    Thin wrapper over httpx.AsyncClient:
      - request hook attaches the bearer credential from the SessionGuard
      - responses are unwrapped from the {code, message, data} envelope
      - failures are mapped onto the AppError taxonomy; 401 notifies the guard
    """

    def __init__(
        self,
        guard: Optional[SessionGuard] = None,
        base_url: str = settings.API_BASE_URL,
        timeout: float = settings.REQUEST_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._guard = guard if guard is not None else get_session_guard()
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
            event_hooks={"request": [self._on_request]},
        )

    @property
    def guard(self) -> SessionGuard:
        return self._guard

    async def _on_request(self, request: httpx.Request) -> None:
        self._guard.attach_credential(request)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ---------------- Plain calls ----------------

    async def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        files: Any = None,
        data: Any = None,
        params: Any = None,
        timeout: Optional[float] = None,
        raw: bool = False,
    ) -> Any:
        """Send one request. `raw=True` returns the body bytes instead of unwrapped JSON."""
        kwargs: dict[str, Any] = {"json": json, "files": files, "data": data, "params": params}
        if timeout is not None:
            kwargs["timeout"] = timeout
        with timed(logger, "http.request", method=method, url=url):
            try:
                res = await self._client.request(method, url, **kwargs)
            except httpx.TimeoutException as e:
                raise TransportError(
                    ErrorMessage.TIMEOUT.value.message, codes.REQUEST_TIMEOUT
                ) from e
            except httpx.RequestError as e:
                raise TransportError(
                    f"{ErrorMessage.NETWORK.value.message}: {type(e).__name__}"
                ) from e
        await self.raise_for_response(res)
        if raw:
            # A JSON body on a binary endpoint is an envelope, possibly a failure
            if _is_json(res):
                await self.unwrap(res)
            return res.content
        return await self.unwrap(res)

    async def get(self, url: str, **kwargs: Any) -> Any:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Any:
        return await self.request("POST", url, **kwargs)

    # ---------------- Streaming ----------------

    @asynccontextmanager
    async def stream(self, method: str, url: str, *, json: Any = None) -> AsyncIterator[httpx.Response]:
        """
        Open a long-lived response. Only connect/write are bounded; reads wait
        for as long as the caller keeps the context open.

        A JSON answer instead of an event stream is checked as an envelope
        first, so expiry or business failures surface as AppErrors.
        """
        timeout = httpx.Timeout(self._timeout, read=None)
        try:
            async with self._client.stream(
                method,
                url,
                json=json,
                timeout=timeout,
                headers={"Accept": "text/event-stream"},
            ) as res:
                await self.raise_for_response(res)
                if _is_json(res):
                    await res.aread()
                    await self.unwrap(res)
                yield res
        except httpx.TimeoutException as e:
            raise TransportError(
                ErrorMessage.TIMEOUT.value.message, codes.REQUEST_TIMEOUT
            ) from e
        except httpx.RequestError as e:
            raise TransportError(
                f"{ErrorMessage.NETWORK.value.message}: {type(e).__name__}"
            ) from e

    # ---------------- Interception ----------------

    async def raise_for_response(self, res: httpx.Response) -> None:
        if res.is_success:
            return
        await res.aread()
        try:
            body = res.json()
        except ValueError:
            body = None
        status = res.status_code
        fallback = ErrorMessage.for_status(status)
        message = _backend_message(body) or (
            fallback.value.message if fallback else f"HTTP {status}"
        )
        logger.warning(
            "http.error status=%d url=%s msg=%s", status, res.request.url.path, clip_words(message)
        )

        if status == codes.UNAUTHORIZED:
            await self._guard.handle_auth_failure()
            raise AuthorizationError(message, status)
        raise self._error_for_status(status, message)

    async def unwrap(self, res: httpx.Response) -> Any:
        if not res.content:
            return None
        try:
            body = res.json()
        except ValueError:
            return res.text

        if not isinstance(body, dict) or "code" not in body:
            return body

        code = _as_code(body.get("code"))
        if code is not None and code != settings.SUCCESS_CODE:
            message = _backend_message(body) or ErrorMessage.SYSTEM.value.message
            logger.warning("http.app_error code=%s msg=%s", code, clip_words(message))
            if code == settings.UNAUTHORIZED_CODE:
                await self._guard.handle_auth_failure()
                raise AuthorizationError(message, res.status_code, code)
            raise ApplicationError(message, res.status_code, code)
        if "data" in body:
            return body["data"]
        return body

    @staticmethod
    def _error_for_status(status: int, message: str) -> AppError:
        if status in (codes.BAD_REQUEST, codes.UNPROCESSABLE_ENTITY):
            return ValidationError(message, status)
        if status == codes.NOT_FOUND:
            return NotFoundError(message, status)
        if status in (codes.REQUEST_TIMEOUT, codes.GATEWAY_TIMEOUT):
            return TransportError(message, status)
        return ApplicationError(message, status)
