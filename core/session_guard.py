import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol
import httpx
from config.settings import settings
from model.api import UserInfo
from model.session import Session
from repository.credential_repository import CredentialStore, default_credential_store

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    """Whatever owns the current view. `navigate` may be sync or async."""

    def current_path(self) -> str: ...

    def navigate(self, path: str) -> Any: ...


class LoggingNavigator:
    """Headless navigator: remembers the path and logs redirects."""

    def __init__(self, initial_path: str = "/") -> None:
        self._path = initial_path

    def current_path(self) -> str:
        return self._path

    def navigate(self, path: str) -> None:
        logger.warning("session.redirect from=%s to=%s", self._path, path)
        self._path = path


class SessionGuard:
    """
    Owns the credential, decorates outgoing requests and reacts to
    authorization failures with at most one redirect per failure burst.
    """

    def __init__(
        self,
        store: Optional[CredentialStore] = None,
        navigator: Optional[Navigator] = None,
        login_path: str = settings.LOGIN_PATH,
        session: Optional[Session] = None,
    ) -> None:
        self._store = store if store is not None else default_credential_store()
        self._navigator = navigator if navigator is not None else LoggingNavigator()
        self._login_path = login_path
        self._session = session if session is not None else Session()

    @property
    def session(self) -> Session:
        return self._session

    @property
    def credential(self) -> Optional[str]:
        return self._session.credential

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    # ---------------- Request decoration ----------------

    def attach_credential(self, request: httpx.Request) -> httpx.Request:
        token = self._session.credential
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        return request

    # ---------------- State changes ----------------

    async def restore(self) -> bool:
        """Load a persisted credential into the session. True when one was found."""
        token = await self._store.load()
        self._session.credential = token or None
        logger.info("session.restore found=%s", bool(token))
        return self._session.is_authenticated

    async def set_credential(self, token: str) -> None:
        self._session.credential = token
        await self._store.save(token)
        logger.info("session.credential.set")

    def set_user_info(self, info: Optional[UserInfo]) -> None:
        self._session.userInfo = info

    async def clear(self) -> None:
        self._session.reset()
        await self._forget_persisted()
        logger.info("session.cleared")

    async def handle_auth_failure(self) -> bool:
        """
        Clear local state and send the user to the login view once.
        Returns True only for the call that actually redirected.
        """
        self._session.reset()
        if self._session.redirectInFlight or self._navigator.current_path() == self._login_path:
            logger.debug("session.redirect.skipped in_flight=%s", self._session.redirectInFlight)
            await self._forget_persisted()
            return False

        # Latch is taken before the first suspension point.
        self._session.redirectInFlight = True
        try:
            await self._forget_persisted()
            outcome = self._navigator.navigate(self._login_path)
            if inspect.isawaitable(outcome):
                await outcome
            logger.info("session.expired redirect=%s", self._login_path)
            return True
        finally:
            self._session.redirectInFlight = False

    async def logout(self, notify_backend: Callable[[], Awaitable[object]]) -> None:
        try:
            await notify_backend()
        except Exception as e:
            logger.warning("session.logout.remote_failed err=%s", type(e).__name__)
        finally:
            await self.clear()

    async def _forget_persisted(self) -> None:
        try:
            await self._store.clear()
        except Exception:
            # In-memory state is already cleared at this point
            logger.exception("session.store.clear_failed")


_guard: Optional[SessionGuard] = None


def get_session_guard() -> SessionGuard:
    global _guard
    if _guard is None:
        _guard = SessionGuard()
    return _guard


def reset_session_guard(guard: Optional[SessionGuard] = None) -> None:
    """Replace the process-wide guard (tests, or a host app with its own navigator)."""
    global _guard
    _guard = guard
