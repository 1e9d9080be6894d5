"""Tests for AuthService: token extraction, login/logout and best-effort user info."""

from __future__ import annotations

import httpx
import pytest

from core.session_guard import SessionGuard
from model.api import LoginRequest, RegisterRequest, UserInfo
from repository.credential_repository import MemoryCredentialStore
from service.auth_service import AuthService, extract_token
from tests.helpers import envelope, json_body
from util.errors import MissingCredentialError

ME = {"id": 7, "username": "ada", "roles": ["user"]}


def _router(routes: dict[str, httpx.Response], seen: list[str] | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v1")
        if seen is not None:
            seen.append(path)
        return routes.get(path, httpx.Response(404))

    return handler


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"accessToken": "a"}, "a"),
        ({"token": "b"}, "b"),
        ({"data": {"accessToken": "c"}}, "c"),
        ({"data": {"token": "d"}}, "d"),
        ({"accessToken": "first", "token": "second"}, "first"),
        ({"accessToken": "  ", "token": "t"}, "t"),
        ({"user": "x"}, None),
        ("plain-string", None),
        (None, None),
    ],
)
def test_extract_token(payload, expected) -> None:
    assert extract_token(payload) == expected


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_stores_token_and_loads_user(
        self, make_api, guard: SessionGuard, store: MemoryCredentialStore
    ) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/auth/login"):
                bodies.append(json_body(request))
                return envelope({"token": "tok-9"})
            assert request.headers["Authorization"] == "Bearer tok-9"
            return envelope(ME)

        auth = AuthService(make_api(handler))
        await auth.login(LoginRequest(username="ada", password="pw"))

        assert guard.credential == "tok-9"
        assert await store.load() == "tok-9"
        assert guard.session.userInfo == UserInfo(**ME)
        assert bodies == [{"username": "ada", "password": "pw", "loginType": "password"}]

    @pytest.mark.asyncio
    async def test_login_without_token_fails(self, make_api, guard: SessionGuard) -> None:
        auth = AuthService(make_api(_router({"/auth/login": envelope({"userId": 7})})))

        with pytest.raises(MissingCredentialError):
            await auth.login(LoginRequest(username="ada", password="pw"))
        assert not guard.is_authenticated

    @pytest.mark.asyncio
    async def test_register_without_token_stays_logged_out(self, make_api, guard: SessionGuard) -> None:
        seen: list[str] = []
        auth = AuthService(make_api(_router({"/auth/register": envelope({"userId": 7})}, seen)))

        await auth.register(RegisterRequest(username="ada", password="pw"))

        assert not guard.is_authenticated
        assert seen == ["/auth/register"]

    @pytest.mark.asyncio
    async def test_register_with_token_logs_in(self, make_api, guard: SessionGuard) -> None:
        auth = AuthService(
            make_api(
                _router({"/auth/register": envelope({"accessToken": "new"}), "/auth/me": envelope(ME)})
            )
        )

        await auth.register(RegisterRequest(username="ada", password="pw"))

        assert guard.credential == "new"
        assert guard.session.userInfo.username == "ada"


class TestLogout:
    @pytest.mark.asyncio
    async def test_clears_state_when_remote_call_times_out(
        self, make_api, guard: SessionGuard, store: MemoryCredentialStore
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        await guard.set_credential("tok")
        guard.set_user_info(UserInfo(**ME))

        await AuthService(make_api(handler)).logout()

        assert guard.credential is None
        assert guard.session.userInfo is None
        assert await store.load() is None

    @pytest.mark.asyncio
    async def test_notifies_backend_with_credential(self, make_api, guard: SessionGuard) -> None:
        headers: list[str | None] = []

        def handler(request: httpx.Request) -> httpx.Response:
            headers.append(request.headers.get("Authorization"))
            return httpx.Response(204)

        await guard.set_credential("tok")
        await AuthService(make_api(handler)).logout()

        assert headers == ["Bearer tok"]
        assert not guard.is_authenticated


class TestUserInfo:
    @pytest.mark.asyncio
    async def test_failure_keeps_previous_info(self, make_api, guard: SessionGuard) -> None:
        before = UserInfo(**ME)
        guard.set_user_info(before)

        info = await AuthService(make_api(lambda r: httpx.Response(500))).fetch_user_info()

        assert info is None
        assert guard.session.userInfo is before

    @pytest.mark.asyncio
    async def test_malformed_payload_is_ignored(self, make_api, guard: SessionGuard) -> None:
        info = await AuthService(make_api(lambda r: envelope({"nickname": "no id"}))).fetch_user_info()

        assert info is None
        assert guard.session.userInfo is None


class TestValidateToken:
    @pytest.mark.asyncio
    async def test_false_without_credential(self, make_api) -> None:
        auth = AuthService(make_api(lambda r: pytest.fail("no request expected")))

        assert await auth.validate_token() is False

    @pytest.mark.asyncio
    async def test_accepted(self, make_api, guard: SessionGuard) -> None:
        await guard.set_credential("tok")

        assert await AuthService(make_api(lambda r: envelope(True))).validate_token() is True
        assert guard.credential == "tok"

    @pytest.mark.asyncio
    async def test_rejected_clears_session(self, make_api, guard: SessionGuard) -> None:
        await guard.set_credential("tok")

        assert await AuthService(make_api(lambda r: envelope(False))).validate_token() is False
        assert guard.credential is None

    @pytest.mark.asyncio
    async def test_unauthorized_goes_through_guard(self, make_api, guard: SessionGuard, navigator) -> None:
        await guard.set_credential("tok")

        assert await AuthService(make_api(lambda r: httpx.Response(401))).validate_token() is False
        assert guard.credential is None
        assert navigator.redirects == ["/login"]


class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_forgot_and_reset_post_expected_bodies(self, make_api) -> None:
        calls: list[tuple[str, dict]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.url.path.removeprefix("/api/v1"), json_body(request)))
            return envelope(None)

        auth = AuthService(make_api(handler))
        await auth.forgot_password("ada@example.com")
        await auth.reset_password("reset-tok", "new-pw")

        assert calls == [
            ("/auth/forgot-password", {"email": "ada@example.com"}),
            ("/auth/reset-password", {"token": "reset-tok", "newPassword": "new-pw"}),
        ]
