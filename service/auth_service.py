import logging
from typing import Any, Optional
from pydantic import ValidationError as SchemaError
from core.http import ApiClient
from core.session_guard import SessionGuard
from model.api import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserInfo,
)
from util.constants import TOKEN_FIELD_PATHS, BackendURIs
from util.errors import AppError, AuthorizationError, MissingCredentialError
from util.functions import first_present

logger = logging.getLogger(__name__)


def extract_token(payload: Any) -> Optional[str]:
    """Normalize heterogeneous login/register responses to one token string."""
    return first_present(payload, TOKEN_FIELD_PATHS)


def require_token(payload: Any) -> str:
    token = extract_token(payload)
    if token is None:
        raise MissingCredentialError("Login failed: the server returned no credential")
    return token


class AuthService:
    def __init__(self, api: ApiClient, guard: Optional[SessionGuard] = None) -> None:
        self._api = api
        self._guard = guard if guard is not None else api.guard

    async def login(self, form: LoginRequest) -> Any:
        res = await self._api.post(BackendURIs.LOGIN, json=form.model_dump(exclude_none=True))
        token = require_token(res)
        await self._guard.set_credential(token)
        logger.info("auth.login.ok user=%s", form.username or form.phone or "-")
        await self.fetch_user_info()
        return res

    async def register(self, form: RegisterRequest) -> Any:
        """A token in the response logs the user in; without one the caller decides what's next."""
        res = await self._api.post(BackendURIs.REGISTER, json=form.model_dump(exclude_none=True))
        token = extract_token(res)
        if token:
            await self._guard.set_credential(token)
            await self.fetch_user_info()
        logger.info("auth.register.ok user=%s auto_login=%s", form.username, bool(token))
        return res

    async def logout(self) -> None:
        await self._guard.logout(self._notify_logout)
        logger.info("auth.logout.done")

    async def _notify_logout(self) -> None:
        await self._api.post(BackendURIs.LOGOUT)

    async def fetch_user_info(self) -> Optional[UserInfo]:
        """Best-effort: on failure the previous user info is kept and None is returned."""
        try:
            data = await self._api.get(BackendURIs.ME)
            info = UserInfo.model_validate(data)
        except (AppError, SchemaError) as e:
            logger.warning("auth.me.failed err=%s", type(e).__name__)
            return None
        self._guard.set_user_info(info)
        return info

    async def validate_token(self) -> bool:
        """Ask the backend whether the current credential is still good; clears the session if not."""
        if not self._guard.is_authenticated:
            return False
        try:
            ok = await self._api.post(BackendURIs.VALIDATE)
        except AuthorizationError:
            return False
        if ok is False:
            logger.info("auth.validate.rejected")
            await self._guard.clear()
            return False
        return True

    async def forgot_password(self, email: str) -> None:
        await self._api.post(
            BackendURIs.FORGOT_PASSWORD, json=ForgotPasswordRequest(email=email).model_dump()
        )
        logger.info("auth.forgot_password.sent")

    async def reset_password(
        self, token: str, new_password: str, confirm_password: Optional[str] = None
    ) -> None:
        body = ResetPasswordRequest(
            token=token, newPassword=new_password, confirmPassword=confirm_password
        )
        await self._api.post(BackendURIs.RESET_PASSWORD, json=body.model_dump(exclude_none=True))
        logger.info("auth.reset_password.ok")
