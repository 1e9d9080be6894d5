from dataclasses import dataclass
from typing import Optional
from model.api import UserInfo


@dataclass
class Session:
    """
    Process-wide authentication context.

    Only SessionGuard writes to it; request decoration only reads `credential`.
    """

    credential: Optional[str] = None
    redirectInFlight: bool = False
    userInfo: Optional[UserInfo] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.credential)

    def reset(self) -> None:
        self.credential = None
        self.userInfo = None
