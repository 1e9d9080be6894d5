# util/enums.py
from enum import Enum
from typing import NamedTuple
from httpx import codes


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    """Fallback messages used when the backend sends none of its own."""

    BAD_REQUEST = ErrorInfo("Bad request", codes.BAD_REQUEST)
    UNAUTHORIZED = ErrorInfo("Unauthorized, please log in", codes.UNAUTHORIZED)
    FORBIDDEN = ErrorInfo("Access denied", codes.FORBIDDEN)
    NOT_FOUND = ErrorInfo("Requested resource not found", codes.NOT_FOUND)
    TIMEOUT = ErrorInfo("Request timed out", codes.REQUEST_TIMEOUT)
    INTERNAL_ERROR = ErrorInfo("Internal server error", codes.INTERNAL_SERVER_ERROR)
    NETWORK = ErrorInfo("Network connection failure", 0)
    SYSTEM = ErrorInfo("System error", 0)

    @classmethod
    def for_status(cls, http_status: int) -> "ErrorMessage | None":
        for member in cls:
            if member.value.http_status == http_status:
                return member
        return None
