# util/errors.py
from typing import Optional


class AppError(Exception):
    # Flow: raise a typed AppError subclass so callers can branch on the kind.
    def __init__(
        self,
        message: str,
        http_status: Optional[int] = None,
        code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.http_status = http_status
        self.code = code


class TransportError(AppError):
    """Network failure or timeout. The caller may retry."""


class ValidationError(AppError):
    """The backend rejected the request shape. Not retryable."""


class NotFoundError(AppError):
    """Unknown task or resource id."""


class AuthorizationError(AppError):
    """Expired or missing credential. The session guard has already reacted."""


class ApplicationError(AppError):
    """Business failure reported by the backend."""


class MissingCredentialError(ApplicationError):
    """A login response carried no recognizable token."""


class StreamErrorEvent(ApplicationError):
    """The push channel delivered a terminal `error` event."""


class StreamSuspendedError(TransportError):
    """The push channel was closed because its consumer went to the background."""
