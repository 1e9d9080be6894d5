# config/settings.py
import os
import sys
from typing import Optional
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")

    # Backend
    API_BASE_URL: str = Field(
        default="http://localhost:8080/api/v1", validation_alias="API_BASE_URL"
    )
    REQUEST_TIMEOUT_SECONDS: float = Field(
        default=10.0, validation_alias="REQUEST_TIMEOUT_SECONDS"
    )
    # Analysis latency is tens of seconds to a few minutes
    OPTIMIZE_TIMEOUT_SECONDS: float = Field(
        default=300.0, validation_alias="OPTIMIZE_TIMEOUT_SECONDS"
    )
    SUCCESS_CODE: int = Field(default=200, validation_alias="SUCCESS_CODE")
    UNAUTHORIZED_CODE: int = Field(default=401, validation_alias="UNAUTHORIZED_CODE")

    # Streaming & polling
    STREAM_KEEP_ALIVE_WHEN_BACKGROUNDED: bool = Field(
        default=True, validation_alias="STREAM_KEEP_ALIVE_WHEN_BACKGROUNDED"
    )
    POLL_INTERVAL_SECONDS: float = Field(
        default=2.0, validation_alias="POLL_INTERVAL_SECONDS"
    )
    POLL_MAX_INTERVAL_SECONDS: float = Field(
        default=15.0, validation_alias="POLL_MAX_INTERVAL_SECONDS"
    )

    # Session
    LOGIN_PATH: str = Field(default="/login", validation_alias="LOGIN_PATH")
    CREDENTIAL_KEY: str = Field(default="token", validation_alias="CREDENTIAL_KEY")
    REDIS_URL: Optional[str] = Field(default=None, validation_alias="REDIS_URL")

    # Logging knobs
    LOGGER_NAME: str = "resume-optimizer-client"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="client.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=10 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=3, validation_alias="LOG_BACKUP_COUNT")


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
