# screenshot_mcp/utils/config.py
from __future__ import annotations

import functools
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------- Enums ----------

class ImageFormat(str, Enum):
    png = "png"
    jpg = "jpg"


class CaptureBackend(str, Enum):
    auto = "auto"
    screencapture = "screencapture"
    imagegrab = "imagegrab"


class Transport(str, Enum):
    stdio = "stdio"
    sse = "sse"
    streamable_http = "streamable-http"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ---------- Settings ----------

class Settings(BaseSettings):
    """
    Central configuration for the screenshot MCP server.

    Values load in this order of precedence:
      1) Environment variables
      2) .env file in project root
      3) Defaults below
    """

    # ---- Storage ----
    SCREENSHOT_DIR: Path = Field(default=Path("./screenshots"))
    HISTORY_LIMIT: int = Field(default=100, ge=1, description="Ring capacity; oldest evicted first")
    HISTORY_PAGE_SIZE: int = Field(default=10, ge=1)
    WRITE_SIDECARS: bool = Field(default=False, description="Write <image>.json + captures.jsonl")

    # ---- Capture defaults ----
    DEFAULT_FORMAT: ImageFormat = Field(default=ImageFormat.png)
    DEFAULT_QUALITY: int = Field(default=100, ge=1, le=100)
    SAVE_TO_FILE: bool = Field(default=True)
    CAPTURE_BACKEND: CaptureBackend = Field(default=CaptureBackend.auto)
    NATIVE_REGION_CAPTURE: bool = Field(default=True, description="Use `screencapture -R` for regions")

    # ---- External tools ----
    SCREENCAPTURE_BIN: str = Field(default="screencapture")
    OSASCRIPT_BIN: str = Field(default="osascript")
    SWIFT_BIN: str = Field(default="swift")

    # None = wait forever (the historical behaviour)
    DISCOVERY_TIMEOUT_S: Optional[float] = Field(default=20.0, gt=0)
    CAPTURE_TIMEOUT_S: Optional[float] = Field(default=30.0, gt=0)

    # ---- Discovery ----
    IGNORED_WINDOW_OWNERS: List[str] = Field(default_factory=lambda: ["Window Server", "Dock"])
    FORCE_DISCOVERY: bool = Field(default=False, description="Run strategies even when not on macOS")

    # ---- Server ----
    SERVER_NAME: str = Field(default="screenshot-mcp")
    MCP_TRANSPORT: Transport = Field(default=Transport.stdio)

    # ---- Logging ----
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO)
    LOG_TO_FILE: bool = Field(default=False)
    LOG_FILE: Path = Field(default=Path("./screenshot-mcp.log"))
    COLORIZED_OUTPUT: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore unknown envs to keep things flexible
    )

    @field_validator("SCREENSHOT_DIR", "LOG_FILE", mode="before")
    @classmethod
    def _coerce_to_path(cls, v):
        if isinstance(v, Path):
            return v
        return Path(str(v)) if v is not None else v

    @field_validator("SCREENSHOT_DIR", "LOG_FILE", mode="after")
    @classmethod
    def _absolutize(cls, v: Path, info):
        return v if v.is_absolute() else Path.cwd() / v

    @field_validator("DISCOVERY_TIMEOUT_S", "CAPTURE_TIMEOUT_S", mode="before")
    @classmethod
    def _zero_means_unbounded(cls, v):
        # allow "0" / "" in .env to switch the timeout off
        if v in (0, "0", "", "none", "None"):
            return None
        return v

    def ensure_dirs(self) -> None:
        """Create required directories (idempotent)."""
        self.SCREENSHOT_DIR.mkdir(parents=True, exist_ok=True)
        if self.LOG_TO_FILE:
            self.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)


# --------- Public accessor (memoized) ---------

@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache settings once per process.
    Call `get_settings.cache_clear()` if you need to reload after changing env.
    """
    s = Settings()
    s.ensure_dirs()
    return s


class Paths(BaseModel):
    screenshots: Path
    captures_log: Path
    log_file: Path

    @classmethod
    def from_settings(cls, s: Settings) -> "Paths":
        return cls(
            screenshots=s.SCREENSHOT_DIR,
            captures_log=s.SCREENSHOT_DIR / "captures.jsonl",
            log_file=s.LOG_FILE,
        )
