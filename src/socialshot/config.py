"""Configuration models and enums for socialshot."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

DEFAULT_OUTPUT_DIR = Path("screenshots")
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Variant(str, Enum):
    STANDARD = "standard"
    BENTO = "bento"


class CaptureSettings(BaseModel):
    """Run-wide settings shared by every capture in a batch."""

    output_dir: Path = DEFAULT_OUTPUT_DIR
    concurrency: int = Field(default=3, ge=1, le=16)
    thread: bool = False
    variant: Variant = Variant.STANDARD
    headless: bool = True
    fetch_timeout_s: float = Field(default=20.0, gt=0)
    max_redirects: int = Field(default=5, ge=0, le=20)
    navigation_timeout_ms: int = Field(default=30_000, ge=1_000)
    selector_timeout_ms: int = Field(default=10_000, ge=0)
    settle_delay_s: float = Field(default=2.0, ge=0)
    thread_settle_delay_s: float = Field(default=3.0, ge=0)
    image_settle_timeout_ms: int = Field(default=15_000, ge=1_000)
    capture_padding_px: int = Field(default=20, ge=0, le=200)
    user_agent: str = DEFAULT_USER_AGENT

    @model_validator(mode="after")
    def validate_settle_delays(self) -> "CaptureSettings":
        if self.thread_settle_delay_s < self.settle_delay_s:
            raise ValueError("thread_settle_delay_s should be >= settle_delay_s; conversations load more media")
        return self
