from pathlib import Path

import pytest
from pydantic import ValidationError

from socialshot.config import DEFAULT_OUTPUT_DIR, CaptureSettings, Variant


def test_capture_settings_defaults() -> None:
    settings = CaptureSettings()
    assert settings.output_dir == DEFAULT_OUTPUT_DIR
    assert settings.output_dir == Path("screenshots")
    assert settings.concurrency == 3
    assert settings.thread is False
    assert settings.variant == Variant.STANDARD
    assert settings.headless is True
    assert settings.fetch_timeout_s == 20.0
    assert settings.max_redirects == 5
    assert settings.capture_padding_px == 20


@pytest.mark.parametrize("concurrency", [0, -1, 17])
def test_capture_settings_bounds_concurrency(concurrency: int) -> None:
    with pytest.raises(ValidationError):
        CaptureSettings(concurrency=concurrency)


def test_capture_settings_requires_thread_delay_at_least_post_delay() -> None:
    with pytest.raises(ValidationError):
        CaptureSettings(settle_delay_s=5.0, thread_settle_delay_s=1.0)


def test_capture_settings_accepts_variant_by_value() -> None:
    assert CaptureSettings(variant="bento").variant == Variant.BENTO
