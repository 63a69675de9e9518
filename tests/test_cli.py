import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from socialshot import cli
from socialshot.config import CaptureSettings, Variant
from socialshot.errors import BrowserLaunchError
from socialshot.models import BatchReport, BatchTotals, CaptureResult

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger("socialshot").handlers.clear()


def _report(output: Path) -> BatchReport:
    return BatchReport(
        elapsed_seconds=1.5,
        output_directory=output,
        totals=BatchTotals(urls=2, successful=1, failed=1),
        results=[
            CaptureResult(
                success=True,
                source_url="https://x.com/a/status/1",
                card_file_name="twitter-1-1700000000000-card.png",
                media_file_names=("twitter-1-1700000000000-image-1.jpg",),
                metadata_file_name="twitter-1-1700000000000-metadata.json",
                author_label="Alice",
            ),
            CaptureResult.failed("https://example.com/nope", "Unknown platform: https://example.com/nope"),
        ],
    )


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> dict:
    calls: dict = {}

    def fake_run(urls: list[str], settings: CaptureSettings) -> BatchReport:
        calls["urls"] = urls
        calls["settings"] = settings
        return _report(tmp_path)

    monkeypatch.setattr(cli, "run_capture_sync", fake_run)
    return calls


def test_capture_prints_summary(captured: dict, tmp_path: Path) -> None:
    result = runner.invoke(
        cli.app,
        ["capture", "https://x.com/a/status/1", "https://example.com/nope", "--output", str(tmp_path), "--parallel", "2"],
    )

    assert result.exit_code == 0, result.output
    assert captured["urls"] == ["https://x.com/a/status/1", "https://example.com/nope"]
    assert captured["settings"].concurrency == 2
    assert captured["settings"].output_dir == tmp_path
    assert "Processed 2 URL(s) in 1.5s." in result.output
    assert "Cards saved: 1" in result.output
    assert "Images saved: 1" in result.output
    assert "Unknown platform: https://example.com/nope" in result.output


def test_capture_maps_flags_to_settings(captured: dict, tmp_path: Path) -> None:
    url_file = tmp_path / "urls.txt"
    url_file.write_text("# batch\nhttps://bsky.app/profile/a/post/1\n", encoding="utf-8")

    result = runner.invoke(
        cli.app,
        ["capture", "https://x.com/a/status/1", "--file", str(url_file), "--thread", "--bento", "--no-headless"],
    )

    assert result.exit_code == 0, result.output
    settings = captured["settings"]
    assert captured["urls"] == ["https://x.com/a/status/1", "https://bsky.app/profile/a/post/1"]
    assert settings.thread is True
    assert settings.variant == Variant.BENTO
    assert settings.headless is False


def test_capture_json_report_uses_camel_case(captured: dict, tmp_path: Path) -> None:
    result = runner.invoke(cli.app, ["capture", "https://x.com/a/status/1", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["totals"] == {"urls": 2, "successful": 1, "failed": 1}
    assert payload["results"][0]["cardFileName"] == "twitter-1-1700000000000-card.png"
    assert payload["results"][1]["errorMessage"].startswith("Unknown platform")


def test_capture_without_urls_exits_with_error(captured: dict) -> None:
    result = runner.invoke(cli.app, ["capture"])

    assert result.exit_code == 1
    assert "No URLs given" in result.output
    assert "urls" not in captured


def test_capture_rejects_out_of_range_parallelism(captured: dict) -> None:
    result = runner.invoke(cli.app, ["capture", "https://x.com/a/status/1", "--parallel", "0"])

    assert result.exit_code == 2
    assert "urls" not in captured


def test_capture_reports_browser_launch_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(urls, settings):
        raise BrowserLaunchError("Could not launch Chromium: missing executable")

    monkeypatch.setattr(cli, "run_capture_sync", fake_run)

    result = runner.invoke(cli.app, ["capture", "https://x.com/a/status/1"])

    assert result.exit_code == 1
    assert "Capture failed: Could not launch Chromium" in result.output
