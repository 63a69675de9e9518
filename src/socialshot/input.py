"""URL-file ingestion utilities."""

from __future__ import annotations

from pathlib import Path


def load_url_file(path: Path) -> list[str]:
    """Load capture URLs from a text file (one URL per line).

    Blank lines, `#` comments and lines that are not http(s) URLs are skipped.
    Duplicates are kept: every capture produces its own artifact set.
    """

    if not path.exists() or not path.is_file():
        raise ValueError(f"URL file not found: {path}")

    urls: list[str] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or not line.startswith("http"):
            continue
        urls.append(line)

    if not urls:
        raise ValueError("No valid URLs found in URL file")

    return urls
