"""Shared fixtures and helpers for the test suite."""

import hashlib
import io
import json
import logging
import zipfile
from collections.abc import Iterator
from typing import Any

import pytest
import structlog

from cosmic_archive_checker.models import DownloadDescriptor, DownloadInfo, GamePage, Platform

GAME_URL = "https://finalforeach.itch.io/cosmic-reach"
MANIFEST_URL = "https://raw.githubusercontent.com/CRModders/CosmicArchive/main/versions.json"

ABC_SHA256 = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


class MockHttpResponse:
    """Mock HTTP response for testing."""

    def __init__(self, content: bytes | str, status_code: int = 200) -> None:
        self.content = content.encode() if isinstance(content, str) else content
        self.text = self.content.decode("utf-8", errors="replace")
        self.status_code = status_code


def make_zip(entries: dict[str, bytes]) -> bytes:
    """Build an in-memory zip archive holding the given entries."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def sha256_hex(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def version_record(sha256: str, version_id: str = "0.1.0") -> dict[str, Any]:
    return {
        "id": version_id,
        "type": "pre_alpha",
        "releaseTime": 1709762400,
        "url": f"https://github.com/CRModders/CosmicArchive/raw/main/Cosmic-Reach-{version_id}.jar",
        "sha256": sha256,
        "size": 3,
    }


def manifest_body(*digests: str) -> bytes:
    versions = [version_record(digest, f"0.1.{index}") for index, digest in enumerate(digests)]
    return json.dumps({"latest": {"pre_alpha": "0.1.0"}, "versions": versions}).encode()


def cross_platform_download(download_id: int | None, title: str = "cosmic-reach-jar.zip") -> DownloadDescriptor:
    return DownloadDescriptor(
        id=download_id,
        title=title,
        platforms=frozenset({Platform.WINDOWS, Platform.LINUX, Platform.MACOS}),
    )


def game_page(*downloads: DownloadDescriptor) -> GamePage:
    return GamePage(url=GAME_URL, title="Cosmic Reach", downloads=list(downloads))


def download_info(download_id: int) -> DownloadInfo:
    return DownloadInfo(url=f"https://w3g3a5v6.ssl.hwcdn.net/upload2/game/{download_id}/cosmic-reach.zip")


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop handlers bound to captured streams between tests."""
    yield
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    structlog.reset_defaults()
