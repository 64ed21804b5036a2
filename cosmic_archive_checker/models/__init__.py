"""Data models for the Cosmic Archive checker."""

from .config import COSMIC_ARCHIVE_VERSIONS_URL, COSMIC_REACH_URL, AppConfig
from .digest import DIGEST_SIZE, Sha256Digest
from .manifest import VersionManifest, VersionRecord
from .storefront import DownloadDescriptor, DownloadInfo, GamePage, Platform

__all__ = [
    "AppConfig",
    "COSMIC_ARCHIVE_VERSIONS_URL",
    "COSMIC_REACH_URL",
    "DIGEST_SIZE",
    "DownloadDescriptor",
    "DownloadInfo",
    "GamePage",
    "Platform",
    "Sha256Digest",
    "VersionManifest",
    "VersionRecord",
]
