"""Storefront (itch.io) data models."""

from dataclasses import dataclass, field
from enum import Enum


class Platform(Enum):
    """Platform tags advertised by a storefront download."""
    WINDOWS = "windows"
    LINUX = "linux"
    MACOS = "osx"
    ANDROID = "android"


@dataclass(frozen=True)
class DownloadDescriptor:
    """A download listed on a game page."""
    id: int | None
    title: str
    platforms: frozenset[Platform] = field(default_factory=frozenset)


@dataclass(frozen=True)
class GamePage:
    """Parsed game page."""
    url: str
    title: str
    downloads: list[DownloadDescriptor]


@dataclass(frozen=True)
class DownloadInfo:
    """Resolved download location for a single upload."""
    url: str
    external: bool = False
