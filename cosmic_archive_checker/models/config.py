"""Configuration data models."""

from dataclasses import dataclass, field
from pathlib import Path

COSMIC_ARCHIVE_VERSIONS_URL = "https://raw.githubusercontent.com/CRModders/CosmicArchive/main/versions.json"
COSMIC_REACH_URL = "https://finalforeach.itch.io/cosmic-reach"


@dataclass(frozen=True)
class AppConfig:
    """Application configuration settings."""
    manifest_url: str = COSMIC_ARCHIVE_VERSIONS_URL
    game_url: str = COSMIC_REACH_URL
    csrf_token: str = field(default="", repr=False)
    destination_root: Path = Path()  # Per-download directories are created here
    request_timeout: float = 30.0
    max_retries: int = 3
    log_level: str = "INFO"
