"""Archived versions manifest models."""

from dataclasses import dataclass, field

from .digest import Sha256Digest


@dataclass(frozen=True)
class VersionRecord:
    """A single archived game version."""
    id: str
    kind: str  # "type" in the manifest JSON
    release_time: int  # "releaseTime", unix seconds
    url: str
    sha256: Sha256Digest
    size: int


@dataclass(frozen=True)
class VersionManifest:
    """The archive's list of known versions."""
    latest: dict[str, str] = field(default_factory=dict)
    versions: list[VersionRecord] = field(default_factory=list)
    
    @property
    def digests(self) -> frozenset[Sha256Digest]:
        """Set of known digests, duplicates collapsed."""
        return frozenset(version.sha256 for version in self.versions)
