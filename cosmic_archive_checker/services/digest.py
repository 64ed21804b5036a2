"""Streaming SHA-256 digests and the archived/unarchived decision."""

import hashlib
from pathlib import Path

import structlog

from ..models import DIGEST_SIZE, Sha256Digest
from .errors import DigestSizeError

log = structlog.stdlib.get_logger()


class DigestComparator:
    """Hashes extracted files and checks them against the manifest."""

    def __init__(self, chunk_size: int = 64 * 1024) -> None:
        self._chunk_size = chunk_size

    def compute_digest(self, path: Path) -> Sha256Digest:
        """Calculate the SHA-256 digest of a file without loading it whole.

        Raises:
            OSError: If the file cannot be opened or read
            DigestSizeError: If the finalized digest is not 32 bytes
        """
        hasher = hashlib.sha256()
        with open(path, "rb") as f:
            while chunk := f.read(self._chunk_size):
                hasher.update(chunk)

        raw = hasher.digest()
        if len(raw) != DIGEST_SIZE:
            raise DigestSizeError(expected=DIGEST_SIZE, actual=len(raw))
        return Sha256Digest(raw)

    def is_unarchived(self, manifest: frozenset[Sha256Digest], path: Path) -> bool:
        """Return True iff the file's digest is not in the manifest.

        Unreadable files count as already archived.
        """
        log.info("Calculating sha256 hash...", path=str(path))
        try:
            digest = self.compute_digest(path)
        except DigestSizeError as e:
            log.critical(
                "Failed to generate sha256 hash",
                path=str(path),
                error=e.message,
                programmer_error=True,
            )
            return False
        except OSError as e:
            log.error("Failed to calculate sha256 hash", path=str(path), error=str(e))
            return False

        log.debug("Calculated sha256 hash", path=str(path), sha256=str(digest))

        if digest in manifest:
            log.warning("Sha256 already archived, skipping", path=str(path), sha256=str(digest))
            return False
        return True
