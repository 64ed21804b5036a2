"""Download and extraction of the game JAR from a storefront upload."""

import io
import re
import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath

import structlog

from .errors import ArchiveError, FileSystemError
from .http_client import HttpClientService
from .storefront import StorefrontClient

log = structlog.stdlib.get_logger()

GAME_JAR_PREFIX = "Cosmic Reach-"
GAME_JAR_SUFFIX = ".jar"

_DRIVE = re.compile(r"[A-Za-z]:")

# Everything a single damaged entry can raise while being inflated or written
ENTRY_ERRORS = (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError, EOFError, OSError)


def sanitize_entry_name(name: str) -> PurePosixPath | None:
    """Turn an archive entry name into a safe relative path.

    Root, drive, empty, "." and ".." components are dropped and backslashes
    count as separators. Returns None when nothing is left.
    """
    parts = [
        part for part in re.split(r"[\\/]+", name)
        if part not in ("", ".", "..") and not _DRIVE.fullmatch(part)
    ]
    if not parts:
        return None
    return PurePosixPath(*parts)


def is_game_jar(relative_path: PurePosixPath) -> bool:
    """Base name starts with "Cosmic Reach-" and the extension is jar in any case."""
    return (
        relative_path.name.startswith(GAME_JAR_PREFIX)
        and relative_path.suffix.lower() == GAME_JAR_SUFFIX
    )


class ArchiveRetriever:
    """Downloads one storefront upload and extracts its game JARs.

    Each download id gets its own directory under ``destination_root`` so
    concurrent retrievals never write to the same path.
    """

    def __init__(
        self,
        http_client: HttpClientService,
        storefront: StorefrontClient,
        game_url: str,
        csrf_token: str,
        destination_root: Path = Path(),
    ) -> None:
        """Initialize the archive retriever.

        Args:
            http_client: HTTP client service for the CDN download
            storefront: Storefront client resolving download URLs
            game_url: Game page the uploads belong to
            csrf_token: Session token forwarded to the storefront
            destination_root: Directory in which per-download directories are created
        """
        self.http_client = http_client
        self.storefront = storefront
        self.game_url = game_url
        self._csrf_token = csrf_token
        self.destination_root = destination_root

    async def retrieve(self, download_id: int) -> list[Path]:
        """Download an upload and extract every game JAR it contains.

        Args:
            download_id: Numeric storefront upload id

        Returns:
            Paths of the extracted JARs, possibly empty

        Raises:
            NetworkError: If the download URL cannot be resolved or fetched
            ParseError: If the storefront answer is malformed
            ArchiveError: If the body is not a zip archive
            FileSystemError: If the destination directory cannot be created
        """
        log.info("Getting download info", download_id=download_id)
        info = await self.storefront.get_download_info(self.game_url, download_id, self._csrf_token)

        log.info("Sending GET request to download url...", download_id=download_id)
        log.debug("GET request", download_id=download_id, url=info.url)
        response = await self.http_client.get(info.url)

        log.info("Reading bytes as zip archive...", download_id=download_id, size=len(response.content))
        try:
            archive = zipfile.ZipFile(io.BytesIO(response.content))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
            raise ArchiveError(
                "Failed to read bytes as zip archive",
                download_id=download_id,
                original_error=e,
            ) from e

        destination = self.destination_root / str(download_id)
        self._ensure_destination(download_id, destination)

        with archive:
            return self._extract_game_jars(download_id, archive, destination)

    def _ensure_destination(self, download_id: int, destination: Path) -> None:
        log.info("Creating destination folder for extraction...", download_id=download_id, path=str(destination))
        try:
            destination.mkdir(parents=True)
        except FileExistsError:
            log.info("Destination directory already exists", download_id=download_id, path=str(destination))
        except OSError as e:
            raise FileSystemError(
                "Failed to create destination folder for extraction",
                original_error=e,
                path=str(destination),
                operation="mkdir",
            ) from e

    def _extract_game_jars(
        self,
        download_id: int,
        archive: zipfile.ZipFile,
        destination: Path,
    ) -> list[Path]:
        extracted: list[Path] = []
        written: set[Path] = set()
        root = destination.resolve()

        for index, entry in enumerate(archive.infolist()):
            log.debug("Accessing archived file", download_id=download_id, entry_index=index)

            relative_path = sanitize_entry_name(entry.filename)
            if entry.is_dir() or relative_path is None or not is_game_jar(relative_path):
                log.debug(
                    "Ignored non-game jar file",
                    download_id=download_id,
                    entry_index=index,
                    entry=entry.filename,
                )
                continue

            target = destination.joinpath(*relative_path.parts)
            if not target.resolve().is_relative_to(root):
                log.warning(
                    "Skipping entry escaping the destination directory",
                    download_id=download_id,
                    entry_index=index,
                    entry=entry.filename,
                )
                continue

            # Distinct entry names may sanitize to the same file; the first one wins
            if target in written:
                log.warning(
                    "Skipping entry mapping to an already extracted file",
                    download_id=download_id,
                    entry_index=index,
                    entry=entry.filename,
                    path=str(target),
                )
                continue

            log.info("Found game jar file", download_id=download_id, entry_index=index, entry=str(relative_path))
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(entry) as source, open(target, "wb") as sink:
                    shutil.copyfileobj(source, sink)
            except ENTRY_ERRORS as e:
                log.warning(
                    "Failed to extract game jar file",
                    download_id=download_id,
                    entry_index=index,
                    entry=entry.filename,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            written.add(target)
            extracted.append(target)

        log.info("Extraction finished", download_id=download_id, extracted=len(extracted))
        return extracted
