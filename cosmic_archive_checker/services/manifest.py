"""Archived versions manifest fetching and parsing."""

import json
import sys
from typing import Any, BinaryIO

import httpx
import structlog

from ..models import Sha256Digest, VersionManifest, VersionRecord
from .errors import ParseError
from .http_client import HttpClientService

log = structlog.stdlib.get_logger()

U64_MAX = 2 ** 64 - 1


class ManifestFetcher:
    """Fetches the archive manifest and reduces it to the set of known digests."""

    def __init__(
        self,
        http_client: HttpClientService,
        manifest_url: str,
        diagnostic_stream: BinaryIO | None = None,
    ) -> None:
        """Initialize the manifest fetcher.

        Args:
            http_client: HTTP client service for making requests
            manifest_url: URL of the versions.json document
            diagnostic_stream: Where the raw body is dumped when it is not
                valid JSON (defaults to stderr)
        """
        self.http_client = http_client
        self.manifest_url = manifest_url
        self._diagnostic_stream = diagnostic_stream

    async def fetch(self) -> frozenset[Sha256Digest]:
        """Fetch the manifest and return the digests of every archived version.

        Raises:
            NetworkError: If the manifest cannot be fetched
            ParseError: If the body is not a valid manifest
        """
        log.info("Sending GET request to archived versions data...", url=self.manifest_url)
        response = await self.http_client.get(self.manifest_url, retries=0)
        body = response.content

        log.info("Deserializing archived versions data...")
        try:
            manifest = parse_manifest(body)
        except ParseError as e:
            if isinstance(e.original_error, (json.JSONDecodeError, UnicodeDecodeError)):
                log.error("Failed to deserialize received bytes as valid JSON", error=str(e.original_error))
                self._dump_body(body)
            raise

        hashes = manifest.digests
        log.info("Collected known game jar sha256 hashes", count=len(hashes))
        for digest in sorted(hashes):
            log.debug("Known hash", sha256=str(digest))
        return hashes

    def _dump_body(self, body: bytes) -> None:
        log.error("Dumping received bytes to stderr...")
        stream = self._diagnostic_stream or getattr(sys.stderr, "buffer", None)
        if not body.endswith(b"\n"):
            body += b"\n"
        try:
            if stream is None:
                sys.stderr.write(body.decode("utf-8", errors="replace"))
                sys.stderr.flush()
            else:
                sys.stderr.flush()
                stream.write(body)
                stream.flush()
        except OSError as e:
            log.error("Failed to dump the bytes", error=str(e))


def parse_manifest(body: bytes | str) -> VersionManifest:
    """Parse a versions.json document.

    Unknown keys are ignored; missing or ill-typed keys raise ParseError.
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError("Manifest is not valid JSON", original_error=e) from e

    if not isinstance(data, dict):
        raise ParseError("Manifest must be a JSON object", value=type(data).__name__)

    # Only the digests are consumed; a manifest without channels is still usable
    latest = _require(data, "latest", dict, "") if "latest" in data else {}
    for channel, version_id in latest.items():
        if not isinstance(version_id, str):
            raise ParseError("Latest version id must be a string", field=f"latest.{channel}", value=version_id)

    versions = _require(data, "versions", list, "")
    records = [_parse_version(entry, index) for index, entry in enumerate(versions)]
    return VersionManifest(latest=dict(latest), versions=records)


def _parse_version(entry: Any, index: int) -> VersionRecord:
    where = f"versions[{index}]"
    if not isinstance(entry, dict):
        raise ParseError("Version entry must be a JSON object", field=where, value=entry)

    url = _require(entry, "url", str, where)
    if not _is_absolute_url(url):
        raise ParseError("Version url must be an absolute URL", field=f"{where}.url", value=url)

    sha256 = _require(entry, "sha256", str, where)
    try:
        digest = Sha256Digest.from_hex(sha256)
    except ValueError as e:
        raise ParseError("Invalid sha256 digest", field=f"{where}.sha256", value=sha256, original_error=e) from e

    return VersionRecord(
        id=_require(entry, "id", str, where),
        kind=_require(entry, "type", str, where),
        release_time=_require_u64(entry, "releaseTime", where),
        url=url,
        sha256=digest,
        size=_require_u64(entry, "size", where),
    )


def _require(data: dict[str, Any], key: str, expected: type, where: str) -> Any:
    field = f"{where}.{key}" if where else key
    if key not in data:
        raise ParseError(f"Missing field '{field}'", field=field)
    value = data[key]
    if not isinstance(value, expected):
        raise ParseError(f"Field '{field}' must be of type {expected.__name__}", field=field, value=value)
    return value


def _require_u64(data: dict[str, Any], key: str, where: str) -> int:
    field = f"{where}.{key}"
    if key not in data:
        raise ParseError(f"Missing field '{field}'", field=field)
    value = data[key]
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
        raise ParseError(f"Field '{field}' must be an unsigned 64-bit integer", field=field, value=value)
    return value


def _is_absolute_url(value: str) -> bool:
    """Any scheme is accepted as long as the URL names a host."""
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL:
        return False
    return bool(url.scheme) and bool(url.host)
