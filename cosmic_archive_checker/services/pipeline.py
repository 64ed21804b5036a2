"""Orchestration of the archive check: fetch, discover, retrieve, compare."""

import asyncio
from pathlib import Path

import structlog

from ..models import Sha256Digest
from .digest import DigestComparator
from .discovery import DownloadDiscoverer
from .errors import ErrorHandlingService
from .manifest import ManifestFetcher
from .retriever import ArchiveRetriever

log = structlog.stdlib.get_logger()


class ArchiveCheckPipeline:
    """Drives one run of the checker.

    The manifest fetch and the storefront discovery run concurrently and
    must both succeed. Each discovered download is then retrieved in its
    own task; a failing task is reported and does not affect the others.
    """

    def __init__(
        self,
        manifest_fetcher: ManifestFetcher,
        discoverer: DownloadDiscoverer,
        retriever: ArchiveRetriever,
        comparator: DigestComparator | None = None,
        error_service: ErrorHandlingService | None = None,
    ) -> None:
        self.manifest_fetcher = manifest_fetcher
        self.discoverer = discoverer
        self.retriever = retriever
        self.comparator = comparator or DigestComparator()
        self.error_service = error_service or ErrorHandlingService()

    async def run(self) -> list[Path]:
        """Return the extracted JAR paths whose digest is not archived yet.

        Raises:
            AppError: If the manifest cannot be fetched or discovery fails
        """
        manifest_result, discovery_result = await asyncio.gather(
            self.manifest_fetcher.fetch(),
            self.discoverer.discover(),
            return_exceptions=True,
        )
        # Both must succeed; the manifest failure is reported first
        for result in (manifest_result, discovery_result):
            if isinstance(result, BaseException):
                raise result
        archived_hashes: frozenset[Sha256Digest] = manifest_result
        download_ids: list[int] = discovery_result

        results = await self._retrieve_all(download_ids)

        paths: list[Path] = []
        for download_id, result in zip(download_ids, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                self.error_service.handle_error(
                    result,
                    operation="retrieve",
                    component="ArchiveRetriever",
                    context={"download_id": download_id},
                )
                continue
            paths.extend(self._unarchived(archived_hashes, result))

        self._log_summary(paths)
        return paths

    async def _retrieve_all(self, download_ids: list[int]) -> list[list[Path] | BaseException]:
        tasks = [
            asyncio.create_task(self.retriever.retrieve(download_id), name=f"retrieve-{download_id}")
            for download_id in download_ids
        ]
        return await asyncio.gather(*tasks, return_exceptions=True)

    def _unarchived(self, archived_hashes: frozenset[Sha256Digest], extracted: list[Path]) -> list[Path]:
        return [path for path in extracted if self.comparator.is_unarchived(archived_hashes, path)]

    def _log_summary(self, paths: list[Path]) -> None:
        failures = self.error_service.get_error_count_by_category()
        if failures:
            log.warning(
                "Some downloads could not be checked",
                failures={category.value: count for category, count in failures.items()},
                errors=[error.message for error in self.error_service.get_recent_errors(sum(failures.values()))],
            )

        if paths:
            log.warning(
                "Following are downloaded game JAR files whose hashes are not found in the archive",
                paths=[str(path) for path in paths],
            )
        else:
            log.warning("NO JAR files found whose hashes are NOT already in the archive")
