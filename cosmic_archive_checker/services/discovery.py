"""Discovery of the storefront downloads likely to hold the game JAR."""

import structlog

from ..models import DownloadDescriptor, Platform
from .storefront import StorefrontClient

log = structlog.stdlib.get_logger()

# Cross-platform zips are the ones that package the game JAR
JAR_PLATFORMS = frozenset({Platform.LINUX, Platform.WINDOWS})


def is_jar_candidate(download: DownloadDescriptor) -> bool:
    """A download is a candidate iff it advertises both Linux and Windows."""
    return JAR_PLATFORMS <= download.platforms


class DownloadDiscoverer:
    """Finds the ids of candidate downloads on the game page."""

    def __init__(self, storefront: StorefrontClient, game_url: str) -> None:
        self.storefront = storefront
        self.game_url = game_url

    async def discover(self) -> list[int]:
        """Return candidate download ids in storefront order.

        Downloads without a numeric id are skipped. Storefront failures
        propagate unchanged.
        """
        log.info("Getting game page data...", game_url=self.game_url)
        game_page = await self.storefront.get_game_page(self.game_url)

        download_ids: list[int] = []
        for download in game_page.downloads:
            if download.id is None:
                continue
            if is_jar_candidate(download):
                download_ids.append(download.id)
            else:
                log.debug(
                    "Ignored download without both Linux and Windows tags",
                    download_id=download.id,
                    title=download.title,
                    platforms=sorted(platform.value for platform in download.platforms),
                )

        log.info("Collected likely JAR containing version download ids", download_ids=download_ids)
        return download_ids
