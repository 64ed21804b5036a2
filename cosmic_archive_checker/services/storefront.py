"""itch.io storefront client: game page scraping and download link resolution."""

import json
import re

import structlog
from bs4 import BeautifulSoup, Tag

from ..models import DownloadDescriptor, DownloadInfo, GamePage, Platform
from .errors import ParseError
from .http_client import HttpClientService

log = structlog.stdlib.get_logger()

# Icon classes itch.io uses in the download_platforms span
PLATFORM_ICONS: dict[str, Platform] = {
    "icon-windows8": Platform.WINDOWS,
    "icon-tux": Platform.LINUX,
    "icon-apple": Platform.MACOS,
    "icon-android": Platform.ANDROID,
}

# Fallback when only the tooltip text is present ("Download for Linux")
PLATFORM_NAMES: dict[str, Platform] = {
    "windows": Platform.WINDOWS,
    "linux": Platform.LINUX,
    "macos": Platform.MACOS,
    "osx": Platform.MACOS,
    "android": Platform.ANDROID,
}


class StorefrontClient:
    """Client for the parts of itch.io the checker needs.

    The game page is scraped for its upload list; download links are
    resolved through the page's CSRF-guarded file endpoint.
    """

    def __init__(self, http_client: HttpClientService) -> None:
        self.http_client: HttpClientService = http_client

    async def get_game_page(self, game_url: str) -> GamePage:
        """Fetch and parse a game page.

        Args:
            game_url: Full URL of the game page

        Returns:
            GamePage with every listed download

        Raises:
            NetworkError: If the page cannot be fetched
        """
        log.debug("Fetching game page", game_url=game_url)
        response = await self.http_client.get(game_url)
        page = parse_game_page(game_url, response.text)
        log.debug(
            "Game page parsed",
            game_url=game_url,
            title=page.title,
            download_count=len(page.downloads),
        )
        return page

    async def get_download_info(self, game_url: str, upload_id: int, csrf_token: str) -> DownloadInfo:
        """Resolve the authenticated download URL of an upload.

        Args:
            game_url: Full URL of the game page the upload belongs to
            upload_id: Numeric upload identifier
            csrf_token: Session CSRF token

        Returns:
            DownloadInfo with the CDN URL

        Raises:
            NetworkError: If the request fails
            ParseError: If the response does not carry a download URL
        """
        url = f"{game_url.rstrip('/')}/file/{upload_id}"
        response = await self.http_client.post(
            url,
            data={"csrf_token": csrf_token},
            params={"source": "view_game", "as_props": "1", "after_download_lightbox": "true"},
            retries=0,
        )
        return parse_download_info(response.content)


def parse_game_page(game_url: str, html: str) -> GamePage:
    """Parse the upload list out of a game page's HTML."""
    soup = BeautifulSoup(html, "html.parser")

    title = ""
    title_tag = soup.find("h1", class_="game_title")
    if title_tag:
        title = title_tag.get_text(strip=True)
    else:
        og_title = soup.find("meta", {"property": "og:title"})
        if og_title and og_title.get("content"):
            title = str(og_title["content"])

    downloads = [_parse_upload(upload) for upload in soup.select("div.upload")]
    return GamePage(url=game_url, title=title, downloads=downloads)


def _parse_upload(upload: Tag) -> DownloadDescriptor:
    upload_id: int | None = None
    button = upload.find(attrs={"data-upload_id": True})
    if button is not None:
        raw_id = str(button["data-upload_id"]).strip()
        if raw_id.isdigit():
            upload_id = int(raw_id)

    title = ""
    name_tag = upload.select_one(".upload_name .name") or upload.select_one(".name")
    if name_tag is not None:
        title = str(name_tag.get("title") or name_tag.get_text(strip=True))

    platforms: set[Platform] = set()
    for icon in upload.select(".download_platforms span"):
        classes = icon.get("class") or []
        for css_class in classes:
            if css_class in PLATFORM_ICONS:
                platforms.add(PLATFORM_ICONS[css_class])
        tooltip = str(icon.get("title") or "")
        match = re.match(r"Download for (\w+)", tooltip)
        if match and match.group(1).lower() in PLATFORM_NAMES:
            platforms.add(PLATFORM_NAMES[match.group(1).lower()])

    return DownloadDescriptor(id=upload_id, title=title, platforms=frozenset(platforms))


def parse_download_info(body: bytes) -> DownloadInfo:
    """Parse the JSON answer of the file endpoint."""
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ParseError("Download info is not valid JSON", original_error=e) from e

    if not isinstance(data, dict):
        raise ParseError("Download info must be a JSON object", value=data)
    url = data.get("url")
    if not isinstance(url, str) or not url:
        raise ParseError("Download info carries no url", field="url", value=data.get("url"))
    return DownloadInfo(url=url, external=bool(data.get("external", False)))
