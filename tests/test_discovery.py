"""Tests for candidate download discovery."""

from unittest.mock import AsyncMock

import pytest
from hypothesis import given, strategies as st

from cosmic_archive_checker.models import DownloadDescriptor, Platform
from cosmic_archive_checker.services.discovery import DownloadDiscoverer, is_jar_candidate
from cosmic_archive_checker.services.errors import NetworkError
from cosmic_archive_checker.services.storefront import StorefrontClient

from conftest import GAME_URL, cross_platform_download, game_page

platform_sets = st.frozensets(st.sampled_from(list(Platform)))


@given(platform_sets)
def test_candidate_iff_linux_and_windows(platforms: frozenset[Platform]) -> None:
    download = DownloadDescriptor(id=1, title="build.zip", platforms=platforms)
    expected = Platform.LINUX in platforms and Platform.WINDOWS in platforms
    assert is_jar_candidate(download) == expected


@pytest.mark.asyncio
async def test_discover_filters_and_keeps_order() -> None:
    storefront = AsyncMock(spec=StorefrontClient)
    storefront.get_game_page.return_value = game_page(
        cross_platform_download(30),
        DownloadDescriptor(id=10, title="windows.zip", platforms=frozenset({Platform.WINDOWS})),
        cross_platform_download(None),
        DownloadDescriptor(id=20, title="linux.tar.gz", platforms=frozenset({Platform.LINUX})),
        cross_platform_download(5),
    )

    discoverer = DownloadDiscoverer(storefront, GAME_URL)
    download_ids = await discoverer.discover()

    assert download_ids == [30, 5]
    storefront.get_game_page.assert_awaited_once_with(GAME_URL)


@pytest.mark.asyncio
async def test_discover_with_no_candidates() -> None:
    storefront = AsyncMock(spec=StorefrontClient)
    storefront.get_game_page.return_value = game_page(
        DownloadDescriptor(id=7, title="cosmic-reach.apk", platforms=frozenset({Platform.ANDROID})),
    )

    assert await DownloadDiscoverer(storefront, GAME_URL).discover() == []


@pytest.mark.asyncio
async def test_discover_propagates_storefront_failure() -> None:
    storefront = AsyncMock(spec=StorefrontClient)
    failure = NetworkError("Failed to send GET request", url=GAME_URL)
    storefront.get_game_page.side_effect = failure

    with pytest.raises(NetworkError) as exc_info:
        await DownloadDiscoverer(storefront, GAME_URL).discover()
    assert exc_info.value is failure
