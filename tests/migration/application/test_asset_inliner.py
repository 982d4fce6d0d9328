import asyncio
import unittest
from unittest.mock import AsyncMock, patch

from bs4 import BeautifulSoup

from src.config.logger_config import logger
from src.migration.application.asset_inliner import AssetInliner
from src.migration.domain.errors import AssetFetchError, HttpStatusError
from src.migration.domain.models import BinaryAsset
from src.migration.infrastructure.confluence_client import ConfluenceClient
from src.migration.infrastructure.content_fetcher import ContentFetcher
from tests.utils.fake_http import FakeSession

BASE = "https://acme.atlassian.net/wiki"


class FakeBinaries:
    def __init__(self, assets=None, failing=(), delay=0):
        self.assets = assets or {}
        self.failing = set(failing)
        self.delay = delay
        self.calls = []

    async def fetch_binary(self, url, *, headers=None, max_bytes=None):
        self.calls.append((url, dict(headers or {}), max_bytes))
        await asyncio.sleep(self.delay)
        if url in self.failing:
            raise HttpStatusError(url, 404, "gone")
        asset = self.assets.get(url)
        if asset is None:
            raise AssetFetchError(url, "unknown")
        return asset


def parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(f'<div id="__root">{html}</div>', "lxml")


class AssetInlinerTests(unittest.IsolatedAsyncioTestCase):
    async def test_repeated_source_is_fetched_once(self):
        src = f"{BASE}/download/attachments/1/diagram.png"
        soup = parse("".join(f'<img src="{src}"/>' for _ in range(5)))
        binaries = FakeBinaries({src: BinaryAsset(content_type="image/png", data=b"png")})

        stats = await AssetInliner(binaries, BASE, concurrency=4).inline(soup)

        self.assertEqual(len(binaries.calls), 1)
        self.assertEqual(stats.succeeded, 5)
        self.assertEqual(stats.unique_fetched, 1)
        self.assertTrue(all(img["src"] == "data:image/png;base64,cG5n" for img in soup.find_all("img")))

    async def test_relative_sources_are_absolutized_before_fetching(self):
        soup = parse('<img src="/wiki/download/a.gif"/><a href="/wiki/spaces/DOC/pages/2/X">x</a>')
        absolute = "https://acme.atlassian.net/wiki/download/a.gif"
        binaries = FakeBinaries({absolute: BinaryAsset(content_type="image/gif", data=b"g")})

        await AssetInliner(binaries, BASE).inline(soup)

        self.assertEqual(binaries.calls[0][0], absolute)
        self.assertEqual(soup.find("a")["href"], "https://acme.atlassian.net/wiki/spaces/DOC/pages/2/X")

    async def test_oversize_image_keeps_src_and_pass_completes(self):
        big = f"{BASE}/download/big.png"
        small = f"{BASE}/download/small.png"
        soup = parse(f'<img src="{big}"/><img src="{small}"/>')
        binaries = FakeBinaries(
            {
                big: BinaryAsset(content_type="image/png", data=b"x" * 32),
                small: BinaryAsset(content_type="image/png", data=b"x"),
            }
        )

        stats = await AssetInliner(binaries, BASE, max_bytes=16).inline(soup)

        images = soup.find_all("img")
        self.assertEqual(images[0]["src"], big)
        self.assertTrue(images[1]["src"].startswith("data:image/png;base64,"))
        self.assertEqual((stats.succeeded, stats.failed), (1, 1))

    async def test_failed_fetch_is_counted_per_occurrence(self):
        src = f"{BASE}/download/missing.png"
        soup = parse(f'<img src="{src}"/><img src="{src}"/>')
        binaries = FakeBinaries(failing={src})

        stats = await AssetInliner(binaries, BASE).inline(soup)

        self.assertEqual(stats.failed, 2)
        self.assertEqual(stats.unique_fetched, 0)
        self.assertEqual(len(binaries.calls), 1)
        self.assertTrue(all(img["src"] == src for img in soup.find_all("img")))

    async def test_data_uri_images_are_skipped(self):
        soup = parse('<img src="data:image/png;base64,AAAA"/><img/>')
        binaries = FakeBinaries()

        stats = await AssetInliner(binaries, BASE).inline(soup)

        self.assertEqual(binaries.calls, [])
        self.assertEqual(stats.skipped_already_inline, 1)
        self.assertEqual(stats.succeeded + stats.failed, 0)

    async def test_auth_is_sent_only_to_the_source_origin(self):
        own = f"{BASE}/download/a.png"
        foreign = "https://cdn.example.com/b.png"
        soup = parse(f'<img src="{own}"/><img src="{foreign}"/>')
        binaries = FakeBinaries(
            {
                own: BinaryAsset(content_type="image/png", data=b"a"),
                foreign: BinaryAsset(content_type="image/png", data=b"b"),
            }
        )

        await AssetInliner(binaries, BASE, auth_header="Basic abc").inline(soup)

        headers = {url: sent for url, sent, _ in binaries.calls}
        self.assertEqual(headers[own], {"Authorization": "Basic abc"})
        self.assertEqual(headers[foreign], {})

    async def test_content_type_falls_back_to_extension_then_octet_stream(self):
        svg = "https://cdn.example.com/logo.svg"
        blob = "https://cdn.example.com/blob"
        soup = parse(f'<img src="{svg}"/><img src="{blob}"/>')
        binaries = FakeBinaries(
            {
                svg: BinaryAsset(content_type="", data=b"s"),
                blob: BinaryAsset(content_type="", data=b"b"),
            }
        )

        await AssetInliner(binaries, BASE).inline(soup)

        images = soup.find_all("img")
        self.assertTrue(images[0]["src"].startswith("data:image/svg+xml;base64,"))
        self.assertTrue(images[1]["src"].startswith("data:application/octet-stream;base64,"))

    async def test_exhausted_retries_on_an_image_only_warn(self):
        src = f"{BASE}/download/slow.png"
        soup = parse(f'<img src="{src}"/>')
        session = FakeSession([asyncio.TimeoutError() for _ in range(4)])
        fetcher = ContentFetcher(ConfluenceClient(BASE, "Basic abc"), session)
        levels = []
        handler_id = logger.add(lambda message: levels.append(message.record["level"].name), level="DEBUG")

        try:
            with patch("src.migration.infrastructure.http_transport.asyncio.sleep", new=AsyncMock()):
                stats = await AssetInliner(fetcher, BASE).inline(soup)
        finally:
            logger.remove(handler_id)

        self.assertEqual(stats.failed, 1)
        self.assertEqual(len(session.calls), 4)
        self.assertNotIn("ERROR", levels)
        self.assertIn("WARNING", levels)
        self.assertEqual(soup.find("img")["src"], src)
