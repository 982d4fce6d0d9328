import asyncio

from bs4 import BeautifulSoup, Tag
from src.config.logger_config import logger

from src.migration.application.ports import BinaryFetcherPort
from src.migration.domain.errors import AssetFetchError, MigrationError
from src.migration.domain.models import InlineStats
from src.migration.domain.rules import absolutize, build_data_uri, resolve_content_type, url_origin

DEFAULT_IMAGE_CONCURRENCY = 4
DEFAULT_MAX_IMAGE_BYTES = 15_000_000


class AssetInliner:
    """Embed remote images as data URIs.

    Each unique source is fetched once per pass; every occurrence reuses the
    result. A failed image keeps its original ``src`` and is only counted.
    """

    def __init__(
        self,
        binaries: BinaryFetcherPort,
        base_url: str,
        auth_header: str | None = None,
        concurrency: int = DEFAULT_IMAGE_CONCURRENCY,
        max_bytes: int | None = DEFAULT_MAX_IMAGE_BYTES,
    ) -> None:
        self.binaries = binaries
        self.base_url = base_url
        self.auth_header = auth_header
        self.concurrency = max(1, int(concurrency or 1))
        self.max_bytes = max_bytes

    async def inline(self, soup: BeautifulSoup) -> InlineStats:
        # absolute src/href first so both fetching and link detection work
        for image in soup.find_all("img", src=True):
            image["src"] = absolutize(image["src"], self.base_url)
        for link in soup.find_all("a", href=True):
            link["href"] = absolutize(link["href"], self.base_url)

        occurrences: dict[str, list[Tag]] = {}
        skipped = 0
        for image in soup.find_all("img"):
            src = str(image.get("src") or "").strip()
            if not src:
                continue
            if src.lower().startswith("data:"):
                skipped += 1
                continue
            occurrences.setdefault(src, []).append(image)

        semaphore = asyncio.Semaphore(self.concurrency)
        sources = list(occurrences)
        results = await asyncio.gather(*(self._fetch_data_uri(src, semaphore) for src in sources))
        asset_cache = {src: data_uri for src, data_uri in zip(sources, results) if data_uri is not None}

        succeeded = 0
        failed = 0
        for src, images in occurrences.items():
            data_uri = asset_cache.get(src)
            if data_uri is None:
                failed += len(images)
                continue
            for image in images:
                image["src"] = data_uri
            succeeded += len(images)

        return InlineStats(
            succeeded=succeeded,
            failed=failed,
            skipped_already_inline=skipped,
            unique_fetched=len(asset_cache),
        )

    def headers_for(self, src: str) -> dict[str, str]:
        if self.auth_header and url_origin(src) and url_origin(src) == url_origin(self.base_url):
            return {"Authorization": self.auth_header}
        return {}

    async def _fetch_data_uri(self, src: str, semaphore: asyncio.Semaphore) -> str | None:
        async with semaphore:
            try:
                asset = await self.binaries.fetch_binary(
                    src,
                    headers=self.headers_for(src),
                    max_bytes=self.max_bytes,
                )
                if self.max_bytes and len(asset.data) > self.max_bytes:
                    raise AssetFetchError(src, f"too large: {len(asset.data)} bytes > {self.max_bytes}")
                return build_data_uri(resolve_content_type(asset.content_type, src), asset.data)
            except MigrationError as exc:
                logger.warning("Could not inline image {}: {}", src, exc)
                return None
