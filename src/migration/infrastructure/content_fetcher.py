import aiohttp

from src.migration.domain.models import BinaryAsset, Document
from src.migration.infrastructure.confluence_client import ConfluenceClient
from src.migration.infrastructure.memo_cache import InflightMemoCache


class ContentFetcher:
    """Session-bound, memoized view of the Confluence content API.

    Titles and full documents are cached per id for the lifetime of the
    caches handed in, so several runs can share them.
    """

    def __init__(
        self,
        client: ConfluenceClient,
        session: aiohttp.ClientSession,
        titles: InflightMemoCache[str, str] | None = None,
        documents: InflightMemoCache[str, Document] | None = None,
    ) -> None:
        self.client = client
        self.session = session
        self.titles = titles if titles is not None else InflightMemoCache()
        self.documents = documents if documents is not None else InflightMemoCache()

    @property
    def base_url(self) -> str:
        return self.client.base_url

    @property
    def auth_header(self) -> str:
        return self.client.auth_header

    async def fetch_title(self, document_id: str) -> str:
        key = str(document_id)
        return await self.titles.get_or_load(key, lambda: self.client.get_title(self.session, key))

    async def fetch_full(self, document_id: str) -> Document:
        key = str(document_id)
        document = await self.documents.get_or_load(key, lambda: self.client.get_document(self.session, key))
        if document.title:
            self.titles.prime(key, document.title)
        return document

    async def fetch_binary(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        max_bytes: int | None = None,
    ) -> BinaryAsset:
        return await self.client.get_binary(self.session, url, headers=headers, max_bytes=max_bytes)
