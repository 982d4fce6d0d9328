from typing import Protocol, runtime_checkable

from src.migration.domain.models import BinaryAsset, Document, RenderedDocument


@runtime_checkable
class TitleLookupPort(Protocol):
    async def fetch_title(self, document_id: str) -> str: ...
    """Return the title of a source document."""


@runtime_checkable
class BinaryFetcherPort(Protocol):
    async def fetch_binary(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        max_bytes: int | None = None,
    ) -> BinaryAsset: ...


@runtime_checkable
class DocumentSourcePort(TitleLookupPort, BinaryFetcherPort, Protocol):
    @property
    def base_url(self) -> str: ...

    @property
    def auth_header(self) -> str: ...

    async def fetch_full(self, document_id: str) -> Document: ...


@runtime_checkable
class DocumentSinkPort(Protocol):
    async def write_document(self, document: RenderedDocument, *, is_root: bool = False) -> str: ...
    """Persist or publish one rendered document and return where it went."""
