from typing import Any

import aiohttp
from src.config.logger_config import logger

from src.migration.domain.models import BinaryAsset, Document
from src.migration.infrastructure.http_transport import HttpTransport


class ConfluenceClient:
    def __init__(
        self,
        base_url: str,
        auth_header: str,
        transport: HttpTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.auth_header = auth_header
        self.transport = transport or HttpTransport()

    async def get_document(self, session: aiohttp.ClientSession, document_id: str) -> Document:
        key = str(document_id)
        data = await self.transport.get_json(
            session,
            self._content_url(key),
            headers=self._headers(),
            params={"expand": "body.export_view,space,version"},
        )
        document = Document(
            id=key,
            title=str(data.get("title") or "").strip(),
            raw_html=self._extract_export_html(data),
            space_key=str((data.get("space") or {}).get("key") or ""),
        )
        logger.debug("Fetched document {} ({} chars)", key, len(document.raw_html))
        return document

    async def get_title(self, session: aiohttp.ClientSession, document_id: str) -> str:
        data = await self.transport.get_json(
            session,
            self._content_url(str(document_id)),
            headers=self._headers(),
        )
        return str(data.get("title") or "").strip()

    async def get_binary(
        self,
        session: aiohttp.ClientSession,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        max_bytes: int | None = None,
    ) -> BinaryAsset:
        return await self.transport.get_binary(session, url, headers=headers, max_bytes=max_bytes)

    def _content_url(self, document_id: str) -> str:
        return f"{self.base_url}/rest/api/content/{document_id}"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": self.auth_header, "Accept": "application/json"}

    @staticmethod
    def _extract_export_html(data: dict[str, Any]) -> str:
        body = data.get("body")
        if not isinstance(body, dict):
            return ""
        export_view = body.get("export_view")
        if not isinstance(export_view, dict):
            return ""
        value = export_view.get("value")
        return value if isinstance(value, str) else ""
