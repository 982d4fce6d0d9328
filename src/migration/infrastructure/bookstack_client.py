from typing import Any

import aiohttp
from src.config.logger_config import logger

from src.migration.domain.errors import ValidationError
from src.migration.domain.models import BookRef, CreatedPage
from src.migration.domain.rules import require_non_empty
from src.migration.infrastructure.http_transport import HttpTransport

BOOK_DESCRIPTION_HTML = "<p>Imported from Confluence.</p>"


class BookStackClient:
    def __init__(
        self,
        base_url: str,
        auth_header: str,
        transport: HttpTransport | None = None,
        page_size: int = 500,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.auth_header = auth_header
        self.transport = transport or HttpTransport()
        self.page_size = page_size

    async def find_or_create_book(self, session: aiohttp.ClientSession, desired_name: str) -> BookRef:
        name = require_non_empty(str(desired_name or "").strip(), "Empty BookStack book name")
        wanted = name.lower()

        offset = 0
        while True:
            listing = await self.transport.get_json(
                session,
                f"{self.base_url}/api/books",
                headers=self._headers(),
                params={
                    "count": str(self.page_size),
                    "offset": str(offset),
                    "filter[name:like]": f"%{name}%",
                },
            )
            items = listing.get("data") if isinstance(listing, dict) else None
            if not isinstance(items, list) or not items:
                break

            for book in items:
                if str(book.get("name") or "").strip().lower() == wanted and book.get("id"):
                    return BookRef(id=int(book["id"]), name=str(book["name"]), existed=True)

            offset += len(items)
            total = listing.get("total")
            if not isinstance(total, int) or offset >= total:
                break

        created = await self.transport.post_json(
            session,
            f"{self.base_url}/api/books",
            {"name": name, "description_html": BOOK_DESCRIPTION_HTML},
            headers=self._headers(),
        )
        logger.info("Created BookStack book id={} name=\"{}\"", created.get("id"), created.get("name"))
        return BookRef(id=int(created["id"]), name=str(created.get("name") or name), existed=False)

    async def create_page(
        self,
        session: aiohttp.ClientSession,
        *,
        name: str,
        html: str,
        book_id: int | None = None,
        chapter_id: int | None = None,
    ) -> CreatedPage:
        payload: dict[str, Any] = {"name": name, "html": html}
        if chapter_id:
            payload["chapter_id"] = chapter_id
        elif book_id:
            payload["book_id"] = book_id
        else:
            raise ValidationError("A BookStack page needs a book_id or chapter_id")

        created = await self.transport.post_json(
            session,
            f"{self.base_url}/api/pages",
            payload,
            headers=self._headers(),
        )
        return CreatedPage(
            id=int(created["id"]),
            name=str(created.get("name") or name),
            slug=str(created.get("slug") or ""),
            book_slug=str(created.get("book_slug") or ""),
        )

    def page_url(self, page: CreatedPage) -> str | None:
        if page.slug and page.book_slug:
            return f"{self.base_url}/books/{page.book_slug}/page/{page.slug}"
        return None

    def _headers(self) -> dict[str, str]:
        return {"Authorization": self.auth_header, "Accept": "application/json"}
