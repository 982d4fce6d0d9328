import aiohttp
from src.config.logger_config import logger

from src.migration.domain.models import RenderedDocument
from src.migration.infrastructure.bookstack_client import BookStackClient


class BookStackPageSink:
    def __init__(
        self,
        client: BookStackClient,
        session: aiohttp.ClientSession,
        book_id: int | None = None,
        chapter_id: int | None = None,
    ) -> None:
        self.client = client
        self.session = session
        self.book_id = book_id
        self.chapter_id = chapter_id

    async def write_document(self, document: RenderedDocument, *, is_root: bool = False) -> str:
        created = await self.client.create_page(
            self.session,
            name=document.title,
            html=document.html,
            book_id=self.book_id,
            chapter_id=self.chapter_id,
        )
        logger.info("Created BookStack page id={} name=\"{}\"", created.id, created.name)
        location = self.client.page_url(created)
        if location:
            logger.info("Likely URL: {}", location)
        return location or f"bookstack:page/{created.id}"
