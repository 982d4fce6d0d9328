from dataclasses import dataclass

from bs4 import BeautifulSoup
from src.config.logger_config import logger

from src.migration.application.asset_inliner import (
    DEFAULT_IMAGE_CONCURRENCY,
    DEFAULT_MAX_IMAGE_BYTES,
    AssetInliner,
)
from src.migration.application.link_humanizer import DEFAULT_TITLE_CONCURRENCY, humanize_links
from src.migration.application.ports import DocumentSourcePort
from src.migration.domain.models import RenderedDocument
from src.migration.domain.references import collect_linked_ids, resolve_references
from src.migration.domain.rules import ROOT_WRAPPER_ID, require_non_empty
from src.migration.domain.sanitizer import strip_noise

HTML_PARSER = "lxml"


@dataclass(frozen=True)
class RenderOptions:
    inline_images: bool = True
    image_concurrency: int = DEFAULT_IMAGE_CONCURRENCY
    max_image_bytes: int | None = DEFAULT_MAX_IMAGE_BYTES
    title_concurrency: int = DEFAULT_TITLE_CONCURRENCY
    keep_ids: bool = False
    fragment: bool = True
    title_override: str | None = None


class DocumentRenderer:
    """Runs the per-document pipeline over one parsed tree.

    fetch -> inline images -> humanize links -> resolve anchors
    -> collect linked ids -> sanitize -> serialize
    """

    def __init__(
        self,
        source: DocumentSourcePort,
        options: RenderOptions | None = None,
        root_id: str | None = None,
    ) -> None:
        self.source = source
        self.options = options or RenderOptions()
        self.root_id = str(root_id) if root_id is not None else None

    async def render(self, document_id: str) -> RenderedDocument:
        document_id = str(document_id)
        base_url = self.source.base_url
        document = await self.source.fetch_full(document_id)
        title = self._title_for(document_id, document.title)
        raw_html = require_non_empty(
            document.raw_html,
            f"Confluence returned an empty body.export_view (pageId={document_id})",
        )

        soup = BeautifulSoup(f'<div id="{ROOT_WRAPPER_ID}">{raw_html}</div>', HTML_PARSER)

        assets = None
        if self.options.inline_images:
            logger.info(
                "Inline images for {}... (concurrency={}, maxBytes={})",
                document_id,
                self.options.image_concurrency,
                self.options.max_image_bytes,
            )
            inliner = AssetInliner(
                self.source,
                base_url=base_url,
                auth_header=self.source.auth_header,
                concurrency=self.options.image_concurrency,
                max_bytes=self.options.max_image_bytes,
            )
            assets = await inliner.inline(soup)

        humanized = await humanize_links(
            soup,
            current_document_id=document_id,
            base_url=base_url,
            titles=self.source,
            concurrency=self.options.title_concurrency,
        )
        resolved = resolve_references(soup, document_id, base_url)
        linked_ids = collect_linked_ids(soup, document_id, base_url)
        strip_noise(soup, keep_ids=self.options.keep_ids, protected_ids=resolved.protected_ids)

        return RenderedDocument(
            id=document_id,
            title=title,
            html=self._serialize(soup),
            linked_ids=linked_ids,
            space_key=document.space_key,
            protected_ids=resolved.protected_ids,
            rewritten_self_links=resolved.rewritten_self_links + humanized.same_document_links,
            titles_replaced=humanized.titles_replaced,
            assets=assets,
        )

    def _title_for(self, document_id: str, fetched_title: str) -> str:
        override = str(self.options.title_override or "").strip()
        if override and document_id == self.root_id:
            return override
        return fetched_title or f"Confluence page {document_id}"

    def _serialize(self, soup: BeautifulSoup) -> str:
        if not self.options.fragment:
            return str(soup)
        if soup.body is not None:
            return soup.body.decode_contents()
        root = soup.find(id=ROOT_WRAPPER_ID)
        return root.decode_contents() if root is not None else str(soup)
