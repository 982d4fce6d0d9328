import asyncio
from dataclasses import dataclass
from pathlib import Path

import aiohttp

from src.config.logger_config import logger
from src.config.settings import MigrationSettings
from src.migration.application.ports import DocumentSinkPort
from src.migration.application.workflows.crawl_documents import CrawlDocumentsWorkflow, CrawlWorkflowConfig
from src.migration.application.workflows.render_document import DocumentRenderer, RenderOptions
from src.migration.domain.models import ExportSummary, SourceRef
from src.migration.domain.rules import extract_space_key
from src.migration.infrastructure.bookstack_client import BookStackClient
from src.migration.infrastructure.bookstack_sink import BookStackPageSink
from src.migration.infrastructure.confluence_client import ConfluenceClient
from src.migration.infrastructure.content_fetcher import ContentFetcher
from src.migration.infrastructure.fs_sink import HtmlFileSink
from src.migration.infrastructure.http_transport import HttpTransport


DEFAULT_OUT_DIR = Path("confluence-export")
DEFAULT_BOOK_NAME = "Confluence Imports"


@dataclass(frozen=True)
class PublishTarget:
    book_id: int | None = None
    chapter_id: int | None = None
    book_name: str | None = None


async def run_export_async(
    *,
    source: SourceRef,
    settings: MigrationSettings,
    render_options: RenderOptions | None = None,
    crawl_config: CrawlWorkflowConfig | None = None,
    dry_run: bool = True,
    out_dir: str | Path = DEFAULT_OUT_DIR,
    out_path: str | Path | None = None,
    target: PublishTarget | None = None,
    transport: HttpTransport | None = None,
) -> ExportSummary:
    settings.validate_source()
    if not dry_run:
        settings.validate_target()

    transport = transport or HttpTransport()
    confluence = ConfluenceClient(
        base_url=settings.confluence_base_normalized,
        auth_header=settings.confluence_auth_header(),
        transport=transport,
    )
    connector = aiohttp.TCPConnector(limit=0, limit_per_host=10, ttl_dns_cache=300)
    async with aiohttp.ClientSession(connector=connector) as session:
        fetcher = ContentFetcher(confluence, session)
        renderer = DocumentRenderer(fetcher, options=render_options, root_id=source.document_id)

        sink: DocumentSinkPort
        if dry_run:
            sink = HtmlFileSink(out_dir, root_path=out_path)
        else:
            sink = await _build_bookstack_sink(
                session,
                settings=settings,
                fetcher=fetcher,
                source=source,
                target=target or PublishTarget(),
                transport=transport,
            )

        workflow = CrawlDocumentsWorkflow(
            renderer=renderer,
            sink=sink,
            root=source,
            config=crawl_config,
        )
        summary = await workflow.run()

    if dry_run:
        logger.info("Dry-run: skip BookStack create")
    logger.info(
        "Exported {} document(s); images inlined={} failed={}",
        len(summary.visited_ids),
        summary.images_inlined,
        summary.images_failed,
    )
    return summary


def run_export(
    *,
    source: SourceRef,
    settings: MigrationSettings,
    render_options: RenderOptions | None = None,
    crawl_config: CrawlWorkflowConfig | None = None,
    dry_run: bool = True,
    out_dir: str | Path = DEFAULT_OUT_DIR,
    out_path: str | Path | None = None,
    target: PublishTarget | None = None,
) -> ExportSummary:
    return asyncio.run(
        run_export_async(
            source=source,
            settings=settings,
            render_options=render_options,
            crawl_config=crawl_config,
            dry_run=dry_run,
            out_dir=out_dir,
            out_path=out_path,
            target=target,
        )
    )


async def _build_bookstack_sink(
    session: aiohttp.ClientSession,
    *,
    settings: MigrationSettings,
    fetcher: ContentFetcher,
    source: SourceRef,
    target: PublishTarget,
    transport: HttpTransport,
) -> BookStackPageSink:
    bookstack = BookStackClient(
        base_url=settings.bookstack_base_normalized,
        auth_header=settings.bookstack_auth_header(),
        transport=transport,
    )
    book_id = target.book_id
    if not book_id and not target.chapter_id:
        book_name = await _desired_book_name(fetcher, source, target)
        logger.info('No target book/chapter provided. Ensuring book "{}"...', book_name)
        book = await bookstack.find_or_create_book(session, book_name)
        book_id = book.id
        logger.info("Using book_id={} ({})", book.id, "found" if book.existed else "created")

    return BookStackPageSink(bookstack, session, book_id=book_id, chapter_id=target.chapter_id)


async def _desired_book_name(fetcher: ContentFetcher, source: SourceRef, target: PublishTarget) -> str:
    explicit = str(target.book_name or "").strip()
    if explicit:
        return explicit
    space_key = extract_space_key(source.page_url)
    if not space_key:
        # memoized, so the root render reuses this fetch
        space_key = (await fetcher.fetch_full(source.document_id)).space_key
    return f"Confluence: {space_key}" if space_key else DEFAULT_BOOK_NAME
