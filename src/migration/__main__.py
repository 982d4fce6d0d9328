"""Export Confluence pages to HTML and optionally publish them to BookStack.

python -m src.migration --page https://site.atlassian.net/wiki/spaces/DOC/pages/123/Title --dry-run
"""

import argparse
import sys

from src.config.logger_config import logger
from src.config.settings import MigrationSettings
from src.migration.application.workflows.crawl_documents import CrawlWorkflowConfig
from src.migration.application.workflows.render_document import RenderOptions
from src.migration.domain.errors import MigrationError
from src.migration.domain.rules import derive_confluence_base, parse_source_input
from src.migration.export import DEFAULT_OUT_DIR, PublishTarget, run_export


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="confluence-to-bookstack",
        description="Export Confluence pages to HTML (and import them into BookStack)",
    )
    parser.add_argument("--page", required=True, help="Confluence page URL or pageId")
    parser.add_argument("--confluence-base", help="Confluence base, e.g. https://site.atlassian.net/wiki")
    parser.add_argument("--confluence-user", help="Confluence user/email (or env CONFLUENCE_USER)")
    parser.add_argument("--confluence-token", help="Confluence API token (or env CONFLUENCE_TOKEN)")
    parser.add_argument("--bookstack-base", help="BookStack base, e.g. https://book.example.com")
    parser.add_argument("--bookstack-token-id", help="BookStack token id (or env BOOKSTACK_TOKEN_ID)")
    parser.add_argument("--bookstack-token-secret", help="BookStack token secret (or env BOOKSTACK_TOKEN_SECRET)")
    parser.add_argument("--book-id", type=int, help="BookStack book_id (for pages without a chapter)")
    parser.add_argument("--chapter-id", type=int, help="BookStack chapter_id")
    parser.add_argument("--book-name", help="BookStack book name, found or created when no book/chapter id is given")
    parser.add_argument("--title", help="Override the root page title")
    parser.add_argument("--dry-run", action="store_true", help="Only write HTML files, do not create BookStack pages")
    parser.add_argument("--out", help="Where to write the root page HTML")
    parser.add_argument("--out-dir", default=str(DEFAULT_OUT_DIR), help="Directory for exported HTML files")
    parser.add_argument("--recursive", action="store_true", help="Also export linked Confluence pages")
    parser.add_argument("--max-depth", type=int, default=1, help="Recursion depth (default: 1)")
    parser.add_argument(
        "--no-inline-images",
        dest="inline_images",
        action="store_false",
        help="Keep image links instead of embedding them",
    )
    parser.add_argument("--concurrency", type=int, default=4, help="Parallel image downloads (default: 4)")
    parser.add_argument(
        "--max-bytes",
        type=int,
        default=15_000_000,
        help="Max size of one image in bytes (default: 15000000)",
    )
    parser.add_argument("--keep-ids", action="store_true", help="Keep every id attribute")
    parser.add_argument(
        "--no-fragment",
        dest="fragment",
        action="store_false",
        help="Write the full HTML document instead of the body fragment",
    )
    parser.add_argument("--no-progress", dest="show_progress", action="store_false", help="Hide the progress bar")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        source = parse_source_input(args.page)
        derived_base = derive_confluence_base(source.page_url) if source.page_url else None
        settings = MigrationSettings.from_env(
            confluence_base=args.confluence_base or derived_base,
            confluence_user=args.confluence_user,
            confluence_token=args.confluence_token,
            bookstack_base=args.bookstack_base,
            bookstack_token_id=args.bookstack_token_id,
            bookstack_token_secret=args.bookstack_token_secret,
        )
        summary = run_export(
            source=source,
            settings=settings,
            render_options=RenderOptions(
                inline_images=args.inline_images,
                image_concurrency=args.concurrency,
                max_image_bytes=args.max_bytes,
                keep_ids=args.keep_ids,
                fragment=args.fragment,
                title_override=args.title,
            ),
            crawl_config=CrawlWorkflowConfig(
                recursive=args.recursive,
                max_depth=args.max_depth,
                show_progress=args.show_progress,
            ),
            dry_run=args.dry_run,
            out_dir=args.out_dir,
            out_path=args.out,
            target=PublishTarget(book_id=args.book_id, chapter_id=args.chapter_id, book_name=args.book_name),
        )
    except MigrationError as exc:
        logger.error("{}", str(exc).splitlines()[0] if str(exc) else type(exc).__name__)
        return 1
    except Exception as exc:
        message = str(exc).splitlines()[0] if str(exc) else ""
        logger.error("{}: {}", type(exc).__name__, message)
        return 1

    logger.success("Done: {} document(s)", len(summary.visited_ids))
    return 0


if __name__ == "__main__":
    sys.exit(main())
