import asyncio

from bs4 import BeautifulSoup, Tag
from src.config.logger_config import logger

from src.migration.application.ports import TitleLookupPort
from src.migration.domain.errors import MigrationError
from src.migration.domain.models import HumanizeStats
from src.migration.domain.rules import (
    absolutize,
    extract_document_id_from_href,
    looks_like_url_text,
    normalize_hash,
)

DEFAULT_TITLE_CONCURRENCY = 6


async def humanize_links(
    soup: BeautifulSoup,
    *,
    current_document_id: str,
    base_url: str,
    titles: TitleLookupPort,
    concurrency: int = DEFAULT_TITLE_CONCURRENCY,
    rewrite_same_document_hash: bool = True,
) -> HumanizeStats:
    """Replace URL-looking link text with the linked document's title.

    Links back to the current document that carry a hash become local
    ``#anchor`` links instead; their label is left to the reference resolver.
    A failed title lookup leaves that link untouched.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))
    current = str(current_document_id)

    async def humanize(link: Tag, linked_id: str) -> str | None:
        async with semaphore:
            if linked_id == current and rewrite_same_document_hash and _canonicalize_same_document(link, base_url):
                return "same_document"

            if not looks_like_url_text(link.get_text()):
                return None
            try:
                title = await titles.fetch_title(linked_id)
            except MigrationError as exc:
                logger.debug("Title lookup failed for document {}: {}", linked_id, exc)
                return None
            if not title:
                return None
            link.string = title
            return "title"

    tasks = []
    for link in soup.find_all("a", href=True):
        linked_id = extract_document_id_from_href(link.get("href"), base_url)
        if linked_id:
            tasks.append(humanize(link, linked_id))

    outcomes = await asyncio.gather(*tasks)
    return HumanizeStats(
        titles_replaced=sum(1 for outcome in outcomes if outcome == "title"),
        same_document_links=sum(1 for outcome in outcomes if outcome == "same_document"),
    )


def _canonicalize_same_document(link: Tag, base_url: str) -> bool:
    absolute = absolutize(str(link.get("href") or "").strip(), base_url) or ""
    _, _, fragment = absolute.partition("#")
    token = normalize_hash(fragment)
    if not token:
        return False
    link["href"] = f"#{token}"
    return True
