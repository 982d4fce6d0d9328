"""Intra-document anchor normalization.

Confluence exports reach the same heading in several ways: absolute links back
to the page with a hash, ``#id-...`` table-of-contents links, "pretty" anchors
derived from the heading text and legacy ``name`` anchors. ``resolve_references``
rewrites all of them to local ``#id`` links and reports the ids that the
sanitizer has to keep so those links stay valid.
"""

import re
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

from src.migration.domain.models import ResolveResult
from src.migration.domain.rules import (
    ROOT_WRAPPER_ID,
    STRUCTURED_HEADING_PREFIX,
    absolutize,
    extract_document_id_from_href,
    heading_id_candidate,
    normalize_hash,
    normalize_heading_text,
)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
_URL_TEXT = re.compile(r"^https?://", re.I)


def resolve_references(
    soup: BeautifulSoup,
    document_id: str,
    base_url: str,
    rewrite_self_links: bool = True,
) -> ResolveResult:
    protected: set[str] = {ROOT_WRAPPER_ID}
    rewritten = 0

    for link in soup.find_all("a", href=True):
        href = str(link.get("href") or "").strip()
        if not href:
            continue

        if href.startswith("#"):
            token = normalize_hash(href)
            if not token:
                continue
            protected.add(token)
            protected.add(href[1:])
            if _is_smart_link_text(link.get_text().strip(), document_id):
                _relabel(soup, link, token)
            continue

        if not rewrite_self_links:
            continue
        absolute = absolutize(href, base_url) or ""
        if "#" not in absolute or not _targets_document(absolute, document_id):
            continue
        token = normalize_hash(urlsplit(absolute).fragment)
        if not token:
            continue

        link["href"] = f"#{token}"
        protected.add(token)
        rewritten += 1

        text = link.get_text().strip()
        if _is_smart_link_text(text, document_id) or text in (absolute, href):
            _relabel(soup, link, token)

    headings = build_heading_index(soup)
    for heading in soup.find_all(HEADING_TAGS):
        if heading.get("id"):
            protected.add(str(heading["id"]))

    # Table-of-contents links using the structured "#id-..." scheme.
    for link in soup.find_all("a", href=True):
        href = str(link.get("href") or "").strip()
        if not href.startswith(f"#{STRUCTURED_HEADING_PREFIX}"):
            continue
        desired_id = normalize_hash(href)
        key = normalize_heading_text(link.get_text())
        if not desired_id or not key:
            continue
        protected.add(desired_id)
        heading = headings.get(key)
        if heading is None:
            continue
        if not heading.get("id"):
            heading["id"] = desired_id
        protected.add(str(heading["id"]))

    used_ids = {str(element["id"]) for element in soup.find_all(id=True)}
    for link in soup.find_all("a", href=True):
        href = str(link.get("href") or "").strip()
        if not href.startswith("#") or href.startswith(f"#{STRUCTURED_HEADING_PREFIX}"):
            continue
        key = normalize_heading_text(normalize_hash(href), treat_hyphen_as_space=True)
        heading = headings.get(key) if key else None
        if heading is None:
            continue

        heading_id = heading.get("id")
        if not heading_id:
            heading_id = unique_id(heading_id_candidate(heading.get_text()), used_ids)
            heading["id"] = heading_id
            used_ids.add(heading_id)
        protected.add(str(heading_id))
        link["href"] = f"#{heading_id}"

    for element in soup.find_all(attrs={"name": True}):
        name = str(element.get("name") or "").strip()
        if not name:
            continue
        if not element.get("id"):
            element["id"] = name
        protected.add(name)

    # encoded or punctuated hashes are only rewritten once their target exists
    for link in soup.find_all("a", href=True):
        href = str(link.get("href") or "").strip()
        if not href.startswith("#"):
            continue
        token = normalize_hash(href)
        if token and href != f"#{token}" and soup.find(id=token) is not None:
            link["href"] = f"#{token}"

    return ResolveResult(protected_ids=frozenset(protected), rewritten_self_links=rewritten)


def build_heading_index(soup: BeautifulSoup) -> dict[str, Tag]:
    """Map normalized heading text to the first heading carrying it."""
    index: dict[str, Tag] = {}
    for heading in soup.find_all(HEADING_TAGS):
        key = normalize_heading_text(heading.get_text())
        if key and key not in index:
            index[key] = heading
    return index


def unique_id(candidate: str, used_ids: set[str]) -> str:
    if candidate not in used_ids:
        return candidate
    suffix = 2
    while f"{candidate}-{suffix}" in used_ids:
        suffix += 1
    return f"{candidate}-{suffix}"


def collect_linked_ids(soup: BeautifulSoup, document_id: str, base_url: str) -> tuple[str, ...]:
    linked: list[str] = []
    seen: set[str] = set()
    for link in soup.find_all("a", href=True):
        linked_id = extract_document_id_from_href(link.get("href"), base_url)
        if linked_id and linked_id != str(document_id) and linked_id not in seen:
            seen.add(linked_id)
            linked.append(linked_id)
    return tuple(linked)


def _targets_document(absolute_url: str, document_id: str) -> bool:
    try:
        path = urlsplit(absolute_url).path
    except ValueError:
        return False
    return re.search(rf"/pages/{re.escape(str(document_id))}(?:/|$)", path) is not None


def _is_smart_link_text(text: str, document_id: str) -> bool:
    if not _URL_TEXT.match(text) or "#" not in text:
        return False
    return re.search(rf"/pages/{re.escape(str(document_id))}(?:/|#|$)", text) is not None


def _relabel(soup: BeautifulSoup, link: Tag, token: str) -> None:
    label = _anchor_label(soup, token)
    if label:
        link.string = label


def _anchor_label(soup: BeautifulSoup, token: str) -> str:
    target = soup.find(id=token)
    if target is not None:
        text = target.get_text().strip()
        if text:
            return text
    return token.replace("-", " ")
