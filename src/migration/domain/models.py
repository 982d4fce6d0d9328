from dataclasses import dataclass, field


@dataclass(frozen=True)
class SourceRef:
    document_id: str
    page_url: str | None = None


@dataclass(frozen=True)
class Document:
    id: str
    title: str
    raw_html: str
    space_key: str


@dataclass(frozen=True)
class BinaryAsset:
    content_type: str
    data: bytes


@dataclass(frozen=True)
class CrawlItem:
    document_id: str
    depth: int
    origin_url: str | None = None


@dataclass(frozen=True)
class ResolveResult:
    protected_ids: frozenset[str]
    rewritten_self_links: int


@dataclass(frozen=True)
class HumanizeStats:
    titles_replaced: int = 0
    same_document_links: int = 0


@dataclass(frozen=True)
class InlineStats:
    succeeded: int = 0
    failed: int = 0
    skipped_already_inline: int = 0
    unique_fetched: int = 0


@dataclass(frozen=True)
class RenderedDocument:
    id: str
    title: str
    html: str
    linked_ids: tuple[str, ...]
    space_key: str = ""
    protected_ids: frozenset[str] = field(default_factory=frozenset)
    rewritten_self_links: int = 0
    titles_replaced: int = 0
    assets: InlineStats | None = None


@dataclass(frozen=True)
class BookRef:
    id: int
    name: str
    existed: bool


@dataclass(frozen=True)
class CreatedPage:
    id: int
    name: str
    slug: str = ""
    book_slug: str = ""


@dataclass(frozen=True)
class ExportSummary:
    visited_ids: tuple[str, ...]
    outputs: tuple[str, ...]
    images_inlined: int = 0
    images_failed: int = 0
    self_links_rewritten: int = 0
