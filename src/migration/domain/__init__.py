"""Domain models, deterministic rules and DOM passes for the migration."""

from src.migration.domain.errors import (
    AssetFetchError,
    FetchFailure,
    HttpStatusError,
    MigrationError,
    TransientNetworkError,
    ValidationError,
)
from src.migration.domain.models import (
    BinaryAsset,
    BookRef,
    CrawlItem,
    CreatedPage,
    Document,
    ExportSummary,
    HumanizeStats,
    InlineStats,
    RenderedDocument,
    ResolveResult,
    SourceRef,
)
from src.migration.domain.rules import make_filename, parse_source_input, sanitize_filename

__all__ = [
    "AssetFetchError",
    "BinaryAsset",
    "BookRef",
    "CrawlItem",
    "CreatedPage",
    "Document",
    "ExportSummary",
    "FetchFailure",
    "HttpStatusError",
    "HumanizeStats",
    "InlineStats",
    "make_filename",
    "MigrationError",
    "parse_source_input",
    "RenderedDocument",
    "ResolveResult",
    "sanitize_filename",
    "SourceRef",
    "TransientNetworkError",
    "ValidationError",
]
