"""Infrastructure adapters for the migration."""

from src.migration.infrastructure.bookstack_client import BookStackClient
from src.migration.infrastructure.bookstack_sink import BookStackPageSink
from src.migration.infrastructure.confluence_client import ConfluenceClient
from src.migration.infrastructure.content_fetcher import ContentFetcher
from src.migration.infrastructure.fs_sink import HtmlFileSink
from src.migration.infrastructure.http_transport import HttpTransport, RetryPolicy, TransportTimeouts
from src.migration.infrastructure.memo_cache import InflightMemoCache

__all__ = [
    "BookStackClient",
    "BookStackPageSink",
    "ConfluenceClient",
    "ContentFetcher",
    "HtmlFileSink",
    "HttpTransport",
    "InflightMemoCache",
    "RetryPolicy",
    "TransportTimeouts",
]
