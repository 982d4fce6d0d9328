"""Confluence -> BookStack migration package.

The wiring entry points live in ``src.migration.export``.
"""

from src.migration.domain.models import ExportSummary, RenderedDocument, SourceRef

__all__ = ["ExportSummary", "RenderedDocument", "SourceRef"]
