from pathlib import Path

from src.migration.domain.models import RenderedDocument
from src.migration.domain.rules import make_filename


class HtmlFileSink:
    def __init__(self, output_dir: str | Path, root_path: str | Path | None = None) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.root_path = Path(root_path) if root_path else None

    def path_for(self, document: RenderedDocument, is_root: bool = False) -> Path:
        if is_root and self.root_path is not None:
            return self.root_path
        return self.output_dir / make_filename(document.title, document.id)

    async def write_document(self, document: RenderedDocument, *, is_root: bool = False) -> str:
        file_path = self.path_for(document, is_root=is_root)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(document.html, encoding="utf-8")
        return str(file_path)
