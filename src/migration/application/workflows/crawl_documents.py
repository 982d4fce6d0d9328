from collections import deque
from dataclasses import dataclass

from tqdm import tqdm
from src.config.logger_config import logger

from src.migration.application.ports import DocumentSinkPort
from src.migration.application.workflows.render_document import DocumentRenderer
from src.migration.domain.models import CrawlItem, ExportSummary, SourceRef


@dataclass(frozen=True)
class CrawlWorkflowConfig:
    recursive: bool = False
    max_depth: int = 1
    show_progress: bool = True


class CrawlDocumentsWorkflow:
    """Breadth-first export starting at one root document.

    Every id is rendered at most once; the first discovery wins. Neighbours
    are queued at depth + 1 only while depth < max_depth. A failing document
    aborts the whole run.
    """

    def __init__(
        self,
        renderer: DocumentRenderer,
        sink: DocumentSinkPort,
        root: SourceRef,
        config: CrawlWorkflowConfig | None = None,
    ) -> None:
        self.renderer = renderer
        self.sink = sink
        self.root = root
        self.config = config or CrawlWorkflowConfig()

    async def run(self) -> ExportSummary:
        root_id = str(self.root.document_id)
        frontier: deque[CrawlItem] = deque([CrawlItem(root_id, 0, self.root.page_url)])
        visited: set[str] = set()
        visited_order: list[str] = []
        outputs: list[str] = []
        images_inlined = 0
        images_failed = 0
        self_links_rewritten = 0

        with tqdm(
            total=None,
            desc="Export documents",
            unit=" doc",
            leave=True,
            disable=not self.config.show_progress,
        ) as progress:
            while frontier:
                item = frontier.popleft()
                if item.document_id in visited:
                    continue
                visited.add(item.document_id)
                visited_order.append(item.document_id)

                logger.info("Export pageId={} depth={}", item.document_id, item.depth)
                rendered = await self.renderer.render(item.document_id)
                location = await self.sink.write_document(rendered, is_root=item.document_id == root_id)
                outputs.append(location)
                logger.info("Saved HTML: {}", location)
                progress.update(1)

                if rendered.assets is not None:
                    images_inlined += rendered.assets.succeeded
                    images_failed += rendered.assets.failed
                self_links_rewritten += rendered.rewritten_self_links

                if self.config.recursive and item.depth < self.config.max_depth:
                    for linked_id in rendered.linked_ids:
                        if linked_id not in visited:
                            frontier.append(CrawlItem(linked_id, item.depth + 1))

        return ExportSummary(
            visited_ids=tuple(visited_order),
            outputs=tuple(outputs),
            images_inlined=images_inlined,
            images_failed=images_failed,
            self_links_rewritten=self_links_rewritten,
        )
