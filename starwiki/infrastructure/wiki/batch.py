"""Page runner with fail-soft fallback, and the batch orchestrator over a document."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from starwiki.domain.entities.page_state import PageState
from starwiki.domain.entities.wiki import (
    DraftsOutput,
    PageContext,
    PageDraft,
    PageOutline,
    WikiDocument,
    WikiPage,
)
from starwiki.domain.errors import PagePipelineError
from starwiki.domain.ports.generation import StructuredGenerationPort
from starwiki.infrastructure.wiki.checkpoint import CheckpointStore, save_quietly
from starwiki.infrastructure.wiki.graph import build_page_graph, compile_page_graph
from starwiki.shared.logging import bind_page, clear_page

logger = logging.getLogger(__name__)


def fallback_markdown(title: str, message: str) -> str:
    return f"# {title}\n\n> generation failed: {message}\n"


@dataclass
class PageResult:
    """Outcome of one page: draft and outline always present, error set on fallback."""

    draft: PageDraft
    outline: PageOutline
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


PageCallback = Callable[[PageResult], None]


class PagePipelineRunner:
    """Runs the compiled page graph for one page at a time. Never raises for a page."""

    def __init__(
        self,
        service: StructuredGenerationPort,
        store: CheckpointStore,
        language_name: str,
    ) -> None:
        self.store = store
        self._graph = compile_page_graph(build_page_graph(service, store, language_name))

    async def run(
        self,
        document: WikiDocument,
        page: WikiPage,
        page_context: PageContext,
    ) -> PageResult:
        initial: PageState = {
            "document": document,
            "page": page,
            "page_context": page_context,
            "current_step": "start",
        }
        try:
            final = await self._graph.ainvoke(initial)
        except Exception as e:
            return self._fallback(page, PagePipelineError(page.id, e))

        headings = final.get("headings")
        outline = PageOutline(
            page_id=page.id,
            lead=headings.lead if headings else "",
            sections=[s.heading for s in headings.sections] if headings else [],
        )
        return PageResult(
            draft=PageDraft(page_id=page.id, markdown=final.get("markdown", "")),
            outline=outline,
        )

    def _fallback(self, page: WikiPage, err: PagePipelineError) -> PageResult:
        logger.warning("page %s failed, writing fallback: %s", page.id, err)
        markdown = fallback_markdown(page.title, str(err))
        save_quietly(self.store, page.id, "error", {"error": str(err)})
        save_quietly(self.store, page.id, "s7", markdown)
        return PageResult(
            draft=PageDraft(page_id=page.id, markdown=markdown),
            outline=PageOutline(page_id=page.id),
            error=str(err),
        )


class PageWriter:
    """Batch orchestrator: pages in document order, one runner per run id."""

    def __init__(
        self,
        service: StructuredGenerationPort,
        checkpoint_root: str | Path = ".wiki_runs",
    ) -> None:
        self.service = service
        self.checkpoint_root = Path(checkpoint_root)

    async def write_pages(
        self,
        document: WikiDocument,
        on_page: PageCallback | None = None,
    ) -> DraftsOutput:
        """Draft every page that has a context. Pages without one are skipped with a warning."""
        run_id = document.resolve_run_id()
        store = CheckpointStore(self.checkpoint_root, run_id)
        runner = PagePipelineRunner(self.service, store, document.language_name)
        outlines: list[PageOutline] = []
        drafts: list[PageDraft] = []

        for page in document.pages:
            page_context = document.context_for(page.id)
            if page_context is None:
                logger.warning("no context for page %s, skipping", page.id)
                continue
            bind_page(run_id, page.id)
            try:
                result = await runner.run(document, page, page_context)
            finally:
                clear_page()
            outlines.append(result.outline)
            drafts.append(result.draft)
            if on_page:
                on_page(result)

        logger.info("run %s: %d/%d pages drafted", run_id, len(drafts), len(document.pages))
        return DraftsOutput(
            **document.model_dump(exclude={"run_id"}),
            run_id=run_id,
            outlines=outlines,
            drafts=drafts,
        )
