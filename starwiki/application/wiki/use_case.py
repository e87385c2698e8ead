"""Wiki use case - drafts document pages through the page pipeline."""

import asyncio
from collections.abc import AsyncIterator

import structlog

from starwiki.application.wiki.dto import WikiRequest, WikiResponse, WikiStreamEvent
from starwiki.domain.entities.wiki import DraftsOutput, WikiDocument
from starwiki.domain.ports.config import WikiConfig
from starwiki.domain.ports.generation import StructuredGenerationPort
from starwiki.infrastructure.wiki import PageResult, PageWriter, crosslink_drafts, validate_and_pack

log = structlog.get_logger()


def _output_to_response(
    output: DraftsOutput,
    failed_pages: list[str],
    dist_dir: str | None = None,
) -> WikiResponse:
    """Map drafts output to response."""
    return WikiResponse(
        run_id=output.run_id or "",
        title=output.title,
        outlines=output.outlines,
        drafts=output.drafts,
        failed_pages=failed_pages,
        dist_dir=dist_dir,
    )


class WikiUseCase:
    """Orchestrates drafting: page pipeline per page → cross-links → optional pack."""

    def __init__(self, service: StructuredGenerationPort, config: WikiConfig | None = None) -> None:
        self._config = config or WikiConfig()
        self._writer = PageWriter(service, checkpoint_root=self._config.checkpoint_dir)

    def _prepare(self, document: WikiDocument) -> WikiDocument:
        """Apply configured defaults the caller did not set."""
        if "language_name" not in document.model_fields_set:
            return document.model_copy(update={"language_name": self._config.language_name})
        return document

    def _finish(self, request: WikiRequest, output: DraftsOutput, failed: list[str]) -> WikiResponse:
        if request.crosslink:
            output = crosslink_drafts(output)
        dist_dir = None
        if request.pack:
            dist_dir = str(validate_and_pack(output, self._config.dist_dir))
        log.info(
            "wiki_run_done",
            run_id=output.run_id,
            pages=len(output.drafts),
            failed=len(failed),
            dist_dir=dist_dir,
        )
        return _output_to_response(output, failed, dist_dir)

    async def execute(self, request: WikiRequest) -> WikiResponse:
        """Draft all pages, return full result."""
        failed: list[str] = []

        def on_page(result: PageResult) -> None:
            if not result.ok:
                failed.append(result.draft.page_id)

        output = await self._writer.write_pages(self._prepare(request.document), on_page=on_page)
        return self._finish(request, output, failed)

    async def execute_stream(self, request: WikiRequest) -> AsyncIterator[WikiStreamEvent]:
        """Draft all pages, stream one event per finished page via SSE."""
        queue: asyncio.Queue[WikiStreamEvent] = asyncio.Queue()
        failed: list[str] = []

        def on_page(result: PageResult) -> None:
            if not result.ok:
                failed.append(result.draft.page_id)
            queue.put_nowait(
                WikiStreamEvent(
                    event_type="page",
                    page_id=result.draft.page_id,
                    chunk=result.error,
                    payload=result.draft.model_dump(by_alias=True),
                )
            )

        async def run_pages() -> None:
            try:
                output = await self._writer.write_pages(
                    self._prepare(request.document), on_page=on_page
                )
                response = self._finish(request, output, failed)
                queue.put_nowait(
                    WikiStreamEvent(event_type="done", payload=response.model_dump(by_alias=True))
                )
            except Exception as e:
                log.error("wiki_run_failed", error=str(e))
                queue.put_nowait(WikiStreamEvent(event_type="error", chunk=str(e)))

        task = asyncio.create_task(run_pages())
        try:
            while True:
                event = await queue.get()
                yield event
                if event.event_type in ("done", "error"):
                    break
        finally:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
