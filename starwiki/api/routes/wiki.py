"""Wiki API routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from starwiki.api.dependencies import get_wiki_use_case, limiter, wiki_rate_limit
from starwiki.application.wiki.dto import WikiRequest, WikiResponse
from starwiki.application.wiki.use_case import WikiUseCase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wiki", tags=["wiki"])


@router.post("/pages", response_model=None)
@limiter.limit(wiki_rate_limit)
async def write_pages(
    request: Request,
    wiki_request: WikiRequest,
    use_case: WikiUseCase = Depends(get_wiki_use_case),
    stream: bool = False,
) -> WikiResponse | EventSourceResponse:
    """Draft document pages. Use stream=true for one SSE event per page."""
    if stream:
        return _stream_response(wiki_request, use_case)
    try:
        return await use_case.execute(wiki_request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Wiki generation failed")
        raise HTTPException(status_code=500, detail="Wiki generation failed")


def _stream_response(
    wiki_request: WikiRequest,
    use_case: WikiUseCase,
) -> EventSourceResponse:
    """Return SSE stream of page events."""

    async def event_generator():
        try:
            async for evt in use_case.execute_stream(wiki_request):
                yield {"event": evt.event_type, "data": evt.model_dump_json(by_alias=True)}
        except Exception:
            logger.exception("Wiki stream failed")
            yield {"event": "error", "data": "Stream failed"}
        yield {"event": "close", "data": ""}

    return EventSourceResponse(event_generator())
