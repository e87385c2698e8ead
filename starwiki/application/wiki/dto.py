"""Wiki DTOs. Responses and stream events go over the wire in camelCase."""

from pydantic import BaseModel

from starwiki.domain.entities.wiki import PageDraft, PageOutline, WikiDocument, WikiModel


class WikiRequest(BaseModel):
    """Request to draft the pages of one document."""

    document: WikiDocument
    crosslink: bool = True  # Append "See also" links from related_pages
    pack: bool = False  # Write pages/*.md + index.json to the dist directory


class WikiResponse(WikiModel):
    """Drafts for every page that had a context."""

    run_id: str
    title: str = ""
    outlines: list[PageOutline] = []
    drafts: list[PageDraft] = []
    failed_pages: list[str] = []
    dist_dir: str | None = None


class WikiStreamEvent(WikiModel):
    """SSE event for streaming page progress."""

    event_type: str  # page, error, done
    page_id: str | None = None
    chunk: str | None = None  # Error message
    payload: dict | None = None  # Page draft, or full response on done
