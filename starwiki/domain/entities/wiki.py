"""Wiki entities: pages, contexts, plans, candidates and drafts."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WikiModel(BaseModel):
    """Base model accepting snake_case or camelCase keys; dumps camelCase with by_alias."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WikiPage(WikiModel):
    """Page to document (caller supplied, immutable)."""

    id: str
    title: str
    description: str | None = None
    related_pages: list[str] = []


class PageContext(WikiModel):
    """Retrieval result for one page: ranked candidate files plus excerpt text."""

    page_id: str
    title: str = ""
    files: list[str] = []
    context: str = ""


class WikiDocument(WikiModel):
    """Input document: language, revision, ordered pages and their contexts."""

    title: str = ""
    language_name: str = "English"
    owner_repo: str | None = None
    commit_sha: str | None = None
    web_base_url: str | None = None
    run_id: str | None = None
    storage_path: str = ""
    pages: list[WikiPage] = []
    pages_context: list[PageContext] = []

    def resolve_run_id(self) -> str:
        """Stable run identifier: explicit run id, commit sha, else a filesystem-safe timestamp."""
        if self.run_id:
            return self.run_id
        if self.commit_sha:
            return self.commit_sha
        stamp = datetime.now(timezone.utc).isoformat()
        return stamp.replace(":", "-").replace(".", "-")

    def resolve_web_base_url(self) -> str | None:
        """Web base URL for permalinks; derived from owner/repo (GitHub form) when not set."""
        if self.web_base_url:
            return self.web_base_url.rstrip("/")
        if self.owner_repo:
            return f"https://github.com/{self.owner_repo.strip('/')}"
        return None

    def context_for(self, page_id: str) -> PageContext | None:
        """PageContext for page id, or None."""
        for pc in self.pages_context:
            if pc.page_id == page_id:
                return pc
        return None


class SectionHeading(WikiModel):
    """Outline heading; id unique per page."""

    id: str
    heading: str


class OutlineHeadings(WikiModel):
    """Lead paragraph plus section headings (S2)."""

    page_id: str
    lead: str = ""
    sections: list[SectionHeading] = []


class SectionPlan(WikiModel):
    """Per-section editorial plan (S3)."""

    page_id: str
    section_id: str
    must_cover: list[str]
    code_need_score: int = Field(ge=0, le=100)
    expected_output: str | None = None
    primary_files: list[str] = Field(default_factory=list, max_length=5)


class CodeCandidate(WikiModel):
    """Generated code snippet (pure code, no narrative)."""

    candidate_id: str
    page_id: str
    section_id: str
    lang: str | None = None
    text: str
    expected_output_alignment: int = 0
    rationale: str | None = None
    sources: list[str] = []


class CodeExplanation(WikiModel):
    """Gloss of a selected code candidate (S5)."""

    candidate_id: str
    page_id: str
    section_id: str
    explanation: str
    risks: list[str] = []


class SectionCandidate(WikiModel):
    """Narrative draft for one section (S6)."""

    candidate_id: str
    page_id: str
    section_id: str
    heading: str
    paragraphs: list[str] = []
    bullets: list[str] = []
    include_code: bool = False
    sources: list[str] = []


class PageOutline(WikiModel):
    """Legacy outline: lead and heading texts."""

    page_id: str
    lead: str = ""
    sections: list[str] = []


class PageDraft(WikiModel):
    """Final page artefact (Markdown)."""

    page_id: str
    markdown: str


class DraftsOutput(WikiDocument):
    """Input document plus one outline and one draft per page that had a context."""

    outlines: list[PageOutline] = []
    drafts: list[PageDraft] = []
