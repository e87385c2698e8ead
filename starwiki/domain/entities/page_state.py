"""Page pipeline state schema for LangGraph."""

from typing import TypedDict

from starwiki.domain.entities.wiki import (
    CodeCandidate,
    CodeExplanation,
    OutlineHeadings,
    PageContext,
    SectionCandidate,
    SectionPlan,
    WikiDocument,
    WikiPage,
)


class PageState(TypedDict, total=False):
    """State passed between page stages. Each stage returns old state + its contribution."""

    # Input
    document: WikiDocument
    page: WikiPage
    page_context: PageContext

    # Stages
    preferred_files: list[str]  # s1
    headings: OutlineHeadings  # s2
    plans: list[SectionPlan]  # s3
    code_by_section: dict[str, CodeCandidate]  # s4, keyed by section id
    code_expl_by_id: dict[str, CodeExplanation]  # s5, keyed by candidate id
    narratives_by_section: dict[str, SectionCandidate]  # s6
    markdown: str  # s7

    # Metadata
    current_step: str
