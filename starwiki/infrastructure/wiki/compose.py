"""S7: render the page state to Markdown. Pure; no model calls."""

from starwiki.domain.entities.page_state import PageState
from starwiki.domain.entities.wiki import CodeCandidate, CodeExplanation, SectionCandidate

MAX_RELEVANT_LINKS = 5


def build_links(files: list[str], web_base_url: str | None, commit_sha: str | None) -> str:
    """Bullet list of source files; permalinks when both base URL and revision are known."""
    lines = []
    for path in files[:MAX_RELEVANT_LINKS]:
        if web_base_url and commit_sha:
            lines.append(f"- [{path}]({web_base_url}/blob/{commit_sha}/{path})")
        else:
            lines.append(f"- {path}")
    return "\n".join(lines)


def render_section(
    heading: str,
    narrative: SectionCandidate,
    code: CodeCandidate | None = None,
    explanation: CodeExplanation | None = None,
) -> str:
    parts = [f"## {heading}", *narrative.paragraphs]
    if narrative.bullets:
        parts.append("\n".join(f"- {b}" for b in narrative.bullets))
    if narrative.include_code and code is not None:
        parts.append(f"```{code.lang or ''}\n{code.text.rstrip()}\n```")
        if explanation is not None:
            parts.append(f"*What the code does:* {explanation.explanation}")
    return "\n\n".join(parts)


def compose_markdown(state: PageState) -> str:
    """Deterministic Markdown for one page: title, source links, lead, sections."""
    page, document = state["page"], state["document"]
    headings = state["headings"]
    narratives = state.get("narratives_by_section", {})
    code_by_section = state.get("code_by_section", {})
    explanations = state.get("code_expl_by_id", {})

    parts = [f"# {page.title}"]
    links = build_links(
        state.get("preferred_files", []),
        document.resolve_web_base_url(),
        document.commit_sha,
    )
    if links:
        parts.append(f"**Relevant source files**\n\n{links}")
    if headings.lead:
        parts.append(headings.lead)
    for section in headings.sections:
        narrative = narratives.get(section.id)
        if narrative is None:
            continue
        code = code_by_section.get(section.id)
        explanation = explanations.get(code.candidate_id) if code else None
        parts.append(render_section(section.heading, narrative, code, explanation))
    return "\n\n".join(parts).strip()


async def compose_node(state: PageState) -> PageState:
    """Updates state['markdown']."""
    return {**state, "markdown": compose_markdown(state), "current_step": "s7"}
