"""Candidate generators: one code snippet or one narrative per call."""

from starwiki.domain.entities.wiki import CodeCandidate, SectionCandidate, SectionPlan, WikiPage
from starwiki.domain.ports.generation import StructuredGenerationPort
from starwiki.infrastructure.wiki import prompts
from starwiki.infrastructure.wiki.ask import ask
from starwiki.infrastructure.wiki.schemas import SINGLE_CODE, SINGLE_NARRATIVE
from starwiki.infrastructure.wiki.utils import clamp_score, normalize_lang, str_list

SUMMARY_PARAGRAPH_CHARS = 160
SUMMARY_BULLETS = 3


def code_candidate_id(page_id: str, section_id: str, slot: str) -> str:
    """Slot: "A", "B", or "C" for a consolidated snippet."""
    return f"{page_id}:{section_id}:C{slot}"


def narrative_candidate_id(page_id: str, section_id: str, slot: str) -> str:
    """Slot: "1".."3" for candidates, "C" for a consolidated narrative."""
    return f"{page_id}:{section_id}:S{slot}"


async def generate_code_candidate(
    service: StructuredGenerationPort,
    language_name: str,
    page: WikiPage,
    plan: SectionPlan,
    context: str,
    slot: str,
) -> CodeCandidate:
    """Generate one snippet for plan's section.

    Raises:
        GenerationError: Both structured attempts failed.

    """
    r = await ask(
        service,
        prompts.system_prompt(language_name),
        prompts.code_candidate(
            page.title, plan.section_id, plan.expected_output, plan.must_cover, context
        ),
        SINGLE_CODE,
    )
    text = r["text"]
    rationale = r.get("rationale")
    return CodeCandidate(
        candidate_id=code_candidate_id(page.id, plan.section_id, slot),
        page_id=page.id,
        section_id=plan.section_id,
        lang=normalize_lang(r.get("lang"), text),
        text=text,
        expected_output_alignment=clamp_score(r.get("expected_output_alignment")),
        rationale=rationale.strip() if isinstance(rationale, str) else None,
        sources=str_list(r.get("sources")),
    )


async def generate_narrative_candidate(
    service: StructuredGenerationPort,
    language_name: str,
    page: WikiPage,
    plan: SectionPlan,
    context: str,
    index: int,
    code_explanation: str | None = None,
    has_code: bool = False,
) -> SectionCandidate:
    """Generate narrative candidate number index (0-based) for plan's section.

    Raises:
        GenerationError: Both structured attempts failed.

    """
    r = await ask(
        service,
        prompts.system_prompt(language_name),
        prompts.single_narrative(
            page.title,
            plan.section_id,
            plan.must_cover,
            context,
            has_code,
            code_explanation,
        ),
        SINGLE_NARRATIVE,
    )
    return SectionCandidate(
        candidate_id=narrative_candidate_id(page.id, plan.section_id, str(index + 1)),
        page_id=page.id,
        section_id=plan.section_id,
        heading=r["heading"].strip(),
        paragraphs=str_list(r.get("paragraphs")),
        bullets=str_list(r.get("bullets")),
        include_code=bool(r.get("include_code")),
        sources=str_list(r.get("sources")),
    )


def summarize_narrative(candidate: SectionCandidate) -> str:
    """One line per candidate for the scoring prompt."""
    paragraphs = " ".join(candidate.paragraphs)[:SUMMARY_PARAGRAPH_CHARS]
    bullets = "; ".join(candidate.bullets[:SUMMARY_BULLETS])
    summary = f"{candidate.heading} - {paragraphs}"
    if bullets:
        summary += f"; bullets: {bullets}"
    return summary
