"""Page stages S1-S6. Each takes the page state and returns it extended by one key."""

import logging

from starwiki.domain.entities.page_state import PageState
from starwiki.domain.entities.wiki import (
    CodeCandidate,
    CodeExplanation,
    OutlineHeadings,
    SectionCandidate,
    SectionHeading,
    SectionPlan,
)
from starwiki.domain.ports.generation import StructuredGenerationPort
from starwiki.infrastructure.wiki import prompts
from starwiki.infrastructure.wiki.ask import ask
from starwiki.infrastructure.wiki.candidates import generate_narrative_candidate
from starwiki.infrastructure.wiki.schemas import (
    EXPLAIN_CODE,
    HEADINGS,
    PLAN_SECTION,
    score_files_spec,
)
from starwiki.infrastructure.wiki.selection import (
    CODE_NEED_THRESHOLD,
    pick_narrative,
    select_code,
)
from starwiki.infrastructure.wiki.utils import clamp_score, str_list

logger = logging.getLogger(__name__)

MAX_PREFERRED_FILES = 6
MAX_PRIMARY_FILES = 5
NARRATIVE_CANDIDATES = 3


async def score_files_node(
    state: PageState,
    service: StructuredGenerationPort,
    language_name: str,
) -> PageState:
    """Rank the page's candidate files. Updates state['preferred_files']."""
    page, pc = state["page"], state["page_context"]
    r = await ask(
        service,
        prompts.system_prompt(language_name),
        prompts.score_files(page.title, page.id, pc.files, pc.context),
        score_files_spec(pc.files),
    )
    allowed = set(pc.files)
    scored = [
        (s["filePath"], clamp_score(s["score"])) for s in r["scores"] if s["filePath"] in allowed
    ]
    scored.sort(key=lambda item: item[1], reverse=True)
    preferred = list(dict.fromkeys(path for path, _ in scored))[:MAX_PREFERRED_FILES]
    logger.info("s1 %s: %d/%d files preferred", page.id, len(preferred), len(pc.files))
    return {**state, "preferred_files": preferred, "current_step": "s1"}


async def headings_node(
    state: PageState,
    service: StructuredGenerationPort,
    language_name: str,
) -> PageState:
    """Lead and section headings. Updates state['headings']."""
    page, pc = state["page"], state["page_context"]
    r = await ask(
        service,
        prompts.system_prompt(language_name),
        prompts.headings(page.title, page.id, state.get("preferred_files", []), pc.context),
        HEADINGS,
    )
    lead = r.get("lead")
    headings = OutlineHeadings(
        page_id=page.id,
        lead=lead.strip() if isinstance(lead, str) else "",
        sections=[
            SectionHeading(id=s["id"].strip(), heading=s["heading"].strip())
            for s in r["sections"]
        ],
    )
    logger.info("s2 %s: %d sections", page.id, len(headings.sections))
    return {**state, "headings": headings, "current_step": "s2"}


async def plan_sections_node(
    state: PageState,
    service: StructuredGenerationPort,
    language_name: str,
) -> PageState:
    """One plan per heading, in heading order. Updates state['plans']."""
    page, pc = state["page"], state["page_context"]
    system = prompts.system_prompt(language_name)
    preferred = state.get("preferred_files", [])
    plans: list[SectionPlan] = []
    for section in state["headings"].sections:
        r = await ask(
            service,
            system,
            prompts.plan_section(page.title, section, pc.context, preferred),
            PLAN_SECTION,
        )
        expected = r.get("expected_output")
        plans.append(
            SectionPlan(
                page_id=page.id,
                section_id=section.id,
                must_cover=str_list(r["must_cover"]),
                code_need_score=clamp_score(r["code_need_score"]),
                expected_output=(expected.strip() or None) if isinstance(expected, str) else None,
                primary_files=str_list(r["primary_files"])[:MAX_PRIMARY_FILES],
            )
        )
    return {**state, "plans": plans, "current_step": "s3"}


async def code_node(
    state: PageState,
    service: StructuredGenerationPort,
    language_name: str,
) -> PageState:
    """A/B code for sections that need it. Updates state['code_by_section']."""
    page, pc = state["page"], state["page_context"]
    code_by_section: dict[str, CodeCandidate] = {}
    for plan in state["plans"]:
        if plan.code_need_score < CODE_NEED_THRESHOLD:
            continue
        slot = await select_code(service, language_name, page, plan, pc.context)
        code = slot.result()
        if code is not None:
            code_by_section[plan.section_id] = code
    logger.info("s4 %s: code for %d sections", page.id, len(code_by_section))
    return {**state, "code_by_section": code_by_section, "current_step": "s4"}


async def explain_code_node(
    state: PageState,
    service: StructuredGenerationPort,
    language_name: str,
) -> PageState:
    """Explain each selected snippet. Updates state['code_expl_by_id']."""
    page, pc = state["page"], state["page_context"]
    system = prompts.system_prompt(language_name)
    explanations: dict[str, CodeExplanation] = {}
    for section_id, code in state.get("code_by_section", {}).items():
        r = await ask(
            service,
            system,
            prompts.explain_code(page.title, section_id, code.text, pc.context),
            EXPLAIN_CODE,
        )
        explanations[code.candidate_id] = CodeExplanation(
            candidate_id=code.candidate_id,
            page_id=page.id,
            section_id=section_id,
            explanation=r["explanation"].strip(),
            risks=str_list(r.get("risks")),
        )
    return {**state, "code_expl_by_id": explanations, "current_step": "s5"}


async def narratives_node(
    state: PageState,
    service: StructuredGenerationPort,
    language_name: str,
) -> PageState:
    """Best-of-three narrative per plan. Updates state['narratives_by_section']."""
    page, pc = state["page"], state["page_context"]
    code_by_section = state.get("code_by_section", {})
    explanations = state.get("code_expl_by_id", {})
    narratives: dict[str, SectionCandidate] = {}
    for plan in state["plans"]:
        code = code_by_section.get(plan.section_id)
        explanation = explanations.get(code.candidate_id) if code else None
        candidates = []
        for i in range(NARRATIVE_CANDIDATES):
            candidates.append(
                await generate_narrative_candidate(
                    service,
                    language_name,
                    page,
                    plan,
                    pc.context,
                    i,
                    code_explanation=explanation.explanation if explanation else None,
                    has_code=code is not None,
                )
            )
        narratives[plan.section_id] = await pick_narrative(
            service, language_name, page, plan.section_id, candidates
        )
    return {**state, "narratives_by_section": narratives, "current_step": "s6"}
