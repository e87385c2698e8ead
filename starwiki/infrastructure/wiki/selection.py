"""A/B code selection per section and best-of-three narrative selection.

Code for one section moves through a small state machine::

    PENDING -> HAVE_A -> HAVE_B -> SELECTED -> CONSOLIDATED
       |          |         |          |
       +----------+---------+----------+--> REJECTED

A lone surviving candidate is selected without a judge call. Only SELECTED
or CONSOLIDATED slots with alignment >= CODE_ALIGN_THRESHOLD yield code.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from starwiki.domain.entities.wiki import CodeCandidate, SectionCandidate, SectionPlan, WikiPage
from starwiki.domain.errors import GenerationError
from starwiki.domain.ports.generation import StructuredGenerationPort
from starwiki.infrastructure.wiki import prompts
from starwiki.infrastructure.wiki.ask import ask
from starwiki.infrastructure.wiki.candidates import (
    code_candidate_id,
    generate_code_candidate,
    narrative_candidate_id,
    summarize_narrative,
)
from starwiki.infrastructure.wiki.schemas import (
    CONSOLIDATE_CODE,
    CONSOLIDATE_NARRATIVE,
    SELECT_CODE,
    score_narratives_spec,
)
from starwiki.infrastructure.wiki.utils import clamp_score, normalize_lang, str_list

logger = logging.getLogger(__name__)

CODE_NEED_THRESHOLD = 60
CODE_ALIGN_THRESHOLD = 60
CLOSE_SCORE_DELTA = 10


class SlotState(str, Enum):
    PENDING = "pending"
    HAVE_A = "have_a"
    HAVE_B = "have_b"
    SELECTED = "selected"
    CONSOLIDATED = "consolidated"
    REJECTED = "rejected"


@dataclass
class CodeSlot:
    """Code selection for one section."""

    page_id: str
    section_id: str
    state: SlotState = SlotState.PENDING
    a: CodeCandidate | None = None
    b: CodeCandidate | None = None
    winner: CodeCandidate | None = None
    loser: CodeCandidate | None = None
    alignment: int = 0

    def _expect(self, *states: SlotState) -> None:
        if self.state not in states:
            raise RuntimeError(f"code slot {self.section_id}: unexpected state {self.state.value}")

    def accept_a(self, candidate: CodeCandidate | None) -> None:
        self._expect(SlotState.PENDING)
        if candidate is not None:
            self.a = candidate
            self.state = SlotState.HAVE_A

    def accept_b(self, candidate: CodeCandidate | None) -> None:
        self._expect(SlotState.PENDING, SlotState.HAVE_A)
        if candidate is not None:
            self.b = candidate
            self.state = SlotState.HAVE_B

    @property
    def needs_judgement(self) -> bool:
        return self.state == SlotState.HAVE_B and self.a is not None

    def finish_generation(self) -> None:
        """Resolve slots that do not need a judge: none left, or a lone survivor."""
        self._expect(SlotState.PENDING, SlotState.HAVE_A, SlotState.HAVE_B)
        if self.state == SlotState.PENDING:
            self.state = SlotState.REJECTED
        elif not self.needs_judgement:
            lone = self.a or self.b
            self._select(lone, None, max(lone.expected_output_alignment, CODE_ALIGN_THRESHOLD))

    def select(self, winner_label: str, judged_alignment: int) -> None:
        """Apply a judge verdict ("A" or "B")."""
        self._expect(SlotState.HAVE_B)
        if winner_label == "B":
            winner, loser = self.b, self.a
        else:
            winner, loser = self.a, self.b
        self._select(winner, loser, self._effective_alignment(winner, judged_alignment))

    def select_by_alignment(self) -> None:
        """Judge unavailable: B wins only with strictly higher self-reported alignment."""
        self._expect(SlotState.HAVE_B)
        if self.b.expected_output_alignment > self.a.expected_output_alignment:
            winner, loser = self.b, self.a
        else:
            winner, loser = self.a, self.b
        self._select(winner, loser, self._effective_alignment(winner, 0))

    def _effective_alignment(self, winner: CodeCandidate, judged: int) -> int:
        return max(
            judged,
            winner.expected_output_alignment,
            self.a.expected_output_alignment,
            self.b.expected_output_alignment,
            CODE_ALIGN_THRESHOLD,
        )

    def _select(
        self, winner: CodeCandidate, loser: CodeCandidate | None, alignment: int
    ) -> None:
        self.winner = winner
        self.loser = loser
        self.alignment = alignment
        self.state = SlotState.SELECTED

    @property
    def needs_consolidation(self) -> bool:
        if self.state != SlotState.SELECTED or self.loser is None:
            return False
        delta = abs(self.a.expected_output_alignment - self.b.expected_output_alignment)
        return delta <= CLOSE_SCORE_DELTA

    def consolidate(self, text: str, lang: str | None) -> None:
        self._expect(SlotState.SELECTED)
        self.winner = CodeCandidate(
            candidate_id=code_candidate_id(self.page_id, self.section_id, "C"),
            page_id=self.page_id,
            section_id=self.section_id,
            lang=normalize_lang(lang, text) or self.winner.lang,
            text=text,
            expected_output_alignment=self.alignment,
            rationale=self.winner.rationale,
            sources=self.winner.sources,
        )
        self.state = SlotState.CONSOLIDATED

    def result(self) -> CodeCandidate | None:
        """Final candidate with the effective alignment recorded, or None."""
        if self.state not in (SlotState.SELECTED, SlotState.CONSOLIDATED):
            return None
        if self.alignment < CODE_ALIGN_THRESHOLD:
            return None
        return self.winner.model_copy(update={"expected_output_alignment": self.alignment})


async def _try_candidate(
    service: StructuredGenerationPort,
    language_name: str,
    page: WikiPage,
    plan: SectionPlan,
    context: str,
    slot: str,
) -> CodeCandidate | None:
    try:
        return await generate_code_candidate(service, language_name, page, plan, context, slot)
    except GenerationError as e:
        logger.warning("code candidate %s for %s/%s dropped: %s", slot, page.id, plan.section_id, e)
        return None


async def select_code(
    service: StructuredGenerationPort,
    language_name: str,
    page: WikiPage,
    plan: SectionPlan,
    context: str,
) -> CodeSlot:
    """Generate A and B, judge, consolidate when close. Never raises GenerationError."""
    slot = CodeSlot(page_id=page.id, section_id=plan.section_id)
    slot.accept_a(await _try_candidate(service, language_name, page, plan, context, "A"))
    slot.accept_b(await _try_candidate(service, language_name, page, plan, context, "B"))
    slot.finish_generation()

    system = prompts.system_prompt(language_name)
    if slot.needs_judgement:
        user = prompts.select_between_two(
            page.title,
            plan.section_id,
            slot.a.text,
            slot.a.expected_output_alignment,
            slot.b.text,
            slot.b.expected_output_alignment,
        )
        try:
            verdict = await ask(service, system, user, SELECT_CODE)
        except GenerationError as e:
            logger.warning("code judge for %s/%s failed: %s", page.id, plan.section_id, e)
            slot.select_by_alignment()
        else:
            slot.select(verdict["winner"], clamp_score(verdict.get("winner_alignment")))

    if slot.needs_consolidation:
        user = prompts.consolidate_code(
            page.title, plan.section_id, slot.winner.text, slot.loser.text
        )
        try:
            merged = await ask(service, system, user, CONSOLIDATE_CODE)
        except GenerationError as e:
            logger.warning("code consolidation for %s/%s failed: %s", page.id, plan.section_id, e)
        else:
            slot.consolidate(merged["text"], merged.get("lang"))

    logger.debug(
        "code slot %s/%s: state=%s alignment=%d",
        page.id,
        plan.section_id,
        slot.state.value,
        slot.alignment,
    )
    return slot


def rank_narratives(scores: list, count: int) -> list[tuple[int, int]]:
    """(index, score) pairs best first; first score per index wins, ties keep model order."""
    ranked: list[tuple[int, int]] = []
    seen: set[int] = set()
    for s in scores:
        index = int(float(s["index"]))
        if index in seen or not 0 <= index < count:
            continue
        seen.add(index)
        ranked.append((index, clamp_score(s["score"])))
    return sorted(ranked, key=lambda pair: pair[1], reverse=True)


async def pick_narrative(
    service: StructuredGenerationPort,
    language_name: str,
    page: WikiPage,
    section_id: str,
    candidates: list[SectionCandidate],
) -> SectionCandidate:
    """Score candidates, keep the best; merge best and runner-up when their scores are close.

    Raises:
        GenerationError: Scoring failed. Consolidation failure keeps the best.

    """
    system = prompts.system_prompt(language_name)
    summaries = [summarize_narrative(c) for c in candidates]
    scored = await ask(
        service,
        system,
        prompts.score_narratives(page.title, section_id, summaries),
        score_narratives_spec(len(candidates)),
    )
    ranked = rank_narratives(scored["scores"], len(candidates))
    best = candidates[ranked[0][0]]
    if len(ranked) < 2 or ranked[0][1] - ranked[1][1] > CLOSE_SCORE_DELTA:
        return best

    second = candidates[ranked[1][0]]
    try:
        merged = await ask(
            service,
            system,
            prompts.consolidate_narratives(page.title, section_id, best, second),
            CONSOLIDATE_NARRATIVE,
        )
    except GenerationError as e:
        logger.warning("narrative consolidation for %s/%s failed: %s", page.id, section_id, e)
        return best

    paragraphs = str_list(merged.get("paragraphs"))
    bullets = str_list(merged.get("bullets"))
    include_code = merged.get("include_code")
    return SectionCandidate(
        candidate_id=narrative_candidate_id(page.id, section_id, "C"),
        page_id=page.id,
        section_id=section_id,
        heading=merged["heading"].strip() or best.heading,
        paragraphs=paragraphs or best.paragraphs,
        bullets=bullets or best.bullets,
        include_code=include_code if isinstance(include_code, bool) else best.include_code,
        sources=best.sources,
    )
