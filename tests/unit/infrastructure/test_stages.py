"""Tests for page stages S1-S6 run one at a time."""

import pytest

from starwiki.domain.entities.model_selection import GenerationTask
from starwiki.domain.entities.wiki import OutlineHeadings, PageContext, SectionHeading
from starwiki.domain.errors import GenerationError
from starwiki.infrastructure.wiki.stages import (
    code_node,
    explain_code_node,
    headings_node,
    narratives_node,
    plan_sections_node,
    score_files_node,
)


@pytest.fixture
def state(document, page, page_context):
    return {"document": document, "page": page, "page_context": page_context}


@pytest.fixture
def headings():
    return OutlineHeadings(
        page_id="greeter",
        sections=[
            SectionHeading(id="install", heading="Installation"),
            SectionHeading(id="usage", heading="Usage"),
        ],
    )


class TestScoreFiles:
    @pytest.mark.asyncio
    async def test_keeps_only_candidate_files_sorted(self, make_service, script, state):
        out = await score_files_node(state, make_service(script), "English")

        assert out["preferred_files"] == ["src/app.py", "src/util.py"]
        assert out["current_step"] == "s1"
        assert out["page"] is state["page"]

    @pytest.mark.asyncio
    async def test_top_six(self, make_service, state, page):
        files = [f"f{i}.py" for i in range(8)]
        state["page_context"] = PageContext(page_id=page.id, files=files)
        scores = [{"filePath": path, "score": i * 10} for i, path in enumerate(files)]
        service = make_service({GenerationTask.SCORE_FILES: {"scores": scores}})

        out = await score_files_node(state, service, "English")

        assert out["preferred_files"] == [f"f{i}.py" for i in range(7, 1, -1)]

    @pytest.mark.asyncio
    async def test_equal_scores_keep_model_order(self, make_service, state):
        scores = [{"filePath": "src/util.py", "score": 50}, {"filePath": "src/app.py", "score": 50}]
        service = make_service({GenerationTask.SCORE_FILES: {"scores": scores}})

        out = await score_files_node(state, service, "English")

        assert out["preferred_files"] == ["src/util.py", "src/app.py"]

    @pytest.mark.asyncio
    async def test_no_candidate_files_accepts_empty_scores(self, make_service, state, page):
        state["page_context"] = PageContext(page_id=page.id)
        service = make_service({GenerationTask.SCORE_FILES: {"scores": []}})

        out = await score_files_node(state, service, "English")

        assert out["preferred_files"] == []

    @pytest.mark.asyncio
    async def test_empty_scores_with_candidates_fail(self, make_service, state):
        service = make_service({GenerationTask.SCORE_FILES: {"scores": []}})

        with pytest.raises(GenerationError):
            await score_files_node(state, service, "English")


@pytest.mark.asyncio
async def test_headings_trim_lead_and_ids(make_service, script, state):
    script[GenerationTask.HEADINGS] = {
        "lead": "  Greeter prints greetings.  ",
        "sections": [{"id": " usage ", "heading": " Usage "}],
    }
    out = await headings_node(state, make_service(script), "English")

    headings = out["headings"]
    assert headings.lead == "Greeter prints greetings."
    assert headings.sections == [SectionHeading(id="usage", heading="Usage")]
    assert headings.page_id == "greeter"


@pytest.mark.asyncio
async def test_headings_without_lead(make_service, state):
    service = make_service({GenerationTask.HEADINGS: {"sections": [{"id": "a", "heading": "A"}]}})

    out = await headings_node(state, service, "English")

    assert out["headings"].lead == ""


@pytest.mark.asyncio
async def test_repeated_section_ids_trigger_retry(make_service, state):
    repeated = {
        "lead": "",
        "sections": [{"id": "usage", "heading": "Usage"}, {"id": "usage", "heading": "Usage again"}],
    }
    distinct = {
        "lead": "",
        "sections": [{"id": "usage", "heading": "Usage"}, {"id": "errors", "heading": "Errors"}],
    }
    service = make_service({GenerationTask.HEADINGS: [repeated, distinct]})

    out = await headings_node(state, service, "English")

    assert [s.id for s in out["headings"].sections] == ["usage", "errors"]
    assert [with_schema for _, with_schema, _ in service.calls] == [True, False]


@pytest.mark.asyncio
async def test_plans_follow_heading_order(make_service, script, state, headings):
    state["headings"] = headings
    service = make_service(script)

    out = await plan_sections_node(state, service, "English")

    plans = out["plans"]
    assert [p.section_id for p in plans] == ["install", "usage"]
    assert plans[0].code_need_score == 30
    assert plans[1].code_need_score == 80
    assert plans[0].must_cover == ["what it does", "how to call it"]
    assert plans[0].expected_output == "hello"
    assert service.count(GenerationTask.PLAN_SECTION) == 2


@pytest.mark.asyncio
async def test_plan_normalizes_fields(make_service, state, headings):
    state["headings"] = headings
    reply = {
        "must_cover": ["x"],
        "code_need_score": 140,
        "expected_output": "   ",
        "primary_files": [f"f{i}.py" for i in range(7)],
    }
    service = make_service({GenerationTask.PLAN_SECTION: reply})

    plan = (await plan_sections_node(state, service, "English"))["plans"][0]

    assert plan.code_need_score == 100
    assert plan.expected_output is None
    assert len(plan.primary_files) == 5


@pytest.mark.asyncio
async def test_plan_failure_propagates(make_service, state, headings):
    state["headings"] = headings
    service = make_service({GenerationTask.PLAN_SECTION: RuntimeError("down")})

    with pytest.raises(GenerationError):
        await plan_sections_node(state, service, "English")


@pytest.mark.asyncio
async def test_code_only_for_sections_that_need_it(make_service, script, state, headings):
    state["headings"] = headings
    service = make_service(script)
    state = await plan_sections_node(state, service, "English")

    out = await code_node(state, service, "English")

    assert list(out["code_by_section"]) == ["usage"]
    assert service.count(GenerationTask.CODE_CANDIDATE) == 2


@pytest.mark.asyncio
async def test_explanations_keyed_by_candidate(make_service, script, state, headings):
    state["headings"] = headings
    service = make_service(script)
    state = await plan_sections_node(state, service, "English")
    state = await code_node(state, service, "English")

    out = await explain_code_node(state, service, "English")

    explanation = out["code_expl_by_id"]["greeter:usage:CB"]
    assert explanation.section_id == "usage"
    assert explanation.explanation == "Returns a greeting for the given name."
    assert explanation.risks == ["none"]


@pytest.mark.asyncio
async def test_three_narratives_per_section(make_service, script, state, headings):
    state["headings"] = headings
    service = make_service(script)
    state = await plan_sections_node(state, service, "English")
    state = await code_node(state, service, "English")
    state = await explain_code_node(state, service, "English")

    out = await narratives_node(state, service, "English")

    narratives = out["narratives_by_section"]
    assert list(narratives) == ["install", "usage"]
    assert narratives["usage"].candidate_id == "greeter:usage:S1"
    assert service.count(GenerationTask.NARRATIVE_CANDIDATE) == 6
    assert service.count(GenerationTask.SCORE_NARRATIVES) == 2
    assert out["current_step"] == "s6"
