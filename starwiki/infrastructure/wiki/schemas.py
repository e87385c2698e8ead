"""Output specs per stage call: task tag, JSON schema and validator.

Schemas stay loose (no enums, patterns or min/max) so local backends accept
them; the validators carry the real constraints.
"""

from dataclasses import dataclass

from starwiki.domain.entities.model_selection import GenerationTask
from starwiki.domain.ports.generation import Validator
from starwiki.domain.services import validators as v


@dataclass(frozen=True)
class OutputSpec:
    """One structured call shape."""

    task: GenerationTask
    schema: dict
    validator: Validator


def _obj(properties: dict, required: list[str]) -> dict:
    return {"type": "object", "properties": properties, "required": required}


_STR = {"type": "string"}
_INT = {"type": "integer"}
_BOOL = {"type": "boolean"}
_STR_LIST = {"type": "array", "items": _STR}

SCORE_FILES_SCHEMA = _obj(
    {
        "scores": {
            "type": "array",
            "items": _obj({"filePath": _STR, "score": _INT, "why": _STR}, ["filePath", "score"]),
        }
    },
    ["scores"],
)

HEADINGS_SCHEMA = _obj(
    {
        "lead": _STR,
        "sections": {
            "type": "array",
            "items": _obj({"id": _STR, "heading": _STR}, ["id", "heading"]),
        },
    },
    ["lead", "sections"],
)

PLAN_SECTION_SCHEMA = _obj(
    {
        "must_cover": _STR_LIST,
        "code_need_score": _INT,
        "expected_output": _STR,
        "primary_files": _STR_LIST,
    },
    ["must_cover", "code_need_score", "primary_files"],
)

SINGLE_CODE_SCHEMA = _obj(
    {
        "lang": _STR,
        "text": _STR,
        "expected_output_alignment": _INT,
        "rationale": _STR,
        "sources": _STR_LIST,
    },
    ["text"],
)

SELECT_BETWEEN_TWO_SCHEMA = _obj(
    {"winner": _STR, "why": _STR, "winner_alignment": _INT},
    ["winner"],
)

CONSOLIDATE_CODE_SCHEMA = _obj({"lang": _STR, "text": _STR}, ["text"])

EXPLAIN_CODE_SCHEMA = _obj({"explanation": _STR, "risks": _STR_LIST}, ["explanation"])

SINGLE_NARRATIVE_SCHEMA = _obj(
    {
        "heading": _STR,
        "paragraphs": _STR_LIST,
        "bullets": _STR_LIST,
        "include_code": _BOOL,
        "sources": _STR_LIST,
    },
    ["heading"],
)

SCORE_NARRATIVES_SCHEMA = _obj(
    {
        "scores": {
            "type": "array",
            "items": _obj({"index": _INT, "score": _INT, "why": _STR}, ["index", "score"]),
        }
    },
    ["scores"],
)

CONSOLIDATE_NARRATIVE_SCHEMA = _obj(
    {
        "heading": _STR,
        "paragraphs": _STR_LIST,
        "bullets": _STR_LIST,
        "include_code": _BOOL,
    },
    ["heading"],
)


def score_files_spec(files: list[str]) -> OutputSpec:
    return OutputSpec(GenerationTask.SCORE_FILES, SCORE_FILES_SCHEMA, v.check_score_files(files))


HEADINGS = OutputSpec(GenerationTask.HEADINGS, HEADINGS_SCHEMA, v.check_headings)
PLAN_SECTION = OutputSpec(GenerationTask.PLAN_SECTION, PLAN_SECTION_SCHEMA, v.check_plan_section)
SINGLE_CODE = OutputSpec(GenerationTask.CODE_CANDIDATE, SINGLE_CODE_SCHEMA, v.check_single_code)
SELECT_CODE = OutputSpec(
    GenerationTask.SELECT_CODE, SELECT_BETWEEN_TWO_SCHEMA, v.check_select_between_two
)
CONSOLIDATE_CODE = OutputSpec(
    GenerationTask.CONSOLIDATE_CODE, CONSOLIDATE_CODE_SCHEMA, v.check_consolidate_code
)
EXPLAIN_CODE = OutputSpec(GenerationTask.EXPLAIN_CODE, EXPLAIN_CODE_SCHEMA, v.check_explain_code)
SINGLE_NARRATIVE = OutputSpec(
    GenerationTask.NARRATIVE_CANDIDATE, SINGLE_NARRATIVE_SCHEMA, v.check_single_narrative
)
CONSOLIDATE_NARRATIVE = OutputSpec(
    GenerationTask.CONSOLIDATE_NARRATIVE,
    CONSOLIDATE_NARRATIVE_SCHEMA,
    v.check_consolidate_narrative,
)


def score_narratives_spec(count: int) -> OutputSpec:
    return OutputSpec(
        GenerationTask.SCORE_NARRATIVES, SCORE_NARRATIVES_SCHEMA, v.check_score_narratives(count)
    )
