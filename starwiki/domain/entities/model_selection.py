"""Model selection entities."""

from enum import Enum


class TaskComplexity(str, Enum):
    """Task weight for model selection."""

    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class GenerationTask(str, Enum):
    """Kind of structured call made by the page pipeline."""

    SCORE_FILES = "score_files"
    HEADINGS = "headings"
    PLAN_SECTION = "plan_section"
    CODE_CANDIDATE = "code_candidate"
    SELECT_CODE = "select_code"
    CONSOLIDATE_CODE = "consolidate_code"
    EXPLAIN_CODE = "explain_code"
    NARRATIVE_CANDIDATE = "narrative_candidate"
    SCORE_NARRATIVES = "score_narratives"
    CONSOLIDATE_NARRATIVE = "consolidate_narrative"


# Judging calls are cheap; drafting calls get the strongest model.
TASK_COMPLEXITY: dict[GenerationTask, TaskComplexity] = {
    GenerationTask.SCORE_FILES: TaskComplexity.SIMPLE,
    GenerationTask.SELECT_CODE: TaskComplexity.SIMPLE,
    GenerationTask.SCORE_NARRATIVES: TaskComplexity.SIMPLE,
    GenerationTask.HEADINGS: TaskComplexity.MEDIUM,
    GenerationTask.PLAN_SECTION: TaskComplexity.MEDIUM,
    GenerationTask.EXPLAIN_CODE: TaskComplexity.MEDIUM,
    GenerationTask.CODE_CANDIDATE: TaskComplexity.COMPLEX,
    GenerationTask.CONSOLIDATE_CODE: TaskComplexity.COMPLEX,
    GenerationTask.NARRATIVE_CANDIDATE: TaskComplexity.COMPLEX,
    GenerationTask.CONSOLIDATE_NARRATIVE: TaskComplexity.COMPLEX,
}

# Candidate drafting wants diversity between A/B and S1..S3.
CANDIDATE_TASKS = frozenset(
    {GenerationTask.CODE_CANDIDATE, GenerationTask.NARRATIVE_CANDIDATE}
)
JUDGE_TASKS = frozenset(
    {
        GenerationTask.SCORE_FILES,
        GenerationTask.SELECT_CODE,
        GenerationTask.SCORE_NARRATIVES,
    }
)
