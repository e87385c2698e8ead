"""LangGraph page pipeline - s1 files → s2 headings → s3 plans → s4 code → s5 explain → s6 narratives → s7 compose."""

from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import END, START, StateGraph

from starwiki.domain.entities.page_state import PageState
from starwiki.domain.ports.generation import StructuredGenerationPort
from starwiki.infrastructure.wiki.checkpoint import CheckpointStore, with_checkpoint
from starwiki.infrastructure.wiki.compose import compose_node
from starwiki.infrastructure.wiki.stages import (
    code_node,
    explain_code_node,
    headings_node,
    narratives_node,
    plan_sections_node,
    score_files_node,
)

STAGE_LABELS = ("s1", "s2", "s3", "s4", "s5", "s6", "s7")


def build_page_graph(
    service: StructuredGenerationPort,
    store: CheckpointStore,
    language_name: str,
) -> StateGraph:
    """Build the linear page graph with injected dependencies; every stage is checkpointed."""

    async def s1(state: PageState) -> PageState:
        return await score_files_node(state, service, language_name)

    async def s2(state: PageState) -> PageState:
        return await headings_node(state, service, language_name)

    async def s3(state: PageState) -> PageState:
        return await plan_sections_node(state, service, language_name)

    async def s4(state: PageState) -> PageState:
        return await code_node(state, service, language_name)

    async def s5(state: PageState) -> PageState:
        return await explain_code_node(state, service, language_name)

    async def s6(state: PageState) -> PageState:
        return await narratives_node(state, service, language_name)

    stages = dict(zip(STAGE_LABELS, (s1, s2, s3, s4, s5, s6, compose_node)))

    builder = StateGraph(PageState)
    for label, stage in stages.items():
        builder.add_node(label, with_checkpoint(label, stage, store))

    builder.add_edge(START, STAGE_LABELS[0])
    for current, following in zip(STAGE_LABELS, STAGE_LABELS[1:]):
        builder.add_edge(current, following)
    builder.add_edge(STAGE_LABELS[-1], END)

    return builder


def compile_page_graph(
    builder: StateGraph,
    *,
    checkpointer: MemorySaver | None = None,
):
    """Compile graph. Stage snapshots go to CheckpointStore, so no LangGraph checkpointer by default."""
    return builder.compile(checkpointer=checkpointer)
