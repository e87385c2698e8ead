"""Wiki page pipeline - LangGraph stages, selection, checkpoints, packing."""

from starwiki.infrastructure.wiki.batch import PagePipelineRunner, PageResult, PageWriter
from starwiki.infrastructure.wiki.checkpoint import CheckpointStore, with_checkpoint
from starwiki.infrastructure.wiki.compose import compose_markdown
from starwiki.infrastructure.wiki.graph import build_page_graph, compile_page_graph
from starwiki.infrastructure.wiki.publish import crosslink_drafts, validate_and_pack

__all__ = [
    "CheckpointStore",
    "PagePipelineRunner",
    "PageResult",
    "PageWriter",
    "build_page_graph",
    "compile_page_graph",
    "compose_markdown",
    "crosslink_drafts",
    "validate_and_pack",
    "with_checkpoint",
]
