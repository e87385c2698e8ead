"""Post-processing of drafts: "See also" cross-links and packing to a dist directory."""

import json
import logging
from pathlib import Path

from starwiki.domain.entities.wiki import DraftsOutput, PageDraft

logger = logging.getLogger(__name__)

MAX_SEE_ALSO = 2


def crosslink_drafts(output: DraftsOutput) -> DraftsOutput:
    """Append up to two "See also" links per draft from the page's related pages."""
    titles = {p.id: p.title for p in output.pages}
    related = {p.id: p.related_pages for p in output.pages}
    drafts: list[PageDraft] = []
    for draft in output.drafts:
        links = [
            f"- See also: **{titles.get(rid, rid)}** (../{rid}.md)"
            for rid in related.get(draft.page_id, [])[:MAX_SEE_ALSO]
        ]
        if not links:
            drafts.append(draft)
            continue
        markdown = draft.markdown.rstrip() + "\n\n---\n" + "\n".join(links) + "\n"
        drafts.append(draft.model_copy(update={"markdown": markdown}))
    return output.model_copy(update={"drafts": drafts})


def check_drafts(output: DraftsOutput) -> list[str]:
    """Problems worth a warning. Duplicate page ids are an error.

    Raises:
        ValueError: Two pages share an id.

    """
    seen: set[str] = set()
    for page in output.pages:
        if page.id in seen:
            raise ValueError(f"duplicate page id: {page.id}")
        seen.add(page.id)

    problems = []
    if len(output.drafts) != len(output.pages):
        problems.append(f"draft count {len(output.drafts)} != page count {len(output.pages)}")
    for draft in output.drafts:
        if not draft.markdown.lstrip().startswith("# "):
            problems.append(f"{draft.page_id}: missing H1")
        if draft.markdown.count("```") % 2:
            problems.append(f"{draft.page_id}: unbalanced code fences")
    return problems


def validate_and_pack(output: DraftsOutput, dist_dir: str | Path) -> Path:
    """Write pages/{id}.md and index.json under dist_dir. Returns dist_dir.

    Raises:
        ValueError: Two pages share an id.

    """
    for problem in check_drafts(output):
        logger.warning("pack: %s", problem)

    dist = Path(dist_dir)
    pages_dir = dist / "pages"
    pages_dir.mkdir(parents=True, exist_ok=True)
    for draft in output.drafts:
        (pages_dir / f"{draft.page_id}.md").write_text(draft.markdown, encoding="utf-8")

    index = {
        "title": output.title,
        "commitSha": output.commit_sha,
        "pages": [
            {"id": p.id, "title": p.title, "related": p.related_pages} for p in output.pages
        ],
    }
    (dist / "index.json").write_text(
        json.dumps(index, indent=2, ensure_ascii=False), encoding="utf-8"
    )
    logger.info("pack: %d pages written to %s", len(output.drafts), dist)
    return dist
