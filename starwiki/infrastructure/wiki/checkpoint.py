"""Per-stage snapshots under {root}/{run_id}/{page_id}/{label}.json|md."""

import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from starwiki.domain.entities.page_state import PageState
from starwiki.domain.errors import CheckpointError

logger = logging.getLogger(__name__)

Stage = Callable[[PageState], Awaitable[PageState]]
Projector = Callable[[PageState], Any]


class CheckpointStore:
    """Writes stage snapshots for one run. Strings go to .md, everything else to .json."""

    def __init__(self, root: str | Path, run_id: str) -> None:
        self.root = Path(root)
        self.run_id = run_id

    @property
    def run_dir(self) -> Path:
        return self.root / self.run_id

    def page_dir(self, page_id: str) -> Path:
        return self.run_dir / page_id

    def save(self, page_id: str, label: str, payload: Any) -> Path:
        """Write one snapshot, replacing any earlier one with the same label.

        Raises:
            CheckpointError: Payload not serializable or write failed.

        """
        directory = self.page_dir(page_id)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            if isinstance(payload, str):
                path = directory / f"{label}.md"
                path.write_text(payload, encoding="utf-8")
            else:
                path = directory / f"{label}.json"
                path.write_text(
                    json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
                )
        except (OSError, TypeError, ValueError) as e:
            raise CheckpointError(f"{page_id}/{label}: {e}") from e
        return path


def _dump(models: list) -> list[dict]:
    return [m.model_dump(by_alias=True) for m in models]


PROJECTIONS: dict[str, Projector] = {
    "s1": lambda s: {"preferredFiles": s.get("preferred_files", [])},
    "s2": lambda s: {"headings": s["headings"].model_dump(by_alias=True)},
    "s3": lambda s: {"plans": _dump(s.get("plans", []))},
    "s4": lambda s: {
        "codeBySection": [
            {
                "sectionId": section_id,
                "lang": c.lang,
                "text": c.text,
                "align": c.expected_output_alignment,
            }
            for section_id, c in s.get("code_by_section", {}).items()
        ]
    },
    "s5": lambda s: {
        "codeExplById": [
            {"id": cid, "explanation": e.explanation, "risks": e.risks}
            for cid, e in s.get("code_expl_by_id", {}).items()
        ]
    },
    "s6": lambda s: {
        "narrativesBySection": [
            {"sectionId": section_id, "heading": n.heading, "pCount": len(n.paragraphs)}
            for section_id, n in s.get("narratives_by_section", {}).items()
        ]
    },
    "s7": lambda s: s.get("markdown", ""),
}


def save_quietly(store: CheckpointStore, page_id: str, label: str, payload: Any) -> None:
    """Save; a failed write is logged, never raised."""
    try:
        store.save(page_id, label, payload)
    except CheckpointError as e:
        logger.warning("checkpoint %s skipped: %s", label, e)


def with_checkpoint(
    label: str,
    stage: Stage,
    store: CheckpointStore,
    projector: Projector | None = None,
) -> Stage:
    """Wrap stage so its output is snapshotted under label after it succeeds."""
    project = projector or PROJECTIONS[label]

    async def wrapped(state: PageState) -> PageState:
        out = await stage(state)
        page_id = out["page"].id
        try:
            payload = project(out)
        except (AttributeError, KeyError, TypeError) as e:
            logger.warning("checkpoint %s for %s: projection failed: %s", label, page_id, e)
            return out
        save_quietly(store, page_id, label, payload)
        return out

    return wrapped
