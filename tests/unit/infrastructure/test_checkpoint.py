"""Tests for stage snapshots."""

import json
from unittest.mock import patch

import pytest

from starwiki.domain.entities.wiki import OutlineHeadings, SectionHeading
from starwiki.domain.errors import CheckpointError
from starwiki.infrastructure.wiki.checkpoint import PROJECTIONS, CheckpointStore, with_checkpoint


@pytest.fixture
def store(tmp_path):
    return CheckpointStore(tmp_path, "run-1")


def test_store_writes_json_and_markdown(store, tmp_path):
    json_path = store.save("greeter", "s1", {"preferredFiles": ["ü.py"]})
    md_path = store.save("greeter", "s7", "# Greeter\n")

    assert json_path == tmp_path / "run-1" / "greeter" / "s1.json"
    assert json.loads(json_path.read_text(encoding="utf-8")) == {"preferredFiles": ["ü.py"]}
    assert "ü.py" in json_path.read_text(encoding="utf-8")
    assert md_path.read_text(encoding="utf-8") == "# Greeter\n"


def test_store_overwrites_same_label(store):
    store.save("greeter", "s1", {"n": 1})
    path = store.save("greeter", "s1", {"n": 2})
    assert json.loads(path.read_text(encoding="utf-8")) == {"n": 2}


def test_unserializable_payload_raises(store):
    with pytest.raises(CheckpointError):
        store.save("greeter", "s1", {"bad": object()})


def test_headings_projection_uses_camel_case():
    headings = OutlineHeadings(
        page_id="greeter", lead="L", sections=[SectionHeading(id="a", heading="A")]
    )
    payload = PROJECTIONS["s2"]({"headings": headings})
    assert payload == {
        "headings": {"pageId": "greeter", "lead": "L", "sections": [{"id": "a", "heading": "A"}]}
    }


@pytest.mark.asyncio
async def test_wrapper_saves_after_stage(store, page):
    async def stage(state):
        return {**state, "preferred_files": ["src/app.py"]}

    out = await with_checkpoint("s1", stage, store)({"page": page})

    assert out["preferred_files"] == ["src/app.py"]
    saved = json.loads((store.page_dir("greeter") / "s1.json").read_text(encoding="utf-8"))
    assert saved == {"preferredFiles": ["src/app.py"]}


@pytest.mark.asyncio
async def test_wrapper_ignores_write_failure(store, page):
    async def stage(state):
        return {**state, "markdown": "# Greeter"}

    with patch.object(CheckpointStore, "save", side_effect=CheckpointError("disk full")):
        out = await with_checkpoint("s7", stage, store)({"page": page})

    assert out["markdown"] == "# Greeter"


@pytest.mark.asyncio
async def test_wrapper_ignores_projection_failure(store, page):
    async def stage(state):
        return dict(state)

    out = await with_checkpoint("s2", stage, store)({"page": page})

    assert out == {"page": page}
    assert not store.page_dir("greeter").exists()


@pytest.mark.asyncio
async def test_stage_failure_is_not_saved(store, page):
    async def stage(state):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await with_checkpoint("s1", stage, store)({"page": page})

    assert not store.run_dir.exists()
