#!/usr/bin/env python3
"""Draft wiki pages for a document and pack them.

Usage:
  python3 scripts/generate_wiki.py document.json [dist_dir]

document.json is a WikiDocument (snake_case or camelCase keys): language,
revision, pages and their retrieved contexts. Drafts are cross-linked and
written to dist_dir (default: [wiki].dist_dir from config) as pages/*.md
plus index.json. Stage snapshots go to [wiki].checkpoint_dir.

Requires: a reachable LLM backend per config/default.toml + development.toml.
"""

import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


async def main() -> None:
    from starwiki.api.container import Container
    from starwiki.application.wiki import WikiRequest
    from starwiki.domain.entities.wiki import WikiDocument
    from starwiki.shared.logging import setup_logging

    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)

    container = Container()
    config = container.config
    setup_logging(level=config.log_level, file_path=config.log_file or "")
    if len(sys.argv) > 2:
        config.wiki.dist_dir = sys.argv[2]

    raw = json.loads(Path(sys.argv[1]).read_text(encoding="utf-8"))
    document = WikiDocument.model_validate(raw)
    print(f"Pages: {len(document.pages)}, provider: {config.llm.provider}")

    response = await container.wiki_use_case.execute(WikiRequest(document=document, pack=True))

    for draft in response.drafts:
        mark = "FAILED" if draft.page_id in response.failed_pages else "ok"
        print(f"  {draft.page_id}: {mark}")
    print(f"Run {response.run_id}: {len(response.drafts)} drafts → {response.dist_dir}")

    if hasattr(container.llm, "close"):
        await container.llm.close()
    if response.failed_pages:
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
