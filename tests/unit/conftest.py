"""Shared fixtures for pipeline tests: a scripted generation service and a sample document."""

import pytest

from starwiki.domain.entities.wiki import PageContext, WikiDocument, WikiPage

from scripted import ScriptedService, happy_script


@pytest.fixture
def script():
    return happy_script()


@pytest.fixture
def make_service():
    """Factory: make_service(script) -> ScriptedService."""
    return ScriptedService


@pytest.fixture
def page():
    return WikiPage(id="greeter", title="Greeter", related_pages=["cli"])


@pytest.fixture
def page_context():
    return PageContext(
        page_id="greeter",
        title="Greeter",
        files=["src/app.py", "src/util.py"],
        context="src/app.py: def greet(name): ...",
    )


@pytest.fixture
def document(page, page_context):
    return WikiDocument(
        title="Demo",
        language_name="English",
        owner_repo="acme/greeter",
        commit_sha="abc123",
        pages=[page, WikiPage(id="cli", title="Command line")],
        pages_context=[page_context],
    )
