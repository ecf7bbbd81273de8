"""Pytest fixtures for edgepatch tests."""

import tempfile
from pathlib import Path
from typing import Any

import pytest

from edgepatch.models import Opportunity, Site, SiteEdgeSettings, Suggestion
from edgepatch.store import InMemoryDocumentStore

SCRAPED_AT = "2025-01-15T10:00:00.000Z"
SCRAPED_AT_MS = 1736935200000


def make_suggestion(suggestion_id: str = "sugg-1", **data: Any) -> Suggestion:
    """Suggestion with the given data fields."""
    return Suggestion(id=suggestion_id, data=data)


def headings_data(**overrides: Any) -> dict[str, Any]:
    """Deployable heading-empty suggestion data."""
    data = {
        "checkType": "heading-empty",
        "recommendedAction": "New Heading",
        "url": "https://www.example.com/page1",
        "transformRules": {"action": "replace", "selector": "h1"},
        "scrapedAt": SCRAPED_AT,
    }
    data.update(overrides)
    return data


def faq_data(question: str = "What is it?", answer: str = "It is **great**.", **overrides: Any) -> dict[str, Any]:
    """Deployable FAQ suggestion data."""
    data = {
        "shouldOptimize": True,
        "url": "https://www.example.com/page1",
        "headingText": "FAQs",
        "item": {"question": question, "answer": answer},
        "transformRules": {"action": "appendChild", "selector": "main"},
        "scrapedAt": SCRAPED_AT,
    }
    data.update(overrides)
    return data


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def site() -> Site:
    """Site with edge credentials configured."""
    return Site(
        id="site-1",
        base_url="https://www.example.com",
        edge=SiteEdgeSettings(forwarded_host="www.example.com", api_key="edge-key"),
    )


@pytest.fixture
def headings_opportunity() -> Opportunity:
    return Opportunity(id="opp-1", type="headings")


@pytest.fixture
def faq_opportunity() -> Opportunity:
    return Opportunity(id="opp-faq", type="faq")


@pytest.fixture
def temp_db() -> Path:
    """Temporary database path for isolated tests."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = Path(f.name)
    yield path
    path.unlink(missing_ok=True)


@pytest.fixture
def no_sleep() -> list[float]:
    """Records requested sleeps instead of waiting."""
    return []
