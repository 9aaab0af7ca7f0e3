"""Pytest configuration and fixtures."""

import pytest

from codereview.services.review.orchestrator import ReviewOrchestrator
from codereview.services.review.report import ReportGenerator

from fakes import FakeLLM, InMemoryReviewStore, RecordingPacer, StubAnalyzer, StubSampler


@pytest.fixture
def store():
    return InMemoryReviewStore()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def analyzer():
    return StubAnalyzer()


@pytest.fixture
def pacer():
    return RecordingPacer()


@pytest.fixture
def orchestrator(store, llm, analyzer, pacer):
    return ReviewOrchestrator(
        store=store,
        analyzer=analyzer,
        sampler=StubSampler(),
        reports=ReportGenerator(llm),
        pacer=pacer,
    )


@pytest.fixture
def github_tree():
    """Tree listing for https://github.com/acme/widgets."""
    return {
        "sha": "abc123",
        "truncated": False,
        "tree": [
            {"path": "src", "type": "tree"},
            {"path": "src/app.js", "type": "blob", "size": 120},
            {"path": "README.md", "type": "blob", "size": 2048},
            {"path": "package.json", "type": "blob", "size": 300},
        ],
    }


@pytest.fixture
def github_repo():
    return {
        "name": "widgets",
        "description": "Widget factory",
        "language": "JavaScript",
        "stargazers_count": 12,
        "forks_count": 3,
        "size": 512,
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-06-01T00:00:00Z",
        "topics": ["widgets", "factory"],
    }
