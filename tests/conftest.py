from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, List

import pytest

from passive_genius import llm
from passive_genius.config import get_settings
from passive_genius.schemas import DetailedPlan, IncomeIdea, UserProfile
from passive_genius.storage import LocalStorage, Stores


@pytest.fixture(autouse=True)
def clear_caches() -> None:
    """Ensure cached settings and clients do not leak between tests."""

    get_settings.cache_clear()
    llm._client_cache = None


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCompletions:
    """Stand-in for ``client.chat.completions`` replaying queued outcomes."""

    def __init__(self, outcomes: List[Any]) -> None:
        self.outcomes = list(outcomes)
        self.calls: List[dict] = []

    def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is not None and not isinstance(outcome, str):
            outcome = json.dumps(outcome)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=outcome))])


class FakeClient:
    def __init__(self, outcomes: List[Any]) -> None:
        self.completions = FakeCompletions(outcomes)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def fake_client(monkeypatch: pytest.MonkeyPatch) -> Callable[..., FakeClient]:
    """Install a fake OpenAI client answering with the given outcomes in order."""

    def install(*outcomes: Any) -> FakeClient:
        client = FakeClient(list(outcomes))
        monkeypatch.setattr(llm, "_get_client", lambda: client)
        return client

    return install


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stores(tmp_path: Path) -> Stores:
    return Stores(LocalStorage(tmp_path / "storage"))


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(
        skills="Python, technical writing",
        budget="$500",
        time_commitment="5-10 hours/week",
        interests="Developer tools, education",
    )


def _idea_payload(index: int) -> dict[str, Any]:
    return {
        "id": f"idea-{index}",
        "title": f"Idea number {index}",
        "description": f"A passive income concept #{index} for developers.",
        "difficulty": ["Easy", "Medium", "Hard"][index % 3],
        "estimatedMonthlyRevenue": "$500 - $2,000",
        "setupCost": "$100",
        "timeToRevenue": "2-3 months",
        "tags": ["digital", "education"],
    }


@pytest.fixture
def idea_payloads() -> List[dict[str, Any]]:
    return [_idea_payload(index) for index in range(1, 6)]


@pytest.fixture
def ideas(idea_payloads: List[dict[str, Any]]) -> List[IncomeIdea]:
    return [IncomeIdea.model_validate(payload) for payload in idea_payloads]


@pytest.fixture
def plan_payload() -> dict[str, Any]:
    return {
        "ideaId": "whatever-the-model-said",
        "overview": "Build and sell a concise Python course for data analysts.",
        "marketingStrategy": "Grow a newsletter and post weekly tutorials on LinkedIn.",
        "steps": [
            {"phase": "Setup", "tasks": ["Outline the course", "Record module one"]},
            {"phase": "Launch", "tasks": ["Open pre-sales", "Email the waitlist"]},
            {"phase": "Scale", "tasks": ["Add an advanced tier"]},
        ],
        "projections": [
            {"month": "Month 1", "revenue": 0, "expenses": 150, "profit": -150},
            {"month": "Month 2", "revenue": 200, "expenses": 100, "profit": 100},
            {"month": "Month 3", "revenue": 600, "expenses": 100, "profit": 500},
            {"month": "Month 4", "revenue": 900, "expenses": 120, "profit": 780},
            {"month": "Month 5", "revenue": 1200, "expenses": 150, "profit": 1050},
            {"month": "Month 6", "revenue": 1500.5, "expenses": 150, "profit": 1350.5},
        ],
    }


@pytest.fixture
def plan(plan_payload: dict[str, Any]) -> DetailedPlan:
    return DetailedPlan.model_validate(plan_payload)
