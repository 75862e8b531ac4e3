import asyncio
import json
import os
from typing import List, Optional

import pytest

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("COMPLETION_PROVIDER", "scripted")
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from landing_engine.agents.conversation_orchestrator import ConversationOrchestrator
from landing_engine.agents.page_lifecycle import PageLifecycleController
from landing_engine.errors import PersistenceError
from landing_engine.services.completion_gateway import CompletionGateway
from landing_engine.services.extraction import SENTINEL
from landing_engine.services.persistence_gateway import InMemoryPersistenceGateway


FINTECH_PAGE = {
    "companyName": "PayRail",
    "tagline": "Payments that just work",
    "description": "Payment infrastructure for online businesses",
    "heroTitle": "Accept payments everywhere",
    "heroSubtitle": "One API for cards, wallets and bank transfers",
    "features": [
        {"title": "Global coverage", "description": "Accept 135 currencies"},
        {"title": "Fraud shield", "description": "Machine-learned risk scoring"},
        {"title": "Instant payouts", "description": "Money in your account in minutes"},
    ],
    "cta": "Get your API key",
    "theme": "fintech",
}

SAAS_PAGE = {
    **FINTECH_PAGE,
    "companyName": "TaskPilot",
    "tagline": "Work on autopilot",
    "theme": "saas",
}


def payload_reply(page: dict, trailing: str = "Here is a first draft of your landing page.") -> str:
    return f"{SENTINEL}{json.dumps(page)}\n\n{trailing}"


class FakeCompletionGateway(CompletionGateway):
    """Returns queued replies and records every call"""

    provider = "fake"

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[Exception] = None):
        super().__init__("fake-model")
        self.replies = list(replies or [])
        self.error = error
        self.calls: List[dict] = []

    async def complete(self, system_prompt, history):
        self.calls.append({"system_prompt": system_prompt, "history": [dict(t) for t in history]})
        if self.error is not None:
            raise self.error
        return self.replies.pop(0)


class BlockingCompletionGateway(CompletionGateway):
    """Holds the completion open until released"""

    provider = "blocking"

    def __init__(self, reply: str):
        super().__init__("blocking-model")
        self.reply = reply
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def complete(self, system_prompt, history):
        self.calls += 1
        self.started.set()
        await self.release.wait()
        return self.reply


class FlakyPersistenceGateway(InMemoryPersistenceGateway):
    """In-memory store whose selected operations fail"""

    def __init__(self, failing: set):
        super().__init__()
        self.failing = set(failing)

    def _maybe_fail(self, op: str):
        if op in self.failing:
            raise PersistenceError(f"{op} failed", status_code=503)

    async def create(self, fields):
        self._maybe_fail("create")
        return await super().create(fields)

    async def update(self, record_id, fields):
        self._maybe_fail("update")
        return await super().update(record_id, fields)

    async def list(self):
        self._maybe_fail("list")
        return await super().list()

    async def delete(self, record_id):
        self._maybe_fail("delete")
        return await super().delete(record_id)


def make_orchestrator(completion, persistence=None, max_history=20) -> ConversationOrchestrator:
    persistence = persistence or InMemoryPersistenceGateway()
    return ConversationOrchestrator(
        completion=completion,
        lifecycle=PageLifecycleController(persistence),
        max_history=max_history,
    )


@pytest.fixture
def store() -> InMemoryPersistenceGateway:
    return InMemoryPersistenceGateway()


@pytest.fixture
def fintech_page() -> dict:
    return json.loads(json.dumps(FINTECH_PAGE))
