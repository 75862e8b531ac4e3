import asyncio

import pytest

from conftest import (
    FINTECH_PAGE,
    SAAS_PAGE,
    BlockingCompletionGateway,
    FakeCompletionGateway,
    FlakyPersistenceGateway,
    make_orchestrator,
    payload_reply,
)
from landing_engine.errors import CompletionError, SessionNotFoundError
from landing_engine.models import NotificationLevel, Sender, SessionStatus, Theme, View
from landing_engine.services.extraction import SENTINEL
from landing_engine.services.landing_system_prompt import (
    ERROR_MESSAGE,
    GENERATED_MESSAGE,
    LANDING_SYSTEM_PROMPT,
    WELCOME_MESSAGE,
)
from landing_engine.services.openrouter_completion import OpenRouterCompletionGateway
from landing_engine.services.scripted_completion import ScriptedCompletionGateway


def test_new_session_starts_with_welcome():
    orchestrator = make_orchestrator(FakeCompletionGateway())

    state = orchestrator.create_session()

    assert [m.text for m in state.messages] == [WELCOME_MESSAGE]
    assert state.messages[0].sender is Sender.ASSISTANT
    assert state.status is SessionStatus.IDLE
    assert state.view is View.CHAT
    assert orchestrator.history_for(state) == []


def test_unknown_session_raises():
    orchestrator = make_orchestrator(FakeCompletionGateway())

    with pytest.raises(SessionNotFoundError):
        asyncio.run(orchestrator.submit("missing", "hello"))


def test_fintech_description_produces_fintech_preview():
    orchestrator = make_orchestrator(ScriptedCompletionGateway())
    state = orchestrator.create_session()

    result = asyncio.run(orchestrator.submit(
        state.session_id, "We sell payment infrastructure for online businesses"
    ))

    assert result.accepted
    assert result.content_updated
    assert state.content.theme is Theme.FINTECH
    assert state.view is View.PREVIEW
    assert state.current_record_id is not None
    assert [r.id for r in state.records] == [state.current_record_id]
    assert SENTINEL not in state.messages[-1].text
    assert state.messages[-1].text.startswith("Excellent!")


def test_plain_reply_appends_text_only():
    gateway = FakeCompletionGateway(["What does your company do?"])
    orchestrator = make_orchestrator(gateway)
    state = orchestrator.create_session()

    result = asyncio.run(orchestrator.submit(state.session_id, "Hi there"))

    assert result.accepted
    assert not result.content_updated
    assert [(m.sender, m.text) for m in state.messages[1:]] == [
        (Sender.USER, "Hi there"),
        (Sender.ASSISTANT, "What does your company do?"),
    ]
    assert state.content is None
    assert state.view is View.CHAT
    assert state.status is SessionStatus.IDLE


def test_gateway_receives_system_prompt_and_history_without_welcome():
    gateway = FakeCompletionGateway(["Tell me more.", payload_reply(FINTECH_PAGE)])
    orchestrator = make_orchestrator(gateway)
    state = orchestrator.create_session()

    async def scenario():
        await orchestrator.submit(state.session_id, "Hello")
        await orchestrator.submit(state.session_id, "We build payment rails")

    asyncio.run(scenario())

    assert gateway.calls[0]["system_prompt"] == LANDING_SYSTEM_PROMPT
    assert gateway.calls[0]["history"] == [{"role": "user", "content": "Hello"}]
    assert gateway.calls[1]["history"] == [
        {"role": "user", "content": "Hello"},
        {"role": "assistant", "content": "Tell me more."},
        {"role": "user", "content": "We build payment rails"},
    ]


def test_history_window_starts_on_user_turn():
    replies = [f"reply {i}" for i in range(3)]
    gateway = FakeCompletionGateway(replies)
    orchestrator = make_orchestrator(gateway, max_history=4)
    state = orchestrator.create_session()

    async def scenario():
        for i in range(3):
            await orchestrator.submit(state.session_id, f"message {i}")

    asyncio.run(scenario())

    history = gateway.calls[-1]["history"]
    assert history[0] == {"role": "user", "content": "message 1"}
    assert history[-1] == {"role": "user", "content": "message 2"}
    assert len(history) == 3


def test_empty_submission_is_rejected():
    gateway = FakeCompletionGateway()
    orchestrator = make_orchestrator(gateway)
    state = orchestrator.create_session()

    result = asyncio.run(orchestrator.submit(state.session_id, "   "))

    assert not result.accepted
    assert len(state.messages) == 1
    assert gateway.calls == []


def test_submission_while_awaiting_is_rejected():
    gateway = BlockingCompletionGateway("Noted.")
    orchestrator = make_orchestrator(gateway)
    state = orchestrator.create_session()

    async def scenario():
        first = asyncio.create_task(orchestrator.submit(state.session_id, "first"))
        await gateway.started.wait()
        assert state.status is SessionStatus.AWAITING_COMPLETION
        second = await orchestrator.submit(state.session_id, "second")
        gateway.release.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first.accepted
    assert not second.accepted
    assert gateway.calls == 1
    assert [m.text for m in state.messages] == [WELCOME_MESSAGE, "first", "Noted."]
    assert state.status is SessionStatus.IDLE


def test_gateway_failure_appends_error_and_keeps_content():
    gateway = FakeCompletionGateway([payload_reply(FINTECH_PAGE)])
    orchestrator = make_orchestrator(gateway)
    state = orchestrator.create_session()
    asyncio.run(orchestrator.submit(state.session_id, "payments startup"))
    content_before = state.content
    gateway.error = CompletionError("OpenRouter API error: 503", status_code=503)

    result = asyncio.run(orchestrator.submit(state.session_id, "make it bolder"))

    assert result.accepted
    assert result.error == "OpenRouter API error: 503"
    assert state.messages[-1].text == ERROR_MESSAGE
    assert state.messages[-2].text == "make it bolder"
    assert state.content is content_before
    assert state.status is SessionStatus.IDLE
    assert state.notifications[-1].level is NotificationLevel.ERROR


def test_error_bubble_is_not_sent_to_the_model():
    gateway = FakeCompletionGateway(error=CompletionError("timeout"))
    orchestrator = make_orchestrator(gateway)
    state = orchestrator.create_session()
    asyncio.run(orchestrator.submit(state.session_id, "first try"))
    gateway.error = None
    gateway.replies = ["Welcome back."]

    asyncio.run(orchestrator.submit(state.session_id, "second try"))

    assert gateway.calls[-1]["history"] == [
        {"role": "user", "content": "first try"},
        {"role": "user", "content": "second try"},
    ]


def test_missing_credential_is_reported_like_a_failure():
    gateway = OpenRouterCompletionGateway(api_key="", model="any")
    orchestrator = make_orchestrator(gateway)
    state = orchestrator.create_session()

    result = asyncio.run(orchestrator.submit(state.session_id, "hello"))

    assert result.accepted
    assert "OPENROUTER_API_KEY" in result.error
    assert state.messages[-1].text == ERROR_MESSAGE
    assert state.status is SessionStatus.IDLE


def test_undecodable_payload_is_shown_as_text():
    gateway = FakeCompletionGateway([SENTINEL + ' {"companyName": oops}'])
    orchestrator = make_orchestrator(gateway)
    state = orchestrator.create_session()

    result = asyncio.run(orchestrator.submit(state.session_id, "go"))

    assert result.accepted
    assert not result.content_updated
    assert state.messages[-1].text == '{"companyName": oops}'
    assert state.content is None
    assert state.view is View.CHAT
    assert state.notifications == []


def test_regeneration_updates_the_same_record():
    gateway = FakeCompletionGateway([payload_reply(FINTECH_PAGE), payload_reply(SAAS_PAGE)])
    orchestrator = make_orchestrator(gateway)
    state = orchestrator.create_session()

    async def scenario():
        await orchestrator.submit(state.session_id, "payments")
        first_id = state.current_record_id
        await orchestrator.submit(state.session_id, "actually we are a SaaS")
        return first_id

    first_id = asyncio.run(scenario())

    assert state.current_record_id == first_id
    assert len(state.records) == 1
    assert state.content.company_name == "TaskPilot"
    assert state.records[0].theme is Theme.SAAS


def test_payload_without_prose_gets_generated_message():
    gateway = FakeCompletionGateway([payload_reply(FINTECH_PAGE, trailing="")])
    orchestrator = make_orchestrator(gateway)
    state = orchestrator.create_session()

    asyncio.run(orchestrator.submit(state.session_id, "payments"))

    assert state.messages[-1].text == GENERATED_MESSAGE


def test_save_failure_still_shows_the_page():
    gateway = FakeCompletionGateway([payload_reply(FINTECH_PAGE)])
    orchestrator = make_orchestrator(gateway, persistence=FlakyPersistenceGateway({"create"}))
    state = orchestrator.create_session()

    result = asyncio.run(orchestrator.submit(state.session_id, "payments"))

    assert result.content_updated
    assert state.content.company_name == "PayRail"
    assert state.view is View.PREVIEW
    assert state.current_record_id is None
    assert state.notifications[-1].level is NotificationLevel.ERROR
    assert state.status is SessionStatus.IDLE
