import asyncio

import pytest
from pydantic import ValidationError

from conftest import SAAS_PAGE, FlakyPersistenceGateway
from landing_engine.agents.page_lifecycle import (
    DELETE_FAILED_MESSAGE,
    SAVE_FAILED_MESSAGE,
    PageLifecycleController,
)
from landing_engine.agents.session_state import SessionState
from landing_engine.errors import NoContentError, RecordNotFoundError
from landing_engine.models import ContentModel, NotificationLevel, Theme, View


def _content(page: dict) -> ContentModel:
    return ContentModel.model_validate(page)


def test_first_content_creates_then_updates(store, fintech_page):
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")

    async def scenario():
        created = await lifecycle.on_new_content_model(state, _content(fintech_page))
        record_id = state.current_record_id
        updated = await lifecycle.on_new_content_model(state, _content(SAAS_PAGE))
        return created, record_id, updated

    created, record_id, updated = asyncio.run(scenario())

    assert record_id == created.id
    assert updated.id == created.id
    assert state.current_record_id == created.id
    assert state.content.company_name == "TaskPilot"
    assert [r.id for r in state.records] == [created.id]
    assert state.records[0].theme is Theme.SAAS


def test_save_failure_keeps_content_unsaved(fintech_page):
    lifecycle = PageLifecycleController(FlakyPersistenceGateway({"create"}))
    state = SessionState(session_id="s1")

    record = asyncio.run(lifecycle.on_new_content_model(state, _content(fintech_page)))

    assert record is None
    assert state.content.company_name == "PayRail"
    assert state.current_record_id is None
    assert [(n.level, n.text) for n in state.notifications] == [
        (NotificationLevel.ERROR, SAVE_FAILED_MESSAGE)
    ]


def test_record_deleted_by_another_session_is_saved_again(store, fintech_page):
    lifecycle = PageLifecycleController(store)
    editor = SessionState(session_id="editor")
    other = SessionState(session_id="other")

    async def scenario():
        await lifecycle.on_new_content_model(editor, _content(fintech_page))
        stale_id = editor.current_record_id
        await lifecycle.on_delete(other, stale_id)
        first = await lifecycle.on_new_content_model(editor, _content(SAAS_PAGE))
        second = await lifecycle.on_new_content_model(editor, _content(fintech_page))
        return stale_id, first, second, await store.list()

    stale_id, first, second, records = asyncio.run(scenario())

    assert first.id != stale_id
    assert second.id == first.id
    assert editor.current_record_id == first.id
    assert [r.id for r in records] == [first.id]
    assert editor.notifications == []


def test_select_opens_saved_page_in_preview(store, fintech_page):
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")

    async def scenario():
        saved = await store.create(_content(fintech_page).to_record_fields())
        content = await lifecycle.on_select(state, saved.id)
        return saved, content

    saved, content = asyncio.run(scenario())

    assert content == _content(fintech_page)
    assert state.current_record_id == saved.id
    assert state.view is View.PREVIEW


def test_select_unknown_record_raises(store):
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")

    with pytest.raises(RecordNotFoundError):
        asyncio.run(lifecycle.on_select(state, "missing"))
    assert state.content is None
    assert state.view is View.CHAT


def test_new_clears_current_page(store, fintech_page):
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")
    asyncio.run(lifecycle.on_new_content_model(state, _content(fintech_page)))
    state.view = View.PREVIEW

    lifecycle.on_new(state)

    assert state.content is None
    assert state.current_record_id is None
    assert state.view is View.CHAT
    assert len(state.records) == 1


def test_delete_current_record_clears_selection(store, fintech_page):
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")

    async def scenario():
        await lifecycle.on_new_content_model(state, _content(fintech_page))
        return await lifecycle.on_delete(state, state.current_record_id)

    assert asyncio.run(scenario()) is True
    assert state.current_record_id is None
    assert state.records == []


def test_delete_other_record_keeps_selection(store, fintech_page):
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")

    async def scenario():
        other = await store.create(_content(SAAS_PAGE).to_record_fields())
        await lifecycle.on_new_content_model(state, _content(fintech_page))
        await lifecycle.on_delete(state, other.id)

    asyncio.run(scenario())

    assert state.current_record_id is not None
    assert [r.id for r in state.records] == [state.current_record_id]


def test_delete_unknown_record_leaves_cache_unchanged(store, fintech_page):
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")
    asyncio.run(lifecycle.on_new_content_model(state, _content(fintech_page)))
    before = list(state.records)

    with pytest.raises(RecordNotFoundError):
        asyncio.run(lifecycle.on_delete(state, "missing"))

    assert state.records == before
    assert state.notifications == []


def test_delete_failure_notifies(fintech_page):
    store = FlakyPersistenceGateway({"delete"})
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")
    asyncio.run(lifecycle.on_new_content_model(state, _content(fintech_page)))

    deleted = asyncio.run(lifecycle.on_delete(state, state.current_record_id))

    assert deleted is False
    assert state.current_record_id is not None
    assert state.notifications[-1].text == DELETE_FAILED_MESSAGE


def test_edit_changes_theme_and_saves(store, fintech_page):
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")

    async def scenario():
        await lifecycle.on_new_content_model(state, _content(fintech_page))
        return await lifecycle.on_edit(state, {"theme": "saas", "heroTitle": "Payments in one call"})

    record = asyncio.run(scenario())

    assert state.content.theme is Theme.SAAS
    assert state.content.hero_title == "Payments in one call"
    assert state.content.company_name == "PayRail"
    assert record.id == state.current_record_id
    assert state.records[0].hero_title == "Payments in one call"


def test_edit_accepts_snake_case_and_coerces_theme(store, fintech_page):
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")

    async def scenario():
        await lifecycle.on_new_content_model(state, _content(fintech_page))
        await lifecycle.on_edit(state, {"company_name": "PayRail Inc", "theme": "rainbow"})

    asyncio.run(scenario())

    assert state.content.company_name == "PayRail Inc"
    assert state.content.theme is Theme.DEFAULT


def test_edit_with_invalid_value_raises(store, fintech_page):
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")
    asyncio.run(lifecycle.on_new_content_model(state, _content(fintech_page)))

    with pytest.raises(ValidationError):
        asyncio.run(lifecycle.on_edit(state, {"features": "none"}))
    assert state.content == _content(fintech_page)


def test_edit_without_content_raises(store):
    lifecycle = PageLifecycleController(store)

    with pytest.raises(NoContentError):
        asyncio.run(lifecycle.on_edit(SessionState(session_id="s1"), {"theme": "saas"}))


def test_feature_edit(store, fintech_page):
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")

    async def scenario():
        await lifecycle.on_new_content_model(state, _content(fintech_page))
        await lifecycle.on_feature_edit(state, 1, title="Risk engine")

    asyncio.run(scenario())

    feature = state.content.features[1]
    assert feature.title == "Risk engine"
    assert feature.description == "Machine-learned risk scoring"
    assert state.records[0].features[1].title == "Risk engine"


def test_feature_edit_out_of_range(store, fintech_page):
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")
    asyncio.run(lifecycle.on_new_content_model(state, _content(fintech_page)))

    with pytest.raises(IndexError):
        asyncio.run(lifecycle.on_feature_edit(state, 3, title="Nope"))


def test_refresh_failure_keeps_cached_records(fintech_page):
    store = FlakyPersistenceGateway(set())
    lifecycle = PageLifecycleController(store)
    state = SessionState(session_id="s1")
    asyncio.run(lifecycle.on_new_content_model(state, _content(fintech_page)))
    store.failing.add("list")

    records = asyncio.run(lifecycle.refresh_records(state))

    assert len(records) == 1
    assert state.notifications[-1].level is NotificationLevel.ERROR
