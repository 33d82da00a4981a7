"""
Tests for session persistence and the send/regenerate flows.
"""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, patch

from component_studio.core.errors import (
    MessageNotFound,
    RegenerateNotAllowed,
    SessionAccessDenied,
    SessionNotFound,
    SessionNotMutable,
    StorageError,
)
from component_studio.models import (
    ComponentDraft,
    Message,
    MessageType,
    SessionSettingsUpdate,
    SessionStatus,
)
from component_studio.services.session_service import (
    REGENERATE_FALLBACK_REPLY,
    SEND_FALLBACK_REPLY,
    SessionService,
    paginate,
)
from component_studio.storage.session_storage import SessionStorage


USER_ID = "user-1"


@pytest_asyncio.fixture
async def registered_user(user_storage):
    return await user_storage.create_user(USER_ID, "alice", "hashed")


def test_paginate():
    pagination = paginate(total=41, page=2, limit=20)
    assert pagination.pages == 3
    assert pagination.total == 41
    assert paginate(0, 1, 20).pages == 0


class TestSessionCrud:

    @pytest.mark.asyncio
    async def test_create_applies_default_and_requested_settings(self, session_service):
        session = await session_service.create_session(
            USER_ID, "Forms", SessionSettingsUpdate(temperature=0.2)
        )

        assert session.settings.model == "gpt-4o-mini"
        assert session.settings.temperature == 0.2
        assert session.status == SessionStatus.ACTIVE

        stored = await session_service.store.get(session.id)
        assert stored.name == "Forms"

    @pytest.mark.asyncio
    async def test_get_session_served_from_cache(self, session_service):
        session = await session_service.create_session(USER_ID, "Cards")
        assert await session_service.cache.exists(f"session:{session.id}")

        fetched = await session_service.get_session(session.id, USER_ID)
        assert fetched.id == session.id

    @pytest.mark.asyncio
    async def test_get_session_other_owner_in_cache(self, session_service):
        session = await session_service.create_session(USER_ID, "Cards")
        with pytest.raises(SessionAccessDenied):
            await session_service.get_session(session.id, "intruder")

    @pytest.mark.asyncio
    async def test_get_session_other_owner_in_store(self, storage, generator):
        service = SessionService(SessionStorage(storage), generator)
        session = await service.create_session(USER_ID, "Cards")

        with pytest.raises(SessionNotFound):
            await service.get_session(session.id, "intruder")

    @pytest.mark.asyncio
    async def test_get_missing_session(self, session_service):
        with pytest.raises(SessionNotFound):
            await session_service.get_session("nope", USER_ID)

    @pytest.mark.asyncio
    async def test_list_sessions_paginates_by_activity(self, session_service):
        first = await session_service.create_session(USER_ID, "First")
        await session_service.create_session(USER_ID, "Second")
        await session_service.create_session(USER_ID, "Third")
        await session_service.create_session("someone-else", "Other")
        await session_service.add_message(first.id, USER_ID, Message(type=MessageType.USER, content="hi"))

        sessions, pagination = await session_service.list_sessions(USER_ID, page=1, limit=2)

        assert pagination.total == 3
        assert pagination.pages == 2
        assert len(sessions) == 2
        assert sessions[0].id == first.id

    @pytest.mark.asyncio
    async def test_update_session(self, session_service):
        session = await session_service.create_session(USER_ID, "Old")
        updated = await session_service.update_session(
            session.id, USER_ID, name="New", settings=SessionSettingsUpdate(model="gpt-4")
        )

        assert updated.name == "New"
        assert updated.settings.model == "gpt-4"
        assert updated.settings.temperature == 0.7

    @pytest.mark.asyncio
    async def test_archive_moves_session_out_of_active_list(self, session_service):
        session = await session_service.create_session(USER_ID, "Archive me")
        await session_service.archive_session(session.id, USER_ID)

        active, _ = await session_service.list_sessions(USER_ID)
        archived, _ = await session_service.list_sessions(USER_ID, SessionStatus.ARCHIVED)
        assert active == []
        assert [s.id for s in archived] == [session.id]

    @pytest.mark.asyncio
    async def test_delete_is_soft_and_evicts_cache(self, session_service):
        session = await session_service.create_session(USER_ID, "Doomed")
        await session_service.delete_session(session.id, USER_ID)

        assert not await session_service.cache.exists(f"session:{session.id}")
        stored = await session_service.store.get(session.id)
        assert stored.status == SessionStatus.DELETED

        with pytest.raises(SessionNotMutable):
            await session_service.send_message(session.id, USER_ID, "hello?")
        with pytest.raises(SessionNotMutable):
            await session_service.update_session(session.id, USER_ID, name="Revived")

    @pytest.mark.asyncio
    async def test_duplicate_session(self, session_service):
        session = await session_service.create_session(USER_ID, "Original")
        await session_service.send_message(session.id, USER_ID, "a button")

        copy = await session_service.duplicate_session(session.id, USER_ID)

        assert copy.name == "Original (Copy)"
        assert copy.id != session.id
        assert len(copy.messages) == 2
        assert copy.current_component is not None
        assert await session_service.store.get(copy.id) is not None

    @pytest.mark.asyncio
    async def test_stats(self, session_service):
        first = await session_service.create_session(USER_ID, "One")
        second = await session_service.create_session(USER_ID, "Two")
        await session_service.send_message(first.id, USER_ID, "a button")
        await session_service.archive_session(second.id, USER_ID)

        result = await session_service.get_stats(USER_ID)

        assert result["stats"]["active"] == {"count": 1, "total_messages": 2, "total_tokens": 42}
        assert result["stats"]["archived"]["count"] == 1
        assert len(result["recent_activity"]) == 2


class TestSendMessage:

    @pytest.mark.asyncio
    async def test_first_message_generates(self, session_service, registered_user):
        session = await session_service.create_session(USER_ID, "Buttons")

        result = await session_service.send_message(session.id, USER_ID, "a primary button")

        assert not result.failed
        assert result.user_message.content == "a primary button"
        assert result.assistant_message.content.startswith("I've created the PrimaryButton component")
        assert result.assistant_message.component_code.name == "PrimaryButton"
        assert result.assistant_message.metadata.tokens == 42
        assert result.session.current_component.version == 1
        assert result.session.metadata.total_messages == 2
        assert result.session.metadata.total_tokens == 42

        stored = await session_service.store.get(session.id)
        assert [m.type for m in stored.messages] == [MessageType.USER, MessageType.ASSISTANT]

    @pytest.mark.asyncio
    async def test_second_message_refines(self, session_service, provider):
        session = await session_service.create_session(USER_ID, "Buttons")
        await session_service.send_message(session.id, USER_ID, "a primary button")

        result = await session_service.send_message(session.id, USER_ID, "make it red")

        assert result.assistant_message.content.startswith("I've refined the PrimaryButton component")
        assert result.session.current_component.version == 2
        assert len(result.session.component_history) == 1
        assert result.session.component_history[0].version == 1
        assert result.session.metadata.total_messages == 4

        sent = provider.chat_completion.call_args.args[0]
        assert sent[0].content.startswith("You are refining an existing React component")
        assert [m.content for m in sent[1:-1]] == [
            "a primary button",
            result.session.messages[1].content,
        ]
        assert sent[-1].content == "make it red"

    @pytest.mark.asyncio
    async def test_usage_counters_updated(self, session_service, user_storage, registered_user):
        session = await session_service.create_session(USER_ID, "Buttons")
        await session_service.send_message(session.id, USER_ID, "a primary button")

        user = await user_storage.get_user(USER_ID)
        assert user.usage.total_sessions == 1
        assert user.usage.total_components == 1
        assert user.usage.total_tokens == 42

    @pytest.mark.asyncio
    async def test_generation_failure_records_fallback(self, session_service, provider):
        session = await session_service.create_session(USER_ID, "Buttons")
        provider.chat_completion.side_effect = RuntimeError("upstream down")

        result = await session_service.send_message(session.id, USER_ID, "a primary button")

        assert result.failed
        assert "upstream down" in result.error
        assert result.component is None
        assert result.assistant_message.content == SEND_FALLBACK_REPLY

        stored = await session_service.store.get(session.id)
        assert [m.content for m in stored.messages] == ["a primary button", SEND_FALLBACK_REPLY]
        assert stored.current_component is None

    @pytest.mark.asyncio
    async def test_unknown_session(self, session_service):
        with pytest.raises(SessionNotFound):
            await session_service.send_message("missing", USER_ID, "hello")

    @pytest.mark.asyncio
    async def test_failed_save_leaves_no_unanswered_turn(self, session_service):
        session = await session_service.create_session(USER_ID, "Buttons")

        with patch.object(session_service.store, "save", AsyncMock(side_effect=StorageError("disk full"))):
            with pytest.raises(StorageError):
                await session_service.send_message(session.id, USER_ID, "a primary button")

        stored = await session_service.store.get(session.id)
        assert stored.messages == []

    @pytest.mark.asyncio
    async def test_regenerate_failed_save_keeps_previous_exchange(self, session_service):
        session = await session_service.create_session(USER_ID, "Buttons")
        first = await session_service.send_message(session.id, USER_ID, "a primary button")

        with patch.object(session_service.store, "save", AsyncMock(side_effect=StorageError("disk full"))):
            with pytest.raises(StorageError):
                await session_service.regenerate_from(session.id, USER_ID, first.user_message.id)

        stored = await session_service.store.get(session.id)
        assert [m.id for m in stored.messages] == [first.user_message.id, first.assistant_message.id]


class TestMessageOperations:

    @pytest.mark.asyncio
    async def test_regenerate_truncates_and_answers_again(self, session_service, provider):
        session = await session_service.create_session(USER_ID, "Buttons")
        first = await session_service.send_message(session.id, USER_ID, "a primary button")
        await session_service.send_message(session.id, USER_ID, "make it red")

        result = await session_service.regenerate_from(session.id, USER_ID, first.user_message.id)

        assert not result.failed
        assert [m.type for m in result.session.messages] == [MessageType.USER, MessageType.ASSISTANT]
        assert result.session.messages[0].id == first.user_message.id
        assert result.session.current_component.version == 3

        sent = provider.chat_completion.call_args.args[0]
        assert [m.role for m in sent] == ["system", "user"]
        assert sent[-1].content == "a primary button"

    @pytest.mark.asyncio
    async def test_regenerate_failure_records_fallback(self, session_service, provider):
        session = await session_service.create_session(USER_ID, "Buttons")
        first = await session_service.send_message(session.id, USER_ID, "a primary button")
        provider.chat_completion.side_effect = RuntimeError("rate limited")

        result = await session_service.regenerate_from(session.id, USER_ID, first.user_message.id)

        assert result.failed
        assert result.assistant_message.content == REGENERATE_FALLBACK_REPLY
        assert len(result.session.messages) == 2

    @pytest.mark.asyncio
    async def test_regenerate_from_assistant_rejected(self, session_service):
        session = await session_service.create_session(USER_ID, "Buttons")
        sent = await session_service.send_message(session.id, USER_ID, "a primary button")

        with pytest.raises(RegenerateNotAllowed):
            await session_service.regenerate_from(session.id, USER_ID, sent.assistant_message.id)

    @pytest.mark.asyncio
    async def test_edit_and_delete_messages(self, session_service):
        session = await session_service.create_session(USER_ID, "Buttons")
        sent = await session_service.send_message(session.id, USER_ID, "a primary button")

        edited = await session_service.edit_message(session.id, USER_ID, sent.user_message.id, "a big button")
        assert edited.content == "a big button"

        await session_service.delete_message(session.id, USER_ID, sent.assistant_message.id)
        messages, pagination = await session_service.list_messages(session.id, USER_ID)
        assert [m.content for m in messages] == ["a big button"]
        assert pagination.total == 1

        with pytest.raises(MessageNotFound):
            await session_service.delete_message(session.id, USER_ID, sent.assistant_message.id)

    @pytest.mark.asyncio
    async def test_update_component_versions(self, session_service):
        session = await session_service.create_session(USER_ID, "Manual")
        draft = ComponentDraft(name="A", description="d", jsx="function A() {}", css=".a {}")

        await session_service.update_component(session.id, USER_ID, draft)
        component = await session_service.update_component(session.id, USER_ID, draft)

        assert component.version == 2
        stored = await session_service.store.get(session.id)
        assert len(stored.component_history) == 1
