"""
Session Service - persistence and orchestration around the Session state machine.

Invariants on messages, the current component and the component history live
on the Session model; this service loads the document, applies one or more
mutations, writes the whole document back and refreshes the cache.

Concurrent requests against the same session are not serialized: two
overlapping read-modify-write cycles can overwrite each other.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .generator import ComponentGenerator
from ..core.errors import (
    GenerationFailed,
    SessionAccessDenied,
    SessionNotFound,
    SessionNotMutable,
    StorageError,
)
from ..models.component import (
    Component, ComponentCode, ComponentDraft, GeneratedComponent, utcnow
)
from ..models.session import (
    Message,
    MessageMetadata,
    MessageType,
    Pagination,
    Session,
    SessionSettings,
    SessionSettingsUpdate,
    SessionStatus,
)
from ..storage.cache import CacheInterface, SafeCache
from ..storage.session_storage import DEFAULT_SESSION_SORT, SessionStorage
from ..storage.user_storage import UserStorage

logger = logging.getLogger(__name__)

SEND_FALLBACK_REPLY = (
    "I apologize, but I encountered an error while processing your request. "
    "Please try again with a different prompt or check your message."
)
REGENERATE_FALLBACK_REPLY = (
    "I apologize, but I encountered an error while regenerating the response. "
    "Please try again."
)


@dataclass
class ExchangeResult:
    """Outcome of a send or regenerate request."""
    session: Session
    assistant_message: Message
    user_message: Optional[Message] = None
    component: Optional[GeneratedComponent] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def paginate(total: int, page: int, limit: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)


class SessionService:
    """Owns the lifecycle of sessions and the messages inside them."""

    def __init__(
        self,
        store: SessionStorage,
        generator: ComponentGenerator,
        cache: Optional[CacheInterface] = None,
        user_store: Optional[UserStorage] = None,
        default_settings: Optional[SessionSettings] = None,
        cache_ttl: int = 3600,
    ):
        self.store = store
        self.generator = generator
        self.cache = SafeCache(cache) if cache is not None else None
        self.user_store = user_store
        self.default_settings = default_settings or SessionSettings()
        self.cache_ttl = cache_ttl

    # ------------------------------------------------------------------
    # persistence helpers

    @staticmethod
    def _cache_key(session_id: str) -> str:
        return f"session:{session_id}"

    async def _cache_session(self, session: Session) -> None:
        if self.cache is not None:
            await self.cache.set(self._cache_key(session.id), session.model_dump_json(), self.cache_ttl)

    async def _evict(self, session_id: str) -> None:
        if self.cache is not None:
            await self.cache.delete(self._cache_key(session_id))

    async def _persist(self, session: Session) -> Session:
        await self.store.save(session)
        await self._cache_session(session)
        return session

    async def _load_owned(self, session_id: str, user_id: str) -> Session:
        """Load from the store (never the cache) for read-modify-write."""
        session = await self.store.get(session_id)
        if session is None or session.user_id != user_id:
            raise SessionNotFound(session_id)
        return session

    async def _bump_usage(self, user_id: str, **counters: int) -> None:
        if self.user_store is None:
            return
        try:
            await self.user_store.increment_usage(user_id, **counters)
        except StorageError as e:
            logger.warning(f"Failed to update usage for user {user_id}: {e}")

    # ------------------------------------------------------------------
    # session CRUD

    async def create_session(
        self,
        user_id: str,
        name: str,
        settings: Optional[SessionSettingsUpdate] = None,
    ) -> Session:
        merged = self.default_settings.model_copy(
            update=settings.model_dump(exclude_none=True) if settings else {}
        )
        session = Session(name=name, user_id=user_id, settings=merged)
        await self._persist(session)
        await self._bump_usage(user_id, sessions=1)
        logger.info(f"New session created: {session.id} by user: {user_id}")
        return session

    async def get_session(self, session_id: str, user_id: str) -> Session:
        """Cache first, then the store."""
        if self.cache is not None:
            cached = await self.cache.get(self._cache_key(session_id))
            if cached:
                try:
                    session = Session.model_validate_json(cached)
                except ValidationError:
                    logger.warning(f"Discarding unreadable cache entry for session {session_id}")
                    await self._evict(session_id)
                else:
                    if session.user_id != user_id:
                        raise SessionAccessDenied(session_id)
                    return session

        session = await self._load_owned(session_id, user_id)
        await self._cache_session(session)
        return session

    async def list_sessions(
        self,
        user_id: str,
        status: Optional[SessionStatus] = SessionStatus.ACTIVE,
        page: int = 1,
        limit: int = 20,
        sort: str = DEFAULT_SESSION_SORT,
    ) -> Tuple[List[Session], Pagination]:
        sessions = await self.store.list_by_user(user_id, status, sort)
        start = (page - 1) * limit
        return sessions[start:start + limit], paginate(len(sessions), page, limit)

    async def update_session(
        self,
        session_id: str,
        user_id: str,
        name: Optional[str] = None,
        settings: Optional[SessionSettingsUpdate] = None,
    ) -> Session:
        session = await self._load_owned(session_id, user_id)
        if not session.is_mutable:
            raise SessionNotMutable(session_id)
        if name:
            session.name = name
        if settings:
            session.settings = session.settings.model_copy(
                update=settings.model_dump(exclude_none=True)
            )
        session.updated_at = utcnow()
        await self._persist(session)
        logger.info(f"Session updated: {session_id} by user: {user_id}")
        return session

    async def archive_session(self, session_id: str, user_id: str) -> Session:
        session = await self._load_owned(session_id, user_id)
        if not session.is_mutable:
            raise SessionNotMutable(session_id)
        session.status = SessionStatus.ARCHIVED
        await self._persist(session)
        logger.info(f"Session archived: {session_id} by user: {user_id}")
        return session

    async def delete_session(self, session_id: str, user_id: str) -> Session:
        """Soft delete: the document stays, marked ``deleted``."""
        session = await self._load_owned(session_id, user_id)
        session.status = SessionStatus.DELETED
        await self.store.save(session)
        await self._evict(session_id)
        logger.info(f"Session deleted: {session_id} by user: {user_id}")
        return session

    async def duplicate_session(self, session_id: str, user_id: str) -> Session:
        original = await self._load_owned(session_id, user_id)
        copy = original.duplicate()
        await self._persist(copy)
        logger.info(f"Session duplicated: {session_id} -> {copy.id} by user: {user_id}")
        return copy

    async def get_stats(self, user_id: str) -> Dict[str, Any]:
        """Per-status counts and totals plus the five most recently active sessions."""
        sessions = await self.store.list_by_user(user_id, status=None, sort="-last_activity")
        stats: Dict[str, Dict[str, int]] = {}
        for session in sessions:
            bucket = stats.setdefault(
                session.status.value, {"count": 0, "total_messages": 0, "total_tokens": 0}
            )
            bucket["count"] += 1
            bucket["total_messages"] += session.metadata.total_messages
            bucket["total_tokens"] += session.metadata.total_tokens

        recent_activity = [
            {
                "id": s.id,
                "name": s.name,
                "last_activity": s.metadata.last_activity,
                "total_messages": s.metadata.total_messages,
            }
            for s in sessions[:5]
        ]
        return {"stats": stats, "recent_activity": recent_activity}

    # ------------------------------------------------------------------
    # state machine operations

    async def add_message(self, session_id: str, user_id: str, message: Message) -> Message:
        session = await self._load_owned(session_id, user_id)
        session.add_message(message)
        await self._persist(session)
        return message

    async def update_component(
        self, session_id: str, user_id: str, draft: ComponentDraft
    ) -> Component:
        session = await self._load_owned(session_id, user_id)
        component = session.update_component(draft)
        await self._persist(session)
        return component

    async def list_messages(
        self,
        session_id: str,
        user_id: str,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[Message], Pagination]:
        session = await self.get_session(session_id, user_id)
        start = (page - 1) * limit
        return session.messages[start:start + limit], paginate(len(session.messages), page, limit)

    async def delete_message(self, session_id: str, user_id: str, message_id: str) -> Message:
        session = await self._load_owned(session_id, user_id)
        removed = session.delete_message(message_id)
        await self._persist(session)
        logger.info(f"Message deleted: {message_id} from session: {session_id}")
        return removed

    async def edit_message(
        self, session_id: str, user_id: str, message_id: str, content: str
    ) -> Message:
        session = await self._load_owned(session_id, user_id)
        message = session.edit_message(message_id, content)
        await self._persist(session)
        logger.info(f"Message edited: {message_id} in session: {session_id}")
        return message

    async def send_message(self, session_id: str, user_id: str, content: str) -> ExchangeResult:
        """
        Record the user's turn, then generate or refine the session's component.

        The user turn and its reply are written in a single save, so a failed
        write never leaves the user turn stored without an answer. If
        generation fails, a fallback assistant reply is recorded and returned
        with ``error`` set.
        """
        session = await self._load_owned(session_id, user_id)
        history = list(session.messages)
        user_message = session.add_message(Message(type=MessageType.USER, content=content))

        result = await self._respond(session, content, history, SEND_FALLBACK_REPLY)
        result.user_message = user_message
        if not result.failed:
            logger.info(
                f"Message processed for session: {session_id}, "
                f"tokens used: {result.component.metadata.tokens}"
            )
        return result

    async def regenerate_from(self, session_id: str, user_id: str, message_id: str) -> ExchangeResult:
        """
        Discard everything after the user message ``message_id`` and answer it again,
        using only the messages before it as context.
        The truncation is saved together with the new reply.
        """
        session = await self._load_owned(session_id, user_id)
        user_message = session.truncate_after(message_id)
        history = session.messages[:-1]

        result = await self._respond(session, user_message.content, history, REGENERATE_FALLBACK_REPLY)
        result.user_message = user_message
        if not result.failed:
            logger.info(f"Response regenerated for message: {message_id} in session: {session_id}")
        return result

    async def _respond(
        self,
        session: Session,
        prompt: str,
        history: List[Message],
        fallback_reply: str,
    ) -> ExchangeResult:
        refining = session.current_component is not None
        try:
            if refining:
                generated = await self.generator.refine_component(
                    prompt, session.current_component, history, session.settings
                )
            else:
                generated = await self.generator.generate_component(
                    prompt, history, session.settings
                )
        except GenerationFailed as e:
            logger.error(f"AI processing error for session {session.id}: {e}")
            error_message = session.add_message(
                Message(type=MessageType.ASSISTANT, content=fallback_reply)
            )
            await self._persist(session)
            return ExchangeResult(session=session, assistant_message=error_message, error=str(e))

        component = session.update_component(generated)
        assistant_message = session.add_message(Message(
            type=MessageType.ASSISTANT,
            content=(
                f"I've {'refined' if refining else 'created'} the {generated.name} "
                f"component for you! {generated.description}"
            ),
            component_code=ComponentCode(
                id=component.id,
                jsx=component.jsx,
                css=component.css,
                name=component.name,
                description=component.description,
            ),
            metadata=MessageMetadata(
                tokens=generated.metadata.tokens,
                model=generated.metadata.model,
                processing_time=generated.metadata.processing_time,
            ),
        ))
        await self._persist(session)
        await self._bump_usage(session.user_id, components=1, tokens=generated.metadata.tokens)

        return ExchangeResult(
            session=session,
            assistant_message=assistant_message,
            component=generated,
        )
