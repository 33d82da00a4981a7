"""
Session Models - conversation threads with their messages and component state.

A Session owns its messages, its current component and the append-only
component history. All mutations go through the methods below so the derived
metadata never drifts from the message log.
"""

from enum import Enum
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from .component import Component, ComponentCode, ComponentDraft, new_id, utcnow
from ..core.errors import (
    EditNotAllowed,
    MessageNotFound,
    RegenerateNotAllowed,
    SessionNotMutable,
)


class MessageType(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


class MessageMetadata(BaseModel):
    tokens: int = 0
    model: Optional[str] = None
    processing_time: Optional[int] = None  # milliseconds


class Message(BaseModel):
    """One turn in the conversation."""
    id: str = Field(default_factory=new_id)
    type: MessageType
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    component_code: Optional[ComponentCode] = None
    metadata: Optional[MessageMetadata] = None


class SessionSettings(BaseModel):
    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=2000, gt=0)


class SessionMetadata(BaseModel):
    """Derived from ``messages``; recomputed on every message mutation."""
    total_messages: int = 0
    total_tokens: int = 0
    last_activity: datetime = Field(default_factory=utcnow)


class Session(BaseModel):
    """A persisted conversation thread."""
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    user_id: str
    messages: List[Message] = Field(default_factory=list)
    current_component: Optional[Component] = None
    component_history: List[Component] = Field(default_factory=list)
    status: SessionStatus = SessionStatus.ACTIVE
    settings: SessionSettings = Field(default_factory=SessionSettings)
    metadata: SessionMetadata = Field(default_factory=SessionMetadata)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_mutable(self) -> bool:
        return self.status != SessionStatus.DELETED

    def _ensure_mutable(self) -> None:
        if not self.is_mutable:
            raise SessionNotMutable(self.id)

    def _touch(self) -> None:
        self.updated_at = utcnow()

    def refresh_metadata(self) -> None:
        """Recompute message count, token total and last activity."""
        self.metadata.total_messages = len(self.messages)
        self.metadata.total_tokens = sum(
            m.metadata.tokens if m.metadata else 0 for m in self.messages
        )
        self.metadata.last_activity = utcnow()
        self._touch()

    def find_message_index(self, message_id: str) -> int:
        """Index of the first message with ``message_id``."""
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                return index
        raise MessageNotFound(message_id)

    def get_message(self, message_id: str) -> Message:
        return self.messages[self.find_message_index(message_id)]

    def add_message(self, message: Message) -> Message:
        self._ensure_mutable()
        self.messages.append(message)
        self.refresh_metadata()
        return message

    def update_component(self, draft: ComponentDraft) -> Component:
        """
        Make ``draft`` the current component.
        The previous current component, if any, is pushed onto the history
        tagged with the next history version.
        """
        self._ensure_mutable()
        if self.current_component is not None:
            self.component_history.append(
                self.current_component.model_copy(
                    update={"version": len(self.component_history) + 1}
                )
            )

        self.current_component = Component(
            id=draft.id or new_id(),
            jsx=draft.jsx,
            css=draft.css,
            name=draft.name,
            description=draft.description,
            version=len(self.component_history) + 1,
        )
        self._touch()
        return self.current_component

    def delete_message(self, message_id: str) -> Message:
        self._ensure_mutable()
        removed = self.messages.pop(self.find_message_index(message_id))
        self.refresh_metadata()
        return removed

    def edit_message(self, message_id: str, content: str) -> Message:
        """Replace the content of a user message and refresh its timestamp."""
        self._ensure_mutable()
        message = self.get_message(message_id)
        if message.type != MessageType.USER:
            raise EditNotAllowed(message_id)
        message.content = content
        message.timestamp = utcnow()
        self.refresh_metadata()
        return message

    def truncate_after(self, message_id: str) -> Message:
        """
        Drop every message after the user message ``message_id``.

        Returns:
            The user message, now the last one in the log
        """
        self._ensure_mutable()
        index = self.find_message_index(message_id)
        message = self.messages[index]
        if message.type != MessageType.USER:
            raise RegenerateNotAllowed(message_id)
        del self.messages[index + 1:]
        self.refresh_metadata()
        return message

    def duplicate(self, name: Optional[str] = None) -> "Session":
        """Deep copy into a new session with a fresh identity and timestamps."""
        copy = Session(
            name=name or f"{self.name} (Copy)"[:200],
            user_id=self.user_id,
            messages=[m.model_copy(deep=True) for m in self.messages],
            current_component=(
                self.current_component.model_copy(deep=True)
                if self.current_component else None
            ),
            component_history=[c.model_copy(deep=True) for c in self.component_history],
            settings=self.settings.model_copy(deep=True),
        )
        copy.refresh_metadata()
        return copy


class SessionSettingsUpdate(BaseModel):
    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    max_tokens: Optional[int] = Field(default=None, gt=0)


class SessionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    settings: Optional[SessionSettingsUpdate] = None


class SessionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    settings: Optional[SessionSettingsUpdate] = None


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class MessageEdit(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class SessionList(BaseModel):
    sessions: List[Session]
    pagination: Pagination


class MessageList(BaseModel):
    messages: List[Message]
    pagination: Pagination
