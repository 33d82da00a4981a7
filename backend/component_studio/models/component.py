"""
Component Models - generated UI artifacts and their generation metadata.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4
from pydantic import BaseModel, Field


def new_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ComponentDraft(BaseModel):
    """Parsed artifact before it is versioned into a session."""
    id: Optional[str] = None
    name: str
    description: str
    jsx: str
    css: str


class GenerationMetadata(BaseModel):
    """Accounting attached to every generate/refine result."""
    model: str
    tokens: int = 0
    processing_time: int = 0  # milliseconds
    temperature: float
    max_tokens: int


class GeneratedComponent(ComponentDraft):
    """Result of the generation pipeline."""
    metadata: GenerationMetadata


class ComponentCode(BaseModel):
    """Component snapshot embedded in an assistant message."""
    id: Optional[str] = None
    jsx: str
    css: str
    name: str
    description: str


class Component(BaseModel):
    """A versioned component owned by a session."""
    id: str = Field(default_factory=new_id)
    jsx: str
    css: str
    name: str
    description: str
    version: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=utcnow)
