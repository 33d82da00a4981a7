"""Models module."""

from .user import (
    User, UserCreate, UserUpdate, UserInDB, UserUsage, PasswordChange, AccountDelete, Token, TokenData
)
from .component import (
    Component, ComponentCode, ComponentDraft, GeneratedComponent, GenerationMetadata
)
from .session import (
    Message, MessageType, MessageMetadata, MessageCreate, MessageEdit, MessageList,
    Session, SessionStatus, SessionSettings, SessionSettingsUpdate, SessionMetadata,
    SessionCreate, SessionUpdate, SessionList, Pagination,
)

__all__ = [
    'User', 'UserCreate', 'UserUpdate', 'UserInDB', 'UserUsage',
    'PasswordChange', 'AccountDelete', 'Token', 'TokenData',
    'Component', 'ComponentCode', 'ComponentDraft', 'GeneratedComponent', 'GenerationMetadata',
    'Message', 'MessageType', 'MessageMetadata', 'MessageCreate', 'MessageEdit', 'MessageList',
    'Session', 'SessionStatus', 'SessionSettings', 'SessionSettingsUpdate', 'SessionMetadata',
    'SessionCreate', 'SessionUpdate', 'SessionList', 'Pagination',
]
