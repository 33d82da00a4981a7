"""
Session Storage - one JSON document per session.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from .interface import StorageInterface
from ..core.errors import StorageError
from ..models.session import Session, SessionStatus

logger = logging.getLogger(__name__)

DEFAULT_SESSION_SORT = "-updated_at"
SESSION_SORT_KEYS: Dict[str, Callable[[Session], object]] = {
    "updated_at": lambda s: s.updated_at,
    "created_at": lambda s: s.created_at,
    "last_activity": lambda s: s.metadata.last_activity,
    "name": lambda s: s.name.lower(),
}


def parse_sort(sort: str) -> Tuple[str, bool]:
    """
    Split ``"-field"`` / ``"field"`` into the field name and a descending flag.

    Raises:
        ValueError: if the field is not sortable
    """
    descending = sort.startswith("-")
    field = sort[1:] if descending else sort
    if field not in SESSION_SORT_KEYS:
        raise ValueError(f"Unsupported sort field: {field}")
    return field, descending


class SessionStorage:
    """
    Persists Session documents under ``sessions/<id>.json``.
    Every write replaces the whole document; there are no multi-document writes.
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.sessions_dir = "sessions"

    def _path(self, session_id: str) -> str:
        return f"{self.sessions_dir}/{session_id}.json"

    async def save(self, session: Session) -> Session:
        """
        Write the session document.

        Raises:
            StorageError: if the backend could not persist the document
        """
        ok = await self.storage.save(self._path(session.id), session.model_dump_json(indent=2))
        if not ok:
            raise StorageError(f"Failed to persist session {session.id}")
        return session

    async def get(self, session_id: str) -> Optional[Session]:
        content = await self.storage.load(self._path(session_id))
        if content is None:
            return None
        try:
            return Session.model_validate_json(content)
        except ValidationError as e:
            logger.error(f"Corrupt session document {session_id}: {e}")
            return None

    async def list_by_user(
        self,
        user_id: str,
        status: Optional[SessionStatus] = SessionStatus.ACTIVE,
        sort: str = DEFAULT_SESSION_SORT,
    ) -> List[Session]:
        """
        Sessions owned by ``user_id``.

        Args:
            user_id: Owner
            status: Only sessions in this status; None for every status
            sort: Field name, prefixed with ``-`` for descending order
        """
        field, descending = parse_sort(sort)
        sessions = []
        for path in await self.storage.list(self.sessions_dir, pattern="*.json"):
            content = await self.storage.load(path)
            if content is None:
                continue
            try:
                session = Session.model_validate_json(content)
            except ValidationError:
                logger.warning(f"Skipping unreadable session document {path}")
                continue
            if session.user_id != user_id:
                continue
            if status is not None and session.status != status:
                continue
            sessions.append(session)

        sessions.sort(key=SESSION_SORT_KEYS[field], reverse=descending)
        return sessions
