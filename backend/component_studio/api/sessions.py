"""
Session API endpoints - CRUD, archive, duplicate and statistics.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_session_service
from ..models import Session, SessionCreate, SessionList, SessionStatus, SessionUpdate
from ..services.session_service import SessionService
from ..storage.session_storage import DEFAULT_SESSION_SORT, SESSION_SORT_KEYS
from ..utils.auth import get_current_user_id

router = APIRouter(prefix="/sessions", tags=["sessions"])

SORT_PATTERN = "^-?(" + "|".join(SESSION_SORT_KEYS) + ")$"


@router.post("", response_model=Session, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionCreate,
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    return await service.create_session(user_id, body.name, body.settings)


@router.get("", response_model=SessionList)
async def list_sessions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[SessionStatus] = Query(SessionStatus.ACTIVE, alias="status"),
    sort: str = Query(DEFAULT_SESSION_SORT, pattern=SORT_PATTERN),
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    """List the caller's sessions in one status; ``sort`` is a field name, ``-`` for descending."""
    sessions, pagination = await service.list_sessions(user_id, status_filter, page, limit, sort)
    return SessionList(sessions=sessions, pagination=pagination)


@router.get("/stats")
async def get_session_stats(
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    return await service.get_stats(user_id)


@router.get("/{session_id}", response_model=Session)
async def get_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    return await service.get_session(session_id, user_id)


@router.put("/{session_id}", response_model=Session)
async def update_session(
    session_id: str,
    body: SessionUpdate,
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    return await service.update_session(session_id, user_id, body.name, body.settings)


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    await service.delete_session(session_id, user_id)
    return {"success": True, "message": "Session deleted successfully"}


@router.put("/{session_id}/archive", response_model=Session)
async def archive_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    return await service.archive_session(session_id, user_id)


@router.post("/{session_id}/duplicate", response_model=Session, status_code=status.HTTP_201_CREATED)
async def duplicate_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    return await service.duplicate_session(session_id, user_id)
