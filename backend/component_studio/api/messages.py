"""
Message API endpoints - send, list, edit, delete and regenerate.
"""

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ..dependencies import get_session_service
from ..models import Message, MessageCreate, MessageEdit, MessageList
from ..services.session_service import ExchangeResult, SessionService
from ..utils.auth import get_current_user_id

router = APIRouter(prefix="/sessions/{session_id}/messages", tags=["messages"])


def _exchange_response(result: ExchangeResult, success_message: str, failure_message: str):
    """
    200 with the new assistant turn and component, or 502 carrying the
    recorded fallback reply when generation failed.
    """
    session = result.session
    data = {
        "user_message": result.user_message,
        "assistant_message": result.assistant_message,
        "component": result.component,
        "session": {
            "id": session.id,
            "current_component": session.current_component,
            "metadata": session.metadata,
        },
    }
    if result.failed:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=jsonable_encoder({
                "success": False,
                "message": failure_message,
                "error": result.error,
                "data": data,
            }),
        )
    return {"success": True, "message": success_message, "data": data}


@router.post("")
async def send_message(
    session_id: str,
    body: MessageCreate,
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    """Send a prompt; generates a new component or refines the current one."""
    result = await service.send_message(session_id, user_id, body.content)
    return _exchange_response(
        result,
        "Message sent and processed successfully",
        "Failed to process AI request",
    )


@router.get("", response_model=MessageList)
async def list_messages(
    session_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    messages, pagination = await service.list_messages(session_id, user_id, page, limit)
    return MessageList(messages=messages, pagination=pagination)


@router.delete("/{message_id}")
async def delete_message(
    session_id: str,
    message_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    await service.delete_message(session_id, user_id, message_id)
    return {"success": True, "message": "Message deleted successfully"}


@router.put("/{message_id}", response_model=Message)
async def edit_message(
    session_id: str,
    message_id: str,
    body: MessageEdit,
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    return await service.edit_message(session_id, user_id, message_id, body.content)


@router.post("/{message_id}/regenerate")
async def regenerate_response(
    session_id: str,
    message_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
):
    """Drop everything after a user message and answer it again."""
    result = await service.regenerate_from(session_id, user_id, message_id)
    return _exchange_response(
        result,
        "Response regenerated successfully",
        "Failed to regenerate response",
    )
