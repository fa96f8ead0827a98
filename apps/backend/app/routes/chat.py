from typing import List

from fastapi import APIRouter, Depends, Query, Request

from app.core.auth import require_admin
from app.core.errors import AppError
from app.deps import client_info, get_chat, http_error
from app.schemas.chat import (
    MessageExchangeOut,
    MessageIn,
    SessionCreate,
    SessionEventIn,
    SessionOut,
    SessionStats,
)
from app.schemas.events import StoredEvent
from app.services.chat import ChatService, message_out, session_out

router = APIRouter()
admin = [Depends(require_admin)]


@router.post("/session", response_model=SessionOut, status_code=201)
def create_session(body: SessionCreate, request: Request, chat: ChatService = Depends(get_chat)):
    user_agent, ip_address = client_info(request)
    try:
        session = chat.create_session(body.tenant_id, body.session_id, user_agent, ip_address)
    except AppError as e:
        raise http_error(e) from e
    return session_out(session)


@router.get("/session/{session_id}", response_model=SessionOut, dependencies=admin)
def get_session(session_id: str, chat: ChatService = Depends(get_chat)):
    try:
        return session_out(chat.get_session(session_id))
    except AppError as e:
        raise http_error(e) from e


@router.post("/message", response_model=MessageExchangeOut)
def send_message(body: MessageIn, request: Request, chat: ChatService = Depends(get_chat)):
    user_agent, ip_address = client_info(request)
    try:
        user_msg, assistant_msg = chat.send_message(
            body.session_id, body.message, body.sender, user_agent, ip_address
        )
    except AppError as e:
        raise http_error(e) from e

    return MessageExchangeOut(
        user_message=message_out(user_msg),
        assistant_message=message_out(assistant_msg) if assistant_msg else None,
        session_id=user_msg.session_id,
    )


@router.post("/event", response_model=StoredEvent)
def log_session_event(body: SessionEventIn, request: Request, chat: ChatService = Depends(get_chat)):
    user_agent, ip_address = client_info(request)
    try:
        return chat.log_event(body.session_id, body.event_type, body.event_data, user_agent, ip_address)
    except AppError as e:
        raise http_error(e) from e


@router.get("/tenant/{tenant_id}/sessions", response_model=List[SessionOut], dependencies=admin)
def tenant_sessions(
    tenant_id: str,
    limit: int = Query(default=50, ge=1, le=1000),
    chat: ChatService = Depends(get_chat),
):
    return [session_out(s) for s in chat.sessions_for_tenant(tenant_id, limit)]


@router.get("/tenant/{tenant_id}/stats", response_model=SessionStats, dependencies=admin)
def tenant_session_stats(tenant_id: str, chat: ChatService = Depends(get_chat)):
    return chat.session_stats(tenant_id)
