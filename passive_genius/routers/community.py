"""Community hub endpoints backed by the session's mock channels."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends

from ..dependencies import get_session, to_http_error
from ..errors import PassiveGeniusError
from ..journey import AppSession
from ..schemas import ChatMessage, CommunityChannel, MessageRequest


router = APIRouter(prefix="/sessions/{session_id}/community", tags=["community"])


@router.get("/channels", response_model=List[CommunityChannel])
async def list_channels(q: Optional[str] = None, session: AppSession = Depends(get_session)) -> List[CommunityChannel]:
    return session.community.list_channels(q)


@router.get("/channels/{channel_id}", response_model=CommunityChannel)
async def fetch_channel(channel_id: str, session: AppSession = Depends(get_session)) -> CommunityChannel:
    try:
        return session.community.get_channel(channel_id)
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc


@router.post("/channels/{channel_id}/messages", response_model=ChatMessage, status_code=201)
async def post_message(
    channel_id: str,
    payload: MessageRequest,
    session: AppSession = Depends(get_session),
) -> ChatMessage:
    try:
        return session.community.post_message(channel_id, payload.text)
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
