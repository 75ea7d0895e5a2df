"""Session, onboarding and navigation endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response

from .. import journey
from ..dependencies import get_registry, get_session, to_http_error
from ..errors import PassiveGeniusError
from ..journey import AppSession, SessionRegistry
from ..schemas import (
    FavoriteToggleResponse,
    FeedbackRequest,
    IncomeIdea,
    ProfileUpdate,
    RefinementSubmission,
    SessionSnapshot,
    TabRequest,
    UserProfile,
)


router = APIRouter(tags=["sessions"])


@router.get("/health")
async def healthcheck() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}


@router.post("/sessions", response_model=SessionSnapshot, status_code=201)
async def create_session(registry: SessionRegistry = Depends(get_registry)) -> SessionSnapshot:
    """Start a session on the onboarding screen, pre-filled from the stored profile."""

    return registry.create().snapshot()


@router.get("/sessions/{session_id}", response_model=SessionSnapshot)
async def fetch_session(session: AppSession = Depends(get_session)) -> SessionSnapshot:
    return session.snapshot()


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> Response:
    try:
        registry.remove(session_id)
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
    return Response(status_code=204)


@router.put("/sessions/{session_id}/profile", response_model=UserProfile)
async def update_profile(payload: ProfileUpdate, session: AppSession = Depends(get_session)) -> UserProfile:
    try:
        return session.update_profile(payload)
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc


@router.post("/sessions/{session_id}/ideas", response_model=SessionSnapshot)
async def generate_ideas(session: AppSession = Depends(get_session)) -> SessionSnapshot:
    """Submit onboarding and wait for the generated ideas."""

    try:
        await journey.generate_ideas(session)
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
    return session.snapshot()


@router.post("/sessions/{session_id}/tab", response_model=SessionSnapshot)
async def switch_tab(payload: TabRequest, session: AppSession = Depends(get_session)) -> SessionSnapshot:
    try:
        session.switch_tab(payload.tab)
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
    return session.snapshot()


@router.post("/sessions/{session_id}/ideas/{idea_id}/select", response_model=SessionSnapshot)
async def select_idea(idea_id: str, session: AppSession = Depends(get_session)) -> SessionSnapshot:
    """Open an idea: refinement questions, or a plan when questions are unavailable."""

    try:
        await journey.select_idea(session, idea_id)
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
    return session.snapshot()


@router.post("/sessions/{session_id}/refinement", response_model=SessionSnapshot)
async def submit_refinement(
    payload: RefinementSubmission,
    session: AppSession = Depends(get_session),
) -> SessionSnapshot:
    try:
        await journey.submit_refinement(session, payload.answers)
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
    return session.snapshot()


@router.post("/sessions/{session_id}/saved", response_model=SessionSnapshot)
async def view_saved(session: AppSession = Depends(get_session)) -> SessionSnapshot:
    """Jump from onboarding to the saved ideas tab."""

    try:
        session.view_saved()
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
    return session.snapshot()


@router.post("/sessions/{session_id}/onboarding", response_model=SessionSnapshot)
async def return_to_onboarding(session: AppSession = Depends(get_session)) -> SessionSnapshot:
    try:
        session.return_to_onboarding()
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
    return session.snapshot()


@router.post("/sessions/{session_id}/back", response_model=SessionSnapshot)
async def go_back(session: AppSession = Depends(get_session)) -> SessionSnapshot:
    try:
        session.go_back()
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
    return session.snapshot()


@router.get("/sessions/{session_id}/favorites", response_model=List[IncomeIdea])
async def list_favorites(session: AppSession = Depends(get_session)) -> List[IncomeIdea]:
    return session.favorites()


@router.post("/sessions/{session_id}/favorites/{idea_id}", response_model=FavoriteToggleResponse)
async def toggle_favorite(idea_id: str, session: AppSession = Depends(get_session)) -> FavoriteToggleResponse:
    try:
        return session.toggle_favorite(idea_id)
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc


@router.post("/sessions/{session_id}/feedback", response_model=SessionSnapshot)
async def send_feedback(payload: FeedbackRequest, session: AppSession = Depends(get_session)) -> SessionSnapshot:
    session.record_feedback(payload)
    return session.snapshot()
