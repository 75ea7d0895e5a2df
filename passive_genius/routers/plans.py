"""Plan detail endpoints: progress, rating, export and sharing."""

from __future__ import annotations

import re

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse

from ..dependencies import get_exporter, get_session, to_http_error
from ..errors import PassiveGeniusError
from ..export import PDFExporter, build_share_text, format_plan_markdown
from ..journey import AppSession
from ..schemas import PlanView, RatingRequest, SessionSnapshot, ShareResponse, TaskToggleResponse


router = APIRouter(prefix="/sessions/{session_id}", tags=["plans"])


def _filename(title: str, suffix: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-") or "plan"
    return f"{slug}-strategy.{suffix}"


@router.get("/plan", response_model=PlanView)
async def fetch_plan(session: AppSession = Depends(get_session)) -> PlanView:
    try:
        return session.plan_view()
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc


@router.post("/plan/tasks/{phase_index}/{task_index}", response_model=TaskToggleResponse)
async def toggle_task(
    phase_index: int,
    task_index: int,
    session: AppSession = Depends(get_session),
) -> TaskToggleResponse:
    try:
        return session.toggle_task(phase_index, task_index)
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc


@router.post("/plan/rating", response_model=SessionSnapshot)
async def rate_plan(payload: RatingRequest, session: AppSession = Depends(get_session)) -> SessionSnapshot:
    try:
        session.rate_plan(payload.rating)
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
    return session.snapshot()


@router.get("/plan/pdf")
async def export_pdf(
    session: AppSession = Depends(get_session),
    exporter: PDFExporter = Depends(get_exporter),
) -> Response:
    try:
        view = session.plan_view()
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
    pdf_bytes = await exporter.export_pdf(view.plan, view.idea.title)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{_filename(view.idea.title, "pdf")}"'},
    )


@router.get("/plan/markdown", response_class=PlainTextResponse)
async def export_markdown(session: AppSession = Depends(get_session)) -> PlainTextResponse:
    try:
        view = session.plan_view()
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
    return PlainTextResponse(format_plan_markdown(view.plan, view.idea.title), media_type="text/markdown")


@router.get("/share", response_model=ShareResponse)
async def share_idea(session: AppSession = Depends(get_session)) -> ShareResponse:
    """Return the share blob for the open idea; the client shares or copies it."""

    try:
        idea = session.require_selected_idea()
    except PassiveGeniusError as exc:
        raise to_http_error(exc) from exc
    return ShareResponse(title=idea.title, text=build_share_text(idea.title, idea.description))
