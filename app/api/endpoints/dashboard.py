"""
Candidate dashboard, current-user lookup and the realtime candidate channel.
"""

import asyncio
import logging
from typing import Any, Dict, Optional
import redis
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from app.api.endpoints.candidates import activity_response, candidate_response
from app.core.database import get_db, get_session_factory
from app.core.deps import AuthContext, get_auth_context, require_candidate, resolve_auth_context, select_dashboard
from app.crud import activity_log
from app.crud import assessment as assessment_crud
from app.crud import candidate as candidate_crud
from app.models.profile import Profile, UserRole
from app.schemas.assessment import AssessmentResultResponse
from app.schemas.candidate import DashboardResponse
from app.schemas.pipeline import PipelineStateResponse, WizardStep
from app.schemas.user import MeResponse, ProfileResponse
from app.services.pipeline import resolve_pipeline, wizard_step_state
from app.services import realtime
from app.services.realtime import merge_candidate_event
from app.services.scoring import is_passing

router = APIRouter(tags=["Dashboard"])
logger = logging.getLogger(__name__)

WIZARD_STEPS = (
    (1, "Submit Application"),
    (2, "Complete Assessment"),
    (3, "Training Modules"),
    (4, "Manager Interview"),
)


def result_response(result) -> AssessmentResultResponse:
    response = AssessmentResultResponse.model_validate(result)
    response.passed = bool(result.completed) and is_passing(result.score)
    return response


@router.get("/me", response_model=MeResponse)
def read_me(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context)
):
    """Caller's profile and the dashboard view their role lands on."""
    profile = db.query(Profile).filter(Profile.id == auth.user_id).first()
    return MeResponse(
        profile=ProfileResponse.model_validate(profile),
        dashboard=select_dashboard(auth.role),
    )


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_candidate)
):
    """
    Everything the candidate dashboard shows: candidate record and pipeline
    state, latest 5 assessment results, latest 10 notifications and the
    hiring wizard.

    Raises:
        HTTPException 404: If the caller has no candidate record yet
    """
    candidate = candidate_crud.get_by_id(db, auth.user_id)
    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate record not found")

    candidate_data = candidate_response(candidate)
    current_step = candidate_data.pipeline.step

    return DashboardResponse(
        candidate=candidate_data,
        assessment_results=[result_response(r) for r in assessment_crud.get_latest_for_candidate(db, candidate.id)],
        notifications=[activity_response(e) for e in activity_log.get_notifications(db, candidate.id)],
        wizard=[
            WizardStep(id=step_id, title=title, state=wizard_step_state(step_id, current_step))
            for step_id, title in WIZARD_STEPS
        ],
    )


def _pipeline_message(event: str, state: Dict[str, Any]) -> Dict[str, Any]:
    pipeline = resolve_pipeline(
        status=state.get("status"),
        current_step=state.get("current_step"),
        resume=state.get("resume"),
        about_me_video=state.get("about_me_video"),
        sales_pitch_video=state.get("sales_pitch_video"),
    )
    return {
        "event": event,
        "candidate": state,
        "pipeline": PipelineStateResponse.from_state(pipeline).model_dump(),
    }


async def _watch_disconnect(websocket: WebSocket, queue: asyncio.Queue) -> None:
    """Drain client frames; a None on the queue tells the sender to stop."""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        queue.put_nowait(None)


async def _forward_changes(changes, queue: asyncio.Queue) -> None:
    """Move feed events onto the queue; stop the sender if the feed drops."""
    try:
        async for change in changes:
            queue.put_nowait(change)
    except redis.RedisError as e:
        logger.error(f"Change feed dropped: {e}")
    finally:
        queue.put_nowait(None)


def _open_channel(session_factory, token: str, candidate_id: str) -> Optional[Dict[str, Any]]:
    """
    Authorize a channel request and load the candidate's current row.

    Uses its own short session, closed before any events are streamed.

    Returns:
        The candidate row, or None when the caller may not watch it
    """
    db = session_factory()
    try:
        try:
            auth = resolve_auth_context(token, db)
        except HTTPException:
            return None

        if not auth.is_staff and auth.user_id != candidate_id:
            return None

        candidate = candidate_crud.get_by_id(db, candidate_id)
        if not candidate:
            return None
        if auth.role == UserRole.MANAGER and candidate.assigned_manager != auth.user_id:
            return None

        return candidate_crud.candidate_row(candidate)
    finally:
        db.close()


@router.websocket("/ws/candidates/{candidate_id}")
async def candidate_updates(
    websocket: WebSocket,
    candidate_id: str,
    token: str = Query(...),
    session_factory=Depends(get_session_factory)
):
    """
    Push a candidate's pipeline state whenever their row changes.

    Candidates may only watch themselves; staff may watch anyone they can
    open by id. The first message is the current state. Pushed rows are
    merged last-write-wins on `updated_at`, so an event older than what was
    already sent is dropped.
    """
    state = await run_in_threadpool(_open_channel, session_factory, token, candidate_id)
    if state is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    queue: asyncio.Queue = asyncio.Queue()
    try:
        async with realtime.change_feed.subscribe("candidates", candidate_id) as changes:
            forwarder = asyncio.ensure_future(_forward_changes(changes, queue))
            reader = asyncio.ensure_future(_watch_disconnect(websocket, queue))
            try:
                await websocket.send_json(_pipeline_message("SNAPSHOT", state))

                while True:
                    change = await queue.get()
                    if change is None:
                        break

                    if change.event == "DELETE":
                        await websocket.send_json({"event": "DELETE", "candidate": {"id": candidate_id}})
                        await websocket.close()
                        break

                    state, applied = merge_candidate_event(state, change.new)
                    if not applied:
                        logger.debug(f"Dropped stale update for candidate {candidate_id}")
                        continue
                    await websocket.send_json(_pipeline_message(change.event, state))
            except WebSocketDisconnect:
                logger.debug(f"Candidate channel {candidate_id} disconnected")
            finally:
                reader.cancel()
                forwarder.cancel()
                await asyncio.gather(reader, forwarder, return_exceptions=True)
    except redis.RedisError as e:
        logger.error(f"Change feed unavailable for candidate {candidate_id}: {e}")
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
