"""
Treatment session endpoints.

All handlers are ``async`` so the single session store is only mutated from
the event loop thread.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response

from ...application.ports.services.recommendation_service import ProtocolRecommendationService
from ...application.session_store import SessionStore
from ...application.use_cases.recommend_protocol import RecommendProtocolUseCase
from ...core.constants import find_point, find_protocol
from ...domain.errors import ResetNotConfirmedError, UnknownPointError, UnknownProtocolError
from ..deps import get_recommendation_service, get_session_store
from ..errors import SummaryNotAvailableError
from ..schemas.common import ApiResponse
from ..schemas.session import (
    PatientIntakeRequest,
    ProtocolSelectRequest,
    RecommendationResponse,
    ResetRequest,
    SessionStateResponse,
    ToggleResponse,
    ViewRequest,
)
from ..utils.responses import ok

router = APIRouter(prefix="/session", tags=["session"])
logger = logging.getLogger(__name__)


def _state_response(store: SessionStore) -> SessionStateResponse:
    return SessionStateResponse(state=store.snapshot(), **store.status())


@router.get("", response_model=ApiResponse[SessionStateResponse])
async def get_session(request: Request, store: SessionStore = Depends(get_session_store)):
    return ok(request, data=_state_response(store))


@router.post("/patient", response_model=ApiResponse[SessionStateResponse])
async def submit_patient(
    request: Request,
    payload: PatientIntakeRequest,
    store: SessionStore = Depends(get_session_store),
):
    """Submit the intake form and advance to protocol selection."""
    store.submit_patient(payload.to_record())
    return ok(request, data=_state_response(store), message="Patient submitted")


@router.get("/recommendation", response_model=ApiResponse[RecommendationResponse])
async def recommend_protocol(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    service: ProtocolRecommendationService = Depends(get_recommendation_service),
):
    recommendation = await RecommendProtocolUseCase(store, service).execute()
    protocol = find_protocol(recommendation.protocol_id)
    return ok(request, data=RecommendationResponse(
        protocol_id=recommendation.protocol_id,
        protocol_name=protocol.name if protocol else recommendation.protocol_id,
        reasoning=recommendation.reasoning,
        source=recommendation.source,
    ))


@router.post("/protocol", response_model=ApiResponse[SessionStateResponse])
async def select_protocol(
    request: Request,
    payload: ProtocolSelectRequest,
    store: SessionStore = Depends(get_session_store),
):
    protocol = find_protocol(payload.protocol_id)
    if protocol is None:
        raise UnknownProtocolError(payload.protocol_id)
    store.select_protocol(protocol)
    return ok(request, data=_state_response(store), message=f"Protocol {protocol.id} selected")


@router.post("/points/{point_id}/toggle", response_model=ApiResponse[ToggleResponse])
async def toggle_point(
    request: Request,
    point_id: str,
    store: SessionStore = Depends(get_session_store),
):
    if find_point(point_id) is None:
        raise UnknownPointError(point_id)
    applied = store.toggle_point(point_id)
    return ok(request, data=ToggleResponse(
        point_id=point_id,
        applied=applied,
        applied_points=list(store.state.applied_points),
    ))


@router.post("/finalize", response_model=ApiResponse[dict])
async def finalize_session(request: Request, store: SessionStore = Depends(get_session_store)):
    summary = store.finalize()
    return ok(request, data=summary.to_dict(), message="Session finalized")


@router.get("/summary", response_model=ApiResponse[dict])
async def get_summary(request: Request, store: SessionStore = Depends(get_session_store)):
    summary = store.summary()
    if summary is None:
        raise SummaryNotAvailableError()
    return ok(request, data=summary.to_dict())


@router.post("/reset", response_model=ApiResponse[SessionStateResponse])
async def reset_session(
    request: Request,
    payload: ResetRequest,
    store: SessionStore = Depends(get_session_store),
):
    """Start a new session. Destructive: requires ``{"confirm": true}``."""
    if not store.reset(payload.confirm):
        raise ResetNotConfirmedError()
    return ok(request, data=_state_response(store), message="New session started")


@router.put("/view", response_model=ApiResponse[SessionStateResponse])
async def set_view(
    request: Request,
    payload: ViewRequest,
    store: SessionStore = Depends(get_session_store),
):
    store.set_active_view(payload.view)
    return ok(request, data=_state_response(store))


@router.get("/export")
async def export_session(store: SessionStore = Depends(get_session_store)):
    """Download a JSON snapshot of the in-memory session."""
    filename = store.export_filename()
    logger.info(f"Session exported as {filename}")
    return Response(
        content=store.export_json(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
