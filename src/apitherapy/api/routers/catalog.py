"""
Read-only protocol and treatment point catalog.
"""

from fastapi import APIRouter, Request

from ...core.constants import PROTOCOLS, TREATMENT_POINTS, find_protocol
from ...domain.errors import UnknownProtocolError
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/protocols", response_model=ApiResponse[list])
async def list_protocols(request: Request):
    return ok(request, data=[p.to_dict() for p in PROTOCOLS])


@router.get("/protocols/{protocol_id}", response_model=ApiResponse[dict])
async def get_protocol(request: Request, protocol_id: str):
    protocol = find_protocol(protocol_id)
    if protocol is None:
        raise UnknownProtocolError(protocol_id)
    return ok(request, data=protocol.to_dict())


@router.get("/points", response_model=ApiResponse[list])
async def list_points(request: Request):
    return ok(request, data=[p.to_dict() for p in TREATMENT_POINTS])
