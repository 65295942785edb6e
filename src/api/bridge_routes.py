"""
Bridge resource routes - read-only access to paired bridges through the dispatch router
"""

from fastapi import APIRouter, Header, HTTPException
from typing import Optional
import logging

from dispatch.bridge_requests import BridgeRequests
from errors import ExpiredAccessTokenError
from results import ResultStatus

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    ResultStatus.NOT_FOUND: 404,
    ResultStatus.PRECONDITION_FAILED: 412,
    ResultStatus.TRANSPORT_FAULT: 502,
}


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith('bearer '):
        return authorization[7:].strip() or None
    return None


def create_bridge_routes(router_service, known_bridges):
    """Create bridge resource routes"""
    router = APIRouter(prefix="/api/bridges", tags=["bridges"])

    def _find(bridge_id: str):
        for bridge in known_bridges:
            if bridge.id == bridge_id:
                return bridge
        raise HTTPException(status_code=404, detail=f"Unknown bridge: {bridge_id}")

    @router.get("")
    async def list_bridges():
        """Paired bridges known to this server"""
        return [
            {"id": bridge.id, "ip_address": bridge.ip_address, "paired": bool(bridge.application_key)}
            for bridge in known_bridges
        ]

    @router.get("/{bridge_id}/resource/{resource_type}")
    @router.get("/{bridge_id}/resource/{resource_type}/{resource_id}")
    async def get_resource(bridge_id: str, resource_type: str, resource_id: Optional[str] = None,
                           authorization: Optional[str] = Header(default=None)):
        """Fetch resources locally, or through the remote relay with the caller's bearer token"""
        requests = BridgeRequests(_find(bridge_id), router_service)
        try:
            result = await requests.get(resource_type, resource_id, token=_bearer(authorization))
        except ExpiredAccessTokenError as e:
            raise HTTPException(status_code=401, detail=str(e))

        if not result.ok:
            raise HTTPException(status_code=_STATUS_CODES[result.status], detail=result.error)
        return result.value

    return router
