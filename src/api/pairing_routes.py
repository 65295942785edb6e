"""
Pairing routes - start, watch and cancel the link-button handshake
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Optional
import logging

from pairing_session import PairingInProgressError

logger = logging.getLogger(__name__)


class PairingRequest(BaseModel):
    ip_address: str
    timeout_seconds: Optional[int] = Field(default=None, ge=0, le=30)


def create_pairing_routes(pairing_sessions):
    """Create pairing routes"""
    router = APIRouter(prefix="/api/pairing", tags=["pairing"])

    @router.post("", status_code=202)
    async def start_pairing(request: PairingRequest):
        """Start pairing; the user then has timeout_seconds to press the link button"""
        try:
            pairing_sessions.start(request.ip_address, request.timeout_seconds)
        except PairingInProgressError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return pairing_sessions.status()

    @router.get("")
    async def pairing_status():
        """Current or last pairing attempt"""
        return pairing_sessions.status()

    @router.post("/cancel")
    async def cancel_pairing():
        """Cancel the running attempt at its next poll"""
        if not pairing_sessions.cancel():
            raise HTTPException(status_code=404, detail="No pairing attempt in progress")
        return {"cancel_requested": True}

    return router
