"""
Bridge discovery routes
"""

from fastapi import APIRouter
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class DiscoveredBridgeResponse(BaseModel):
    ip_address: str
    raw_id_from_mdns: Optional[str] = None
    raw_id_from_endpoint: Optional[str] = None


class TransportSummary(BaseModel):
    method: str
    count: int
    duration_seconds: float
    skipped: bool
    error: Optional[str] = None


class DiscoveryResponse(BaseModel):
    count: int
    bridges: List[DiscoveredBridgeResponse]
    transports: List[TransportSummary]
    timestamp: datetime


def create_discovery_routes(discovery, known_bridges):
    """Create discovery routes"""
    router = APIRouter(prefix="/api", tags=["discovery"])

    @router.get("/discovery", response_model=DiscoveryResponse)
    async def discover_bridges(exclude_known: bool = True):
        """Search the network for bridges; known bridges are left out unless exclude_known=false"""
        bridges = await discovery.discover(known_bridges if exclude_known else None)

        return DiscoveryResponse(
            count=len(bridges),
            bridges=[
                DiscoveredBridgeResponse(
                    ip_address=bridge.ip_address,
                    raw_id_from_mdns=bridge.raw_id_from_mdns,
                    raw_id_from_endpoint=bridge.raw_id_from_endpoint
                )
                for bridge in bridges
            ],
            transports=[
                TransportSummary(
                    method=result.method,
                    count=len(result.bridges),
                    duration_seconds=round(result.duration_seconds, 2),
                    skipped=result.skipped,
                    error=result.error
                )
                for result in discovery.last_results
            ],
            timestamp=datetime.now(timezone.utc)
        )

    return router
