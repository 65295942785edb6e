"""
System monitoring routes
"""

from fastapi import APIRouter
from datetime import datetime, timezone
import logging

import storage_layout
from config_loader import remote_auth_enabled

logger = logging.getLogger(__name__)


def create_system_routes(config, pairing_sessions, known_bridges):
    """Create system monitoring routes"""
    router = APIRouter(prefix="/api/system", tags=["system"])

    @router.get("/health")
    async def system_health():
        """System health check"""
        return {
            "status": "healthy",
            "known_bridges": len(known_bridges),
            "pairing": pairing_sessions.status().get('state'),
            "remote_auth_enabled": remote_auth_enabled(config),
            "local_timeout_seconds": config['dispatch']['local_timeout_seconds'],
            "storage": {
                "bridges": storage_layout.bridges_sub_path(),
                "remote_tokens": storage_layout.remote_tokens_sub_path()
            },
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    return router
