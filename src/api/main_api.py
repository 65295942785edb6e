"""
Local HTTP API for bridge discovery, pairing and remote authorization
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from typing import Dict
import logging

from .bridge_routes import create_bridge_routes
from .discovery_routes import create_discovery_routes
from .pairing_routes import create_pairing_routes
from .remote_routes import create_remote_routes
from .system_routes import create_system_routes

logger = logging.getLogger(__name__)


class HueLinkAPI:
    """Local HTTP API wrapping the discovery, pairing and remote-auth services"""

    def __init__(self, config: Dict, discovery, pairing_sessions, token_service, known_bridges, router_service):
        self.config = config
        self.discovery = discovery
        self.router_service = router_service
        self.pairing_sessions = pairing_sessions
        self.token_service = token_service
        self.known_bridges = known_bridges
        self.app = FastAPI(
            title="Hue Link Local Server",
            description="Local API for Hue bridge discovery, pairing and remote authorization",
            version="1.0.0"
        )
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=config.get('api', {}).get('cors_origins', ['*']),
            allow_methods=["*"],
            allow_headers=["*"],
        )
        self._setup_routes()

    def _setup_routes(self):
        """Setup FastAPI routes using modular approach"""
        self.app.include_router(create_system_routes(self.config, self.pairing_sessions, self.known_bridges))
        self.app.include_router(create_discovery_routes(self.discovery, self.known_bridges))
        self.app.include_router(create_pairing_routes(self.pairing_sessions))
        self.app.include_router(create_remote_routes(self.config, self.token_service))
        self.app.include_router(create_bridge_routes(self.router_service, self.known_bridges))
        logger.info("API routes registered")
