"""
Hue Link Server - Main orchestrator for all services
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

import uvicorn

from api.main_api import HueLinkAPI
from bridge.models import Bridge
from config_loader import load_config, setup_logging
from discovery.manager import BridgeDiscovery
from dispatch.router import DispatchRouter
from hue_http_client import HueHttpClient
from pairing.coordinator import PairingCoordinator
from pairing_session import PairingSessionHandler
from remote_auth.tokens import TokenService

logger = logging.getLogger(__name__)


@dataclass
class Components:
    """Everything the server and the ASGI app share"""
    http: HueHttpClient
    discovery: BridgeDiscovery
    router: DispatchRouter
    coordinator: PairingCoordinator
    pairing_sessions: PairingSessionHandler
    token_service: TokenService
    known_bridges: List[Bridge]
    api: HueLinkAPI


def build_components(config: Dict) -> Components:
    """Wire the services together from a loaded configuration"""
    http = HueHttpClient(
        bridge_timeout=config['discovery']['request_timeout'],
        cloud_timeout=config['dispatch']['remote_timeout_seconds'],
        ssl_verify=config['remote'].get('ssl_verify', True),
    )

    known_bridges = [Bridge.from_storage(entry) for entry in config.get('known_bridges', [])]

    discovery = BridgeDiscovery(config['discovery'], http)
    router = DispatchRouter(
        http,
        local_timeout_seconds=config['dispatch']['local_timeout_seconds'],
        remote_timeout_seconds=config['dispatch']['remote_timeout_seconds'],
    )
    coordinator = PairingCoordinator(
        http,
        app_name=config['pairing']['device_name'],
        poll_interval_seconds=config['pairing']['poll_interval_seconds'],
        request_timeout=config['pairing']['request_timeout'],
    )
    pairing_sessions = PairingSessionHandler(
        coordinator,
        default_timeout=config['pairing']['timeout_seconds'],
        on_paired=known_bridges.append,
    )
    token_service = TokenService(http)
    api = HueLinkAPI(config, discovery, pairing_sessions, token_service, known_bridges, router)

    return Components(http, discovery, router, coordinator, pairing_sessions, token_service, known_bridges, api)


class HueLinkServer:
    """Main server orchestrating discovery, pairing and remote auth services"""

    def __init__(self, config_path: str = "config/config.yaml"):
        self.config = load_config(config_path)
        setup_logging(self.config)

        self.components = build_components(self.config)
        self.api = self.components.api

        self.running = False
        self._uvicorn = None

    async def start(self):
        """Start all server services"""
        logger.info("Starting Hue Link Local Server...")

        try:
            # Initial discovery pass so the log shows what is on the network
            bridges = await self.components.discovery.discover(self.components.known_bridges)
            for bridge in bridges:
                logger.info(f"[DISCOVERY] Unpaired bridge: {bridge.raw_id or 'unknown id'} at {bridge.ip_address}")

            self.running = True
            await self._start_api_server()

        except Exception as e:
            logger.error(f"Server startup failed: {e}")
            await self.stop()
            raise

    async def _start_api_server(self):
        api_config = self.config['api']
        uv_config = uvicorn.Config(
            self.api.app,
            host=api_config['host'],
            port=api_config['port'],
            log_config=None,
        )
        self._uvicorn = uvicorn.Server(uv_config)
        logger.info(f"API server listening on {api_config['host']}:{api_config['port']}")
        await self._uvicorn.serve()

    async def stop(self):
        """Stop all server services gracefully"""
        if not self.running and self._uvicorn is None:
            await self.components.http.close()
            return

        logger.info("Stopping server...")
        self.running = False

        if self._uvicorn is not None:
            self._uvicorn.should_exit = True
            self._uvicorn = None

        await self.components.pairing_sessions.close()
        await self.components.http.close()
        logger.info("Server stopped")
