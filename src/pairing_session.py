"""
Pairing session handler for the local API
Runs one pairing attempt in the background and lets another request cancel it
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from bridge.models import Bridge
from pairing.controller import PairingController
from pairing.coordinator import PairingCoordinator, PairingOutcome, PairingState
from utils import mask_secret

logger = logging.getLogger(__name__)


class PairingInProgressError(Exception):
    """A pairing attempt is already running"""


@dataclass
class PairingSession:
    """One background pairing attempt"""
    ip_address: str
    controller: PairingController
    started_at: float = field(default_factory=time.time)
    task: Optional[asyncio.Task] = None
    outcome: Optional[PairingOutcome] = None

    @property
    def state(self) -> PairingState:
        if self.outcome is None:
            return PairingState.POLLING
        return self.outcome.state


class PairingSessionHandler:
    """Keeps track of the current pairing attempt"""

    def __init__(self, coordinator: PairingCoordinator, default_timeout: int = 10,
                 on_paired: Optional[Callable[[Bridge], None]] = None):
        self.coordinator = coordinator
        self.default_timeout = default_timeout
        self.on_paired = on_paired
        self.current: Optional[PairingSession] = None

    @property
    def running(self) -> bool:
        return self.current is not None and self.current.outcome is None

    def start(self, ip_address: str, timeout_seconds: Optional[int] = None) -> PairingSession:
        """Start a new attempt; raises PairingInProgressError if one is still polling"""
        if self.running:
            raise PairingInProgressError(f"Pairing with {self.current.ip_address} still in progress")

        controller = PairingController(self.default_timeout if timeout_seconds is None else timeout_seconds)
        session = PairingSession(ip_address=ip_address, controller=controller)
        session.task = asyncio.create_task(self._run(session))
        self.current = session
        logger.info(f"[PAIRING] Session started for {ip_address} ({controller.timeout_seconds}s)")
        return session

    async def _run(self, session: PairingSession):
        try:
            session.outcome = await self.coordinator.pair(session.ip_address, session.controller)
            if session.outcome.bridge is not None and self.on_paired:
                self.on_paired(session.outcome.bridge)
        except Exception as e:
            logger.error(f"[PAIRING] Session for {session.ip_address} crashed: {e}")
            session.outcome = PairingOutcome(PairingState.FAILED, error=str(e))

    def cancel(self) -> bool:
        """Request cancellation; observed by the attempt at its next tick"""
        if not self.running:
            return False
        self.current.controller.cancel()
        logger.info(f"[PAIRING] Cancel requested for {self.current.ip_address}")
        return True

    async def wait(self) -> Optional[PairingOutcome]:
        """Wait for the current attempt to finish"""
        if self.current is None or self.current.task is None:
            return None
        await self.current.task
        return self.current.outcome

    async def close(self):
        if self.running:
            self.current.controller.cancel()
            await self.wait()

    def status(self) -> Dict[str, Any]:
        """Status snapshot with the application key masked"""
        if self.current is None:
            return {'state': 'idle'}

        session = self.current
        status: Dict[str, Any] = {
            'state': session.state.value,
            'ip_address': session.ip_address,
            'timeout_seconds': session.controller.timeout_seconds,
            'elapsed_seconds': round(time.time() - session.started_at, 1),
        }
        if session.outcome is not None:
            status['ticks'] = session.outcome.ticks
            status['error'] = session.outcome.error
            bridge = session.outcome.bridge
            if bridge is not None:
                status['bridge'] = {
                    'id': bridge.id,
                    'ip_address': bridge.ip_address,
                    'application_key': mask_secret(bridge.application_key),
                    'has_client_key': bridge.client_key is not None,
                }
        return status
