"""
Pairing coordinator - the link-button handshake with one bridge
Polls once per second until the button is pressed, the controller times out,
or the caller cancels
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

from bridge.models import Bridge, ResourceType
from dispatch.router import get_target_url
from errors import HueLinkError
from hue_http_client import HueHttpClient
from utils import mask_secret
from .controller import PairingController
from .device_type import device_type

logger = logging.getLogger(__name__)

LINK_BUTTON_NOT_PRESSED = 'link button not pressed'


class PairingState(Enum):
    """Pairing attempt state"""
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


@dataclass
class PairingOutcome:
    """Final state of one pairing attempt"""
    state: PairingState
    bridge: Optional[Bridge] = None
    ticks: int = 0
    error: Optional[str] = None


def parse_pairing_response(response: Any) -> Optional[Tuple[str, Optional[str]]]:
    """
    Extract (application key, client key) from a pairing reply
    None means "keep polling": no reply, button not pressed, or an unrecognised shape
    """
    # The v1 endpoint answers with a one-element list
    if isinstance(response, list):
        response = response[0] if response else None
    if not isinstance(response, dict) or not response:
        return None

    if 'error' in response:
        error = response['error']
        description = error.get('description') if isinstance(error, dict) else None
        if description != LINK_BUTTON_NOT_PRESSED:
            logger.warning(f"[PAIRING] Unexpected error from bridge: {description!r}")
        return None

    success = response.get('success')
    if not isinstance(success, dict):
        return None
    username = success.get('username')
    if not isinstance(username, str) or not username:
        return None
    client_key = success.get('clientkey')
    return username, client_key if isinstance(client_key, str) else None


class PairingCoordinator:
    """Drives the first contact with a bridge and builds the paired Bridge record"""

    def __init__(
        self,
        http_client: HueHttpClient,
        app_name: str = 'HueLink',
        poll_interval_seconds: float = 1.0,
        request_timeout: float = 5,
    ):
        self.http = http_client
        self.device_type = device_type(app_name)
        self.poll_interval = poll_interval_seconds
        self.request_timeout = request_timeout

    async def first_contact(self, bridge_ip_addr: str,
                            controller: Optional[PairingController] = None) -> Optional[Bridge]:
        """Pair with the bridge; the Bridge on success, None otherwise"""
        outcome = await self.pair(bridge_ip_addr, controller)
        return outcome.bridge

    async def pair(self, bridge_ip_addr: str, controller: Optional[PairingController] = None) -> PairingOutcome:
        """
        Run one pairing attempt
        The user has `controller.timeout_seconds` seconds to press the link button.
        """
        controller = controller or PairingController()
        url = f"https://{bridge_ip_addr}/api"
        body = {'devicetype': self.device_type, 'generateclientkey': True}

        logger.info(f"[PAIRING] Waiting up to {controller.timeout_seconds}s for link button on {bridge_ip_addr}")

        ticks = 0
        keys = None
        while keys is None:
            await asyncio.sleep(self.poll_interval)
            ticks += 1

            if ticks > controller.timeout_seconds:
                logger.info(f"[PAIRING] Timed out after {ticks - 1} polls ({bridge_ip_addr})")
                return PairingOutcome(PairingState.TIMED_OUT, ticks=ticks - 1)

            if controller.consume_cancel():
                logger.info(f"[PAIRING] Cancelled at tick {ticks} ({bridge_ip_addr})")
                return PairingOutcome(PairingState.CANCELLED, ticks=ticks)

            keys = parse_pairing_response(await self._poll_once(url, body))

        application_key, client_key = keys
        logger.info(f"[PAIRING] Link button pressed - application key {mask_secret(application_key)}")

        bridge = await self._describe_bridge(bridge_ip_addr, application_key, client_key)
        if bridge is None:
            return PairingOutcome(PairingState.FAILED, ticks=ticks, error="bridge could not be identified")

        logger.info(f"[PASS] Paired with bridge {bridge.id} ({bridge_ip_addr})")
        return PairingOutcome(PairingState.SUCCEEDED, bridge=bridge, ticks=ticks)

    async def _poll_once(self, url: str, body: dict) -> Optional[Any]:
        """One pairing request; any failure reads as "no answer this tick" """
        try:
            return await self.http.post(url, body=body, timeout=self.request_timeout)
        except (HueLinkError, asyncio.TimeoutError) as e:
            logger.debug(f"[PAIRING] No answer from {url}: {e!r}")
            return None

    async def _describe_bridge(self, bridge_ip_addr: str, application_key: str,
                               client_key: Optional[str]) -> Optional[Bridge]:
        """Fetch the bridge's self-description over the LAN (never relayed)"""
        url = get_target_url(bridge_ip_addr, ResourceType.BRIDGE)
        try:
            payload = await self.http.get(url, application_key=application_key, timeout=self.request_timeout)
        except (HueLinkError, asyncio.TimeoutError) as e:
            logger.warning(f"[PAIRING] Bridge description fetch failed: {e!r}")
            return None

        if not isinstance(payload, dict):
            logger.warning("[PAIRING] Bridge description missing")
            return None

        bridge = Bridge.from_json(payload).copy_with(
            ip_address=bridge_ip_addr,
            application_key=application_key,
            client_key=client_key,
        )
        if not bridge.id:
            logger.warning("[PAIRING] Bridge description has no id")
            return None
        return bridge
