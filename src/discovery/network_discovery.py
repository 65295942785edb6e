"""
Network discovery transports for Hue bridges
mDNS (zeroconf) on the LAN and the cloud registry endpoint
"""

import asyncio
import logging
import sys
import time
from typing import Dict, List, Optional

from zeroconf import IPVersion, ServiceStateChange
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from errors import HueLinkError
from hue_http_client import HueHttpClient
from .models import DiscoveredBridge, DiscoveryResult

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT_URL = 'https://discovery.meethue.com'
DEFAULT_SERVICE_TYPE = '_hue._tcp.local.'

# Sandboxed interpreters (Pyodide, WASI) have no multicast sockets
_NO_MULTICAST_PLATFORMS = ('emscripten', 'wasi')


def mdns_supported() -> bool:
    """Capability check for multicast service discovery"""
    return sys.platform not in _NO_MULTICAST_PLATFORMS


def raw_id_from_target(target: str) -> str:
    """SRV target host label up to the first dot, e.g. 'ecb5fafffe0a1b2c.local.' -> 'ecb5fafffe0a1b2c'"""
    if '.' in target:
        return target[:target.index('.')]
    return target


class NetworkDiscovery:
    """Handles mDNS and endpoint discovery"""

    def __init__(self, config: dict, http_client: HueHttpClient):
        self.config = config
        self.http = http_client
        self.endpoint_url = config.get('endpoint_url', DEFAULT_ENDPOINT_URL)
        self.mdns_enabled = config.get('mdns_enabled', True)
        self.service_type = config.get('mdns_service_type', DEFAULT_SERVICE_TYPE)
        self.mdns_timeout = config.get('mdns_timeout_seconds', 3)
        self.request_timeout = config.get('request_timeout', 5)

    async def mdns_discovery(self) -> DiscoveryResult:
        """Browse for advertised bridge services and resolve them to IPv4 addresses"""
        start_time = time.time()

        if not self.mdns_enabled or not mdns_supported():
            logger.info("[DISCOVERY] mDNS not available on this platform - skipping")
            return DiscoveryResult([], "mdns", 0.0, skipped=True)

        try:
            aiozc = AsyncZeroconf(ip_version=IPVersion.V4Only)
        except OSError as e:
            logger.info(f"[DISCOVERY] Multicast socket unavailable ({e}) - skipping mDNS")
            return DiscoveryResult([], "mdns", time.time() - start_time, skipped=True)

        bridges: List[DiscoveredBridge] = []
        try:
            service_names: List[str] = []

            def on_service_state_change(zeroconf, service_type: str, name: str, state_change: ServiceStateChange):
                if state_change is ServiceStateChange.Added and name not in service_names:
                    service_names.append(name)

            browser = AsyncServiceBrowser(aiozc.zeroconf, self.service_type, handlers=[on_service_state_change])
            await asyncio.sleep(self.mdns_timeout)
            await browser.async_cancel()

            seen_ips = set()
            for name in service_names:
                info = AsyncServiceInfo(self.service_type, name)
                if not await info.async_request(aiozc.zeroconf, int(self.mdns_timeout * 1000)):
                    logger.debug(f"[DISCOVERY] Could not resolve mDNS service {name}")
                    continue

                raw_id = raw_id_from_target(info.server or name)
                for address in info.parsed_addresses(IPVersion.V4Only):
                    if address in seen_ips:
                        continue
                    seen_ips.add(address)
                    bridges.append(DiscoveredBridge(ip_address=address, raw_id_from_mdns=raw_id))
                    logger.info(f"[DISCOVERY] Found bridge via mDNS: {raw_id} ({address})")

        except Exception as e:
            logger.error(f"[DISCOVERY] mDNS discovery failed: {e}")
            return DiscoveryResult(bridges, "mdns", time.time() - start_time, error=str(e))
        finally:
            await aiozc.async_close()

        return DiscoveryResult(bridges, "mdns", time.time() - start_time)

    async def endpoint_discovery(self) -> DiscoveryResult:
        """Ask the cloud registry which bridges are registered and where"""
        start_time = time.time()

        try:
            status, results = await self.http.get_with_status(self.endpoint_url, timeout=self.request_timeout)
        except (HueLinkError, asyncio.TimeoutError) as e:
            logger.warning(f"[DISCOVERY] Endpoint discovery failed: {e!r}")
            return DiscoveryResult([], "endpoint", time.time() - start_time, error=repr(e))

        # Rate-limited (429) and error answers are ignored whatever their body
        if not 200 <= status < 300:
            logger.warning(f"[DISCOVERY] Endpoint discovery answered HTTP {status}")
            return DiscoveryResult([], "endpoint", time.time() - start_time, error=f"HTTP {status}")

        if not isinstance(results, list):
            logger.warning(f"[DISCOVERY] Unexpected endpoint response: {results!r}")
            return DiscoveryResult([], "endpoint", time.time() - start_time, error="unexpected response")

        bridges = []
        for entry in results:
            bridge = self._parse_endpoint_entry(entry)
            if bridge:
                bridges.append(bridge)
                logger.info(f"[DISCOVERY] Found bridge via endpoint: {bridge.raw_id_from_endpoint} ({bridge.ip_address})")

        return DiscoveryResult(bridges, "endpoint", time.time() - start_time)

    def _parse_endpoint_entry(self, entry: Dict) -> Optional[DiscoveredBridge]:
        """One `{id, internalipaddress}` record, None when either field is missing"""
        if not isinstance(entry, dict):
            return None
        raw_id = entry.get('id')
        ip_address = entry.get('internalipaddress')
        if not isinstance(raw_id, str) or not isinstance(ip_address, str) or not ip_address:
            return None
        return DiscoveredBridge(ip_address=ip_address, raw_id_from_endpoint=raw_id)
