"""
Main discovery manager - runs both transports and merges their results
"""

import asyncio
import logging
import time
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from bridge.models import Bridge
from hue_http_client import HueHttpClient
from .models import DiscoveredBridge, DiscoveryResult
from .network_discovery import NetworkDiscovery

logger = logging.getLogger(__name__)


def merge_discovered(
    mdns_bridges: List[DiscoveredBridge],
    endpoint_bridges: List[DiscoveredBridge],
) -> List[DiscoveredBridge]:
    """
    Deduplicate the two transports' results by IP address
    An mDNS record absorbs the raw id of the first endpoint record with the same IP;
    that endpoint record is then consumed. Remaining duplicates collapse on IP.
    """
    endpoint_index: Dict[str, List[DiscoveredBridge]] = {}
    for bridge in endpoint_bridges:
        endpoint_index.setdefault(bridge.ip_address, []).append(bridge)

    merged: Dict[str, DiscoveredBridge] = {}
    for bridge in mdns_bridges:
        candidates = endpoint_index.get(bridge.ip_address)
        if candidates:
            match = candidates.pop(0)
            bridge = replace(bridge, raw_id_from_endpoint=match.raw_id_from_endpoint)
        merged.setdefault(bridge.ip_address, bridge)

    for ip_address, leftovers in endpoint_index.items():
        if leftovers:
            merged.setdefault(ip_address, leftovers[0])

    return list(merged.values())


def filter_known(
    bridges: List[DiscoveredBridge],
    known_bridges: Optional[Iterable[Bridge]],
) -> List[DiscoveredBridge]:
    """Drop bridges whose IP matches a known bridge (known bridges without an IP never match)"""
    known_ips = {bridge.ip_address for bridge in (known_bridges or []) if bridge.ip_address}
    if not known_ips:
        return bridges
    return [bridge for bridge in bridges if bridge.ip_address not in known_ips]


class BridgeDiscovery:
    """Discovery service for Hue bridges"""

    def __init__(self, config: Dict, http_client: HueHttpClient, network: Optional[NetworkDiscovery] = None):
        self.config = config
        self.network = network or NetworkDiscovery(config, http_client)
        self.last_results: List[DiscoveryResult] = []

    async def discover(self, known_bridges: Optional[Iterable[Bridge]] = None) -> List[DiscoveredBridge]:
        """
        Search the network for bridges
        If `known_bridges` is given, bridges already saved by the caller are left out.
        Never raises: a failing transport just contributes nothing.
        """
        logger.info("[DISCOVERY] Starting bridge discovery (mDNS + endpoint)...")
        start_time = time.time()

        mdns_result, endpoint_result = await asyncio.gather(
            self._run(self.network.mdns_discovery, "mdns"),
            self._run(self.network.endpoint_discovery, "endpoint"),
        )
        self.last_results = [mdns_result, endpoint_result]

        for result in self.last_results:
            if result.skipped:
                logger.info(f"[DISCOVERY] {result.method}: skipped")
            else:
                logger.info(f"[DISCOVERY] {result.method}: {len(result.bridges)} bridges in {result.duration_seconds:.1f}s")

        merged = merge_discovered(mdns_result.bridges, endpoint_result.bridges)
        bridges = filter_known(merged, known_bridges)

        if len(bridges) != len(merged):
            logger.info(f"[DISCOVERY] Filtered {len(merged) - len(bridges)} already known bridges")

        logger.info(f"[PASS] Discovery complete: {len(bridges)} bridges (total: {time.time() - start_time:.1f}s)")
        return bridges

    async def _run(self, transport, method: str) -> DiscoveryResult:
        try:
            return await transport()
        except Exception as e:
            logger.error(f"[DISCOVERY] {method} transport crashed: {e}")
            return DiscoveryResult([], method, 0.0, error=str(e))
