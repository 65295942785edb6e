"""
Discovery data structures and models
"""

from typing import List, Optional
from dataclasses import dataclass


@dataclass
class DiscoveredBridge:
    """A bridge seen on the network - identity is the IP address"""
    ip_address: str
    raw_id_from_mdns: Optional[str] = None
    raw_id_from_endpoint: Optional[str] = None

    @property
    def raw_id(self) -> Optional[str]:
        """Best available partial id (the endpoint id is the full bridge id)"""
        return self.raw_id_from_endpoint or self.raw_id_from_mdns


@dataclass
class DiscoveryResult:
    """Results from one discovery transport"""
    bridges: List[DiscoveredBridge]
    method: str  # "mdns", "endpoint"
    duration_seconds: float
    skipped: bool = False
    error: Optional[str] = None
