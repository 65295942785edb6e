"""
Discovery module for Hue bridge discovery
"""

from .manager import BridgeDiscovery
from .models import DiscoveredBridge, DiscoveryResult
from .network_discovery import NetworkDiscovery, mdns_supported

__all__ = ['BridgeDiscovery', 'DiscoveredBridge', 'DiscoveryResult', 'NetworkDiscovery', 'mdns_supported']
