"""
Outbound request routing to a bridge (local first, remote relay fallback)
"""

from .bridge_requests import BridgeRequests
from .router import DispatchRouter, get_target_url

__all__ = ['BridgeRequests', 'DispatchRouter', 'get_target_url']
