"""
API module for bridge discovery, pairing and remote authorization
"""

from .main_api import HueLinkAPI
from .bridge_routes import create_bridge_routes
from .discovery_routes import create_discovery_routes
from .pairing_routes import create_pairing_routes
from .remote_routes import create_remote_routes
from .system_routes import create_system_routes

__all__ = ['HueLinkAPI', 'create_bridge_routes', 'create_discovery_routes', 'create_pairing_routes', 'create_remote_routes',
           'create_system_routes']
