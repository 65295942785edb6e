"""
Service orchestration
"""

from .hue_link_server import HueLinkServer, build_components

__all__ = ['HueLinkServer', 'build_components']
