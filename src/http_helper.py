# HTTP Helper for Hue Bridge Connections
# SSL-aware session configuration for both the local bridge and the Hue cloud

import aiohttp
import ssl
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

CLOUD_HOSTS = ('api.meethue.com', 'discovery.meethue.com')


def create_bridge_session(timeout_seconds: float = 5) -> aiohttp.ClientSession:
    """
    Create aiohttp session for local bridge connections
    Bridges serve HTTPS with a self-signed certificate, so verification is off
    """
    connector = aiohttp.TCPConnector(
        limit_per_host=4,           # Bridges throttle concurrent clients
        ssl=False,                  # Self-signed bridge certificate
        enable_cleanup_closed=True
    )

    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=timeout_seconds)
    )


def create_cloud_session(
    timeout_seconds: float = 10,
    ssl_verify: bool = True,
    ca_cert_path: str = None
) -> aiohttp.ClientSession:
    """
    Create aiohttp session for the Hue cloud (remote relay, OAuth, discovery endpoint)
    """
    ssl_context = ssl.create_default_context()

    if not ssl_verify:
        # Only for debugging proxies
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        logger.warning("SSL verification disabled for cloud session")
    elif ca_cert_path:
        ca_path = Path(ca_cert_path)
        if ca_path.exists():
            ssl_context.load_verify_locations(ca_path)
            logger.info(f"Loaded custom CA certificate: {ca_path}")
        else:
            logger.warning(f"CA certificate not found: {ca_path}")

    connector = aiohttp.TCPConnector(
        ssl=ssl_context,
        limit=20,
        limit_per_host=5,
        enable_cleanup_closed=True
    )

    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=timeout_seconds)
    )


def is_cloud_host(host: str) -> bool:
    """True when the host belongs to the Hue cloud rather than a bridge on the LAN"""
    return bool(host) and (host in CLOUD_HOSTS or host.endswith('.meethue.com'))
