"""
Error types raised by the Hue Link core
Timeouts are not wrapped: they surface as asyncio.TimeoutError so the
dispatch layer can tell them apart from other transport faults
"""

from typing import Optional


class HueLinkError(Exception):
    """Base class for all Hue Link errors"""


class TransportError(HueLinkError):
    """Transport-level failure other than a timeout (DNS, TLS, refused, bad URL)"""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class ExpiredAccessTokenError(HueLinkError):
    """The remote relay rejected the bearer token as expired - refresh it"""


class ExpiredRefreshTokenError(HueLinkError):
    """The refresh token itself has expired - restart the authorization flow"""
