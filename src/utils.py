"""
Small helpers shared across the Hue Link modules
"""

from datetime import datetime
from typing import Optional

HUE_TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S'


def to_hue_string(value: datetime) -> str:
    """Format a datetime the way the bridge accepts it (no fractional seconds, no offset)"""
    return value.strftime(HUE_TIMESTAMP_FORMAT)


def from_hue_string(value: str) -> datetime:
    """Parse a bridge timestamp produced by to_hue_string"""
    return datetime.strptime(value, HUE_TIMESTAMP_FORMAT)


def mask_secret(secret: Optional[str]) -> str:
    """Mask a key or token for log output"""
    if not secret:
        return "<none>"
    if len(secret) <= 12:
        return "*" * len(secret)
    return f"{secret[:6]}…{secret[-4:]}"
