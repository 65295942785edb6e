"""
Remote token data structures
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from utils import from_hue_string, to_hue_string


def _as_seconds(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


@dataclass(frozen=True)
class RemoteTokenSet:
    """
    A bearer token grant for the remote relay
    Replace the whole set on every refresh - the refresh token may rotate.
    `expiration_timestamp` is always derived (UTC, whole seconds).
    """
    access_token: str
    expires_in_seconds: int
    refresh_token: str
    token_type: str
    expiration_timestamp: str

    @classmethod
    def from_response(cls, payload: Any, now: Optional[datetime] = None) -> Optional["RemoteTokenSet"]:
        """Normalize a token endpoint answer, None if any required field is missing"""
        if not isinstance(payload, dict):
            return None

        access_token = payload.get('access_token')
        expires_in = _as_seconds(payload.get('expires_in'))
        refresh_token = payload.get('refresh_token')
        token_type = payload.get('token_type')

        if not isinstance(access_token, str) or expires_in is None \
                or not isinstance(refresh_token, str) or not isinstance(token_type, str):
            return None

        now = now or datetime.now(timezone.utc)
        expires_at = now + timedelta(seconds=expires_in)

        return cls(
            access_token=access_token,
            expires_in_seconds=expires_in,
            refresh_token=refresh_token,
            token_type=token_type,
            expiration_timestamp=to_hue_string(expires_at),
        )

    @property
    def expires_at(self) -> datetime:
        return from_hue_string(self.expiration_timestamp).replace(tzinfo=timezone.utc)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    def to_json(self) -> Dict[str, Any]:
        """Dict form handed to the external persistence layer"""
        return {
            'access_token': self.access_token,
            'expires_in': self.expires_in_seconds,
            'refresh_token': self.refresh_token,
            'token_type': self.token_type,
            'expiration_date': self.expiration_timestamp,
        }
