"""
Remote token exchanges (step 2 of the remote OAuth flow, and refresh)
"""

import logging
from typing import Any, Dict, Optional

import aiohttp

from errors import ExpiredRefreshTokenError
from hue_http_client import HueHttpClient
from .models import RemoteTokenSet

logger = logging.getLogger(__name__)

TOKEN_URL = 'https://api.meethue.com/v2/oauth2/token'


def is_expired_refresh_token(status: int, payload: Any) -> bool:
    """Recognise the token endpoint's answer to a dead refresh token"""
    if status not in (400, 401) or not isinstance(payload, dict):
        return False

    if payload.get('error') == 'invalid_grant':
        return True

    fault = payload.get('fault')
    if isinstance(fault, dict):
        faultstring = str(fault.get('faultstring', '')).lower()
        detail = fault.get('detail') or {}
        errorcode = str(detail.get('errorcode', '')).lower() if isinstance(detail, dict) else ''
        if 'invalidrefreshtoken' in errorcode or 'refresh_token_expired' in errorcode:
            return True
        if 'refresh token' in faultstring:
            return True
    return False


class TokenService:
    """Trades an authorization code, or a refresh token, for a RemoteTokenSet"""

    def __init__(self, http_client: HueHttpClient, token_url: str = TOKEN_URL):
        self.http = http_client
        self.token_url = token_url

    async def fetch_remote_token(
        self,
        client_id: str,
        client_secret: str,
        code_verifier: str,
        code: str,
    ) -> Optional[RemoteTokenSet]:
        """
        Exchange the code captured from the redirect
        None when the grant is refused or incomplete
        """
        form = {
            'grant_type': 'authorization_code',
            'code': code,
            'code_verifier': code_verifier,
        }
        status, payload = await self._exchange(client_id, client_secret, form)

        if not 200 <= status < 300:
            logger.warning(f"[REMOTE AUTH] Authorization code exchange refused ({status})")
            return None
        return self._normalize(payload)

    async def refresh_remote_token(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
    ) -> Optional[RemoteTokenSet]:
        """
        Exchange the previous refresh token for a new token set
        Raises ExpiredRefreshTokenError when the user has to authorize again
        """
        form = {
            'grant_type': 'refresh_token',
            'refresh_token': refresh_token,
        }
        status, payload = await self._exchange(client_id, client_secret, form)

        if is_expired_refresh_token(status, payload):
            logger.warning("[REMOTE AUTH] Refresh token expired - authorization required")
            raise ExpiredRefreshTokenError("Refresh token expired; restart the authorization flow")
        if not 200 <= status < 300:
            logger.warning(f"[REMOTE AUTH] Token refresh refused ({status})")
            return None
        return self._normalize(payload)

    async def _exchange(self, client_id: str, client_secret: str, form: Dict[str, str]):
        return await self.http.call_form(
            self.token_url,
            form,
            basic_auth=aiohttp.BasicAuth(client_id, client_secret),
        )

    def _normalize(self, payload: Any) -> Optional[RemoteTokenSet]:
        token_set = RemoteTokenSet.from_response(payload)
        if token_set is None:
            logger.warning("[REMOTE AUTH] Incomplete token grant")
            return None
        logger.info(f"[REMOTE AUTH] Token set obtained, expires {token_set.expiration_timestamp} UTC")
        return token_set
