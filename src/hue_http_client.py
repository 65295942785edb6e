"""
Transport client for the bridge CLIP API and the Hue cloud
Wraps aiohttp sessions: one for the LAN bridge, one for the cloud relay
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import urlparse

import aiohttp

from errors import ExpiredAccessTokenError, TransportError
from http_helper import create_bridge_session, create_cloud_session, is_cloud_host

logger = logging.getLogger(__name__)

APPLICATION_KEY_HEADER = 'hue-application-key'

Body = Union[str, bytes, Dict[str, Any], list]


def decode_json(text: str) -> Optional[Any]:
    """Decode a response body, None for empty or non-JSON content"""
    if not text or not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        logger.debug(f"Response body is not JSON: {text[:80]!r}")
        return None


def is_expired_access_token(payload: Any) -> bool:
    """Recognise the relay's 'access token expired' fault"""
    if not isinstance(payload, dict):
        return False
    fault = payload.get('fault')
    if not isinstance(fault, dict):
        return False
    faultstring = str(fault.get('faultstring', '')).lower()
    detail = fault.get('detail') or {}
    errorcode = str(detail.get('errorcode', '')).lower() if isinstance(detail, dict) else ''
    return 'access_token_expired' in errorcode or ('access token' in faultstring and 'expired' in faultstring)


class HueHttpClient:
    """Performs single HTTP calls against a bridge or the Hue cloud"""

    def __init__(
        self,
        bridge_timeout: float = 5,
        cloud_timeout: float = 10,
        ssl_verify: bool = True,
        bridge_session: Optional[aiohttp.ClientSession] = None,
        cloud_session: Optional[aiohttp.ClientSession] = None,
    ):
        self.bridge_timeout = bridge_timeout
        self.cloud_timeout = cloud_timeout
        self.ssl_verify = ssl_verify
        self._bridge_session = bridge_session
        self._cloud_session = cloud_session
        self._own_bridge_session = bridge_session is None
        self._own_cloud_session = cloud_session is None

    async def __aenter__(self) -> "HueHttpClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close the sessions this client created"""
        if self._own_bridge_session and self._bridge_session:
            await self._bridge_session.close()
            self._bridge_session = None
        if self._own_cloud_session and self._cloud_session:
            await self._cloud_session.close()
            self._cloud_session = None

    def _session_for(self, url: str) -> aiohttp.ClientSession:
        host = urlparse(url).hostname or ''
        if is_cloud_host(host):
            if self._cloud_session is None or self._cloud_session.closed:
                self._cloud_session = create_cloud_session(self.cloud_timeout, ssl_verify=self.ssl_verify)
            return self._cloud_session
        if self._bridge_session is None or self._bridge_session.closed:
            self._bridge_session = create_bridge_session(self.bridge_timeout)
        return self._bridge_session

    async def call(
        self,
        method: str,
        url: str,
        application_key: Optional[str] = None,
        token: Optional[str] = None,
        body: Optional[Body] = None,
        timeout: Optional[float] = None,
    ) -> Optional[Any]:
        """
        Issue one request and return the decoded JSON body
        Error payloads are returned as-is; only transport faults raise
        """
        _, payload = await self.call_with_status(method, url, application_key, token, body, timeout)
        return payload

    async def call_with_status(
        self,
        method: str,
        url: str,
        application_key: Optional[str] = None,
        token: Optional[str] = None,
        body: Optional[Body] = None,
        timeout: Optional[float] = None,
    ) -> Tuple[int, Optional[Any]]:
        """Same as call, but returns (status, decoded body) for callers that judge the status"""
        headers = {}
        if application_key:
            headers[APPLICATION_KEY_HEADER] = application_key
        if token:
            headers['Authorization'] = f"Bearer {token}"

        kwargs: Dict[str, Any] = {'headers': headers}
        if body is not None:
            kwargs['data'] = body if isinstance(body, (str, bytes)) else json.dumps(body)
            headers['Content-Type'] = 'application/json'
        if timeout is not None:
            kwargs['timeout'] = aiohttp.ClientTimeout(total=timeout)

        status, payload = await self._request(method, url, **kwargs)

        if status == 401 and token and is_expired_access_token(payload):
            logger.warning(f"Remote access token expired for {method} {url}")
            raise ExpiredAccessTokenError(f"Access token expired ({method} {url})")

        return status, payload

    async def call_form(
        self,
        url: str,
        form: Dict[str, str],
        basic_auth: Optional[aiohttp.BasicAuth] = None,
    ) -> Tuple[int, Optional[Any]]:
        """POST a form-encoded body (OAuth token endpoint); returns (status, decoded body)"""
        kwargs: Dict[str, Any] = {'data': form}
        if basic_auth is not None:
            kwargs['auth'] = basic_auth
        return await self._request('POST', url, **kwargs)

    async def _request(self, method: str, url: str, **kwargs) -> Tuple[int, Optional[Any]]:
        session = self._session_for(url)
        try:
            async with session.request(method, url, **kwargs) as response:
                text = await response.text()
                logger.debug(f"{method} {url} -> {response.status}")
                return response.status, decode_json(text)
        except asyncio.TimeoutError:
            raise
        except aiohttp.ClientResponseError as e:
            raise TransportError(str(e), url=url, status=e.status) from e
        except aiohttp.ClientError as e:
            raise TransportError(str(e), url=url) from e

    async def get_with_status(self, url: str, timeout: Optional[float] = None) -> Tuple[int, Optional[Any]]:
        return await self.call_with_status('GET', url, timeout=timeout)

    async def get(self, url: str, application_key: Optional[str] = None,
                  token: Optional[str] = None, timeout: Optional[float] = None) -> Optional[Any]:
        return await self.call('GET', url, application_key, token, timeout=timeout)

    async def post(self, url: str, application_key: Optional[str] = None, token: Optional[str] = None,
                   body: Optional[Body] = None, timeout: Optional[float] = None) -> Optional[Any]:
        return await self.call('POST', url, application_key, token, body, timeout)

    async def put(self, url: str, application_key: Optional[str] = None, token: Optional[str] = None,
                  body: Optional[Body] = None, timeout: Optional[float] = None) -> Optional[Any]:
        return await self.call('PUT', url, application_key, token, body, timeout)

    async def delete(self, url: str, application_key: Optional[str] = None,
                     token: Optional[str] = None, timeout: Optional[float] = None) -> Optional[Any]:
        return await self.call('DELETE', url, application_key, token, timeout=timeout)
