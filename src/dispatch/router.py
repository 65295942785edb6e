"""
Dispatch router - local first, remote relay on timeout
"""

import asyncio
import logging
from typing import Any, Optional, Union

from bridge.models import ResourceType
from hue_http_client import Body, HueHttpClient

logger = logging.getLogger(__name__)

LOCAL_TIMEOUT_SECONDS = 1.0
REMOTE_DOMAIN = 'api.meethue.com/route'
RESOURCE_ROOT = '/clip/v2/resource'

ResourceTypeLike = Union[ResourceType, str, None]


def get_target_url(
    bridge_ip_addr: str,
    resource_type: ResourceTypeLike = None,
    path_to_resource: Optional[str] = None,
    is_remote: bool = False,
) -> str:
    """
    Build a CLIP v2 resource URL
    `https://{ip}/clip/v2/resource[/{type}][/{path}]`, or the relay domain when remote
    """
    domain = REMOTE_DOMAIN if is_remote else bridge_ip_addr

    resource_type_str = getattr(resource_type, 'value', resource_type) or ''
    if resource_type_str:
        resource_type_str = f"/{resource_type_str}"

    sub_path = path_to_resource or ''
    if sub_path and not sub_path.startswith('/'):
        sub_path = f"/{sub_path}"

    return f"https://{domain}{RESOURCE_ROOT}{resource_type_str}{sub_path}"


class DispatchRouter:
    """Issues each bridge operation locally, then once through the relay if the bridge is silent"""

    def __init__(
        self,
        http_client: HueHttpClient,
        local_timeout_seconds: float = LOCAL_TIMEOUT_SECONDS,
        remote_timeout_seconds: Optional[float] = None,
    ):
        if local_timeout_seconds <= 0:
            raise ValueError("local_timeout_seconds must be positive")
        self.http = http_client
        self.local_timeout = local_timeout_seconds
        self.remote_timeout = remote_timeout_seconds

    async def fetch(self, bridge_ip_addr: str, application_key: str, resource_type: ResourceTypeLike = None,
                    path_to_resource: Optional[str] = None, token: Optional[str] = None) -> Optional[Any]:
        """GET a resource or resource collection"""
        return await self._dispatch('GET', bridge_ip_addr, application_key, resource_type,
                                    path_to_resource, token)

    async def create(self, bridge_ip_addr: str, application_key: str, resource_type: ResourceTypeLike,
                     body: Body, path_to_resource: Optional[str] = None,
                     token: Optional[str] = None) -> Optional[Any]:
        """POST a new resource"""
        return await self._dispatch('POST', bridge_ip_addr, application_key, resource_type,
                                    path_to_resource, token, body)

    async def update(self, bridge_ip_addr: str, application_key: str, resource_type: ResourceTypeLike,
                     body: Body, path_to_resource: Optional[str] = None,
                     token: Optional[str] = None) -> Optional[Any]:
        """PUT changes to an existing resource"""
        return await self._dispatch('PUT', bridge_ip_addr, application_key, resource_type,
                                    path_to_resource, token, body)

    async def remove(self, bridge_ip_addr: str, application_key: str, resource_type: ResourceTypeLike,
                     path_to_resource: str, token: Optional[str] = None) -> Optional[Any]:
        """DELETE an existing resource"""
        return await self._dispatch('DELETE', bridge_ip_addr, application_key, resource_type,
                                    path_to_resource, token)

    async def _dispatch(
        self,
        method: str,
        bridge_ip_addr: str,
        application_key: str,
        resource_type: ResourceTypeLike,
        path_to_resource: Optional[str],
        token: Optional[str],
        body: Optional[Body] = None,
    ) -> Optional[Any]:
        local_url = get_target_url(bridge_ip_addr, resource_type, path_to_resource, is_remote=False)

        # wait_for cancels the local request when the timer wins
        try:
            return await asyncio.wait_for(
                self.http.call(method, local_url, application_key=application_key, token=None, body=body),
                timeout=self.local_timeout,
            )
        except asyncio.TimeoutError:
            logger.info(f"[DISPATCH] No local answer from {bridge_ip_addr} within {self.local_timeout}s - "
                        f"retrying {method} through remote relay")

        # No fallback past this point; errors and expired tokens reach the caller
        remote_url = get_target_url(bridge_ip_addr, resource_type, path_to_resource, is_remote=True)
        return await self.http.call(method, remote_url, application_key=application_key, token=token,
                                    body=body, timeout=self.remote_timeout)
