"""
Per-bridge request helpers on top of the dispatch router
Each call returns an OperationResult instead of collapsing every failure into None
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from bridge.models import Bridge, ResourceType, extract_data_list
from errors import TransportError
from results import OperationResult
from .router import DispatchRouter, ResourceTypeLike

logger = logging.getLogger(__name__)


class BridgeRequests:
    """Fetch, create, update and delete resources on one paired bridge"""

    def __init__(self, bridge: Bridge, router: DispatchRouter):
        self.bridge = bridge
        self.router = router

    def _missing_precondition(self) -> Optional[OperationResult]:
        if not self.bridge.ip_address:
            return OperationResult.precondition_failed("bridge has no IP address")
        if not self.bridge.application_key:
            return OperationResult.precondition_failed("bridge has no application key")
        return None

    async def get(self, resource_type: ResourceTypeLike, resource_id: Optional[str] = None,
                  token: Optional[str] = None) -> OperationResult:
        """Fetch one resource, or the whole collection when `resource_id` is omitted"""
        missing = self._missing_precondition()
        if missing:
            return missing
        try:
            payload = await self.router.fetch(self.bridge.ip_address, self.bridge.application_key,
                                              resource_type, resource_id, token)
        except (TransportError, asyncio.TimeoutError) as e:
            return self._transport_fault('GET', resource_type, e)
        return self._wrap(payload)

    async def get_resources(self, resource_type: ResourceTypeLike, token: Optional[str] = None) -> OperationResult:
        """Fetch all resources of one type as a list of resource dicts"""
        result = await self.get(resource_type, token=token)
        if not result.ok:
            return result
        return OperationResult.success(extract_data_list(result.value))

    async def post(self, resource_type: ResourceTypeLike, body: Dict[str, Any], resource_id: Optional[str] = None,
                   token: Optional[str] = None) -> OperationResult:
        missing = self._missing_precondition()
        if missing:
            return missing
        if not body:
            return OperationResult.precondition_failed("nothing to send")
        try:
            payload = await self.router.create(self.bridge.ip_address, self.bridge.application_key,
                                               resource_type, body, resource_id, token)
        except (TransportError, asyncio.TimeoutError) as e:
            return self._transport_fault('POST', resource_type, e)
        return self._wrap(payload)

    async def put(self, resource_type: ResourceTypeLike, resource_id: str, body: Dict[str, Any],
                  token: Optional[str] = None) -> OperationResult:
        missing = self._missing_precondition()
        if missing:
            return missing
        if not body:
            return OperationResult.precondition_failed("nothing to send")
        try:
            payload = await self.router.update(self.bridge.ip_address, self.bridge.application_key,
                                               resource_type, body, resource_id, token)
        except (TransportError, asyncio.TimeoutError) as e:
            return self._transport_fault('PUT', resource_type, e)
        return self._wrap(payload)

    async def delete(self, resource_type: ResourceTypeLike, resource_id: str,
                     token: Optional[str] = None) -> OperationResult:
        missing = self._missing_precondition()
        if missing:
            return missing
        try:
            payload = await self.router.remove(self.bridge.ip_address, self.bridge.application_key,
                                               resource_type, resource_id, token)
        except (TransportError, asyncio.TimeoutError) as e:
            return self._transport_fault('DELETE', resource_type, e)
        return self._wrap(payload)

    async def describe(self, token: Optional[str] = None) -> OperationResult:
        """The bridge's own resource description"""
        return await self.get(ResourceType.BRIDGE, token=token)

    def _wrap(self, payload: Optional[Any]) -> OperationResult:
        if payload is None:
            return OperationResult.not_found("empty response")
        return OperationResult.success(payload)

    def _transport_fault(self, method: str, resource_type: ResourceTypeLike, error: Exception) -> OperationResult:
        # Only the relay attempt can time out here; the local timeout is absorbed by the router
        message = "remote relay timed out" if isinstance(error, asyncio.TimeoutError) else str(error)
        logger.warning(f"[DISPATCH] {method} {getattr(resource_type, 'value', resource_type)} "
                       f"on bridge {self.bridge.id} failed: {message}")
        return OperationResult.transport_fault(message)
