import asyncio
import unittest

import pytest

from bridge.models import Bridge, ResourceType
from dispatch.bridge_requests import BridgeRequests
from dispatch.router import DispatchRouter, get_target_url
from errors import ExpiredAccessTokenError, TransportError
from fakes import FakeHttpClient
from results import ResultStatus

BRIDGE_IP = '192.168.1.20'
APP_KEY = 'app-key-0123456789abcdef'
TOKEN = 'bearer-token'
LIGHTS = {'errors': [], 'data': [{'id': 'l1', 'type': 'light'}, {'id': 'l2', 'type': 'light'}]}


class TestGetTargetUrl:
    def test_bare_resource_root(self):
        assert get_target_url(BRIDGE_IP) == f'https://{BRIDGE_IP}/clip/v2/resource'

    def test_type_and_path(self):
        assert get_target_url(BRIDGE_IP, ResourceType.LIGHT, '5') == f'https://{BRIDGE_IP}/clip/v2/resource/light/5'

    def test_path_with_leading_slash_is_kept(self):
        assert get_target_url(BRIDGE_IP, 'light', '/5') == f'https://{BRIDGE_IP}/clip/v2/resource/light/5'

    def test_empty_segments_are_skipped(self):
        assert get_target_url(BRIDGE_IP, '', '') == f'https://{BRIDGE_IP}/clip/v2/resource'
        assert get_target_url(BRIDGE_IP, None, 'abc') == f'https://{BRIDGE_IP}/clip/v2/resource/abc'

    def test_remote_uses_relay_domain(self):
        assert get_target_url(BRIDGE_IP, ResourceType.LIGHT, '5', is_remote=True) == \
            'https://api.meethue.com/route/clip/v2/resource/light/5'


def local_then(remote_answer, local_delay=None, local_answer=LIGHTS):
    """Local calls answer after `local_delay` (or at once); remote calls answer `remote_answer`"""
    async def responder(call):
        if call.url.startswith('https://api.meethue.com/route'):
            if isinstance(remote_answer, Exception):
                raise remote_answer
            return remote_answer
        if local_delay is not None:
            await asyncio.sleep(local_delay)
        if isinstance(local_answer, Exception):
            raise local_answer
        return local_answer
    return responder


class TestDispatchRouter(unittest.IsolatedAsyncioTestCase):
    async def test_fast_local_answer_never_goes_remote(self):
        http = FakeHttpClient(local_then({'remote': True}))
        router = DispatchRouter(http, local_timeout_seconds=0.5)

        result = await router.fetch(BRIDGE_IP, APP_KEY, ResourceType.LIGHT, token=TOKEN)

        assert result == LIGHTS
        assert len(http.calls) == 1
        local = http.calls[0]
        assert local.url == f'https://{BRIDGE_IP}/clip/v2/resource/light'
        assert local.application_key == APP_KEY
        assert local.token is None

    async def test_slow_local_answer_falls_over_once_with_token(self):
        http = FakeHttpClient(local_then({'remote': True}, local_delay=0.5))
        router = DispatchRouter(http, local_timeout_seconds=0.05)

        result = await router.update(BRIDGE_IP, APP_KEY, ResourceType.LIGHT, {'on': {'on': True}},
                                     path_to_resource='l1', token=TOKEN)

        assert result == {'remote': True}
        assert [call.method for call in http.calls] == ['PUT', 'PUT']
        remote = http.calls[1]
        assert remote.url == 'https://api.meethue.com/route/clip/v2/resource/light/l1'
        assert remote.token == TOKEN
        assert remote.application_key == APP_KEY
        assert remote.body == {'on': {'on': True}}

    async def test_local_timeout_raised_by_transport_also_falls_over(self):
        http = FakeHttpClient(local_then({'remote': True}, local_answer=asyncio.TimeoutError()))

        result = await DispatchRouter(http).create(BRIDGE_IP, APP_KEY, 'scene', {'metadata': {'name': 'x'}},
                                                   token=TOKEN)

        assert result == {'remote': True}
        assert len(http.calls) == 2

    async def test_other_local_failures_propagate_without_remote_call(self):
        http = FakeHttpClient(local_then({'remote': True}, local_answer=TransportError("dns failure")))

        with pytest.raises(TransportError):
            await DispatchRouter(http).remove(BRIDGE_IP, APP_KEY, ResourceType.SCENE, 's1', token=TOKEN)

        assert len(http.calls) == 1

    async def test_remote_expired_token_reaches_caller(self):
        http = FakeHttpClient(local_then(ExpiredAccessTokenError("expired"), local_delay=0.5))
        router = DispatchRouter(http, local_timeout_seconds=0.05)

        with pytest.raises(ExpiredAccessTokenError):
            await router.fetch(BRIDGE_IP, APP_KEY, ResourceType.LIGHT, token=TOKEN)

    async def test_remote_error_payload_is_returned_as_is(self):
        error_payload = {'errors': [{'description': 'not found'}], 'data': []}
        http = FakeHttpClient(local_then(error_payload, local_delay=0.5))

        result = await DispatchRouter(http, local_timeout_seconds=0.05).fetch(BRIDGE_IP, APP_KEY, 'light', 'x')

        assert result == error_payload

    def test_local_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            DispatchRouter(FakeHttpClient(), local_timeout_seconds=0)


class TestBridgeRequests(unittest.IsolatedAsyncioTestCase):
    def make(self, responder, **bridge_fields):
        fields = {'id': 'b1', 'ip_address': BRIDGE_IP, 'application_key': APP_KEY}
        fields.update(bridge_fields)
        http = FakeHttpClient(responder)
        return BridgeRequests(Bridge(**fields), DispatchRouter(http)), http

    async def test_missing_ip_is_a_precondition_failure(self):
        requests, http = self.make(lambda call: LIGHTS, ip_address=None)

        result = await requests.get(ResourceType.LIGHT)

        assert result.status is ResultStatus.PRECONDITION_FAILED
        assert http.calls == []

    async def test_missing_application_key_is_a_precondition_failure(self):
        requests, http = self.make(lambda call: LIGHTS, application_key=None)

        result = await requests.delete(ResourceType.LIGHT, 'l1')

        assert result.status is ResultStatus.PRECONDITION_FAILED
        assert http.calls == []

    async def test_empty_body_is_a_precondition_failure(self):
        requests, http = self.make(lambda call: LIGHTS)

        assert (await requests.put(ResourceType.LIGHT, 'l1', {})).status is ResultStatus.PRECONDITION_FAILED
        assert (await requests.post(ResourceType.SCENE, {})).status is ResultStatus.PRECONDITION_FAILED
        assert http.calls == []

    async def test_empty_response_is_not_found(self):
        requests, _ = self.make(lambda call: None)

        result = await requests.get(ResourceType.LIGHT, 'missing')

        assert result.status is ResultStatus.NOT_FOUND
        assert not result.ok

    async def test_transport_error_is_a_transport_fault(self):
        def fail(call):
            raise TransportError("connection reset")

        requests, _ = self.make(fail)

        result = await requests.get(ResourceType.LIGHT)

        assert result.status is ResultStatus.TRANSPORT_FAULT
        assert 'connection reset' in result.error

    async def test_get_resources_returns_data_list(self):
        requests, http = self.make(lambda call: LIGHTS)

        result = await requests.get_resources(ResourceType.LIGHT)

        assert result.ok
        assert [item['id'] for item in result.value] == ['l1', 'l2']
        assert http.urls() == [f'https://{BRIDGE_IP}/clip/v2/resource/light']

    async def test_describe_fetches_bridge_resource(self):
        requests, http = self.make(lambda call: {'data': [{'id': 'b1'}]})

        result = await requests.describe()

        assert result.ok
        assert http.urls() == [f'https://{BRIDGE_IP}/clip/v2/resource/bridge']

    async def test_expired_token_is_raised_not_wrapped(self):
        def expired(call):
            raise ExpiredAccessTokenError("expired")

        requests, _ = self.make(expired)

        with pytest.raises(ExpiredAccessTokenError):
            await requests.post(ResourceType.SCENE, {'metadata': {'name': 'Evening'}}, token=TOKEN)

    async def test_relay_timeout_is_a_transport_fault(self):
        http = FakeHttpClient(local_then(asyncio.TimeoutError(), local_delay=0.5))
        requests = BridgeRequests(Bridge(id='b1', ip_address=BRIDGE_IP, application_key=APP_KEY),
                                  DispatchRouter(http, local_timeout_seconds=0.05))

        for result in (
            await requests.get(ResourceType.LIGHT, token=TOKEN),
            await requests.put(ResourceType.LIGHT, 'l1', {'on': {'on': True}}, token=TOKEN),
            await requests.post(ResourceType.SCENE, {'metadata': {'name': 'Evening'}}, token=TOKEN),
            await requests.delete(ResourceType.SCENE, 's1', token=TOKEN),
        ):
            assert result.status is ResultStatus.TRANSPORT_FAULT
            assert result.error == 'remote relay timed out'
        assert len(http.calls) == 8
