import asyncio
import copy
import time
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from api.main_api import HueLinkAPI
from bridge.models import Bridge
from config_loader import get_sample_config
from discovery.models import DiscoveredBridge, DiscoveryResult
from dispatch.router import DispatchRouter
from errors import ExpiredAccessTokenError, ExpiredRefreshTokenError, TransportError
from fakes import FakeHttpClient
from pairing.coordinator import PairingOutcome, PairingState
from pairing_session import PairingSessionHandler
from remote_auth.models import RemoteTokenSet

BRIDGE_IP = '192.168.1.20'
LIGHTS = {'errors': [], 'data': [{'id': 'l1', 'type': 'light'}]}
GRANT = {'access_token': 'a', 'expires_in': 3600, 'refresh_token': 'r', 'token_type': 'bearer'}


class WaitForCancelCoordinator:
    """Polls until cancelled, or succeeds at once when given a bridge"""

    def __init__(self, bridge=None):
        self.bridge = bridge

    async def pair(self, ip_address, controller):
        if self.bridge is not None:
            return PairingOutcome(PairingState.SUCCEEDED, bridge=self.bridge, ticks=1)
        ticks = 0
        while not controller.consume_cancel():
            ticks += 1
            await asyncio.sleep(0.01)
        return PairingOutcome(PairingState.CANCELLED, ticks=ticks)


def bridge_responder(call):
    if call.url.endswith('/light'):
        return LIGHTS
    if call.url.endswith('/light/missing'):
        return None
    if call.url.endswith('/light/broken'):
        raise TransportError("connection reset", url=call.url)
    if call.url.endswith('/light/slow'):
        # Bridge silent locally and the relay times out too
        raise asyncio.TimeoutError()
    if call.url.startswith('https://api.meethue.com'):
        raise ExpiredAccessTokenError("expired")
    raise asyncio.TimeoutError()


def build_client(config=None, coordinator=None, token_service=None, known_bridges=None):
    config = config or get_sample_config()
    known_bridges = known_bridges if known_bridges is not None else [
        Bridge(id='b1', ip_address=BRIDGE_IP, application_key='app-key-0123456789abcdef'),
        Bridge(id='b2', ip_address='192.168.1.21'),
    ]

    discovery = MagicMock()
    discovery.discover = AsyncMock(return_value=[
        DiscoveredBridge('192.168.1.30', raw_id_from_mdns='0a1b2c', raw_id_from_endpoint='ecb5fafffe0a1b2c'),
    ])
    discovery.last_results = [
        DiscoveryResult([DiscoveredBridge('192.168.1.30', raw_id_from_mdns='0a1b2c')], 'mdns', 3.004),
        DiscoveryResult([], 'endpoint', 0.2, error='HTTP 429'),
    ]

    sessions = PairingSessionHandler(coordinator or WaitForCancelCoordinator(), default_timeout=10,
                                     on_paired=known_bridges.append)
    router = DispatchRouter(FakeHttpClient(bridge_responder), local_timeout_seconds=0.5)
    api = HueLinkAPI(config, discovery, sessions, token_service or AsyncMock(), known_bridges, router)
    return TestClient(api.app), discovery, known_bridges


def wait_for_state(client, states=('succeeded', 'failed', 'cancelled', 'timed_out')):
    for _ in range(100):
        status = client.get('/api/pairing').json()
        if status['state'] in states:
            return status
        time.sleep(0.01)
    raise AssertionError(f"pairing never left state {status['state']}")


class TestSystemRoutes:
    def test_health(self):
        client, _, _ = build_client()

        with client:
            body = client.get('/api/system/health').json()

        assert body['status'] == 'healthy'
        assert body['known_bridges'] == 2
        assert body['pairing'] == 'idle'
        assert body['remote_auth_enabled'] is True
        assert body['local_timeout_seconds'] == 1.0
        assert body['storage']['bridges'].startswith('hue_link')


class TestDiscoveryRoutes:
    def test_discovery_excludes_known_by_default(self):
        client, discovery, known = build_client()

        with client:
            body = client.get('/api/discovery').json()

        discovery.discover.assert_awaited_once_with(known)
        assert body['count'] == 1
        assert body['bridges'][0] == {
            'ip_address': '192.168.1.30',
            'raw_id_from_mdns': '0a1b2c',
            'raw_id_from_endpoint': 'ecb5fafffe0a1b2c',
        }
        assert [t['method'] for t in body['transports']] == ['mdns', 'endpoint']
        assert body['transports'][0]['duration_seconds'] == 3.0
        assert body['transports'][1]['error'] == 'HTTP 429'

    def test_discovery_including_known(self):
        client, discovery, _ = build_client()

        with client:
            client.get('/api/discovery', params={'exclude_known': 'false'})

        discovery.discover.assert_awaited_once_with(None)


class TestPairingRoutes:
    def test_start_conflict_and_cancel(self):
        client, _, _ = build_client()

        with client:
            started = client.post('/api/pairing', json={'ip_address': BRIDGE_IP, 'timeout_seconds': 20})
            conflict = client.post('/api/pairing', json={'ip_address': BRIDGE_IP})
            cancelled = client.post('/api/pairing/cancel')
            final = wait_for_state(client)

        assert started.status_code == 202
        assert started.json()['state'] == 'polling'
        assert started.json()['timeout_seconds'] == 20
        assert conflict.status_code == 409
        assert cancelled.json() == {'cancel_requested': True}
        assert final['state'] == 'cancelled'

    def test_successful_pairing_registers_bridge(self):
        paired = Bridge(id='b9', ip_address='192.168.1.40', application_key='app-key-0123456789abcdef',
                        client_key='CK')
        client, _, known = build_client(coordinator=WaitForCancelCoordinator(paired))

        with client:
            client.post('/api/pairing', json={'ip_address': '192.168.1.40'})
            final = wait_for_state(client)
            bridges = client.get('/api/bridges').json()

        assert final['state'] == 'succeeded'
        assert final['bridge']['application_key'] == 'app-ke…cdef'
        assert final['bridge']['has_client_key'] is True
        assert known[-1] is paired
        assert {'id': 'b9', 'ip_address': '192.168.1.40', 'paired': True} in bridges

    def test_cancel_without_attempt(self):
        client, _, _ = build_client()

        with client:
            response = client.post('/api/pairing/cancel')

        assert response.status_code == 404

    @pytest.mark.parametrize('timeout', [-1, 31])
    def test_timeout_out_of_range_is_rejected(self, timeout):
        client, _, _ = build_client()

        with client:
            response = client.post('/api/pairing', json={'ip_address': BRIDGE_IP, 'timeout_seconds': timeout})

        assert response.status_code == 422


class TestRemoteRoutes:
    def test_authorize(self):
        client, _, _ = build_client()

        with client:
            body = client.get('/api/remote/authorize', params={'state': 'settings'}).json()

        assert body['url'].startswith('https://api.meethue.com/v2/oauth2/authorize?client_id=your-client-id')
        assert body['state'].endswith('-settings')
        assert body['code_verifier']

    def test_not_configured(self):
        config = copy.deepcopy(get_sample_config())
        config['remote']['client_id'] = None
        client, _, _ = build_client(config=config)

        with client:
            response = client.get('/api/remote/authorize')

        assert response.status_code == 503

    def test_token_exchange(self):
        token_set = RemoteTokenSet.from_response(GRANT, now=datetime(2024, 1, 1, tzinfo=timezone.utc))
        service = AsyncMock()
        service.fetch_remote_token.return_value = token_set
        client, _, _ = build_client(token_service=service)

        with client:
            response = client.post('/api/remote/token', json={'code': 'c-1', 'code_verifier': 'v-1'})

        assert response.status_code == 200
        assert response.json()['expiration_date'] == '2024-01-01T01:00:00'
        service.fetch_remote_token.assert_awaited_once_with(
            client_id='your-client-id', client_secret='your-client-secret', code_verifier='v-1', code='c-1')

    def test_refused_grant(self):
        service = AsyncMock()
        service.fetch_remote_token.return_value = None
        client, _, _ = build_client(token_service=service)

        with client:
            response = client.post('/api/remote/token', json={'code': 'c-1', 'code_verifier': 'v-1'})

        assert response.status_code == 502

    def test_token_endpoint_timeout(self):
        service = AsyncMock()
        service.fetch_remote_token.side_effect = asyncio.TimeoutError()
        service.refresh_remote_token.side_effect = asyncio.TimeoutError()
        client, _, _ = build_client(token_service=service)

        with client:
            fetched = client.post('/api/remote/token', json={'code': 'c-1', 'code_verifier': 'v-1'})
            refreshed = client.post('/api/remote/token/refresh', json={'refresh_token': 'r-1'})

        assert fetched.status_code == 502
        assert refreshed.status_code == 502

    def test_expired_refresh_token(self):
        service = AsyncMock()
        service.refresh_remote_token.side_effect = ExpiredRefreshTokenError("expired")
        client, _, _ = build_client(token_service=service)

        with client:
            response = client.post('/api/remote/token/refresh', json={'refresh_token': 'r-old'})

        assert response.status_code == 401


class TestBridgeRoutes:
    @pytest.mark.parametrize('path,status', [
        ('/api/bridges/b1/resource/light', 200),
        ('/api/bridges/b1/resource/light/missing', 404),
        ('/api/bridges/b1/resource/light/broken', 502),
        ('/api/bridges/b1/resource/light/slow', 502),
        ('/api/bridges/b2/resource/light', 412),
        ('/api/bridges/unknown/resource/light', 404),
    ])
    def test_resource_status(self, path, status):
        client, _, _ = build_client()

        with client:
            response = client.get(path)

        assert response.status_code == status

    def test_resource_body(self):
        client, _, _ = build_client()

        with client:
            response = client.get('/api/bridges/b1/resource/light')

        assert response.json() == LIGHTS

    def test_expired_remote_token(self):
        client, _, _ = build_client()

        with client:
            response = client.get('/api/bridges/b1/resource/scene',
                                  headers={'Authorization': 'Bearer tok-1'})

        assert response.status_code == 401
