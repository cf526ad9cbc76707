"""Tests for the HTTP API."""

import pytest
import requests

from flightboard.app import create_app
from flightboard.api.board import FETCH_ERROR_MESSAGE
from flightboard.models import TrafficSnapshot
from flightboard.services.board import FlightBoardService
from conftest import make_pilot, make_snapshot


class StubClient:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error

    def fetch_snapshot(self):
        if self.error is not None:
            raise self.error
        return TrafficSnapshot.from_dict(self.payload)


def build_client(airports, airlines, payload=None, error=None):
    service = FlightBoardService(
        client=StubClient(payload, error),
        airports=airports,
        airlines=airlines,
        refresh_interval=60,
        auto_start_preview=False,
    )
    app = create_app(service)
    app.config['TESTING'] = True
    return app.test_client(), service


@pytest.fixture
def api(airports, airlines):
    payload = make_snapshot(
        make_pilot(callsign='UAL1', departure='KBOS', arrival='KATL'),
        make_pilot(callsign='BAW2', departure='KBOS', arrival='EGLL'),
        make_pilot(callsign='DAL3', departure='KATL', arrival='KBOS', latitude=40.0,
                   altitude=34000, groundspeed=450),
    )
    client, service = build_client(airports, airlines, payload)
    yield client
    service.stop()


class TestBoardEndpoint:
    def test_departures(self, api):
        response = api.get('/api/board/kbos/dep')

        assert response.status_code == 200
        data = response.get_json()
        assert data['icao'] == 'KBOS'
        assert data['mode'] == 'dep'
        assert data['count'] == 2
        assert [f['callsign'] for f in data['flights']] == ['UAL1', 'BAW2']
        assert data['flights'][0]['route']['name'] == 'Hartsfield-Jackson Atlanta Intl'
        assert data['update_time'] == '14:05:09Z'
        assert 'query_time_ms' in data

    def test_arrivals(self, api):
        data = api.get('/api/board/KBOS/ARR').get_json()
        assert data['direction'] == 'arr'
        assert [f['callsign'] for f in data['flights']] == ['DAL3']
        assert data['flights'][0]['stage'] == 'cruising'

    def test_unknown_airport_gives_empty_board(self, api):
        data = api.get('/api/board/ZZZZ/dep').get_json()
        assert data['airport'] is None
        assert data['flights'] == []

    def test_preview(self, api):
        response = api.get('/api/board/KBOS/pre?per_page=1')

        assert response.status_code == 200
        data = response.get_json()
        assert data['mode'] == 'pre'
        assert data['direction'] == 'dep'
        assert len(data['flights']) == 1
        assert data['preview']['total_pages'] == 2
        assert data['preview']['next_label'] == 'Page 2'

    def test_preview_of_unknown_airport_is_404(self, airports, airlines):
        client, service = build_client(airports, airlines, make_snapshot())

        response = client.get('/api/board/ZZZZ/pre')

        assert response.status_code == 404
        assert service.stats['preview_airports'] == []

    @pytest.mark.parametrize('path', ['/api/board/KB/dep', '/api/board/KB0S/dep', '/api/board/KBOSX/arr'])
    def test_invalid_icao(self, api, path):
        assert api.get(path).status_code == 400

    def test_invalid_mode(self, api):
        response = api.get('/api/board/KBOS/all')
        assert response.status_code == 400
        assert 'dep' in response.get_json()['error']

    def test_feed_failure_is_503(self, airports, airlines):
        client, _ = build_client(airports, airlines, error=requests.ConnectionError('offline'))

        response = client.get('/api/board/KBOS/dep')

        assert response.status_code == 503
        assert response.get_json() == {'error': FETCH_ERROR_MESSAGE}

    def test_invalid_json_is_503(self, airports, airlines):
        client, _ = build_client(airports, airlines, error=ValueError('not json'))
        assert client.get('/api/board/KBOS/arr').status_code == 503


class TestAirportEndpoints:
    def test_search(self, api):
        data = api.get('/api/airports?q=heathrow').get_json()
        assert data['count'] == 1
        assert data['airports'][0]['icao'] == 'EGLL'

    def test_search_limit(self, api):
        data = api.get('/api/airports?q=K&limit=2').get_json()
        assert data['count'] == 2

    def test_search_bad_limit_uses_default(self, api):
        assert api.get('/api/airports?q=K&limit=lots').status_code == 200

    def test_get_airport(self, api):
        data = api.get('/api/airports/lfpg').get_json()
        assert data['name'] == 'Paris Charles de Gaulle'
        assert data['iata'] == 'CDG'

    def test_get_unknown_airport(self, api):
        assert api.get('/api/airports/ZZZZ').status_code == 404

    def test_registry_load_failure_is_503(self, airlines):
        def offline():
            raise requests.ConnectionError('offline')

        service = FlightBoardService(client=StubClient(make_snapshot()), airlines=airlines,
                                     airport_loader=offline, auto_start_preview=False)
        client = create_app(service).test_client()

        assert client.get('/api/airports?q=bos').status_code == 503
        assert client.get('/api/board/KBOS/dep').status_code == 503


class TestAirlineEndpoint:
    def test_known_airline(self, api):
        data = api.get('/api/airlines/baw123').get_json()
        assert data['callsign'] == 'BAW123'
        assert data['name'] == 'British Airways'
        assert data['flight_number'] == '123'
        assert data['logo_domain'] == 'britishairways.com'

    def test_private(self, api):
        data = api.get('/api/airlines/N172SP').get_json()
        assert data['kind'] == 'private'
        assert data['website'] is None


class TestAppRoutes:
    def test_health(self, api):
        assert api.get('/health').get_json() == {'status': 'ok'}

    def test_status_before_first_fetch(self, api):
        data = api.get('/api/metrics/status').get_json()
        assert data['status'] == 'degraded'
        assert data['service']['fetch_count'] == 0

    def test_status_after_fetch(self, api):
        api.get('/api/board/KBOS/dep')
        data = api.get('/api/metrics/status').get_json()
        assert data['status'] == 'healthy'
        assert data['config']['refresh_interval'] == 60

    def test_unknown_route(self, api):
        response = api.get('/api/nothing')
        assert response.status_code == 404
        assert response.get_json() == {'error': 'Not found'}
