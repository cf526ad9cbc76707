"""Tests for the flight board service."""

import threading

import pytest
import requests

from flightboard.models import Direction, TrafficSnapshot
from flightboard.services.board import FlightBoardService
from conftest import make_pilot, make_snapshot


class FakeClient:
    """Stands in for VatsimClient; serves a fixed payload or raises."""

    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = 0

    def fetch_snapshot(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return TrafficSnapshot.from_dict(self.payload)


def boston_traffic():
    return make_snapshot(
        make_pilot(callsign='UAL1', departure='KBOS', arrival='KATL'),
        make_pilot(callsign='DAL2', departure='KBOS', arrival='EGLL'),
        make_pilot(callsign='BAW3', departure='KBOS', arrival='KJFK'),
        make_pilot(callsign='BAW4', departure='EGLL', arrival='KBOS', latitude=45.0,
                   altitude=36000, groundspeed=480),
    )


@pytest.fixture
def client():
    return FakeClient(boston_traffic())


@pytest.fixture
def service(client, airports, airlines):
    service = FlightBoardService(
        client=client,
        airports=airports,
        airlines=airlines,
        refresh_interval=60,
        auto_start_preview=False,
    )
    yield service
    service.stop()


class TestSnapshotCache:
    """The feed is fetched at most once per refresh interval."""

    def test_snapshot_reused_within_interval(self, service, client):
        service.get_board('KBOS', 'dep')
        service.get_board('KBOS', 'arr')
        service.get_board('KJFK', 'arr')
        assert client.calls == 1

    def test_zero_interval_always_refetches(self, client, airports, airlines):
        service = FlightBoardService(client=client, airports=airports, airlines=airlines,
                                     refresh_interval=0, auto_start_preview=False)
        service.get_snapshot()
        service.get_snapshot()
        assert client.calls == 2

    def test_force_refetch(self, service, client):
        service.get_snapshot()
        service.get_snapshot(force=True)
        assert client.calls == 2

    def test_fetch_error_propagates_and_is_counted(self, airports, airlines):
        client = FakeClient(error=requests.ConnectionError('offline'))
        service = FlightBoardService(client=client, airports=airports, airlines=airlines,
                                     auto_start_preview=False)

        with pytest.raises(requests.RequestException):
            service.get_board('KBOS', 'dep')

        assert service.stats['error_count'] == 1
        assert service.stats['fetch_count'] == 0

    def test_failed_fetch_retried_next_request(self, airports, airlines):
        client = FakeClient(error=requests.Timeout('slow'))
        service = FlightBoardService(client=client, airports=airports, airlines=airlines,
                                     refresh_interval=60, auto_start_preview=False)
        with pytest.raises(requests.Timeout):
            service.get_snapshot()

        client.error = None
        client.payload = boston_traffic()

        assert len(service.get_snapshot().pilots) == 4
        assert client.calls == 2


class TestBoards:
    def test_departure_board(self, service):
        board = service.get_board('kbos', Direction.DEPARTURE)

        assert board.icao == 'KBOS'
        assert board.airport.name == 'General Edward Lawrence Logan Intl'
        assert [f.route_name for f in board.flights] == [
            'Hartsfield-Jackson Atlanta Intl',
            'John F Kennedy Intl',
            'London Heathrow',
        ]
        assert board.update_time_display == '14:05:09Z'

    def test_arrival_board(self, service):
        board = service.get_board('KBOS', 'arr')
        assert [f.callsign for f in board.flights] == ['BAW4']

    def test_unknown_airport(self, service):
        board = service.get_board('ZZZZ', 'dep')
        assert board.airport is None
        assert board.flights == []

    def test_feed_without_pilots(self, airports, airlines):
        service = FlightBoardService(client=FakeClient({'general': {}}), airports=airports,
                                     airlines=airlines, auto_start_preview=False)
        board = service.get_board('KBOS', 'dep')
        assert board.flights == []
        assert board.update_timestamp is None

    def test_new_board_replaces_cached(self, service):
        assert service.get_cached_board('KBOS', 'dep') is None
        first = service.get_board('KBOS', 'dep')
        second = service.get_board('KBOS', 'dep')
        assert service.get_cached_board('kbos', Direction.DEPARTURE) is second
        assert first is not second

    def test_board_to_dict(self, service):
        data = service.get_board('KBOS', 'dep').to_dict()
        assert data['direction'] == 'dep'
        assert data['direction_label'] == 'Departures'
        assert data['route_header'] == 'Destination'
        assert data['count'] == 3
        assert len(data['flights']) == 3

    def test_invalid_direction(self, service):
        with pytest.raises(ValueError):
            service.get_board('KBOS', 'sideways')


class TestRegistries:
    def test_loaded_once_on_first_use(self, client, airports, airlines):
        calls = {'airports': 0, 'airlines': 0}

        def load_airports():
            calls['airports'] += 1
            return airports

        def load_airlines():
            calls['airlines'] += 1
            return airlines

        service = FlightBoardService(client=client, airport_loader=load_airports,
                                     airline_loader=load_airlines, auto_start_preview=False)
        assert calls == {'airports': 0, 'airlines': 0}

        service.get_board('KBOS', 'dep')
        service.get_board('KBOS', 'arr')

        assert calls == {'airports': 1, 'airlines': 1}

    def test_stats(self, service):
        service.get_board('KBOS', 'dep')
        stats = service.stats
        assert stats['fetch_count'] == 1
        assert stats['build_count'] == 1
        assert stats['airports_loaded'] == 6
        assert stats['airlines_loaded'] == 3
        assert stats['snapshot_age_seconds'] is not None


class TestPreview:
    """Preview mode pages through departures, then arrivals."""

    def test_first_page(self, service):
        page = service.get_preview('KBOS', page_size=2)

        assert page.board.direction is Direction.DEPARTURE
        assert page.state.total_pages == 2
        assert [f.callsign for f in page.flights] == ['UAL1', 'BAW3']
        assert page.next_label == 'Page 2'

    def test_rotation_through_pages_and_directions(self, service):
        service.get_preview('KBOS', page_size=2)
        scheduler = service.get_scheduler('KBOS')

        scheduler.advance()
        page = service.get_preview('KBOS', page_size=2)
        assert page.state.current_page == 1
        assert [f.callsign for f in page.flights] == ['DAL2']
        assert page.next_label == 'Arrivals'

        scheduler.advance()
        page = service.get_preview('KBOS', page_size=2)
        assert page.board.direction is Direction.ARRIVAL
        assert page.state.current_page == 0
        assert page.state.total_pages == 1
        assert [f.callsign for f in page.flights] == ['BAW4']

    def test_flip_rebuilds_board(self, service):
        service.get_preview('KBOS', page_size=10)
        service.get_scheduler('KBOS').advance()
        assert service.get_cached_board('KBOS', 'arr') is not None

    def test_preview_to_dict(self, service):
        data = service.get_preview('KBOS', page_size=2).to_dict()
        assert data['count'] == 3
        assert len(data['flights']) == 2
        assert data['preview']['current_page'] == 0
        assert data['preview']['next_label'] == 'Page 2'

    def test_one_scheduler_per_airport(self, service):
        assert service.get_scheduler('kbos') is service.get_scheduler('KBOS')
        assert service.get_scheduler('KJFK') is not service.get_scheduler('KBOS')
        assert service.stats['preview_airports'] == ['KBOS', 'KJFK']

    def test_stop_preview(self, service):
        scheduler = service.get_scheduler('KBOS')
        service.stop_preview('KBOS')
        assert service.get_scheduler('KBOS') is not scheduler

    def test_auto_start(self, client, airports, airlines):
        service = FlightBoardService(client=client, airports=airports, airlines=airlines)
        try:
            assert service.get_scheduler('KBOS').running
        finally:
            service.stop()
        assert not service.stats['preview_airports']


class TestPreviewLifecycle:
    """Preview rotations are only kept for real airports that are being polled."""

    def test_unknown_airport_has_no_preview(self, service):
        assert service.get_preview('ZZZZ') is None
        assert service.stats['preview_airports'] == []

    def test_unknown_airports_start_no_threads(self, client, airports, airlines):
        service = FlightBoardService(client=client, airports=airports, airlines=airlines)
        before = threading.active_count()
        try:
            for n in range(50):
                code = 'Z' + chr(ord('A') + n // 26) + chr(ord('A') + n % 26) + 'Z'
                assert service.get_preview(code) is None
            assert threading.active_count() == before
        finally:
            service.stop()

    def test_running_previews_are_capped(self, client, airports, airlines):
        service = FlightBoardService(client=client, airports=airports, airlines=airlines,
                                     max_preview_airports=2)
        before = threading.active_count()
        try:
            for icao in ('KBOS', 'KJFK', 'KATL', 'EGLL', 'LFPG'):
                service.get_preview(icao)
            assert service.stats['preview_airports'] == ['EGLL', 'LFPG']
            # Two timer threads per running rotation
            assert threading.active_count() <= before + 4
        finally:
            service.stop()

    def test_cap_evicts_least_recently_polled(self, service):
        service.max_preview_airports = 2
        service.get_preview('KBOS')
        service.get_preview('KJFK')
        service.get_preview('KBOS')
        service._preview_access['KJFK'] = 0

        service.get_preview('KATL')

        assert service.stats['preview_airports'] == ['KATL', 'KBOS']

    def test_idle_rotation_stopped_on_flip(self, service):
        service.get_preview('KBOS', page_size=10)
        scheduler = service.get_scheduler('KBOS')
        service._preview_access['KBOS'] = 0

        scheduler.advance()

        assert service.stats['preview_airports'] == []
        assert service.get_cached_board('KBOS', 'arr') is None

    def test_polled_rotation_survives_flip(self, service):
        service.get_preview('KBOS', page_size=10)
        scheduler = service.get_scheduler('KBOS')

        scheduler.advance()

        assert service.stats['preview_airports'] == ['KBOS']
        assert service.get_cached_board('KBOS', 'arr') is not None
