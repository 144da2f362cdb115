"""
Unit tests for route-district lookups
"""

from unittest.mock import Mock

import pytest
import requests

from services import route_service
from services.route_service import RouteService


START = {'latitude': 11.341, 'longitude': 77.717}
END = {'latitude': 13.083, 'longitude': 80.270}


def json_response(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


def ors_place(name):
    return json_response({'features': [{'properties': {'locality': name}}]})


@pytest.fixture
def session():
    session = Mock()
    session.headers = {}
    return session


def directions(count):
    """Route geometry of `count` [lon, lat] points; lat encodes the index"""
    coordinates = [[77.0, float(i)] for i in range(count)]
    return json_response({'features': [{'geometry': {'coordinates': coordinates}}]})


class TestRouteService:
    """Test RouteService with a stubbed HTTP session"""

    def test_samples_every_tenth_point_and_dedupes(self, app, session):
        session.post.return_value = directions(25)
        names = {0.0: 'Erode', 10.0: 'Erode', 20.0: 'Salem'}
        session.get.side_effect = lambda url, params, timeout: ors_place(names[params['point.lat']])

        result = RouteService(session=session).get_districts_between(START, END)

        assert result == ['Erode', 'Salem']
        assert session.get.call_count == 3

    def test_sends_lon_lat_pairs(self, app, session):
        session.post.return_value = directions(1)
        session.get.return_value = ors_place('Erode')

        RouteService(session=session).get_districts_between(START, END)

        body = session.post.call_args.kwargs['json']
        assert body == {'coordinates': [[77.717, 11.341], [80.270, 13.083]]}
        assert session.post.call_args.kwargs['timeout'] == app.config['ROUTE_LOOKUP_TIMEOUT']

    def test_falls_back_to_nominatim(self, app, session):
        session.post.return_value = directions(1)

        def lookup(url, params, timeout):
            if 'nominatim' in url:
                return json_response({'address': {'county': 'Namakkal', 'state': 'Tamil Nadu'}})
            raise requests.exceptions.ConnectionError('ORS down')
        session.get.side_effect = lookup

        assert RouteService(session=session).get_districts_between(START, END) == ['Namakkal']

    def test_directions_failure_uses_endpoints(self, app, session):
        session.post.side_effect = requests.exceptions.HTTPError('403 Forbidden')
        names = {11.341: 'Erode', 13.083: 'Chennai'}
        session.get.side_effect = lambda url, params, timeout: ors_place(names[params['point.lat']])

        assert RouteService(session=session).get_districts_between(START, END) == ['Erode', 'Chennai']

    def test_malformed_directions_uses_endpoints(self, app, session):
        session.post.return_value = json_response({'error': 'no route'})
        session.get.return_value = ors_place('Erode')

        assert RouteService(session=session).get_districts_between(START, END) == ['Erode']

    def test_everything_failing_returns_empty(self, app, session):
        session.post.side_effect = requests.exceptions.Timeout()
        session.get.side_effect = requests.exceptions.Timeout()

        assert RouteService(session=session).get_districts_between(START, END) == []

    def test_budget_stops_lookups(self, app, session):
        app.config['ROUTE_LOOKUP_BUDGET'] = 0
        session.post.return_value = directions(30)
        session.get.return_value = ors_place('Erode')

        assert RouteService(session=session).get_districts_between(START, END) == []
        session.get.assert_not_called()

    def test_reverse_geocode_without_results(self, app, session):
        session.get.side_effect = [json_response({'features': []}), json_response({})]

        assert RouteService(session=session).reverse_geocode(11.0, 77.0) is None

    def test_list_bodies_from_both_geocoders_read_as_no_name(self, app, session):
        session.post.side_effect = requests.exceptions.HTTPError('500 Server Error')
        session.get.return_value = json_response([])

        assert RouteService(session=session).get_districts_between(START, END) == []
        assert session.get.call_count == 4

    def test_feature_that_is_not_an_object_falls_back(self, app, session):
        session.get.side_effect = [json_response({'features': ['Erode']}),
                                   json_response({'address': {'county': 'Erode'}})]

        assert RouteService(session=session).reverse_geocode(11.0, 77.0) == 'Erode'

    def test_non_text_names_are_ignored(self, app, session):
        session.get.side_effect = [json_response({'features': [{'properties': {'locality': 7}}]}),
                                   json_response({'address': 'Erode'})]

        assert RouteService(session=session).reverse_geocode(11.0, 77.0) is None

    @pytest.mark.parametrize('coordinates', [[[77.0]], [[77.0, 'north']], 'LINESTRING', []])
    def test_unusable_geometry_uses_endpoints(self, app, session, coordinates):
        session.post.return_value = json_response(
            {'features': [{'geometry': {'coordinates': coordinates}}]})
        names = {11.341: 'Erode', 13.083: 'Chennai'}
        session.get.side_effect = lambda url, params, timeout: ors_place(names[params['point.lat']])

        assert RouteService(session=session).get_districts_between(START, END) == ['Erode', 'Chennai']

    def test_call_timeouts_capped_by_budget(self, app, session):
        app.config.update(ROUTE_LOOKUP_TIMEOUT=10, ROUTE_LOOKUP_BUDGET=3)
        session.post.return_value = directions(1)
        session.get.side_effect = requests.exceptions.Timeout()

        RouteService(session=session).get_districts_between(START, END)

        timeouts = [call.kwargs['timeout'] for call in session.get.call_args_list]
        assert timeouts
        assert all(0 < timeout <= 3 for timeout in timeouts)

    def test_fallback_skipped_once_budget_spent(self, app, session, monkeypatch):
        app.config.update(ROUTE_LOOKUP_TIMEOUT=10, ROUTE_LOOKUP_BUDGET=3)
        session.post.return_value = directions(1)
        session.get.side_effect = requests.exceptions.Timeout()
        # deadline set at 0, loop check at 0.5, ORS call at 1.0, fallback at 4.0
        clock = iter([0.0, 0.5, 1.0, 4.0])
        monkeypatch.setattr(route_service.time, 'monotonic', lambda: next(clock, 4.0))

        assert RouteService(session=session).get_districts_between(START, END) == []
        assert session.get.call_count == 1
        assert session.get.call_args.kwargs['timeout'] == 2.0
