import pytest

from processors.feed_parser import FeedSnapshot, StationRecord, parse_feed
from processors.station_locator import (ByCityName, ByCoordinates, ByPath, k_nearest,
                                        list_cities, list_states, list_stations, locate,
                                        location_request_from_dict, parse_coordinates)
from utils.errors import InvalidLocationRequest, StationNotFound


def record(station_id, city, lat, lon, aqi, state='Delhi'):
    return StationRecord(station_id=station_id, state_id=state, city_id=city,
                         latitude=lat, longitude=lon, aqi_value=aqi)


@pytest.fixture
def stations(delhi_document):
    return parse_feed(delhi_document)


class TestByPath:
    def test_exact_match(self, stations):
        located = locate(stations, ByPath('Delhi', 'New_Delhi', 'ITO'))
        assert located.station.station_id == 'ITO'
        assert located.distance_km is None

    @pytest.mark.parametrize("path", [
        ByPath('Haryana', 'Delhi', 'A'),
        ByPath('Delhi', 'New_Delhi', 'A'),
        ByPath('Delhi', 'Delhi', 'ITO'),
    ])
    def test_any_component_mismatch(self, stations, path):
        with pytest.raises(StationNotFound):
            locate(stations, path)

    def test_matches_station_with_invalid_aqi(self, stations):
        located = locate(stations, ByPath('Delhi', 'Delhi', 'B'))
        assert located.station.aqi_value is None

    def test_accepts_snapshot(self, stations):
        snapshot = FeedSnapshot(stations=tuple(stations), fetched_at=0.0)
        assert locate(snapshot, ByPath('Delhi', 'Delhi', 'A')).station.station_id == 'A'


class TestByCityName:
    def test_underscore_and_case_insensitive(self, stations):
        located = locate(stations, ByCityName('new_delhi'))
        assert located.station.city_id == 'New_Delhi'

    def test_spaces_match_underscores(self, stations):
        assert locate(stations, ByCityName('  New Delhi ')).station.station_id == 'ITO'

    def test_first_match_in_feed_order(self, stations):
        assert locate(stations, ByCityName('DELHI')).station.station_id == 'A'

    def test_skips_stations_without_aqi(self):
        stations = [record('B', 'Delhi', 28.7, 77.3, None), record('A', 'Delhi', 28.6, 77.2, 180)]
        assert locate(stations, ByCityName('delhi')).station.station_id == 'A'

    def test_unknown_city(self, stations):
        with pytest.raises(StationNotFound):
            locate(stations, ByCityName('Atlantis'))


class TestByCoordinates:
    def test_station_without_aqi_excluded(self):
        stations = [record('A', 'Delhi', 28.6, 77.2, 180), record('B', 'Delhi', 28.7, 77.3, None)]
        located = locate(stations, ByCoordinates(28.69, 77.29))
        assert located.station.station_id == 'A'

    def test_nearest_selected(self, stations):
        located = locate(stations, ByCoordinates(13.0, 77.6))
        assert located.station.station_id == 'Hebbal'
        assert located.distance_km == round(located.distance_km, 1)
        assert 0 < located.distance_km < 5

    def test_tie_resolves_to_feed_order(self):
        stations = [
            record('Far', 'Delhi', 29.5, 77.2, 100),
            record('First', 'Delhi', 28.6, 77.2, 120),
            record('Second', 'Delhi', 28.6, 77.2, 140),
        ]
        for _ in range(3):
            assert locate(stations, ByCoordinates(28.5, 77.2)).station.station_id == 'First'

    def test_no_valid_stations(self):
        stations = [record('B', 'Delhi', 28.7, 77.3, None), record('C', 'Delhi', None, None, 90)]
        with pytest.raises(StationNotFound):
            locate(stations, ByCoordinates(28.6, 77.2))

    def test_city_label_prefers_same_city_station(self):
        stations = [
            record('Gurugram Sec 51', 'Gurugram', 28.46, 77.07, 150, state='Haryana'),
            record('Dwarka', 'New_Delhi', 28.58, 77.05, 200),
        ]
        query = ByCoordinates(28.48, 77.08)
        assert locate(stations, query).station.station_id == 'Gurugram Sec 51'

        located = locate(stations, query, place_label='Palam Vihar, New Delhi, Delhi')
        assert located.station.station_id == 'Dwarka'
        assert located.distance_km > 0

    def test_city_label_ignored_beyond_radius(self):
        stations = [
            record('Near', 'Noida', 28.62, 77.36, 150, state='Uttar_Pradesh'),
            record('Far', 'Lucknow', 26.85, 80.95, 120, state='Uttar_Pradesh'),
        ]
        located = locate(stations, ByCoordinates(28.6, 77.35), place_label='Lucknow, Uttar Pradesh')
        assert located.station.station_id == 'Near'

    def test_city_label_substring_match(self):
        stations = [
            record('Nearest', 'Faridabad', 28.41, 77.31, 180, state='Haryana'),
            record('Central', 'Delhi', 28.63, 77.22, 210),
        ]
        located = locate(stations, ByCoordinates(28.45, 77.28), place_label='Okhla, New Delhi, Delhi')
        assert located.station.station_id == 'Central'

    def test_city_label_skips_invalid_aqi(self):
        stations = [
            record('Nearest', 'Noida', 28.57, 77.32, 160, state='Uttar_Pradesh'),
            record('Broken', 'Delhi', 28.60, 77.25, None),
        ]
        located = locate(stations, ByCoordinates(28.58, 77.31), place_label='Mayur Vihar, Delhi, Delhi')
        assert located.station.station_id == 'Nearest'


class TestKNearest:
    def test_returns_k_sorted(self):
        stations = [
            record('S4', 'X', 28.9, 77.0, 100),
            record('S1', 'X', 28.1, 77.0, 100),
            record('S5', 'X', 29.5, 77.0, 100),
            record('S2', 'X', 28.3, 77.0, 100),
            record('S3', 'X', 28.6, 77.0, 100),
        ]
        nearest = k_nearest(stations, 28.0, 77.0, k=3)
        assert [n.station.station_id for n in nearest] == ['S1', 'S2', 'S3']
        distances = [n.distance_km for n in nearest]
        assert distances == sorted(distances)

    def test_ties_keep_feed_order(self):
        stations = [record('B', 'X', 28.5, 77.0, 100), record('A', 'X', 28.5, 77.0, 100)]
        assert [n.station.station_id for n in k_nearest(stations, 28.0, 77.0)] == ['B', 'A']

    def test_excludes_incomplete(self, stations):
        ids = [n.station.station_id for n in k_nearest(stations, 28.6, 77.2, k=10)]
        assert 'B' not in ids
        assert 'Silk Board' not in ids
        assert len(ids) == 4

    def test_zero_k(self, stations):
        assert k_nearest(stations, 28.6, 77.2, k=0) == []


class TestListings:
    def test_states_sorted_with_display_names(self, stations):
        assert list_states(stations) == [
            {'id': 'Delhi', 'name': 'Delhi'},
            {'id': 'Karnataka', 'name': 'Karnataka'},
            {'id': 'Uttar_Pradesh', 'name': 'Uttar Pradesh'},
        ]

    def test_cities(self, stations):
        assert list_cities(stations, 'Delhi') == [
            {'id': 'Delhi', 'name': 'Delhi'},
            {'id': 'New_Delhi', 'name': 'New Delhi'},
        ]
        assert list_cities(stations, 'Goa') == []

    def test_stations(self, stations):
        assert list_stations(stations, 'Delhi', 'Delhi') == [
            {'id': 'A', 'name': 'A'},
            {'id': 'B', 'name': 'B'},
        ]


class TestLocationRequestFromDict:
    def test_coordinates_take_precedence(self):
        request = location_request_from_dict({'lat': '28.6', 'lng': '77.2', 'city': 'Delhi'})
        assert request == ByCoordinates(28.6, 77.2)

    def test_path(self):
        request = location_request_from_dict({'state': 'Delhi', 'city': 'Delhi', 'station': 'A'})
        assert request == ByPath('Delhi', 'Delhi', 'A')

    def test_city_only(self):
        assert location_request_from_dict({'city': 'new_delhi'}) == ByCityName('new_delhi')

    def test_partial_path_falls_back_to_city(self):
        assert location_request_from_dict({'state': 'Delhi', 'city': 'Delhi'}) == ByCityName('Delhi')

    @pytest.mark.parametrize("payload", [
        [1, 2],
        'Delhi',
        {'city': 123},
        {'state': 'Delhi', 'city': ['Delhi'], 'station': 'A'},
        {'city': '   '},
    ])
    def test_wrong_types(self, payload):
        with pytest.raises(InvalidLocationRequest):
            location_request_from_dict(payload)

    @pytest.mark.parametrize("lat,lon", [
        ('nan', '77.2'),
        ('28.6', 'inf'),
        (float('nan'), 77.2),
        (True, 77.2),
        ('500', '77.2'),
        (None, '77.2'),
    ])
    def test_parse_coordinates_rejects(self, lat, lon):
        with pytest.raises(InvalidLocationRequest):
            parse_coordinates(lat, lon)

    def test_parse_coordinates(self):
        assert parse_coordinates('-12.5', 180) == (-12.5, 180.0)

    @pytest.mark.parametrize("payload", [
        {},
        {'lat': '28.6'},
        {'lat': 'north', 'lon': '77.2'},
        {'lat': '128.6', 'lon': '77.2'},
    ])
    def test_invalid(self, payload):
        with pytest.raises(InvalidLocationRequest):
            location_request_from_dict(payload)
