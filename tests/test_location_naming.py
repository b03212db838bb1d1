import pytest

from utils.location_naming import (build_place_label, cities_match,
                                   display_name, extract_city_token, normalize_city)
from utils.timezone_handler import format_time_label, parse_feed_timestamp


def test_display_name():
    assert display_name('Uttar_Pradesh') == 'Uttar Pradesh'
    assert display_name(None) == ''


def test_normalize_city():
    assert normalize_city('  New_Delhi ') == 'new delhi'
    assert normalize_city('NEW  DELHI') == 'new delhi'


class TestBuildPlaceLabel:
    def test_full_address(self):
        address = {'neighbourhood': 'Koregaon Park', 'city': 'Pune', 'state': 'Maharashtra'}
        assert build_place_label(address) == 'Koregaon Park, Pune, Maharashtra'

    def test_town_fallback(self):
        assert build_place_label({'town': 'Manali', 'state': 'Himachal Pradesh'}) == 'Manali, Himachal Pradesh'

    def test_empty(self):
        assert build_place_label({}) is None
        assert build_place_label({'country': 'India'}) is None


@pytest.mark.parametrize("label,token", [
    ('Connaught Place, New Delhi, Delhi', 'New Delhi'),
    ('Pune, Maharashtra', 'Pune'),
    ('Chennai', 'Chennai'),
    ('', None),
    (None, None),
])
def test_extract_city_token(label, token):
    assert extract_city_token(label) == token


@pytest.mark.parametrize("station_city,token,expected", [
    ('New_Delhi', 'New Delhi', True),
    ('Delhi', 'New Delhi', True),
    ('Navi_Mumbai', 'Mumbai', True),
    ('Pune', 'Mumbai', False),
    ('', 'Mumbai', False),
])
def test_cities_match(station_city, token, expected):
    assert cities_match(station_city, token) is expected


def test_format_time_label_epoch_zero_is_ist():
    assert format_time_label(0) == '05:30 AM'


def test_parse_feed_timestamp():
    parsed = parse_feed_timestamp('19-10-2026 16:00:00')
    assert (parsed.hour, parsed.minute) == (16, 0)
    assert parsed.utcoffset().total_seconds() == 5.5 * 3600
    assert parse_feed_timestamp('yesterday') is None
    assert parse_feed_timestamp(None) is None
