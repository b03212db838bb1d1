import pytest

from apis.aqi_query_service import AqiQueryService
from collectors.feed_cache import FeedCache
from processors.impact_narrator import ImpactNarrator
from utils.errors import GeocodeFailed


def station(station_id, lat, lon, aqi, **extra):
    node = {'id': station_id, 'latitude': lat, 'longitude': lon,
            'Air_Quality_Index': {'Value': aqi, 'Predominant_Parameter': 'PM2.5'}}
    node.update(extra)
    return node


def feed_document(states):
    """Wrap state nodes in the AqIndex/Country envelope"""
    return {'AqIndex': {'Country': {'id': 'India', 'State': states}}}


@pytest.fixture
def delhi_document():
    return feed_document([
        {
            'id': 'Delhi',
            'City': [
                {
                    'id': 'Delhi',
                    'Station': [
                        station('A', '28.6', '77.2', '180', lastupdate='19-10-2026 16:00:00'),
                        station('B', '28.7', '77.3', 'N/A'),
                    ],
                },
                {
                    'id': 'New_Delhi',
                    'Station': station('ITO', '28.628', '77.241', '250'),
                },
            ],
        },
        {
            'id': 'Uttar_Pradesh',
            'City': {
                'id': 'Noida',
                'Station': station('Sector 62', '28.624', '77.357', '210'),
            },
        },
        {
            'id': 'Karnataka',
            'City': {
                'id': 'Bengaluru',
                'Station': [
                    station('Hebbal', '13.029', '77.585', '62'),
                    station('Silk Board', 'NA', '77.622', '88'),
                ],
            },
        },
    ])


class CountingFetcher:
    """Returns a fixed document and counts upstream fetches"""

    def __init__(self, document=None, error=None):
        self.document = document
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.document


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class StubNarrator(ImpactNarrator):
    name = 'stub'

    def __init__(self, examples=None, error=None):
        self.examples = examples if examples is not None else ['Cigarettes smoked (24hrs): 4']
        self.error = error
        self.calls = []

    def generate_impact_examples(self, aqi, location):
        self.calls.append((aqi, location))
        if self.error is not None:
            raise self.error
        return self.examples


class StubGeocoder:
    def __init__(self, label=None, error=None):
        self.label = label
        self.error = error
        self.calls = []

    def reverse_geocode(self, lat, lon):
        self.calls.append((lat, lon))
        if self.error is not None:
            raise self.error
        return self.label


class StubIPGeolocator:
    def __init__(self, coords=(28.61, 77.21), error=None):
        self.coords = coords
        self.error = error

    def locate_ip(self, ip=None):
        if self.error is not None:
            raise self.error
        return self.coords


@pytest.fixture
def clock():
    return FakeClock(0.0)


@pytest.fixture
def fetcher(delhi_document):
    return CountingFetcher(delhi_document)


@pytest.fixture
def feed_cache(fetcher, clock):
    return FeedCache(fetcher, ttl_seconds=3600, clock=clock)


@pytest.fixture
def narrator():
    return StubNarrator()


@pytest.fixture
def geocoder():
    return StubGeocoder(error=GeocodeFailed())


@pytest.fixture
def service(feed_cache, geocoder, narrator):
    return AqiQueryService(feed_cache, geocoder, narrator, ip_geolocator=StubIPGeolocator())
