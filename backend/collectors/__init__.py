"""
Collectors Package - India Live AQI
Network-facing collaborators: CPCB feed, feed cache, geolocation
"""

from .cpcb_feed_collector import CPCBFeedCollector
from .feed_cache import FeedCache
from .geolocation_collector import IPGeolocator, ReverseGeocoder

__all__ = [
    'CPCBFeedCollector',
    'FeedCache',
    'IPGeolocator',
    'ReverseGeocoder',
]
