"""
Processors Package - India Live AQI
Feed parsing, station matching, AQI categories and impact narration
"""

from .aqi_calculator import AqiCategory, get_aqi_category
from .feed_parser import FeedSnapshot, StationRecord, parse_feed, xml_to_document
from .impact_narrator import (GeminiImpactNarrator, ImpactNarrator, RuleBasedImpactNarrator,
                              build_impact_narrator)
from .station_locator import (ByCityName, ByCoordinates, ByPath, LocatedStation, k_nearest,
                              locate)

__all__ = [
    'AqiCategory',
    'get_aqi_category',
    'FeedSnapshot',
    'StationRecord',
    'parse_feed',
    'xml_to_document',
    'ImpactNarrator',
    'GeminiImpactNarrator',
    'RuleBasedImpactNarrator',
    'build_impact_narrator',
    'ByCityName',
    'ByCoordinates',
    'ByPath',
    'LocatedStation',
    'k_nearest',
    'locate',
]
