#!/usr/bin/env python3
"""
🎯 AQI QUERY SERVICE
====================
The public entry point: feed cache -> station locator -> reverse geocoder ->
impact narrator, assembled into one result.

get_aqi_data() never raises for pipeline failures. It returns either a
complete AqiResult or an AqiError tagged with the failure kind; a failed
reverse geocode only drops the user location label.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Union

from collectors.feed_cache import FeedCache
from collectors.geolocation_collector import IPGeolocator, ReverseGeocoder
from processors.aqi_calculator import get_aqi_category
from processors.impact_narrator import ImpactNarrator
from processors.station_locator import (CITY_MATCH_RADIUS_KM, ByCoordinates, LocationRequest,
                                        k_nearest, list_cities, list_states, list_stations, locate)
from utils.errors import AqiServiceError, AqiUnavailable, GeocodeFailed, NarrationFailed
from utils.location_naming import display_name
from utils.timezone_handler import format_time_label, parse_feed_timestamp

logger = logging.getLogger(__name__)


@dataclass
class AqiResult:
    """Complete answer for one location request"""
    aqi: int
    station_id: str
    city_name: str
    state_name: str
    impact_examples: List[str]
    fetched_at_label: str
    category: str
    color: str
    health_message: str
    user_location_label: Optional[str] = None
    distance_km: Optional[float] = None
    station_updated_label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AqiError:
    """Tagged failure for one location request"""
    kind: str
    message: str

    @classmethod
    def from_exception(cls, error: AqiServiceError) -> 'AqiError':
        return cls(kind=error.kind, message=error.message)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AqiQueryService:
    """Orchestrates one AQI lookup per request; the feed cache is the only shared state"""

    def __init__(self, feed_cache: FeedCache, reverse_geocoder: Optional[ReverseGeocoder],
                 impact_narrator: ImpactNarrator, ip_geolocator: Optional[IPGeolocator] = None,
                 nearest_count: int = 3, city_radius_km: float = CITY_MATCH_RADIUS_KM):
        self.feed_cache = feed_cache
        self.reverse_geocoder = reverse_geocoder
        self.impact_narrator = impact_narrator
        self.ip_geolocator = ip_geolocator
        self.nearest_count = nearest_count
        self.city_radius_km = city_radius_km

    # ------------------------------------------------------------------
    # Manual selection (state -> city -> station)
    # ------------------------------------------------------------------

    def get_states(self) -> List[Dict[str, str]]:
        return list_states(self.feed_cache.get_snapshot())

    def get_cities(self, state_id: str) -> List[Dict[str, str]]:
        return list_cities(self.feed_cache.get_snapshot(), state_id)

    def get_stations(self, state_id: str, city_id: str) -> List[Dict[str, str]]:
        return list_stations(self.feed_cache.get_snapshot(), state_id, city_id)

    def get_nearest_stations(self, lat: float, lon: float) -> List[Dict[str, Any]]:
        """Quick-pick list of the closest stations with a valid AQI"""
        snapshot = self.feed_cache.get_snapshot()
        return [
            {
                'id': located.station.station_id,
                'city': located.station.city_id,
                'state': located.station.state_id,
                'city_name': display_name(located.station.city_id),
                'aqi': located.station.aqi_value,
                'distance_km': located.distance_km,
            }
            for located in k_nearest(snapshot, lat, lon, self.nearest_count)
        ]

    # ------------------------------------------------------------------
    # AQI lookup
    # ------------------------------------------------------------------

    def get_aqi_data(self, request: LocationRequest) -> Union[AqiResult, AqiError]:
        """Look up the AQI for a location request"""
        logger.info(f"🔎 Fetching AQI data for location: {request}")
        try:
            return self._get_aqi_data(request)
        except AqiServiceError as e:
            logger.warning(f"⚠️ AQI lookup failed: {e.kind} - {e.message}")
            return AqiError.from_exception(e)
        except Exception as e:
            logger.exception(f"❌ Unexpected error in get_aqi_data: {e}")
            return AqiError(kind=AqiServiceError.kind, message=AqiServiceError.user_message)

    def get_aqi_data_for_ip(self, ip: Optional[str] = None) -> Union[AqiResult, AqiError]:
        """IP geolocation fallback when the client cannot share GPS coordinates"""
        if self.ip_geolocator is None:
            return AqiError(kind='GeolocationFailed', message='IP geolocation is not configured.')
        try:
            lat, lon = self.ip_geolocator.locate_ip(ip)
        except AqiServiceError as e:
            logger.warning(f"⚠️ IP geolocation failed: {e.kind} - {e.message}")
            return AqiError.from_exception(e)
        return self.get_aqi_data(ByCoordinates(lat=lat, lon=lon))

    def _get_aqi_data(self, request: LocationRequest) -> AqiResult:
        snapshot = self.feed_cache.get_snapshot()
        logger.debug(f"Total stations available: {len(snapshot.stations)}")

        place_label = None
        if isinstance(request, ByCoordinates):
            place_label = self._reverse_geocode(request.lat, request.lon)

        located = locate(snapshot, request, place_label=place_label,
                         city_radius_km=self.city_radius_km)
        station = located.station

        if not station.has_aqi:
            logger.error(f"❌ Invalid AQI value for station: {station.station_id}")
            raise AqiUnavailable()

        aqi = station.aqi_value
        city_name = display_name(station.city_id)
        narration_location = place_label or city_name
        examples = self._narrate(aqi, narration_location)

        category = get_aqi_category(aqi)
        logger.info(f"✅ {station.station_id} ({city_name}): AQI {aqi} {category.level}"
                    + (f", {located.distance_km} km away" if located.distance_km is not None else ""))

        return AqiResult(
            aqi=aqi,
            station_id=station.station_id,
            city_name=city_name,
            state_name=display_name(station.state_id),
            impact_examples=examples,
            fetched_at_label=format_time_label(snapshot.fetched_at),
            category=category.level,
            color=category.color,
            health_message=category.health_message,
            user_location_label=place_label,
            distance_km=located.distance_km,
            station_updated_label=self._station_updated_label(station.last_update),
        )

    def _reverse_geocode(self, lat: float, lon: float) -> Optional[str]:
        if self.reverse_geocoder is None:
            return None
        try:
            return self.reverse_geocoder.reverse_geocode(lat, lon)
        except GeocodeFailed as e:
            logger.warning(f"⚠️ {e.kind}: {e.message}; matching without a place label")
            return None
        except Exception as e:
            logger.warning(f"⚠️ Reverse geocoding error: {e}; matching without a place label")
            return None

    def _narrate(self, aqi: int, location: str) -> List[str]:
        try:
            examples = self.impact_narrator.generate_impact_examples(aqi, location)
        except NarrationFailed:
            raise
        except Exception as e:
            raise NarrationFailed(f"Impact narration failed: {e}")
        if not examples:
            raise NarrationFailed("Impact narration returned no examples")
        return list(examples)

    @staticmethod
    def _station_updated_label(last_update: Optional[str]) -> Optional[str]:
        updated = parse_feed_timestamp(last_update)
        return updated.strftime('%d %b, %I:%M %p') if updated else None

    def get_status(self) -> Dict[str, Any]:
        return {
            'status': 'healthy',
            'feed_cache': self.feed_cache.stats(),
            'narrator': getattr(self.impact_narrator, 'name', type(self.impact_narrator).__name__),
            'reverse_geocoding': self.reverse_geocoder is not None,
            'ip_geolocation': self.ip_geolocator is not None,
        }


def build_default_service(config=None) -> AqiQueryService:
    """Wire the service from Config (environment / backend/.env)"""
    from collectors.cpcb_feed_collector import CPCBFeedCollector
    from processors.impact_narrator import build_impact_narrator
    from utils.config import Config

    config = config or Config
    collector = CPCBFeedCollector(config.FEED_URL, timeout_seconds=config.HTTP_TIMEOUT_SECONDS)
    feed_cache = FeedCache(collector.fetch_document, ttl_seconds=config.FEED_TTL_SECONDS,
                           serve_stale_on_error=config.SERVE_STALE_ON_ERROR)
    geocoder = ReverseGeocoder(config.NOMINATIM_URL, user_agent=config.GEOCODER_USER_AGENT,
                               timeout_seconds=config.HTTP_TIMEOUT_SECONDS)
    ip_geolocator = IPGeolocator(config.IPINFO_URL, token=config.IPINFO_TOKEN,
                                 timeout_seconds=config.HTTP_TIMEOUT_SECONDS)
    narrator = build_impact_narrator(config.NARRATOR_BACKEND, api_key=config.GEMINI_API_KEY,
                                     model=config.GEMINI_MODEL, prompt_name=config.NARRATION_PROMPT,
                                     timeout_seconds=config.HTTP_TIMEOUT_SECONDS)
    return AqiQueryService(feed_cache, geocoder, narrator, ip_geolocator=ip_geolocator,
                           nearest_count=config.NEAREST_STATION_COUNT,
                           city_radius_km=config.CITY_MATCH_RADIUS_KM)
