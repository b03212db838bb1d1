#!/usr/bin/env python3
"""
📍 STATION LOCATOR
==================
Picks the single best CPCB station for a location request.

Matching policy:
- ByPath: exact (state, city, station) identity, AQI validity not required
- ByCityName: case/underscore-insensitive city match, first in feed order
- ByCoordinates: optional city-name phase (needs a reverse geocoded label),
  then nearest station by haversine distance

Only stations with a parsed AQI take part in name and distance matching.
Ties always resolve to the earliest station in feed order; the feed order
itself is controlled upstream and may change between refreshes.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from processors.feed_parser import FeedSnapshot, StationRecord
from utils.errors import InvalidLocationRequest, StationNotFound
from utils.geo_math import distance_km
from utils.location_naming import (cities_match, display_name,
                                   extract_city_token, normalize_city)

logger = logging.getLogger(__name__)

CITY_MATCH_RADIUS_KM = 50.0


@dataclass(frozen=True)
class ByCoordinates:
    lat: float
    lon: float


@dataclass(frozen=True)
class ByPath:
    state_id: str
    city_id: str
    station_id: str


@dataclass(frozen=True)
class ByCityName:
    name: str


LocationRequest = Union[ByCoordinates, ByPath, ByCityName]


@dataclass(frozen=True)
class LocatedStation:
    """Selected station and, for coordinate lookups, its distance in km (1 dp)"""
    station: StationRecord
    distance_km: Optional[float] = None


def _coerce_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise InvalidLocationRequest(f"'{field}' must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidLocationRequest(f"'{field}' must be a number")
    if not math.isfinite(number):
        raise InvalidLocationRequest(f"'{field}' must be a finite number")
    return number


def parse_coordinates(lat: Any, lon: Any) -> Tuple[float, float]:
    """
    Validate a caller supplied latitude/longitude pair

    Raises:
        InvalidLocationRequest: missing, non-numeric, non-finite or out of range
    """
    if lat in (None, '') or lon in (None, ''):
        raise InvalidLocationRequest('Valid latitude and longitude required')
    lat_f = _coerce_float(lat, 'lat')
    lon_f = _coerce_float(lon, 'lon')
    if not (-90.0 <= lat_f <= 90.0 and -180.0 <= lon_f <= 180.0):
        raise InvalidLocationRequest("Coordinates are out of range")
    return lat_f, lon_f


def _text_field(data: Dict[str, Any], field: str) -> Optional[str]:
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidLocationRequest(f"'{field}' must be a string")
    return value if value.strip() else None


def location_request_from_dict(data: Dict[str, Any]) -> LocationRequest:
    """
    Build a location request from a caller payload

    Coordinates win over a full state/city/station path, which wins over a
    bare city name.
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidLocationRequest("Location payload must be a JSON object")

    lat = data.get('lat', data.get('latitude'))
    lon = data.get('lon', data.get('lng', data.get('longitude')))

    if lat not in (None, '') and lon not in (None, ''):
        lat_f, lon_f = parse_coordinates(lat, lon)
        return ByCoordinates(lat=lat_f, lon=lon_f)

    state = _text_field(data, 'state')
    city = _text_field(data, 'city')
    station = _text_field(data, 'station')
    if state and city and station:
        return ByPath(state_id=state, city_id=city, station_id=station)
    if city:
        return ByCityName(name=city)

    raise InvalidLocationRequest()


def _stations_of(source: Union[FeedSnapshot, Sequence[StationRecord]]) -> Sequence[StationRecord]:
    if isinstance(source, FeedSnapshot):
        return source.stations
    return source


def _is_matchable(station: StationRecord) -> bool:
    return station.has_coordinates and station.has_aqi


def find_by_path(stations: Iterable[StationRecord], request: ByPath) -> Optional[StationRecord]:
    wanted = (request.state_id, request.city_id, request.station_id)
    for station in stations:
        if station.key == wanted:
            return station
    return None


def find_by_city_name(stations: Iterable[StationRecord], name: str) -> Optional[StationRecord]:
    wanted = normalize_city(name)
    if not wanted:
        return None
    for station in stations:
        if station.has_aqi and normalize_city(station.city_id) == wanted:
            return station
    return None


def find_by_city_label(stations: Iterable[StationRecord], lat: float, lon: float,
                       place_label: Optional[str],
                       radius_km: float = CITY_MATCH_RADIUS_KM) -> Optional[LocatedStation]:
    """
    City-name phase: first station in feed order whose city matches the
    label's city token and lies within ``radius_km`` of the query point
    """
    token = extract_city_token(place_label)
    if not token:
        return None

    for station in stations:
        if not _is_matchable(station) or not cities_match(station.city_id, token):
            continue
        distance = distance_km(lat, lon, station.latitude, station.longitude)
        if distance <= radius_km:
            logger.info(f"📍 City match '{token}' -> {station.station_id} ({distance:.1f} km)")
            return LocatedStation(station, round(distance, 1))
    return None


def find_nearest(stations: Iterable[StationRecord], lat: float, lon: float) -> Optional[LocatedStation]:
    """Nearest-distance phase over stations with coordinates and AQI"""
    closest = None
    min_distance = float('inf')
    valid_count = 0

    for station in stations:
        if not _is_matchable(station):
            continue
        valid_count += 1
        distance = distance_km(lat, lon, station.latitude, station.longitude)
        if distance < min_distance:
            min_distance = distance
            closest = station

    logger.debug(f"Found {valid_count} valid stations with AQI data")
    if closest is None:
        return None
    return LocatedStation(closest, round(min_distance, 1))


def locate(source: Union[FeedSnapshot, Sequence[StationRecord]], request: LocationRequest,
           place_label: Optional[str] = None,
           city_radius_km: float = CITY_MATCH_RADIUS_KM) -> LocatedStation:
    """
    Select one station for a request

    Args:
        source: Feed snapshot (or its station list)
        request: ByCoordinates, ByPath or ByCityName
        place_label: Reverse geocoded label, enables the city-name phase
        city_radius_km: Maximum distance for a city-name phase match

    Raises:
        StationNotFound: no station satisfies the request
    """
    stations = _stations_of(source)

    if isinstance(request, ByPath):
        station = find_by_path(stations, request)
        if station is None:
            raise StationNotFound()
        return LocatedStation(station)

    if isinstance(request, ByCityName):
        station = find_by_city_name(stations, request.name)
        if station is None:
            raise StationNotFound()
        return LocatedStation(station)

    if isinstance(request, ByCoordinates):
        located = None
        if place_label:
            located = find_by_city_label(stations, request.lat, request.lon,
                                         place_label, city_radius_km)
        if located is None:
            located = find_nearest(stations, request.lat, request.lon)
        if located is None:
            raise StationNotFound()
        return located

    raise InvalidLocationRequest(f"Unsupported location request: {request!r}")


def k_nearest(source: Union[FeedSnapshot, Sequence[StationRecord]], lat: float, lon: float,
              k: int = 3) -> List[LocatedStation]:
    """The ``k`` closest stations with coordinates and AQI, nearest first"""
    if k <= 0:
        return []
    candidates = [
        (distance_km(lat, lon, station.latitude, station.longitude), station)
        for station in _stations_of(source) if _is_matchable(station)
    ]
    # sort is stable, so equal distances keep feed order
    candidates.sort(key=lambda item: item[0])
    return [LocatedStation(station, round(distance, 1)) for distance, station in candidates[:k]]


def _named(ids: Iterable[str], namer=display_name) -> List[Dict[str, str]]:
    unique = list(dict.fromkeys(ids))
    entries = [{'id': feed_id, 'name': namer(feed_id)} for feed_id in unique]
    return sorted(entries, key=lambda entry: entry['name'].lower())


def list_states(source: Union[FeedSnapshot, Sequence[StationRecord]]) -> List[Dict[str, str]]:
    return _named(station.state_id for station in _stations_of(source))


def list_cities(source: Union[FeedSnapshot, Sequence[StationRecord]], state_id: str) -> List[Dict[str, str]]:
    return _named(station.city_id for station in _stations_of(source)
                  if station.state_id == state_id)


def list_stations(source: Union[FeedSnapshot, Sequence[StationRecord]], state_id: str,
                  city_id: str) -> List[Dict[str, str]]:
    stations = [station.station_id for station in _stations_of(source)
                if station.state_id == state_id and station.city_id == city_id]
    # station ids are already readable names in the feed
    return _named(stations, namer=str)
