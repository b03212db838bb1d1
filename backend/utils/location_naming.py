#!/usr/bin/env python3
"""
🏙️ Location Naming Utility
==========================
Consistent place labels and city names across the feed, the geocoder and the API
"""

from typing import Dict, Optional

NEIGHBOURHOOD_KEYS = ('suburb', 'neighbourhood', 'residential')
CITY_KEYS = ('city', 'town', 'village', 'municipality')


def display_name(feed_id: str) -> str:
    """Feed ids use underscores for spaces (``New_Delhi`` -> ``New Delhi``)"""
    return (feed_id or '').replace('_', ' ').strip()


def normalize_city(name: str) -> str:
    """Case and underscore-insensitive key for comparing city names"""
    return ' '.join(display_name(name).lower().split())


def _first_present(address: Dict, keys) -> Optional[str]:
    for key in keys:
        value = address.get(key)
        if value and str(value).strip():
            return str(value).strip()
    return None


def build_place_label(address: Dict) -> Optional[str]:
    """
    Join neighbourhood, city and state address components into a display label

    Args:
        address: Address components as returned by the reverse geocoder

    Returns:
        Label such as "Connaught Place, New Delhi, Delhi", or None when no
        component is present
    """
    if not address:
        return None

    parts = [
        _first_present(address, NEIGHBOURHOOD_KEYS),
        _first_present(address, CITY_KEYS),
        _first_present(address, ('state',)),
    ]
    parts = [part for part in parts if part]
    return ', '.join(parts) if parts else None


def extract_city_token(place_label: Optional[str]) -> Optional[str]:
    """
    Pick the city component out of a place label

    Labels end with the state, so the city is the part just before it. A
    single-part label is taken as the city itself.
    """
    if not place_label:
        return None

    parts = [part.strip() for part in place_label.split(',') if part.strip()]
    if not parts:
        return None
    if len(parts) >= 2:
        return parts[-2]
    return parts[0]


def cities_match(station_city: str, token: str) -> bool:
    """Check if either normalized city name contains the other"""
    city_key = normalize_city(station_city)
    token_key = normalize_city(token)
    if not city_key or not token_key:
        return False
    return token_key in city_key or city_key in token_key

