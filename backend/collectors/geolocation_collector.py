#!/usr/bin/env python3
"""
🌍 GEOLOCATION COLLECTORS
=========================
- ReverseGeocoder: coordinates -> place label via Nominatim (best effort)
- IPGeolocator: IP address -> approximate coordinates via ipinfo.io
"""

import logging
from typing import Optional, Tuple

import requests

from utils.errors import GeocodeFailed, GeocodeTimeout, GeolocationFailed, GeolocationTimeout
from utils.location_naming import build_place_label

logger = logging.getLogger(__name__)


class ReverseGeocoder:
    """Resolves a readable place label for a coordinate pair"""

    def __init__(self, base_url: str = "https://nominatim.openstreetmap.org/reverse",
                 user_agent: str = "IndiaLiveAQI/1.0", timeout_seconds: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def reverse_geocode(self, lat: float, lon: float) -> Optional[str]:
        """
        Get a "neighbourhood, city, state" label for coordinates

        Returns None when the response has no usable address components.

        Raises:
            GeocodeFailed: request failed (GeocodeTimeout on timeout)
        """
        params = {'lat': lat, 'lon': lon, 'format': 'json', 'addressdetails': 1}
        try:
            response = self.session.get(
                self.base_url,
                params=params,
                headers={'User-Agent': self.user_agent},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout:
            raise GeocodeTimeout()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise GeocodeFailed(f"Reverse geocoding failed: {e}")

        address = data.get('address') if isinstance(data, dict) else None
        label = build_place_label(address or {})
        logger.info(f"📍 Reverse geocoded {lat:.4f}, {lon:.4f} -> {label}")
        return label


class IPGeolocator:
    """Approximate location from an IP address (city-level accuracy at best)"""

    def __init__(self, base_url: str = "https://ipinfo.io", token: Optional[str] = None,
                 timeout_seconds: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def locate_ip(self, ip: Optional[str] = None) -> Tuple[float, float]:
        """
        Resolve ``ip`` (or the caller's own address when None) to (lat, lon)

        Raises:
            GeolocationFailed: lookup failed or returned no coordinates
        """
        url = f"{self.base_url}/{ip}/json" if ip else f"{self.base_url}/json"
        params = {'token': self.token} if self.token else None
        try:
            response = self.session.get(url, params=params, timeout=self.timeout_seconds)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout:
            raise GeolocationTimeout()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise GeolocationFailed(f"IP geolocation failed: {e}")

        loc_str = data.get("loc") if isinstance(data, dict) else None
        if not loc_str:
            raise GeolocationFailed("IP geolocation returned no coordinates")
        try:
            lat, lon = map(float, loc_str.split(","))
        except ValueError:
            raise GeolocationFailed(f"IP geolocation returned invalid coordinates: {loc_str}")

        logger.info(f"📍 IP {ip or 'self'} located at {lat:.4f}, {lon:.4f} ({data.get('city', 'unknown city')})")
        return lat, lon
