#!/usr/bin/env python3
"""
Simple Configuration - India Live AQI
=====================================
Loads settings from backend/.env (if present) and the process environment.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from backend/.env specifically
backend_env_path = Path(__file__).parent.parent / '.env'
load_dotenv(backend_env_path)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Application configuration class."""

    # CPCB CAAQMS feed
    FEED_URL = os.getenv('AQI_FEED_URL', 'https://airquality.cpcb.gov.in/caaqms/rss_feed')
    FEED_TTL_SECONDS = int(os.getenv('AQI_FEED_TTL_SECONDS', 3600))
    SERVE_STALE_ON_ERROR = _env_bool('AQI_SERVE_STALE_ON_ERROR', False)

    # Every outbound call carries this timeout
    HTTP_TIMEOUT_SECONDS = float(os.getenv('AQI_HTTP_TIMEOUT_SECONDS', 10))

    # Reverse geocoding (Nominatim)
    NOMINATIM_URL = os.getenv('NOMINATIM_URL', 'https://nominatim.openstreetmap.org/reverse')
    GEOCODER_USER_AGENT = os.getenv('GEOCODER_USER_AGENT', 'IndiaLiveAQI/1.0')

    # IP geolocation (ipinfo.io)
    IPINFO_URL = os.getenv('IPINFO_URL', 'https://ipinfo.io')
    IPINFO_TOKEN = os.getenv('IPINFO_TOKEN')

    # Impact narration
    NARRATOR_BACKEND = os.getenv('AQI_NARRATOR_BACKEND', 'gemini').lower()
    NARRATION_PROMPT = os.getenv('AQI_NARRATION_PROMPT', 'witty').lower()
    GEMINI_API_KEY = os.getenv('GEMINI_API_KEY')
    GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-2.5-flash')

    # Station matching
    NEAREST_STATION_COUNT = int(os.getenv('AQI_NEAREST_STATION_COUNT', 3))
    CITY_MATCH_RADIUS_KM = float(os.getenv('AQI_CITY_MATCH_RADIUS_KM', 50))

    # Flask settings
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', 5000))
    DEBUG = _env_bool('DEBUG', False)
