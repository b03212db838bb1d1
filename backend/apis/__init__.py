"""
APIs Package
============
Public query surface for India Live AQI

- aqi_query_service: AqiQueryService, the orchestrating entry point
- aqi_location_api: Flask endpoints over the service (imported on demand)
"""

from .aqi_query_service import AqiError, AqiQueryService, AqiResult, build_default_service

__all__ = ['AqiError', 'AqiQueryService', 'AqiResult', 'build_default_service']
__version__ = '1.0.0'
