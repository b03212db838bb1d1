"""
Failure kinds for the AQI lookup pipeline.

Every error carries a stable ``kind`` tag (reported to callers verbatim) and a
``user_message`` suitable for display. Timeout variants subclass their parent
so callers may catch either.
"""


class AqiServiceError(Exception):
    """Base class for all pipeline failures"""

    kind = 'InternalError'
    user_message = 'An unexpected error occurred while fetching AQI data.'

    def __init__(self, message: str = None):
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


class UpstreamUnavailable(AqiServiceError):
    kind = 'UpstreamUnavailable'
    user_message = 'The CPCB air quality feed is unavailable right now. Please try again shortly.'


class FeedTimeout(UpstreamUnavailable):
    kind = 'FeedTimeout'
    user_message = 'The CPCB air quality feed did not respond in time. Please try again shortly.'


class MalformedFeed(AqiServiceError):
    kind = 'MalformedFeed'
    user_message = 'The CPCB air quality feed returned data in an unexpected format.'


class StationNotFound(AqiServiceError):
    kind = 'StationNotFound'
    user_message = ('Could not find AQI data for the specified location. '
                    'Please try selecting a location manually.')


class AqiUnavailable(AqiServiceError):
    kind = 'AqiUnavailable'
    user_message = 'AQI data is not available for this station.'


class NarrationFailed(AqiServiceError):
    kind = 'NarrationFailed'
    user_message = 'Could not generate impact examples for this reading.'


class NarrationTimeout(NarrationFailed):
    kind = 'NarrationTimeout'
    user_message = 'Generating impact examples took too long. Please try again.'


class GeocodeFailed(AqiServiceError):
    """Soft failure: callers fall back to station-derived labels"""

    kind = 'GeocodeFailed'
    user_message = 'Could not resolve a place name for these coordinates.'


class GeocodeTimeout(GeocodeFailed):
    kind = 'GeocodeTimeout'
    user_message = 'Reverse geocoding timed out.'


class GeolocationFailed(AqiServiceError):
    kind = 'GeolocationFailed'
    user_message = 'Could not determine your location from your IP address.'


class GeolocationTimeout(GeolocationFailed):
    kind = 'GeolocationTimeout'
    user_message = 'IP geolocation timed out.'


class InvalidLocationRequest(AqiServiceError):
    kind = 'InvalidLocationRequest'
    user_message = 'Provide coordinates, a state/city/station selection, or a city name.'
