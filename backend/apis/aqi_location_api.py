#!/usr/bin/env python3
"""
🎯 INDIA LIVE AQI API
=====================
Flask web server over the AQI query service

Endpoints:
- GET  /api/states (states with stations)
- GET  /api/states/<state_id>/cities
- GET  /api/states/<state_id>/cities/<city_id>/stations
- GET/POST /api/aqi (MAIN - lat/lon, state+city+station, or city)
- GET  /api/aqi/ip (IP geolocation fallback)
- GET  /api/stations/nearest?lat=&lon= (quick-pick list)
- GET  /api/health (health check)
- POST /api/cache/clear (drop cached feed)
"""

import logging
from datetime import datetime

from flask import Flask, jsonify, request
from flask_cors import CORS

from apis.aqi_query_service import AqiError, AqiQueryService, build_default_service
from processors.station_locator import location_request_from_dict, parse_coordinates
from utils.config import Config
from utils.errors import AqiServiceError

logger = logging.getLogger(__name__)

# Failure kind -> HTTP status
STATUS_BY_KIND = {
    'InvalidLocationRequest': 400,
    'StationNotFound': 404,
    'AqiUnavailable': 422,
    'MalformedFeed': 502,
    'NarrationFailed': 502,
    'GeolocationFailed': 502,
    'UpstreamUnavailable': 503,
    'FeedTimeout': 504,
    'NarrationTimeout': 504,
    'GeolocationTimeout': 504,
}


def _timestamp() -> str:
    return datetime.now().isoformat()


def error_response(kind: str, message: str):
    return jsonify({
        'success': False,
        'error': message,
        'kind': kind,
        'timestamp': _timestamp()
    }), STATUS_BY_KIND.get(kind, 500)


def _request_data() -> dict:
    if request.method == 'POST':
        return request.get_json(silent=True) or {}
    return request.args.to_dict()


def _client_ip():
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.remote_addr


def create_app(service: AqiQueryService = None) -> Flask:
    """Build the Flask app around a query service (default: wired from Config)"""
    app = Flask(__name__)
    CORS(app, origins=['*'])  # Enable CORS for frontend
    aqi_service = service or build_default_service()
    app.config['AQI_SERVICE'] = aqi_service

    @app.errorhandler(AqiServiceError)
    def handle_service_error(e):
        logger.warning(f"⚠️ {e.kind}: {e.message}")
        return error_response(e.kind, e.message)

    @app.route('/api/states', methods=['GET'])
    def get_states():
        states = aqi_service.get_states()
        return jsonify({'success': True, 'states': states, 'timestamp': _timestamp()})

    @app.route('/api/states/<state_id>/cities', methods=['GET'])
    def get_cities(state_id):
        cities = aqi_service.get_cities(state_id)
        return jsonify({'success': True, 'state': state_id, 'cities': cities, 'timestamp': _timestamp()})

    @app.route('/api/states/<state_id>/cities/<city_id>/stations', methods=['GET'])
    def get_stations(state_id, city_id):
        stations = aqi_service.get_stations(state_id, city_id)
        return jsonify({
            'success': True,
            'state': state_id,
            'city': city_id,
            'stations': stations,
            'timestamp': _timestamp()
        })

    @app.route('/api/aqi', methods=['GET', 'POST'])
    def get_aqi():
        """Main endpoint: AQI for coordinates, a manual selection or a city name"""
        location_request = location_request_from_dict(_request_data())
        result = aqi_service.get_aqi_data(location_request)
        if isinstance(result, AqiError):
            return error_response(result.kind, result.message)
        return jsonify({'success': True, 'data': result.to_dict(), 'timestamp': _timestamp()})

    @app.route('/api/aqi/ip', methods=['GET'])
    def get_aqi_by_ip():
        """AQI near the caller's IP location (or ?ip=)"""
        ip = request.args.get('ip') or _client_ip()
        result = aqi_service.get_aqi_data_for_ip(ip)
        if isinstance(result, AqiError):
            return error_response(result.kind, result.message)
        return jsonify({'success': True, 'data': result.to_dict(), 'timestamp': _timestamp()})

    @app.route('/api/stations/nearest', methods=['GET'])
    def get_nearest_stations():
        data = request.args.to_dict()
        lat, lon = parse_coordinates(data.get('lat'), data.get('lon') or data.get('lng'))

        stations = aqi_service.get_nearest_stations(lat, lon)
        return jsonify({
            'success': True,
            'location': {'lat': lat, 'lon': lon},
            'stations': stations,
            'timestamp': _timestamp()
        })

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """API health check"""
        return jsonify(aqi_service.get_status())

    @app.route('/api/cache/clear', methods=['POST'])
    def clear_cache():
        """Clear cached feed snapshot"""
        cleared = aqi_service.feed_cache.invalidate()
        return jsonify({
            'success': True,
            'message': 'Cleared cached feed snapshot' if cleared else 'No cached feed snapshot',
            'timestamp': _timestamp()
        })

    @app.route('/', methods=['GET'])
    def api_info():
        """API information and available endpoints"""
        return jsonify({
            'name': 'India Live AQI API',
            'version': '1.0.0',
            'description': 'Live CPCB station AQI with nearest-station matching and impact examples',
            'endpoints': {
                'states': 'GET /api/states',
                'cities': 'GET /api/states/<state_id>/cities',
                'stations': 'GET /api/states/<state_id>/cities/<city_id>/stations',
                'aqi': 'GET/POST /api/aqi - lat+lon | state+city+station | city',
                'aqi_ip': 'GET /api/aqi/ip - IP geolocation fallback',
                'nearest': 'GET /api/stations/nearest?lat=&lon=',
                'health': 'GET /api/health',
                'cache': 'POST /api/cache/clear'
            },
            'usage': {
                'main_endpoint': {
                    'url': '/api/aqi',
                    'method': 'POST',
                    'body': {'lat': 28.6139, 'lon': 77.2090}
                }
            },
            'timestamp': _timestamp()
        })

    return app


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        handlers=[logging.StreamHandler()]
    )
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    app = create_app()
    logger.info(f"🚀 Starting India Live AQI API at http://{Config.HOST}:{Config.PORT}")
    app.run(host=Config.HOST, port=Config.PORT, debug=Config.DEBUG, threaded=True)


if __name__ == '__main__':
    main()
