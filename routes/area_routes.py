import logging
from flask import Blueprint, jsonify, request
from models import Area
from app import db
from services.infrastructure_service import InfrastructureService
from services.profile_service import ProfileService
from services.recommendation_service import RecommendationService
from services.scoring.scoring_service import ScoringService
from utils.auth import get_user_context, rate_limit
from utils.errors import RequestValidationError
from utils.validators import validate_custom_score_query, validate_recommendation_request

logger = logging.getLogger(__name__)

area_bp = Blueprint('areas', __name__)

# Names the facilities page reads for each count
LOCATION_COUNT_KEYS = {
    'hospitals': 'hospital_count',
    'schools': 'school_count',
    'bus_stops': 'bus_stop_count',
    'metro_stations': 'metro_count',
    'supermarkets': 'supermarket_count',
    'restaurants': 'restaurant_count',
    'gyms': 'gym_count',
    'bars': 'bar_count',
}

def _get_area(area_id: int) -> Area:
    return db.get_or_404(Area, area_id, description=f"Area {area_id} not found")

def _place_from_area(area: Area) -> dict:
    return {
        'lat': area.center_lat,
        'lon': area.center_lon,
        'radius': area.effective_radius,
        'area_id': area.id,
        'area_name': area.name,
    }

def _place_from_query(args, suffix: str = '') -> dict:
    """Resolve ``area{suffix}`` or ``lat{suffix}/lon{suffix}/radius{suffix}`` into a place"""
    raw_area_id = args.get(f'area{suffix}')
    if raw_area_id is not None:
        try:
            area_id = int(raw_area_id)
        except ValueError:
            raise RequestValidationError({f'area{suffix}': ['Not a valid integer.']})
        return _place_from_area(_get_area(area_id))

    raw = {}
    for field in ('lat', 'lon', 'radius', 'name'):
        value = args.get(f'{field}{suffix}')
        if value is not None:
            raw[field] = value

    query = validate_custom_score_query(raw)
    return {
        'lat': query['lat'],
        'lon': query['lon'],
        'radius': query['radius'],
        'area_name': query.get('name'),
    }

@area_bp.route('/healthz')
def health_check():
    """API health check"""
    return jsonify({"ok": True})

@area_bp.route('/areas')
def list_areas():
    """All predefined areas, alphabetically"""
    areas = Area.query.order_by(Area.name).all()
    return jsonify([area.to_dict() for area in areas])

@area_bp.route('/areas/<int:area_id>')
def get_area(area_id):
    return jsonify(_get_area(area_id).to_dict())

@area_bp.route('/areas/<int:area_id>/infrastructure')
def get_area_infrastructure(area_id):
    """Facility counts around an area's center"""
    area = _get_area(area_id)
    result = InfrastructureService().locate(area.center_lat, area.center_lon, area.effective_radius)
    return jsonify(result['counts'])

@area_bp.route('/areas/<int:area_id>/infrastructure/locations')
def get_area_infrastructure_locations(area_id):
    """Facility counts plus coordinates for map markers"""
    area = _get_area(area_id)
    result = InfrastructureService().locate(area.center_lat, area.center_lon, area.effective_radius)

    response = {
        'area_id': area.id,
        'area_name': area.name,
        'center': {'lat': area.center_lat, 'lon': area.center_lon},
        'radius_meters': area.effective_radius,
    }
    for facility_type, count_key in LOCATION_COUNT_KEYS.items():
        response[count_key] = result['counts'][facility_type]
        response[facility_type] = result['locations'][facility_type]

    return jsonify(response)

@area_bp.route('/areas/<int:area_id>/score')
def score_area(area_id):
    """Lifestyle score for a predefined area, weighted by the caller's profile"""
    area = _get_area(area_id)
    profile = ProfileService.weighting_context(get_user_context())
    return jsonify(ScoringService().score_area(area, profile))

@area_bp.route('/areas/score/custom')
def score_custom_location():
    """Lifestyle score for an arbitrary point and radius"""
    query = validate_custom_score_query(request.args.to_dict())
    profile = ProfileService.weighting_context(get_user_context())

    result = ScoringService().score_location(
        query['lat'], query['lon'], query['radius'], profile, area_name=query.get('name'),
    )
    return jsonify(result)

@area_bp.route('/areas/score/compare')
def compare_scores():
    """Score two places concurrently and report per-category winners"""
    place1 = _place_from_query(request.args, '1')
    place2 = _place_from_query(request.args, '2')
    profile = ProfileService.weighting_context(get_user_context())

    service = ScoringService()
    result1, result2 = service.score_places([place1, place2], profile)

    return jsonify({
        'place1': result1,
        'place2': result2,
        'comparison': service.compare(result1, result2),
    })

@area_bp.route('/areas/score/recommend', methods=['POST'])
@rate_limit(max_requests=10, window_seconds=60)
def recommend():
    """AI narrative for a computed score"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise RequestValidationError({'_schema': ['Request body must be a JSON object.']})

    payload = validate_recommendation_request(data)
    return jsonify(RecommendationService().recommend(payload))
