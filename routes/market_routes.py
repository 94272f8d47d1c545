import logging
from flask import Blueprint, jsonify, request
from services.market_analysis_service import MarketAnalysisService
from utils.errors import RequestValidationError
from utils.validators import validate_market_compare_query

logger = logging.getLogger(__name__)

market_bp = Blueprint('market', __name__)

@market_bp.route('/areas')
def market_areas():
    """Area names that have rental listings"""
    return jsonify({"areas": MarketAnalysisService().list_areas()})

@market_bp.route('/listings')
def market_listings():
    """Listings for one area, or every listing when no area is given"""
    area = request.args.get('area')
    return jsonify({"listings": MarketAnalysisService().list_listings(area)})

@market_bp.route('/summary')
def market_summary():
    area = (request.args.get('area') or '').strip()
    if not area:
        raise RequestValidationError({'area': ['Missing data for required field.']})
    return jsonify(MarketAnalysisService().summary(area))

@market_bp.route('/compare')
def market_compare():
    query = validate_market_compare_query(request.args.to_dict())
    return jsonify(MarketAnalysisService().compare(query['area1'], query['area2']))
