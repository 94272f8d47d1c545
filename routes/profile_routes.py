import logging
from flask import Blueprint, jsonify, request
from services.profile_service import ProfileService
from utils.auth import user_required
from utils.errors import RequestValidationError
from utils.validators import validate_profile

logger = logging.getLogger(__name__)

profile_bp = Blueprint('profile', __name__)

def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise RequestValidationError({'_schema': ['Request body must be a JSON object.']})
    return data

@profile_bp.route('/profile')
@user_required
def get_profile(user_context):
    """Stored household profile for the caller"""
    return jsonify(ProfileService.get_profile(user_context).to_dict())

@profile_bp.route('/profile', methods=['POST'])
@user_required
def create_profile(user_context):
    data = validate_profile(_json_body())
    profile = ProfileService.create_profile(user_context, data)
    return jsonify(profile.to_dict()), 201

@profile_bp.route('/profile', methods=['PUT'])
@user_required
def update_profile(user_context):
    """Partial update; only the fields sent are changed"""
    data = validate_profile(_json_body(), partial=True)
    profile = ProfileService.update_profile(user_context, data)
    return jsonify(profile.to_dict())
