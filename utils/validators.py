from marshmallow import Schema, fields, validate, ValidationError, EXCLUDE
from typing import Dict, Any, Tuple
from config import Config
from utils.errors import InvalidGeometry, RequestValidationError

class GeometrySchema(Schema):
    """Schema for validating a scoring point and radius"""
    lat = fields.Float(required=True, validate=validate.Range(min=-90, max=90))
    lon = fields.Float(required=True, validate=validate.Range(min=-180, max=180))
    radius = fields.Integer(required=True, strict=True, validate=validate.Range(
        min=Config.MIN_RADIUS_METERS, max=Config.MAX_RADIUS_METERS
    ))

class CustomScoreQuerySchema(GeometrySchema):
    """Schema for validating /areas/score/custom query parameters"""
    class Meta:
        unknown = EXCLUDE

    radius = fields.Integer(load_default=Config.DEFAULT_RADIUS_METERS, validate=validate.Range(
        min=Config.MIN_RADIUS_METERS, max=Config.MAX_RADIUS_METERS
    ))
    name = fields.Str(load_default=None, validate=validate.Length(max=255))

class ProfileSchema(Schema):
    """Schema for validating profile creation"""
    class Meta:
        unknown = EXCLUDE

    marital_status = fields.Str(required=True, validate=validate.OneOf(Config.MARITAL_STATUSES))
    has_parents = fields.Bool(required=True)
    employment_status = fields.Str(required=True, validate=validate.OneOf(Config.EMPLOYMENT_STATUSES))
    income_range = fields.Str(allow_none=True, load_default=None, validate=validate.OneOf(Config.INCOME_RANGES))
    has_vehicle = fields.Bool(load_default=False)
    has_elderly = fields.Bool(load_default=False)
    has_children = fields.Bool(load_default=False)
    additional_info = fields.Str(allow_none=True, load_default=None, validate=validate.Length(max=2000))
    profile_picture = fields.Str(allow_none=True, load_default=None, validate=validate.Length(max=2048))

class RecommendationSchema(Schema):
    """Schema for validating AI recommendation requests"""
    class Meta:
        unknown = EXCLUDE

    locality_name = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    final_score = fields.Float(required=True, validate=validate.Range(min=0, max=100))
    category_scores = fields.Dict(keys=fields.Str(), values=fields.Float(validate=validate.Range(min=0, max=100)),
                                  required=True)
    infrastructure = fields.Dict(keys=fields.Str(), values=fields.Integer(validate=validate.Range(min=0)),
                                 load_default=dict)
    profile_context = fields.Dict(allow_none=True, load_default=None)

class MarketCompareQuerySchema(Schema):
    """Schema for validating market comparison queries"""
    class Meta:
        unknown = EXCLUDE

    area1 = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    area2 = fields.Str(required=True, validate=validate.Length(min=1, max=255))

def validate_geometry(lat: Any, lon: Any, radius: Any) -> Tuple[float, float, int]:
    """Validate a point and radius, raising InvalidGeometry when out of range"""
    try:
        result = GeometrySchema().load({'lat': lat, 'lon': lon, 'radius': radius})
    except ValidationError as err:
        raise InvalidGeometry(f"Invalid geometry: {err.messages}")
    return result['lat'], result['lon'], result['radius']

def validate_custom_score_query(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate custom-location query parameters"""
    try:
        return dict(CustomScoreQuerySchema().load(data))
    except ValidationError as err:
        raise InvalidGeometry(f"Invalid geometry: {err.messages}")

def validate_profile(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Validate profile data; ``partial`` allows PUT-style updates"""
    try:
        result = ProfileSchema().load(data, partial=partial)
    except ValidationError as err:
        raise RequestValidationError(err.messages)

    if partial:
        # Drop defaults the client did not send so updates stay in place
        result = {k: v for k, v in result.items() if k in data}
    return dict(result)

def validate_recommendation_request(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate AI recommendation payload"""
    try:
        return dict(RecommendationSchema().load(data))
    except ValidationError as err:
        raise RequestValidationError(err.messages)

def validate_market_compare_query(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate market comparison query ensuring two distinct areas"""
    try:
        result = dict(MarketCompareQuerySchema().load(data))
    except ValidationError as err:
        raise RequestValidationError(err.messages)

    if result['area1'] == result['area2']:
        raise RequestValidationError({'area2': ['Choose two different areas to compare.']})
    return result
