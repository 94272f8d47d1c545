import os

class Config:
    # Database - Required
    DATABASE_URL = os.environ.get("DATABASE_URL")

    # App settings
    SECRET_KEY = os.environ.get("SECRET_KEY")

    # AI Integration - Anthropic Claude
    ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY")
    ANTHROPIC_MODEL = os.environ.get("ANTHROPIC_MODEL") or "claude-3-5-sonnet-20241022"
    RECOMMENDATION_MAX_TOKENS = int(os.environ.get("RECOMMENDATION_MAX_TOKENS") or "600")
    RECOMMENDATION_TIMEOUT_SECONDS = float(os.environ.get("RECOMMENDATION_TIMEOUT_SECONDS") or "45")

    # OSM Overpass API (infrastructure lookups)
    OSM_OVERPASS_URL = os.environ.get("OSM_OVERPASS_URL") or "https://overpass-api.de/api/interpreter"
    INFRASTRUCTURE_TIMEOUT_SECONDS = float(os.environ.get("INFRASTRUCTURE_TIMEOUT_SECONDS") or "30")
    INFRASTRUCTURE_CACHE_SECONDS = int(os.environ.get("INFRASTRUCTURE_CACHE_SECONDS") or str(60 * 60 * 24))

    # Scoring rules file (saturation curve + profile multipliers)
    SCORING_RULES_PATH = os.environ.get("SCORING_RULES_PATH") or os.path.join(
        os.path.dirname(os.path.abspath(__file__)), 'data', 'scoring_rules.yml'
    )

    # Geometry bounds for scoring requests
    MIN_RADIUS_METERS = 500
    MAX_RADIUS_METERS = 10000
    DEFAULT_RADIUS_METERS = 2000

    # Lifestyle categories, in presentation order
    CATEGORIES = ['transport', 'healthcare', 'education', 'lifestyle', 'grocery']

    # Facility types tracked by the infrastructure locator
    FACILITY_TYPES = [
        'hospitals', 'schools', 'bus_stops', 'metro_stations',
        'supermarkets', 'restaurants', 'gyms', 'bars',
    ]

    # Which facility counts feed each category score
    CATEGORY_FACILITIES = {
        'transport': ['bus_stops', 'metro_stations'],
        'healthcare': ['hospitals'],
        'education': ['schools'],
        'lifestyle': ['restaurants', 'gyms', 'bars'],
        'grocery': ['supermarkets'],
    }

    # Equal default weights; only relative magnitudes matter
    DEFAULT_CATEGORY_WEIGHTS = {
        'transport': 50,
        'healthcare': 50,
        'education': 50,
        'lifestyle': 50,
        'grocery': 50,
    }

    # Smallest weight a category may carry after profile adjustments
    WEIGHT_FLOOR = 1.0

    # Market comparison: which direction wins per metric
    MARKET_COMPARE_METRICS = {
        'avg_rent': 'lower',
        'avg_sqft': 'higher',
        'avg_rent_per_sqft': 'lower',
        'furnished_count': 'higher',
    }

    # Profile enums
    MARITAL_STATUSES = ['single', 'married']
    EMPLOYMENT_STATUSES = ['student', 'working', 'unemployed']
    INCOME_RANGES = [
        'below_20k', '20k_40k', '40k_60k', '60k_100k',
        '100k_200k', 'above_200k', 'prefer_not_to_say',
    ]
    FURNISHING_TYPES = ['Furnished', 'Semi-Furnished', 'Unfurnished']
