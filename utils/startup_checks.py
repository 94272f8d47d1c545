"""
Startup checks for the lifestyle score service
"""
import logging
import os
from typing import Any, Dict, List, Mapping
from urllib.parse import urlparse
import yaml

logger = logging.getLogger(__name__)

# Optional settings and the feature each one turns on
OPTIONAL_FEATURES = {
    'ANTHROPIC_API_KEY': 'ai_recommendations',
    'REDIS_URL': 'shared_infrastructure_cache',
}

REDIS_SCHEMES = ('redis', 'rediss', 'unix')


class StartupValidator:
    """Checks that the service can reach its database, Overpass and scoring rules"""

    @staticmethod
    def check_database(settings: Mapping[str, Any]) -> List[str]:
        database_uri = settings.get('SQLALCHEMY_DATABASE_URI') or settings.get('DATABASE_URL')
        if not database_uri:
            return ["DATABASE_URL is not set and DB_USER/DB_PASSWORD/DB_NAME are incomplete"]
        return []

    @staticmethod
    def check_overpass(settings: Mapping[str, Any]) -> List[str]:
        errors = []
        overpass_url = settings.get('OSM_OVERPASS_URL') or ''
        parsed = urlparse(overpass_url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            errors.append(f"OSM_OVERPASS_URL must be an http(s) URL, got '{overpass_url}'")

        for key in ('INFRASTRUCTURE_TIMEOUT_SECONDS', 'RECOMMENDATION_TIMEOUT_SECONDS'):
            value = settings.get(key)
            if value is not None and value <= 0:
                errors.append(f"{key} must be positive, got {value}")
        return errors

    @staticmethod
    def check_scoring_rules(settings: Mapping[str, Any]) -> List[str]:
        """
        Scoring rules fall back to built-in defaults, so problems here are
        warnings rather than errors.
        """
        path = settings.get('SCORING_RULES_PATH')
        if not path or not os.path.exists(path):
            return [f"Scoring rules file {path} not found; built-in defaults apply"]

        try:
            with open(path, 'r') as f:
                rules = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            return [f"Scoring rules file {path} is unreadable ({e}); built-in defaults apply"]

        if rules is not None and not isinstance(rules, dict):
            return [f"Scoring rules file {path} is not a mapping; built-in defaults apply"]
        return []

    @staticmethod
    def check_optional_features(settings: Mapping[str, Any], environ: Mapping[str, str]):
        """Returns (features, warnings, errors) for the optional integrations"""
        features, warnings, errors = {}, [], []

        for key, feature in OPTIONAL_FEATURES.items():
            value = environ.get(key) or settings.get(key)
            features[feature] = bool(value)
            if not value:
                warnings.append(f"{key} not set; {feature} disabled")

        redis_url = environ.get('REDIS_URL')
        if redis_url and urlparse(redis_url).scheme not in REDIS_SCHEMES:
            errors.append(f"REDIS_URL must use one of {', '.join(REDIS_SCHEMES)}")
            features['shared_infrastructure_cache'] = False

        return features, warnings, errors

    @classmethod
    def validate(cls, settings: Mapping[str, Any], environ: Mapping[str, str] = None,
                 raise_on_error: bool = True) -> Dict[str, Any]:
        """
        Run every startup check against the app config

        Args:
            settings: the Flask app config
            environ: environment to read optional integrations from
            raise_on_error: raise ValueError when any check fails

        Returns:
            dict with valid, errors, warnings and features
        """
        environ = os.environ if environ is None else environ

        errors = cls.check_database(settings) + cls.check_overpass(settings)
        warnings = cls.check_scoring_rules(settings)
        features, feature_warnings, feature_errors = cls.check_optional_features(settings, environ)
        warnings += feature_warnings
        errors += feature_errors

        for message in errors:
            logger.error(f"Startup check failed: {message}")
        for message in warnings:
            logger.warning(message)

        if errors and raise_on_error:
            raise ValueError(f"Invalid service configuration: {'; '.join(errors)}")

        return {
            'valid': not errors,
            'errors': errors,
            'warnings': warnings,
            'features': features,
        }
