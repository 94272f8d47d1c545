import yaml
import os
import logging
from typing import Dict, Any, List, Tuple
from config import Config

logger = logging.getLogger(__name__)

# Order in which profile rules fire; also the order of adjustment notes
ADJUSTMENT_RULE_ORDER = [
    'has_vehicle',
    'has_elderly',
    'has_children',
    'student',
    'married_with_parents',
]

class ScoringConfigManager:
    """Manages saturation constants and profile adjustment multipliers"""

    DEFAULT_CONFIG = {
        'category_saturation': {
            'transport': 8.0,
            'healthcare': 3.0,
            'education': 4.0,
            'lifestyle': 10.0,
            'grocery': 3.0,
        },
        'profile_adjustments': {
            'has_vehicle': {'transport': 0.6},
            'has_elderly': {'healthcare': 1.5},
            'has_children': {'education': 1.5},
            'student': {'education': 1.3, 'healthcare': 0.9},
            'married_with_parents': {'healthcare': 1.2, 'grocery': 1.2},
        },
    }

    def __init__(self, path: str = None):
        self.path = path or Config.SCORING_RULES_PATH
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load scoring configuration from file, falling back to defaults per section"""
        config = {
            'category_saturation': dict(self.DEFAULT_CONFIG['category_saturation']),
            'profile_adjustments': {
                rule: dict(multipliers)
                for rule, multipliers in self.DEFAULT_CONFIG['profile_adjustments'].items()
            },
        }

        if not self.path or not os.path.exists(self.path):
            logger.debug("Scoring rules file not found, using defaults")
            return config

        try:
            with open(self.path, 'r') as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not read scoring rules from {self.path}: {e}. Using defaults")
            return config

        for category, scale in (loaded.get('category_saturation') or {}).items():
            if category in config['category_saturation']:
                config['category_saturation'][category] = float(scale)

        for rule, multipliers in (loaded.get('profile_adjustments') or {}).items():
            if rule in config['profile_adjustments'] and isinstance(multipliers, dict):
                config['profile_adjustments'][rule] = {
                    category: float(value) for category, value in multipliers.items()
                    if category in Config.CATEGORIES
                }

        return config

    def get_saturation_scale(self, category: str) -> float:
        """Facility count at which a category reaches ~63% of its maximum"""
        scale = self.config['category_saturation'][category]
        if scale <= 0:
            raise ValueError(f"Saturation scale for '{category}' must be positive, got {scale}")
        return scale

    def get_adjustment_rules(self) -> List[Tuple[str, Dict[str, float]]]:
        """Profile rules with their multipliers, in application order"""
        adjustments = self.config['profile_adjustments']
        return [(rule, adjustments[rule]) for rule in ADJUSTMENT_RULE_ORDER]
