import logging
from typing import Dict, List, Mapping, Optional, Tuple
from config import Config
from services.scoring.config_manager import ScoringConfigManager
from utils.errors import IncompleteScoreInput

logger = logging.getLogger(__name__)

ADJUSTMENT_NOTES = {
    'has_vehicle': "Owns a vehicle: transport weight reduced",
    'has_elderly': "Elderly family members: healthcare weight increased",
    'has_children': "Children in household: education weight increased",
    'student': "Student: education weight increased, healthcare weight slightly reduced",
    'married_with_parents': "Married and living with parents: healthcare and grocery weights increased",
}

class WeightManager:
    """Derives per-category weights from a household profile"""

    def __init__(self, config_manager: ScoringConfigManager = None):
        self.config_manager = config_manager or ScoringConfigManager()

    def default_weights(self) -> Dict[str, float]:
        return {category: float(weight) for category, weight in Config.DEFAULT_CATEGORY_WEIGHTS.items()}

    def adjust(self, base: Mapping[str, float], profile: Optional[Mapping]) -> Tuple[Dict[str, float], List[str]]:
        """Apply profile rules to ``base`` weights.

        Returns the adjusted weights and the notes for the rules that fired,
        in application order. When no rule fires the base weights come back
        unchanged; otherwise they are re-normalized to percentages summing to
        100, with every category held at or above ``Config.WEIGHT_FLOOR``.
        """
        missing = set(Config.CATEGORIES) - set(base)
        if missing:
            raise IncompleteScoreInput(missing)

        weights = {category: float(base[category]) for category in Config.CATEGORIES}
        adjustments: List[str] = []

        if not profile:
            return weights, adjustments

        for rule, multipliers in self.config_manager.get_adjustment_rules():
            if not self._rule_applies(rule, profile):
                continue
            for category, multiplier in multipliers.items():
                weights[category] = max(weights[category] * multiplier, Config.WEIGHT_FLOOR)
            adjustments.append(ADJUSTMENT_NOTES[rule])
            logger.debug(f"Profile rule '{rule}' applied: {multipliers}")

        if not adjustments:
            return weights, adjustments

        return self.to_percentages(weights), adjustments

    @staticmethod
    def _rule_applies(rule: str, profile: Mapping) -> bool:
        if rule == 'has_vehicle':
            return bool(profile.get('has_vehicle'))
        if rule == 'has_elderly':
            return bool(profile.get('has_elderly'))
        if rule == 'has_children':
            return bool(profile.get('has_children'))
        if rule == 'student':
            return profile.get('employment_status') == 'student'
        if rule == 'married_with_parents':
            return profile.get('marital_status') == 'married' and bool(profile.get('has_parents'))
        raise ValueError(f"Unknown adjustment rule: {rule}")

    def normalize_weights(self, weights: Mapping[str, float]) -> Dict[str, float]:
        """Normalize weights to sum to 1.0 (MCDM requirement)"""
        floored = {k: max(float(v), Config.WEIGHT_FLOOR) for k, v in weights.items()}
        total_weight = sum(floored.values())

        normalized = {k: v / total_weight for k, v in floored.items()}

        new_sum = sum(normalized.values())
        if abs(new_sum - 1.0) > 0.001:
            logger.warning(f"Weight normalization imprecise: sum={new_sum:.6f}")

        return normalized

    def to_percentages(self, weights: Mapping[str, float]) -> Dict[str, float]:
        """Express weights as percentages summing to 100"""
        return {k: v * 100.0 for k, v in self.normalize_weights(weights).items()}
