import math
import logging
from typing import Dict, Mapping
from config import Config
from services.scoring.config_manager import ScoringConfigManager

logger = logging.getLogger(__name__)

class CategoryScorer:
    """Maps raw facility counts to bounded 0-100 category scores"""

    def __init__(self, config_manager: ScoringConfigManager = None):
        self.config_manager = config_manager or ScoringConfigManager()

    def score(self, counts: Mapping[str, int]) -> Dict[str, float]:
        """Score every category from infrastructure counts.

        Facility types absent from ``counts`` contribute nothing. Negative
        counts are a programming error and raise ``ValueError``.
        """
        scores = {}

        for category in Config.CATEGORIES:
            total = 0
            for facility in Config.CATEGORY_FACILITIES[category]:
                count = counts.get(facility) or 0
                if count < 0:
                    raise ValueError(f"Facility count for '{facility}' cannot be negative: {count}")
                total += count

            scores[category] = self._saturate(total, self.config_manager.get_saturation_scale(category))
            logger.debug(f"Calculated {category} score: {scores[category]:.1f} from {total} facilities")

        return scores

    @staticmethod
    def _saturate(count: int, scale: float) -> float:
        """Diminishing returns curve: each extra facility adds less than the last"""
        if count <= 0:
            return 0.0
        return min(100.0, max(0.0, 100.0 * (1.0 - math.exp(-count / scale))))
