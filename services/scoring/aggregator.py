import logging
from typing import Mapping
from config import Config
from utils.errors import IncompleteScoreInput

logger = logging.getLogger(__name__)

class ScoreAggregator:
    """Combines category scores into one weighted 0-100 score"""

    def aggregate(self, category_scores: Mapping[str, float], weights: Mapping[str, float]) -> float:
        """Weighted mean of category scores, clamped to [0, 100].

        Only relative weight magnitudes matter, so scaling every weight by
        the same positive constant leaves the result unchanged. Rounding is
        left to presentation.
        """
        missing = set(Config.CATEGORIES) - set(category_scores)
        if missing:
            raise IncompleteScoreInput(missing)

        missing_weights = set(Config.CATEGORIES) - set(weights)
        if missing_weights:
            raise IncompleteScoreInput(missing_weights)

        total_score = 0.0
        weight_sum = 0.0

        # Fixed iteration order keeps floating-point summation reproducible
        for category in Config.CATEGORIES:
            weight = float(weights[category])
            if weight <= 0:
                raise ValueError(f"Weight for '{category}' must be positive, got {weight}")
            total_score += float(category_scores[category]) * weight
            weight_sum += weight

        final_score = total_score / weight_sum
        return min(100.0, max(0.0, final_score))
