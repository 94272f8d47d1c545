import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional
from flask import current_app, has_app_context
from services.infrastructure_service import InfrastructureService
from services.scoring.aggregator import ScoreAggregator
from services.scoring.comparison import ComparisonEngine
from services.scoring.config_manager import ScoringConfigManager
from services.scoring.score_calculator import CategoryScorer
from services.scoring.weight_manager import WeightManager

logger = logging.getLogger(__name__)

CUSTOM_AREA_ID = 0

class ScoringService:
    """Main scoring service - coordinates other scoring components

    - InfrastructureService: facility lookups (network-bound)
    - CategoryScorer: counts to 0-100 category scores
    - WeightManager: profile-driven category weights
    - ScoreAggregator: weighted final score
    - ComparisonEngine: winners between two results
    """

    def __init__(self, infrastructure_service: InfrastructureService = None,
                 config_manager: ScoringConfigManager = None):
        config_manager = config_manager or ScoringConfigManager()
        self.infrastructure_service = infrastructure_service or InfrastructureService()
        self.category_scorer = CategoryScorer(config_manager)
        self.weight_manager = WeightManager(config_manager)
        self.aggregator = ScoreAggregator()
        self.comparison_engine = ComparisonEngine()

    def score_counts(self, counts: Mapping[str, int], profile: Optional[Mapping[str, Any]],
                     area_id: int, area_name: str) -> Dict[str, Any]:
        """Build a ScoreResult from infrastructure counts. Pure, no network."""
        category_scores = self.category_scorer.score(counts)

        weights, adjustments = self.weight_manager.adjust(self.weight_manager.default_weights(), profile)
        final_score = self.aggregator.aggregate(category_scores, weights)

        if profile is not None:
            profile_context = dict(profile)
            profile_context['adjustments'] = adjustments
        else:
            profile_context = None

        logger.info(f"Scored {area_name}: final={final_score:.1f} adjustments={len(adjustments)}")

        return {
            'area_id': area_id,
            'area_name': area_name,
            'final_score': final_score,
            'category_scores': category_scores,
            'weights_used': self.weight_manager.normalize_weights(weights),
            'infrastructure': dict(counts),
            'profile_context': profile_context,
        }

    def score_area(self, area, profile: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Score a predefined area around its center and effective radius"""
        return self.score_location(
            area.center_lat, area.center_lon, area.effective_radius, profile,
            area_id=area.id, area_name=area.name,
        )

    def score_location(self, lat: float, lon: float, radius: int, profile: Optional[Mapping[str, Any]],
                       area_id: int = CUSTOM_AREA_ID, area_name: str = None) -> Dict[str, Any]:
        """Score any point; custom points get a synthetic id and a coordinate name"""
        infrastructure = self.infrastructure_service.locate(lat, lon, radius)
        name = area_name or f"Custom Location ({float(lat):.4f}, {float(lon):.4f})"

        result = self.score_counts(infrastructure['counts'], profile, area_id, name)
        result['center'] = {'lat': float(lat), 'lon': float(lon)}
        result['radius_meters'] = int(radius)
        return result

    def score_places(self, places: List[Dict[str, Any]], profile: Optional[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Score several places concurrently; results keep the input order.

        Each place is ``{lat, lon, radius, area_id?, area_name?}``. The first
        failure is re-raised once every lookup has finished.
        """
        app = current_app._get_current_object() if has_app_context() else None

        def _score(place):
            if app is None:
                return self._score_place(place, profile)
            with app.app_context():
                return self._score_place(place, profile)

        with ThreadPoolExecutor(max_workers=max(1, len(places))) as executor:
            futures = [executor.submit(_score, place) for place in places]
            return [future.result() for future in futures]

    def _score_place(self, place: Dict[str, Any], profile):
        return self.score_location(
            place['lat'], place['lon'], place['radius'], profile,
            area_id=place.get('area_id', CUSTOM_AREA_ID), area_name=place.get('area_name'),
        )

    def compare(self, place1: Mapping[str, Any], place2: Mapping[str, Any]) -> Dict[str, Any]:
        return self.comparison_engine.compare(place1, place2)
