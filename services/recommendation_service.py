"""
AI Recommendation Service
Turns a computed lifestyle score into a short narrative using Anthropic Claude
"""

import logging
from typing import Any, Dict, List, Optional
from anthropic import Anthropic
from config import Config
from utils.errors import IncompleteScoreInput, RecommendationUnavailable

logger = logging.getLogger(__name__)

CATEGORY_LABELS = {
    'transport': 'Transport',
    'healthcare': 'Healthcare',
    'education': 'Education',
    'lifestyle': 'Lifestyle',
    'grocery': 'Grocery',
}

FACILITY_LABELS = {
    'hospitals': 'Hospitals',
    'schools': 'Schools',
    'bus_stops': 'Bus stops',
    'metro_stations': 'Metro stations',
    'supermarkets': 'Supermarkets',
    'restaurants': 'Restaurants',
    'gyms': 'Gyms',
    'bars': 'Bars',
}

SECOND_PLACE_SUFFIX = '_place2'

class RecommendationService:
    """Service for generating locality recommendations with Claude"""

    def __init__(self, api_key: str = None, model: str = None,
                 max_tokens: int = None, timeout: float = None):
        self.api_key = api_key or Config.ANTHROPIC_API_KEY
        self.model = model or Config.ANTHROPIC_MODEL
        self.max_tokens = max_tokens or Config.RECOMMENDATION_MAX_TOKENS
        self.timeout = timeout or Config.RECOMMENDATION_TIMEOUT_SECONDS
        self._client = None

    @property
    def client(self) -> Anthropic:
        if not self.api_key:
            logger.error("ANTHROPIC_API_KEY not configured; recommendations disabled")
            raise RecommendationUnavailable("AI recommendations are not configured")

        if self._client is None:
            self._client = Anthropic(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def recommend(self, payload: Dict[str, Any]) -> Dict[str, str]:
        """
        Generate a recommendation for a scored locality

        Args:
            payload: validated request with locality_name, final_score,
                category_scores, infrastructure and profile_context

        Returns:
            ``{'recommendation': text, 'model': model}``
        """
        missing = set(Config.CATEGORIES) - set(payload.get('category_scores') or {})
        if missing:
            raise IncompleteScoreInput(missing, status_code=422)

        prompt = self.build_prompt(payload)
        client = self.client

        try:
            message = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=0.5,
                messages=[
                    {
                        "role": "user",
                        "content": prompt
                    }
                ]
            )
        except Exception as e:
            logger.error(f"Claude recommendation failed for {payload['locality_name']}: {str(e)}")
            raise RecommendationUnavailable(f"AI recommendation failed: {str(e)}")

        response_text = ""
        if message.content and len(message.content) > 0:
            content_block = message.content[0]
            if hasattr(content_block, 'text') and content_block.text:
                response_text = content_block.text.strip()

        if not response_text:
            logger.warning(f"Claude returned no text for {payload['locality_name']}")
            raise RecommendationUnavailable("AI recommendation came back empty")

        logger.info(f"Generated recommendation for {payload['locality_name']} ({len(response_text)} chars)")
        return {
            'recommendation': response_text,
            'model': self.model,
        }

    @staticmethod
    def build_prompt(payload: Dict[str, Any]) -> str:
        """Render the scoring payload as a prompt for Claude.

        Comparison payloads carry the second place's values under
        ``<key>_place2`` in both ``category_scores`` and ``infrastructure``;
        those are rendered as their own block instead of being dropped.
        """
        category_scores = payload['category_scores']
        infrastructure = payload.get('infrastructure') or {}
        second_scores = {
            category: category_scores[category + SECOND_PLACE_SUFFIX]
            for category in Config.CATEGORIES
            if category + SECOND_PLACE_SUFFIX in category_scores
        }
        second_facilities = {
            key[:-len(SECOND_PLACE_SUFFIX)]: count
            for key, count in infrastructure.items() if key.endswith(SECOND_PLACE_SUFFIX)
        }
        facilities = {
            key: count for key, count in infrastructure.items()
            if not key.endswith(SECOND_PLACE_SUFFIX)
        }
        comparing = bool(second_scores or second_facilities)

        lines = [
            f"Locality: {payload['locality_name']}",
            f"Overall lifestyle score: {payload['final_score']:.1f}/100",
            "",
            "First locality category scores (0-100):" if comparing else "Category scores (0-100):",
        ]
        lines.extend(RecommendationService._category_lines(category_scores))
        if second_scores:
            lines.append("")
            lines.append("Second locality category scores (0-100):")
            lines.extend(RecommendationService._category_lines(second_scores))

        if facilities:
            lines.append("")
            lines.append("First locality facilities:" if comparing else "Nearby facilities:")
            lines.extend(RecommendationService._facility_lines(facilities))
        if second_facilities:
            lines.append("")
            lines.append("Second locality facilities:")
            lines.extend(RecommendationService._facility_lines(second_facilities))

        household = RecommendationService._describe_household(payload.get('profile_context'))
        if household:
            lines.append("")
            lines.append(f"Household: {household}")

        data_block = "\n".join(lines)

        if comparing:
            ask = """In 4-6 sentences, say which of the two localities suits this household
better, naming the categories that decide it and one practical tip. Use plain
prose, no headings or lists."""
        else:
            ask = """In 4-6 sentences, explain whether this locality suits this household, naming
its strongest and weakest categories and one practical tip. Use plain prose,
no headings or lists."""

        return f"""You are advising someone choosing where to rent a home.

{data_block}

{ask}"""

    @staticmethod
    def _category_lines(scores: Dict[str, float]) -> List[str]:
        return [
            f"- {CATEGORY_LABELS.get(category, category.title())}: {scores[category]:.1f}"
            for category in Config.CATEGORIES if category in scores
        ]

    @staticmethod
    def _facility_lines(facilities: Dict[str, int]) -> List[str]:
        return [f"- {FACILITY_LABELS.get(facility, facility)}: {count}" for facility, count in facilities.items()]

    @staticmethod
    def _describe_household(profile_context: Optional[Dict[str, Any]]) -> str:
        if not profile_context:
            return ""

        parts = []
        if profile_context.get('marital_status'):
            parts.append(str(profile_context['marital_status']))
        if profile_context.get('employment_status'):
            parts.append(str(profile_context['employment_status']))
        if profile_context.get('has_parents'):
            parts.append("living with parents")
        if profile_context.get('has_children'):
            parts.append("has children")
        if profile_context.get('has_elderly'):
            parts.append("cares for elderly family")
        if profile_context.get('has_vehicle'):
            parts.append("owns a vehicle")
        if profile_context.get('income_range'):
            parts.append(f"income {profile_context['income_range']}")
        return ", ".join(parts)
