"""HTTP client for the scoring API with last-request-wins slots"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Hashable, Optional, Tuple
import requests
from utils.auth import USER_ID_HEADER
from utils.errors import (
    InfrastructureUnavailable, InvalidGeometry, ProfileAlreadyExists, ProfileNotFound,
    RecommendationUnavailable, RequestValidationError, ScoringError,
)

logger = logging.getLogger(__name__)

# Error envelopes that map back onto a typed exception
_ERRORS_BY_NAME = {
    'InfrastructureUnavailable': InfrastructureUnavailable,
    'InvalidGeometry': InvalidGeometry,
    'ProfileNotFound': ProfileNotFound,
    'ProfileAlreadyExists': ProfileAlreadyExists,
    'RecommendationUnavailable': RecommendationUnavailable,
}

class SlotTracker:
    """Hands out generation tokens per logical slot (e.g. ``"place1"``).

    Starting a request for a slot supersedes every earlier request for the
    same slot; only the newest token is current.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._generations: Dict[Hashable, int] = {}

    def begin(self, slot: Hashable) -> int:
        with self._lock:
            token = self._generations.get(slot, 0) + 1
            self._generations[slot] = token
            return token

    def is_current(self, slot: Hashable, token: int) -> bool:
        with self._lock:
            return self._generations.get(slot) == token

    def resolve(self, slot: Hashable, token: int, result):
        """Return ``result`` if ``token`` is still current, otherwise None"""
        if self.is_current(slot, token):
            return result
        logger.debug(f"Discarding stale result for slot {slot!r} (token {token})")
        return None

class ScoringClient:
    """Talks to the scoring service; one session shared by all slots"""

    def __init__(self, base_url: str, user_id: str = None, timeout: float = 60):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.slots = SlotTracker()
        self.session = requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        if user_id:
            self.session.headers[USER_ID_HEADER] = user_id

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Scoring service unreachable at {path}: {str(e)}")
            raise ScoringError(f"Scoring service unreachable: {str(e)}", status_code=503)

        if response.status_code >= 400:
            raise self._error_from_response(response)
        return response.json()

    @staticmethod
    def _error_from_response(response) -> ScoringError:
        try:
            body = response.json()
        except ValueError:
            body = {}

        name = body.get('error') if isinstance(body, dict) else None
        detail = (body.get('detail') if isinstance(body, dict) else None) or response.reason or 'Request failed'

        if name == 'RequestValidationError':
            return RequestValidationError(detail)
        error_class = _ERRORS_BY_NAME.get(name)
        if error_class is not None:
            return error_class(detail, status_code=response.status_code)
        return ScoringError(detail, status_code=response.status_code)

    def _in_slot(self, slot: Optional[Hashable], method: str, path: str, **kwargs):
        """Run a request; when ``slot`` is given, drop the outcome if superseded"""
        if slot is None:
            return self._request(method, path, **kwargs)

        token = self.slots.begin(slot)
        try:
            result = self._request(method, path, **kwargs)
        except ScoringError:
            if not self.slots.is_current(slot, token):
                logger.debug(f"Ignoring failure of superseded request in slot {slot!r}")
                return None
            raise
        return self.slots.resolve(slot, token, result)

    def list_areas(self):
        return self._request('GET', '/areas')

    def score_area(self, area_id: int, slot: Hashable = None) -> Optional[Dict[str, Any]]:
        return self._in_slot(slot, 'GET', f'/areas/{area_id}/score')

    def score_custom(self, lat: float, lon: float, radius: int = None, name: str = None,
                     slot: Hashable = None) -> Optional[Dict[str, Any]]:
        params = {'lat': lat, 'lon': lon}
        if radius is not None:
            params['radius'] = radius
        if name:
            params['name'] = name
        return self._in_slot(slot, 'GET', '/areas/score/custom', params=params)

    def score_place(self, place: Dict[str, Any], slot: Hashable = None) -> Optional[Dict[str, Any]]:
        """Score ``{'area_id': ...}`` or ``{'lat', 'lon', 'radius'?, 'name'?}``"""
        if place.get('area_id') is not None:
            return self.score_area(place['area_id'], slot=slot)
        return self.score_custom(place['lat'], place['lon'], place.get('radius'), place.get('name'), slot=slot)

    def compare_places(self, place1: Dict[str, Any], place2: Dict[str, Any]) -> Tuple[Optional[Dict], Optional[Dict]]:
        """Score both places concurrently in slots ``place1`` and ``place2``.

        A result superseded by a newer request for its slot comes back as None.
        """
        with ThreadPoolExecutor(max_workers=2) as executor:
            future1 = executor.submit(self.score_place, place1, 'place1')
            future2 = executor.submit(self.score_place, place2, 'place2')
            return future1.result(), future2.result()

    def get_profile(self) -> Dict[str, Any]:
        return self._request('GET', '/profile')

    def recommend(self, score_result: Dict[str, Any], slot: Hashable = None) -> Optional[Dict[str, Any]]:
        """Request a narrative for a ScoreResult returned by this client"""
        payload = {
            'locality_name': score_result['area_name'],
            'final_score': score_result['final_score'],
            'category_scores': score_result['category_scores'],
            'infrastructure': score_result.get('infrastructure') or {},
            'profile_context': score_result.get('profile_context'),
        }
        return self._in_slot(slot, 'POST', '/areas/score/recommend', json=payload)
