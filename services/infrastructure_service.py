import logging
import requests
from typing import Dict, List, Optional
from flask import has_app_context
from config import Config
from utils.cache import cache_infrastructure_data, get_cached_infrastructure_data
from utils.errors import InfrastructureUnavailable
from utils.validators import validate_geometry

logger = logging.getLogger(__name__)

# Overpass tag filters per facility type
FACILITY_FILTERS = {
    'hospitals': ['["amenity"~"^(hospital|clinic)$"]'],
    'schools': ['["amenity"="school"]'],
    'bus_stops': ['["highway"="bus_stop"]'],
    'metro_stations': ['["railway"="station"]["station"="subway"]'],
    'supermarkets': ['["shop"="supermarket"]'],
    'restaurants': ['["amenity"="restaurant"]'],
    'gyms': ['["leisure"="fitness_centre"]'],
    'bars': ['["amenity"~"^(bar|pub)$"]'],
}

# Label used when OSM has no name for a facility
FACILITY_LABELS = {
    'hospitals': 'Hospital',
    'schools': 'School',
    'bus_stops': 'Bus stop',
    'metro_stations': 'Metro station',
    'supermarkets': 'Supermarket',
    'restaurants': 'Restaurant',
    'gyms': 'Gym',
    'bars': 'Bar',
}

class InfrastructureService:
    """Looks up facilities around a point using the OSM Overpass API"""

    def __init__(self, overpass_url: str = None, timeout: float = None):
        self.osm_overpass_url = overpass_url or Config.OSM_OVERPASS_URL
        self.timeout = timeout or Config.INFRASTRUCTURE_TIMEOUT_SECONDS

    def locate(self, lat: float, lon: float, radius: int) -> Dict[str, Dict]:
        """Count facilities of each tracked type within ``radius`` meters.

        Returns ``{'counts': {facility_type: int}, 'locations': {facility_type:
        [{name, lat, lon}]}}``. Raises ``InvalidGeometry`` for out-of-range
        input and ``InfrastructureUnavailable`` when Overpass cannot answer;
        an unreachable source never turns into zero counts.
        """
        lat, lon, radius = validate_geometry(lat, lon, radius)

        if has_app_context():
            cached = get_cached_infrastructure_data(lat, lon, radius)
            if isinstance(cached, dict):
                return cached

        elements = self._query_overpass(lat, lon, radius)
        result = self._summarize(elements)

        logger.info(f"Located infrastructure around ({lat:.4f}, {lon:.4f}) r={radius}m: {result['counts']}")

        if has_app_context():
            cache_infrastructure_data(lat, lon, radius, result, timeout=Config.INFRASTRUCTURE_CACHE_SECONDS)

        return result

    def _build_query(self, lat: float, lon: float, radius: int) -> str:
        server_timeout = max(1, int(self.timeout) - 5)
        clauses = []
        for filters in FACILITY_FILTERS.values():
            for tag_filter in filters:
                for element_type in ('node', 'way'):
                    clauses.append(f'  {element_type}{tag_filter}(around:{radius},{lat},{lon});')

        body = "\n".join(clauses)
        return f"[out:json][timeout:{server_timeout}];\n(\n{body}\n);\nout center;"

    def _query_overpass(self, lat: float, lon: float, radius: int) -> List[Dict]:
        overpass_query = self._build_query(lat, lon, radius)

        try:
            response = requests.post(
                self.osm_overpass_url,
                data={'data': overpass_query},
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.warning(f"Overpass request timed out after {self.timeout}s")
            raise InfrastructureUnavailable(f"Geodata source timed out after {self.timeout:.0f} seconds")
        except requests.RequestException as e:
            logger.error(f"Overpass request failed: {str(e)}")
            raise InfrastructureUnavailable(f"Geodata source unreachable: {str(e)}")

        if response.status_code != 200:
            logger.error(f"Overpass returned HTTP {response.status_code}")
            raise InfrastructureUnavailable(f"Geodata source returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError:
            logger.error("Overpass returned a non-JSON body")
            raise InfrastructureUnavailable("Geodata source returned an unreadable response")

        # Overpass reports server-side timeouts as a 200 with a remark
        remark = payload.get('remark') or ''
        if 'runtime error' in remark.lower():
            logger.warning(f"Overpass runtime error: {remark}")
            raise InfrastructureUnavailable(f"Geodata source error: {remark}")

        elements = payload.get('elements')
        if not isinstance(elements, list):
            raise InfrastructureUnavailable("Geodata source response is missing elements")

        return elements

    def _summarize(self, elements: List[Dict]) -> Dict[str, Dict]:
        counts = {facility: 0 for facility in Config.FACILITY_TYPES}
        locations = {facility: [] for facility in Config.FACILITY_TYPES}

        for element in elements:
            tags = element.get('tags') or {}
            facility = classify_facility(tags)
            if facility is None:
                continue

            point = _element_point(element)
            counts[facility] += 1
            if point is not None:
                locations[facility].append({
                    'name': tags.get('name') or FACILITY_LABELS[facility],
                    'lat': point[0],
                    'lon': point[1],
                })

        return {'counts': counts, 'locations': locations}


def classify_facility(tags: Dict[str, str]) -> Optional[str]:
    """Map OSM tags to one tracked facility type, or None"""
    amenity = tags.get('amenity')
    if amenity in ('hospital', 'clinic'):
        return 'hospitals'
    if amenity == 'school':
        return 'schools'
    if tags.get('highway') == 'bus_stop':
        return 'bus_stops'
    if tags.get('railway') == 'station' and tags.get('station') == 'subway':
        return 'metro_stations'
    if tags.get('shop') == 'supermarket':
        return 'supermarkets'
    if amenity == 'restaurant':
        return 'restaurants'
    if tags.get('leisure') == 'fitness_centre':
        return 'gyms'
    if amenity in ('bar', 'pub'):
        return 'bars'
    return None


def _element_point(element: Dict):
    # Ways come back with a computed center
    if 'lat' in element and 'lon' in element:
        return float(element['lat']), float(element['lon'])
    center = element.get('center')
    if isinstance(center, dict) and 'lat' in center and 'lon' in center:
        return float(center['lat']), float(center['lon'])
    return None
