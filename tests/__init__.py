"""
Test package for the lifestyle score service.
"""

import os
import sys
import logging
from pathlib import Path
from unittest.mock import Mock

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set up test logging
logging.basicConfig(
    level=logging.WARNING,  # Reduce noise in tests
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Test configuration
TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_CONFIG = {
    'SQLALCHEMY_DATABASE_URI': TEST_DATABASE_URL,
    'SQLALCHEMY_ENGINE_OPTIONS': {},
}

# Overpass tags producing one element of each facility type
FACILITY_TAGS = {
    'hospitals': {'amenity': 'hospital'},
    'schools': {'amenity': 'school'},
    'bus_stops': {'highway': 'bus_stop'},
    'metro_stations': {'railway': 'station', 'station': 'subway'},
    'supermarkets': {'shop': 'supermarket'},
    'restaurants': {'amenity': 'restaurant'},
    'gyms': {'leisure': 'fitness_centre'},
    'bars': {'amenity': 'bar'},
}

SAMPLE_COUNTS = {
    'hospitals': 3,
    'schools': 2,
    'bus_stops': 5,
    'metro_stations': 1,
    'supermarkets': 4,
    'restaurants': 6,
    'gyms': 1,
    'bars': 0,
}

def setup_test_environment():
    """Set up test environment variables"""
    os.environ.update({
        'DATABASE_URL': TEST_DATABASE_URL,
        'SECRET_KEY': 'test-secret-key',
        'AUTO_CREATE_DB': 'false',
    })
    os.environ.pop('REDIS_URL', None)

def overpass_elements(counts, lat=17.44, lon=78.38):
    """Build Overpass elements matching ``counts``; every other one is an unnamed way"""
    elements = []
    element_id = 1
    for facility, count in counts.items():
        for i in range(count):
            tags = dict(FACILITY_TAGS[facility])
            offset = element_id * 0.0001
            if i % 2 == 0:
                tags['name'] = f"{facility} {i + 1}"
                elements.append({'type': 'node', 'id': element_id, 'lat': lat + offset,
                                 'lon': lon + offset, 'tags': tags})
            else:
                elements.append({'type': 'way', 'id': element_id,
                                 'center': {'lat': lat - offset, 'lon': lon - offset}, 'tags': tags})
            element_id += 1
    return elements

def overpass_response(counts=None, status_code=200, payload=None):
    """Mock ``requests.post`` return value for an Overpass query"""
    response = Mock()
    response.status_code = status_code
    if payload is None:
        payload = {'elements': overpass_elements(counts or {})}
    response.json.return_value = payload
    return response
