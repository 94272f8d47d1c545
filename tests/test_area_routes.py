"""
Tests for area, scoring and recommendation routes.
"""

import pytest
import json
import time
from unittest.mock import Mock, patch
from app import create_app, db
from config import Config
from models import Area, UserProfile
from services.scoring.weight_manager import ADJUSTMENT_NOTES
from utils.auth import cleanup_rate_limits, rate_limit_storage
from tests import SAMPLE_COUNTS, TEST_CONFIG, overpass_response, setup_test_environment


@pytest.fixture
def app():
    """Create test Flask application"""
    setup_test_environment()
    rate_limit_storage.clear()
    app = create_app(testing=True, config_overrides=TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def test_areas(app):
    """Create test area records"""
    areas = [
        Area(name='Gachibowli', center_lat=17.4401, center_lon=78.3489, radius_meters=2500),
        Area(name='Kondapur', center_lat=17.4600, center_lon=78.3548, radius_meters=None),
    ]
    db.session.add_all(areas)
    db.session.commit()
    return [area.id for area in areas]


@pytest.fixture
def vehicle_owner(app):
    profile = UserProfile(user_id='user-1', marital_status='single', has_parents=False,
                          employment_status='working', has_vehicle=True)
    db.session.add(profile)
    db.session.commit()
    return profile.user_id


@pytest.fixture
def mock_overpass():
    with patch('services.infrastructure_service.requests.post') as mock_post:
        mock_post.return_value = overpass_response(SAMPLE_COUNTS)
        yield mock_post


class TestAreaRoutes:
    """Test cases for area listing and infrastructure routes"""

    def test_health_check(self, client):
        response = client.get('/healthz')
        assert response.status_code == 200
        assert response.get_json() == {"ok": True}

    def test_list_areas(self, client, test_areas):
        response = client.get('/areas')

        assert response.status_code == 200
        data = response.get_json()
        assert [area['name'] for area in data] == ['Gachibowli', 'Kondapur']
        assert data[1]['radius_meters'] is None
        assert set(data[0]) == {'id', 'name', 'center_lat', 'center_lon', 'boundary_type', 'radius_meters'}

    def test_get_area(self, client, test_areas):
        response = client.get(f'/areas/{test_areas[0]}')
        assert response.status_code == 200
        assert response.get_json()['name'] == 'Gachibowli'

    def test_missing_area_is_json_404(self, client):
        response = client.get('/areas/999')
        assert response.status_code == 404
        data = response.get_json()
        assert data['success'] is False
        assert 'not found' in data['detail']

    def test_area_infrastructure(self, client, test_areas, mock_overpass):
        response = client.get(f'/areas/{test_areas[0]}/infrastructure')
        assert response.status_code == 200
        assert response.get_json() == SAMPLE_COUNTS

    def test_infrastructure_locations(self, client, test_areas, mock_overpass):
        response = client.get(f'/areas/{test_areas[1]}/infrastructure/locations')

        assert response.status_code == 200
        data = response.get_json()
        assert data['area_name'] == 'Kondapur'
        assert data['radius_meters'] == Config.DEFAULT_RADIUS_METERS
        assert data['hospital_count'] == 3
        assert data['metro_count'] == 1
        assert data['bar_count'] == 0
        assert len(data['restaurants']) == 6
        assert set(data['hospitals'][0]) == {'name', 'lat', 'lon'}

    def test_infrastructure_unavailable_is_503(self, client, test_areas):
        with patch('services.infrastructure_service.requests.post') as mock_post:
            mock_post.return_value = overpass_response(status_code=504, payload={})
            response = client.get(f'/areas/{test_areas[0]}/infrastructure/locations')

        assert response.status_code == 503
        assert response.get_json()['error'] == 'InfrastructureUnavailable'


class TestScoreRoutes:
    """Test cases for scoring routes"""

    def test_score_area_anonymous(self, client, test_areas, mock_overpass):
        response = client.get(f'/areas/{test_areas[0]}/score')

        assert response.status_code == 200
        data = response.get_json()
        assert data['area_id'] == test_areas[0]
        assert data['area_name'] == 'Gachibowli'
        assert data['profile_context'] is None
        assert data['infrastructure'] == SAMPLE_COUNTS
        assert sum(data['weights_used'].values()) == pytest.approx(1.0)
        assert 0 <= data['final_score'] <= 100

    def test_score_area_uses_profile(self, client, test_areas, vehicle_owner, mock_overpass):
        response = client.get(f'/areas/{test_areas[0]}/score', headers={'X-User-Id': vehicle_owner})

        data = response.get_json()
        assert data['profile_context']['has_vehicle'] is True
        assert data['profile_context']['adjustments'] == [ADJUSTMENT_NOTES['has_vehicle']]
        assert data['weights_used']['transport'] < 0.2

    def test_unknown_user_falls_back_to_defaults(self, client, test_areas, mock_overpass):
        response = client.get(f'/areas/{test_areas[0]}/score', headers={'X-User-Id': 'nobody'})
        assert response.status_code == 200
        assert response.get_json()['profile_context'] is None

    def test_score_custom(self, client, mock_overpass):
        response = client.get('/areas/score/custom?lat=17.45&lon=78.38&radius=1500')

        assert response.status_code == 200
        data = response.get_json()
        assert data['area_id'] == 0
        assert data['area_name'].startswith('Custom Location')
        assert data['radius_meters'] == 1500

    def test_score_custom_default_radius(self, client, mock_overpass):
        response = client.get('/areas/score/custom?lat=17.45&lon=78.38&name=Office')

        data = response.get_json()
        assert data['radius_meters'] == Config.DEFAULT_RADIUS_METERS
        assert data['area_name'] == 'Office'

    @pytest.mark.parametrize('radius', [500, 10000])
    def test_score_custom_radius_bounds(self, client, mock_overpass, radius):
        response = client.get(f'/areas/score/custom?lat=17.45&lon=78.38&radius={radius}')
        assert response.status_code == 200

    @pytest.mark.parametrize('query', [
        'lat=17.45&lon=78.38&radius=499',
        'lat=17.45&lon=78.38&radius=10001',
        'lat=17.45&lon=78.38&radius=10000.7',
        'lat=95&lon=78.38',
        'lon=78.38',
        'lat=abc&lon=78.38',
    ])
    def test_score_custom_invalid_geometry(self, client, mock_overpass, query):
        response = client.get(f'/areas/score/custom?{query}')

        assert response.status_code == 400
        assert response.get_json()['error'] == 'InvalidGeometry'
        mock_overpass.assert_not_called()

    def test_compare_areas(self, client, test_areas, mock_overpass):
        response = client.get(f'/areas/score/compare?area1={test_areas[0]}&area2={test_areas[1]}')

        assert response.status_code == 200
        data = response.get_json()
        assert data['place1']['area_name'] == 'Gachibowli'
        assert data['place2']['area_name'] == 'Kondapur'
        # Same counts on both sides
        assert data['comparison']['overall']['winner'] == 'Tie'
        assert set(data['comparison']['categories']) == set(Config.CATEGORIES)

    def test_compare_area_with_custom_point(self, client, test_areas):
        def fake_post(url, data=None, timeout=None):
            if 'around:2500' in data['data']:
                return overpass_response(SAMPLE_COUNTS)
            return overpass_response({'bus_stops': 1})

        with patch('services.infrastructure_service.requests.post', side_effect=fake_post):
            response = client.get(f'/areas/score/compare?area1={test_areas[0]}&lat2=17.5&lon2=78.5&radius2=1000')

        assert response.status_code == 200
        comparison = response.get_json()['comparison']
        assert comparison['overall']['winner'] == 'Gachibowli'
        assert comparison['overall']['delta'] > 0
        assert comparison['categories']['healthcare']['winner'] == 'Gachibowli'

    def test_compare_missing_place(self, client, test_areas, mock_overpass):
        response = client.get(f'/areas/score/compare?area1={test_areas[0]}')
        assert response.status_code == 400

    @pytest.mark.parametrize('area', ['abc', '1.5', ''])
    def test_compare_non_integer_area_id(self, client, test_areas, mock_overpass, area):
        response = client.get(f'/areas/score/compare?area1={area}&area2={test_areas[1]}')

        assert response.status_code == 400
        data = response.get_json()
        assert data['error'] == 'RequestValidationError'
        assert 'area1' in data['detail']
        mock_overpass.assert_not_called()


class TestRecommendationRoute:
    """Test cases for the AI recommendation route"""

    payload = {
        'locality_name': 'Gachibowli',
        'final_score': 72.5,
        'category_scores': {'transport': 80.0, 'healthcare': 70.0, 'education': 60.0,
                            'lifestyle': 90.0, 'grocery': 62.5},
        'infrastructure': SAMPLE_COUNTS,
        'profile_context': None,
    }

    def _claude_reply(self, text):
        message = Mock()
        message.content = [Mock(text=text)]
        return message

    @patch('services.recommendation_service.Anthropic')
    def test_recommendation(self, mock_anthropic, client):
        mock_anthropic.return_value.messages.create.return_value = self._claude_reply("Great for commuters.")

        with patch('services.recommendation_service.Config.ANTHROPIC_API_KEY', 'test-key'):
            response = client.post('/areas/score/recommend', data=json.dumps(self.payload),
                                   content_type='application/json')

        assert response.status_code == 200
        data = response.get_json()
        assert data['recommendation'] == "Great for commuters."
        assert data['model'] == Config.ANTHROPIC_MODEL

    @patch('services.recommendation_service.Anthropic')
    def test_recommendation_failure_is_503(self, mock_anthropic, client):
        mock_anthropic.return_value.messages.create.side_effect = Exception("overloaded")

        with patch('services.recommendation_service.Config.ANTHROPIC_API_KEY', 'test-key'):
            response = client.post('/areas/score/recommend', json=self.payload)

        assert response.status_code == 503
        assert response.get_json()['error'] == 'RecommendationUnavailable'

    def test_recommendation_without_key_is_503(self, client):
        with patch('services.recommendation_service.Config.ANTHROPIC_API_KEY', None):
            response = client.post('/areas/score/recommend', json=self.payload)

        assert response.status_code == 503
        assert response.get_json()['error'] == 'RecommendationUnavailable'

    def test_incomplete_category_scores(self, client):
        payload = dict(self.payload)
        payload['category_scores'] = {'transport': 80.0}

        with patch('services.recommendation_service.Config.ANTHROPIC_API_KEY', 'test-key'):
            response = client.post('/areas/score/recommend', json=payload)

        assert response.status_code == 422
        data = response.get_json()
        assert data['error'] == 'IncompleteScoreInput'
        assert 'grocery' in data['detail']

    def test_invalid_payload(self, client):
        response = client.post('/areas/score/recommend', json={'locality_name': 'X', 'final_score': 140})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'RequestValidationError'

    def test_malformed_json(self, client):
        response = client.post('/areas/score/recommend', data='{not json', content_type='application/json')
        assert response.status_code == 400
        assert response.get_json()['error'] == 'RequestValidationError'

    def test_rate_limited(self, client):
        with patch('services.recommendation_service.Config.ANTHROPIC_API_KEY', None):
            statuses = [client.post('/areas/score/recommend', json=self.payload).status_code
                        for _ in range(11)]

        assert statuses[:10] == [503] * 10
        assert statuses[10] == 429

    def test_stale_rate_limit_keys_are_dropped(self, client):
        rate_limit_storage['10.0.0.9:area.recommend'] = [time.time() - 120]

        with patch('services.recommendation_service.Config.ANTHROPIC_API_KEY', None):
            client.post('/areas/score/recommend', json=self.payload)

        assert '10.0.0.9:area.recommend' not in rate_limit_storage
        assert len(rate_limit_storage) == 1

    def test_cleanup_rate_limits(self):
        now = time.time()
        rate_limit_storage.update({'old:endpoint': [now - 7200], 'fresh:endpoint': [now - 7200, now - 10]})

        cleanup_rate_limits()

        assert 'old:endpoint' not in rate_limit_storage
        assert rate_limit_storage['fresh:endpoint'] == [now - 7200, now - 10]
