"""
Tests for market data service and routes.
"""

import pytest
from app import create_app, db
from models import MarketListing
from services.market_analysis_service import MarketAnalysisService
from tests import TEST_CONFIG, setup_test_environment


@pytest.fixture
def app():
    """Create test Flask application"""
    setup_test_environment()
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
def test_listings(app):
    """Create test listing records"""
    listings = [
        MarketListing(area='Gachibowli', project_name='A', rent=30000, sqft=1200, rent_per_sqft=25.0,
                      furnishing='Furnished'),
        MarketListing(area='Gachibowli', project_name='B', rent=40000, sqft=1300, rent_per_sqft=30.77,
                      furnishing='Semi-Furnished'),
        MarketListing(area='Gachibowli', project_name='C', rent=26000, sqft=1100, rent_per_sqft=23.64,
                      furnishing='Unfurnished'),
        MarketListing(area='Kondapur', project_name='D', rent=24000, sqft=1000, rent_per_sqft=24.0,
                      furnishing='Unfurnished'),
    ]
    db.session.add_all(listings)
    db.session.commit()


@pytest.fixture
def market_service():
    return MarketAnalysisService()


class TestMarketAnalysisService:
    """Test cases for MarketAnalysisService"""

    def test_list_areas_sorted_distinct(self, market_service, test_listings):
        assert market_service.list_areas() == ['Gachibowli', 'Kondapur']

    def test_list_listings_filters_by_area(self, market_service, test_listings):
        listings = market_service.list_listings('gachibowli')
        assert len(listings) == 3
        assert [listing['rent'] for listing in listings] == [26000, 30000, 40000]
        assert len(market_service.list_listings()) == 4

    def test_summary(self, market_service, test_listings):
        summary = market_service.summary('Gachibowli')

        assert summary['count'] == 3
        assert summary['avg_rent'] == pytest.approx(32000.0)
        assert summary['avg_sqft'] == pytest.approx(1200.0)
        assert summary['min_rent'] == 26000
        assert summary['max_rent'] == 40000
        # Semi-furnished counts as furnished
        assert summary['furnished_count'] == 2
        assert summary['unfurnished_count'] == 1

    def test_summary_empty_area(self, market_service, test_listings):
        summary = market_service.summary('Nowhere')
        assert summary['area'] == 'Nowhere'
        assert summary['count'] == 0
        assert summary['avg_rent'] == 0
        assert summary['furnished_count'] == 0

    def test_compare(self, market_service, test_listings):
        result = market_service.compare('Gachibowli', 'Kondapur')

        assert result['area1']['count'] == 3
        assert len(result['area2']['listings']) == 1
        assert result['comparison']['avg_rent']['winner'] == 'Kondapur'
        assert result['comparison']['avg_sqft']['winner'] == 'Gachibowli'
        assert result['comparison']['avg_rent']['delta'] == pytest.approx(8000.0)
        assert 'no_data' not in result['comparison']['avg_rent']

    def test_compare_with_empty_area_declares_no_winner(self, market_service, test_listings):
        result = market_service.compare('Kondapur', 'Nowhere')

        assert result['area2']['count'] == 0
        assert result['area2']['listings'] == []
        for entry in result['comparison'].values():
            assert entry['winner'] is None
            assert entry['no_data'] is True
        assert result['comparison']['avg_rent']['area1'] == pytest.approx(24000.0)

    def test_import_listings(self, market_service, app, tmp_path):
        csv_file = tmp_path / 'listings.csv'
        csv_file.write_text(
            "area,project_name,rent,sqft,furnishing\n"
            "Madhapur,Image Gardens,33000,1100,Furnished\n"
            "Madhapur,,22000,1000,Unfurnished\n"
            "Madhapur,Broken,abc,1000,Furnished\n"
            "Madhapur,Odd,30000,1000,Half-Furnished\n"
        )

        imported = MarketAnalysisService.import_listings(str(csv_file))

        assert imported == 2
        listings = market_service.list_listings('Madhapur')
        assert listings[1]['rent_per_sqft'] == pytest.approx(30.0)
        assert listings[0]['project_name'] is None

    def test_import_replace(self, market_service, test_listings, tmp_path):
        csv_file = tmp_path / 'listings.csv'
        csv_file.write_text("area,project_name,rent,sqft,furnishing,rent_per_sqft\n"
                            "Kondapur,New,25000,1000,Furnished,25.5\n")

        MarketAnalysisService.import_listings(str(csv_file), replace=True)

        assert MarketListing.query.count() == 1
        assert market_service.list_listings('Kondapur')[0]['rent_per_sqft'] == 25.5


class TestMarketRoutes:
    """Test cases for /market routes"""

    def test_areas(self, client, test_listings):
        response = client.get('/market/areas')
        assert response.status_code == 200
        assert response.get_json() == {'areas': ['Gachibowli', 'Kondapur']}

    def test_listings(self, client, test_listings):
        response = client.get('/market/listings?area=Kondapur')
        data = response.get_json()
        assert len(data['listings']) == 1
        assert data['listings'][0]['furnishing'] == 'Unfurnished'

    def test_summary(self, client, test_listings):
        response = client.get('/market/summary?area=Gachibowli')
        assert response.status_code == 200
        assert response.get_json()['count'] == 3

    def test_summary_requires_area(self, client):
        response = client.get('/market/summary')
        assert response.status_code == 400
        assert response.get_json()['error'] == 'RequestValidationError'

    def test_compare(self, client, test_listings):
        response = client.get('/market/compare?area1=Gachibowli&area2=Kondapur')

        assert response.status_code == 200
        data = response.get_json()
        assert data['comparison']['avg_rent_per_sqft']['better'] == 'lower'
        assert data['area1']['area'] == 'Gachibowli'

    def test_compare_same_area_rejected(self, client, test_listings):
        response = client.get('/market/compare?area1=Kondapur&area2=Kondapur')
        assert response.status_code == 400

    def test_compare_missing_area(self, client):
        response = client.get('/market/compare?area1=Kondapur')
        assert response.status_code == 400
