#!/usr/bin/env python3
"""
Load reference areas (and optionally market listings) into the database
"""

import json
import os
import sys
import logging

# Add the current directory to the path so we can import our modules
sys.path.append('.')

from app import create_app, db
from models import Area
from services.market_analysis_service import MarketAnalysisService
from config import Config
from utils.validators import validate_geometry

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_AREAS_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data', 'areas.json')

def seed_areas(path=DEFAULT_AREAS_PATH):
    """Upsert areas by name; must run inside an app context"""
    with open(path, encoding='utf-8') as handle:
        records = json.load(handle)

    created = updated = 0
    for record in records:
        radius = record.get('radius_meters')
        # Stored radii obey the same bounds as scoring requests
        validate_geometry(record['center_lat'], record['center_lon'], radius or Config.DEFAULT_RADIUS_METERS)

        area = Area.query.filter_by(name=record['name']).first()
        if area is None:
            area = Area(name=record['name'])
            db.session.add(area)
            created += 1
        else:
            updated += 1

        area.center_lat = record['center_lat']
        area.center_lon = record['center_lon']
        area.boundary_type = record.get('boundary_type', 'circle')
        area.radius_meters = radius

    db.session.commit()
    logger.info(f"Seeded areas from {path}: {created} created, {updated} updated")
    return created, updated

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed reference areas and market listings")
    parser.add_argument("--areas", default=DEFAULT_AREAS_PATH, help="Areas JSON file")
    parser.add_argument("--listings", help="Market listings CSV to import")
    parser.add_argument("--replace-listings", action="store_true",
                        help="Delete existing listings before importing")

    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        db.create_all()
        created, updated = seed_areas(args.areas)
        print(f"Areas: {created} created, {updated} updated")

        if args.listings:
            imported = MarketAnalysisService.import_listings(args.listings, replace=args.replace_listings)
            print(f"Imported {imported} market listings")
