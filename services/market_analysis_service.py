"""
Market Analysis Service
Rental listings, per-area summaries and side-by-side comparisons for the
2BHK market data shown next to lifestyle scores
"""

import csv
import logging
from typing import Dict, List, Optional
from sqlalchemy import func
from models import MarketListing
from app import db
from config import Config
from services.scoring.comparison import ComparisonEngine

logger = logging.getLogger(__name__)

SUMMARY_FIELDS = (
    'count', 'avg_rent', 'avg_sqft', 'avg_rent_per_sqft',
    'min_rent', 'max_rent', 'furnished_count', 'unfurnished_count',
)


class MarketAnalysisService:
    """Service for querying and summarizing rental market listings"""

    def __init__(self, comparison_engine: ComparisonEngine = None):
        self.comparison_engine = comparison_engine or ComparisonEngine()

    def list_areas(self) -> List[str]:
        """Distinct area names that have listings, sorted"""
        rows = db.session.query(MarketListing.area).distinct().order_by(MarketListing.area).all()
        return [row[0] for row in rows]

    def list_listings(self, area: Optional[str] = None) -> List[Dict]:
        query = MarketListing.query
        if area:
            query = query.filter(func.lower(MarketListing.area) == area.strip().lower())
        return [listing.to_dict() for listing in query.order_by(MarketListing.rent).all()]

    def summary(self, area: str) -> Dict:
        """
        Aggregate statistics for one area

        Semi-furnished listings count as furnished. An area without
        listings reports a zero count and zeroed figures.
        """
        listings = self.list_listings(area)
        summary = {'area': area}

        if not listings:
            summary.update({field: 0 for field in SUMMARY_FIELDS})
            return summary

        rents = [listing['rent'] for listing in listings]
        sqfts = [listing['sqft'] for listing in listings]
        rates = [listing['rent_per_sqft'] for listing in listings]
        unfurnished = sum(1 for listing in listings if listing['furnishing'] == 'Unfurnished')

        summary.update({
            'count': len(listings),
            'avg_rent': round(sum(rents) / len(rents), 2),
            'avg_sqft': round(sum(sqfts) / len(sqfts), 2),
            'avg_rent_per_sqft': round(sum(rates) / len(rates), 2),
            'min_rent': min(rents),
            'max_rent': max(rents),
            'furnished_count': len(listings) - unfurnished,
            'unfurnished_count': unfurnished,
        })
        return summary

    def compare(self, area1: str, area2: str) -> Dict:
        """Side-by-side summaries with a per-metric winner"""
        side1 = self.summary(area1)
        side1['listings'] = self.list_listings(area1)
        side2 = self.summary(area2)
        side2['listings'] = self.list_listings(area2)

        comparison = self.comparison_engine.compare_metrics(side1, side2, Config.MARKET_COMPARE_METRICS)
        logger.info(f"Market comparison {area1} vs {area2}: "
                    f"{side1['count']} and {side2['count']} listings")

        return {
            'area1': side1,
            'area2': side2,
            'comparison': comparison,
        }

    @staticmethod
    def import_listings(csv_path: str, replace: bool = False) -> int:
        """
        Load listings from a CSV file

        Columns: area, project_name, rent, sqft, furnishing and optionally
        rent_per_sqft (derived from rent/sqft when absent). Rows that fail
        to parse are skipped with a warning.

        Returns:
            Number of listings imported
        """
        if replace:
            deleted = MarketListing.query.delete()
            logger.info(f"Removed {deleted} existing listings")

        imported = 0
        with open(csv_path, newline='', encoding='utf-8') as handle:
            for line_number, row in enumerate(csv.DictReader(handle), start=2):
                try:
                    listing = MarketAnalysisService._listing_from_row(row)
                except (KeyError, ValueError) as e:
                    logger.warning(f"Skipping {csv_path}:{line_number}: {str(e)}")
                    continue
                db.session.add(listing)
                imported += 1

        db.session.commit()
        logger.info(f"Imported {imported} listings from {csv_path}")
        return imported

    @staticmethod
    def _listing_from_row(row: Dict[str, str]) -> MarketListing:
        area = (row.get('area') or '').strip()
        if not area:
            raise ValueError("area is required")

        rent = float(row['rent'])
        sqft = float(row['sqft'])
        if rent <= 0 or sqft <= 0:
            raise ValueError("rent and sqft must be positive")

        furnishing = (row.get('furnishing') or 'Unfurnished').strip()
        if furnishing not in Config.FURNISHING_TYPES:
            raise ValueError(f"unknown furnishing '{furnishing}'")

        rate = (row.get('rent_per_sqft') or '').strip()
        rent_per_sqft = float(rate) if rate else round(rent / sqft, 2)

        return MarketListing(
            area=area,
            project_name=(row.get('project_name') or '').strip() or None,
            rent=rent,
            sqft=sqft,
            rent_per_sqft=rent_per_sqft,
            furnishing=furnishing,
        )
