from datetime import datetime
from app import db
from sqlalchemy import CheckConstraint
from config import Config

class Area(db.Model):
    """Predefined locality used as a scoring unit. Reference data, never edited by users."""
    __tablename__ = 'areas'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    center_lat = db.Column(db.Float, nullable=False)
    center_lon = db.Column(db.Float, nullable=False)
    boundary_type = db.Column(db.String(20), CheckConstraint("boundary_type IN ('circle', 'polygon')"),
                              default='circle', nullable=False)
    radius_meters = db.Column(db.Integer)  # NULL means the default radius
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<Area {self.id}: {self.name}>'

    @property
    def effective_radius(self) -> int:
        return self.radius_meters or Config.DEFAULT_RADIUS_METERS

    def to_dict(self):
        """Convert area to dictionary for API responses"""
        return {
            'id': self.id,
            'name': self.name,
            'center_lat': self.center_lat,
            'center_lon': self.center_lon,
            'boundary_type': self.boundary_type,
            'radius_meters': self.radius_meters,
        }


class UserProfile(db.Model):
    """Household profile driving category weights. One per user."""
    __tablename__ = 'user_profiles'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    marital_status = db.Column(db.String(20), CheckConstraint("marital_status IN ('single', 'married')"),
                               nullable=False, default='single')
    has_parents = db.Column(db.Boolean, nullable=False, default=False)
    employment_status = db.Column(db.String(20),
                                  CheckConstraint("employment_status IN ('student', 'working', 'unemployed')"),
                                  nullable=False, default='working')
    income_range = db.Column(db.String(32))
    has_vehicle = db.Column(db.Boolean, nullable=False, default=False)
    has_elderly = db.Column(db.Boolean, nullable=False, default=False)
    has_children = db.Column(db.Boolean, nullable=False, default=False)
    additional_info = db.Column(db.Text)
    profile_picture = db.Column(db.Text)  # URL or storage reference

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Fields that influence weighting and are echoed back in profile_context
    WEIGHTING_FIELDS = (
        'marital_status', 'has_parents', 'employment_status', 'has_vehicle',
        'has_elderly', 'has_children', 'income_range',
    )

    def __repr__(self):
        return f'<UserProfile {self.user_id}>'

    def to_dict(self):
        """Convert profile to dictionary for API responses"""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'marital_status': self.marital_status,
            'has_parents': bool(self.has_parents),
            'employment_status': self.employment_status,
            'income_range': self.income_range,
            'has_vehicle': bool(self.has_vehicle),
            'has_elderly': bool(self.has_elderly),
            'has_children': bool(self.has_children),
            'additional_info': self.additional_info,
            'profile_picture': self.profile_picture,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def weighting_snapshot(self):
        """Plain-dict copy of the fields the weight adjuster reads."""
        snapshot = {field: getattr(self, field) for field in self.WEIGHTING_FIELDS}
        for flag in ('has_parents', 'has_vehicle', 'has_elderly', 'has_children'):
            snapshot[flag] = bool(snapshot[flag])
        return snapshot


class MarketListing(db.Model):
    """A single 2BHK rental listing used for market insights."""
    __tablename__ = 'market_listings'
    __table_args__ = (
        db.Index('ix_market_listings_area', 'area'),
    )

    id = db.Column(db.Integer, primary_key=True)
    area = db.Column(db.String(255), nullable=False)
    project_name = db.Column(db.String(255))
    rent = db.Column(db.Float, nullable=False)
    sqft = db.Column(db.Float, nullable=False)
    rent_per_sqft = db.Column(db.Float, nullable=False)
    furnishing = db.Column(db.String(20),
                           CheckConstraint("furnishing IN ('Furnished', 'Semi-Furnished', 'Unfurnished')"),
                           nullable=False, default='Unfurnished')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<MarketListing {self.area}: {self.rent}>'

    @property
    def is_furnished(self) -> bool:
        return self.furnishing != 'Unfurnished'

    def to_dict(self):
        """Convert listing to dictionary for API responses"""
        return {
            'area': self.area,
            'project_name': self.project_name,
            'rent': self.rent,
            'sqft': self.sqft,
            'rent_per_sqft': self.rent_per_sqft,
            'furnishing': self.furnishing,
        }
