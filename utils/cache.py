"""Caching utilities for the application"""
import os
from flask_caching import Cache
import logging

logger = logging.getLogger(__name__)

cache = Cache()

def init_cache(app):
    """Initialize caching with appropriate backend"""
    redis_url = os.environ.get('REDIS_URL')

    if redis_url and not app.config.get('TESTING', False):
        # Use Redis if available
        cache_config = {
            'CACHE_TYPE': 'RedisCache',
            'CACHE_REDIS_URL': redis_url,
            'CACHE_DEFAULT_TIMEOUT': 300  # 5 minutes default
        }
        logger.info("Using Redis for caching")
    else:
        # Fall back to simple in-memory cache
        cache_config = {
            'CACHE_TYPE': 'SimpleCache',
            'CACHE_DEFAULT_TIMEOUT': 300
        }
        logger.info("Using in-memory caching (Redis not configured)")

    app.config.update(cache_config)
    cache.init_app(app)
    return cache

def _infrastructure_key(lat, lon, radius):
    # 4 decimal places is about 11 meters of precision
    return f"infrastructure:{round(lat, 4)}:{round(lon, 4)}:{int(radius)}"

def cache_infrastructure_data(lat, lon, radius, data, timeout=86400):
    """Cache infrastructure lookup results by location (24 hours default)"""
    cache_key = _infrastructure_key(lat, lon, radius)
    cache.set(cache_key, data, timeout=timeout)
    logger.debug(f"Cached infrastructure data: {cache_key}")

def get_cached_infrastructure_data(lat, lon, radius):
    """Get cached infrastructure data if available"""
    cache_key = _infrastructure_key(lat, lon, radius)
    data = cache.get(cache_key)

    if data is not None:
        logger.debug(f"Infrastructure cache hit: {cache_key}")

    return data
