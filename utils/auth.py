"""Request-scoped user context and rate limiting"""
import time
import threading
from dataclasses import dataclass
from functools import wraps
from typing import Optional
from flask import request, jsonify
import logging

logger = logging.getLogger(__name__)

USER_ID_HEADER = 'X-User-Id'

# Simple in-memory rate limiting
rate_limit_storage = {}
rate_limit_lock = threading.Lock()

@dataclass(frozen=True)
class UserContext:
    """Identity of the caller for one request; passed explicitly to services"""
    user_id: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

def get_user_context() -> UserContext:
    """Build the caller's context from the gateway-supplied user header"""
    user_id = (request.headers.get(USER_ID_HEADER) or '').strip()
    return UserContext(user_id=user_id or None)

def user_required(f):
    """Decorator that rejects anonymous callers and injects ``user_context``"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        context = get_user_context()
        if context.is_anonymous:
            logger.warning(f"Anonymous access attempt to {request.endpoint} from {request.remote_addr}")
            return jsonify({
                "success": False,
                "error": "Unauthorized",
                "detail": f"Missing {USER_ID_HEADER} header."
            }), 401
        return f(*args, user_context=context, **kwargs)
    return decorated_function

def rate_limit(max_requests=10, window_seconds=60):
    """Rate limiting decorator

    Args:
        max_requests: Maximum number of requests allowed
        window_seconds: Time window in seconds
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Identify by user when known, IP address otherwise
            client_id = get_user_context().user_id or request.remote_addr
            endpoint = request.endpoint
            key = f"{client_id}:{endpoint}"

            current_time = time.time()

            with rate_limit_lock:
                _drop_stale_keys(current_time, window_seconds)
                timestamps = [
                    timestamp for timestamp in rate_limit_storage.get(key, [])
                    if current_time - timestamp < window_seconds
                ]

                if len(timestamps) >= max_requests:
                    rate_limit_storage[key] = timestamps
                    logger.warning(f"Rate limit exceeded for {client_id} on {endpoint}")
                    return jsonify({
                        "success": False,
                        "error": "RateLimitExceeded",
                        "detail": f"Rate limit exceeded. Maximum {max_requests} requests per {window_seconds} seconds."
                    }), 429

                timestamps.append(current_time)
                rate_limit_storage[key] = timestamps

            return f(*args, **kwargs)
        return decorated_function
    return decorator

def _drop_stale_keys(current_time, window_seconds):
    """Delete keys with no timestamp inside the window. Caller holds the lock."""
    stale_keys = [
        key for key, timestamps in rate_limit_storage.items()
        if not any(current_time - timestamp < window_seconds for timestamp in timestamps)
    ]
    for key in stale_keys:
        del rate_limit_storage[key]

def cleanup_rate_limits(window_seconds=3600):
    """Clean up old rate limit entries (call periodically)"""
    with rate_limit_lock:
        _drop_stale_keys(time.time(), window_seconds)
