"""
Typed failures raised by the scoring service.

Network-bound failures (infrastructure lookups, AI recommendations) are
recoverable and surface to the caller as 503s; malformed score inputs are
programming errors and surface as 500s unless the bad input came from the
client.
"""

from typing import Any, Dict, Optional


class ScoringError(Exception):
    """Base exception for scoring service errors."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.name,
            "detail": str(self),
        }


class InfrastructureUnavailable(ScoringError):
    """Geodata source unreachable, timed out or returned garbage."""

    status_code = 503


class IncompleteScoreInput(ScoringError):
    """Category scores or weights are missing required categories."""

    status_code = 500

    def __init__(self, missing, status_code: Optional[int] = None):
        self.missing = sorted(missing)
        super().__init__(
            f"Missing required categories: {', '.join(self.missing)}",
            status_code=status_code,
        )


class ProfileNotFound(ScoringError):
    """No profile stored for the requesting user."""

    status_code = 404


class RecommendationUnavailable(ScoringError):
    """AI narrative generation failed."""

    status_code = 503


class InvalidGeometry(ScoringError):
    """Latitude, longitude or radius out of range."""

    status_code = 400


class RequestValidationError(ScoringError):
    """Client payload or query string failed schema validation."""

    status_code = 400

    def __init__(self, messages):
        self.messages = messages
        super().__init__(f"Invalid request: {messages}")


class ProfileAlreadyExists(ScoringError):
    """Profile creation attempted for a user that already has one."""

    status_code = 409
