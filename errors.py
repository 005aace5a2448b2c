"""
Error taxonomy for the engagement core.

Every error the core raises on purpose derives from EngagementError and
carries the HTTP status the route layer should answer with. Anything else
reaching the route layer is treated as an internal failure.
"""


class EngagementError(Exception):
    """Base for expected, client-visible failures."""
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__

    def to_dict(self) -> dict:
        """Export for API responses."""
        return {"error": self.message}


class ValidationError(EngagementError):
    """Malformed or missing input. Raised before any store is touched."""
    status_code = 400


class PermissionDenied(EngagementError):
    """Actor is not the owner of the record it tries to mutate."""
    status_code = 403


class NotFoundError(EngagementError):
    """Referenced entity does not exist."""
    status_code = 404


class ConflictError(EngagementError):
    """
    An invariant violation the toggle convergence could not absorb.

    Not expected in normal operation.
    """
    status_code = 409


class UpstreamError(EngagementError):
    """Blob store or store I/O failure. Safe to retry for reads and toggles."""
    status_code = 503


class PipelineCancelled(UpstreamError):
    """Pipeline evaluation hit its deadline or was cancelled."""
    status_code = 504


class AuthenticationRequired(EngagementError):
    """No actor identity was supplied with the request."""
    status_code = 401
