"""
Domain exceptions

NotFoundError and ValidationError subclass ValueError so handlers can treat
them as expected failures alongside plain ValueError.
"""


class PlannerError(Exception):
    """Base class for planner errors"""


class NotFoundError(PlannerError, ValueError):
    """Referenced user, habit, event or session does not exist"""


class ValidationError(PlannerError, ValueError):
    """Missing or malformed argument to a store or service operation"""


class AuthenticationError(PlannerError):
    """No valid external identity on the request"""


class StreamBusyError(PlannerError, ValueError):
    """A model call is already in flight for this planning session"""


class UpstreamError(PlannerError):
    """The language-model service failed (network or HTTP error)"""
