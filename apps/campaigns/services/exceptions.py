"""
Domain-specific exceptions for campaigns services.

These exceptions represent business rule violations and persistence
failures. Views and management commands catch them and convert them to
HTTP responses or summary lines.
"""


class CampaignsServiceError(Exception):
    """Base exception for all campaigns service errors."""
    pass


class NotFoundError(CampaignsServiceError):
    """Raised when a requested record does not exist."""
    pass


class CampaignNotFoundError(NotFoundError):
    """Raised when a campaign does not exist."""
    pass


class OrderNotFoundError(NotFoundError):
    """Raised when an order does not exist."""
    pass


class InvalidAmountError(CampaignsServiceError, ValueError):
    """Raised when a money amount, weight or quantity is negative or not finite."""
    pass


class ConsolidationConflictError(CampaignsServiceError):
    """Raised when duplicate orders changed while being consolidated."""
    pass


class PersistenceError(CampaignsServiceError):
    """Raised when the database fails during a campaign operation."""
    pass
