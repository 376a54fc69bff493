"""Marketplace error taxonomy.

Every domain error carries a ``messages`` dict like Protean's own
``ValidationError`` and an HTTP ``status_code`` the API layer maps it to.
"""

from protean.exceptions import ValidationError


class MarketplaceError(ValidationError):
    """Base class for business-rule failures raised by the marketplace."""

    status_code = 400


class NotFoundError(MarketplaceError):
    """A referenced entity (cart line, open cart, shop) does not exist."""

    status_code = 404


class ConflictError(MarketplaceError):
    """Cross-reference mismatch, e.g. a food that belongs to another shop."""

    status_code = 409


class UnavailableError(MarketplaceError):
    """The referenced catalogue entry exists but cannot be ordered right now."""

    status_code = 400


class InvalidStateError(MarketplaceError):
    """The aggregate is not in a state that allows the requested operation."""

    status_code = 400


class UnauthorizedError(MarketplaceError):
    status_code = 401


class ForbiddenError(MarketplaceError):
    status_code = 403
