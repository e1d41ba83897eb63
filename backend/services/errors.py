"""
Domain exceptions shared by the service layer.

Routes translate these into HTTP responses: NotFoundError -> 404,
the other ValueError subclasses -> 400.
"""


class NotFoundError(ValueError):
    """Raised when a referenced team, player, match, pair or user does not exist."""


class NotEligibleError(ValueError):
    """Raised when a player's team is neither side of the match."""


class DuplicateError(ValueError):
    """Raised when a unique name (team name, username) is already taken."""
