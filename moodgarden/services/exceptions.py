"""Custom exceptions for the leaderboard engine."""


class LeaderboardError(Exception):
    """Base exception for leaderboard errors."""

    def __init__(self, message: str, error_type: str = "leaderboard_error"):
        self.message = message
        self.error_type = error_type
        super().__init__(message)


class InvalidLeaderboardRequestError(LeaderboardError):
    """Raised when request parameters are rejected before any store access."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, "invalid_request")
        self.field = field


class StoreUnavailableError(LeaderboardError):
    """Raised when a read or count against the stat store fails.

    Distinct from an empty leaderboard: an empty result is a successful
    outcome, this is not.
    """

    def __init__(self, operation: str, details: str | None = None):
        message = f"Stat store {operation} failed"
        if details:
            message = f"{message}: {details}"
        super().__init__(message, "store_unavailable")
        self.operation = operation
        self.details = details
