"""Domain exceptions raised by the recommendation engine.

Library code raises these; only the routers translate them into HTTP errors.
"""


class RecommendationError(Exception):
    """Base class for all recommendation engine errors."""


class DirectoryError(RecommendationError):
    """A single call to the nonprofit directory failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DirectoryNotConfiguredError(RecommendationError):
    """The directory client cannot be used at all (e.g. no API key)."""
