"""Exceptions raised by the review services."""


class ReviewServiceError(Exception):
    """Base class for review pipeline errors."""


class ConfigurationMissingError(ReviewServiceError):
    """A required setting (e.g. the Places API key) is not configured.

    Raised before any per-store work starts, since no store can succeed
    without it.
    """


class PeriodRangeTooLargeError(ReviewServiceError):
    """The requested range spans more periods than the dashboard will build."""
