"""
Error taxonomy for the dependency analytics pipeline.

Loader and cleaner errors (MalformedInputError, ValidationError) are fatal
to a run. Data-quality errors are raised or collected per (year, geography)
group so that one bad group does not block the others.
"""

from typing import Optional


class DependencyAnalyticsError(Exception):
    """Base class for all pipeline errors."""


class MalformedInputError(DependencyAnalyticsError):
    """Raised when the raw file is structurally unusable (missing columns, unparseable)."""


class ValidationError(DependencyAnalyticsError):
    """Raised when a value falls outside its expected domain."""


class DataQualityError(DependencyAnalyticsError):
    """
    A problem tied to a single (year, geography) group.

    Attributes:
        year: Year of the offending group (None when not year-specific)
        geography: Geography label of the offending group
        field: Record field the problem was found in
    """

    def __init__(self, message: str, year: Optional[int] = None,
                 geography: Optional[str] = None, field: Optional[str] = None):
        self.year = year
        self.geography = geography
        self.field = field
        super().__init__(f"[year={year}, geography={geography}, field={field}] {message}")

    @property
    def key(self):
        return (self.year, self.geography)


class IncompleteGroupError(DataQualityError):
    """A group does not carry exactly one value for every age bracket."""


class DivisionByZeroError(DataQualityError):
    """The working-age denominator of a group is zero."""


class LevelShiftError(DataQualityError):
    """A year-over-year change in a ratio is larger than the configured threshold."""


class InsufficientDataError(DependencyAnalyticsError):
    """A regression group has fewer distinct years than the reporting threshold."""

    def __init__(self, geography: str, observed: int, required: int):
        self.geography = geography
        self.observed = observed
        self.required = required
        super().__init__(
            f"Trend for '{geography}' needs at least {required} distinct years, found {observed}"
        )
