"""
Data-quality errors raised by the productivity trends pipeline.

Every error carries the context needed to locate the defective input
(year, forest id, source file, row) both as attributes and in its message.
"""

from typing import Optional, Sequence, Union


class ProductivityDataError(Exception):
    """Base class for all input data failures."""


class MissingSourceData(ProductivityDataError):
    """A configured sample year has no usable source, or a forest is absent from it."""

    def __init__(self, year: Union[int, Sequence[int]], source: Optional[str] = None,
                 forest_id: Optional[int] = None, reason: Optional[str] = None):
        self.year = year
        self.source = source
        self.forest_id = forest_id
        self.reason = reason

        if forest_id is not None:
            message = f"Forest {forest_id} has no record for sample year(s) {year}"
        else:
            message = f"No source data for sample year {year}"
        if source:
            message += f" (source: {source})"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MalformedRecord(ProductivityDataError):
    """A source row lacks a required field or holds a non-numeric value."""

    def __init__(self, source: str, row: Optional[int], reason: str):
        self.source = source
        self.row = row
        self.reason = reason

        location = f"{source}, row {row}" if row is not None else source
        super().__init__(f"Malformed record in {location}: {reason}")


class InvalidArea(ProductivityDataError):
    """A record's area is not strictly positive."""

    def __init__(self, forest_id, year, area):
        self.forest_id = forest_id
        self.year = year
        self.area = area
        super().__init__(
            f"Invalid area for forest {forest_id} in {year}: {area} (must be > 0)"
        )


class DuplicateYearInSeries(ProductivityDataError):
    """The same sample year appears more than once in one forest's series."""

    def __init__(self, forest_id, year):
        self.forest_id = forest_id
        self.year = year
        super().__init__(f"Forest {forest_id} has more than one record for year {year}")
