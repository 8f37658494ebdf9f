from enum import StrEnum


class Direction(StrEnum):
    """
    Sort direction of an order-by clause.

    The enum values are the identifiers used by the wire protocol.
    """

    Ascending = "ASCENDING"
    Descending = "DESCENDING"


Asc = Direction.Ascending
"""Shorthand for [`Direction.Ascending`][docquery.enum.Direction.Ascending]."""

Desc = Direction.Descending
"""Shorthand for [`Direction.Descending`][docquery.enum.Direction.Descending]."""
