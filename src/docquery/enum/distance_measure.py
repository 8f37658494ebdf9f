from enum import StrEnum


class DistanceMeasure(StrEnum):
    """
    Distance function used by a nearest-neighbour vector search.
    """

    Euclidean = "EUCLIDEAN"
    """Straight-line distance between the two vectors."""

    Cosine = "COSINE"
    """Angle-based distance, independent of the vectors magnitude."""

    DotProduct = "DOT_PRODUCT"
    """Like cosine, but weighted by the vectors magnitude."""
