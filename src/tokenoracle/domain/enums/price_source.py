from enum import Enum


class PriceSource(str, Enum):
    """Which resolution tier produced a price."""

    CACHE = "cache"
    DATABASE = "database"
    INTERPOLATED = "interpolated"
    LIVE = "live"
