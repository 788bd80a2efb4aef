from enum import Enum


class Network(str, Enum):
    """Networks a token price can be resolved on. Values lowercase to match API query params."""

    ETHEREUM = "ethereum"
    POLYGON = "polygon"
