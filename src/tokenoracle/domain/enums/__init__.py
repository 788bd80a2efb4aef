from tokenoracle.domain.enums.job_state import JobState
from tokenoracle.domain.enums.network import Network
from tokenoracle.domain.enums.price_source import PriceSource

__all__ = ["JobState", "Network", "PriceSource"]
