"""
Constants used throughout the planned downtime test suite.
"""

from enum import Enum


class ServiceType(str, Enum):
    """
    Service type identifiers for the devnet environment.

    Using str Enum allows direct string comparison while providing
    IDE autocomplete and type safety.

    Usage:
        services = {ServiceType.Bor: bor, ServiceType.Heimdall: heimdall}
        bor = self.get_service(ServiceType.Bor)
    """

    Bor = "bor"
    Heimdall = "heimdall"
    Validator = "validator"

    def __str__(self) -> str:
        """Allow direct use in f-strings and format operations."""
        return self.value


# Heimdall REST paths.
SPAN_PATH = "/bor/spans/{index}"
PLANNED_DOWNTIME_PATH = "/bor/producers/planned-downtime/{producer_id}"

# Heimdall error message while a submitted downtime is not indexed yet.
DOWNTIME_NOT_FOUND_MSG = "no planned downtime found for producer id"

# Appended to the downtime command to only compute the block range.
CALC_ONLY_FLAG = "--calc-only"
