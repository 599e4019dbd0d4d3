"""Common reusable utility exports."""

from .common_functions import (
    MAX_AMOUNT,
    MINOR_UNITS_PER_MAJOR,
    from_minor_units,
    parse_amount,
    simulate_hedged_conversion,
    to_minor_units,
)

__all__ = [
    "MAX_AMOUNT",
    "MINOR_UNITS_PER_MAJOR",
    "from_minor_units",
    "parse_amount",
    "simulate_hedged_conversion",
    "to_minor_units",
]
