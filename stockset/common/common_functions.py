"""Common money and currency helpers used across the lending modules."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import logging
from typing import Any, Dict, Mapping

from stockset.models.exceptions import ModelValidationError


logger = logging.getLogger(__name__)

MINOR_UNITS_PER_MAJOR = 100
# Keeps minor units within a signed 64-bit store integer.
MAX_AMOUNT = Decimal("1000000000000")
_CENT = Decimal("0.01")


def parse_amount(value: Any) -> Decimal:
    """Convert a numeric payload value into a finite Decimal.

    Floats go through their string form so `0.1` stays `Decimal("0.1")`.

    Raises:
        ModelValidationError: If the value is not a finite number or its
            magnitude exceeds `MAX_AMOUNT`.
    """
    try:
        if isinstance(value, bool):
            raise TypeError("boolean is not an amount")
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        logger.warning("Invalid amount input amount=%s", value)
        raise ModelValidationError("Invalid amount. Please provide a numeric value.")
    if not amount.is_finite():
        raise ModelValidationError("Amount must be a finite number.")
    if abs(amount) > MAX_AMOUNT:
        logger.warning("Amount out of range amount=%s", amount)
        raise ModelValidationError("Amount must not exceed {0}.".format(MAX_AMOUNT))
    return amount


def to_minor_units(amount: Any) -> int:
    """Convert a major-unit amount to integer cents using half-up rounding."""
    decimal_amount = parse_amount(amount)
    try:
        return int((decimal_amount * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        logger.warning("Amount cannot be expressed in minor units amount=%s", decimal_amount)
        raise ModelValidationError("Invalid amount. Please provide a numeric value.")


def from_minor_units(amount_minor: int) -> Decimal:
    """Convert integer cents back to a two-place major-unit Decimal."""
    return (Decimal(int(amount_minor)) / MINOR_UNITS_PER_MAJOR).quantize(_CENT)


def simulate_hedged_conversion(
    amount: Any,
    currency: str,
    rates: Mapping[str, Decimal],
    hedge_spread: Decimal,
) -> Dict[str, Any]:
    """Convert `amount` at a static rate and deduct the hedge spread.

    Unknown currency codes fall back to a rate of 1.

    Returns:
        Dict[str, Any]: `hedged_amount`, normalized `currency`, applied `rate`.

    Raises:
        ModelValidationError: If the amount is not numeric or negative.
    """
    decimal_amount = parse_amount(amount)
    if decimal_amount < 0:
        raise ModelValidationError("Amount must not be negative.")
    normalized_currency = (currency or "").strip().upper()
    rate = rates.get(normalized_currency)
    if rate is None:
        logger.info("No fx rate for currency=%s. Using rate=1", normalized_currency)
        rate = Decimal("1")
    hedged = decimal_amount * rate * (Decimal("1") - hedge_spread)
    return {
        "hedged_amount": hedged,
        "currency": normalized_currency,
        "rate": rate,
    }
