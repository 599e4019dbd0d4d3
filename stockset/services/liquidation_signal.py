"""Placeholder liquidation risk signal driven by an injectable random source."""

import logging
import random
from typing import Callable, Dict, Optional


logger = logging.getLogger(__name__)

DEFAULT_TRIGGER_PROBABILITY = 0.3
AT_RISK_MESSAGE = "Low collateral ratio!"
SAFE_MESSAGE = "Safe"


class LiquidationSignal:
    """Flags a position as at risk with a fixed probability.

    The draw is independent of the actual collateral state. A draw strictly
    above ``1 - probability`` triggers, so the default fires when
    ``draw() > 0.7``.
    """

    def __init__(
        self,
        probability: float = DEFAULT_TRIGGER_PROBABILITY,
        draw: Optional[Callable[[], float]] = None,
    ) -> None:
        if not 0.0 <= probability <= 1.0:
            raise ValueError("probability must be between 0 and 1.")
        self._threshold = 1.0 - probability
        self._draw = draw or random.random

    def check(self, user_id: str) -> Dict[str, object]:
        at_risk = self._draw() > self._threshold
        if at_risk:
            logger.warning("Liquidation signal triggered user_id=%s", user_id)
        return {"atRisk": at_risk, "message": AT_RISK_MESSAGE if at_risk else SAFE_MESSAGE}
