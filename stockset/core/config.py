"""Configuration loading utilities for YAML-based application settings."""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .logging_config import get_logger


logger = get_logger(__name__)
_BASE_DIR = Path(__file__).resolve().parent.parent
_CONFIG_PATH = _BASE_DIR / "config.yml"

DEFAULT_FX_RATES = {"USD": Decimal("1"), "EUR": Decimal("0.85"), "INR": Decimal("83")}
DEFAULT_REBALANCE_SUGGESTION = "Reduce tech stocks by 10%, add 5% healthcare"


@dataclass(frozen=True)
class AppSettings:
    """Application settings loaded from YAML configuration file."""

    app_name: str = "StockSet Lending API"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 8000
    firebase_enabled: bool = False
    firebase_project_id: Optional[str] = None
    firebase_credentials_path: Optional[str] = None
    users_collection: str = "users"
    groups_collection: str = "groups"
    portfolios_collection: str = "portfolios"
    loans_collection: str = "loans"
    loan_to_value: Decimal = Decimal("0.5")
    trust_reward: int = 2
    liquidation_probability: float = 0.3
    hedge_spread: Decimal = Decimal("0.02")
    fx_rates: Dict[str, Decimal] = field(default_factory=lambda: dict(DEFAULT_FX_RATES))
    rebalance_suggestion: str = DEFAULT_REBALANCE_SUGGESTION


def _to_bool(value: Any, default: bool = False) -> bool:
    """Convert value to bool with a default fallback."""
    try:
        if isinstance(value, bool):
            return value
        return value.strip().lower() in {"1", "true", "yes", "on"}
    except (AttributeError, ValueError):
        logger.warning("Invalid boolean value '%s'. Using default=%s", value, default)
        return default


def _to_int(value: Any, default: int) -> int:
    """Convert value to int with a default fallback."""
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid integer value '%s'. Using default=%s", value, default)
        return default


def _to_float(value: Any, default: float) -> float:
    """Convert value to float with a default fallback."""
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid float value '%s'. Using default=%s", value, default)
        return default


def _to_decimal(value: Any, default: Decimal) -> Decimal:
    """Convert value to Decimal through its string form, falling back to `default`."""
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        logger.warning("Invalid decimal value '%s'. Using default=%s", value, default)
        return default


def _to_rate_table(value: Any) -> Dict[str, Decimal]:
    """Convert a `{currency: rate}` mapping into upper-cased Decimal rates."""
    if not isinstance(value, dict) or not value:
        return dict(DEFAULT_FX_RATES)
    rates: Dict[str, Decimal] = {}
    for currency, rate in value.items():
        code = str(currency).strip().upper()
        parsed = _to_decimal(rate, Decimal("-1"))
        if not code or parsed < 0:
            logger.warning("Skipping invalid fx rate currency=%s rate=%s", currency, rate)
            continue
        rates[code] = parsed
    return rates


def _read_config(config_path: Path) -> dict:
    """Read and parse YAML configuration."""
    try:
        with config_path.open("r", encoding="utf-8") as config_file:
            config_data = yaml.safe_load(config_file) or {}
        logger.info("Configuration loaded from %s", config_path)
        return config_data
    except FileNotFoundError:
        logger.warning("Config file not found at %s. Falling back to defaults.", config_path)
        return {}
    except Exception:
        logger.exception("Failed to load config file from %s", config_path)
        return {}


def load_settings(config_path: Optional[Path] = None) -> AppSettings:
    """Load and validate application settings from `config.yml`."""
    config = _read_config(Path(config_path) if config_path else _CONFIG_PATH)
    app_cfg = config.get("app") or {}
    firebase_cfg = config.get("firebase") or {}
    lending_cfg = config.get("lending") or {}
    defaults = AppSettings()

    liquidation_probability = _to_float(
        lending_cfg.get("liquidation_probability", defaults.liquidation_probability),
        defaults.liquidation_probability,
    )
    if not 0.0 <= liquidation_probability <= 1.0:
        logger.warning(
            "liquidation_probability=%s outside [0, 1]. Using default=%s",
            liquidation_probability,
            defaults.liquidation_probability,
        )
        liquidation_probability = defaults.liquidation_probability

    return AppSettings(
        app_name=str(app_cfg.get("name", defaults.app_name)),
        debug=_to_bool(app_cfg.get("debug", False), False),
        host=str(app_cfg.get("host", defaults.host)),
        port=_to_int(app_cfg.get("port", defaults.port), defaults.port),
        firebase_enabled=_to_bool(firebase_cfg.get("enabled", False), False),
        firebase_project_id=firebase_cfg.get("project_id"),
        firebase_credentials_path=firebase_cfg.get("credentials_path"),
        users_collection=str(firebase_cfg.get("users_collection", defaults.users_collection)),
        groups_collection=str(firebase_cfg.get("groups_collection", defaults.groups_collection)),
        portfolios_collection=str(firebase_cfg.get("portfolios_collection", defaults.portfolios_collection)),
        loans_collection=str(firebase_cfg.get("loans_collection", defaults.loans_collection)),
        loan_to_value=_to_decimal(lending_cfg.get("loan_to_value", defaults.loan_to_value), defaults.loan_to_value),
        trust_reward=_to_int(lending_cfg.get("trust_reward", defaults.trust_reward), defaults.trust_reward),
        liquidation_probability=liquidation_probability,
        hedge_spread=_to_decimal(lending_cfg.get("hedge_spread", defaults.hedge_spread), defaults.hedge_spread),
        fx_rates=_to_rate_table(lending_cfg.get("fx_rates")),
        rebalance_suggestion=str(lending_cfg.get("rebalance_suggestion", defaults.rebalance_suggestion)),
    )
