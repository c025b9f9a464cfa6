"""Configuration loading utilities for YAML-based application settings."""

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from .logging_config import get_logger


logger = get_logger(__name__)
_BASE_DIR = Path(__file__).resolve().parent.parent
_CONFIG_PATH = _BASE_DIR / "config.yml"

CONFIG_PATH_ENV = "CREDIT_RISK_CONFIG"
MODEL_PATH_ENV = "CREDIT_RISK_MODEL_PATH"
SUPPORTED_JOIN_POLICIES = {"inner", "left_outer"}


@dataclass(frozen=True)
class AppSettings:
    """Application settings loaded from YAML configuration file."""

    app_name: str
    debug: bool
    host: str
    port: int
    log_level: str
    window_months: int
    join_policy: str
    model_path: str
    decision_threshold: float
    service_name: str
    service_version: str


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


def _to_join_policy(value: Any, default: str = "inner") -> str:
    """Normalize join policy name, falling back when unsupported."""
    normalized = str(value or "").strip().lower().replace("-", "_")
    if normalized not in SUPPORTED_JOIN_POLICIES:
        logger.warning("Invalid join policy '%s'. Using default=%s", value, default)
        return default
    return normalized


def _resolve_config_path(config_path: Optional[str] = None) -> Path:
    """Pick explicit path, then environment override, then packaged file."""
    if config_path:
        return Path(config_path)
    env_path = os.getenv(CONFIG_PATH_ENV, "").strip()
    if env_path:
        return Path(env_path)
    return _CONFIG_PATH


def _read_config(config_path: Optional[str] = None) -> dict:
    """Read and parse YAML configuration."""
    path = _resolve_config_path(config_path)
    try:
        with path.open("r", encoding="utf-8") as config_file:
            config_data = yaml.safe_load(config_file) or {}
        logger.info("Configuration loaded from %s", path)
        return config_data
    except FileNotFoundError:
        logger.warning("Config file not found at %s. Falling back to defaults.", path)
        return {}
    except yaml.YAMLError:
        logger.exception("Failed to parse config file from %s", path)
        return {}


def get_env(key: str, default: Optional[str] = None, config_path: Optional[str] = None) -> Optional[str]:
    """Read a single config value using dot-notation keys."""
    data = _read_config(config_path)
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    if current is None:
        return default
    return str(current)


def load_settings(config_path: Optional[str] = None) -> AppSettings:
    """Load and validate application settings from `config.yml`."""
    config = _read_config(config_path)
    app_cfg = config.get("app", {}) or {}
    features_cfg = config.get("features", {}) or {}
    scoring_cfg = config.get("scoring", {}) or {}

    app_name = str(app_cfg.get("name", "Credit Risk Scoring API"))
    debug = _to_bool(app_cfg.get("debug", False), False)
    host = str(app_cfg.get("host", "127.0.0.1"))
    port = _to_int(app_cfg.get("port", 8000), 8000)
    log_level = str(app_cfg.get("log_level", "INFO"))

    window_months = _to_int(features_cfg.get("window_months", 6), 6)
    if window_months <= 0:
        logger.warning("window_months must be positive, got %s. Using default=6", window_months)
        window_months = 6
    join_policy = _to_join_policy(features_cfg.get("join_policy", "inner"))

    model_path = (
        os.getenv(MODEL_PATH_ENV, "").strip()
        or str(scoring_cfg.get("model_path", "credit_risk/ml/artifacts/credit_default_model.joblib"))
    )
    decision_threshold = _to_float(scoring_cfg.get("decision_threshold", 0.5), 0.5)
    if not 0.0 < decision_threshold < 1.0:
        logger.warning("decision_threshold must be in (0, 1), got %s. Using default=0.5", decision_threshold)
        decision_threshold = 0.5
    service_name = str(scoring_cfg.get("service_name", "credit_default"))
    service_version = str(scoring_cfg.get("service_version", "v1"))

    return AppSettings(
        app_name=app_name,
        debug=debug,
        host=host,
        port=port,
        log_level=log_level,
        window_months=window_months,
        join_policy=join_policy,
        model_path=model_path,
        decision_threshold=decision_threshold,
        service_name=service_name,
        service_version=service_version,
    )
