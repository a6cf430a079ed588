"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``     : committed static defaults
  2. ``config/local.toml``       : optional local overrides (gitignored)
  3. ``.env``                    : local secrets and env overrides (gitignored)
  4. Environment variables       : ``INVENTORY_SIGNALS_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Every engine entry point and CLI command receives an ``AppConfig`` instance:
never raw dicts or individual env var lookups scattered through the codebase.
Secrets (SMTP password, platform access token) are only read from the
environment, never from TOML.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class ForecastConfig(BaseModel):
    """Days-until-stockout cutoffs for the forecast status."""

    model_config = ConfigDict(frozen=True)

    critical_days: int = 3
    warning_days: int = 7

    @model_validator(mode="after")
    def validate_order(self) -> "ForecastConfig":
        if not 0 <= self.critical_days <= self.warning_days:
            raise ValueError(
                f"Expected 0 <= critical_days ({self.critical_days}) <= "
                f"warning_days ({self.warning_days})."
            )
        return self


VALID_STALENESS_POLICIES = frozenset({"threshold", "fixed"})


class StalenessConfig(BaseModel):
    """Which staleness policy to apply and its threshold (threshold policy only)."""

    model_config = ConfigDict(frozen=True)

    policy: str = "threshold"
    threshold_days: int = 30

    @field_validator("policy")
    @classmethod
    def validate_policy(cls, v: str) -> str:
        if v not in VALID_STALENESS_POLICIES:
            raise ValueError(
                f"staleness.policy must be one of {sorted(VALID_STALENESS_POLICIES)}, got '{v}'."
            )
        return v

    @field_validator("threshold_days")
    @classmethod
    def validate_threshold(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"threshold_days must be > 0, got {v}.")
        return v


VALID_SELECTION_MODES = frozenset({"random", "stable"})


class SuggestionConfig(BaseModel):
    """Suggestion engine settings.

    ``selection_mode`` controls the bundle-template pick and the category
    sampling of the data-driven path:
      - ``random``: a new draw on every call.
      - ``stable``: draws seeded by product id (same product → same output).
    """

    model_config = ConfigDict(frozen=True)

    selection_mode: str = "random"

    @field_validator("selection_mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        if v not in VALID_SELECTION_MODES:
            raise ValueError(
                f"selection_mode must be one of {sorted(VALID_SELECTION_MODES)}, got '{v}'."
            )
        return v


class NotificationConfig(BaseModel):
    """Alert dispatch settings: thresholds and transport parameters."""

    model_config = ConfigDict(frozen=True)

    default_threshold: int = 5
    chat_low_stock_max: int = 5
    webhook_timeout_seconds: float = 10.0
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    sender_address: str = ""

    @field_validator("default_threshold", "chat_low_stock_max")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Stock thresholds must be >= 0, got {v}.")
        return v


VALID_THROTTLE_STRATEGIES = frozenset({"fixed", "backoff", "none"})


class VisibilityConfig(BaseModel):
    """Pacing and paging for storefront visibility reconciliation.

    Attributes:
        throttle:          "fixed" (constant delay between platform calls),
                           "backoff" (delay grows after failures),
                           or "none".
        delay_seconds:     Base delay between successive platform calls.
        max_delay_seconds: Upper cap for the backoff throttle.
        catalog_page_size: Products requested per catalog query.
    """

    model_config = ConfigDict(frozen=True)

    throttle: str = "fixed"
    delay_seconds: float = 0.1
    max_delay_seconds: float = 5.0
    catalog_page_size: int = 100

    @field_validator("throttle")
    @classmethod
    def validate_throttle(cls, v: str) -> str:
        if v not in VALID_THROTTLE_STRATEGIES:
            raise ValueError(
                f"visibility.throttle must be one of {sorted(VALID_THROTTLE_STRATEGIES)}, got '{v}'."
            )
        return v

    @field_validator("delay_seconds", "max_delay_seconds")
    @classmethod
    def non_negative_seconds(cls, v: float) -> float:
        if v < 0.0:
            raise ValueError(f"Delay seconds must be >= 0.0, got {v}.")
        return v


class PlatformConfig(BaseModel):
    """Commerce platform (Shopify Admin API) connection settings."""

    model_config = ConfigDict(frozen=True)

    shop_domain: str = ""
    api_version: str = "2024-10"
    access_token: str = ""
    timeout_seconds: float = 30.0


class AppConfig(BaseModel):
    """Complete application configuration: the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    logging: LoggingConfig = LoggingConfig()
    forecast: ForecastConfig = ForecastConfig()
    staleness: StalenessConfig = StalenessConfig()
    suggestions: SuggestionConfig = SuggestionConfig()
    notifications: NotificationConfig = NotificationConfig()
    visibility: VisibilityConfig = VisibilityConfig()
    platform: PlatformConfig = PlatformConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply INVENTORY_SIGNALS_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply environment overrides to the raw config dict.

    Supported overrides:
      INVENTORY_SIGNALS_LOG_LEVEL       → raw["logging"]["level"]
      INVENTORY_SIGNALS_DEBUG           → raw["debug"]
      INVENTORY_SIGNALS_SMTP_HOST       → raw["notifications"]["smtp_host"]
      INVENTORY_SIGNALS_SMTP_USERNAME   → raw["notifications"]["smtp_username"]
      INVENTORY_SIGNALS_SMTP_PASSWORD   → raw["notifications"]["smtp_password"]
      SHOPIFY_SHOP_DOMAIN               → raw["platform"]["shop_domain"]
      SHOPIFY_ACCESS_TOKEN              → raw["platform"]["access_token"]
    """
    if log_level := os.environ.get("INVENTORY_SIGNALS_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("INVENTORY_SIGNALS_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    for env_key, field_name in (
        ("INVENTORY_SIGNALS_SMTP_HOST", "smtp_host"),
        ("INVENTORY_SIGNALS_SMTP_USERNAME", "smtp_username"),
        ("INVENTORY_SIGNALS_SMTP_PASSWORD", "smtp_password"),
    ):
        if value := os.environ.get(env_key):
            raw.setdefault("notifications", {})[field_name] = value

    if shop_domain := os.environ.get("SHOPIFY_SHOP_DOMAIN"):
        raw.setdefault("platform", {})["shop_domain"] = shop_domain

    if token := os.environ.get("SHOPIFY_ACCESS_TOKEN"):
        raw.setdefault("platform", {})["access_token"] = token

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        logging=LoggingConfig(**raw.get("logging", {})),
        forecast=ForecastConfig(**raw.get("forecast", {})),
        staleness=StalenessConfig(**raw.get("staleness", {})),
        suggestions=SuggestionConfig(**raw.get("suggestions", {})),
        notifications=NotificationConfig(**raw.get("notifications", {})),
        visibility=VisibilityConfig(**raw.get("visibility", {})),
        platform=PlatformConfig(**raw.get("platform", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
