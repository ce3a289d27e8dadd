"""MasterContractor configuration settings.

Loads configuration from environment variables with sensible defaults.
A ``.env`` file in the working directory is honoured for local runs.

Values are read as strings at import and only checked by ``validate()``, so
a bad environment surfaces as a ``ConfigError`` the caller can handle.
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

from mastercontractor.config.errors import ConfigError
from mastercontractor.config.safety_rules import DEFAULT_SAFETY_RULES, SafetyRules

# Load .env file for local overrides (ratebook path, log level, thresholds)
load_dotenv()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _optional_env(name: str) -> Optional[str]:
    """Read an env var, None when unset or blank."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _to_float(name: str, raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}", setting=name) from e


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "console"))

    # Ratebook (regional swap without code changes)
    ratebook_path: Optional[str] = field(default_factory=lambda: os.getenv("RATEBOOK_PATH") or None)
    ratebook_region: str = field(default_factory=lambda: os.getenv("RATEBOOK_REGION", "US National"))

    # Safety threshold overrides (raw strings, parsed in validate())
    soft_match_variance_percent: Optional[str] = field(
        default_factory=lambda: _optional_env("SOFT_MATCH_VARIANCE_PERCENT")
    )
    quantity_tolerance_percent: Optional[str] = field(
        default_factory=lambda: _optional_env("QUANTITY_TOLERANCE_PERCENT")
    )

    def validate(self) -> None:
        """Validate settings values.

        Raises:
            ConfigError: If a setting is malformed or out of range.
        """
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(
                f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}",
                setting="LOG_LEVEL"
            )
        if self.log_format not in ("console", "json"):
            raise ConfigError(
                f"LOG_FORMAT must be 'console' or 'json', got {self.log_format!r}",
                setting="LOG_FORMAT"
            )
        self.threshold_overrides()

    def threshold_overrides(self) -> dict:
        """Parse the threshold overrides that are set.

        Raises:
            ConfigError: If an override is not a number or is out of range.
        """
        overrides = {}

        soft_match = _to_float("SOFT_MATCH_VARIANCE_PERCENT", self.soft_match_variance_percent)
        if soft_match is not None:
            if not 0 < soft_match <= 100:
                raise ConfigError(
                    "SOFT_MATCH_VARIANCE_PERCENT must be in (0, 100]",
                    setting="SOFT_MATCH_VARIANCE_PERCENT"
                )
            overrides["soft_match_variance_percent"] = soft_match

        tolerance = _to_float("QUANTITY_TOLERANCE_PERCENT", self.quantity_tolerance_percent)
        if tolerance is not None:
            if tolerance < 0:
                raise ConfigError(
                    "QUANTITY_TOLERANCE_PERCENT must be >= 0",
                    setting="QUANTITY_TOLERANCE_PERCENT"
                )
            overrides["quantity_tolerance_percent"] = tolerance

        return overrides

    def safety_rules(self) -> SafetyRules:
        """Build the rule set with environment overrides applied.

        Returns:
            DEFAULT_SAFETY_RULES when nothing is overridden, otherwise a copy.
        """
        self.validate()
        overrides = self.threshold_overrides()
        if not overrides:
            return DEFAULT_SAFETY_RULES
        # Round-trip through validation so band ordering is re-checked
        return SafetyRules.model_validate({**DEFAULT_SAFETY_RULES.model_dump(), **overrides})


# Singleton settings instance
settings = Settings()
