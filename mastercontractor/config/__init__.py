"""MasterContractor configuration.

This package contains:
- settings: Environment variables and configuration
- safety_rules: Safety Constitution thresholds and keyword sets
- errors: Custom exceptions and error codes
"""

from mastercontractor.config.settings import settings, Settings
from mastercontractor.config.safety_rules import SafetyRules, DEFAULT_SAFETY_RULES
from mastercontractor.config.errors import (
    ErrorCode,
    MasterContractorError,
    ValidationError,
    ConfigError,
    RatebookError,
)

__all__ = [
    "settings",
    "Settings",
    "SafetyRules",
    "DEFAULT_SAFETY_RULES",
    "ErrorCode",
    "MasterContractorError",
    "ValidationError",
    "ConfigError",
    "RatebookError",
]
