"""
Configuration module.

Frozen parameter dataclasses, YAML-backed loader with 3-tier precedence
(defaults < instrument overrides < runtime overrides) and validation.
"""

from .defaults import EngineConfig, ExecutionParams, RiskConfig, SignalParams, get_default_config
from .loader import ConfigLoader, ConfigurationError, build_config
from .validation import ConfigValidator, ValidationError

__all__ = [
    "EngineConfig",
    "ExecutionParams",
    "RiskConfig",
    "SignalParams",
    "get_default_config",
    "ConfigLoader",
    "ConfigurationError",
    "build_config",
    "ConfigValidator",
    "ValidationError",
]
