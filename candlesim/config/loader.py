"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields, is_dataclass
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from .defaults import (
    EngineConfig,
    ExecutionParams,
    MACDParams,
    MovingAverageParams,
    RiskConfig,
    RSIParams,
    SignalParams,
    SupertrendParams,
    SupportResistanceParams,
    VolumeParams,
    get_default_config,
)
from .validation import ConfigValidator

logger = structlog.get_logger(__name__)

_SECTION_TYPES = {
    "supertrend": SupertrendParams,
    "rsi": RSIParams,
    "macd": MACDParams,
    "moving_averages": MovingAverageParams,
    "volume": VolumeParams,
    "support_resistance": SupportResistanceParams,
    "signals": SignalParams,
    "risk": RiskConfig,
    "execution": ExecutionParams,
}


class ConfigurationError(ValueError):
    """Raised when merged configuration fails validation."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: EngineConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_instrument_config(self, instrument_key: str) -> dict[str, Any]:
        """Load instrument-specific configuration overrides."""
        instruments_file = self.config_dir / "instruments.yaml"

        if not instruments_file.exists():
            return {}

        with open(instruments_file) as f:
            instruments_config = yaml.safe_load(f) or {}

        return instruments_config.get("instruments", {}).get(instrument_key, {})  # type: ignore[no-any-return]

    def merge_config(
        self,
        instrument_key: str,
        overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Runtime overrides (highest priority)
        2. Instrument-specific overrides
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        instrument_config = self.load_instrument_config(instrument_key)
        config = self._deep_merge(config, instrument_config)

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(
        self,
        instrument_key: str,
        overrides: Optional[dict[str, Any]] = None
    ) -> EngineConfig:
        """Merge, validate and build the EngineConfig for an instrument."""
        merged = self.merge_config(instrument_key, overrides)

        errors = ConfigValidator.validate_config(merged)
        if errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            logger.error(
                "Configuration validation failed",
                instrument_key=instrument_key,
                errors=error_msgs
            )
            raise ConfigurationError("Invalid configuration", errors=errors)

        return build_config(merged)

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if is_dataclass(obj):
            result = {}
            for f in fields(obj):
                value = getattr(obj, f.name)
                if is_dataclass(value):
                    result[f.name] = self._dataclass_to_dict(value)
                else:
                    result[f.name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def build_config(config: dict[str, Any]) -> EngineConfig:
    """Build an EngineConfig from a (possibly partial) nested dictionary.

    Unknown sections and keys are ignored.
    """
    sections = {}
    for name, section_type in _SECTION_TYPES.items():
        values = dict(config.get(name) or {})
        known = {f.name for f in fields(section_type)}
        kwargs = {k: v for k, v in values.items() if k in known}
        if name == "moving_averages" and "ema_periods" in kwargs:
            kwargs["ema_periods"] = tuple(int(p) for p in kwargs["ema_periods"])
        sections[name] = section_type(**kwargs)

    return EngineConfig(**sections)
