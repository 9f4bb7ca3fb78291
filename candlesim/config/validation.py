"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_positive_int(params: dict[str, Any], name: str, errors: list[ValidationError]) -> None:
    if name in params:
        value = params[name]
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            errors.append(ValidationError(
                field=name,
                message="Must be a positive integer",
                value=value
            ))


def _check_positive_number(params: dict[str, Any], name: str, errors: list[ValidationError]) -> None:
    if name in params:
        value = params[name]
        if not _is_number(value) or value <= 0:
            errors.append(ValidationError(
                field=name,
                message="Must be a positive number",
                value=value
            ))


def _check_non_negative_number(params: dict[str, Any], name: str, errors: list[ValidationError]) -> None:
    if name in params:
        value = params[name]
        if not _is_number(value) or value < 0:
            errors.append(ValidationError(
                field=name,
                message="Must be a non-negative number",
                value=value
            ))


def _check_non_negative_int(params: dict[str, Any], name: str, errors: list[ValidationError]) -> None:
    if name in params:
        value = params[name]
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            errors.append(ValidationError(
                field=name,
                message="Must be a non-negative integer",
                value=value
            ))


def _check_bool(params: dict[str, Any], name: str, errors: list[ValidationError]) -> None:
    if name in params:
        value = params[name]
        if not isinstance(value, bool):
            errors.append(ValidationError(
                field=name,
                message="Must be a boolean",
                value=value
            ))


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_supertrend_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate supertrend parameters."""
        errors: list[ValidationError] = []
        _check_bool(params, "enabled", errors)
        _check_positive_int(params, "period", errors)
        _check_positive_number(params, "multiplier", errors)
        return errors

    @staticmethod
    def validate_rsi_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate RSI parameters."""
        errors: list[ValidationError] = []
        _check_bool(params, "enabled", errors)
        _check_positive_int(params, "period", errors)

        for name in ("overbought", "oversold"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value < 0 or value > 100:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a number between 0 and 100",
                        value=value
                    ))

        oversold = params.get("oversold")
        overbought = params.get("overbought")
        if _is_number(oversold) and _is_number(overbought) and oversold >= overbought:
            errors.append(ValidationError(
                field="oversold",
                message="Must be lower than overbought",
                value=oversold
            ))

        return errors

    @staticmethod
    def validate_macd_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate MACD parameters."""
        errors: list[ValidationError] = []
        _check_bool(params, "enabled", errors)
        for name in ("fast_period", "slow_period", "signal_period"):
            _check_positive_int(params, name, errors)

        fast = params.get("fast_period")
        slow = params.get("slow_period")
        if isinstance(fast, int) and isinstance(slow, int) and fast >= slow:
            errors.append(ValidationError(
                field="fast_period",
                message="Must be shorter than slow_period",
                value=fast
            ))

        return errors

    @staticmethod
    def validate_signal_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate signal scoring parameters."""
        errors: list[ValidationError] = []
        _check_positive_int(params, "min_weighted_score", errors)
        _check_non_negative_int(params, "strong_margin", errors)
        _check_non_negative_number(params, "min_atr_ratio", errors)
        _check_non_negative_int(params, "settle_buffer", errors)
        _check_positive_number(params, "volume_spike_multiplier", errors)
        _check_bool(params, "override_enabled", errors)
        _check_non_negative_int(params, "override_min_score", errors)
        _check_non_negative_number(params, "override_atr_factor", errors)
        for name in ("supertrend_weight", "ema_cross_weight", "macd_weight", "rsi_weight",
                     "vwap_weight", "pattern_weight", "volume_weight"):
            _check_non_negative_number(params, name, errors)
        return errors

    @staticmethod
    def validate_risk_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate risk parameters."""
        errors: list[ValidationError] = []
        _check_positive_number(params, "stop_loss_percent", errors)
        _check_positive_number(params, "take_profit_percent", errors)
        _check_non_negative_number(params, "commission_rate", errors)
        _check_non_negative_number(params, "slippage_rate", errors)
        _check_positive_number(params, "starting_balance", errors)
        _check_positive_number(params, "quote_conversion_rate", errors)

        if "position_size_percent" in params:
            value = params["position_size_percent"]
            if not _is_number(value) or value <= 0 or value > 100:
                errors.append(ValidationError(
                    field="position_size_percent",
                    message="Must be a positive number up to 100",
                    value=value
                ))

        if "max_position_fraction" in params:
            value = params["max_position_fraction"]
            if not _is_number(value) or value <= 0 or value > 1:
                errors.append(ValidationError(
                    field="max_position_fraction",
                    message="Must be a positive number between 0 and 1",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_execution_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate execution parameters."""
        errors: list[ValidationError] = []
        if "max_signal_age_seconds" in params and params["max_signal_age_seconds"] is not None:
            _check_positive_number(params, "max_signal_age_seconds", errors)
        _check_bool(params, "partial_take_profit", errors)
        _check_non_negative_number(params, "partial_take_profit_step_pct", errors)
        _check_bool(params, "add_to_winners", errors)
        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "supertrend" in config:
            errors.extend(ConfigValidator.validate_supertrend_params(config["supertrend"]))

        if "rsi" in config:
            errors.extend(ConfigValidator.validate_rsi_params(config["rsi"]))

        if "macd" in config:
            errors.extend(ConfigValidator.validate_macd_params(config["macd"]))

        if "volume" in config:
            _check_positive_int(config["volume"], "ma_period", errors)

        if "support_resistance" in config:
            _check_positive_int(config["support_resistance"], "period", errors)

        if "signals" in config:
            errors.extend(ConfigValidator.validate_signal_params(config["signals"]))

        if "risk" in config:
            errors.extend(ConfigValidator.validate_risk_params(config["risk"]))

        if "execution" in config:
            errors.extend(ConfigValidator.validate_execution_params(config["execution"]))

        return errors
