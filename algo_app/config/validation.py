"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any, Callable

VALID_ALGORITHM_TYPES = (
    "statistical_arbitrage",
    "momentum",
    "mean_reversion",
    "pairs_trading",
    "market_making",
)
VALID_SIZE_METHODS = ("fixed", "percentage", "kelly")
VALID_ORDER_SIZE_ALGORITHMS = ("fixed", "adaptive", "inventory_based")
KNOWN_INDICATORS = ("SMA", "EMA", "RSI", "MACD", "BOLLINGER", "ATR")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _check(
    errors: list[ValidationError],
    params: dict[str, Any],
    field: str,
    predicate: Callable[[Any], bool],
    message: str,
    prefix: str = ""
) -> None:
    if field in params and not predicate(params[field]):
        errors.append(ValidationError(
            field=f"{prefix}{field}",
            message=message,
            value=params[field]
        ))


class ConfigValidator:
    """Validates algorithm and strategy configuration."""

    @staticmethod
    def validate_risk_limits(limits: dict[str, Any]) -> list[ValidationError]:
        """Validate risk limits."""
        errors: list[ValidationError] = []
        prefix = "risk_limits."

        for name in ("max_drawdown", "max_single_trade_loss", "circuit_breaker_threshold"):
            _check(errors, limits, name,
                   lambda v: _is_number(v) and 0 < v <= 100,
                   "Must be a percentage between 0 and 100", prefix)

        for name in ("max_daily_loss", "var_limit"):
            _check(errors, limits, name,
                   lambda v: _is_number(v) and v > 0,
                   "Must be a positive number", prefix)

        _check(errors, limits, "max_correlation_exposure",
               lambda v: _is_number(v) and 0 <= v <= 100,
               "Must be a number between 0 and 100", prefix)

        _check(errors, limits, "stress_test_threshold",
               lambda v: _is_number(v) and v >= 0,
               "Must be a non-negative number", prefix)

        return errors

    @staticmethod
    def validate_execution_settings(settings: dict[str, Any]) -> list[ValidationError]:
        """Validate execution settings, including min/max size ordering."""
        errors: list[ValidationError] = []
        prefix = "execution_settings."

        _check(errors, settings, "max_concurrent_positions", _is_positive_int,
               "Must be a positive integer", prefix)

        _check(errors, settings, "position_size_method",
               lambda v: v in VALID_SIZE_METHODS,
               f"Must be one of {', '.join(VALID_SIZE_METHODS)}", prefix)

        for name in ("min_position_size", "max_position_size"):
            _check(errors, settings, name,
                   lambda v: _is_number(v) and v > 0,
                   "Must be a positive number", prefix)

        low = settings.get("min_position_size")
        high = settings.get("max_position_size")
        if _is_number(low) and _is_number(high) and low > high:
            errors.append(ValidationError(
                field=f"{prefix}min_position_size",
                message="Must not exceed max_position_size",
                value=low
            ))

        return errors

    @staticmethod
    def validate_market_conditions(conditions: dict[str, Any]) -> list[ValidationError]:
        """Validate traded symbols and timeframes."""
        errors: list[ValidationError] = []
        prefix = "market_conditions."

        for name in ("symbols", "timeframes"):
            value = conditions.get(name)
            if not isinstance(value, (list, tuple)) or not value or \
                    not all(isinstance(item, str) and item for item in value):
                errors.append(ValidationError(
                    field=f"{prefix}{name}",
                    message="Must be a non-empty list of strings",
                    value=value
                ))

        for name in ("min_volume", "max_spread"):
            if conditions.get(name) is not None:
                _check(errors, conditions, name,
                       lambda v: _is_number(v) and v >= 0,
                       "Must be a non-negative number", prefix)

        return errors

    @staticmethod
    def validate_statistical_arbitrage_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate statistical arbitrage parameters."""
        errors: list[ValidationError] = []

        _check(errors, params, "lookback_period", lambda v: _is_positive_int(v) and v >= 2,
               "Must be an integer of at least 2")
        _check(errors, params, "max_holding_period", lambda v: _is_number(v) and v >= 0,
               "Must be a non-negative number of minutes")
        for name in ("entry_threshold", "exit_threshold"):
            _check(errors, params, name, lambda v: _is_number(v) and v >= 0,
                   "Must be a non-negative number")
        _check(errors, params, "kelly_win_rate", lambda v: _is_number(v) and 0 <= v <= 1,
               "Must be a probability between 0 and 1")
        _check(errors, params, "kelly_win_loss_ratio", lambda v: _is_number(v) and v > 0,
               "Must be a positive number")

        return errors

    @staticmethod
    def validate_momentum_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate momentum parameters."""
        errors: list[ValidationError] = []

        for name in ("momentum_period", "trend_filter_period", "rsi_period"):
            _check(errors, params, name, _is_positive_int, "Must be a positive integer")
        for name in ("entry_signal_strength", "exit_signal_strength"):
            _check(errors, params, name, lambda v: _is_number(v) and v >= 0,
                   "Must be a non-negative number")
        _check(errors, params, "volume_confirmation", lambda v: isinstance(v, bool),
               "Must be a boolean")

        rsi_filter = params.get("rsi_filter")
        if rsi_filter is not None:
            if not isinstance(rsi_filter, dict):
                errors.append(ValidationError("rsi_filter", "Must be a mapping", rsi_filter))
            else:
                low = rsi_filter.get("oversold_level")
                high = rsi_filter.get("overbought_level")
                if not (_is_number(low) and _is_number(high) and 0 <= low < high <= 100):
                    errors.append(ValidationError(
                        field="rsi_filter",
                        message="Requires 0 <= oversold_level < overbought_level <= 100",
                        value=rsi_filter
                    ))

        return errors

    @staticmethod
    def validate_mean_reversion_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate mean reversion parameters."""
        errors: list[ValidationError] = []

        _check(errors, params, "lookback_period", lambda v: _is_positive_int(v) and v >= 2,
               "Must be an integer of at least 2")
        for name in ("entry_deviation", "exit_deviation", "max_deviation"):
            _check(errors, params, name, lambda v: _is_number(v) and v >= 0,
                   "Must be a non-negative number")

        bands = params.get("bollinger_bands")
        if bands is not None:
            if not isinstance(bands, dict):
                errors.append(ValidationError("bollinger_bands", "Must be a mapping", bands))
            else:
                _check(errors, bands, "period", _is_positive_int,
                       "Must be a positive integer", "bollinger_bands.")
                _check(errors, bands, "deviation", lambda v: _is_number(v) and v > 0,
                       "Must be a positive number", "bollinger_bands.")

        return errors

    @staticmethod
    def validate_pairs_trading_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate pairs trading parameters."""
        errors: list[ValidationError] = []

        pair = params.get("pair_symbols")
        if not isinstance(pair, (list, tuple)) or len(pair) != 2 or \
                not all(isinstance(s, str) and s for s in pair) or pair[0] == pair[1]:
            errors.append(ValidationError(
                field="pair_symbols",
                message="Must be two distinct symbols",
                value=pair
            ))

        _check(errors, params, "cointegration_period", lambda v: _is_positive_int(v) and v >= 3,
               "Must be an integer of at least 3")
        for name in ("entry_threshold", "exit_threshold"):
            _check(errors, params, name, lambda v: _is_number(v) and v >= 0,
                   "Must be a non-negative number")
        _check(errors, params, "correlation_minimum", lambda v: _is_number(v) and -1 <= v <= 1,
               "Must be between -1 and 1")

        return errors

    @staticmethod
    def validate_market_making_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate market making parameters."""
        errors: list[ValidationError] = []

        _check(errors, params, "spread_target", lambda v: _is_number(v) and v > 0,
               "Must be a positive number")
        _check(errors, params, "max_inventory_skew", lambda v: _is_number(v) and v > 0,
               "Must be a positive number")
        _check(errors, params, "quote_refresh_interval", lambda v: _is_number(v) and v >= 0,
               "Must be a non-negative number of milliseconds")
        _check(errors, params, "order_size_algorithm",
               lambda v: v in VALID_ORDER_SIZE_ALGORITHMS,
               f"Must be one of {', '.join(VALID_ORDER_SIZE_ALGORITHMS)}")

        adverse = params.get("adverse_selection_filter")
        if adverse is not None:
            if not isinstance(adverse, dict):
                errors.append(ValidationError("adverse_selection_filter", "Must be a mapping", adverse))
            else:
                _check(errors, adverse, "threshold", lambda v: _is_number(v) and 0 <= v <= 1,
                       "Must be between 0 and 1", "adverse_selection_filter.")

        return errors

    @staticmethod
    def validate_parameters(algorithm_type: str, params: dict[str, Any]) -> list[ValidationError]:
        """Dispatch parameter validation on the algorithm type."""
        validators = {
            "statistical_arbitrage": ConfigValidator.validate_statistical_arbitrage_params,
            "momentum": ConfigValidator.validate_momentum_params,
            "mean_reversion": ConfigValidator.validate_mean_reversion_params,
            "pairs_trading": ConfigValidator.validate_pairs_trading_params,
            "market_making": ConfigValidator.validate_market_making_params,
        }
        validator = validators.get(algorithm_type)
        if validator is None:
            return [ValidationError(
                field="type",
                message=f"Must be one of {', '.join(VALID_ALGORITHM_TYPES)}",
                value=algorithm_type
            )]
        return validator(params)

    @staticmethod
    def validate_algorithm_config(algorithm_type: str, config: dict[str, Any]) -> list[ValidationError]:
        """Validate a merged algorithm configuration."""
        errors = []

        errors.extend(ConfigValidator.validate_parameters(algorithm_type, config.get("parameters", {})))

        if "risk_limits" in config:
            errors.extend(ConfigValidator.validate_risk_limits(config["risk_limits"]))

        if "execution_settings" in config:
            errors.extend(ConfigValidator.validate_execution_settings(config["execution_settings"]))

        if "market_conditions" in config:
            errors.extend(ConfigValidator.validate_market_conditions(config["market_conditions"]))

        return errors

    @staticmethod
    def validate_strategy_data(strategy_data: dict[str, Any]) -> list[ValidationError]:
        """Validate backtest strategy data. Unknown indicator names are not errors."""
        errors: list[ValidationError] = []

        indicators = strategy_data.get("indicators", [])
        if not isinstance(indicators, (list, tuple)) or \
                not all(isinstance(name, str) for name in indicators):
            errors.append(ValidationError(
                field="indicators",
                message="Must be a list of indicator names",
                value=indicators
            ))

        for name in ("fast_period", "slow_period", "rsi_period", "bollinger_period", "atr_period"):
            _check(errors, strategy_data, name, _is_positive_int, "Must be a positive integer")

        fast = strategy_data.get("fast_period")
        slow = strategy_data.get("slow_period")
        if _is_positive_int(fast) and _is_positive_int(slow) and fast >= slow:
            errors.append(ValidationError(
                field="fast_period",
                message="Must be smaller than slow_period",
                value=fast
            ))

        for section in ("entry_conditions", "exit_conditions"):
            value = strategy_data.get(section)
            if value is not None and not isinstance(value, dict):
                errors.append(ValidationError(section, "Must be a mapping", value))

        exit_conditions = strategy_data.get("exit_conditions")
        if isinstance(exit_conditions, dict):
            for name in ("take_profit", "stop_loss"):
                _check(errors, exit_conditions, name, lambda v: _is_number(v) and 0 < v < 1,
                       "Must be a fraction between 0 and 1", "exit_conditions.")

        _check(errors, strategy_data, "risk_per_trade", lambda v: _is_number(v) and 0 < v <= 1,
               "Must be a fraction between 0 and 1")
        _check(errors, strategy_data, "position_sizing", lambda v: v in ("percentage", "fixed"),
               "Must be 'percentage' or 'fixed'")
        _check(errors, strategy_data, "fixed_size", lambda v: _is_number(v) and v > 0,
               "Must be a positive number")

        return errors
