"""Default configuration parameters for algorithms, backtests and risk checks."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RiskLimitDefaults:
    """Per-algorithm risk limits applied when a request omits them."""
    max_drawdown: float = 10.0                       # percent
    max_daily_loss: float = 1000.0                   # account currency
    max_single_trade_loss: float = 5.0               # percent
    max_correlation_exposure: float = 50.0           # 0-100
    circuit_breaker_threshold: float = 15.0          # exposure percent
    var_limit: float = 1000.0                        # account currency
    stress_test_threshold: float = 20.0              # shock percent


@dataclass(frozen=True)
class ExecutionSettingDefaults:
    """Position sizing and concurrency limits."""
    max_concurrent_positions: int = 5
    position_size_method: str = "percentage"         # fixed | percentage | kelly
    max_position_size: float = 10.0                  # lots
    min_position_size: float = 0.01                  # lots


@dataclass(frozen=True)
class MarketConditionDefaults:
    """Symbols and timeframes traded when a request omits them."""
    symbols: tuple[str, ...] = ("EURUSD",)
    timeframes: tuple[str, ...] = ("1h",)


@dataclass(frozen=True)
class StatisticalArbitrageParams:
    """Z-score thresholds on the consecutive-close spread."""
    lookback_period: int = 20
    entry_threshold: float = 2.0
    exit_threshold: float = 0.5
    max_holding_period: int = 1440                   # minutes between executions
    kelly_win_rate: float = 0.5
    kelly_win_loss_ratio: float = 1.5


@dataclass(frozen=True)
class RSIFilterParams:
    """RSI band a momentum entry must sit inside."""
    enabled: bool = True
    overbought_level: float = 70.0
    oversold_level: float = 30.0


@dataclass(frozen=True)
class MomentumParams:
    """Rate-of-change momentum with trend, volume and RSI filters."""
    momentum_period: int = 20
    entry_signal_strength: float = 2.5               # percent change
    exit_signal_strength: float = 1.0                # percent change
    trend_filter_period: int = 10
    volume_confirmation: bool = True
    rsi_period: int = 14
    rsi_filter: RSIFilterParams = field(default_factory=RSIFilterParams)


@dataclass(frozen=True)
class BollingerFilterParams:
    """Optional Bollinger bands reported alongside the deviation."""
    enabled: bool = True
    period: int = 20
    deviation: float = 2.0


@dataclass(frozen=True)
class MeanReversionParams:
    """Price deviation from its rolling mean, in standard deviations."""
    lookback_period: int = 20
    entry_deviation: float = 2.0
    exit_deviation: float = 0.3
    max_deviation: float = 3.0                       # non-reverting guard
    bollinger_bands: BollingerFilterParams = field(default_factory=BollingerFilterParams)


@dataclass(frozen=True)
class PairsTradingParams:
    """Hedged spread between two correlated symbols."""
    pair_symbols: tuple[str, str] = ("EURUSD", "GBPUSD")
    cointegration_period: int = 30
    entry_threshold: float = 2.0
    exit_threshold: float = 0.5
    correlation_minimum: float = 0.7


@dataclass(frozen=True)
class AdverseSelectionParams:
    """Top-of-book volume imbalance that suspends quoting."""
    enabled: bool = True
    threshold: float = 0.6
    depth_levels: int = 5


@dataclass(frozen=True)
class MarketMakingParams:
    """Inventory-skewed two-sided quoting."""
    spread_target: float = 0.0002                    # price units
    inventory_target: float = 0.0
    max_inventory_skew: float = 1.0                  # lots
    quote_refresh_interval: int = 5000               # milliseconds
    order_size_algorithm: str = "fixed"              # fixed | adaptive | inventory_based
    adverse_selection_filter: AdverseSelectionParams = field(default_factory=AdverseSelectionParams)


@dataclass(frozen=True)
class AlgorithmParamDefaults:
    """Parameter defaults keyed by algorithm type."""
    statistical_arbitrage: StatisticalArbitrageParams = field(default_factory=StatisticalArbitrageParams)
    momentum: MomentumParams = field(default_factory=MomentumParams)
    mean_reversion: MeanReversionParams = field(default_factory=MeanReversionParams)
    pairs_trading: PairsTradingParams = field(default_factory=PairsTradingParams)
    market_making: MarketMakingParams = field(default_factory=MarketMakingParams)


@dataclass(frozen=True)
class BacktestParams:
    """Strategy-data defaults used by the backtest engine."""
    fast_period: int = 10
    slow_period: int = 20
    rsi_period: int = 14
    overbought_level: float = 70.0
    oversold_level: float = 30.0
    bollinger_period: int = 20
    bollinger_k: float = 2.0
    atr_period: int = 14
    take_profit: float = 0.02                        # fraction of entry
    stop_loss: float = 0.01                          # fraction of entry
    risk_per_trade: float = 0.01                     # fraction of equity
    fixed_position_size: float = 10000.0             # units for fixed sizing
    annualization_factor: int = 252
    var_confidence: float = 0.95
    lot_size: float = 100000.0


@dataclass(frozen=True)
class RiskEngineParams:
    """Account-level risk thresholds."""
    drawdown_breach_pct: float = 5.0
    correlation_breach_pct: float = 70.0
    assumed_daily_volatility: float = 0.01
    reward_risk_ratio: float = 2.0
    drawdown_cache_ttl: float = 300.0                # seconds
    metrics_cache_ttl: float = 60.0                  # seconds
    default_equity: float = 10000.0


@dataclass(frozen=True)
class CoordinatorParams:
    """Execution coordinator bookkeeping."""
    history_limit: int = 100
    execution_record_ttl: float = 86400.0            # seconds
    config_ttl: float = 0.0                          # 0 keeps configs until deleted
    health_error_penalty: float = 10.0
    health_idle_penalty: float = 1.0
    estimated_cycle_seconds: float = 60.0
    optimizer_workers: int = 4
    optimizer_max_iterations: int = 200


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    risk_limits: RiskLimitDefaults
    execution_settings: ExecutionSettingDefaults
    market_conditions: MarketConditionDefaults
    algorithms: AlgorithmParamDefaults
    backtest: BacktestParams
    risk_engine: RiskEngineParams
    coordinator: CoordinatorParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        risk_limits=RiskLimitDefaults(),
        execution_settings=ExecutionSettingDefaults(),
        market_conditions=MarketConditionDefaults(),
        algorithms=AlgorithmParamDefaults(),
        backtest=BacktestParams(),
        risk_engine=RiskEngineParams(),
        coordinator=CoordinatorParams(),
    )
