"""
Data models for backtest configuration, trades and results.

StrategyConfig is parsed once from a caller-supplied strategy_data mapping
and stays read-only for the whole run. Everything else is produced by a
single BacktestEngine pass and never shared between runs.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import structlog

from ..config.defaults import BacktestParams
from ..config.validation import KNOWN_INDICATORS, ConfigValidator
from ..data.models import OHLCBar, OrderSide
from ..errors import ConfigurationError
from ..utils.time import format_timestamp

logger = structlog.get_logger(__name__)

ENTRY_RULES = ("sma_crossover", "ema_crossover", "macd_crossover", "rsi", "bollinger")
MACD_SLOW_PERIOD = 26


@dataclass(frozen=True)
class StrategyConfig:
    """Indicator selection, entry/exit rules, sizing and risk settings for one backtest."""

    indicators: tuple[str, ...] = ()
    entry_rules: tuple[str, ...] = ()

    # Indicator periods
    fast_period: int = 10
    slow_period: int = 20
    rsi_period: int = 14
    overbought_level: float = 70.0
    oversold_level: float = 30.0
    bollinger_period: int = 20
    bollinger_k: float = 2.0
    atr_period: int = 14

    # Exit rules
    take_profit: float = 0.02                        # fraction of entry price
    stop_loss: float = 0.01                          # fraction of entry price
    rsi_exit: bool = False
    crossover_exit: bool = False
    atr_stop_multiplier: Optional[float] = None

    # Sizing
    position_sizing: str = "percentage"              # percentage | fixed
    risk_per_trade: float = 0.01                     # fraction of equity
    fixed_size: float = 10000.0                      # units

    @classmethod
    def from_dict(cls, strategy_data: dict[str, Any],
                  defaults: Optional[BacktestParams] = None) -> 'StrategyConfig':
        """
        Parse caller strategy_data.

        Unknown indicator names and unknown entry rule keys are skipped with a
        debug log; structurally malformed data raises.

        Raises:
            ConfigurationError: strategy_data fails validation
        """
        if not isinstance(strategy_data, dict):
            raise ConfigurationError("strategy_data must be a mapping")

        errors = ConfigValidator.validate_strategy_data(strategy_data)
        if errors:
            raise ConfigurationError(
                f"Invalid strategy data: {errors[0].field}: {errors[0].message}",
                errors=errors,
            )

        defaults = defaults or BacktestParams()

        indicators = []
        for name in strategy_data.get("indicators", []):
            normalized = name.upper()
            if normalized not in KNOWN_INDICATORS:
                logger.debug("Skipping unknown indicator", indicator=name)
                continue
            if normalized not in indicators:
                indicators.append(normalized)

        entry_conditions = strategy_data.get("entry_conditions") or {}
        entry_rules = []
        for rule, enabled in entry_conditions.items():
            if rule not in ENTRY_RULES:
                logger.debug("Skipping unknown entry rule", rule=rule)
                continue
            if enabled:
                entry_rules.append(rule)

        exit_conditions = strategy_data.get("exit_conditions") or {}
        atr_stop = exit_conditions.get("atr_stop")
        if atr_stop is True:
            atr_stop = 2.0
        elif not atr_stop:
            atr_stop = None

        return cls(
            indicators=tuple(indicators),
            entry_rules=tuple(entry_rules),
            fast_period=strategy_data.get("fast_period", defaults.fast_period),
            slow_period=strategy_data.get("slow_period", defaults.slow_period),
            rsi_period=strategy_data.get("rsi_period", defaults.rsi_period),
            overbought_level=float(strategy_data.get("overbought_level", defaults.overbought_level)),
            oversold_level=float(strategy_data.get("oversold_level", defaults.oversold_level)),
            bollinger_period=strategy_data.get("bollinger_period", defaults.bollinger_period),
            bollinger_k=float(strategy_data.get("bollinger_k", defaults.bollinger_k)),
            atr_period=strategy_data.get("atr_period", defaults.atr_period),
            take_profit=float(exit_conditions.get("take_profit", defaults.take_profit)),
            stop_loss=float(exit_conditions.get("stop_loss", defaults.stop_loss)),
            rsi_exit=bool(exit_conditions.get("rsi", False)),
            crossover_exit=bool(exit_conditions.get("crossover", False)),
            atr_stop_multiplier=float(atr_stop) if atr_stop is not None else None,
            position_sizing=strategy_data.get("position_sizing", "percentage"),
            risk_per_trade=float(strategy_data.get("risk_per_trade", defaults.risk_per_trade)),
            fixed_size=float(strategy_data.get("fixed_size", defaults.fixed_position_size)),
        )

    def uses(self, indicator: str) -> bool:
        return indicator in self.indicators

    def required_history(self) -> int:
        """Longest configured indicator period; 1 when no indicator is configured."""
        periods = [1]
        if self.uses("SMA") or self.uses("EMA"):
            periods.append(max(self.fast_period, self.slow_period))
        if self.uses("RSI"):
            periods.append(self.rsi_period)
        if self.uses("MACD"):
            periods.append(MACD_SLOW_PERIOD)
        if self.uses("BOLLINGER"):
            periods.append(self.bollinger_period)
        if self.uses("ATR"):
            periods.append(self.atr_period)
        return max(periods)


@dataclass(frozen=True)
class BacktestRequest:
    """Everything one backtest run needs."""
    strategy: StrategyConfig
    bars: tuple[OHLCBar, ...]
    initial_balance: float = 10000.0
    spread: float = 1.5                              # pips
    commission: float = 7.0                          # per standard lot
    symbol: Optional[str] = None
    strategy_id: Optional[str] = None


@dataclass(frozen=True)
class BacktestTrade:
    """One round trip. Open trades carry no exit fields and no profit/loss."""
    symbol: str
    side: OrderSide
    quantity: float
    entry_price: float
    entry_time: datetime
    entry_reason: str
    exit_price: Optional[float] = None
    exit_time: Optional[datetime] = None
    profit_loss: Optional[float] = None
    commission: float = 0.0
    exit_reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.exit_time is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "side": self.side.value,
            "quantity": self.quantity,
            "entry_price": self.entry_price,
            "entry_time": format_timestamp(self.entry_time),
            "entry_reason": self.entry_reason,
            "exit_price": self.exit_price,
            "exit_time": format_timestamp(self.exit_time),
            "profit_loss": self.profit_loss,
            "commission": self.commission,
            "exit_reason": self.exit_reason,
        }


@dataclass(frozen=True)
class EquityPoint:
    timestamp: datetime
    equity: float


@dataclass(frozen=True)
class DrawdownPoint:
    """Drawdown observed at one bar and the running maximum up to it."""
    timestamp: datetime
    drawdown: float                                  # fraction of peak
    max_drawdown: float                              # fraction of peak, non-decreasing


@dataclass(frozen=True)
class PerformanceMetrics:
    total_return: float
    annualized_return: float
    max_drawdown: float
    sharpe_ratio: float
    sortino_ratio: float
    win_rate: float
    profit_factor: float
    calmar_ratio: float
    recovery_factor: float
    final_equity: float

    def to_dict(self) -> dict[str, float]:
        return {
            "total_return": self.total_return,
            "annualized_return": self.annualized_return,
            "max_drawdown": self.max_drawdown,
            "sharpe_ratio": self.sharpe_ratio,
            "sortino_ratio": self.sortino_ratio,
            "win_rate": self.win_rate,
            "profit_factor": self.profit_factor,
            "calmar_ratio": self.calmar_ratio,
            "recovery_factor": self.recovery_factor,
            "final_equity": self.final_equity,
        }


@dataclass(frozen=True)
class TradeStatistics:
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    average_win: float = 0.0
    average_loss: float = 0.0                        # negative or zero
    largest_win: float = 0.0
    largest_loss: float = 0.0                        # negative or zero
    expectancy: float = 0.0                          # average net P&L per trade
    win_loss_ratio: float = 0.0
    kelly_percentage: float = 0.0                    # capped at 0.25
    total_commission: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return dict(self.__dict__)


@dataclass(frozen=True)
class DrawdownAnalysis:
    max_drawdown: float = 0.0
    average_drawdown: float = 0.0
    max_drawdown_duration: int = 0                   # bars spent below the prior peak
    recovery_time: Optional[int] = None              # bars from deepest trough back to peak
    drawdown_periods: int = 0
    current_drawdown: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return dict(self.__dict__)


@dataclass(frozen=True)
class RiskAnalysis:
    value_at_risk: float = 0.0                       # currency, positive is a loss
    expected_shortfall: float = 0.0                  # currency, positive is a loss
    confidence: float = 0.95
    return_volatility: float = 0.0
    downside_deviation: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return dict(self.__dict__)


@dataclass(frozen=True)
class BacktestResult:
    """Output of one backtest run."""
    strategy_id: Optional[str]
    symbol: str
    period_start: datetime
    period_end: datetime
    initial_balance: float
    performance_metrics: PerformanceMetrics
    trade_statistics: TradeStatistics
    trade_log: tuple[BacktestTrade, ...]
    equity_curve: tuple[EquityPoint, ...]
    drawdown_curve: tuple[DrawdownPoint, ...]
    drawdown_analysis: DrawdownAnalysis
    risk_analysis: RiskAnalysis
    open_trade: Optional[BacktestTrade] = None

    @property
    def closed_trades(self) -> tuple[BacktestTrade, ...]:
        return tuple(trade for trade in self.trade_log if not trade.is_open)

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy_id": self.strategy_id,
            "symbol": self.symbol,
            "period": {
                "start": format_timestamp(self.period_start),
                "end": format_timestamp(self.period_end),
            },
            "initial_balance": self.initial_balance,
            "performance_metrics": self.performance_metrics.to_dict(),
            "trade_statistics": self.trade_statistics.to_dict(),
            "trade_log": [trade.to_dict() for trade in self.trade_log],
            "equity_curve": [
                {"timestamp": format_timestamp(point.timestamp), "equity": point.equity}
                for point in self.equity_curve
            ],
            "drawdown_analysis": self.drawdown_analysis.to_dict(),
            "risk_analysis": self.risk_analysis.to_dict(),
            "open_trade": self.open_trade.to_dict() if self.open_trade else None,
        }
