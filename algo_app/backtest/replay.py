"""
Replay of a live strategy over historical bars.

Used by the optimizer to score parameter sets with the same analyze /
signal / validate / size path the coordinator runs. The signal for bar i
is computed from bars before i and filled at bar i's open, so no decision
reads the bar it trades on.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog

from ..config.defaults import BacktestParams
from ..data.models import OHLCBar, OrderSide
from ..data.validators import prepare_bars
from ..errors import ConfigurationError, InsufficientDataError
from ..strategies import AlgorithmConfig, AlgorithmType, LiveAnalysis, create_algorithm
from ..utils.time import ManualClock
from .engine import PIP_DIVISOR, build_result
from .models import BacktestResult, BacktestTrade, DrawdownPoint, EquityPoint

logger = structlog.get_logger(__name__)

REPLAYABLE_TYPES = frozenset({
    AlgorithmType.STATISTICAL_ARBITRAGE,
    AlgorithmType.MOMENTUM,
    AlgorithmType.MEAN_REVERSION,
})


@dataclass
class _ReplayPosition:
    side: OrderSide
    entry_price: float
    entry_time: datetime
    lots: float
    reason: str


class StrategyReplay:
    """
    Drives one strategy instance bar by bar.

    Positions close on a take-profit or stop-loss move at the bar close, or
    when the strategy reports an exit condition. Pairs trading needs a
    second symbol and market making needs order books, so neither replays.
    """

    def __init__(
        self,
        take_profit: float = 0.02,
        stop_loss: float = 0.01,
        initial_balance: float = 10000.0,
        spread: float = 1.5,
        commission: float = 7.0,
        history_limit: int = 100,
        params: Optional[BacktestParams] = None
    ):
        self.take_profit = take_profit
        self.stop_loss = stop_loss
        self.initial_balance = initial_balance
        self.spread = spread
        self.commission = commission
        self.history_limit = history_limit
        self.params = params or BacktestParams()

    def _exit_reason(self, position: _ReplayPosition, close: float, strategy_exit: bool) -> Optional[str]:
        move = (close - position.entry_price) / position.entry_price * position.side.direction
        if move >= self.take_profit:
            return "take_profit"
        if move <= -self.stop_loss:
            return "stop_loss"
        if strategy_exit:
            return "strategy_exit"
        return None

    def run(self, config: AlgorithmConfig, bars: Sequence[OHLCBar]) -> BacktestResult:
        """
        Replay config over bars.

        Raises:
            ConfigurationError: algorithm type cannot be replayed
            InsufficientDataError: not enough bars to produce a single decision
        """
        if config.type not in REPLAYABLE_TYPES:
            raise ConfigurationError(
                f"{config.type.value} cannot be replayed on a single bar series",
                algorithm_type=config.type.value,
            )

        bars = prepare_bars(list(bars))
        clock = ManualClock(bars[0].timestamp if bars else None)
        strategy = create_algorithm(config, clock=clock)
        required = strategy.required_history()

        if len(bars) <= required:
            raise InsufficientDataError(
                f"Replay needs more than {required} bars, got {len(bars)}",
                required_count=required + 1,
                available_count=len(bars),
            )

        window = max(self.history_limit, required)
        lot_size = self.params.lot_size
        symbol = config.primary_symbol

        equity = self.initial_balance
        peak = self.initial_balance
        max_drawdown = 0.0
        position: Optional[_ReplayPosition] = None

        trades: list[BacktestTrade] = []
        equity_curve: list[EquityPoint] = []
        drawdown_curve: list[DrawdownPoint] = []

        for i in range(required, len(bars)):
            bar = bars[i]
            clock.set(bar.timestamp)
            history = bars[max(0, i - window):i]
            result = strategy.analyze(history, LiveAnalysis())
            spread_cost = self.spread / PIP_DIVISOR * bar.open

            if position is None:
                signal = strategy.generate_signal(result)
                if signal is not None and strategy.validate_signal(signal):
                    signal = signal.with_volume(strategy.calculate_position_size(signal))
                    position = _ReplayPosition(
                        side=signal.side,
                        entry_price=bar.open + spread_cost * signal.side.direction,
                        entry_time=bar.timestamp,
                        lots=signal.volume,
                        reason=config.type.value,
                    )
                    strategy.state = strategy.state.with_position_opened(bar.timestamp)
                    strategy.on_executed(signal)

            if position is not None and position.entry_time != bar.timestamp:
                reason = self._exit_reason(position, bar.close, result.is_exit_signal)
                if reason is not None:
                    exit_price = bar.close - spread_cost * position.side.direction
                    units = position.lots * lot_size
                    gross = (exit_price - position.entry_price) * units * position.side.direction
                    commission = self.commission * position.lots
                    net = gross - commission

                    trades.append(BacktestTrade(
                        symbol=symbol,
                        side=position.side,
                        quantity=units,
                        entry_price=position.entry_price,
                        entry_time=position.entry_time,
                        entry_reason=position.reason,
                        exit_price=exit_price,
                        exit_time=bar.timestamp,
                        profit_loss=net,
                        commission=commission,
                        exit_reason=reason,
                    ))
                    equity += net
                    position = None
                    strategy.state = strategy.state.with_positions(strategy.state.current_positions - 1)

            peak = max(peak, equity)
            drawdown = (peak - equity) / peak if peak > 0 else 0.0
            max_drawdown = max(max_drawdown, drawdown)
            equity_curve.append(EquityPoint(timestamp=bar.timestamp, equity=equity))
            drawdown_curve.append(DrawdownPoint(timestamp=bar.timestamp, drawdown=drawdown, max_drawdown=max_drawdown))

        open_trade = None
        if position is not None:
            open_trade = BacktestTrade(
                symbol=symbol,
                side=position.side,
                quantity=position.lots * lot_size,
                entry_price=position.entry_price,
                entry_time=position.entry_time,
                entry_reason=position.reason,
            )
            trades.append(open_trade)

        replayed = bars[required:]
        logger.debug(
            "Strategy replay completed",
            algorithm_id=config.id,
            algorithm_type=config.type.value,
            bars=len(replayed),
            trades=len(trades) - (1 if open_trade else 0),
        )
        return build_result(
            strategy_id=config.id,
            symbol=symbol,
            bars=replayed,
            initial_balance=self.initial_balance,
            trades=trades,
            equity_curve=equity_curve,
            drawdown_curve=drawdown_curve,
            max_drawdown=max_drawdown,
            open_trade=open_trade,
            params=self.params,
        )
