"""
Entry and exit rule evaluation over precomputed indicator series.

Entry decisions at bar i read indicator values at i-1 and i-2 only.
Crossovers compare those two bars; level rules (RSI, Bollinger) use i-1.
A rule fires only once its indicator at i-1 is past warm-up.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional

from ..data.models import OHLCBar, OrderSide
from ..indicators import atr_series, bollinger_series, ema_series, macd_series, rsi_series, sma_series
from .models import MACD_SLOW_PERIOD, StrategyConfig

MACD_SIGNAL_PERIOD = 9


@dataclass
class IndicatorFrame:
    """
    Indicator series aligned with the bar series.

    Series are plain lists keyed by name so a caller may overwrite a single
    index (the no-lookahead check does exactly that).
    """
    closes: list[float]
    series: dict[str, list[float]] = field(default_factory=dict)
    warmup: dict[str, int] = field(default_factory=dict)

    def value(self, name: str, index: int) -> Optional[float]:
        values = self.series.get(name)
        if values is None or index < 0 or index >= len(values):
            return None
        return values[index]

    def ready(self, name: str, index: int) -> bool:
        return name in self.series and index >= self.warmup.get(name, 0)


@dataclass(frozen=True)
class RuleDecision:
    """An entry or exit decision and the rule that produced it."""
    side: OrderSide
    reason: str


def build_indicator_frame(bars: Sequence[OHLCBar], config: StrategyConfig) -> IndicatorFrame:
    """Compute every indicator series the configuration asks for."""
    closes = [bar.close for bar in bars]
    frame = IndicatorFrame(closes=closes)
    crossover_warmup = max(config.fast_period, config.slow_period) - 1

    if config.uses("SMA"):
        frame.series["sma_fast"] = sma_series(closes, config.fast_period)
        frame.series["sma_slow"] = sma_series(closes, config.slow_period)
        frame.warmup["sma_fast"] = frame.warmup["sma_slow"] = crossover_warmup

    if config.uses("EMA"):
        frame.series["ema_fast"] = ema_series(closes, config.fast_period)
        frame.series["ema_slow"] = ema_series(closes, config.slow_period)
        frame.warmup["ema_fast"] = frame.warmup["ema_slow"] = crossover_warmup

    if config.uses("RSI"):
        frame.series["rsi"] = rsi_series(closes, config.rsi_period)
        frame.warmup["rsi"] = config.rsi_period

    if config.uses("MACD"):
        macd = macd_series(closes)
        frame.series["macd_line"] = macd.line
        frame.series["macd_signal"] = macd.signal
        frame.warmup["macd_line"] = frame.warmup["macd_signal"] = MACD_SLOW_PERIOD + MACD_SIGNAL_PERIOD - 2

    if config.uses("BOLLINGER"):
        bands = bollinger_series(closes, config.bollinger_period, config.bollinger_k)
        frame.series["bb_upper"] = [b.upper for b in bands]
        frame.series["bb_middle"] = [b.middle for b in bands]
        frame.series["bb_lower"] = [b.lower for b in bands]
        for name in ("bb_upper", "bb_middle", "bb_lower"):
            frame.warmup[name] = config.bollinger_period - 1

    if config.uses("ATR"):
        frame.series["atr"] = atr_series(bars, config.atr_period)
        frame.warmup["atr"] = config.atr_period - 1

    return frame


def _crossover(frame: IndicatorFrame, fast: str, slow: str, index: int) -> Optional[OrderSide]:
    """
    Crossover between bars index-2 and index-1.

    Golden cross (fast rises through slow) is BUY, death cross is SELL.
    """
    prev_i, curr_i = index - 2, index - 1
    if prev_i < 0 or not (frame.ready(fast, curr_i) and frame.ready(slow, curr_i)):
        return None

    prev_fast = frame.value(fast, prev_i)
    prev_slow = frame.value(slow, prev_i)
    curr_fast = frame.value(fast, curr_i)
    curr_slow = frame.value(slow, curr_i)

    if prev_fast <= prev_slow and curr_fast > curr_slow:
        return OrderSide.BUY
    if prev_fast >= prev_slow and curr_fast < curr_slow:
        return OrderSide.SELL
    return None


def evaluate_entry(frame: IndicatorFrame, index: int, config: StrategyConfig) -> Optional[RuleDecision]:
    """
    First entry rule that fires at bar `index`, in configuration order.

    Never reads any series at `index` itself.
    """
    prev_i = index - 1
    if prev_i < 0:
        return None

    for rule in config.entry_rules:
        if rule == "sma_crossover":
            side = _crossover(frame, "sma_fast", "sma_slow", index)
            if side is not None:
                return RuleDecision(side, "SMA golden cross" if side is OrderSide.BUY else "SMA death cross")

        elif rule == "ema_crossover":
            side = _crossover(frame, "ema_fast", "ema_slow", index)
            if side is not None:
                return RuleDecision(side, "EMA golden cross" if side is OrderSide.BUY else "EMA death cross")

        elif rule == "macd_crossover":
            side = _crossover(frame, "macd_line", "macd_signal", index)
            if side is not None:
                return RuleDecision(side, "MACD bullish cross" if side is OrderSide.BUY else "MACD bearish cross")

        elif rule == "rsi" and frame.ready("rsi", prev_i):
            rsi = frame.value("rsi", prev_i)
            if rsi < config.oversold_level:
                return RuleDecision(OrderSide.BUY, "RSI oversold")
            if rsi > config.overbought_level:
                return RuleDecision(OrderSide.SELL, "RSI overbought")

        elif rule == "bollinger" and frame.ready("bb_upper", prev_i):
            close = frame.closes[prev_i]
            if close < frame.value("bb_lower", prev_i):
                return RuleDecision(OrderSide.BUY, "Close below lower band")
            if close > frame.value("bb_upper", prev_i):
                return RuleDecision(OrderSide.SELL, "Close above upper band")

    return None


def evaluate_exit(
    frame: IndicatorFrame,
    index: int,
    config: StrategyConfig,
    side: OrderSide,
    entry_price: float,
    close: float
) -> Optional[str]:
    """
    Exit reason for an open position at bar `index`, None to hold.

    Take-profit and stop-loss compare the fractional P&L at the current close
    with the configured thresholds. Indicator exits read bar index-1.
    """
    if entry_price <= 0:
        return None

    pnl = (close - entry_price) / entry_price * side.direction
    if pnl >= config.take_profit:
        return "Take profit"
    if pnl <= -config.stop_loss:
        return "Stop loss"

    prev_i = index - 1

    if config.atr_stop_multiplier is not None and frame.ready("atr", prev_i):
        distance = frame.value("atr", prev_i) * config.atr_stop_multiplier
        if distance > 0 and (entry_price - close) * side.direction >= distance:
            return "ATR stop"

    if config.rsi_exit and frame.ready("rsi", prev_i):
        rsi = frame.value("rsi", prev_i)
        if side is OrderSide.BUY and rsi > config.overbought_level:
            return "RSI exit"
        if side is OrderSide.SELL and rsi < config.oversold_level:
            return "RSI exit"

    if config.crossover_exit:
        for fast, slow in (("sma_fast", "sma_slow"), ("ema_fast", "ema_slow"), ("macd_line", "macd_signal")):
            reversal = _crossover(frame, fast, slow, index)
            if reversal is not None and reversal is side.opposite:
                return "Crossover reversal"

    return None
