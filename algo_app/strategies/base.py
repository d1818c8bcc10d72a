"""
Algorithm strategy contract shared by every variant.

A strategy turns bars plus live market context into an AnalysisResult,
derives at most one Signal from it, checks the signal against its own
constraints and sizes it. All strategy math is synchronous; the
coordinator fetches market data before calling in.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import fields, is_dataclass
from typing import Any, Optional
from uuid import uuid4

import structlog

from ..config.defaults import RiskEngineParams
from ..data.models import AccountInfo, MarketAnalysis, OHLCBar, Position
from ..errors import InsufficientDataError
from ..risk import CorrelationTable, RiskAssessment, assess_signal_risk
from ..state import AlgorithmState
from ..utils.time import Clock, utc_now
from .models import AlgorithmConfig, AlgorithmType, AnalysisResult, LiveAnalysis, Signal

logger = structlog.get_logger(__name__)


def build_params(params_class: type, data: dict[str, Any]) -> Any:
    """
    Build a typed parameter dataclass from a merged parameter mapping.

    Nested dataclass fields are built recursively and lists become tuples
    where the default is a tuple. Unknown keys are ignored.
    """
    defaults = params_class()
    kwargs: dict[str, Any] = {}
    for f in fields(params_class):
        if f.name not in data:
            continue
        value = data[f.name]
        current = getattr(defaults, f.name)
        if is_dataclass(current) and isinstance(value, dict):
            value = build_params(type(current), value)
        elif isinstance(current, tuple) and isinstance(value, list):
            value = tuple(value)
        kwargs[f.name] = value
    return params_class(**kwargs)


class BaseAlgorithm(ABC):
    """Base class for the trading algorithm variants."""

    algorithm_type: AlgorithmType
    params_class: type

    def __init__(
        self,
        config: AlgorithmConfig,
        clock: Clock = utc_now,
        correlation_table: Optional[CorrelationTable] = None,
        risk_params: Optional[RiskEngineParams] = None
    ):
        self.clock = clock
        self.correlation_table = correlation_table or CorrelationTable.default()
        self.risk_params = risk_params or RiskEngineParams()
        self.state = AlgorithmState.initial(config.id, clock())
        self.config = config
        self.params = build_params(self.params_class, config.parameters)
        self.logger = logger.bind(algorithm_id=config.id, algorithm_type=self.algorithm_type.value)

    def update_config(self, config: AlgorithmConfig) -> None:
        """Swap in a new configuration; runtime state is kept."""
        self.config = config
        self.params = build_params(self.params_class, config.parameters)

    @property
    def symbol(self) -> str:
        return self.config.primary_symbol

    def related_symbols(self) -> tuple[str, ...]:
        """Extra symbols whose bars analyze() needs in LiveAnalysis.related_bars."""
        return ()

    @abstractmethod
    def required_history(self) -> int:
        """Minimum number of bars analyze() needs."""

    def _require_history(self, bars: Sequence[OHLCBar], symbol: Optional[str] = None) -> None:
        required = self.required_history()
        if len(bars) < required:
            raise InsufficientDataError(
                f"{self.algorithm_type.value} needs {required} bars of {symbol or self.symbol}",
                required_count=required,
                available_count=len(bars),
            )

    @staticmethod
    def _reference_price(bars: Sequence[OHLCBar], live: LiveAnalysis) -> Optional[float]:
        if live.tick is not None:
            return live.tick.mid
        if bars:
            return bars[-1].close
        return None

    @abstractmethod
    def analyze(self, bars: Sequence[OHLCBar], live: LiveAnalysis) -> AnalysisResult:
        """
        Compute the strategy diagnostics and entry decision.

        Raises:
            InsufficientDataError: fewer bars than required_history()
        """

    def _signal_metadata(self, result: AnalysisResult) -> dict[str, Any]:
        metadata = dict(result.values)
        metadata["algorithm_type"] = self.algorithm_type.value
        return metadata

    def generate_signal(self, result: AnalysisResult) -> Optional[Signal]:
        """Signal for an entry result, None otherwise."""
        if not result.is_entry_signal or result.direction is None:
            return None

        return Signal(
            id=f"{self.config.id}_{uuid4().hex[:12]}",
            algorithm_id=self.config.id,
            user_id=self.config.user_id,
            symbol=result.symbol,
            side=result.direction,
            entry_price=result.reference_price,
            metadata=self._signal_metadata(result),
            created_at=self.clock(),
        )

    def _has_capacity(self, reserve: int = 0) -> bool:
        return self.state.current_positions < self.config.execution_settings.max_concurrent_positions - reserve

    def validate_signal(self, signal: Signal) -> bool:
        """Whether the signal may proceed to sizing; the base check is position capacity."""
        return self._has_capacity()

    @abstractmethod
    def _raw_position_size(self, signal: Signal) -> float:
        """Unclamped position size in lots."""

    def calculate_position_size(self, signal: Signal) -> float:
        """Position size clamped to [min_position_size, max_position_size]."""
        settings = self.config.execution_settings
        size = self._raw_position_size(signal)
        return max(settings.min_position_size, min(settings.max_position_size, size))

    def assess_risk(
        self,
        signal: Signal,
        account: Optional[AccountInfo],
        positions: Sequence[Position],
        market_analysis: Optional[MarketAnalysis] = None
    ) -> RiskAssessment:
        """Deterministic risk assessment of the sized signal against the current portfolio."""
        return assess_signal_risk(
            symbol=signal.symbol,
            volume=signal.volume,
            entry_price=signal.entry_price or 0.0,
            account=account,
            positions=positions,
            risk_limits=self.config.risk_limits,
            correlation_table=self.correlation_table,
            market_analysis=market_analysis,
            params=self.risk_params,
        )

    def on_executed(self, signal: Signal) -> None:
        """Hook called after the gateway accepted the signal."""

    def runtime_metadata(self) -> dict[str, Any]:
        """Strategy-held runtime values mirrored into AlgorithmState.metadata."""
        return {}
