"""
Algorithm configuration, signal and analysis data models.

AlgorithmConfig is immutable: updates produce a new object so cycles that
already read a config keep a consistent view.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..data.models import AccountInfo, MarketAnalysis, MarketDepth, OHLCBar, OrderSide, Position, PriceTick
from ..risk.models import RiskAssessment
from ..utils.time import format_timestamp, parse_timestamp, utc_now


class AlgorithmType(str, Enum):
    """Discriminator selecting the strategy implementation."""
    STATISTICAL_ARBITRAGE = "statistical_arbitrage"
    MOMENTUM = "momentum"
    MEAN_REVERSION = "mean_reversion"
    PAIRS_TRADING = "pairs_trading"
    MARKET_MAKING = "market_making"


class PositionSizeMethod(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"
    KELLY = "kelly"


class ExecutionStatus(str, Enum):
    """Lifecycle of a single signal."""
    PENDING = "pending"
    VALIDATED = "validated"
    REJECTED = "rejected"
    EXECUTED = "executed"
    FAILED = "failed"


@dataclass(frozen=True)
class RiskLimits:
    max_drawdown: float = 10.0                       # percent
    max_daily_loss: float = 1000.0
    max_single_trade_loss: float = 5.0               # percent
    max_correlation_exposure: float = 50.0           # 0-100
    circuit_breaker_threshold: float = 15.0          # exposure percent
    var_limit: float = 1000.0
    stress_test_threshold: float = 20.0              # shock percent

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'RiskLimits':
        return cls(**{k: float(v) for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class MarketConditions:
    symbols: tuple[str, ...] = ("EURUSD",)
    timeframes: tuple[str, ...] = ("1h",)
    min_volume: Optional[float] = None
    max_spread: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'MarketConditions':
        return cls(
            symbols=tuple(data.get("symbols", ("EURUSD",))),
            timeframes=tuple(data.get("timeframes", ("1h",))),
            min_volume=data.get("min_volume"),
            max_spread=data.get("max_spread"),
        )


@dataclass(frozen=True)
class ExecutionSettings:
    max_concurrent_positions: int = 5
    position_size_method: PositionSizeMethod = PositionSizeMethod.PERCENTAGE
    max_position_size: float = 10.0
    min_position_size: float = 0.01

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'ExecutionSettings':
        return cls(
            max_concurrent_positions=int(data.get("max_concurrent_positions", 5)),
            position_size_method=PositionSizeMethod(data.get("position_size_method", "percentage")),
            max_position_size=float(data.get("max_position_size", 10.0)),
            min_position_size=float(data.get("min_position_size", 0.01)),
        )


@dataclass(frozen=True)
class AlgorithmConfig:
    """Complete configuration of one algorithm instance."""
    id: str
    user_id: str
    name: str
    type: AlgorithmType
    parameters: dict[str, Any] = field(default_factory=dict)
    risk_limits: RiskLimits = field(default_factory=RiskLimits)
    market_conditions: MarketConditions = field(default_factory=MarketConditions)
    execution_settings: ExecutionSettings = field(default_factory=ExecutionSettings)
    is_active: bool = True
    description: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def primary_symbol(self) -> str:
        return self.market_conditions.symbols[0]

    @property
    def primary_timeframe(self) -> str:
        return self.market_conditions.timeframes[0]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "is_active": self.is_active,
            "parameters": _plain(self.parameters),
            "risk_limits": dict(self.risk_limits.__dict__),
            "market_conditions": {
                "symbols": list(self.market_conditions.symbols),
                "timeframes": list(self.market_conditions.timeframes),
                "min_volume": self.market_conditions.min_volume,
                "max_spread": self.market_conditions.max_spread,
            },
            "execution_settings": {
                "max_concurrent_positions": self.execution_settings.max_concurrent_positions,
                "position_size_method": self.execution_settings.position_size_method.value,
                "max_position_size": self.execution_settings.max_position_size,
                "min_position_size": self.execution_settings.min_position_size,
            },
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'AlgorithmConfig':
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            name=data.get("name", data["id"]),
            type=AlgorithmType(data["type"]),
            parameters=_plain(data.get("parameters") or {}),
            risk_limits=RiskLimits.from_dict(data.get("risk_limits") or {}),
            market_conditions=MarketConditions.from_dict(data.get("market_conditions") or {}),
            execution_settings=ExecutionSettings.from_dict(data.get("execution_settings") or {}),
            is_active=bool(data.get("is_active", True)),
            description=data.get("description", ""),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
        )


def _plain(value: Any) -> Any:
    """Deep copy of nested dicts/lists with tuples turned into lists."""
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class LiveAnalysis:
    """Live market context fetched by the coordinator before strategy math runs."""
    market_analysis: Optional[MarketAnalysis] = None
    tick: Optional[PriceTick] = None
    depth: Optional[MarketDepth] = None
    related_bars: dict[str, list[OHLCBar]] = field(default_factory=dict)
    account: Optional[AccountInfo] = None
    positions: tuple[Position, ...] = ()

    def indicator(self, name: str) -> Optional[Any]:
        if self.market_analysis is None:
            return None
        return self.market_analysis.indicators.get(name)


@dataclass(frozen=True)
class AnalysisResult:
    """Strategy-specific diagnostics plus the entry decision."""
    algorithm_type: AlgorithmType
    symbol: str
    is_entry_signal: bool
    is_exit_signal: bool = False
    direction: Optional[OrderSide] = None
    reference_price: Optional[float] = None
    values: dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class Signal:
    """One prospective execution produced by a strategy cycle."""
    id: str
    algorithm_id: str
    user_id: str
    symbol: str
    side: OrderSide
    volume: float = 0.0
    entry_price: Optional[float] = None
    status: ExecutionStatus = ExecutionStatus.PENDING
    metadata: dict[str, Any] = field(default_factory=dict)
    risk_assessment: Optional[RiskAssessment] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    ticket: Optional[int] = None

    @property
    def is_paired(self) -> bool:
        return "paired_symbol" in self.metadata

    def with_volume(self, volume: float) -> 'Signal':
        return replace(self, volume=volume)

    def with_risk(self, assessment: RiskAssessment) -> 'Signal':
        return replace(self, risk_assessment=assessment)

    def with_status(self, status: ExecutionStatus, timestamp: Optional[datetime] = None,
                    ticket: Optional[int] = None, entry_price: Optional[float] = None) -> 'Signal':
        return replace(
            self,
            status=status,
            updated_at=timestamp or utc_now(),
            ticket=ticket if ticket is not None else self.ticket,
            entry_price=entry_price if entry_price is not None else self.entry_price,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "algorithm_id": self.algorithm_id,
            "user_id": self.user_id,
            "symbol": self.symbol,
            "side": self.side.value,
            "volume": self.volume,
            "entry_price": self.entry_price,
            "status": self.status.value,
            "metadata": _plain(self.metadata),
            "risk_assessment": self.risk_assessment.to_dict() if self.risk_assessment else None,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "ticket": self.ticket,
        }
