"""
Algorithm execution coordinator.

Owns algorithm configs and runtime state, and drives each instance through
analyze → signal → validate → size → risk → execute. Every cycle runs as
its own asyncio task; cycles for one algorithm id are serialized by a
per-id lock, cycles for different ids run concurrently. Failures are
recorded on the instance and in its execution record and never propagate
to other instances.
"""

import asyncio
import itertools
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import timedelta
from typing import Any, Optional
from uuid import uuid4

import structlog

from ..backtest import REPLAYABLE_TYPES, BacktestResult, StrategyReplay
from ..config.defaults import CoordinatorParams
from ..config.loader import ConfigLoader
from ..config.validation import ConfigValidator
from ..data.models import OHLCBar, OrderRequest, OrderSide
from ..data.provider import MarketDataProvider
from ..errors import (
    AlgorithmNotFoundError,
    AlgorithmUnavailableError,
    ConfigurationError,
    DataQualityError,
    ExecutionGatewayError,
    RiskLimitExceeded,
)
from ..gateways.base import ExecutionGateway
from ..persistence.config_store import ConfigStore
from ..risk import EmergencyStopResult, RiskEngine
from ..risk.assessment import account_equity
from ..state import AlgorithmState, AlgorithmStatus, transition_handler
from ..strategies import (
    AlgorithmConfig,
    BaseAlgorithm,
    ExecutionSettings,
    ExecutionStatus,
    LiveAnalysis,
    MarketConditions,
    RiskLimits,
    Signal,
    create_algorithm,
    resolve_algorithm_type,
)
from ..utils.time import Clock, utc_now
from .models import (
    DEFAULT_STRESS_SCENARIOS,
    OPTIMIZATION_TARGETS,
    CandidateScore,
    CycleOutcome,
    CycleResult,
    ExecutionRequest,
    ExecutionResponse,
    OptimizationRequest,
    OptimizationResult,
    RiskReport,
    StressTestResult,
)

logger = structlog.get_logger(__name__)

WEEKLY_VAR_SCALE = math.sqrt(5)
MONTHLY_VAR_SCALE = math.sqrt(21)
LOW_HEALTH = 50.0


class AlgorithmExecutionCoordinator:
    """Lifecycle and execution of algorithm instances."""

    def __init__(
        self,
        market_data: MarketDataProvider,
        gateway: ExecutionGateway,
        store: ConfigStore,
        risk_engine: Optional[RiskEngine] = None,
        config_loader: Optional[ConfigLoader] = None,
        clock: Clock = utc_now,
        params: Optional[CoordinatorParams] = None
    ):
        self.market_data = market_data
        self.gateway = gateway
        self.store = store
        self.risk_engine = risk_engine or RiskEngine(gateway, store)
        self.config_loader = config_loader or ConfigLoader.create()
        self.clock = clock
        self.params = params or CoordinatorParams()
        self.logger = logger

        self._strategies: dict[str, BaseAlgorithm] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._tasks: set[asyncio.Task] = set()

    # Store keys

    @staticmethod
    def _config_key(algorithm_id: str) -> str:
        return f"algorithm:{algorithm_id}"

    @staticmethod
    def _state_key(algorithm_id: str) -> str:
        return f"algorithm_state:{algorithm_id}"

    @staticmethod
    def _execution_key(execution_id: str) -> str:
        return f"execution:{execution_id}"

    # Configuration

    def _build_config(
        self,
        algorithm_id: str,
        user_id: str,
        algorithm_type: str,
        merged: dict[str, Any],
        request: dict[str, Any]
    ) -> AlgorithmConfig:
        errors = ConfigValidator.validate_algorithm_config(algorithm_type, merged)
        if errors:
            self.logger.error(
                "Algorithm configuration validation failed",
                algorithm_type=algorithm_type,
                errors=[f"{err.field}: {err.message} (got: {err.value})" for err in errors],
            )
            raise ConfigurationError(
                f"Invalid {algorithm_type} configuration",
                errors=errors,
                algorithm_type=algorithm_type,
            )

        now = self.clock()
        return AlgorithmConfig(
            id=algorithm_id,
            user_id=user_id,
            name=request.get("name") or f"{algorithm_type} {algorithm_id}",
            type=resolve_algorithm_type(algorithm_type),
            parameters=merged["parameters"],
            risk_limits=RiskLimits.from_dict(merged["risk_limits"]),
            market_conditions=MarketConditions.from_dict(merged["market_conditions"]),
            execution_settings=ExecutionSettings.from_dict(merged["execution_settings"]),
            is_active=bool(request.get("is_active", True)),
            description=request.get("description", ""),
            created_at=now,
            updated_at=now,
        )

    def _save_config(self, config: AlgorithmConfig) -> None:
        self.store.set(self._config_key(config.id), config.to_dict(), ttl=self.params.config_ttl)

    def create_algorithm(self, user_id: str, request: dict[str, Any]) -> AlgorithmConfig:
        """
        Create and store a new algorithm from defaults, type preset and request overrides.

        Raises:
            ConfigurationError: unknown type or invalid merged configuration
        """
        algorithm_type = resolve_algorithm_type(request.get("type", "")).value
        merged = self.config_loader.merge_config(algorithm_type, request)
        config = self._build_config(f"algo_{uuid4().hex[:12]}", user_id, algorithm_type, merged, request)

        self._save_config(config)
        self._save_state(AlgorithmState.initial(config.id, self.clock()))

        self.logger.info(
            "Algorithm created",
            algorithm_id=config.id,
            user_id=user_id,
            algorithm_type=algorithm_type,
            symbols=list(config.market_conditions.symbols),
        )
        return config

    def get_algorithm(self, algorithm_id: str) -> Optional[AlgorithmConfig]:
        data = self.store.get(self._config_key(algorithm_id))
        if data is None:
            return None
        return AlgorithmConfig.from_dict(data)

    def _require_algorithm(self, algorithm_id: str) -> AlgorithmConfig:
        config = self.get_algorithm(algorithm_id)
        if config is None:
            raise AlgorithmNotFoundError(algorithm_id)
        return config

    def update_algorithm(self, algorithm_id: str, updates: dict[str, Any]) -> AlgorithmConfig:
        """
        Apply overrides to an existing algorithm and store the new version.

        The stored config is replaced, never mutated, so in-flight cycles keep
        the version they started with.

        Raises:
            AlgorithmNotFoundError: unknown id
            ConfigurationError: type change or invalid merged configuration
        """
        current = self._require_algorithm(algorithm_id)
        if "type" in updates and updates["type"] != current.type.value:
            raise ConfigurationError(
                "Algorithm type cannot be changed",
                algorithm_type=current.type.value,
                context={"requested_type": updates["type"]},
            )

        merged = self.config_loader.apply_overrides(current.to_dict(), updates)
        rebuilt = self._build_config(
            current.id, current.user_id, current.type.value, merged,
            {
                "name": updates.get("name", current.name),
                "description": updates.get("description", current.description),
                "is_active": updates.get("is_active", current.is_active),
            },
        )
        config = replace(rebuilt, created_at=current.created_at)
        self._save_config(config)

        self.logger.info("Algorithm updated", algorithm_id=algorithm_id, fields=sorted(updates))
        return config

    def delete_algorithm(self, algorithm_id: str) -> bool:
        """Remove config and state. In-flight cycles finish against their own copy without persisting it."""
        existed = self.store.delete(self._config_key(algorithm_id))
        self.store.delete(self._state_key(algorithm_id))
        self._strategies.pop(algorithm_id, None)
        self._locks.pop(algorithm_id, None)
        if existed:
            self.logger.info("Algorithm deleted", algorithm_id=algorithm_id)
        return existed

    # State

    def get_algorithm_state(self, algorithm_id: str) -> Optional[AlgorithmState]:
        data = self.store.get(self._state_key(algorithm_id))
        if data is None:
            return None
        return AlgorithmState.from_dict(data)

    def _save_state(self, state: AlgorithmState) -> None:
        self.store.set(self._state_key(state.algorithm_id), state.to_dict())

    def _sync_pause_request(self, state: AlgorithmState) -> AlgorithmState:
        """Carry over a stop requested while the cycle was running."""
        stored = self.get_algorithm_state(state.algorithm_id)
        if stored is not None and stored.pause_requested and not state.pause_requested:
            return state.with_pause_requested(True)
        return state

    def _transition(self, state: AlgorithmState, target: AlgorithmStatus, trigger: str,
                    error_message: Optional[str] = None) -> AlgorithmState:
        state = self._sync_pause_request(state)
        state = transition_handler.transition(
            state, target, trigger, timestamp=self.clock(), error_message=error_message
        )
        # Deleted mid-cycle
        if self.get_algorithm(state.algorithm_id) is None:
            return state
        self._save_state(state)
        return state

    def stop_algorithm(self, algorithm_id: str) -> bool:
        """
        Pause an algorithm.

        Idle or errored instances pause immediately. An instance with a cycle
        in flight is flagged and pauses when the cycle completes. Returns
        False for unknown ids.
        """
        if self.get_algorithm(algorithm_id) is None:
            return False

        state = self.get_algorithm_state(algorithm_id) or AlgorithmState.initial(algorithm_id, self.clock())
        if state.status == AlgorithmStatus.PAUSED:
            return True

        if state.in_flight:
            self._save_state(state.with_pause_requested(True))
            self.logger.info("Stop requested for in-flight cycle", algorithm_id=algorithm_id,
                             status=state.status.value)
            return True

        self._transition(state, AlgorithmStatus.PAUSED, "stop_requested")
        return True

    def resume_algorithm(self, algorithm_id: str) -> bool:
        """Leave the paused status, or withdraw a pending stop request."""
        state = self.get_algorithm_state(algorithm_id)
        if state is None or self.get_algorithm(algorithm_id) is None:
            return False

        if state.status == AlgorithmStatus.PAUSED:
            self._transition(state, AlgorithmStatus.IDLE, "resume_requested")
            return True
        if state.pause_requested:
            self._save_state(state.with_pause_requested(False))
            return True
        return False

    # Execution

    async def execute_algorithm(self, request: ExecutionRequest) -> ExecutionResponse:
        """
        Queue one execution cycle and return immediately.

        Raises:
            AlgorithmNotFoundError: unknown id, or owned by another user
            AlgorithmUnavailableError: algorithm inactive or paused
        """
        config = self._require_algorithm(request.algorithm_id)
        if request.user_id is not None and request.user_id != config.user_id:
            raise AlgorithmNotFoundError(request.algorithm_id)
        if not config.is_active:
            raise AlgorithmUnavailableError(config.id, "inactive")

        state = self.get_algorithm_state(config.id)
        if state is None:
            state = AlgorithmState.initial(config.id, self.clock())
            self._save_state(state)
        if state.status == AlgorithmStatus.PAUSED:
            raise AlgorithmUnavailableError(config.id, "paused")

        now = self.clock()
        execution_id = f"exec_{uuid4().hex[:12]}"
        self._record(CycleResult(
            execution_id=execution_id,
            algorithm_id=config.id,
            outcome=CycleOutcome.QUEUED,
            started_at=now,
        ))

        task = asyncio.create_task(self._run_cycle(config.id, execution_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        self.logger.info("Execution queued", algorithm_id=config.id, execution_id=execution_id)
        return ExecutionResponse(
            execution_id=execution_id,
            status="queued",
            message=f"Execution queued for {config.name}",
            estimated_completion=now + timedelta(seconds=self.params.estimated_cycle_seconds),
        )

    async def drain(self) -> None:
        """Wait for every queued and in-flight cycle to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def get_execution_result(self, execution_id: str) -> Optional[CycleResult]:
        data = self.store.get(self._execution_key(execution_id))
        if data is None:
            return None
        return CycleResult.from_dict(data)

    def _record(self, result: CycleResult) -> None:
        self.store.set(
            self._execution_key(result.execution_id),
            result.to_dict(),
            ttl=self.params.execution_record_ttl,
        )

    def _strategy_for(self, config: AlgorithmConfig) -> BaseAlgorithm:
        strategy = self._strategies.get(config.id)
        if strategy is None:
            strategy = create_algorithm(
                config,
                clock=self.clock,
                correlation_table=self.risk_engine.correlation_table,
                risk_params=self.risk_engine.params,
            )
            self._strategies[config.id] = strategy
        elif strategy.config != config:
            strategy.update_config(config)
        return strategy

    async def _run_cycle(self, algorithm_id: str, execution_id: str) -> CycleResult:
        lock = self._locks.setdefault(algorithm_id, asyncio.Lock())
        async with lock:
            started = self.clock()
            config = self.get_algorithm(algorithm_id)
            state = self.get_algorithm_state(algorithm_id)

            if config is None or state is None or not config.is_active \
                    or state.status == AlgorithmStatus.PAUSED or state.pause_requested:
                result = CycleResult(
                    execution_id=execution_id,
                    algorithm_id=algorithm_id,
                    outcome=CycleOutcome.SKIPPED,
                    started_at=started,
                    completed_at=self.clock(),
                    message="Algorithm stopped, deactivated or deleted before the cycle ran",
                )
                if config is None:
                    self._locks.pop(algorithm_id, None)
                self._record(result)
                self.logger.info("Execution skipped", algorithm_id=algorithm_id, execution_id=execution_id)
                return result

            try:
                result = await self._execute_cycle(config, state, execution_id)
            except Exception as e:
                self.logger.error("Execution cycle aborted", algorithm_id=algorithm_id,
                                  execution_id=execution_id, error=str(e), error_type=type(e).__name__)
                result = CycleResult(
                    execution_id=execution_id,
                    algorithm_id=algorithm_id,
                    outcome=CycleOutcome.FAILED,
                    started_at=started,
                    completed_at=self.clock(),
                    message=str(e),
                )
            self._record(result)
            return result

    async def _gather_market_data(
        self,
        config: AlgorithmConfig,
        strategy: BaseAlgorithm
    ) -> tuple[list[OHLCBar], LiveAnalysis]:
        symbol = strategy.symbol
        timeframe = config.primary_timeframe
        limit = max(self.params.history_limit, strategy.required_history())
        related = strategy.related_symbols()

        results = await asyncio.gather(
            self.market_data.get_historical_data(symbol, timeframe, limit),
            self.market_data.get_market_analysis(symbol, timeframe),
            self.market_data.get_price_tick(symbol),
            self.market_data.get_market_depth(symbol),
            self.gateway.get_account_info(),
            self.gateway.get_positions(),
            *(self.market_data.get_historical_data(s, timeframe, limit) for s in related),
        )
        bars, analysis, tick, depth, account, positions = results[:6]

        live = LiveAnalysis(
            market_analysis=analysis,
            tick=tick,
            depth=depth,
            related_bars=dict(zip(related, results[6:])),
            account=account,
            positions=tuple(positions),
        )
        return bars, live

    async def _place_orders(self, config: AlgorithmConfig, signal: Signal) -> list[int]:
        """
        Send the signal to the gateway; paired signals send both legs.

        A failed second leg closes the first leg before the failure is raised.
        """
        comment = f"{config.id}:{signal.id}"
        first = await self.gateway.place_order(OrderRequest(
            symbol=signal.symbol,
            side=signal.side,
            volume=signal.volume,
            price=signal.entry_price,
            comment=comment,
        ))
        tickets = [first.order]

        if not signal.is_paired:
            return tickets

        paired_symbol = signal.metadata["paired_symbol"]
        try:
            second = await self.gateway.place_order(OrderRequest(
                symbol=paired_symbol,
                side=OrderSide(signal.metadata["paired_side"]),
                volume=signal.volume,
                price=signal.metadata.get("paired_price"),
                comment=comment,
            ))
        except Exception as e:
            self.logger.error("Paired leg failed, unwinding first leg",
                              algorithm_id=config.id, ticket=first.order, error=str(e))
            try:
                await self.gateway.close_position(first.order)
            except Exception as unwind_error:
                self.logger.error("Failed to unwind first leg", algorithm_id=config.id,
                                  ticket=first.order, error=str(unwind_error))
            raise ExecutionGatewayError(
                f"Paired leg on {paired_symbol} failed: {e}",
                operation="place_order",
                symbol=paired_symbol,
            ) from e

        tickets.append(second.order)
        return tickets

    async def _execute_cycle(self, config: AlgorithmConfig, state: AlgorithmState,
                             execution_id: str) -> CycleResult:
        started = self.clock()
        strategy: Optional[BaseAlgorithm] = None
        signal: Optional[Signal] = None
        tickets: list[int] = []
        health_delta = -self.params.health_idle_penalty
        final_status = AlgorithmStatus.IDLE
        error_message: Optional[str] = None

        state = self._transition(state, AlgorithmStatus.ANALYZING, "execute")
        try:
            strategy = self._strategy_for(config)
            bars, live = await self._gather_market_data(config, strategy)
            strategy.state = state

            analysis = strategy.analyze(bars, live)
            signal = strategy.generate_signal(analysis)
            if signal is None:
                outcome, message = CycleOutcome.NO_SIGNAL, "No entry signal"
            else:
                state = self._transition(state, AlgorithmStatus.SIGNALING, "signal_generated")
                strategy.state = state

                if not strategy.validate_signal(signal):
                    signal = signal.with_status(ExecutionStatus.REJECTED, self.clock())
                    outcome, message = CycleOutcome.REJECTED, "Signal failed strategy validation"
                else:
                    signal = signal.with_volume(strategy.calculate_position_size(signal))
                    if signal.entry_price is None and live.tick is not None:
                        signal = replace(signal, entry_price=live.tick.mid)
                    signal = signal.with_risk(
                        strategy.assess_risk(signal, live.account, live.positions, live.market_analysis)
                    )
                    self.risk_engine.enforce_limits(signal.risk_assessment, config.risk_limits, subject_id=config.id)
                    signal = signal.with_status(ExecutionStatus.VALIDATED, self.clock())

                    state = self._transition(state, AlgorithmStatus.EXECUTING, "signal_validated")
                    tickets = await self._place_orders(config, signal)

                    now = self.clock()
                    signal = signal.with_status(ExecutionStatus.EXECUTED, now, ticket=tickets[0])
                    strategy.on_executed(signal)
                    state = state.with_position_opened(now, count=len(tickets))
                    health_delta = 0.0
                    outcome, message = CycleOutcome.EXECUTED, f"Executed {len(tickets)} order(s)"

        except RiskLimitExceeded as e:
            if signal is not None:
                signal = signal.with_status(ExecutionStatus.REJECTED, self.clock())
            outcome, message = CycleOutcome.RISK_REJECTED, str(e)
            self.logger.warning("Signal rejected by risk limits", algorithm_id=config.id,
                                limit_name=e.limit_name, value=e.value, threshold=e.threshold)

        except DataQualityError as e:
            outcome, message = CycleOutcome.DATA_UNAVAILABLE, str(e)
            self.logger.warning("Data quality issue during cycle", algorithm_id=config.id,
                                error=str(e), error_type=type(e).__name__,
                                context=getattr(e, 'context', {}))

        except Exception as e:
            if signal is not None:
                signal = signal.with_status(ExecutionStatus.FAILED, self.clock())
            outcome, message = CycleOutcome.FAILED, str(e)
            health_delta = -self.params.health_error_penalty
            final_status = AlgorithmStatus.ERROR
            error_message = str(e)
            self.logger.error("Execution cycle failed", algorithm_id=config.id,
                              execution_id=execution_id, error=str(e), error_type=type(e).__name__)

        state = state.with_health_delta(health_delta)
        if strategy is not None:
            state = state.with_metadata(**strategy.runtime_metadata())
        state = self._transition(state, final_status, outcome.value, error_message=error_message)
        if state.pause_requested:
            state = self._transition(state, AlgorithmStatus.PAUSED, "stop_requested")
        if strategy is not None:
            strategy.state = state

        self.logger.info(
            "Execution cycle completed",
            algorithm_id=config.id,
            execution_id=execution_id,
            outcome=outcome.value,
            status=state.status.value,
            health_score=state.health_score,
        )
        return CycleResult(
            execution_id=execution_id,
            algorithm_id=config.id,
            outcome=outcome,
            started_at=started,
            completed_at=self.clock(),
            message=message,
            signal=signal.to_dict() if signal is not None else None,
            tickets=tuple(tickets),
        )

    # Risk

    async def generate_risk_report(self, algorithm_id: str) -> RiskReport:
        """
        Deterministic risk report for an algorithm and its account.

        Raises:
            AlgorithmNotFoundError: unknown id
        """
        config = self._require_algorithm(algorithm_id)
        limits = config.risk_limits

        positions = await self.gateway.get_positions()
        account = await self.gateway.get_account_info()
        metrics = await self.risk_engine.get_risk_metrics()
        drawdown = await self.risk_engine.monitor_drawdown()
        correlation = self.risk_engine.check_correlation_risk(positions)

        equity = account_equity(account, self.risk_engine.params.default_equity)
        exposure_pct = metrics.total_exposure / equity * 100.0
        daily_var = self.risk_engine.calculate_var(positions)
        state = self.get_algorithm_state(algorithm_id)
        health = state.health_score if state is not None else 100.0

        risk_factors = {
            "market_risk": min(100.0, exposure_pct),
            "drawdown_risk": min(100.0, drawdown.current_drawdown / limits.max_drawdown * 100.0)
            if limits.max_drawdown > 0 else 0.0,
            "correlation_risk": correlation.correlation_risk,
            "var_utilization": min(100.0, daily_var / limits.var_limit * 100.0) if limits.var_limit > 0 else 0.0,
            "operational_risk": 100.0 - health,
        }
        overall = sum(risk_factors.values()) / len(risk_factors)

        stress_tests = tuple(
            StressTestResult(
                scenario=scenario.name,
                price_shock=scenario.price_shock,
                probability=scenario.probability,
                estimated_loss=metrics.total_exposure * scenario.price_shock,
                loss_percentage=metrics.total_exposure * scenario.price_shock / equity * 100.0,
            )
            for scenario in DEFAULT_STRESS_SCENARIOS
        )

        recommendations = []
        if drawdown.breach:
            recommendations.append(
                f"Reduce position sizes: account drawdown {drawdown.current_drawdown:.2f}% exceeds "
                f"{self.risk_engine.params.drawdown_breach_pct}%"
            )
        if correlation.breached:
            recommendations.append("Diversify holdings: average correlation between open positions is high")
        if daily_var > limits.var_limit:
            recommendations.append(f"Daily VaR {daily_var:.2f} exceeds the configured limit {limits.var_limit}")
        if exposure_pct > limits.circuit_breaker_threshold:
            recommendations.append(
                f"Exposure {exposure_pct:.1f}% is above the circuit breaker threshold; new signals will be rejected"
            )
        if health < LOW_HEALTH:
            recommendations.append(f"Review recent errors: health score is {health:.0f}")
        if not recommendations:
            recommendations.append("Risk within configured limits")

        report = RiskReport(
            algorithm_id=algorithm_id,
            generated_at=self.clock(),
            overall_risk_score=overall,
            risk_factors=risk_factors,
            value_at_risk={
                "daily": daily_var,
                "weekly": daily_var * WEEKLY_VAR_SCALE,
                "monthly": daily_var * MONTHLY_VAR_SCALE,
            },
            stress_tests=stress_tests,
            recommendations=tuple(recommendations),
        )
        self.logger.info("Risk report generated", algorithm_id=algorithm_id,
                         overall_risk_score=overall, positions=len(positions))
        return report

    async def emergency_stop(self, reason: str) -> EmergencyStopResult:
        """Close every position and pause every algorithm."""
        result = await self.risk_engine.emergency_stop(reason)

        for key in self.store.keys("algorithm_state:"):
            data = self.store.get(key)
            if data is None:
                continue
            state = AlgorithmState.from_dict(data).with_positions(0)
            if state.in_flight:
                self._save_state(state.with_pause_requested(True))
            elif state.status != AlgorithmStatus.PAUSED:
                self._transition(state, AlgorithmStatus.PAUSED, "emergency_stop")
            else:
                self._save_state(state)
        return result

    # Optimization

    @staticmethod
    def _expand_grid(parameter_ranges: dict[str, list[Any]], limit: int) -> list[dict[str, Any]]:
        keys = sorted(parameter_ranges)
        combinations = itertools.product(*(parameter_ranges[key] for key in keys))
        return [dict(zip(keys, values)) for values in itertools.islice(combinations, limit)]

    @staticmethod
    def _nest(flat: dict[str, Any]) -> dict[str, Any]:
        """Turn dotted keys into nested mappings."""
        nested: dict[str, Any] = {}
        for path, value in flat.items():
            target = nested
            *parents, leaf = path.split(".")
            for name in parents:
                target = target.setdefault(name, {})
            target[leaf] = value
        return nested

    @staticmethod
    def _score(target: str, result: BacktestResult) -> float:
        metrics = result.performance_metrics
        if target == "return":
            return metrics.total_return
        if target == "win_rate":
            return metrics.win_rate
        if target == "drawdown_minimization":
            return -metrics.max_drawdown
        return metrics.sharpe_ratio

    @staticmethod
    def _meets_constraints(constraints: dict[str, float], result: BacktestResult) -> bool:
        metrics = result.performance_metrics
        max_drawdown = constraints.get("max_drawdown_limit")
        if max_drawdown is not None and metrics.max_drawdown > max_drawdown:
            return False
        min_return = constraints.get("min_return_target")
        if min_return is not None and metrics.total_return < min_return:
            return False
        return True

    async def optimize_algorithm(self, request: OptimizationRequest) -> OptimizationResult:
        """
        Grid search over parameter_ranges using historical replay.

        Candidates run on a thread pool. Candidates with invalid parameters,
        too little data or violated constraints are counted as rejected.

        Raises:
            AlgorithmNotFoundError: unknown id
            ConfigurationError: unknown target, empty ranges or non-replayable type
        """
        config = self._require_algorithm(request.algorithm_id)
        if request.target not in OPTIMIZATION_TARGETS:
            raise ConfigurationError(
                f"Unknown optimization target: {request.target}",
                algorithm_type=config.type.value,
                context={"valid_targets": list(OPTIMIZATION_TARGETS)},
            )
        if not request.parameter_ranges:
            raise ConfigurationError("parameter_ranges must not be empty", algorithm_type=config.type.value)
        if config.type not in REPLAYABLE_TYPES:
            raise ConfigurationError(
                f"{config.type.value} cannot be optimized by historical replay",
                algorithm_type=config.type.value,
            )

        bars = await self.market_data.get_historical_data(
            config.primary_symbol, config.primary_timeframe, request.history_limit
        )

        grid = self._expand_grid(request.parameter_ranges, self.params.optimizer_max_iterations)
        candidates: list[tuple[dict[str, Any], AlgorithmConfig]] = []
        rejected = 0
        for flat in grid:
            merged = self.config_loader.apply_overrides(
                config.to_dict(), {"parameters": self._nest(flat)}
            )["parameters"]
            if ConfigValidator.validate_parameters(config.type.value, merged):
                rejected += 1
                continue
            candidates.append((flat, replace(config, parameters=merged)))

        replay = StrategyReplay()
        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(max_workers=self.params.optimizer_workers) as pool:
            outcomes = await asyncio.gather(
                *(loop.run_in_executor(pool, replay.run, candidate, bars) for _, candidate in candidates),
                return_exceptions=True,
            )

        scored: list[CandidateScore] = []
        for (flat, _), outcome in zip(candidates, outcomes):
            if isinstance(outcome, (DataQualityError, ConfigurationError)):
                rejected += 1
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            if not self._meets_constraints(request.constraints, outcome):
                rejected += 1
                continue
            scored.append(CandidateScore(
                parameters=flat,
                score=self._score(request.target, outcome),
                metrics=outcome.performance_metrics,
            ))

        best = max(scored, key=lambda c: c.score) if scored else None

        self.logger.info(
            "Optimization completed",
            algorithm_id=config.id,
            target=request.target,
            evaluated=len(grid),
            rejected=rejected,
            best_score=best.score if best else None,
        )
        return OptimizationResult(
            algorithm_id=config.id,
            target=request.target,
            best_parameters=dict(best.parameters) if best else {},
            best_score=best.score if best else None,
            best_metrics=best.metrics if best else None,
            evaluated=len(grid),
            rejected=rejected,
            candidates=tuple(scored),
        )
