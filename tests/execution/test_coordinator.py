"""Tests for the algorithm execution coordinator."""

import asyncio
import math

import pytest

from algo_app.data.models import OrderRequest, OrderSide
from algo_app.data.provider import HistoricalMarketDataProvider
from algo_app.errors import (
    AlgorithmNotFoundError,
    AlgorithmUnavailableError,
    ConfigurationError,
    ExecutionGatewayError,
)
from algo_app.execution import (
    AlgorithmExecutionCoordinator,
    CycleOutcome,
    ExecutionRequest,
    OptimizationRequest,
)
from algo_app.gateways import PaperExecutionGateway
from algo_app.state import AlgorithmStatus
from algo_app.strategies import ExecutionStatus


def spike_closes(count=30, spike=0.03):
    closes = [1.1 + (0.0002 if i % 2 else -0.0002) for i in range(count - 1)]
    closes.append(1.1 + spike)
    return closes


def spiked_history(count, spikes, spike=0.03):
    closes = [1.1 + (0.0002 if i % 2 else -0.0002) for i in range(count)]
    for index in spikes:
        closes[index] = 1.1 + spike
    return closes


def pair_series(count=30, last_shock=0.01):
    second = [1.3 + 0.01 * math.sin(i / 3.0) for i in range(count)]
    first = [2.0 * p + 0.1 + (0.0005 if i % 2 else -0.0005) for i, p in enumerate(second)]
    first[-1] += last_shock
    return first, second


def reversion_request(**parameters):
    return {
        "name": "EURUSD reversion",
        "type": "mean_reversion",
        "parameters": parameters,
        "market_conditions": {"symbols": ["EURUSD"], "timeframes": ["1h"]},
    }


class RejectingGateway(PaperExecutionGateway):
    """Paper gateway refusing orders on selected symbols."""

    def __init__(self, rejected_symbols, **kwargs):
        super().__init__(**kwargs)
        self.rejected_symbols = set(rejected_symbols)

    async def place_order(self, request):
        if request.symbol in self.rejected_symbols:
            raise ExecutionGatewayError("Market closed", operation="place_order", symbol=request.symbol)
        return await super().place_order(request)


class GatedProvider(HistoricalMarketDataProvider):
    """Provider whose bar requests wait until released."""

    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()

    async def get_historical_data(self, symbol, timeframe, limit):
        await self.release.wait()
        return await super().get_historical_data(symbol, timeframe, limit)


@pytest.fixture
def coordinator(provider, gateway, store, clock):
    return AlgorithmExecutionCoordinator(provider, gateway, store, clock=clock)


async def run_once(coordinator, algorithm_id, user_id=None):
    response = await coordinator.execute_algorithm(ExecutionRequest(algorithm_id, user_id=user_id))
    await coordinator.drain()
    return coordinator.get_execution_result(response.execution_id)


class TestLifecycle:
    """Test create, read, update and delete."""

    def test_create_applies_request_and_presets(self, coordinator, sample_request):
        config = coordinator.create_algorithm("user-1", sample_request)

        assert config.id.startswith("algo_")
        assert len(config.id) == len("algo_") + 12
        assert config.name == "EURUSD reversion"
        assert config.user_id == "user-1"
        assert config.is_active is True
        assert coordinator.get_algorithm(config.id) == config

        state = coordinator.get_algorithm_state(config.id)
        assert state.status == AlgorithmStatus.IDLE
        assert state.current_positions == 0

    def test_type_preset_is_merged(self, coordinator):
        config = coordinator.create_algorithm("user-1", {"type": "statistical_arbitrage"})
        assert config.risk_limits.circuit_breaker_threshold == 8.0
        assert config.risk_limits.var_limit == 800.0

        pairs = coordinator.create_algorithm("user-1", {"type": "pairs_trading"})
        assert pairs.market_conditions.symbols == ("EURUSD", "GBPUSD")
        assert pairs.execution_settings.max_concurrent_positions == 4

    def test_unknown_type(self, coordinator):
        with pytest.raises(ConfigurationError):
            coordinator.create_algorithm("user-1", {"type": "grid"})

    def test_invalid_parameters(self, coordinator, store):
        with pytest.raises(ConfigurationError) as exc_info:
            coordinator.create_algorithm("user-1", reversion_request(lookback_period=1))

        assert [e.field for e in exc_info.value.errors] == ["lookback_period"]
        assert store.keys("algorithm:") == []

    def test_update_keeps_unchanged_fields(self, coordinator, sample_request, clock):
        config = coordinator.create_algorithm("user-1", sample_request)
        clock.advance(minutes=5)

        updated = coordinator.update_algorithm(config.id, {"parameters": {"entry_deviation": 2.5}})

        assert updated.parameters["entry_deviation"] == 2.5
        assert updated.parameters["lookback_period"] == 20
        assert updated.name == config.name
        assert updated.created_at == config.created_at
        assert updated.updated_at > config.updated_at
        assert coordinator.get_algorithm(config.id) == updated

    def test_update_rejects_type_change(self, coordinator, sample_request):
        config = coordinator.create_algorithm("user-1", sample_request)
        with pytest.raises(ConfigurationError):
            coordinator.update_algorithm(config.id, {"type": "momentum"})

    def test_update_unknown(self, coordinator):
        with pytest.raises(AlgorithmNotFoundError):
            coordinator.update_algorithm("algo_missing", {"name": "x"})

    def test_delete(self, coordinator, sample_request):
        config = coordinator.create_algorithm("user-1", sample_request)

        assert coordinator.delete_algorithm(config.id) is True
        assert coordinator.get_algorithm(config.id) is None
        assert coordinator.get_algorithm_state(config.id) is None
        assert coordinator.delete_algorithm(config.id) is False


class TestExecution:
    """Test queued execution cycles."""

    @pytest.mark.asyncio
    async def test_response_is_immediate(self, coordinator, provider, make_bars, sample_request, clock):
        provider.add_bars("EURUSD", "1h", make_bars([1.1] * 30))
        config = coordinator.create_algorithm("user-1", sample_request)

        response = await coordinator.execute_algorithm(ExecutionRequest(config.id))

        assert response.execution_id.startswith("exec_")
        assert response.status == "queued"
        assert (response.estimated_completion - clock()).total_seconds() == 60.0
        assert coordinator.get_execution_result(response.execution_id).outcome == CycleOutcome.QUEUED
        await coordinator.drain()

    @pytest.mark.asyncio
    async def test_executed(self, coordinator, provider, gateway, make_bars):
        provider.add_bars("EURUSD", "1h", make_bars(spike_closes()))
        config = coordinator.create_algorithm("user-1", reversion_request(max_deviation=10.0))

        result = await run_once(coordinator, config.id)

        assert result.outcome == CycleOutcome.EXECUTED
        assert len(result.tickets) == 1
        assert result.signal["side"] == "sell"
        assert result.signal["status"] == ExecutionStatus.EXECUTED.value
        assert result.signal["entry_price"] == pytest.approx(1.13)
        assert result.signal["volume"] == pytest.approx(0.01)

        positions = await gateway.get_positions()
        assert [p.ticket for p in positions] == list(result.tickets)
        assert positions[0].side == OrderSide.SELL

        state = coordinator.get_algorithm_state(config.id)
        assert state.status == AlgorithmStatus.IDLE
        assert state.current_positions == 1
        assert state.health_score == 100.0

    @pytest.mark.asyncio
    async def test_no_signal(self, coordinator, provider, make_bars, sample_request):
        provider.add_bars("EURUSD", "1h", make_bars([1.1] * 30))
        config = coordinator.create_algorithm("user-1", sample_request)

        result = await run_once(coordinator, config.id)

        assert result.outcome == CycleOutcome.NO_SIGNAL
        assert result.signal is None
        state = coordinator.get_algorithm_state(config.id)
        assert state.status == AlgorithmStatus.IDLE
        assert state.health_score == 99.0

    @pytest.mark.asyncio
    async def test_strategy_rejection(self, coordinator, provider, gateway, make_bars, sample_request):
        provider.add_bars("EURUSD", "1h", make_bars(spike_closes()))
        config = coordinator.create_algorithm("user-1", sample_request)

        result = await run_once(coordinator, config.id)

        assert result.outcome == CycleOutcome.REJECTED
        assert result.signal["status"] == ExecutionStatus.REJECTED.value
        assert await gateway.get_positions() == []
        assert coordinator.get_algorithm_state(config.id).status == AlgorithmStatus.IDLE

    @pytest.mark.asyncio
    async def test_risk_rejection(self, coordinator, provider, gateway, make_bars):
        provider.add_bars("EURUSD", "1h", make_bars(spike_closes()))
        await gateway.place_order(OrderRequest(symbol="EURUSD", side=OrderSide.BUY, volume=2000.0, price=1.1))
        config = coordinator.create_algorithm("user-1", reversion_request(max_deviation=10.0))

        result = await run_once(coordinator, config.id)

        assert result.outcome == CycleOutcome.RISK_REJECTED
        assert "circuit_breaker" in result.message
        assert result.signal["status"] == ExecutionStatus.REJECTED.value
        assert len(await gateway.get_positions()) == 1

        state = coordinator.get_algorithm_state(config.id)
        assert state.status == AlgorithmStatus.IDLE
        assert state.current_positions == 0

    @pytest.mark.asyncio
    async def test_data_unavailable(self, coordinator, sample_request):
        config = coordinator.create_algorithm("user-1", sample_request)

        result = await run_once(coordinator, config.id)

        assert result.outcome == CycleOutcome.DATA_UNAVAILABLE
        state = coordinator.get_algorithm_state(config.id)
        assert state.status == AlgorithmStatus.IDLE
        assert state.health_score == 99.0

    @pytest.mark.asyncio
    async def test_paired_legs(self, coordinator, provider, gateway, make_bars):
        first, second = pair_series()
        provider.add_bars("EURUSD", "1h", make_bars(first, symbol="EURUSD"))
        provider.add_bars("GBPUSD", "1h", make_bars(second, symbol="GBPUSD"))
        config = coordinator.create_algorithm("user-1", {"type": "pairs_trading"})

        result = await run_once(coordinator, config.id)

        assert result.outcome == CycleOutcome.EXECUTED
        assert len(result.tickets) == 2
        sides = {p.symbol: p.side for p in await gateway.get_positions()}
        assert sides == {"EURUSD": OrderSide.SELL, "GBPUSD": OrderSide.BUY}
        assert coordinator.get_algorithm_state(config.id).current_positions == 2

    @pytest.mark.asyncio
    async def test_failed_second_leg_unwinds_first(self, provider, store, clock, make_bars):
        gateway = RejectingGateway({"GBPUSD"})
        coordinator = AlgorithmExecutionCoordinator(provider, gateway, store, clock=clock)
        first, second = pair_series()
        provider.add_bars("EURUSD", "1h", make_bars(first, symbol="EURUSD"))
        provider.add_bars("GBPUSD", "1h", make_bars(second, symbol="GBPUSD"))
        config = coordinator.create_algorithm("user-1", {"type": "pairs_trading"})

        result = await run_once(coordinator, config.id)

        assert result.outcome == CycleOutcome.FAILED
        assert "GBPUSD" in result.message
        assert result.signal["status"] == ExecutionStatus.FAILED.value
        assert await gateway.get_positions() == []

        state = coordinator.get_algorithm_state(config.id)
        assert state.status == AlgorithmStatus.ERROR
        assert state.error_message == result.message
        assert state.health_score == 90.0
        assert state.current_positions == 0

    @pytest.mark.asyncio
    async def test_error_state_can_run_again(self, provider, store, clock, make_bars):
        gateway = RejectingGateway({"GBPUSD"})
        coordinator = AlgorithmExecutionCoordinator(provider, gateway, store, clock=clock)
        first, second = pair_series()
        provider.add_bars("EURUSD", "1h", make_bars(first, symbol="EURUSD"))
        provider.add_bars("GBPUSD", "1h", make_bars(second, symbol="GBPUSD"))
        config = coordinator.create_algorithm("user-1", {"type": "pairs_trading"})
        await run_once(coordinator, config.id)

        gateway.rejected_symbols.clear()
        result = await run_once(coordinator, config.id)

        assert result.outcome == CycleOutcome.EXECUTED
        state = coordinator.get_algorithm_state(config.id)
        assert state.status == AlgorithmStatus.IDLE
        assert state.error_message is None

    @pytest.mark.asyncio
    async def test_cycles_for_one_algorithm_run_in_order(self, coordinator, provider, make_bars, sample_request):
        provider.add_bars("EURUSD", "1h", make_bars([1.1] * 30))
        config = coordinator.create_algorithm("user-1", sample_request)

        first = await coordinator.execute_algorithm(ExecutionRequest(config.id))
        second = await coordinator.execute_algorithm(ExecutionRequest(config.id))
        await coordinator.drain()

        for response in (first, second):
            assert coordinator.get_execution_result(response.execution_id).outcome == CycleOutcome.NO_SIGNAL
        assert coordinator.get_algorithm_state(config.id).health_score == 98.0

    @pytest.mark.asyncio
    async def test_unknown_algorithm(self, coordinator):
        with pytest.raises(AlgorithmNotFoundError):
            await coordinator.execute_algorithm(ExecutionRequest("algo_missing"))

    @pytest.mark.asyncio
    async def test_other_users_algorithm_is_not_found(self, coordinator, sample_request):
        config = coordinator.create_algorithm("user-1", sample_request)
        with pytest.raises(AlgorithmNotFoundError):
            await coordinator.execute_algorithm(ExecutionRequest(config.id, user_id="user-2"))

    @pytest.mark.asyncio
    async def test_strategy_construction_failure_is_error(self, coordinator, sample_request, monkeypatch):
        config = coordinator.create_algorithm("user-1", sample_request)

        def broken_factory(*args, **kwargs):
            raise ConfigurationError("cannot build strategy", algorithm_type="mean_reversion")

        monkeypatch.setattr("algo_app.execution.coordinator.create_algorithm", broken_factory)
        result = await run_once(coordinator, config.id)

        assert result.outcome == CycleOutcome.FAILED
        assert result.message == "cannot build strategy"
        state = coordinator.get_algorithm_state(config.id)
        assert state.status == AlgorithmStatus.ERROR
        assert state.error_message == "cannot build strategy"
        assert state.health_score == 90.0

    @pytest.mark.asyncio
    async def test_inactive_algorithm(self, coordinator, sample_request):
        config = coordinator.create_algorithm("user-1", sample_request)
        coordinator.update_algorithm(config.id, {"is_active": False})

        with pytest.raises(AlgorithmUnavailableError) as exc_info:
            await coordinator.execute_algorithm(ExecutionRequest(config.id))
        assert exc_info.value.reason == "inactive"


class TestStopAndResume:
    """Test pausing idle and in-flight instances."""

    @pytest.mark.asyncio
    async def test_stop_idle_pauses_immediately(self, coordinator, sample_request):
        config = coordinator.create_algorithm("user-1", sample_request)

        assert coordinator.stop_algorithm(config.id) is True
        assert coordinator.get_algorithm_state(config.id).status == AlgorithmStatus.PAUSED

        with pytest.raises(AlgorithmUnavailableError) as exc_info:
            await coordinator.execute_algorithm(ExecutionRequest(config.id))
        assert exc_info.value.reason == "paused"

        assert coordinator.resume_algorithm(config.id) is True
        assert coordinator.get_algorithm_state(config.id).status == AlgorithmStatus.IDLE
        assert coordinator.resume_algorithm(config.id) is False

    def test_stop_unknown(self, coordinator):
        assert coordinator.stop_algorithm("algo_missing") is False
        assert coordinator.resume_algorithm("algo_missing") is False

    @pytest.mark.asyncio
    async def test_stop_in_flight_pauses_after_cycle(self, gateway, store, clock, make_bars, sample_request):
        provider = GatedProvider()
        provider.add_bars("EURUSD", "1h", make_bars([1.1] * 30))
        coordinator = AlgorithmExecutionCoordinator(provider, gateway, store, clock=clock)
        config = coordinator.create_algorithm("user-1", sample_request)

        response = await coordinator.execute_algorithm(ExecutionRequest(config.id))
        for _ in range(5):
            await asyncio.sleep(0)
        assert coordinator.get_algorithm_state(config.id).status == AlgorithmStatus.ANALYZING

        assert coordinator.stop_algorithm(config.id) is True
        state = coordinator.get_algorithm_state(config.id)
        assert state.status == AlgorithmStatus.ANALYZING
        assert state.pause_requested is True

        provider.release.set()
        await coordinator.drain()

        assert coordinator.get_execution_result(response.execution_id).outcome == CycleOutcome.NO_SIGNAL
        state = coordinator.get_algorithm_state(config.id)
        assert state.status == AlgorithmStatus.PAUSED
        assert state.pause_requested is False

    @pytest.mark.asyncio
    async def test_resume_withdraws_pending_stop(self, gateway, store, clock, make_bars, sample_request):
        provider = GatedProvider()
        provider.add_bars("EURUSD", "1h", make_bars([1.1] * 30))
        coordinator = AlgorithmExecutionCoordinator(provider, gateway, store, clock=clock)
        config = coordinator.create_algorithm("user-1", sample_request)

        await coordinator.execute_algorithm(ExecutionRequest(config.id))
        for _ in range(5):
            await asyncio.sleep(0)
        coordinator.stop_algorithm(config.id)
        assert coordinator.resume_algorithm(config.id) is True

        provider.release.set()
        await coordinator.drain()
        assert coordinator.get_algorithm_state(config.id).status == AlgorithmStatus.IDLE

    @pytest.mark.asyncio
    async def test_delete_in_flight_leaves_nothing_behind(self, gateway, store, clock, make_bars, sample_request):
        provider = GatedProvider()
        provider.add_bars("EURUSD", "1h", make_bars([1.1] * 30))
        coordinator = AlgorithmExecutionCoordinator(provider, gateway, store, clock=clock)
        config = coordinator.create_algorithm("user-1", sample_request)

        response = await coordinator.execute_algorithm(ExecutionRequest(config.id))
        for _ in range(5):
            await asyncio.sleep(0)
        assert coordinator.get_algorithm_state(config.id).status == AlgorithmStatus.ANALYZING

        assert coordinator.delete_algorithm(config.id) is True
        provider.release.set()
        await coordinator.drain()

        assert coordinator.get_execution_result(response.execution_id).outcome == CycleOutcome.NO_SIGNAL
        assert coordinator.get_algorithm(config.id) is None
        assert coordinator.get_algorithm_state(config.id) is None
        assert store.keys("algorithm_state:") == []
        assert config.id not in coordinator._locks

    @pytest.mark.asyncio
    async def test_queued_cycle_skipped_after_delete(self, coordinator, provider, make_bars, sample_request):
        provider.add_bars("EURUSD", "1h", make_bars([1.1] * 30))
        config = coordinator.create_algorithm("user-1", sample_request)

        response = await coordinator.execute_algorithm(ExecutionRequest(config.id))
        coordinator.delete_algorithm(config.id)
        await coordinator.drain()

        assert coordinator.get_execution_result(response.execution_id).outcome == CycleOutcome.SKIPPED
        assert coordinator.get_algorithm_state(config.id) is None
        assert config.id not in coordinator._locks

    @pytest.mark.asyncio
    async def test_queued_cycle_skipped_after_stop(self, coordinator, provider, make_bars, sample_request):
        provider.add_bars("EURUSD", "1h", make_bars([1.1] * 30))
        config = coordinator.create_algorithm("user-1", sample_request)

        response = await coordinator.execute_algorithm(ExecutionRequest(config.id))
        coordinator.stop_algorithm(config.id)
        await coordinator.drain()

        assert coordinator.get_execution_result(response.execution_id).outcome == CycleOutcome.SKIPPED
        assert coordinator.get_algorithm_state(config.id).status == AlgorithmStatus.PAUSED


class TestRiskReport:
    """Test generate_risk_report."""

    @pytest.mark.asyncio
    async def test_quiet_account(self, coordinator, sample_request):
        config = coordinator.create_algorithm("user-1", sample_request)

        report = await coordinator.generate_risk_report(config.id)

        assert report.overall_risk_score == 0.0
        assert report.value_at_risk["daily"] == 0.0
        assert report.recommendations == ("Risk within configured limits",)
        assert [s.scenario for s in report.stress_tests] == ["high_volatility", "flash_crash", "liquidity_dry_up"]

    @pytest.mark.asyncio
    async def test_correlated_exposure(self, coordinator, gateway, sample_request):
        await gateway.place_order(OrderRequest(symbol="EURUSD", side=OrderSide.BUY, volume=1000.0, price=1.1))
        await gateway.place_order(OrderRequest(symbol="GBPUSD", side=OrderSide.BUY, volume=1000.0, price=1.3))
        config = coordinator.create_algorithm("user-1", sample_request)

        report = await coordinator.generate_risk_report(config.id)

        daily = 2400.0 * 0.01 * 1.645
        assert report.risk_factors["market_risk"] == pytest.approx(24.0)
        assert report.risk_factors["correlation_risk"] == pytest.approx(80.0)
        assert report.risk_factors["drawdown_risk"] == 0.0
        assert report.risk_factors["var_utilization"] == pytest.approx(daily / 1000.0 * 100.0)
        assert report.risk_factors["operational_risk"] == 0.0
        assert report.overall_risk_score == pytest.approx((24.0 + 80.0 + daily / 10.0) / 5)

        assert report.value_at_risk["daily"] == pytest.approx(daily)
        assert report.value_at_risk["weekly"] == pytest.approx(daily * math.sqrt(5))
        assert report.value_at_risk["monthly"] == pytest.approx(daily * math.sqrt(21))

        high_volatility = report.stress_tests[0]
        assert high_volatility.estimated_loss == pytest.approx(120.0)
        assert high_volatility.loss_percentage == pytest.approx(1.2)

        assert any(r.startswith("Diversify") for r in report.recommendations)
        assert any("circuit breaker" in r for r in report.recommendations)

    @pytest.mark.asyncio
    async def test_unknown_algorithm(self, coordinator):
        with pytest.raises(AlgorithmNotFoundError):
            await coordinator.generate_risk_report("algo_missing")


class TestEmergencyStop:
    """Test closing everything and pausing every algorithm."""

    @pytest.mark.asyncio
    async def test_closes_positions_and_pauses(self, coordinator, gateway, sample_request):
        await gateway.place_order(OrderRequest(symbol="EURUSD", side=OrderSide.BUY, volume=1000.0, price=1.1))
        await gateway.place_order(OrderRequest(symbol="GBPUSD", side=OrderSide.SELL, volume=1000.0, price=1.3))
        first = coordinator.create_algorithm("user-1", sample_request)
        second = coordinator.create_algorithm("user-2", {"type": "momentum"})
        coordinator.stop_algorithm(second.id)

        result = await coordinator.emergency_stop("manual")

        assert result.closed_positions == 2
        assert result.failed_tickets == ()
        assert await gateway.get_positions() == []
        for algorithm_id in (first.id, second.id):
            state = coordinator.get_algorithm_state(algorithm_id)
            assert state.status == AlgorithmStatus.PAUSED
            assert state.current_positions == 0


class TestOptimization:
    """Test grid search over replayed history."""

    @pytest.fixture
    def reversion(self, coordinator, provider, make_bars):
        provider.add_bars("EURUSD", "1h", make_bars(spiked_history(120, [40, 80])))
        return coordinator.create_algorithm("user-1", reversion_request(max_deviation=10.0))

    @pytest.mark.asyncio
    async def test_best_candidate(self, coordinator, reversion):
        result = await coordinator.optimize_algorithm(OptimizationRequest(
            algorithm_id=reversion.id,
            parameter_ranges={"entry_deviation": [-1.0, 2.0, 5.0]},
            target="return",
        ))

        assert result.evaluated == 3
        assert result.rejected == 1
        assert len(result.candidates) == 2
        assert result.best_parameters == {"entry_deviation": 2.0}
        assert result.best_score > 0
        assert result.best_metrics.total_return == result.best_score

    @pytest.mark.asyncio
    async def test_constraints_reject_candidates(self, coordinator, reversion):
        result = await coordinator.optimize_algorithm(OptimizationRequest(
            algorithm_id=reversion.id,
            parameter_ranges={"entry_deviation": [2.0, 5.0]},
            target="return",
            constraints={"min_return_target": 1e-9},
        ))

        assert result.rejected == 1
        assert [c.parameters for c in result.candidates] == [{"entry_deviation": 2.0}]

    @pytest.mark.asyncio
    async def test_dotted_keys_reach_nested_parameters(self, coordinator, reversion):
        result = await coordinator.optimize_algorithm(OptimizationRequest(
            algorithm_id=reversion.id,
            parameter_ranges={"bollinger_bands.deviation": [0.0, 2.0]},
        ))
        assert result.rejected == 1
        assert result.best_parameters == {"bollinger_bands.deviation": 2.0}

    @pytest.mark.asyncio
    async def test_too_little_history_rejects(self, coordinator, provider, make_bars):
        provider.add_bars("EURUSD", "1h", make_bars([1.1] * 10))
        config = coordinator.create_algorithm("user-1", reversion_request())

        result = await coordinator.optimize_algorithm(OptimizationRequest(
            algorithm_id=config.id,
            parameter_ranges={"entry_deviation": [2.0]},
        ))
        assert result.rejected == 1
        assert result.best_score is None
        assert result.best_parameters == {}

    @pytest.mark.asyncio
    async def test_unknown_target(self, coordinator, reversion):
        with pytest.raises(ConfigurationError):
            await coordinator.optimize_algorithm(OptimizationRequest(
                algorithm_id=reversion.id,
                parameter_ranges={"entry_deviation": [2.0]},
                target="profit_factor",
            ))

    @pytest.mark.asyncio
    async def test_empty_ranges(self, coordinator, reversion):
        with pytest.raises(ConfigurationError):
            await coordinator.optimize_algorithm(OptimizationRequest(algorithm_id=reversion.id, parameter_ranges={}))

    @pytest.mark.asyncio
    async def test_pairs_trading_cannot_be_optimized(self, coordinator):
        config = coordinator.create_algorithm("user-1", {"type": "pairs_trading"})
        with pytest.raises(ConfigurationError):
            await coordinator.optimize_algorithm(OptimizationRequest(
                algorithm_id=config.id,
                parameter_ranges={"entry_threshold": [2.0]},
            ))
