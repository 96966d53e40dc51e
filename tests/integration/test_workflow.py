"""
Workflow tests: complete valuation from raw cash flows to implied expectations.

These tests verify the pipeline works end-to-end:
1. Build inputs from history or a forecast
2. Run the forward simulation with progress reporting
3. Summarise, bin and build the sensitivity grid
4. Run the implied simulation on the same inputs
5. Cross-check the pieces against each other
"""

import threading

import numpy as np
import pytest

from dcf_montecarlo import (
    FcfMethod,
    FixedRate,
    ForwardSimulation,
    ImpliedSimulation,
    RunStatus,
    SimulationAbortedError,
    TriangularParams,
    ValuationInputs,
    ValuationMode,
    run_forward_simulation,
    run_implied_simulation,
    validate_inputs,
)
from dcf_montecarlo.valuation.dcf import evaluate_price


@pytest.mark.integration
class TestHistoricalWorkflow:
    """History -> forward -> sensitivity -> implied."""

    @pytest.fixture
    def inputs(self, history_5y):
        return ValuationInputs(
            mode=ValuationMode.HISTORICAL,
            growth=TriangularParams(0.01, 0.025, 0.04),
            discount=TriangularParams(0.07, 0.085, 0.11),
            shares_outstanding=500.0,
            current_price=30.0,
            trial_count=30_000,
            debt=1_500.0,
            cash=300.0,
            seed="workflow",
            historical_cash_flows=history_5y,
            fcf_method=FcfMethod.WEIGHTED_AVERAGE,
        )

    def test_full_pipeline(self, inputs, tolerances):
        report = validate_inputs(inputs)
        assert report.passed

        updates = []
        forward = run_forward_simulation(inputs, progress_callback=updates.append, chunk_size=10_000)
        assert [u.processed for u in updates] == [10_000, 20_000, 30_000]
        assert forward.valid_count == inputs.trial_count

        summary = forward.summary
        assert summary.p05 < summary.median < summary.p95
        assert summary.prob_above_current_price == pytest.approx(
            100.0 - summary.current_price_percentile
        )

        # Mode scenario priced the same way as the sensitivity grid
        analysis = forward.sensitivity(steps=25)
        assert analysis.matrix.price_at("mode", "mode") == summary.mode_scenario_price
        lattice_low = np.nanmin(analysis.lattice.prices)
        lattice_high = np.nanmax(analysis.lattice.prices)
        assert lattice_low <= forward.samples[0] * (1 + tolerances.integration)
        assert forward.samples[-1] <= lattice_high * (1 + tolerances.integration)

        implied = run_implied_simulation(inputs)
        assert implied.base_fcf == pytest.approx(forward.base_fcf)
        assert implied.market_enterprise_value == pytest.approx(30.0 * 500.0 + 1_200.0)
        assert implied.density().total == inputs.trial_count

    def test_histogram_brackets_current_price(self, inputs):
        forward = run_forward_simulation(inputs)
        hist = forward.histogram(bins=30)
        idx = forward.current_price_bin(bins=30)
        assert hist.counts.sum() == forward.valid_count
        assert idx is not None
        if hist.edges[0] <= inputs.current_price <= hist.edges[-1]:
            assert hist.edges[idx] - 1e-9 <= inputs.current_price <= hist.edges[idx + 1] + 1e-9


@pytest.mark.integration
class TestForecastWorkflow:
    """Explicit forecast with a fixed discount rate."""

    def test_forecast_fixed_rate(self, forecast_inputs, growth_params):
        inputs = ValuationInputs(
            mode=ValuationMode.FORECAST,
            growth=growth_params,
            discount=FixedRate(0.09),
            shares_outstanding=forecast_inputs.shares_outstanding,
            current_price=forecast_inputs.current_price,
            trial_count=10_000,
            debt=forecast_inputs.debt,
            cash=forecast_inputs.cash,
            seed="forecast-workflow",
            forecast_cash_flows=forecast_inputs.forecast_cash_flows,
        )
        forward = run_forward_simulation(inputs)

        low = evaluate_price(inputs, growth_params.minimum, 0.09)
        high = evaluate_price(inputs, growth_params.maximum, 0.09)
        assert low <= forward.samples[0] <= forward.samples[-1] <= high

        analysis = forward.sensitivity(steps=10)
        assert analysis.matrix.shape == (3, 1)

        implied = run_implied_simulation(inputs)
        # r is fixed, so implied g does not vary
        assert implied.growth_stats.std == pytest.approx(0.0, abs=1e-15)
        assert implied.base_fcf == 1_300.0


@pytest.mark.integration
class TestCancellation:
    """A cancelled run leaves no result, a fresh run still works."""

    def test_cancel_from_other_thread(self, make_inputs):
        inputs = make_inputs(trial_count=100_000)
        event = threading.Event()
        sim = ForwardSimulation(inputs, chunk_size=10_000, cancel_event=event)

        progress = sim.iter_progress()
        next(progress)
        worker = threading.Thread(target=event.set)
        worker.start()
        worker.join()
        for _ in progress:
            pass

        assert sim.status == RunStatus.ABORTED
        with pytest.raises(SimulationAbortedError):
            sim.result

        fresh = ForwardSimulation(inputs, chunk_size=10_000).run()
        assert fresh.valid_count == inputs.trial_count

    def test_interleaved_forward_and_implied(self, make_inputs):
        """Two runs driven alternately do not share state."""
        inputs = make_inputs(trial_count=20_000)
        forward = ForwardSimulation(inputs, chunk_size=5_000)
        implied = ImpliedSimulation(inputs, chunk_size=5_000)

        forward_steps = forward.iter_progress()
        implied_steps = implied.iter_progress()
        for _ in zip(forward_steps, implied_steps):
            pass
        # zip stops on the first exhausted generator; finish the other
        for _ in implied_steps:
            pass

        assert forward.status == RunStatus.COMPLETED
        assert implied.status == RunStatus.COMPLETED
        np.testing.assert_array_equal(forward.result.samples, run_forward_simulation(inputs).samples)
