"""
Tests for pre-run validation gates - validation/gates.py.
"""

import logging

import pytest

from dcf_montecarlo.data.schemas import FixedRate, InputValidationError, TriangularParams
from dcf_montecarlo.validation.gates import (
    BaseFcfPositiveGate,
    GateResult,
    GateStatus,
    MarketEnterpriseValueGate,
    SpreadOverlapGate,
    TrialCountGate,
    ValidationEngine,
    ValidationReport,
    validate_inputs,
)


class TestGateResult:
    """Tests for GateResult and ValidationReport."""

    def test_passed_flag(self):
        assert GateResult(GateStatus.PASS, "a", "ok").passed
        assert GateResult(GateStatus.WARN, "a", "hmm").passed
        assert not GateResult(GateStatus.HALT, "a", "no").passed

    def test_overall_status_is_worst(self):
        report = ValidationReport(results=(
            GateResult(GateStatus.PASS, "a", "ok"),
            GateResult(GateStatus.WARN, "b", "hmm"),
        ))
        assert report.overall_status == GateStatus.WARN
        assert report.passed
        assert report.warning_messages == ("hmm",)

        report = ValidationReport(results=report.results + (GateResult(GateStatus.HALT, "c", "no"),))
        assert report.overall_status == GateStatus.HALT
        assert [g.gate_name for g in report.halted_gates] == ["c"]

    def test_raise_if_halted(self):
        report = ValidationReport(results=(GateResult(GateStatus.HALT, "c", "bad EV"),))
        with pytest.raises(InputValidationError, match="bad EV"):
            report.raise_if_halted()

    def test_raise_if_halted_passes_on_warn(self):
        ValidationReport(results=(GateResult(GateStatus.WARN, "w", "x"),)).raise_if_halted()

    def test_to_dict(self):
        report = ValidationReport(results=(GateResult(GateStatus.WARN, "w", "x", value=1, threshold=0),))
        d = report.to_dict()
        assert d["overall_status"] == "warn"
        assert d["n_warned"] == 1
        assert d["results"][0]["gate"] == "w"


class TestBaseFcfPositiveGate:
    """Warn when base FCF <= 0."""

    def test_pass(self, make_inputs):
        assert BaseFcfPositiveGate().check(make_inputs()).status == GateStatus.PASS

    @pytest.mark.parametrize("base", [0.0, -50.0])
    def test_warn(self, make_inputs, base):
        result = BaseFcfPositiveGate().check(make_inputs(base_fcf=base))
        assert result.status == GateStatus.WARN
        assert result.value == base


class TestSpreadOverlapGate:
    """Warn when g_max reaches r_min (or the fixed rate)."""

    def test_pass_when_separated(self, make_inputs):
        assert SpreadOverlapGate().check(make_inputs()).status == GateStatus.PASS

    def test_warn_triangular_overlap(self, make_inputs):
        inputs = make_inputs(
            growth=TriangularParams(0.02, 0.04, 0.07),
            discount=TriangularParams(0.07, 0.08, 0.10),
        )
        result = SpreadOverlapGate().check(inputs)
        assert result.status == GateStatus.WARN
        assert result.threshold == 0.07

    def test_warn_fixed_overlap(self, make_inputs):
        inputs = make_inputs(
            growth=TriangularParams(0.03, 0.05, 0.12),
            discount=FixedRate(0.04),
        )
        result = SpreadOverlapGate().check(inputs)
        assert result.status == GateStatus.WARN
        assert "discount rate 0.0400" in result.message


class TestTrialCountGate:
    """Warn above the large-run threshold."""

    def test_pass_at_threshold(self, make_inputs):
        assert TrialCountGate().check(make_inputs(trial_count=200_000)).status == GateStatus.PASS

    def test_warn_above_threshold(self, make_inputs):
        result = TrialCountGate().check(make_inputs(trial_count=1_000_000))
        assert result.status == GateStatus.WARN
        assert "8.0 MB" in result.message

    def test_implied_memory_doubles(self, make_inputs):
        result = TrialCountGate().check(make_inputs(trial_count=1_000_000), implied=True)
        assert "16.0 MB" in result.message

    def test_custom_threshold(self, make_inputs):
        result = TrialCountGate(max_trials=10).check(make_inputs(trial_count=11))
        assert result.status == GateStatus.WARN


class TestMarketEnterpriseValueGate:
    """Halt implied runs when EV <= 0."""

    def test_skipped_for_forward(self, make_inputs):
        result = MarketEnterpriseValueGate().check(make_inputs(current_price=0.0))
        assert result.status == GateStatus.PASS

    def test_halt_for_implied(self, make_inputs):
        result = MarketEnterpriseValueGate().check(make_inputs(current_price=0.0), implied=True)
        assert result.status == GateStatus.HALT

    def test_pass_for_implied(self, make_inputs):
        result = MarketEnterpriseValueGate().check(make_inputs(), implied=True)
        assert result.status == GateStatus.PASS
        assert result.value == pytest.approx(2_100.0)


class TestValidateInputs:
    """Tests for the default engine."""

    def test_clean_inputs_pass(self, make_inputs):
        report = validate_inputs(make_inputs())
        assert report.overall_status == GateStatus.PASS
        assert len(report.results) == 4

    def test_warnings_logged(self, make_inputs, caplog):
        inputs = make_inputs(growth=TriangularParams(0.03, 0.05, 0.12), discount=FixedRate(0.04))
        with caplog.at_level(logging.WARNING, logger="dcf_montecarlo.validation.gates"):
            report = validate_inputs(inputs)
        assert report.overall_status == GateStatus.WARN
        assert "spread_overlap" in caplog.text

    def test_implied_halt(self, make_inputs):
        report = validate_inputs(make_inputs(current_price=0.0), implied=True)
        assert not report.passed

    def test_custom_gates(self, make_inputs):
        engine = ValidationEngine(gates=[TrialCountGate(max_trials=1)])
        report = engine.validate(make_inputs(trial_count=2))
        assert report.overall_status == GateStatus.WARN
