"""
Validation Gates - PASS/WARN/HALT checks run before a simulation.

Each gate inspects a ``ValuationInputs`` and reports whether the run may
proceed. HALT rejects the run with diagnostics; WARN lets it proceed but the
message is logged and attached to the result; PASS is silent.

Gates never mutate inputs and never sample.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from dcf_montecarlo.config.settings import SETTINGS
from dcf_montecarlo.data.schemas import InputValidationError, ValuationInputs

logger = logging.getLogger(__name__)


class GateStatus(Enum):
    """Status of a validation gate."""
    PASS = "pass"
    HALT = "halt"
    WARN = "warn"


@dataclass(frozen=True)
class GateResult:
    """
    Result of a validation gate check.

    Attributes
    ----------
    status : GateStatus
        PASS, HALT, or WARN
    gate_name : str
        Name of the gate that was checked
    message : str
        Explanation of the result
    value : Any, optional
        The value that was checked
    threshold : Any, optional
        The threshold that was applied
    """

    status: GateStatus
    gate_name: str
    message: str
    value: Any | None = None
    threshold: Any | None = None

    @property
    def passed(self) -> bool:
        """Check if gate passed (PASS or WARN)."""
        return self.status != GateStatus.HALT


@dataclass(frozen=True)
class ValidationReport:
    """
    Complete validation report from all gates.

    Attributes
    ----------
    results : tuple[GateResult, ...]
        Results from all gates
    """

    results: tuple[GateResult, ...]

    @property
    def overall_status(self) -> GateStatus:
        """Worst status across all gates."""
        if any(r.status == GateStatus.HALT for r in self.results):
            return GateStatus.HALT
        elif any(r.status == GateStatus.WARN for r in self.results):
            return GateStatus.WARN
        return GateStatus.PASS

    @property
    def passed(self) -> bool:
        """True when no gate halted."""
        return self.overall_status != GateStatus.HALT

    @property
    def halted_gates(self) -> list[GateResult]:
        """All gates that halted."""
        return [r for r in self.results if r.status == GateStatus.HALT]

    @property
    def warned_gates(self) -> list[GateResult]:
        """All gates that warned."""
        return [r for r in self.results if r.status == GateStatus.WARN]

    @property
    def warning_messages(self) -> tuple[str, ...]:
        """Messages of the gates that warned, in gate order."""
        return tuple(r.message for r in self.warned_gates)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "overall_status": self.overall_status.value,
            "passed": self.passed,
            "n_halted": len(self.halted_gates),
            "n_warned": len(self.warned_gates),
            "results": [
                {
                    "gate": r.gate_name,
                    "status": r.status.value,
                    "message": r.message,
                    "value": r.value,
                    "threshold": r.threshold,
                }
                for r in self.results
            ],
        }

    def raise_if_halted(self) -> None:
        """
        Raise when any gate halted.

        Raises
        ------
        InputValidationError
            Listing every HALT message
        """
        if self.passed:
            return
        halt_messages = [g.message for g in self.halted_gates]
        raise InputValidationError(
            "CRITICAL: Validation failed. HALTs:\n" +
            "\n".join(f"  - {m}" for m in halt_messages)
        )


# =============================================================================
# Gate Implementations
# =============================================================================

class ValidationGate:
    """
    Base class for validation gates.

    Subclasses implement check() to validate valuation inputs.
    """

    name: str = "base_gate"

    def check(self, inputs: ValuationInputs, **context: Any) -> GateResult:
        """
        Check the valuation inputs.

        Parameters
        ----------
        inputs : ValuationInputs
            Inputs about to be simulated
        **context : Any
            Additional context (e.g. ``implied=True`` for reverse runs)

        Returns
        -------
        GateResult
            Result of the check
        """
        raise NotImplementedError


class BaseFcfPositiveGate(ValidationGate):
    """
    Warn when the base free cash flow is not positive.

    A non-positive base makes every forward price negative or zero (less
    net debt), which usually means the history was entered with the wrong
    sign for capex.
    """

    name = "base_fcf_positive"

    def check(self, inputs: ValuationInputs, **context: Any) -> GateResult:
        base_fcf = inputs.base_fcf
        if base_fcf <= 0:
            return GateResult(
                status=GateStatus.WARN,
                gate_name=self.name,
                message=f"Base FCF {base_fcf:,.2f} is not positive; "
                        f"DCF prices will be non-positive before net debt",
                value=base_fcf,
                threshold=0.0,
            )

        return GateResult(
            status=GateStatus.PASS,
            gate_name=self.name,
            message=f"Base FCF {base_fcf:,.2f} is positive",
            value=base_fcf,
        )


class SpreadOverlapGate(ValidationGate):
    """
    Warn when sampled growth can reach the discount rate.

    [T1] The Gordon growth formula is undefined for r - g <= 0. When
    g_max >= r_min some trials fall in that region and are discarded, which
    biases the surviving sample.
    """

    name = "spread_overlap"

    def check(self, inputs: ValuationInputs, **context: Any) -> GateResult:
        g_max = inputs.growth.maximum
        r_min, _ = inputs.discount_bounds
        rate_label = "discount rate" if inputs.discount_is_fixed else "minimum discount rate"

        if g_max >= r_min:
            return GateResult(
                status=GateStatus.WARN,
                gate_name=self.name,
                message=f"Maximum growth {g_max:.4f} >= {rate_label} {r_min:.4f}; "
                        f"trials with r - g <= 0 will be discarded",
                value=g_max,
                threshold=r_min,
            )

        return GateResult(
            status=GateStatus.PASS,
            gate_name=self.name,
            message=f"Maximum growth {g_max:.4f} < {rate_label} {r_min:.4f}",
            value=g_max,
            threshold=r_min,
        )


class TrialCountGate(ValidationGate):
    """
    Warn on very large runs, reporting the sample buffer size.

    No hard cap is enforced; the caller decides whether to proceed.
    """

    name = "trial_count"

    def __init__(self, max_trials: int | None = None):
        """
        Parameters
        ----------
        max_trials : int, optional
            Trial counts above this warn
            (default ``SETTINGS.simulation.large_run_threshold``)
        """
        if max_trials is None:
            max_trials = SETTINGS.simulation.large_run_threshold
        self.max_trials = max_trials

    def check(self, inputs: ValuationInputs, **context: Any) -> GateResult:
        implied = bool(context.get("implied", False))
        n = inputs.trial_count
        megabytes = inputs.estimated_buffer_bytes(implied=implied) / 1_000_000

        if n > self.max_trials:
            return GateResult(
                status=GateStatus.WARN,
                gate_name=self.name,
                message=f"{n:,} trials exceeds {self.max_trials:,}; "
                        f"sample buffer needs ~{megabytes:,.1f} MB",
                value=n,
                threshold=self.max_trials,
            )

        return GateResult(
            status=GateStatus.PASS,
            gate_name=self.name,
            message=f"{n:,} trials (~{megabytes:,.1f} MB buffer)",
            value=n,
            threshold=self.max_trials,
        )


class MarketEnterpriseValueGate(ValidationGate):
    """
    Halt an implied run when the market enterprise value is not positive.

    [T1] Implied g = r - FCF_0 / EV divides by EV. Forward runs do not use
    EV and always pass.
    """

    name = "market_enterprise_value"

    def check(self, inputs: ValuationInputs, **context: Any) -> GateResult:
        if not context.get("implied", False):
            return GateResult(
                status=GateStatus.PASS,
                gate_name=self.name,
                message="Not an implied run, skipping",
            )

        ev = inputs.market_enterprise_value
        if ev <= 0:
            return GateResult(
                status=GateStatus.HALT,
                gate_name=self.name,
                message=f"Market enterprise value {ev:,.2f} must be > 0 "
                        f"(price x shares + net debt)",
                value=ev,
                threshold=0.0,
            )

        return GateResult(
            status=GateStatus.PASS,
            gate_name=self.name,
            message=f"Market enterprise value {ev:,.2f} is positive",
            value=ev,
        )


# =============================================================================
# Validation Engine
# =============================================================================

class ValidationEngine:
    """
    Runs a set of gates over valuation inputs.

    Parameters
    ----------
    gates : list[ValidationGate], optional
        Custom gates to use. If None, uses default gates.

    Examples
    --------
    >>> engine = ValidationEngine()
    >>> report = engine.validate(inputs, implied=True)
    >>> for gate in report.warned_gates:
    ...     print(f"WARN: {gate.message}")
    """

    def __init__(
        self,
        gates: list[ValidationGate] | None = None,
    ):
        if gates is None:
            gates = self._default_gates()
        self.gates = gates

    def _default_gates(self) -> list[ValidationGate]:
        """Create default set of validation gates."""
        return [
            MarketEnterpriseValueGate(),
            BaseFcfPositiveGate(),
            SpreadOverlapGate(),
            TrialCountGate(),
        ]

    def validate(self, inputs: ValuationInputs, **context: Any) -> ValidationReport:
        """
        Run all gates on ``inputs``.

        Parameters
        ----------
        inputs : ValuationInputs
            Inputs to validate
        **context : Any
            Additional context passed to each gate

        Returns
        -------
        ValidationReport
            Complete validation report
        """
        results = []
        for gate in self.gates:
            gate_result = gate.check(inputs, **context)
            if gate_result.status == GateStatus.WARN:
                logger.warning(f"[{gate_result.gate_name}] {gate_result.message}")
            elif gate_result.status == GateStatus.HALT:
                logger.error(f"[{gate_result.gate_name}] {gate_result.message}")
            results.append(gate_result)

        return ValidationReport(results=tuple(results))


# =============================================================================
# Convenience Functions
# =============================================================================

def validate_inputs(inputs: ValuationInputs, implied: bool = False) -> ValidationReport:
    """
    Run the default gates for a forward or implied run.

    Parameters
    ----------
    inputs : ValuationInputs
        Inputs to validate
    implied : bool, default False
        True for a reverse (implied expectations) run

    Returns
    -------
    ValidationReport
        Validation report; call ``raise_if_halted()`` to enforce it
    """
    return ValidationEngine().validate(inputs, implied=implied)
