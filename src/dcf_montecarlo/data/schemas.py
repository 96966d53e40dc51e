"""
Input dataclass schemas for Monte Carlo DCF valuation.

Immutable dataclasses describing one valuation run. Every invariant the
simulation relies on is checked in ``__post_init__`` so that a constructed
``ValuationInputs`` is always safe to simulate.
"""

import math
from dataclasses import dataclass
from enum import Enum
from numbers import Integral, Real
from typing import Union


class InputValidationError(ValueError):
    """Raised when valuation inputs violate a precondition."""


def _require_finite(name: str, value: float) -> None:
    """Reject non-numeric, NaN and infinite values."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InputValidationError(
            f"CRITICAL: {name} must be a real number, got {type(value).__name__}"
        )
    if not math.isfinite(value):
        raise InputValidationError(f"CRITICAL: {name} must be finite, got {value}")


# =============================================================================
# Enums
# =============================================================================

class ValuationMode(Enum):
    """Which cash-flow base the DCF formula is anchored on."""

    HISTORICAL = "historical"  # Gordon growth on averaged historical FCF
    FORECAST = "forecast"  # Explicit multi-year forecast + terminal value


class FcfMethod(Enum):
    """How historical free cash flows are averaged into a base FCF."""

    SIMPLE_AVERAGE = "average"
    WEIGHTED_AVERAGE = "weighted"  # Weights 1..N, most recent year heaviest


# =============================================================================
# Distribution Parameters
# =============================================================================

@dataclass(frozen=True)
class TriangularParams:
    """
    Triangular distribution parameters (min, most likely, max).

    The degenerate case ``minimum == mode == maximum`` is legal and samples
    to that constant.

    Attributes
    ----------
    minimum : float
        Lower bound
    mode : float
        Most likely value
    maximum : float
        Upper bound

    Examples
    --------
    >>> growth = TriangularParams(minimum=0.01, mode=0.02, maximum=0.04)
    >>> round(growth.mean, 6)
    0.023333
    """

    minimum: float
    mode: float
    maximum: float

    def __post_init__(self) -> None:
        """Validate ordering min <= mode <= max."""
        _require_finite("minimum", self.minimum)
        _require_finite("mode", self.mode)
        _require_finite("maximum", self.maximum)
        if self.minimum > self.mode or self.mode > self.maximum:
            raise InputValidationError(
                f"CRITICAL: triangular parameters must satisfy min <= mode <= max, "
                f"got ({self.minimum}, {self.mode}, {self.maximum})"
            )

    @property
    def width(self) -> float:
        """Support width (max - min)."""
        return self.maximum - self.minimum

    @property
    def is_degenerate(self) -> bool:
        """True when the distribution collapses to a single value."""
        return self.maximum == self.minimum

    @property
    def mean(self) -> float:
        """[T1] Mean of the triangular distribution: (a + c + b) / 3."""
        return (self.minimum + self.mode + self.maximum) / 3.0

    def sample(self, source) -> float:
        """
        Draw one value using a single uniform from ``source``.

        Parameters
        ----------
        source : UniformSource
            Anything with a ``random()`` method returning floats in [0, 1)
        """
        from dcf_montecarlo.sampling.triangular import sample_triangular

        return sample_triangular(self, source.random())


@dataclass(frozen=True)
class FixedRate:
    """A discount rate held constant across every trial."""

    value: float

    def __post_init__(self) -> None:
        """Validate value is finite."""
        _require_finite("value", self.value)


DiscountRate = Union[FixedRate, TriangularParams]


# =============================================================================
# Historical Cash Flows
# =============================================================================

@dataclass(frozen=True)
class HistoricalCashFlow:
    """
    One year of historical cash-flow data.

    Attributes
    ----------
    operating_cash_flow : float
        Cash flow from operations
    capital_expenditure : float
        Capital expenditure, entered as a positive outflow
    """

    operating_cash_flow: float
    capital_expenditure: float

    def __post_init__(self) -> None:
        """Validate both amounts are finite."""
        _require_finite("operating_cash_flow", self.operating_cash_flow)
        _require_finite("capital_expenditure", self.capital_expenditure)

    @property
    def free_cash_flow(self) -> float:
        """FCF = operating cash flow - capital expenditure."""
        return self.operating_cash_flow - self.capital_expenditure


# =============================================================================
# Valuation Inputs
# =============================================================================

@dataclass(frozen=True)
class ValuationInputs:
    """
    Validated, immutable inputs for one valuation run.

    Historical mode needs either ``base_fcf`` or ``historical_cash_flows``
    (not both); forecast mode needs ``forecast_cash_flows``. The base FCF is
    resolved once at construction: the (weighted) historical average in
    historical mode, the final forecast year in forecast mode.

    Attributes
    ----------
    mode : ValuationMode
        Pricing formula to apply
    growth : TriangularParams
        Perpetual growth rate distribution (decimal)
    discount : FixedRate or TriangularParams
        Discount rate, fixed or sampled (decimal)
    shares_outstanding : float
        Share count, must be > 0
    current_price : float
        Observed market price per share, must be >= 0
    trial_count : int
        Number of Monte Carlo trials, must be > 0
    debt : float
        Interest-bearing debt
    cash : float
        Cash and equivalents
    seed : str, optional
        Seed string; a non-empty value makes the run reproducible
    historical_cash_flows : tuple[HistoricalCashFlow, ...]
        Up to five years of (CFO, CapEx), oldest first
    fcf_method : FcfMethod
        Averaging method for historical FCF
    base_fcf : float, optional
        Base FCF supplied directly instead of history (historical mode)
    forecast_cash_flows : tuple[float, ...]
        Explicit forecast, year 1 first (forecast mode)

    Examples
    --------
    >>> inputs = ValuationInputs(
    ...     mode=ValuationMode.HISTORICAL,
    ...     growth=TriangularParams(0.01, 0.02, 0.03),
    ...     discount=FixedRate(0.08),
    ...     shares_outstanding=1_000.0,
    ...     current_price=15.0,
    ...     trial_count=10_000,
    ...     base_fcf=1_000.0,
    ... )
    >>> inputs.net_debt
    0.0
    """

    mode: ValuationMode
    growth: TriangularParams
    discount: DiscountRate
    shares_outstanding: float
    current_price: float
    trial_count: int
    debt: float = 0.0
    cash: float = 0.0
    seed: str | None = None
    historical_cash_flows: tuple[HistoricalCashFlow, ...] = ()
    fcf_method: FcfMethod = FcfMethod.SIMPLE_AVERAGE
    base_fcf: float | None = None
    forecast_cash_flows: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        """Validate inputs and resolve the base FCF."""
        if not isinstance(self.mode, ValuationMode):
            raise InputValidationError(
                f"CRITICAL: mode must be a ValuationMode, got {self.mode!r}"
            )
        if not isinstance(self.growth, TriangularParams):
            raise InputValidationError(
                f"CRITICAL: growth must be TriangularParams, got {type(self.growth).__name__}"
            )
        if not isinstance(self.discount, (FixedRate, TriangularParams)):
            raise InputValidationError(
                f"CRITICAL: discount must be FixedRate or TriangularParams, "
                f"got {type(self.discount).__name__}"
            )

        _require_finite("shares_outstanding", self.shares_outstanding)
        _require_finite("current_price", self.current_price)
        _require_finite("debt", self.debt)
        _require_finite("cash", self.cash)

        if self.shares_outstanding <= 0:
            raise InputValidationError(
                f"CRITICAL: shares_outstanding must be > 0, got {self.shares_outstanding}"
            )
        if self.current_price < 0:
            raise InputValidationError(
                f"CRITICAL: current_price must be >= 0, got {self.current_price}"
            )
        if isinstance(self.trial_count, bool) or not isinstance(self.trial_count, Integral):
            raise InputValidationError(
                f"CRITICAL: trial_count must be an integer, got {self.trial_count!r}"
            )
        if self.trial_count <= 0:
            raise InputValidationError(
                f"CRITICAL: trial_count must be > 0, got {self.trial_count}"
            )
        if self.seed is not None and not isinstance(self.seed, str):
            raise InputValidationError(
                f"CRITICAL: seed must be a string or None, got {type(self.seed).__name__}"
            )
        if not isinstance(self.fcf_method, FcfMethod):
            raise InputValidationError(
                f"CRITICAL: fcf_method must be an FcfMethod, got {self.fcf_method!r}"
            )

        # Normalise sequences to tuples so the dataclass stays hashable
        object.__setattr__(self, "historical_cash_flows", tuple(self.historical_cash_flows))
        for i, year in enumerate(self.historical_cash_flows):
            if not isinstance(year, HistoricalCashFlow):
                raise InputValidationError(
                    f"CRITICAL: historical_cash_flows[{i}] must be HistoricalCashFlow, "
                    f"got {type(year).__name__}"
                )
        object.__setattr__(self, "forecast_cash_flows", tuple(self.forecast_cash_flows))
        for i, cf in enumerate(self.forecast_cash_flows):
            _require_finite(f"forecast_cash_flows[{i}]", cf)
        object.__setattr__(
            self, "forecast_cash_flows", tuple(float(cf) for cf in self.forecast_cash_flows)
        )

        object.__setattr__(self, "base_fcf", self._resolve_base_fcf())

    def _resolve_base_fcf(self) -> float:
        """Resolve the base FCF for the active mode."""
        if self.mode == ValuationMode.FORECAST:
            if not self.forecast_cash_flows:
                raise InputValidationError(
                    "CRITICAL: forecast mode requires at least one forecast cash flow"
                )
            if self.base_fcf is not None:
                raise InputValidationError(
                    "CRITICAL: base_fcf cannot be supplied in forecast mode; "
                    "the final forecast year is the base"
                )
            return self.forecast_cash_flows[-1]

        if self.base_fcf is not None and self.historical_cash_flows:
            raise InputValidationError(
                "CRITICAL: supply either base_fcf or historical_cash_flows, not both"
            )
        if self.base_fcf is not None:
            _require_finite("base_fcf", self.base_fcf)
            return float(self.base_fcf)
        if not self.historical_cash_flows:
            raise InputValidationError(
                "CRITICAL: historical mode requires base_fcf or historical_cash_flows"
            )

        from dcf_montecarlo.valuation.fcf import calculate_base_fcf

        return calculate_base_fcf(self.historical_cash_flows, self.fcf_method)

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @property
    def net_debt(self) -> float:
        """Net debt = debt - cash."""
        return self.debt - self.cash

    @property
    def discount_is_fixed(self) -> bool:
        """True when the discount rate is not sampled."""
        return isinstance(self.discount, FixedRate)

    @property
    def discount_mode_value(self) -> float:
        """Most likely discount rate (the fixed rate when fixed)."""
        if isinstance(self.discount, FixedRate):
            return self.discount.value
        return self.discount.mode

    @property
    def discount_bounds(self) -> tuple[float, float]:
        """(r_min, r_max); both equal the fixed rate when fixed."""
        if isinstance(self.discount, FixedRate):
            return (self.discount.value, self.discount.value)
        return (self.discount.minimum, self.discount.maximum)

    @property
    def market_enterprise_value(self) -> float:
        """EV implied by the market: price x shares + net debt."""
        return self.current_price * self.shares_outstanding + self.net_debt

    @property
    def has_seed(self) -> bool:
        """True when a non-empty seed makes the run reproducible."""
        return bool(self.seed)

    def estimated_buffer_bytes(self, implied: bool = False) -> int:
        """
        Memory needed for the sample buffer(s) of a run.

        Forward runs hold one float64 per trial; implied runs hold two
        (implied FCF and implied g).
        """
        per_trial = 16 if implied else 8
        return int(self.trial_count) * per_trial
