"""
Deterministic sensitivity of price per share to (g, r).

Two views over the same DCF formula, no randomness:

- ``ScenarioMatrix``: the scenario cross-table, growth rows
  (max, mode, min) x discount columns (min, mode, max), or a single column
  when the discount rate is fixed.
- ``PriceLattice``: a dense steps x steps regular lattice spanning the growth
  and discount ranges, g descending down the rows and r ascending across the
  columns.

Both share one ``PriceScale`` (min/max over the defined matrix cells) so
intensities are comparable between the table and the lattice.

[T1] Cells with r - g <= 0 are undefined (None / NaN), never clamped.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import pandas as pd

from dcf_montecarlo.config.settings import SETTINGS
from dcf_montecarlo.data.schemas import ValuationInputs
from dcf_montecarlo.valuation.dcf import evaluate_price, evaluate_price_array

logger = logging.getLogger(__name__)


GROWTH_LABELS: tuple[str, ...] = ("max", "mode", "min")
DISCOUNT_LABELS: tuple[str, ...] = ("min", "mode", "max")
FIXED_DISCOUNT_LABELS: tuple[str, ...] = ("fixed",)


# =============================================================================
# Dataclasses
# =============================================================================


@dataclass(frozen=True)
class PriceScale:
    """
    Shared price range for intensity scaling.

    Attributes
    ----------
    minimum : float
        Lowest defined scenario price (``inf`` when none is defined)
    maximum : float
        Highest defined scenario price (``-inf`` when none is defined)
    """

    minimum: float
    maximum: float

    @property
    def is_defined(self) -> bool:
        """True when the range is finite and non-empty."""
        return (
            math.isfinite(self.minimum)
            and math.isfinite(self.maximum)
            and self.maximum > self.minimum
        )

    def normalize(self, price: float | None) -> float | None:
        """
        Position of ``price`` within the range, clamped to [0, 1].

        Returns None for an undefined price or an undefined scale (a single
        distinct price, or none at all).
        """
        if price is None or not math.isfinite(price) or not self.is_defined:
            return None
        ratio = (price - self.minimum) / (self.maximum - self.minimum)
        return min(1.0, max(0.0, ratio))

    def normalize_array(self, prices: np.ndarray) -> np.ndarray:
        """Vectorised ``normalize``; NaN where undefined."""
        prices = np.asarray(prices, dtype=np.float64)
        if not self.is_defined:
            return np.full(prices.shape, np.nan)
        ratio = (prices - self.minimum) / (self.maximum - self.minimum)
        return np.clip(ratio, 0.0, 1.0)


@dataclass(frozen=True)
class ScenarioMatrix:
    """
    Prices at the scenario (g, r) combinations.

    Attributes
    ----------
    growth_rates : tuple[float, ...]
        Row values (g_max, g_mode, g_min)
    discount_rates : tuple[float, ...]
        Column values (r_min, r_mode, r_max) or (r_fixed,)
    growth_labels : tuple[str, ...]
        Row labels
    discount_labels : tuple[str, ...]
        Column labels
    prices : tuple[tuple[float | None, ...], ...]
        ``prices[row][col]``; None where r - g <= 0
    """

    growth_rates: tuple[float, ...]
    discount_rates: tuple[float, ...]
    growth_labels: tuple[str, ...]
    discount_labels: tuple[str, ...]
    prices: tuple[tuple[float | None, ...], ...]

    @property
    def shape(self) -> tuple[int, int]:
        """(rows, columns)."""
        return (len(self.growth_rates), len(self.discount_rates))

    def price_at(self, growth_label: str, discount_label: str) -> float | None:
        """
        Price for a labelled cell, e.g. ``price_at("mode", "mode")``.

        With a fixed discount rate, ``"mode"`` (and ``"min"``/``"max"``)
        address the single fixed column.

        Raises
        ------
        KeyError
            If a label is unknown
        """
        if growth_label not in self.growth_labels:
            raise KeyError(
                f"Unknown growth label '{growth_label}'. "
                f"Available: {', '.join(self.growth_labels)}"
            )
        if self.discount_labels == FIXED_DISCOUNT_LABELS and discount_label in DISCOUNT_LABELS:
            discount_label = FIXED_DISCOUNT_LABELS[0]
        if discount_label not in self.discount_labels:
            raise KeyError(
                f"Unknown discount label '{discount_label}'. "
                f"Available: {', '.join(self.discount_labels)}"
            )
        row = self.growth_labels.index(growth_label)
        col = self.discount_labels.index(discount_label)
        return self.prices[row][col]

    def defined_prices(self) -> list[float]:
        """All defined cell prices, row-major."""
        return [p for row in self.prices for p in row if p is not None]

    def to_frame(self) -> pd.DataFrame:
        """Matrix as a DataFrame indexed by g, columns r; NaN where undefined."""
        data = [[np.nan if p is None else p for p in row] for row in self.prices]
        return pd.DataFrame(
            data,
            index=pd.Index(self.growth_rates, name="g"),
            columns=pd.Index(self.discount_rates, name="r"),
        )


@dataclass(frozen=True)
class PriceLattice:
    """
    Prices over a regular (g, r) lattice.

    Attributes
    ----------
    growth_rates : np.ndarray
        Row values, g_max down to g_min
    discount_rates : np.ndarray
        Column values, r_min up to r_max
    prices : np.ndarray
        ``prices[i, j]`` at (growth_rates[i], discount_rates[j]); NaN where
        undefined
    """

    growth_rates: np.ndarray
    discount_rates: np.ndarray
    prices: np.ndarray

    @property
    def steps(self) -> int:
        """Lattice resolution per axis."""
        return len(self.growth_rates)

    @property
    def defined_fraction(self) -> float:
        """Share of lattice cells with a defined price."""
        return float(np.isfinite(self.prices).mean())

    def cell(self, i: int, j: int) -> tuple[float, float, float | None]:
        """(g, r, price) at lattice position (i, j); price None when undefined."""
        price = float(self.prices[i, j])
        return (
            float(self.growth_rates[i]),
            float(self.discount_rates[j]),
            price if math.isfinite(price) else None,
        )

    def to_frame(self) -> pd.DataFrame:
        """Lattice as a DataFrame indexed by g (descending), columns r (ascending)."""
        return pd.DataFrame(
            self.prices,
            index=pd.Index(self.growth_rates, name="g"),
            columns=pd.Index(self.discount_rates, name="r"),
        )


@dataclass(frozen=True)
class SensitivityAnalysis:
    """
    Scenario matrix, dense lattice and their shared scale.

    Attributes
    ----------
    matrix : ScenarioMatrix
        Scenario cross-table
    lattice : PriceLattice
        Dense lattice
    scale : PriceScale
        Range derived from the matrix, applied to both
    """

    matrix: ScenarioMatrix
    lattice: PriceLattice
    scale: PriceScale

    def lattice_intensity(self) -> np.ndarray:
        """Lattice prices normalised by the shared scale."""
        return self.scale.normalize_array(self.lattice.prices)


# =============================================================================
# Builders
# =============================================================================


def _axis(start: float, stop: float, steps: int) -> np.ndarray:
    """start + (stop - start) * k / (steps - 1), k = 0..steps-1; one step is [start]."""
    denom = (steps - 1) or 1
    return start + (stop - start) * (np.arange(steps) / denom)


def build_scenario_matrix(inputs: ValuationInputs) -> ScenarioMatrix:
    """
    Evaluate the price at each scenario (g, r) combination.

    Parameters
    ----------
    inputs : ValuationInputs
        Valuation inputs

    Returns
    -------
    ScenarioMatrix
        3 x 3 matrix, or 3 x 1 with a fixed discount rate
    """
    growth = inputs.growth
    growth_rates = (growth.maximum, growth.mode, growth.minimum)

    if inputs.discount_is_fixed:
        discount_rates: tuple[float, ...] = (inputs.discount.value,)
        discount_labels = FIXED_DISCOUNT_LABELS
    else:
        d = inputs.discount
        discount_rates = (d.minimum, d.mode, d.maximum)
        discount_labels = DISCOUNT_LABELS

    prices = tuple(
        tuple(evaluate_price(inputs, g, r) for r in discount_rates)
        for g in growth_rates
    )
    return ScenarioMatrix(
        growth_rates=growth_rates,
        discount_rates=discount_rates,
        growth_labels=GROWTH_LABELS,
        discount_labels=discount_labels,
        prices=prices,
    )


def build_price_lattice(inputs: ValuationInputs, steps: int | None = None) -> PriceLattice:
    """
    Evaluate the price over a steps x steps (g, r) lattice.

    Parameters
    ----------
    inputs : ValuationInputs
        Valuation inputs
    steps : int, optional
        Points per axis (default ``SETTINGS.sensitivity.lattice_steps``)

    Returns
    -------
    PriceLattice
        Lattice coordinates and prices
    """
    steps = SETTINGS.sensitivity.lattice_steps if steps is None else steps
    if steps <= 0:
        raise ValueError(f"CRITICAL: steps must be > 0, got {steps}")

    r_min, r_max = inputs.discount_bounds
    growth_rates = _axis(inputs.growth.maximum, inputs.growth.minimum, steps)
    discount_rates = _axis(r_min, r_max, steps)

    g_grid, r_grid = np.meshgrid(growth_rates, discount_rates, indexing="ij")
    prices = evaluate_price_array(inputs, g_grid, r_grid)
    return PriceLattice(
        growth_rates=growth_rates,
        discount_rates=discount_rates,
        prices=prices,
    )


def build_sensitivity(inputs: ValuationInputs, steps: int | None = None) -> SensitivityAnalysis:
    """
    Build the scenario matrix and lattice with a shared price scale.

    Parameters
    ----------
    inputs : ValuationInputs
        Valuation inputs
    steps : int, optional
        Lattice points per axis (default ``SETTINGS.sensitivity.lattice_steps``)

    Returns
    -------
    SensitivityAnalysis
        Matrix, lattice and scale

    Examples
    --------
    >>> analysis = build_sensitivity(inputs)
    >>> analysis.matrix.price_at("mode", "mode") == mode_scenario_price(inputs)
    True
    """
    matrix = build_scenario_matrix(inputs)
    lattice = build_price_lattice(inputs, steps)

    defined = matrix.defined_prices()
    if defined:
        scale = PriceScale(minimum=min(defined), maximum=max(defined))
    else:
        scale = PriceScale(minimum=math.inf, maximum=-math.inf)
        logger.warning("No scenario cell has r - g > 0; price scale is undefined")

    logger.debug(
        f"Sensitivity: {len(defined)}/{matrix.shape[0] * matrix.shape[1]} scenario cells "
        f"defined, lattice {lattice.steps}x{lattice.steps} "
        f"({lattice.defined_fraction:.1%} defined)"
    )
    return SensitivityAnalysis(matrix=matrix, lattice=lattice, scale=scale)
