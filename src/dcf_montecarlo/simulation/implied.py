"""
Reverse ("implied expectations") Monte Carlo simulation.

Instead of pricing the share, ask what the market price already assumes.
With the market enterprise value

    [T1] EV = price x shares + net_debt

each trial samples r (unless fixed) and then g, and records

    [T1] implied FCF    = EV (r - g)          (FCF the price supports)
    [T1] implied growth = r - FCF_0 / EV      (growth the price requires)

Both follow from inverting the Gordon growth model. No trial is discarded:
a non-positive implied FCF is a legitimate reading of the market price.

Random stream layout: trial i consumes its r uniform, then its g uniform.
"""

import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass

import numpy as np

from dcf_montecarlo.config.settings import SETTINGS
from dcf_montecarlo.data.schemas import FixedRate, ValuationInputs
from dcf_montecarlo.sampling.rng import UniformSource, create_uniform_source
from dcf_montecarlo.sampling.triangular import triangular_inverse_cdf
from dcf_montecarlo.simulation.base import ChunkedRun, ProgressUpdate
from dcf_montecarlo.statistics.binning import Density2D, Histogram, density_2d, histogram
from dcf_montecarlo.statistics.descriptive import DistributionStats, describe
from dcf_montecarlo.validation.gates import validate_inputs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImpliedResult:
    """
    Result of a completed implied simulation.

    Attributes
    ----------
    inputs : ValuationInputs
        Inputs the run was built from
    implied_fcf : np.ndarray
        Implied FCF per trial, in trial order, read-only
    implied_growth : np.ndarray
        Implied growth per trial, paired with ``implied_fcf`` by index
    fcf_stats : DistributionStats
        Statistics of the implied FCF series
    growth_stats : DistributionStats
        Statistics of the implied growth series
    market_enterprise_value : float
        EV the market price implies
    base_fcf : float
        Base FCF used in the implied growth formula
    elapsed_seconds : float
        Wall-clock time spent in the trial loop
    warnings : tuple[str, ...]
        Messages from pre-run gates that warned
    """

    inputs: ValuationInputs
    implied_fcf: np.ndarray
    implied_growth: np.ndarray
    fcf_stats: DistributionStats
    growth_stats: DistributionStats
    market_enterprise_value: float
    base_fcf: float
    elapsed_seconds: float
    warnings: tuple[str, ...] = ()

    @property
    def trial_count(self) -> int:
        """Number of recorded trials."""
        return len(self.implied_fcf)

    def pairs(self) -> Iterator[tuple[float, float]]:
        """Iterate (implied FCF, implied growth) in trial order."""
        for fcf, growth in zip(self.implied_fcf, self.implied_growth):
            yield float(fcf), float(growth)

    def density(self, bins: int | None = None) -> Density2D:
        """Joint density: x = implied FCF, y = implied growth."""
        return density_2d(self.implied_fcf, self.implied_growth, bins)

    def fcf_histogram(self, bins: int | None = None) -> Histogram:
        """Equal-width histogram of implied FCF."""
        return histogram(self.implied_fcf, bins)

    def growth_histogram(self, bins: int | None = None) -> Histogram:
        """Equal-width histogram of implied growth."""
        return histogram(self.implied_growth, bins)


class ImpliedSimulation(ChunkedRun):
    """
    Chunked reverse simulation of implied FCF and implied growth.

    Parameters
    ----------
    inputs : ValuationInputs
        Validated run inputs; the market EV must be positive
    chunk_size : int, optional
        Trials per chunk (default ``SETTINGS.simulation.implied_chunk_size``)
    cancel_event : threading.Event, optional
        External cancellation token
    """

    def __init__(
        self,
        inputs: ValuationInputs,
        chunk_size: int | None = None,
        cancel_event: threading.Event | None = None,
    ):
        if chunk_size is None:
            chunk_size = SETTINGS.simulation.implied_chunk_size
        super().__init__(inputs, chunk_size, cancel_event)

        self._source: UniformSource | None = None
        self._fcf: np.ndarray | None = None
        self._growth: np.ndarray | None = None
        self._ev = 0.0
        self._warnings: tuple[str, ...] = ()

    def _prepare(self) -> None:
        report = validate_inputs(self.inputs, implied=True)
        report.raise_if_halted()
        self._warnings = report.warning_messages

        self._ev = self.inputs.market_enterprise_value
        self._source = create_uniform_source(self.inputs.seed)
        n = self.inputs.trial_count
        self._fcf = np.empty(n, dtype=np.float64)
        self._growth = np.empty(n, dtype=np.float64)

    def _draw_rates(self, size: int) -> tuple[np.ndarray, np.ndarray]:
        """Draw (r, g) for ``size`` trials, r before g within each trial."""
        inputs = self.inputs
        if isinstance(inputs.discount, FixedRate):
            g = triangular_inverse_cdf(inputs.growth, self._source.random_block(size))
            return np.full(size, inputs.discount.value), g

        u = self._source.random_block(2 * size)
        r = triangular_inverse_cdf(inputs.discount, u[0::2])
        g = triangular_inverse_cdf(inputs.growth, u[1::2])
        return r, g

    def _process_chunk(self, start: int, size: int) -> None:
        r, g = self._draw_rates(size)
        end = start + size
        self._fcf[start:end] = self._ev * (r - g)
        self._growth[start:end] = r - self.inputs.base_fcf / self._ev

    def _discard(self) -> None:
        self._fcf = None
        self._growth = None

    def _finish(self, elapsed_seconds: float) -> ImpliedResult:
        implied_fcf, implied_growth = self._fcf, self._growth
        self._fcf = self._growth = None
        implied_fcf.flags.writeable = False
        implied_growth.flags.writeable = False

        fcf_stats = describe(np.sort(implied_fcf))
        growth_stats = describe(np.sort(implied_growth))
        logger.info(
            f"Implied run: {len(implied_fcf):,} trials, EV {self._ev:,.2f}, "
            f"median implied FCF {fcf_stats.median:,.2f}, "
            f"median implied g {growth_stats.median:.4f}"
        )

        return ImpliedResult(
            inputs=self.inputs,
            implied_fcf=implied_fcf,
            implied_growth=implied_growth,
            fcf_stats=fcf_stats,
            growth_stats=growth_stats,
            market_enterprise_value=self._ev,
            base_fcf=self.inputs.base_fcf,
            elapsed_seconds=elapsed_seconds,
            warnings=self._warnings,
        )


def run_implied_simulation(
    inputs: ValuationInputs,
    progress_callback: Callable[[ProgressUpdate], None] | None = None,
    chunk_size: int | None = None,
    cancel_event: threading.Event | None = None,
) -> ImpliedResult:
    """
    Run an implied simulation to completion.

    Parameters
    ----------
    inputs : ValuationInputs
        Validated run inputs
    progress_callback : callable, optional
        Invoked with a ``ProgressUpdate`` after each chunk
    chunk_size : int, optional
        Trials per chunk
    cancel_event : threading.Event, optional
        External cancellation token

    Returns
    -------
    ImpliedResult
        Paired implied FCF / growth samples and their statistics

    Raises
    ------
    InputValidationError
        If the market enterprise value is not positive
    SimulationAbortedError
        If cancelled before completing
    """
    simulation = ImpliedSimulation(inputs, chunk_size=chunk_size, cancel_event=cancel_event)
    return simulation.run(progress_callback)
