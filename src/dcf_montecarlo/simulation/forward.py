"""
Forward Monte Carlo DCF simulation.

Each trial samples a growth rate g and (unless fixed) a discount rate r from
their triangular distributions, prices the share with the active DCF model,
and keeps the price when it is defined:

    [T1] discard when r - g <= DISCARD_EPSILON (1e-4)
    [T1] discard when the price is not finite

Kept prices fill a pre-allocated float64 buffer that is truncated, sorted in
place and frozen when the run completes.

Random stream layout: trial i consumes its g uniform, then its r uniform,
before trial i+1. A seeded run is therefore reproducible for any chunk size.

See: Damodaran (2012) "Investment Valuation", Ch. 12
See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering"
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from dcf_montecarlo.config.settings import SETTINGS
from dcf_montecarlo.data.schemas import FixedRate, ValuationInputs
from dcf_montecarlo.sampling.rng import UniformSource, create_uniform_source
from dcf_montecarlo.sampling.triangular import triangular_inverse_cdf
from dcf_montecarlo.simulation.base import ChunkedRun, ProgressUpdate
from dcf_montecarlo.statistics.binning import Histogram, histogram
from dcf_montecarlo.statistics.descriptive import SimulationSummary, summarize_prices
from dcf_montecarlo.valuation.dcf import evaluate_price_array, mode_scenario_price
from dcf_montecarlo.validation.gates import validate_inputs

logger = logging.getLogger(__name__)


class NoValidTrialsError(RuntimeError):
    """
    Raised when every trial of a forward run was discarded.

    Usually means the growth distribution lies entirely at or above the
    discount rate.
    """

    def __init__(self, trial_count: int):
        self.trial_count = trial_count
        super().__init__(
            f"All {trial_count:,} trials were discarded (r - g <= 0 or non-finite "
            f"price). Check growth vs. discount rate ranges."
        )


@dataclass(frozen=True)
class ForwardResult:
    """
    Result of a completed forward simulation.

    Attributes
    ----------
    inputs : ValuationInputs
        Inputs the run was built from
    samples : np.ndarray
        Valid prices per share, ascending, read-only
    summary : SimulationSummary
        Summary statistics over ``samples``
    base_fcf : float
        Base FCF used by the pricing model
    elapsed_seconds : float
        Wall-clock time spent in the trial loop
    warnings : tuple[str, ...]
        Messages from pre-run gates that warned
    """

    inputs: ValuationInputs
    samples: np.ndarray
    summary: SimulationSummary
    base_fcf: float
    elapsed_seconds: float
    warnings: tuple[str, ...] = ()

    @property
    def valid_count(self) -> int:
        """Trials kept."""
        return self.summary.valid_count

    @property
    def discarded_count(self) -> int:
        """Trials dropped by the discard rule."""
        return self.summary.discarded_count

    def histogram(self, bins: int | None = None) -> Histogram:
        """Equal-width histogram of the valid prices."""
        return histogram(self.samples, bins)

    def current_price_bin(self, bins: int | None = None) -> int | None:
        """Histogram bin holding the market price (clamped to the ends)."""
        return self.histogram(bins).bin_index(self.inputs.current_price)

    def sensitivity(self, steps: int | None = None):
        """Scenario matrix and price lattice for the same inputs."""
        from dcf_montecarlo.sensitivity.grid import build_sensitivity

        return build_sensitivity(self.inputs, steps)


class ForwardSimulation(ChunkedRun):
    """
    Chunked forward simulation of price per share.

    Parameters
    ----------
    inputs : ValuationInputs
        Validated run inputs
    chunk_size : int, optional
        Trials per chunk (default ``SETTINGS.simulation.chunk_size``)
    cancel_event : threading.Event, optional
        External cancellation token
    discard_epsilon : float, optional
        Minimum kept spread r - g (default
        ``SETTINGS.simulation.discard_epsilon``)

    Examples
    --------
    >>> sim = ForwardSimulation(inputs)
    >>> for update in sim.iter_progress():
    ...     print(f"{update.percent}%")
    >>> result = sim.result
    """

    def __init__(
        self,
        inputs: ValuationInputs,
        chunk_size: int | None = None,
        cancel_event: threading.Event | None = None,
        discard_epsilon: float | None = None,
    ):
        if chunk_size is None:
            chunk_size = SETTINGS.simulation.chunk_size
        super().__init__(inputs, chunk_size, cancel_event)

        if discard_epsilon is None:
            discard_epsilon = SETTINGS.simulation.discard_epsilon
        if discard_epsilon < 0:
            raise ValueError(f"CRITICAL: discard_epsilon must be >= 0, got {discard_epsilon}")
        self.discard_epsilon = discard_epsilon

        self._source: UniformSource | None = None
        self._buffer: np.ndarray | None = None
        self._valid_count = 0
        self._warnings: tuple[str, ...] = ()

    def _prepare(self) -> None:
        report = validate_inputs(self.inputs, implied=False)
        report.raise_if_halted()
        self._warnings = report.warning_messages

        self._source = create_uniform_source(self.inputs.seed)
        self._buffer = np.empty(self.inputs.trial_count, dtype=np.float64)
        self._valid_count = 0

    def _draw_rates(self, size: int) -> tuple[np.ndarray, np.ndarray]:
        """Draw (g, r) for ``size`` trials, g before r within each trial."""
        inputs = self.inputs
        if isinstance(inputs.discount, FixedRate):
            g = triangular_inverse_cdf(inputs.growth, self._source.random_block(size))
            return g, np.full(size, inputs.discount.value)

        u = self._source.random_block(2 * size)
        g = triangular_inverse_cdf(inputs.growth, u[0::2])
        r = triangular_inverse_cdf(inputs.discount, u[1::2])
        return g, r

    def _process_chunk(self, start: int, size: int) -> None:
        g, r = self._draw_rates(size)
        prices = evaluate_price_array(self.inputs, g, r, min_spread=self.discard_epsilon)
        kept = prices[np.isfinite(prices)]

        end = self._valid_count + kept.size
        self._buffer[self._valid_count:end] = kept
        self._valid_count = end

    def _discard(self) -> None:
        self._buffer = None
        self._valid_count = 0

    def _finish(self, elapsed_seconds: float) -> ForwardResult:
        n = self.inputs.trial_count
        valid = self._valid_count
        if valid == 0:
            self._buffer = None
            logger.warning(f"Forward run discarded all {n:,} trials")
            raise NoValidTrialsError(n)

        if valid < n:
            samples = self._buffer[:valid].copy()
        else:
            samples = self._buffer
        self._buffer = None
        samples.sort()
        samples.flags.writeable = False

        summary = summarize_prices(
            samples,
            current_price=self.inputs.current_price,
            mode_price=mode_scenario_price(self.inputs),
            trial_count=n,
        )
        logger.info(
            f"Forward run: {valid:,}/{n:,} valid trials "
            f"({summary.discarded_count:,} discarded), mean price {summary.mean:.4f}"
        )

        return ForwardResult(
            inputs=self.inputs,
            samples=samples,
            summary=summary,
            base_fcf=self.inputs.base_fcf,
            elapsed_seconds=elapsed_seconds,
            warnings=self._warnings,
        )


def run_forward_simulation(
    inputs: ValuationInputs,
    progress_callback: Callable[[ProgressUpdate], None] | None = None,
    chunk_size: int | None = None,
    cancel_event: threading.Event | None = None,
) -> ForwardResult:
    """
    Run a forward simulation to completion.

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
    ForwardResult
        Sorted valid prices and summary statistics

    Raises
    ------
    InputValidationError
        If a pre-run gate halts
    NoValidTrialsError
        If every trial was discarded
    SimulationAbortedError
        If cancelled before completing
    """
    simulation = ForwardSimulation(inputs, chunk_size=chunk_size, cancel_event=cancel_event)
    return simulation.run(progress_callback)
