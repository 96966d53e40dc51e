"""
Equal-width binning for simulated samples.

Provides the numeric payload behind the price histogram and the implied
g vs. implied FCF density. Rendering is left to the caller.
"""

import math
from dataclasses import dataclass

import numpy as np

from dcf_montecarlo.config.settings import SETTINGS


def _check_bins(bins: int) -> None:
    if bins <= 0:
        raise ValueError(f"CRITICAL: bins must be > 0, got {bins}")


def _bin_indices(values: np.ndarray, lo: float, width: float, bins: int) -> np.ndarray:
    """Equal-width bin index per value, clamped to [0, bins - 1]."""
    idx = np.floor((values - lo) / width).astype(np.int64)
    return np.clip(idx, 0, bins - 1)


@dataclass(frozen=True)
class Histogram:
    """
    One-dimensional equal-width histogram.

    Attributes
    ----------
    counts : np.ndarray
        Samples per bin, shape (bins,)
    edges : np.ndarray
        Bin edges, shape (bins + 1,)
    """

    counts: np.ndarray
    edges: np.ndarray

    @property
    def bins(self) -> int:
        """Number of bins."""
        return len(self.counts)

    @property
    def centers(self) -> np.ndarray:
        """Bin midpoints."""
        return (self.edges[:-1] + self.edges[1:]) / 2.0

    @property
    def range(self) -> float:
        """Width of the binned interval."""
        return float(self.edges[-1] - self.edges[0])

    def bin_index(self, value: float | None) -> int | None:
        """
        Bin a reference value (e.g. the market price) falls in.

        Values outside the range are clamped to the first or last bin.
        Returns None for a missing or non-finite value, or a zero range.
        """
        if value is None or not math.isfinite(value) or self.range <= 0:
            return None
        width = self.range / self.bins
        idx = math.floor((value - self.edges[0]) / width)
        return min(max(idx, 0), self.bins - 1)


def histogram(values: np.ndarray, bins: int | None = None) -> Histogram:
    """
    Bin samples into ``bins`` equal-width bins over [min, max].

    The maximum lands in the last bin. With zero range every sample lands
    in the first bin.

    Parameters
    ----------
    values : np.ndarray
        Samples (need not be sorted)
    bins : int, optional
        Number of bins (default ``SETTINGS.statistics.histogram_bins``)

    Returns
    -------
    Histogram
        Counts and edges
    """
    bins = SETTINGS.statistics.histogram_bins if bins is None else bins
    _check_bins(bins)
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return Histogram(counts=np.zeros(bins, dtype=np.int64), edges=np.zeros(bins + 1))

    lo = float(values.min())
    hi = float(values.max())
    span = hi - lo
    edges = lo + span * np.arange(bins + 1) / bins

    if span <= 0:
        counts = np.zeros(bins, dtype=np.int64)
        counts[0] = values.size
        return Histogram(counts=counts, edges=edges)

    idx = _bin_indices(values, lo, span / bins, bins)
    counts = np.bincount(idx, minlength=bins).astype(np.int64)
    return Histogram(counts=counts, edges=edges)


@dataclass(frozen=True)
class Density2D:
    """
    Two-dimensional count grid over paired samples.

    Attributes
    ----------
    counts : np.ndarray
        Counts indexed ``[y_bin, x_bin]``, y ascending from row 0
    x_edges : np.ndarray
        Bin edges along x, shape (bins + 1,)
    y_edges : np.ndarray
        Bin edges along y, shape (bins + 1,)
    """

    counts: np.ndarray
    x_edges: np.ndarray
    y_edges: np.ndarray

    @property
    def max_count(self) -> int:
        """Largest cell count."""
        return int(self.counts.max()) if self.counts.size else 0

    @property
    def total(self) -> int:
        """Total samples binned."""
        return int(self.counts.sum())

    def intensity(self) -> np.ndarray:
        """Counts scaled to [0, 1] by the largest cell."""
        peak = self.max_count
        if peak == 0:
            return np.zeros(self.counts.shape)
        return self.counts / peak


def density_2d(x: np.ndarray, y: np.ndarray, bins: int | None = None) -> Density2D:
    """
    Bin index-paired samples into a ``bins`` x ``bins`` grid.

    A zero range on either axis is treated as width 1, so all samples
    share the first bin on that axis.

    Parameters
    ----------
    x : np.ndarray
        Horizontal samples (e.g. implied FCF)
    y : np.ndarray
        Vertical samples (e.g. implied g), paired with ``x`` by index
    bins : int, optional
        Bins per axis (default ``SETTINGS.statistics.density_bins``)

    Returns
    -------
    Density2D
        Count grid and edges
    """
    bins = SETTINGS.statistics.density_bins if bins is None else bins
    _check_bins(bins)
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if x.shape != y.shape:
        raise ValueError(f"CRITICAL: x and y must be paired, got shapes {x.shape} and {y.shape}")

    counts = np.zeros((bins, bins), dtype=np.int64)
    if x.size == 0:
        return Density2D(counts=counts, x_edges=np.zeros(bins + 1), y_edges=np.zeros(bins + 1))

    x_lo, y_lo = float(x.min()), float(y.min())
    x_span = float(x.max()) - x_lo or 1.0
    y_span = float(y.max()) - y_lo or 1.0

    col = _bin_indices(x, x_lo, x_span / bins, bins)
    row = _bin_indices(y, y_lo, y_span / bins, bins)
    np.add.at(counts, (row, col), 1)

    steps = np.arange(bins + 1) / bins
    return Density2D(
        counts=counts,
        x_edges=x_lo + x_span * steps,
        y_edges=y_lo + y_span * steps,
    )
