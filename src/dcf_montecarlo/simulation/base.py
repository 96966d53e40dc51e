"""
Chunked run driver shared by the forward and implied simulations.

A run is a caller-owned, single-use object that walks through the trials in
fixed-size chunks:

    IDLE -> RUNNING -> COMPLETED
                    -> ABORTED

``iter_progress()`` is a generator yielding a ``ProgressUpdate`` after each
chunk; the caller may do other work between chunks. Cancellation (``abort()``
or a ``threading.Event``) is only observed at chunk boundaries, so a chunk in
flight always completes. An aborted run publishes no partial result.

Trial order is fixed: chunk k holds trials [k*chunk_size, (k+1)*chunk_size)
and draws all of its uniforms before chunk k+1, so a seeded run produces the
same samples for any chunk size.
"""

import logging
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

from dcf_montecarlo.data.schemas import ValuationInputs

logger = logging.getLogger(__name__)


class RunStatus(Enum):
    """Lifecycle state of a simulation run."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class SimulationAbortedError(RuntimeError):
    """Raised when the result of a cancelled run is requested."""


@dataclass(frozen=True)
class ProgressUpdate:
    """
    Progress report emitted after each chunk.

    Attributes
    ----------
    processed : int
        Trials completed so far
    total : int
        Trials requested
    """

    processed: int
    total: int

    @property
    def fraction(self) -> float:
        """Completed share in [0, 1]."""
        return self.processed / self.total

    @property
    def percent(self) -> int:
        """Completed share as a rounded whole percent."""
        return round(self.fraction * 100)

    @property
    def done(self) -> bool:
        """True once every trial has been processed."""
        return self.processed >= self.total


class ChunkedRun:
    """
    Base class for chunked Monte Carlo runs.

    Subclasses implement ``_prepare`` (validate and allocate),
    ``_process_chunk`` (sample and record one chunk), ``_finish`` (build the
    result) and ``_discard`` (drop partial buffers after an abort).

    Parameters
    ----------
    inputs : ValuationInputs
        Validated run inputs
    chunk_size : int
        Trials per chunk (> 0)
    cancel_event : threading.Event, optional
        External cancellation token, checked between chunks
    """

    def __init__(
        self,
        inputs: ValuationInputs,
        chunk_size: int,
        cancel_event: threading.Event | None = None,
    ):
        if not isinstance(inputs, ValuationInputs):
            raise TypeError(
                f"CRITICAL: inputs must be ValuationInputs, got {type(inputs).__name__}"
            )
        if chunk_size <= 0:
            raise ValueError(f"CRITICAL: chunk_size must be > 0, got {chunk_size}")

        self.inputs = inputs
        self.chunk_size = int(chunk_size)
        self.cancel_event = cancel_event
        self._status = RunStatus.IDLE
        self._abort_requested = False
        self._processed = 0
        self._result: Any = None
        self._error: Exception | None = None

    @property
    def status(self) -> RunStatus:
        """Current lifecycle state."""
        return self._status

    @property
    def processed(self) -> int:
        """Trials completed so far."""
        return self._processed

    @property
    def result(self) -> Any:
        """
        Result of a completed run.

        Raises
        ------
        SimulationAbortedError
            If the run was aborted
        RuntimeError
            If the run has not completed
        """
        if self._status == RunStatus.ABORTED:
            raise SimulationAbortedError(
                f"Run aborted after {self._processed:,} of "
                f"{self.inputs.trial_count:,} trials; no result available"
            )
        if self._status != RunStatus.COMPLETED:
            raise RuntimeError(f"CRITICAL: run has not completed (status={self._status.value})")
        if self._error is not None:
            raise self._error
        return self._result

    def abort(self) -> None:
        """Request cancellation; honoured at the next chunk boundary."""
        self._abort_requested = True

    def _cancel_requested(self) -> bool:
        if self._abort_requested:
            return True
        return self.cancel_event is not None and self.cancel_event.is_set()

    # -------------------------------------------------------------------------
    # Subclass hooks
    # -------------------------------------------------------------------------

    def _prepare(self) -> None:
        raise NotImplementedError

    def _process_chunk(self, start: int, size: int) -> None:
        raise NotImplementedError

    def _finish(self, elapsed_seconds: float) -> Any:
        raise NotImplementedError

    def _discard(self) -> None:
        raise NotImplementedError

    # -------------------------------------------------------------------------
    # Drivers
    # -------------------------------------------------------------------------

    def _mark_aborted(self) -> None:
        self._status = RunStatus.ABORTED
        self._discard()
        logger.warning(
            f"{type(self).__name__} aborted after {self._processed:,} of "
            f"{self.inputs.trial_count:,} trials"
        )

    def iter_progress(self) -> Iterator[ProgressUpdate]:
        """
        Run the simulation chunk by chunk.

        Yields
        ------
        ProgressUpdate
            After every chunk; the last one is ``(total, total)``

        Raises
        ------
        InputValidationError
            If a pre-run gate halts (raised before any sampling)
        RuntimeError
            If the run object has already been started
        """
        if self._status != RunStatus.IDLE:
            raise RuntimeError(
                f"CRITICAL: run objects are single-use (status={self._status.value})"
            )

        total = self.inputs.trial_count
        self._prepare()
        self._status = RunStatus.RUNNING
        logger.info(
            f"{type(self).__name__} started: {total:,} trials, "
            f"chunk_size={self.chunk_size:,}, seeded={self.inputs.has_seed}"
        )

        start_time = time.perf_counter()
        try:
            while self._processed < total:
                if self._cancel_requested():
                    self._mark_aborted()
                    return
                size = min(self.chunk_size, total - self._processed)
                self._process_chunk(self._processed, size)
                self._processed += size
                logger.debug(f"Chunk done: {self._processed:,}/{total:,}")
                yield ProgressUpdate(processed=self._processed, total=total)
        except GeneratorExit:
            if self._processed < total:
                # Consumer stopped iterating before the last chunk
                self._mark_aborted()
            else:
                # Closed at the final update; every trial is in
                self._complete(start_time)
            raise

        self._complete(start_time)
        if self._error is not None:
            raise self._error

    def _complete(self, start_time: float) -> None:
        """Build the result; a failure in ``_finish`` is kept for ``result``."""
        elapsed = time.perf_counter() - start_time
        self._status = RunStatus.COMPLETED
        try:
            self._result = self._finish(elapsed)
        except Exception as e:
            self._error = e
            logger.error(f"{type(self).__name__} failed to build its result: {e}")
            return
        logger.info(f"{type(self).__name__} completed in {elapsed:.3f}s")

    def run(
        self,
        progress_callback: Callable[[ProgressUpdate], None] | None = None,
    ) -> Any:
        """
        Drive the run to completion.

        Parameters
        ----------
        progress_callback : callable, optional
            Invoked with each ``ProgressUpdate``

        Returns
        -------
        Any
            The subclass result object

        Raises
        ------
        SimulationAbortedError
            If the run was cancelled before completing
        """
        for update in self.iter_progress():
            if progress_callback is not None:
                progress_callback(update)
        return self.result
