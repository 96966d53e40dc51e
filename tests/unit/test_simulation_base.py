"""
Tests for the chunked run driver - simulation/base.py.
"""

import pytest

from dcf_montecarlo.simulation.base import (
    ChunkedRun,
    ProgressUpdate,
    RunStatus,
    SimulationAbortedError,
)


class RecordingRun(ChunkedRun):
    """Minimal run that records the chunk boundaries it was given."""

    def _prepare(self):
        self.chunks = []
        self.discarded = False

    def _process_chunk(self, start, size):
        self.chunks.append((start, size))

    def _finish(self, elapsed_seconds):
        return len(self.chunks)

    def _discard(self):
        self.discarded = True


class TestProgressUpdate:
    """Tests for progress arithmetic."""

    def test_fraction_and_percent(self):
        update = ProgressUpdate(processed=1, total=3)
        assert update.fraction == pytest.approx(1 / 3)
        assert update.percent == 33
        assert not update.done

    def test_done(self):
        update = ProgressUpdate(processed=10, total=10)
        assert update.done
        assert update.percent == 100


class TestChunkedRun:
    """Tests for chunk scheduling and lifecycle."""

    def test_chunk_boundaries(self, make_inputs):
        run = RecordingRun(make_inputs(trial_count=10), chunk_size=4)
        assert run.run() == 3
        assert run.chunks == [(0, 4), (4, 4), (8, 2)]
        assert run.status == RunStatus.COMPLETED

    def test_chunk_larger_than_total(self, make_inputs):
        run = RecordingRun(make_inputs(trial_count=10), chunk_size=1_000)
        run.run()
        assert run.chunks == [(0, 10)]

    def test_aborted_run_discards(self, make_inputs):
        run = RecordingRun(make_inputs(trial_count=10), chunk_size=4)
        run.abort()
        with pytest.raises(SimulationAbortedError):
            run.run()
        assert run.discarded
        assert run.chunks == []

    def test_finish_error_sticks(self, make_inputs):
        class FailingRun(RecordingRun):
            def _finish(self, elapsed_seconds):
                raise ArithmeticError("boom")

        run = FailingRun(make_inputs(trial_count=3), chunk_size=2)
        with pytest.raises(ArithmeticError):
            run.run()
        with pytest.raises(ArithmeticError):
            run.result

    def test_close_at_final_update_keeps_finish_error(self, make_inputs):
        class FailingRun(RecordingRun):
            def _finish(self, elapsed_seconds):
                raise ArithmeticError("boom")

        run = FailingRun(make_inputs(trial_count=4), chunk_size=2)
        progress = run.iter_progress()
        next(progress)
        assert next(progress).done
        progress.close()
        assert run.status == RunStatus.COMPLETED
        with pytest.raises(ArithmeticError):
            run.result

    def test_hooks_required(self, make_inputs):
        run = ChunkedRun(make_inputs(), chunk_size=10)
        with pytest.raises(NotImplementedError):
            run.run()
        assert run.status == RunStatus.IDLE
