"""Single-process Jacobi solver (sequential or thread-parallel)."""

from typing import Optional

import numpy as np

from .base import BaseSolver
from ..datastructures import GlobalMetrics, GlobalParams, SolverPhase
from ..mpi.convergence import stopping_criterion
from ..problems import validate_initial_grid


class JacobiSolver(BaseSolver):
    """Jacobi solver on one process.

    ``mode="sequential"`` sweeps with one thread; ``mode="threaded"``
    sweeps with ``n_threads`` threads. The local update norm is the only
    exit condition and the result is written directly.

    Parameters
    ----------
    config : GlobalParams
        Run configuration.
    """

    def __init__(self, config: GlobalParams):
        super().__init__(config)

    def solve(self, initial_grid: Optional[np.ndarray] = None) -> GlobalMetrics:
        """Run Jacobi iteration until converged or the cap is reached."""
        self._reset()
        cfg = self.config

        if initial_grid is None:
            initial_grid = self.initial_grid()
        grid = validate_initial_grid(initial_grid, cfg.N, cfg.rows).copy()
        self.mesh = self._make_mesh(grid)

        self._enter_phase(SolverPhase.ITERATING)
        t_start = self._get_time()

        i = 0
        while True:
            i += 1
            t0 = self._get_time()
            error = self.mesh.update(self.n_threads)
            self.timeseries.update_times.append(self._get_time() - t0)
            self.timeseries.error_history.append(error)

            if stopping_criterion(error, i, cfg.tolerance, cfg.max_iter):
                break

        wall_time = self._get_time() - t_start
        self.u_global = self.mesh.get_mesh()
        self._finalize(
            wall_time, i, error < cfg.tolerance, error, sum(self.timeseries.update_times)
        )
        self._enter_phase(SolverPhase.DONE)

        self.compute_l2_error()
        self._persist()
        self._log_summary()
        return self.metrics
