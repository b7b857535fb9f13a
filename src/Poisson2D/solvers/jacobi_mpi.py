"""MPI-parallel Jacobi Solver (extends JacobiSolver)."""

from typing import Optional

import numpy as np
from mpi4py import MPI

from .jacobi import JacobiSolver
from .mpi_mixin import MPISolverMixin
from ..datastructures import GlobalMetrics, GlobalParams, SolverPhase
from ..mpi import (
    ConvergenceCoordinator,
    RowHaloExchanger,
    collect_final,
    compute_partition,
    distribute_initial,
)


class JacobiMPISolver(MPISolverMixin, JacobiSolver):
    """Parallel Jacobi solver with row-block decomposition.

    Scatter → {update → LAND reduce → halo exchange} until every rank is
    done → gather → persist on rank 0. Each rank may sweep its block with
    ``n_threads`` threads.

    Parameters
    ----------
    config : GlobalParams
        Run configuration (identical on every rank).
    comm : MPI.Comm, optional
        Communicator (default MPI.COMM_WORLD).
    """

    def __init__(self, config: GlobalParams, comm=None):
        # MPI setup before parent init
        self._init_mpi(comm)
        super().__init__(config)

        self.partition = compute_partition(config.N, self.size, self.rank, config.rows)
        self.halo = RowHaloExchanger(self.partition, self.comm)
        self.coordinator = ConvergenceCoordinator(self.comm, config.tolerance, config.max_iter)
        self.state = None

    def solve(self, initial_grid: Optional[np.ndarray] = None) -> GlobalMetrics:
        """Run the distributed iteration.

        ``initial_grid`` is read on rank 0 only; the default problem grid is
        used when it is None.
        """
        self._reset()
        cfg = self.config

        self._enter_phase(SolverPhase.SCATTERING)
        if self._is_root() and initial_grid is None:
            initial_grid = self.initial_grid()
        local = distribute_initial(initial_grid, self.partition, self.comm)
        self.mesh = self._make_mesh(local, row_offset=self.partition.row_offset)

        self._enter_phase(SolverPhase.ITERATING)
        self._barrier()
        t_start = self._get_time()
        self.state = self.coordinator.run(self._timed_update, self._timed_exchange)
        wall_time = self._get_time() - t_start

        self._enter_phase(SolverPhase.GATHERING)
        self.u_global = collect_final(self.mesh.get_mesh(), self.partition, self.comm)

        error = self.mesh.get_error()
        converged = bool(self.comm.allreduce(error < cfg.tolerance, op=MPI.LAND))
        final_error = self.comm.allreduce(error, op=MPI.MAX)
        # Update time averaged over ranks
        total_update = self._reduce_sum(sum(self.timeseries.update_times)) / self.size
        self._finalize(wall_time, self.state.iterations, converged, final_error, total_update)
        self.metrics.halo_bytes = int(
            self._reduce_sum(self.halo.halo_size_bytes() * len(self.timeseries.halo_times))
        )
        self._enter_phase(SolverPhase.DONE)

        if self._is_root():
            self.compute_l2_error()
            self._persist()
            self._log_summary()
        return self.metrics

    def _timed_update(self) -> float:
        t0 = self._get_time()
        error = self.mesh.update(self.n_threads)
        self.timeseries.update_times.append(self._get_time() - t0)
        self.timeseries.error_history.append(error)
        return error

    def _timed_exchange(self):
        self.timeseries.halo_times.append(self.halo.exchange(self.mesh.get_mesh()))
