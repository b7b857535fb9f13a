"""Base class for solvers."""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import numpy as np

from ..datastructures import GlobalMetrics, GlobalParams, LocalMetrics, SolverPhase
from ..io import output_filename, read_grid
from ..kernels import create_kernel
from ..mesh import LocalMesh
from ..problems import compute_l2_error, create_initial_grid, get_problem

log = logging.getLogger(__name__)

# Allowed phase transitions; sequential runs skip scattering and gathering
_TRANSITIONS = {
    None: {SolverPhase.SCATTERING, SolverPhase.ITERATING},
    SolverPhase.SCATTERING: {SolverPhase.ITERATING},
    SolverPhase.ITERATING: {SolverPhase.GATHERING, SolverPhase.DONE},
    SolverPhase.GATHERING: {SolverPhase.DONE},
    SolverPhase.DONE: set(),
}


class BaseSolver(ABC):
    """Abstract base for all solvers.

    Holds configuration, metrics and timeseries, the local mesh and the
    phase of the run, and persists the final grid.
    """

    def __init__(self, config: GlobalParams):
        self.config = config
        self.problem = get_problem(config.problem)
        self.n_threads = 1 if config.mode == "sequential" else config.n_threads
        self.kernel = create_kernel(config.use_numba, self.n_threads)

        # Metrics containers (match datastructures.py naming)
        self.metrics = GlobalMetrics()
        self.timeseries = LocalMetrics()

        self.phase: Optional[SolverPhase] = None
        self.mesh: Optional[LocalMesh] = None
        self.u_global: Optional[np.ndarray] = None

    @abstractmethod
    def solve(self, initial_grid: Optional[np.ndarray] = None) -> GlobalMetrics:
        """Execute the solver. Returns results."""
        pass

    def warmup(self, warmup_size: int = 10):
        """Warmup kernel (trigger Numba JIT if used)."""
        self.kernel.warmup(warmup_size=warmup_size)

    def initial_grid(self) -> np.ndarray:
        """Initial grid from ``config.initial_grid`` when set, else the problem default."""
        if self.config.initial_grid:
            return read_grid(self.config.initial_grid)
        return create_initial_grid(self.config.N, self.config.rows, self.problem.boundary)

    def output_file(self) -> Path:
        """``<output_dir>/<base>-<worker_count>-<rows>.<ext>``"""
        cfg = self.config
        name = output_filename(cfg.output_base, self._worker_count(), cfg.rows, cfg.output_ext)
        return Path(cfg.output_dir) / name

    def compute_l2_error(self) -> Optional[float]:
        """L2 error of the gathered grid against the exact solution (root only)."""
        if self.u_global is None or self.problem.exact is None:
            return None
        cfg = self.config
        l2_error = compute_l2_error(self.u_global, cfg.N, cfg.rows, self.problem.exact, cfg.domain)
        self.metrics.l2_error = l2_error
        return l2_error

    # ------------------------------------------------------------------
    # Hooks (overridden by the MPI mixin)
    # ------------------------------------------------------------------

    def _get_time(self) -> float:
        """Get current time. Override for MPI timing."""
        return time.perf_counter()

    def _reduce_sum(self, local_sum: float) -> float:
        """Reduce sum across ranks. Override for MPI."""
        return local_sum

    def _is_root(self) -> bool:
        """True if this rank should log and persist. Override for MPI."""
        return True

    def _worker_count(self) -> int:
        return 1

    def _barrier(self):
        """Synchronize all ranks before timing. No-op for sequential."""
        pass

    # ------------------------------------------------------------------

    def _enter_phase(self, phase: SolverPhase):
        if phase not in _TRANSITIONS[self.phase]:
            raise RuntimeError(f"Invalid phase transition {self.phase} -> {phase}")
        self.phase = phase

    def _reset(self):
        """Reset phase, metrics and timeseries for a new solve."""
        self.phase = None
        self.metrics = GlobalMetrics()
        self.timeseries.clear()
        self.u_global = None

    def _make_mesh(self, buffer: np.ndarray, row_offset: int = 0) -> LocalMesh:
        cfg = self.config
        return LocalMesh(
            buffer,
            cfg.N,
            global_rows=cfg.rows,
            row_offset=row_offset,
            domain=cfg.domain,
            source=self.problem.source,
            kernel=self.kernel,
        )

    def _finalize(self, wall_time: float, iterations: int, converged: bool,
                  final_error: float, total_update_time: float):
        """Fill metrics after solve."""
        self.metrics.wall_time = wall_time
        self.metrics.iterations = iterations
        self.metrics.converged = converged
        self.metrics.hit_iteration_cap = not converged
        self.metrics.final_error = final_error
        self.metrics.total_update_time = total_update_time
        self.metrics.mean_update_time = total_update_time / iterations if iterations else 0.0
        if self.timeseries.halo_times:
            self.metrics.total_halo_time = sum(self.timeseries.halo_times)

    def _persist(self) -> Path:
        """Write the gathered grid with run metadata (root only)."""
        path = self.output_file()
        self.metrics.output_path = str(path)
        metadata = {**asdict(self.metrics), "worker_count": self._worker_count(),
                    "mode": self.config.mode, "n_threads": self.n_threads}
        cfg = self.config
        final_mesh = LocalMesh(self.u_global, cfg.N, global_rows=cfg.rows, domain=cfg.domain,
                               kernel=self.kernel)
        return final_mesh.write(path, metadata)

    def _log_summary(self):
        """Summary lines of the run (root only)."""
        m = self.metrics
        log.info(
            "Iter: %d - time: %.3f ms - Mean time each update: %.3f ms",
            m.iterations, m.total_update_time * 1e3, m.mean_update_time * 1e3,
        )
        log.info("Wall time: %.3f s, final update norm: %.3e", m.wall_time, m.final_error)
        if m.hit_iteration_cap:
            log.warning(
                "Iteration cap of %d reached before tolerance %.1e",
                self.config.max_iter, self.config.tolerance,
            )
        if m.halo_bytes:
            log.info("Halo traffic: %.3f MB over %d exchanges", m.halo_bytes / 1024**2, m.iterations)
        if m.output_path:
            log.info("Solution written to %s", m.output_path)

    def close(self):
        """Release kernel resources (thread pool)."""
        self.kernel.close()
