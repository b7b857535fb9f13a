"""Jacobi solvers.

Single process (no communication):
- JacobiSolver: mode "sequential" (one thread) or "threaded" (n_threads)

Parallel (MPI):
- JacobiMPISolver: row-block decomposition, optional threads per rank
"""

from .jacobi import JacobiSolver
from .jacobi_mpi import JacobiMPISolver


def create_solver(config, comm=None):
    """Solver for ``config.mode``."""
    if config.mode == "mpi":
        return JacobiMPISolver(config, comm=comm)
    return JacobiSolver(config)


__all__ = [
    "JacobiSolver",
    "JacobiMPISolver",
    "create_solver",
]
