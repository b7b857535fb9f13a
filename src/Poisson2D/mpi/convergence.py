"""Distributed stopping criterion for the row-block iteration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from mpi4py import MPI


def stopping_criterion(error: float, iteration: int, tolerance: float, max_iter: int) -> bool:
    """Local exit test.

    ``iteration`` counts sweeps from 1 and the sweep numbered
    ``max_iter - 1`` is the last, so at most ``max(max_iter - 1, 1)`` sweeps run.
    """
    return error < tolerance or iteration >= max_iter - 1


@dataclass
class ConvergenceState:
    """Outcome of the iteration loop on one rank."""

    local_done: bool = False
    global_done: bool = False
    iterations: int = 0  # loop rounds, identical on every rank
    updates: int = 0  # local sweeps actually performed


class ConvergenceCoordinator:
    """Drives the update / reduce / exchange loop until every rank is done.

    A rank is locally done when its last update norm drops below
    ``tolerance`` or the iteration cap is reached. It then stops updating
    but keeps joining the reduction and the halo exchange, so all ranks
    leave the loop on the same round.

    Parameters
    ----------
    comm : MPI.Comm
        Communicator shared by all ranks.
    tolerance : float
        Update norm below which a rank is done.
    max_iter : int
        Iteration cap; round ``max_iter - 1`` (counting from 1) is the last.
    """

    def __init__(self, comm: MPI.Comm, tolerance: float, max_iter: int):
        self.comm = comm
        self.tolerance = tolerance
        self.max_iter = max_iter

    def local_done(self, error: float, iteration: int) -> bool:
        return stopping_criterion(error, iteration, self.tolerance, self.max_iter)

    def global_done(self, local_done: bool) -> bool:
        """Logical AND of every rank's flag."""
        return bool(self.comm.allreduce(bool(local_done), op=MPI.LAND))

    def run(
        self,
        update: Callable[[], float],
        exchange: Callable[[], object],
    ) -> ConvergenceState:
        """Iterate until global convergence.

        Parameters
        ----------
        update : callable
            Performs one local sweep and returns the local update norm.
        exchange : callable
            Performs the halo exchange.
        """
        state = ConvergenceState()
        while True:
            state.iterations += 1
            if not state.local_done:
                error = update()
                state.updates += 1
                state.local_done = self.local_done(error, state.iterations)

            state.global_done = self.global_done(state.local_done)
            exchange()

            if state.global_done:
                break

        return state
