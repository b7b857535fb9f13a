"""Tests for the distributed convergence coordinator."""

import pytest
from Poisson2D import ConvergenceCoordinator
from Poisson2D.mpi import stopping_criterion

from fakempi import FakeWorld


def _run_scripted(comm, done_at, tolerance=0.5, max_iter=100):
    """Rank r reports error 0 from its (done_at[r]+1)-th update on."""
    rank = comm.Get_rank()
    calls = {"update": 0, "exchange": 0}
    flags = []

    def update():
        calls["update"] += 1
        return 0.0 if calls["update"] > done_at[rank] else 1.0

    coordinator = ConvergenceCoordinator(comm, tolerance, max_iter)
    original = coordinator.global_done

    def recording_global_done(local_done):
        result = original(local_done)
        flags.append((local_done, result))
        return result

    coordinator.global_done = recording_global_done

    def exchange():
        calls["exchange"] += 1

    state = coordinator.run(update, exchange)
    return state, calls, flags


def test_all_ranks_exit_on_same_round(ranks):
    """All ranks leave the loop in the same round."""
    results = ranks(3, _run_scripted, [0, 1, 2])
    iterations = {state.iterations for state, _, _ in results}
    assert iterations == {3}


def test_done_rank_stops_updating_but_keeps_communicating(ranks):
    """A finished rank stops sweeping but keeps reducing and exchanging."""
    results = ranks(3, _run_scripted, [0, 1, 2])
    assert [state.updates for state, _, _ in results] == [1, 2, 3]
    assert [calls["exchange"] for _, calls, _ in results] == [3, 3, 3]
    assert [calls["update"] for _, calls, _ in results] == [1, 2, 3]


def test_global_done_in_round_all_locals_are_done(ranks):
    """Global flag turns true in the round every local flag is true."""
    results = ranks(3, _run_scripted, [0, 1, 2])
    for _, _, flags in results:
        # Rounds 0 and 1: some rank still running
        assert [g for _, g in flags] == [False, False, True]
    # In the final round every local flag was true
    assert all(flags[-1][0] for _, _, flags in results)


def test_no_update_after_global_done(ranks):
    """No sweep runs after global convergence."""
    results = ranks(2, _run_scripted, [4, 4])
    for state, calls, _ in results:
        assert state.global_done
        assert calls["update"] == state.updates == state.iterations == 5


def test_iteration_cap_stops_all_ranks(ranks):
    """The sweep numbered max_iter - 1, counting from 1, is the last one."""
    results = ranks(3, _run_scripted, [1000, 1000, 1000], max_iter=4)
    for state, calls, _ in results:
        assert state.iterations == 3
        assert calls["update"] == 3
        assert state.local_done


def test_single_rank_loop():
    """One rank loops until its own error is small."""
    state, calls, _ = _run_scripted(FakeWorld(1).comm(0), [2])
    assert state.iterations == 3
    assert calls == {"update": 3, "exchange": 3}


@pytest.mark.parametrize("error,iteration,expected", [
    (0.1, 1, True),
    (1.0, 1, False),
    (1.0, 9, True),
    (1.0, 8, False),
])
def test_stopping_criterion(error, iteration, expected):
    """Done below tolerance or on sweep max_iter - 1."""
    assert stopping_criterion(error, iteration, tolerance=0.5, max_iter=10) is expected


def test_single_sweep_cap_terminates():
    """max_iter=1 still stops after the first sweep."""
    assert stopping_criterion(1.0, 1, tolerance=0.5, max_iter=1)
    state, calls, _ = _run_scripted(FakeWorld(1).comm(0), [1000], max_iter=1)
    assert state.iterations == 1
    assert calls["update"] == 1
