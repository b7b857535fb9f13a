"""Tests for the mpiexec worker entry point on fake ranks."""

import json
import logging

import numpy as np
import pytest
from Poisson2D import GridError
from Poisson2D.helpers.runner_helper import main


def _argv(tmp_path, **kwargs):
    config = dict(N=9, n_ranks=3, mode="mpi", max_iter=5, output_dir=str(tmp_path),
                  output_ext="h5", **kwargs)
    return ["runner_helper", json.dumps(config)]


def _main(comm, argv):
    return main(argv, comm=comm)


def test_reports_result_path(ranks, tmp_path, capsys):
    """Rank 0 prints the path of the written result."""
    ranks(3, _main, _argv(tmp_path))
    out = capsys.readouterr().out
    assert out.count("RESULT:") == 1
    assert f"RESULT:{tmp_path / 'approx_sol-3-9.h5'}" in out


def test_failed_rank_aborts_job(ranks, tmp_path, caplog):
    """A malformed grid file aborts the job with code 1 and no rank hangs."""
    path = tmp_path / "bad.npy"
    np.save(path, np.zeros(7))
    caplog.set_level(logging.INFO)

    with pytest.raises(RuntimeError, match=r"Abort\(1\) on rank 0"):
        ranks(3, _main, _argv(tmp_path, initial_grid=str(path)), timeout=10)

    failures = [r for r in caplog.records if r.exc_info and isinstance(r.exc_info[1], GridError)]
    assert failures and failures[0].getMessage() == "Rank 0 failed, aborting run"
    assert not (tmp_path / "approx_sol-3-9.h5").exists()
