"""Tests for MLflow conversion helpers and run logging."""

import mlflow
import pytest
from Poisson2D import GlobalMetrics, GlobalParams, LocalMetrics
from Poisson2D.tracking import log_run, run_name, setup_mlflow_tracking


def test_params_to_mlflow():
    """Params become MLflow-friendly values."""
    params = GlobalParams(N=9, rows=11, use_numba=True).to_mlflow()
    assert params["N"] == 9
    assert params["rows"] == 11
    assert params["use_numba"] == 1
    assert params["domain"] == "(0.0, 1.0, 0.0, 1.0)"
    assert "hx" not in params and "hy" not in params


def test_metrics_to_mlflow_drops_none_and_strings():
    """Unset and string metrics are left out."""
    metrics = GlobalMetrics(converged=True, iterations=10, final_error=1e-7,
                            output_path="out.h5").to_mlflow()
    assert metrics == {"converged": 1, "hit_iteration_cap": 0, "iterations": 10,
                       "final_error": 1e-7}


def test_timeseries_batch_steps():
    """Timeseries become one metric per step."""
    ts = LocalMetrics(update_times=[0.1, 0.2], error_history=[1.0])
    batch = ts.to_mlflow_batch()
    assert [(m.key, m.step) for m in batch] == [
        ("update_times", 0), ("update_times", 1), ("error_history", 0),
    ]


def test_run_name():
    """Run name encodes mode, grid and parallelism."""
    config = GlobalParams(N=33, rows=65, mode="mpi", n_ranks=4, n_threads=2)
    assert run_name(config) == "mpi_N33_R65_p4_t2"


def test_local_tracking_uri(tmp_path, monkeypatch):
    """Local mode tracks into ./mlruns."""
    monkeypatch.chdir(tmp_path)
    setup_mlflow_tracking("local")
    assert mlflow.get_tracking_uri() == (tmp_path / "mlruns").as_uri()


def test_log_run(tmp_path):
    """A run logs params, metrics, timeseries and the artifact."""
    mlflow.set_tracking_uri(f"sqlite:///{tmp_path / 'mlflow.db'}")
    artifact = tmp_path / "approx_sol-1-9.h5"
    artifact.write_bytes(b"")

    config = GlobalParams(N=9, experiment_name="test-tracking")
    metrics = GlobalMetrics(converged=True, iterations=3, final_error=1e-3)
    ts = LocalMetrics(error_history=[0.5, 0.1, 1e-3])
    log_run(config, metrics, ts, artifact=str(artifact))

    runs = mlflow.search_runs(experiment_names=["test-tracking"])
    assert len(runs) == 1
    run = runs.iloc[0]
    assert run["params.N"] == "9"
    assert run["metrics.iterations"] == pytest.approx(3)
    assert run["tags.mlflow.runName"] == "sequential_N9_R9_p1_t1"

    history = mlflow.tracking.MlflowClient().get_metric_history(run["run_id"], "error_history")
    assert sorted(m.step for m in history) == [0, 1, 2]
