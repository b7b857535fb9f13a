"""
Scaling Experiment Visualization
================================
Strong scaling of the row-block Jacobi solver.

Reads every HDF5 result in ``output_dir`` (write them with
``python run_solver.py -m N=257 n_ranks=1,2,4,8 output_ext=h5``) and plots
speedup against worker count, one line per grid size.
"""

from pathlib import Path

import hydra
import matplotlib.pyplot as plt
from omegaconf import DictConfig

from Poisson2D import get_project_root, results_dataframe
from Poisson2D.plotting import plot_strong_scaling, scaling_table


@hydra.main(config_path="../hydra-conf", config_name="config", version_base=None)
def main(cfg: DictConfig):
    """Main plotting function."""
    repo_root = get_project_root()
    fig_dir = repo_root / "figures" / "scaling"
    fig_dir.mkdir(parents=True, exist_ok=True)

    result_dir = Path(cfg.output_dir)
    if not result_dir.is_absolute():
        result_dir = repo_root / result_dir
    paths = sorted(result_dir.glob(f"{cfg.output_base}-*.h5"))
    if not paths:
        print(f"No HDF5 results in {result_dir}. Run experiments first:")
        print("  python run_solver.py -m N=257 n_ranks=1,2,4,8 output_ext=h5")
        return

    df = results_dataframe(paths)
    print(f"Loaded {len(df)} runs")
    print(scaling_table(df).to_string(index=False))

    fig, ax = plt.subplots(figsize=(10, 6))
    plot_strong_scaling(df, ax=ax)
    plt.tight_layout()
    fig.savefig(fig_dir / "strong_scaling.pdf", bbox_inches="tight")
    print(f"Saved: {fig_dir / 'strong_scaling.pdf'}")
    plt.close()


if __name__ == "__main__":
    main()
