"""Output naming, grid persistence (VTK via pyvista, HDF5 via h5py) and initial grid loading."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from .problems import GridError


def output_filename(base: str, worker_count: int, grid_rows: int, ext: str = "vtk") -> str:
    """``<base>-<worker_count>-<grid_rows>.<ext>``"""
    return f"{base}-{worker_count}-{grid_rows}.{ext.lstrip('.')}"


def write_grid(
    path: Union[str, Path],
    grid: np.ndarray,
    n: int,
    rows: int,
    domain: Tuple[float, float, float, float],
    metadata: Optional[dict] = None,
) -> Path:
    """Write a flat ``rows x n`` grid; format chosen by the file extension.

    ``.vtk``/``.vti`` go through pyvista as point data ``u`` on uniform
    ImageData. ``.h5`` stores ``config`` attrs, ``fields/u`` and
    ``results`` attrs (``metadata``) with h5py.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    grid = np.asarray(grid, dtype=np.float64).ravel()
    if grid.size != rows * n:
        raise ValueError(f"Grid has {grid.size} values, expected {rows}x{n}")

    suffix = path.suffix.lower()
    if suffix in (".vtk", ".vti"):
        _write_vtk(path, grid, n, rows, domain)
    elif suffix in (".h5", ".hdf5"):
        _write_hdf5(path, grid, n, rows, domain, metadata or {})
    else:
        raise ValueError(f"Unsupported output format: {path.suffix}")
    return path


def _write_vtk(path, grid, n, rows, domain):
    import pyvista as pv

    x0, x1, y0, y1 = domain
    hx = (x1 - x0) / (n - 1) if n > 1 else 1.0
    hy = (y1 - y0) / (rows - 1) if rows > 1 else 1.0

    image = pv.ImageData(dimensions=(n, rows, 1), spacing=(hx, hy, 1.0), origin=(x0, y0, 0.0))
    # x varies fastest in VTK point order, matching the row-major buffer
    image.point_data["u"] = grid
    image.save(str(path))


def _write_hdf5(path, grid, n, rows, domain, metadata):
    import h5py

    with h5py.File(path, "w") as f:
        config = f.create_group("config")
        config.attrs["n"] = n
        config.attrs["rows"] = rows
        config.attrs["domain"] = np.asarray(domain, dtype=np.float64)

        fields = f.create_group("fields")
        fields.create_dataset("u", data=grid.reshape(rows, n))

        results = f.create_group("results")
        for key, value in metadata.items():
            if value is not None:
                results.attrs[key] = value


def read_grid(path: Union[str, Path]) -> np.ndarray:
    """Load an initial grid as a flat float64 array.

    ``.npy`` files are read with numpy; ``.h5`` files must hold the
    ``fields/u`` dataset written by ``write_grid``. Shape and values are
    checked later by ``validate_initial_grid``.
    """
    path = Path(path)
    if not path.is_file():
        raise GridError(f"Initial grid file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".npy":
        grid = np.load(path, allow_pickle=False)
    elif suffix in (".h5", ".hdf5"):
        import h5py

        with h5py.File(path, "r") as f:
            if "fields/u" not in f:
                raise GridError(f"{path} has no fields/u dataset")
            grid = f["fields/u"][()]
    else:
        raise GridError(f"Unsupported initial grid format: {path.suffix}")
    return np.asarray(grid, dtype=np.float64).ravel()
