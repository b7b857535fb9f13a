"""Local grid block with its relaxation kernel."""

from typing import Callable, Optional, Tuple

import numpy as np

from .io import write_grid
from .kernels import NumPyKernel
from .problems import DEFAULT_DOMAIN, grid_coordinates


class LocalMesh:
    """Flat row-major block of a global ``global_rows x n`` grid.

    Wraps the buffer in place: ``get_mesh`` returns the live buffer, so halo
    exchanges written into it are seen by the next ``update``.

    Parameters
    ----------
    buffer : np.ndarray
        Flat local buffer (halo rows included). Used in place when it is
        already a flat C-contiguous float64 array,
        copied otherwise.
    n : int
        Column count.
    global_rows : int, optional
        Row count of the global grid (defaults to the local row count).
    row_offset : int
        Global row index of the first buffer row.
    domain : tuple
        (x0, x1, y0, y1) of the global grid.
    source : callable, optional
        f(x, y) of -Δu = f; zero when None.
    kernel : object, optional
        NumPyKernel or NumbaKernel (default NumPyKernel).
    """

    def __init__(
        self,
        buffer: np.ndarray,
        n: int,
        global_rows: Optional[int] = None,
        row_offset: int = 0,
        domain: Tuple[float, float, float, float] = DEFAULT_DOMAIN,
        source: Optional[Callable[[np.ndarray, np.ndarray], np.ndarray]] = None,
        kernel=None,
    ):
        if not (
            isinstance(buffer, np.ndarray)
            and buffer.ndim == 1
            and buffer.dtype == np.float64
            and buffer.flags.c_contiguous
        ):
            buffer = np.ascontiguousarray(buffer, dtype=np.float64).ravel()
        self._buffer = buffer
        if self._buffer.size % n:
            raise ValueError(f"Buffer of {self._buffer.size} values is not a multiple of n={n}")

        self.n = n
        self.rows = self._buffer.size // n
        self.global_rows = self.rows if global_rows is None else global_rows
        self.row_offset = row_offset
        self.domain = domain
        self.kernel = kernel if kernel is not None else NumPyKernel()

        x0, x1, y0, y1 = domain
        self.hx = (x1 - x0) / (n - 1)
        self.hy = (y1 - y0) / (self.global_rows - 1)

        self._u = self._buffer.reshape(self.rows, n)
        self._uold = np.empty_like(self._u)
        if source is None:
            self.f = np.zeros_like(self._u)
        else:
            X, Y = grid_coordinates(n, self.global_rows, domain, row_offset, self.rows)
            self.f = np.ascontiguousarray(source(X, Y), dtype=np.float64)
        self._error = float("inf")

    def update(self, thread_count: int = 1) -> float:
        """One Jacobi sweep in place; returns the update norm."""
        np.copyto(self._uold, self._u)
        self.kernel.step(self._uold, self._u, self.f, self.hx, self.hy, thread_count)
        diff = self._u[1:-1, 1:-1] - self._uold[1:-1, 1:-1]
        self._error = float(np.sqrt(self.hx * self.hy * np.sum(diff**2)))
        return self._error

    def get_error(self) -> float:
        return self._error

    def get_mesh(self) -> np.ndarray:
        return self._buffer

    def set_mesh(self, buffer: np.ndarray):
        buffer = np.asarray(buffer, dtype=np.float64).ravel()
        if buffer.size != self._buffer.size:
            raise ValueError(f"Expected {self._buffer.size} values, got {buffer.size}")
        if buffer is not self._buffer:
            self._buffer[:] = buffer

    def get_size(self) -> Tuple[int, int]:
        return self.rows, self.n

    def write(self, path, metadata: Optional[dict] = None):
        """Persist this block (placed at its global rows) to ``path``."""
        x0, x1, y0, _ = self.domain
        y_start = y0 + self.row_offset * self.hy
        y_stop = y0 + (self.row_offset + self.rows - 1) * self.hy
        return write_grid(
            path, self._buffer, self.n, self.rows, (x0, x1, y_start, y_stop), metadata
        )
