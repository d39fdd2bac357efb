"""
Coupled Twin Core - Linear System Solvers
=========================================

Direct solvers shared by the electrical (MNA) and mechanical (stiffness)
domains.

Solvers:
--------
1. gaussian_elimination - Dense elimination with partial pivoting, O(n³)
2. LinearSolver         - Dense/sparse dispatch over scipy.sparse systems

Singular Systems:
-----------------
A pivot whose magnitude falls below the pivot tolerance means the system is
singular (floating circuit node, unconstrained mesh DOF, voltage-source
loop). Both paths raise SingularSystemError instead of continuing with a
non-physical solution. Callers in the physics package catch it and report
the solve as failed.

Index Tables:
-------------
Global matrices are indexed through an explicit IndexTable (id → row),
never through dictionary iteration order of the entity maps.

Example:
--------
>>> import numpy as np
>>> from coupled_twin.core import LinearSolver
>>>
>>> A = np.array([[4.0, 1.0], [1.0, 3.0]])
>>> b = np.array([1.0, 2.0])
>>> x = LinearSolver(method="dense").solve(A, b)

Author: Coupled Twin Team
Date: October 17, 2026
"""

import warnings
import numpy as np
from scipy import sparse
from scipy.sparse import linalg as sparse_linalg
from typing import Dict, Iterable, List, Optional, Union
import logging

logger = logging.getLogger(__name__)

# Pivot magnitude below which a system is treated as singular
DEFAULT_PIVOT_TOLERANCE = 1e-12

# Systems with more unknowns than this are solved sparsely in "auto" mode
DEFAULT_SPARSE_THRESHOLD = 200

MatrixLike = Union[np.ndarray, sparse.spmatrix]


class SingularSystemError(ArithmeticError):
    """Raised when a linear system has a (near) zero pivot."""

    def __init__(self, message: str, row: Optional[int] = None):
        super().__init__(message)
        self.row = row


class IndexTable:
    """
    Insertion-ordered id → index arena.

    Example:
    --------
    >>> table = IndexTable(["n1", "n2"])
    >>> table.index("n2")
    1
    >>> table.get("missing") is None
    True
    """

    def __init__(self, keys: Optional[Iterable[str]] = None):
        self._index: Dict[str, int] = {}
        self._keys: List[str] = []
        for key in keys or []:
            self.add(key)

    def add(self, key: str) -> int:
        """Register key (idempotent) and return its index."""
        if key not in self._index:
            self._index[key] = len(self._keys)
            self._keys.append(key)
        return self._index[key]

    def index(self, key: str) -> int:
        return self._index[key]

    def get(self, key: str) -> Optional[int]:
        return self._index.get(key)

    def key(self, index: int) -> str:
        return self._keys[index]

    def keys(self) -> List[str]:
        return list(self._keys)

    def __contains__(self, key: str) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self._keys)


def gaussian_elimination(A: np.ndarray,
                         b: np.ndarray,
                         pivot_tolerance: float = DEFAULT_PIVOT_TOLERANCE) -> np.ndarray:
    """
    Solve A x = b by Gaussian elimination with partial pivoting.

    Args:
        A: Square coefficient matrix (n × n)
        b: Right-hand side (n,)
        pivot_tolerance: Smallest acceptable |pivot|

    Returns:
        Solution vector x (n,)

    Raises:
        SingularSystemError: If a pivot is below pivot_tolerance
        ValueError: If shapes are inconsistent
    """
    A = np.array(A, dtype=np.float64)
    b = np.array(b, dtype=np.float64).reshape(-1)
    n = A.shape[0]

    if A.shape != (n, n) or b.shape[0] != n:
        raise ValueError(f"Incompatible system shapes: A={A.shape}, b={b.shape}")

    if n == 0:
        return np.zeros(0)

    # Augmented matrix [A | b]
    aug = np.hstack([A, b[:, None]])

    # Forward elimination
    for i in range(n):
        pivot_row = i + int(np.argmax(np.abs(aug[i:, i])))
        if abs(aug[pivot_row, i]) < pivot_tolerance:
            raise SingularSystemError(
                f"Near-zero pivot {aug[pivot_row, i]:.3e} in column {i}",
                row=i,
            )

        if pivot_row != i:
            aug[[i, pivot_row]] = aug[[pivot_row, i]]

        factors = aug[i + 1:, i] / aug[i, i]
        aug[i + 1:, i:] -= np.outer(factors, aug[i, i:])

    # Back substitution
    x = np.zeros(n)
    for i in range(n - 1, -1, -1):
        x[i] = (aug[i, n] - aug[i, i + 1:n] @ x[i + 1:]) / aug[i, i]

    return x


class LinearSolver:
    """
    Direct linear solver with dense and sparse back ends.

    Methods:
    --------
    - "dense":  gaussian_elimination on a dense copy
    - "sparse": scipy.sparse.linalg.spsolve (SuperLU)
    - "auto":   dense up to sparse_threshold unknowns, sparse beyond

    Example:
    --------
    >>> solver = LinearSolver(method="auto")
    >>> x = solver.solve(K, f)
    """

    VALID_METHODS = ("auto", "dense", "sparse")

    def __init__(self,
                 method: str = "auto",
                 pivot_tolerance: float = DEFAULT_PIVOT_TOLERANCE,
                 sparse_threshold: int = DEFAULT_SPARSE_THRESHOLD):
        """
        Initialize solver.

        Args:
            method: "auto", "dense" or "sparse"
            pivot_tolerance: Singularity threshold for the dense path
            sparse_threshold: Size switch for "auto"
        """
        if method not in self.VALID_METHODS:
            raise ValueError(f"Unknown solver method: {method}. "
                             f"Must be one of {self.VALID_METHODS}")
        self.method = method
        self.pivot_tolerance = pivot_tolerance
        self.sparse_threshold = sparse_threshold
        self.last_method: Optional[str] = None

    def solve(self, A: MatrixLike, b: np.ndarray) -> np.ndarray:
        """
        Solve A x = b.

        Args:
            A: Dense ndarray or scipy sparse matrix
            b: Right-hand side

        Returns:
            Solution vector

        Raises:
            SingularSystemError: If the system is singular
        """
        n = A.shape[0]
        method = self.method
        if method == "auto":
            method = "sparse" if n > self.sparse_threshold else "dense"
        self.last_method = method

        if method == "dense":
            dense = A.toarray() if sparse.issparse(A) else np.asarray(A, dtype=np.float64)
            return gaussian_elimination(dense, b, self.pivot_tolerance)

        return self._solve_sparse(A, b)

    def _solve_sparse(self, A: MatrixLike, b: np.ndarray) -> np.ndarray:
        """Sparse LU solve; rank warnings become SingularSystemError."""
        n = A.shape[0]
        if n == 0:
            return np.zeros(0)

        A_csc = sparse.csc_matrix(A, dtype=np.float64)
        b = np.asarray(b, dtype=np.float64).reshape(-1)

        with warnings.catch_warnings():
            warnings.simplefilter("error", sparse_linalg.MatrixRankWarning)
            try:
                x = sparse_linalg.spsolve(A_csc, b)
            except (sparse_linalg.MatrixRankWarning, RuntimeError) as e:
                raise SingularSystemError(f"Sparse factorization failed: {e}")

        x = np.atleast_1d(np.asarray(x, dtype=np.float64))
        if not np.all(np.isfinite(x)):
            raise SingularSystemError("Sparse solve produced non-finite values")

        return x
