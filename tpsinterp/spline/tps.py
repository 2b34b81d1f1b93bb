from __future__ import annotations
import threading
from dataclasses import dataclass
from typing import Sequence
import numpy as np
from .errors import (ShapeMismatchError, InsufficientDataError,
                     DimensionMismatchError, SingularSystemError)

# relative singular value cutoff of the pseudo-inverse
DEFAULT_RCOND = 1e-10

def kernel_matrix(X: np.ndarray, Y: np.ndarray) -> np.ndarray:
    """(m,d) x (n,d) -> (m,n) kernel values. Fit and evaluation both go through here."""
    return np.sqrt(((X[:,None,:]-Y[None,:,:])**2).sum(-1))

def kernel(p1, p2) -> float:
    """
    Euclidean distance between two points.
    This is the TPS kernel for 3-D only; 2-D would need r^2*ln(r). The same
    kernel is used whatever the declared dimension.
    """
    p1 = np.atleast_1d(np.asarray(p1, dtype=float))
    p2 = np.atleast_1d(np.asarray(p2, dtype=float))
    return float(kernel_matrix(p1[None,:], p2[None,:])[0,0])

def lifted_kernel(p1, p2, dim: int) -> np.ndarray:
    """kernel(p1,p2) * I, the (dim,dim) block coupling two points."""
    return kernel(p1, p2) * np.eye(dim)

def _rows(seq, dim: int, what: str) -> np.ndarray:
    # (n, dim) float array; extra trailing components are dropped
    out = np.empty((len(seq), dim), dtype=float)
    for i, item in enumerate(seq):
        try:
            v = np.asarray(item, dtype=float).ravel()
        except (TypeError, ValueError) as e:
            raise ShapeMismatchError(f"{what}[{i}] is not a numeric vector") from e
        if v.size < dim:
            raise ShapeMismatchError(f"{what}[{i}] has {v.size} components, expected {dim}")
        out[i] = v[:dim]
    return out

def validate(dimension, points: Sequence, values: Sequence):
    """Check inputs eagerly, before any matrix work. Returns (dim, points, values)."""
    try:
        dim = int(dimension)
    except (TypeError, ValueError) as e:
        raise ShapeMismatchError(f"dimension must be an integer, got {dimension!r}") from e
    if dim <= 0:
        raise ShapeMismatchError(f"dimension must be positive, got {dim}")
    try:
        n_pts, n_vals = len(points), len(values)
    except TypeError as e:
        raise ShapeMismatchError("points and values must be sequences of vectors") from e
    if n_pts != n_vals:
        raise ShapeMismatchError(f"{n_pts} points but {n_vals} values")
    if n_pts == 0:
        raise InsufficientDataError("at least one control point is required")
    return dim, _rows(points, dim, "points"), _rows(values, dim, "values")

def build_system(pts: np.ndarray, vals: np.ndarray):
    """
    Assemble the saddle point system L @ params = rhs.
    L = [[K, P], [P.T, 0]] with K the lifted kernel matrix (dim*n, dim*n) and
    P the lifted polynomial design (dim*n, dim*dim+dim), last dim columns bias.
    """
    n, dim = pts.shape
    I = np.eye(dim)
    K = np.kron(kernel_matrix(pts, pts), I)
    P = np.concatenate([np.kron(pts, I), np.kron(np.ones((n,1)), I)], axis=1)
    O = np.zeros((dim*dim + dim, dim*dim + dim))
    L = np.block([[K, P],
                  [P.T, O]])
    rhs = np.concatenate([vals.reshape(-1), np.zeros(dim*dim + dim)])
    return L, rhs

def solve_system(L: np.ndarray, rhs: np.ndarray, rcond: float=DEFAULT_RCOND) -> np.ndarray:
    # pseudo-inverse: collinear or duplicated points make L singular
    try:
        Linv = np.linalg.pinv(L, rcond=rcond)
    except np.linalg.LinAlgError as e:
        raise SingularSystemError(f"SVD of the {L.shape[0]}x{L.shape[1]} system failed: {e}") from e
    params = Linv @ rhs
    if not np.all(np.isfinite(params)):
        raise SingularSystemError("pseudo-inverse solution is not finite")
    return params

def readonly(a: np.ndarray) -> np.ndarray:
    a = np.ascontiguousarray(a, dtype=float)
    a.setflags(write=False)
    return a

@dataclass(frozen=True, eq=False)
class FittedModel:
    """Everything one estimation pass produces. Never mutated after creation."""
    dim: int
    points: np.ndarray        # (n, dim)
    values: np.ndarray        # (n, dim)
    coefficients: np.ndarray  # (dim, n), one column per control point
    A: np.ndarray             # (dim, dim)
    b: np.ndarray             # (dim,)

    @property
    def n_points(self) -> int:
        return self.points.shape[0]

    @staticmethod
    def estimate(dim: int, pts: np.ndarray, vals: np.ndarray, rcond: float=DEFAULT_RCOND) -> "FittedModel":
        n = pts.shape[0]
        L, rhs = build_system(pts, vals)
        params = solve_system(L, rhs, rcond)
        coeffs = params[:dim*n].reshape(n, dim).T
        # column i of A is params[dim*n + i*dim : dim*n + i*dim + dim]
        A = params[dim*n:dim*n + dim*dim].reshape(dim, dim).T
        b = params[dim*n + dim*dim:]
        return FittedModel(dim, readonly(pts), readonly(vals), readonly(coeffs), readonly(A), readonly(b))

    def evaluate(self, Q: np.ndarray) -> np.ndarray:
        """(m,dim) queries -> (m,dim) values."""
        out = Q @ self.A.T + self.b
        for p, c in zip(self.points, self.coefficients.T):
            out += kernel_matrix(Q, p[None,:]) * c
        return out

    # float32 views for renderers that should not depend on numpy matrix layout
    def as_float_points(self) -> np.ndarray:
        return self.points.astype(np.float32).ravel()

    def as_float_coefficients(self) -> np.ndarray:
        return self.coefficients.astype(np.float32).ravel(order="F")

    def as_float_A(self) -> np.ndarray:
        return self.A.astype(np.float32).ravel(order="F")

    def as_float_b(self) -> np.ndarray:
        return self.b.astype(np.float32)

class TPSInterpolator:
    """
    Thin plate spline with affine term over N-d control points.

    tps = TPSInterpolator(2, [(0,0),(1,0),(0,1)], [(0,0),(1,0),(0,1)])
    tps.interpolate((0.5, 0.5))

    interpolate() only reads the published model and may be called from many
    threads; reset() builds a new model and swaps it in.
    """
    def __init__(self, dimension: int, points: Sequence, values: Sequence, rcond: float=DEFAULT_RCOND):
        self._init_state(rcond)
        self.reset(points, values, dimension)

    def _init_state(self, rcond: float):
        self.rcond = rcond
        self._lock = threading.Lock()
        self._model: FittedModel | None = None

    @classmethod
    def from_model(cls, model: FittedModel, rcond: float=DEFAULT_RCOND) -> "TPSInterpolator":
        tps = cls.__new__(cls)
        tps._init_state(rcond)
        tps._model = model
        return tps

    def reset(self, points: Sequence, values: Sequence, dimension: int):
        """Replace the control points and re-estimate. Prior state survives a failure."""
        dim, pts, vals = validate(dimension, points, values)
        with self._lock:
            self._model = FittedModel.estimate(dim, pts, vals, self.rcond)

    @property
    def model(self) -> FittedModel:
        return self._model

    @property
    def dim(self) -> int: return self._model.dim
    @property
    def n_points(self) -> int: return self._model.n_points
    @property
    def points(self) -> np.ndarray: return self._model.points
    @property
    def values(self) -> np.ndarray: return self._model.values
    @property
    def coefficients(self) -> np.ndarray: return self._model.coefficients
    @property
    def A(self) -> np.ndarray: return self._model.A
    @property
    def b(self) -> np.ndarray: return self._model.b

    def interpolate(self, query) -> np.ndarray:
        model = self._model
        q = np.atleast_1d(np.asarray(query, dtype=float))
        if q.ndim != 1 or q.shape[0] != model.dim:
            raise DimensionMismatchError(f"query has shape {q.shape}, model dimension is {model.dim}")
        return model.evaluate(q[None,:])[0]

    def interpolate_many(self, queries) -> np.ndarray:
        model = self._model
        Q = np.asarray(queries, dtype=float)
        if Q.ndim != 2 or Q.shape[1] != model.dim:
            raise DimensionMismatchError(f"queries have shape {Q.shape}, expected (m, {model.dim})")
        return model.evaluate(Q)

    def __call__(self, query) -> np.ndarray:
        return self.interpolate(query)

    def float_points(self) -> np.ndarray: return self._model.as_float_points()
    def float_coefficients(self) -> np.ndarray: return self._model.as_float_coefficients()
    def float_A(self) -> np.ndarray: return self._model.as_float_A()
    def float_b(self) -> np.ndarray: return self._model.as_float_b()
