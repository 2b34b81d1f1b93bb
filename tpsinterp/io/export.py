from __future__ import annotations
import json, yaml
import numpy as np
from pathlib import Path
from typing import List, Any, Dict
from pydantic import BaseModel, ValidationError
from ..spline.tps import TPSInterpolator, FittedModel, DEFAULT_RCOND, readonly
from ..spline.errors import ShapeMismatchError

RECORD_VERSION = 1

class ModelRecord(BaseModel):
    """
    Portable form of a fitted model. Matrices are flattened column-major,
    the same layout as the float32 export accessors.
    """
    version: int = RECORD_VERSION
    dim: int
    n: int
    points: List[float]
    values: List[float]
    coefficients: List[float]
    A: List[float]
    b: List[float]

def to_record(tps: TPSInterpolator) -> ModelRecord:
    m = tps.model
    return ModelRecord(dim=m.dim, n=m.n_points,
                       points=m.points.ravel().tolist(),
                       values=m.values.ravel().tolist(),
                       coefficients=m.coefficients.ravel(order="F").tolist(),
                       A=m.A.ravel(order="F").tolist(),
                       b=m.b.tolist())

def from_record(rec: ModelRecord, rcond: float=DEFAULT_RCOND) -> TPSInterpolator:
    """Rebuild an interpolator from a record without solving again."""
    if rec.version != RECORD_VERSION:
        raise ShapeMismatchError(f"unsupported model record version {rec.version}")
    d, n = rec.dim, rec.n
    if d <= 0 or n <= 0:
        raise ShapeMismatchError(f"bad record header dim={d} n={n}")
    expected = {"points": n*d, "values": n*d, "coefficients": n*d, "A": d*d, "b": d}
    for name, size in expected.items():
        got = len(getattr(rec, name))
        if got != size:
            raise ShapeMismatchError(f"record field {name!r} has {got} entries, expected {size}")
    model = FittedModel(dim=d,
                        points=readonly(np.reshape(rec.points, (n, d))),
                        values=readonly(np.reshape(rec.values, (n, d))),
                        coefficients=readonly(np.reshape(rec.coefficients, (d, n), order="F")),
                        A=readonly(np.reshape(rec.A, (d, d), order="F")),
                        b=readonly(np.asarray(rec.b, dtype=float)))
    return TPSInterpolator.from_model(model, rcond=rcond)

def save_model(path: str|Path, tps: TPSInterpolator):
    Path(path).write_text(to_record(tps).model_dump_json(indent=2))

def load_model(path: str|Path, rcond: float=DEFAULT_RCOND) -> TPSInterpolator:
    try:
        rec = ModelRecord.model_validate_json(Path(path).read_text())
    except ValidationError as e:
        raise ShapeMismatchError(f"{path}: not a model record ({e.error_count()} errors)") from e
    return from_record(rec, rcond=rcond)

def save_arrays(path: str|Path, tps: TPSInterpolator):
    """float32 arrays for an external renderer, one .npz entry each."""
    np.savez(path, dim=np.int32(tps.dim),
             points=tps.float_points(), coefficients=tps.float_coefficients(),
             A=tps.float_A(), b=tps.float_b())

def load_point_set(path: str|Path) -> Dict[str,Any]:
    """
    Read control points from YAML or JSON:
      dim: 2
      points: [[0,0],[1,0],[0,1]]
      values: [[0,0],[1,0],[0,1]]
    """
    path = Path(path)
    text = path.read_text()
    try:
        data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ShapeMismatchError(f"{path}: cannot parse point set: {e}") from e
    if not isinstance(data, dict) or not {"dim","points","values"} <= set(data):
        raise ShapeMismatchError(f"{path}: expected a mapping with dim, points and values")
    return data
