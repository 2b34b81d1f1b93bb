import json
import numpy as np
import pytest
from tpsinterp.spline.tps import TPSInterpolator
from tpsinterp.spline.errors import ShapeMismatchError
from tpsinterp.io.export import (ModelRecord, to_record, from_record, save_model, load_model,
                                 save_arrays, load_point_set, RECORD_VERSION)

def _fitted():
    rng = np.random.default_rng(7)
    pts = rng.uniform(0, 5, (5, 2)); vals = rng.normal(size=(5, 2))
    return TPSInterpolator(2, pts, vals)

def test_float_accessors_column_major():
    tps = _fitted()
    pts = tps.float_points()
    assert pts.dtype == np.float32 and pts.shape == (10,)
    assert np.allclose(pts, tps.points.ravel())
    C = tps.float_coefficients(); A = tps.float_A(); b = tps.float_b()
    assert C.dtype == A.dtype == b.dtype == np.float32
    for i in range(tps.n_points):
        for j in range(tps.dim):
            assert C[i*tps.dim + j] == np.float32(tps.coefficients[j, i])
    for i in range(tps.dim):
        for j in range(tps.dim):
            assert A[i*tps.dim + j] == np.float32(tps.A[j, i])
    assert np.allclose(b, tps.b)

def test_save_and_load_model(tmp_path):
    tps = _fitted()
    path = tmp_path / "model.json"
    save_model(path, tps)
    data = json.loads(path.read_text())
    assert data["version"] == RECORD_VERSION and data["dim"] == 2 and data["n"] == 5
    loaded = load_model(path)
    q = np.array([[0.1, 0.2], [4.0, 4.5], [-3.0, 9.0]])
    assert np.allclose(loaded.interpolate_many(q), tps.interpolate_many(q), atol=1e-12)
    assert np.allclose(loaded.values, tps.values)

def test_loaded_model_can_be_reset(tmp_path):
    save_model(tmp_path / "m.json", _fitted())
    tps = load_model(tmp_path / "m.json")
    tps.reset([(0,0),(1,0),(0,1)], [(0,0),(1,0),(0,1)], 2)
    assert tps.n_points == 3

def test_record_rejects_bad_version_and_sizes():
    rec = to_record(_fitted())
    with pytest.raises(ShapeMismatchError):
        from_record(rec.model_copy(update={"version": 99}))
    with pytest.raises(ShapeMismatchError):
        from_record(rec.model_copy(update={"b": [0.0]}))
    with pytest.raises(ShapeMismatchError):
        from_record(rec.model_copy(update={"n": 0}))

def test_load_model_rejects_other_json(tmp_path):
    path = tmp_path / "x.json"
    path.write_text(json.dumps({"hello": "world"}))
    with pytest.raises(ShapeMismatchError):
        load_model(path)

def test_save_arrays(tmp_path):
    tps = _fitted()
    save_arrays(tmp_path / "m.npz", tps)
    with np.load(tmp_path / "m.npz") as z:
        assert int(z["dim"]) == 2
        assert z["coefficients"].dtype == np.float32
        assert np.array_equal(z["A"], tps.float_A())
        assert np.array_equal(z["points"], tps.float_points())

def test_load_point_set_yaml_and_json(tmp_path):
    y = tmp_path / "pts.yaml"
    y.write_text("dim: 2\npoints: [[0,0],[1,0],[0,1]]\nvalues: [[0,0],[1,0],[0,1]]\n")
    data = load_point_set(y)
    assert data["dim"] == 2 and len(data["points"]) == 3
    j = tmp_path / "pts.json"
    j.write_text(json.dumps({"dim": 1, "points": [[0],[1]], "values": [[2],[3]]}))
    assert load_point_set(j)["values"] == [[2],[3]]
    bad = tmp_path / "bad.yaml"
    bad.write_text("dim: 2\npoints: []\n")
    with pytest.raises(ShapeMismatchError):
        load_point_set(bad)

def test_record_model_is_pydantic():
    rec = ModelRecord(dim=1, n=1, points=[0.0], values=[1.0], coefficients=[0.0], A=[0.0], b=[1.0])
    tps = from_record(rec)
    assert np.allclose(tps.interpolate([3.0]), [1.0])
