import pytest
from pydantic import ValidationError
from tpsinterp.config.settings import load_settings, Settings
from tpsinterp.spline.tps import DEFAULT_RCOND

def test_defaults_without_file(tmp_path):
    s = load_settings(None)
    assert s.solver.rcond == DEFAULT_RCOND
    assert (s.demo.width, s.demo.height, s.demo.channel) == (500, 500, 0)
    assert load_settings(tmp_path / "missing.yaml") == Settings()

def test_yaml_overrides(tmp_path):
    p = tmp_path / "tps.yaml"
    p.write_text("solver:\n  rcond: 1.0e-8\ndemo:\n  width: 64\n  colormap: viridis\n")
    s = load_settings(p)
    assert s.solver.rcond == 1e-8
    assert s.demo.width == 64 and s.demo.height == 500
    assert s.demo.colormap == "VIRIDIS"

def test_empty_file_gives_defaults(tmp_path):
    p = tmp_path / "empty.yaml"
    p.write_text("")
    assert load_settings(p) == Settings()

def test_invalid_values_rejected(tmp_path):
    p = tmp_path / "bad.yaml"
    p.write_text("demo:\n  width: -1\n")
    with pytest.raises(ValidationError):
        load_settings(p)
