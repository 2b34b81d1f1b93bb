from __future__ import annotations
import yaml
from pathlib import Path
from pydantic import BaseModel, Field, field_validator
from ..spline.tps import DEFAULT_RCOND

class SolverSettings(BaseModel):
    rcond: float = Field(default=DEFAULT_RCOND, gt=0.0, lt=1.0)

class DemoSettings(BaseModel):
    width: int = Field(default=500, gt=0)
    height: int = Field(default=500, gt=0)
    channel: int = Field(default=0, ge=0)
    colormap: str = "JET"

    @field_validator("colormap")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()

class Settings(BaseModel):
    solver: SolverSettings = SolverSettings()
    demo: DemoSettings = DemoSettings()

def load_settings(path: str|Path|None=None) -> Settings:
    """Read YAML settings; a missing path (or file) gives the defaults."""
    if path is None or not Path(path).exists():
        return Settings()
    with open(path, "r") as f: cfg = yaml.safe_load(f) or {}
    return Settings.model_validate(cfg)
