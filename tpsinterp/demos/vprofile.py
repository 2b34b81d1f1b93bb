from __future__ import annotations
import numpy as np, cv2
from pathlib import Path
from ..spline.tps import TPSInterpolator, DEFAULT_RCOND
from ..config.settings import DemoSettings

# V-shaped ridge: peak value 400 at (120,140), falling to 100 at both ends
V_POINTS = [(30,30),(60,60),(90,90),(120,140),(150,90),(180,60),(210,30)]
V_VALUES = [100,200,300,400,300,200,100]

def sample_points(anchors:int=100, anchor_step:float=5.0, anchor_y:float=400.0):
    """
    2-D sample set: the V ridge plus a row of zero-valued anchors along y=anchor_y.
    Values are 2-D with the scalar profile in channel 0.
    """
    pts = [tuple(map(float, p)) for p in V_POINTS]
    vals = [(float(v), 0.0) for v in V_VALUES]
    for i in range(anchors):
        pts.append((i*anchor_step, anchor_y))
        vals.append((0.0, 0.0))
    return pts, vals

def render_grid(tps: TPSInterpolator, width:int, height:int, channel:int=0) -> np.ndarray:
    """Evaluate on every integer pixel; grid[y,x] = tps((x,y))[channel]."""
    if tps.dim != 2:
        raise ValueError(f"grid rendering needs a 2-D model, got dim={tps.dim}")
    if not 0 <= channel < tps.dim:
        raise ValueError(f"channel {channel} out of range for dim={tps.dim}")
    xs, ys = np.meshgrid(np.arange(width, dtype=float), np.arange(height, dtype=float))
    Q = np.stack([xs.ravel(), ys.ravel()], axis=1)
    return tps.interpolate_many(Q)[:,channel].reshape(height, width)

def to_image(grid: np.ndarray, colormap:str="JET") -> np.ndarray:
    img = cv2.normalize(grid.astype(np.float32), None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    cmap = getattr(cv2, f"COLORMAP_{colormap.upper()}", None)
    if cmap is None:
        raise ValueError(f"unknown OpenCV colormap {colormap!r}")
    return cv2.applyColorMap(img, cmap)

def run(settings: DemoSettings|None=None, rcond:float=DEFAULT_RCOND, save:str|Path|None=None, show:bool=True):
    settings = settings or DemoSettings()
    pts, vals = sample_points()
    tps = TPSInterpolator(2, pts, vals, rcond=rcond)
    grid = render_grid(tps, settings.width, settings.height, settings.channel)
    img = to_image(grid, settings.colormap)
    if save:
        cv2.imwrite(str(save), img)
    if show:
        cv2.imshow("tpsinterp", img)
        cv2.waitKey(0)
        cv2.destroyAllWindows()
    return grid
