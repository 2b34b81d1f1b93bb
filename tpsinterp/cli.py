from __future__ import annotations
import typer, json
from rich import print
from rich.markup import escape
from rich.table import Table
from pathlib import Path
from typing import Optional, List
from .config.settings import load_settings
from .io.export import load_point_set, save_model, load_model, save_arrays
from .spline.tps import TPSInterpolator
from .spline.errors import TPSError

app = typer.Typer(add_completion=False, help="Thin plate spline interpolation (tps)")

def _fail(e: TPSError):
    print(f"[red]{e.kind.value}[/red]: {escape(str(e))}")
    raise typer.Exit(code=1)

def _parse_point(text: str) -> List[float]:
    try:
        return [float(t) for t in text.split(",")]
    except ValueError:
        raise typer.BadParameter(f"expected comma separated numbers, got {text!r}")

@app.command()
def fit(input: Path = typer.Argument(..., exists=True, dir_okay=False), out: Path = typer.Option(Path("model.json")), config: Optional[Path] = typer.Option(None)):
    """
    Fit a spline to a YAML/JSON point set (dim, points, values) and save the model.
    """
    cfg = load_settings(config)
    try:
        data = load_point_set(input)
        tps = TPSInterpolator(data["dim"], data["points"], data["values"], rcond=cfg.solver.rcond)
    except TPSError as e:
        _fail(e)
    save_model(out, tps)
    print(f"[green]Fitted[/green] {tps.n_points} points (dim={tps.dim}) =>", str(out))

@app.command("eval")
def evaluate(model: Path = typer.Argument(..., exists=True, dir_okay=False), at: List[str] = typer.Option(..., "--at", help="query point, e.g. 0.5,0.5")):
    """
    Evaluate a saved model; prints one JSON line per query.
    """
    try:
        tps = load_model(model)
        for text in at:
            q = _parse_point(text)
            typer.echo(json.dumps({"query": q, "value": tps.interpolate(q).tolist()}))
    except TPSError as e:
        _fail(e)

@app.command()
def info(model: Path = typer.Argument(..., exists=True, dir_okay=False)):
    """
    Show the affine part and size of a saved model.
    """
    try:
        tps = load_model(model)
    except TPSError as e:
        _fail(e)
    t = Table(title=str(model))
    t.add_column("field"); t.add_column("value")
    t.add_row("dim", str(tps.dim))
    t.add_row("points", str(tps.n_points))
    t.add_row("A", str(tps.A.tolist()))
    t.add_row("b", str(tps.b.tolist()))
    t.add_row("|coefficients|", f"{float(abs(tps.coefficients).max()):.6g}")
    print(t)

@app.command()
def export(model: Path = typer.Argument(..., exists=True, dir_okay=False), out: Path = typer.Option(Path("model.npz"))):
    """
    Write float32 points, coefficients, A and b (column-major) to an .npz file.
    """
    try:
        tps = load_model(model)
    except TPSError as e:
        _fail(e)
    save_arrays(out, tps)
    print("[green]Exported[/green]", str(out))

@app.command()
def demo(save: Optional[Path] = typer.Option(None), show: bool = typer.Option(True, "--show/--no-show"), config: Optional[Path] = typer.Option(None)):
    """
    Fit the V-profile sample set and render channel 0 over a dense grid.
    """
    from .demos.vprofile import run
    cfg = load_settings(config)
    try:
        grid = run(cfg.demo, rcond=cfg.solver.rcond, save=save, show=show)
    except TPSError as e:
        _fail(e)
    print(f"[green]Rendered[/green] {grid.shape[1]}x{grid.shape[0]} grid, range {grid.min():.1f}..{grid.max():.1f}")

if __name__ == "__main__":
    app()
