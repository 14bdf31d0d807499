import logging
from pathlib import Path
from typing import Dict, List, Tuple

import typer
import yaml

from . import plan
from .manager import NoSuchTaskError, ProgressManager
from .progress import BAR_WIDTH, render_tree
from .schema import SchemaError

app = typer.Typer(help="Progress Tree Manager CLI")

logger = logging.getLogger(__name__)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress updates."),
    debug: bool = typer.Option(False, "--debug", help="Log everything, including ignored updates."),
):
    """Inspect task plans and preview weighted progress."""
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level)
    logging.getLogger("ptm").setLevel(level)


def fail(message: str) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def load_manager(path: Path, strict: bool = False) -> ProgressManager[str]:
    if not path.exists():
        fail(f"File not found: {path}")
    try:
        return plan.build_manager(path, strict=strict)
    except (SchemaError, yaml.YAMLError) as e:
        fail(f"Invalid plan: {e}")


def parse_assignments(values: List[str]) -> List[Tuple[str, int]]:
    pairs = []
    for value in values:
        key, sep, number = value.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=N, got '{value}'")
        try:
            pairs.append((key, int(number)))
        except ValueError:
            raise typer.BadParameter(f"Expected an integer count in '{value}'") from None
    return pairs


@app.command()
def init(path: Path = typer.Option(Path('.'), help="Folder to create the plan in.")):
    """Create a starter task plan in the given folder."""
    file = path / plan.PLAN_FILE
    if file.exists():
        raise typer.BadParameter(f"Plan already exists at {file.resolve()}")
    specs = plan.template(["prepare", "process", "finish"])
    plan.save(specs, file)
    typer.echo(f"Created plan with {len(specs)} tasks at {file.resolve()}")


@app.command()
def validate(path: Path):
    """Check that a task plan is well formed."""
    manager = load_manager(path)
    typer.echo(
        f"Plan is valid: {len(manager)} tasks, "
        f"{manager.parent.total_unit_count} parent units"
    )


@app.command()
def progress(
    path: Path,
    completed: List[str] = typer.Option([], "--set", help="Set a task's completed units, KEY=N."),
    added: List[str] = typer.Option([], "--add", help="Add completed units to a task, KEY=N."),
    totals: List[str] = typer.Option([], "--total", help="Resize a task, KEY=N."),
    strict: bool = typer.Option(False, "--strict", help="Fail on unknown task names."),
    bars: bool = typer.Option(True, "--bars/--no-bars", help="Draw progress bars."),
    width: int = typer.Option(BAR_WIDTH, min=1, help="Width of each bar."),
):
    """Show the progress tree after applying the given updates."""
    manager = load_manager(path, strict=strict)
    updates: Dict[str, List[Tuple[str, int]]] = {
        "total": parse_assignments(totals),
        "set": parse_assignments(completed),
        "add": parse_assignments(added),
    }
    try:
        for key, value in updates["total"]:
            manager.set_child_task_total_unit_count(value, key)
        for key, value in updates["set"]:
            manager.set_completed_unit_count(value, key)
        for key, value in updates["add"]:
            manager.add_to_completed_unit_count(value, key)
    except NoSuchTaskError as e:
        fail(f"Unknown task: {e.args[0]}")
    logger.info("Overall fraction completed: %.4f", manager.fraction_completed)
    if bars:
        typer.echo(render_tree(manager.parent, manager.child_tasks, label=path.stem, width=width))
    else:
        typer.echo(str(manager))


@app.command()
def template(
    names: List[str],
    child_units: int = typer.Option(1, min=1, help="Units each task needs."),
    parent_units: int = typer.Option(1, min=0, help="Units each task is worth to the parent."),
):
    """Print a task plan giving every named task the same size."""
    typer.echo(plan.dump_plan(plan.template(names, child_units, parent_units)), nl=False)


if __name__ == "__main__":
    app()
