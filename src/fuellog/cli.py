"""CLI interface using Typer."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from fuellog.app_logging import configure_logging
from fuellog.config import get_settings, reload_settings
from fuellog.config.settings import ProfileConfig
from fuellog.data.foods import FoodTable, FoodTableError, load_food_table
from fuellog.estimate.food_text import estimate_food_text
from fuellog.estimate.ranges import meal_range, safe_number
from fuellog.estimate.reconcile import MealEstimate, reconcile_estimates
from fuellog.response import error_response, success_response
from fuellog.tracking.daily import VALID_BUDGET_MODES, summarize_day
from fuellog.tracking.heart_rate import summarize_average_workout, summarize_workout
from fuellog.tracking.ingest import import_heart_rate_csv
from fuellog.tracking.models import Profile

app = typer.Typer(
    help="Calorie range estimates for meals and heart-rate workouts",
    no_args_is_help=True,
)
console = Console()

# Subcommand groups
workout_app = typer.Typer(help="Estimate workout energy from heart rate")
profile_app = typer.Typer(help="View and update the personal profile")

app.add_typer(workout_app, name="workout")
app.add_typer(profile_app, name="profile")

# Set by --config; profile changes are saved back to the same file
_config_path: Optional[Path] = None


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Optional[Path] = typer.Option(
        None, "--config", help="Config file (default: ~/.fuellog/config.yaml)"
    ),
) -> None:
    """Calorie range estimates for meals and heart-rate workouts."""
    global _config_path
    configure_logging(logging.DEBUG if verbose else logging.WARNING)
    _config_path = config
    if config is not None:
        reload_settings(config)


# ============================================================================
# Helpers
# ============================================================================


def fail(
    command: str,
    message: str,
    json_output: bool,
    suggestions: Optional[list[str]] = None,
) -> NoReturn:
    """Report an error and exit with status 1."""
    if json_output:
        error_response(command, message, suggestions).emit()
    else:
        console.print(f"[red]{message}[/red]")
        for suggestion in suggestions or []:
            console.print(f"  {suggestion}")
    raise typer.Exit(1)


def use_json(json_output: bool) -> bool:
    """--json, or JSON configured as the default output format."""
    return json_output or get_settings().defaults.output_format == "json"


def get_food_table(json_output: bool, command: str) -> FoodTable:
    """Load the configured food table, exiting on malformed data."""
    path = get_settings().estimation.food_table_path
    try:
        return load_food_table(path)
    except (FoodTableError, OSError) as exc:
        fail(command, f"Could not load food table: {exc}", json_output)


def get_profile(
    command: str,
    json_output: bool,
    weight: Optional[float] = None,
    age: Optional[float] = None,
    sex: Optional[str] = None,
) -> Profile:
    """Profile from settings with command-line overrides."""
    overrides = {"weight_kg": weight, "age": age, "sex": sex}
    cfg = dataclasses.replace(
        get_settings().profile, **{k: v for k, v in overrides.items() if v is not None}
    )
    try:
        profile = cfg.to_profile()
    except ValueError as exc:
        fail(command, f"Invalid profile: {exc}", json_output)
    if not profile.weight_kg:
        fail(
            command,
            "Body weight is required for workout estimates",
            json_output,
            ["Set it once: fuellog profile set --weight 70", "Or pass --weight"],
        )
    return profile


# ============================================================================
# Meal Commands
# ============================================================================


@app.command()
def food(
    text: list[str] = typer.Argument(..., help="Meal description, e.g. '米饭150g 鸡胸'"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Estimate a calorie range from a meal description."""
    json_output = use_json(json_output)
    description = " ".join(text)
    table = get_food_table(json_output, "food")
    result = estimate_food_text(description, table)

    r = result.range
    if not result.ok or r is None:
        fail(
            "food",
            "No known food or number found in the description",
            json_output,
            ["Try 'food + weight or portion', e.g. 'rice 180g' or '2 eggs'"],
        )
    if json_output:
        success_response(
            "food",
            data=result.to_dict(),
            suggestions=[result.followups] if result.followups else [],
            human_summary=f"{r.low}-{r.high} kcal (mid {r.mid})",
        ).emit()
        return

    if result.matches:
        out = Table(title="Recognized foods")
        out.add_column("Food", style="cyan")
        out.add_column("Quantity")
        out.add_column("Low", justify="right")
        out.add_column("Mid", justify="right")
        out.add_column("High", justify="right")
        for m in result.matches:
            out.add_row(m.food.name, m.detail, str(m.range.low), str(m.range.mid), str(m.range.high))
        console.print(out)
    else:
        console.print(result.explanation)

    console.print(
        Panel(
            f"[bold]{r.low}-{r.high} kcal[/bold] (mid {r.mid}, ±{r.uncertainty:.0%})",
            title="Estimate",
        )
    )
    if result.followups:
        console.print(f"[yellow]{result.followups}[/yellow]")


@app.command()
def foods(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List the reference food table."""
    json_output = use_json(json_output)
    table = get_food_table(json_output, "foods")

    if json_output:
        success_response(
            "foods",
            data={
                "foods": [
                    {
                        "name": f.name,
                        "aliases": list(f.aliases),
                        "basis": f.basis,
                        "kcal_per_100g": f.kcal_per_100g,
                        "kcal_per_100ml": f.kcal_per_100ml,
                        "kcal_each": f.kcal_each,
                        "default_amount": f.default_amount,
                        "unit": f.unit,
                        "condiment": f.condiment,
                    }
                    for f in table
                ]
            },
            human_summary=f"{len(table)} foods",
        ).emit()
        return

    out = Table(title=f"Reference foods ({len(table)})")
    out.add_column("Food", style="cyan")
    out.add_column("Aliases")
    out.add_column("Density", justify="right")
    out.add_column("Default portion", justify="right")
    for f in table:
        if f.basis == "g":
            density = f"{f.kcal_per_100g:g} kcal/100g"
        elif f.basis == "ml":
            density = f"{f.kcal_per_100ml:g} kcal/100ml"
        else:
            density = f"{f.kcal_each:g} kcal each"
        unit = "" if f.basis == "each" else f" {f.basis}"
        out.add_row(f.name, ", ".join(f.aliases), density, f"{f.default_amount:g}{unit} ({f.unit})")
    console.print(out)


@app.command()
def reconcile(
    primary: float = typer.Argument(..., help="Primary kcal estimate"),
    secondary: float = typer.Argument(..., help="Second kcal estimate"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Merge two calorie estimates of the same meal."""
    json_output = use_json(json_output)
    tolerance = get_settings().estimation.agreement_tolerance
    merged = reconcile_estimates(MealEstimate(primary), MealEstimate(secondary), tolerance)

    verdict = "agree, averaged" if merged.agreed else "kept primary"
    if json_output:
        success_response(
            "reconcile",
            data=merged.to_dict(),
            human_summary=f"{merged.kcal} kcal ({verdict}, uncertainty {merged.uncertainty:.2f})",
        ).emit()
        return

    console.print(f"[green]Merged:[/green] {merged.kcal} kcal ({verdict})")
    console.print(f"[blue]Uncertainty:[/blue] {merged.uncertainty:.2f}")


@app.command()
def summary(
    meal: Optional[list[str]] = typer.Option(
        None, "--meal", "-m", help="Meal kcal ('450') or range ('400-600'); repeatable"
    ),
    burned: Optional[list[float]] = typer.Option(
        None, "--burned", "-b", help="Workout kcal; repeatable"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Summarize a day's intake against workouts and the target."""
    json_output = use_json(json_output)
    ranges = []
    for value in meal or []:
        low, sep, high = value.partition("-")
        if sep:
            if safe_number(low) <= 0 or safe_number(high) < safe_number(low):
                fail("summary", f"Invalid meal range: {value}", json_output)
            ranges.append(meal_range(0, low=safe_number(low), high=safe_number(high)))
        else:
            if safe_number(value) <= 0:
                fail("summary", f"Invalid meal kcal: {value}", json_output)
            ranges.append(meal_range(safe_number(value)))

    cfg = get_settings().profile
    try:
        day = summarize_day(ranges, burned or [], cfg.kcal_target, cfg.budget_mode)
    except ValueError as exc:
        fail("summary", str(exc), json_output)

    if json_output:
        success_response(
            "summary",
            data=day.to_dict(),
            human_summary=f"In {day.intake_low}-{day.intake_high}, out {day.burned}, net {day.net}",
        ).emit()
        return

    lines = [
        f"In:  {day.intake_low}-{day.intake_high} kcal (mid {day.intake_mid})",
        f"Out: {day.burned} kcal",
        f"Net: {day.net:+d} kcal (mid)",
    ]
    if day.remaining is not None:
        lines.insert(0, f"Target: {day.target} kcal ({day.budget_mode} basis)")
        lines.append(f"Remaining: {day.remaining} kcal")
    console.print(Panel("\n".join(lines), title="Today"))


# ============================================================================
# Workout Commands
# ============================================================================


def _print_workout(title: str, est) -> None:
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Energy", f"{est.kcal} kcal")
    table.add_row("Duration", f"{est.minutes:g} min")
    table.add_row("Avg HR", f"{est.avg_hr:g} bpm")
    table.add_row("Training load", str(est.training_load) if est.training_load else "-")
    console.print(table)


@workout_app.command("avg")
def workout_avg(
    hr: float = typer.Option(..., "--hr", help="Average heart rate (bpm)"),
    minutes: float = typer.Option(..., "--minutes", "-t", help="Duration in minutes"),
    weight: Optional[float] = typer.Option(None, "--weight", help="Override weight (kg)"),
    age: Optional[float] = typer.Option(None, "--age", help="Override age"),
    sex: Optional[str] = typer.Option(None, "--sex", help="Override sex (male/female)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Estimate workout energy from average heart rate and duration."""
    json_output = use_json(json_output)
    if hr <= 0 or minutes <= 0:
        fail("workout avg", "--hr and --minutes must be positive", json_output)
    profile = get_profile("workout avg", json_output, weight, age, sex)
    est = summarize_average_workout(profile, hr, minutes)

    if json_output:
        success_response(
            "workout avg",
            data=est.to_dict(),
            human_summary=f"{est.kcal} kcal over {minutes:g} min at {hr:g} bpm",
        ).emit()
        return
    _print_workout("Workout (average HR)", est)


@workout_app.command("csv")
def workout_csv(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Heart-rate export"),
    time_col: Optional[str] = typer.Option(None, "--time-col", help="Timestamp column"),
    hr_col: Optional[str] = typer.Option(None, "--hr-col", help="Heart-rate column"),
    weight: Optional[float] = typer.Option(None, "--weight", help="Override weight (kg)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Estimate workout energy from a heart-rate CSV/TSV export."""
    json_output = use_json(json_output)
    profile = get_profile("workout csv", json_output, weight)
    raw = path.read_text(encoding="utf-8-sig", errors="replace")
    imported = import_heart_rate_csv(raw, time_col, hr_col)

    columns = {
        "delimiter": imported.table.delimiter,
        "time_column": imported.time_column,
        "hr_column": imported.hr_column,
        "samples": len(imported.series),
        "dropped_rows": imported.dropped_rows,
    }
    if not imported.ok:
        fail(
            "workout csv",
            f"Not enough heart-rate data ({len(imported.series)} valid rows)",
            json_output,
            [f"Headers found: {', '.join(imported.table.headers) or 'none'}",
             "Pick columns with --time-col and --hr-col"],
        )

    est = summarize_workout(profile, imported.series, get_settings().estimation.dropout_minutes)
    if json_output:
        success_response(
            "workout csv",
            data={**est.to_dict(), "import": columns},
            warnings=[f"{imported.dropped_rows} rows dropped"] if imported.dropped_rows else [],
            human_summary=f"{est.kcal} kcal over {est.minutes:g} min",
        ).emit()
        return

    console.print(
        f"Columns: time=[cyan]{imported.time_column}[/cyan] "
        f"hr=[cyan]{imported.hr_column}[/cyan] "
        f"({len(imported.series)} samples, {imported.dropped_rows} dropped)"
    )
    _print_workout(f"Workout ({path.name})", est)


# ============================================================================
# Profile Commands
# ============================================================================


@profile_app.command("show")
def profile_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the configured profile."""
    json_output = use_json(json_output)
    cfg = get_settings().profile
    data = dataclasses.asdict(cfg)

    if json_output:
        success_response("profile show", data=data, human_summary=f"{cfg.sex}, {cfg.age:g} years").emit()
        return

    table = Table(title="Profile")
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in data.items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)


@profile_app.command("set")
def profile_set(
    age: Optional[float] = typer.Option(None, "--age", help="Age in years"),
    sex: Optional[str] = typer.Option(None, "--sex", help="male or female"),
    weight: Optional[float] = typer.Option(None, "--weight", help="Weight in kg"),
    hr_rest: Optional[float] = typer.Option(None, "--hr-rest", help="Resting heart rate"),
    hr_max: Optional[float] = typer.Option(None, "--hr-max", help="Max heart rate"),
    cal_factor: Optional[float] = typer.Option(None, "--cal-factor", help="Calibration factor (0.7-1.3)"),
    target: Optional[float] = typer.Option(None, "--target", help="Daily kcal target"),
    budget_mode: Optional[str] = typer.Option(None, "--budget-mode", help="mid or high"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Update profile fields and save the config file."""
    json_output = use_json(json_output)
    settings = get_settings()
    updates = {
        "age": age,
        "sex": sex,
        "weight_kg": weight,
        "hr_rest": hr_rest,
        "hr_max": hr_max,
        "cal_factor": cal_factor,
        "kcal_target": target,
        "budget_mode": budget_mode,
    }
    candidate: ProfileConfig = dataclasses.replace(
        settings.profile, **{k: v for k, v in updates.items() if v is not None}
    )
    try:
        candidate.to_profile()
        if candidate.budget_mode not in VALID_BUDGET_MODES:
            raise ValueError(
                f"budget_mode must be one of {VALID_BUDGET_MODES}, got '{candidate.budget_mode}'"
            )
    except ValueError as exc:
        fail("profile set", str(exc), json_output)

    settings.profile = candidate
    settings.save(_config_path)

    if json_output:
        success_response(
            "profile set",
            data=dataclasses.asdict(candidate),
            human_summary="Profile saved",
        ).emit()
    else:
        console.print("[green]Profile saved[/green]")


if __name__ == "__main__":
    app()
