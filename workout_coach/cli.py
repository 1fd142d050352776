"""Command-line interface for the workout coach."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.panel import Panel
from rich import box

from .config import config
from .data import load_export
from .models import WorkoutDataError
from .analysis.recommendations import (
    HintType,
    RecommendationEngine,
    categorize_plan,
    recommendation_reason,
)
from .analysis.plan_generation import (
    calculate_plan_intensity,
    focus_recommendations,
    parse_generated_response,
    validate_generated_plan,
)
from .analysis.workout_stats import current_streak, personal_records, workout_summary

console = Console()

HINT_COLORS = {
    HintType.SUCCESS: "green",
    HintType.WARNING: "yellow",
    HintType.MOTIVATION: "magenta",
    HintType.INFO: "blue",
}


def _load_or_exit(data_path):
    """Load the export file, printing the error and exiting on failure."""
    try:
        return load_export(data_path)
    except WorkoutDataError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise SystemExit(1)


data_option = click.option(
    "--data", "data_path", type=click.Path(dir_okay=False, path_type=Path),
    default=None, help="JSON export with plans and workouts (defaults to WORKOUT_DATA_FILE)",
)


@click.group()
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Workout plan recommendations from your training history."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@data_option
@click.option("--streak", type=int, default=None, help="Current streak (computed from history if omitted)")
def recommend(data_path, streak):
    """Suggest the next workout."""
    console.print(Panel.fit("🎯 Workout Recommendation", style="bold blue"))

    data = _load_or_exit(data_path)
    if streak is None:
        streak = current_streak(data.sessions)

    engine = RecommendationEngine()
    result = engine.recommend(data.plans, data.sessions, data.last_session, streak)
    plan = data.plans.get(result.plan_id) if result.plan_id else None
    hint = engine.next_action_hint(streak, data.sessions, data.last_session, plan)

    if plan is None:
        console.print("[yellow]⚠️  No workout plans found. Create a plan to get started.[/yellow]")
    else:
        category = result.category or categorize_plan(plan)
        rec_text = f"""
[bold]{escape(plan.name or plan.id)}[/bold]

[bold]Why:[/bold] {recommendation_reason(result.reason)}
[bold]Focus:[/bold] {category.value}
[bold]Streak:[/bold] {streak} day(s)
"""
        if plan.focus:
            guidance = focus_recommendations(plan.focus)
            rec_text += f"[bold]Guidance:[/bold] {guidance.rep_range} reps, {guidance.rest_period} rest\n"
        console.print(Panel(rec_text.strip(), title="📈 Next Workout", border_style="green"))

        if plan.exercises:
            table = Table(title="Exercises", box=box.ROUNDED)
            table.add_column("Exercise", style="cyan")
            table.add_column("Sets", justify="right")
            table.add_column("Reps", justify="right")
            table.add_column("Rest")
            for exercise in plan.exercises:
                table.add_row(escape(exercise.name), str(exercise.sets), str(exercise.range), exercise.rest_period)
            console.print(table)

    if hint is not None:
        color = HINT_COLORS.get(hint.type, "blue")
        console.print(f"[{color}]{escape(hint.message)}[/{color}]")


@cli.command()
@data_option
def plans(data_path):
    """List workout plans with their category and intensity."""
    data = _load_or_exit(data_path)

    if not data.plans:
        console.print("[yellow]No workout plans found.[/yellow]")
        return

    table = Table(title="Workout Plans", box=box.ROUNDED)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Category", style="cyan")
    table.add_column("Next")
    table.add_column("Intensity", style="magenta")
    table.add_column("Source")

    for plan_id, plan in data.plans.items():
        intensity = calculate_plan_intensity(plan)
        next_id = plan.next or "-"
        if plan.next and plan.next not in data.plans:
            next_id = f"{plan.next} (missing)"
        table.add_row(
            escape(plan_id),
            escape(plan.name),
            categorize_plan(plan).value,
            escape(next_id),
            f"{intensity.level} ({intensity.score})",
            plan.source or "custom",
        )

    console.print(table)


@cli.command()
@data_option
def stats(data_path):
    """Show workout history statistics."""
    data = _load_or_exit(data_path)
    summary = workout_summary(data.sessions)

    table = Table(title="📊 Workout Summary", box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total workouts", str(summary["total_workouts"]))
    table.add_row("Current streak", f"{summary['current_streak']} days")
    table.add_row("Average duration", f"{summary['average_duration']} min")
    table.add_row("This week", str(summary["workouts_this_week"]))
    table.add_row("This month", str(summary["workouts_this_month"]))
    table.add_row("Most worked focus", summary["most_worked_focus"] or "-")
    for focus, count in summary["focus_distribution"].items():
        table.add_row(f"  {focus} (recent)", str(count))
    console.print(table)

    records = personal_records(data.sessions)
    if records:
        pr_table = Table(title="🏆 Personal Records", box=box.ROUNDED)
        pr_table.add_column("Exercise", style="bold")
        pr_table.add_column("Weight", justify="right")
        pr_table.add_column("Reps", justify="right")
        pr_table.add_column("Date")
        for record in sorted(records.values(), key=lambda r: r.volume, reverse=True):
            date_str = record.date.strftime("%Y-%m-%d") if record.date else "-"
            pr_table.add_row(escape(record.name), f"{record.weight:g}", str(record.reps), date_str)
        console.print(pr_table)


@cli.command("validate-plan")
@click.argument("response_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), help="Write the cleaned plans as JSON")
def validate_plan(response_file, output):
    """Validate an AI-generated program saved to RESPONSE_FILE."""
    try:
        payload = parse_generated_response(response_file.read_text(encoding="utf-8"))
    except WorkoutDataError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise SystemExit(1)

    validation = validate_generated_plan(payload)
    if not validation.valid:
        console.print(f"[red]❌ Invalid program: {escape(validation.error or '')}[/red]")
        raise SystemExit(1)

    program = validation.cleaned
    if validation.error:
        console.print(f"[yellow]⚠️  {escape(validation.error)}[/yellow]")

    table = Table(title=escape(program.program_name or "Generated Program"), box=box.ROUNDED)
    table.add_column("Day", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Category", style="cyan")
    table.add_column("Exercises", justify="right")
    table.add_column("Intensity", style="magenta")
    table.add_column("Next")
    for plan_id, plan in program.plans.items():
        intensity = calculate_plan_intensity(plan)
        table.add_row(
            escape(plan_id),
            escape(plan.name),
            categorize_plan(plan).value,
            str(len(plan.exercises)),
            f"{intensity.level} ({intensity.score})",
            escape(plan.next or "-"),
        )
    console.print(table)

    if output:
        cleaned = {
            "programName": program.program_name,
            "programDescription": program.program_description,
            "weeklyVolume": program.weekly_volume,
            "plans": {plan_id: plan.to_dict() for plan_id, plan in program.plans.items()},
        }
        output.write_text(json.dumps(cleaned, indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"[green]✅ Saved {len(program.plans)} plans to {escape(str(output))}[/green]")
    else:
        console.print(f"[green]✅ {len(program.plans)} valid workout days[/green]")


def main():
    """Main entry point."""
    try:
        config.validate()
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user.[/yellow]")
    except ValueError as e:
        console.print(f"[red]❌ Configuration Error: {escape(str(e))}[/red]")


if __name__ == "__main__":
    main()
