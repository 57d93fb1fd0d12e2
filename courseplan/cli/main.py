"""
Typer CLI for the courseplan engine.

Commands:
    courseplan db init                          - Initialize database tables
    courseplan assign randomize ASSESSMENT_ID   - Randomize, validate and save bundle assignments
    courseplan assign validate ASSESSMENT_ID    - Validate the current bundle assignments
    courseplan timeline personalize COURSE_USER - Recompute one course user's personal timeline
    courseplan timeline personalize-course ID   - Recompute personal timelines of every student
    courseplan info                             - Show configuration
    courseplan version                          - Show version information

Usage:
    courseplan --help
    courseplan assign randomize 42 --attempts 20 --seed exam-2024
    courseplan assign randomize 42 --dry-run
    courseplan timeline personalize 7 --algorithm adaptive
"""

from __future__ import annotations

import sys
from typing import Optional

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table
from sqlalchemy import select

from config import get_settings
from courseplan import __version__
from courseplan.assignment import (
    BundleAssignmentEngine,
    EmptyGroupsInfo,
    OffendingStudentsInfo,
    OverlappingQuestionsInfo,
    ValidationReport,
    make_rng,
    pick_best,
    to_sentence,
)
from courseplan.assignment.errors import AssignmentEngineError
from courseplan.db.database import init_db, session_scope
from courseplan.db.models import CourseUser
from courseplan.timeline import (
    MissingReferenceTimeline,
    TimelineAlgorithm,
    update_personalized_timeline_for,
)

app = typer.Typer(
    help="courseplan CLI: question bundle assignment and personalized timelines",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging before any command runs."""
    settings = get_settings()
    level = "DEBUG" if verbose else settings.log_level

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=level, rotation="10 MB", retention=5)


# ========================================
# Rendering helpers
# ========================================


def _describe(result, names: dict[int, str]) -> str:
    info = result.info
    if isinstance(info, OverlappingQuestionsInfo):
        return f"Questions in several bundles: {info.sentence}"
    if isinstance(info, EmptyGroupsInfo):
        return f"Groups without bundles: {info.sentence}"
    if isinstance(info, OffendingStudentsInfo):
        students = [names.get(s, f"#{s}") for s in info.students]
        return f"{len(result.offending_cells)} cells, students: {to_sentence(students)}"
    return ""


def _print_report(report: ValidationReport, names: dict[int, str]) -> None:
    table = Table(title="Bundle Assignment Validation")
    table.add_column("Rule", style="cyan")
    table.add_column("Severity")
    table.add_column("Status")
    table.add_column("Penalty", justify="right")
    table.add_column("Details", style="dim")

    for rule, result in report.items():
        status = "[green]✓ pass[/green]" if result.passed else "[red]✗ fail[/red]"
        details = "" if result.passed else _describe(result, names)
        table.add_row(rule, result.severity.value, status, f"{result.score_penalty:g}", details)

    console.print(table)


# ========================================
# DATABASE COMMANDS
# ========================================

db_app = typer.Typer(help="Database management")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """
    Initialize database tables from SQLAlchemy models.

    Safe to run multiple times (idempotent).
    """
    logger.info("Initializing database tables...")
    init_db()
    rprint("[green]✓[/green] Database initialized!")


# ========================================
# ASSIGNMENT COMMANDS
# ========================================

assign_app = typer.Typer(help="Question bundle assignment")
app.add_typer(assign_app, name="assign")


@assign_app.command("randomize")
def assign_randomize(
    assessment_id: int = typer.Argument(..., help="Assessment to randomize"),
    attempts: Optional[int] = typer.Option(
        None, "--attempts", "-n", min=1, help="Candidates to draw (default from settings)"
    ),
    seed: Optional[str] = typer.Option(None, "--seed", help="Seed for reproducible randomization"),
    force: bool = typer.Option(False, "--force", help="Save the best candidate even if it fails validation"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate without saving"),
) -> None:
    """
    Draw candidate assignments and save the best one.

    Stops at the first candidate passing every hard check; otherwise keeps the
    candidate with the lowest score penalty.
    """
    settings = get_settings()
    attempts = attempts or settings.randomization_max_attempts
    dry_run = dry_run or settings.dry_run

    try:
        with session_scope() as session:
            engine = BundleAssignmentEngine(
                session, assessment_id, rng=make_rng(seed or settings.randomization_seed)
            )
            context = engine.capture_context()

            candidates = []
            for attempt in range(1, attempts + 1):
                candidate = engine.randomize()
                report = engine.validate(candidate, context)
                candidates.append((candidate, report))
                logger.debug(f"Attempt {attempt}: passed={report.passed} penalty={report.score_penalty}")
                if report.passed:
                    break

            best, report = pick_best(candidates)
            names = engine.provider.user_names(engine.students)
            _print_report(report, names)

            if dry_run:
                rprint(f"[yellow]Dry run:[/yellow] {len(candidates)} candidate(s) drawn, nothing saved")
                return
            if not report.passed and not force:
                rprint("[red]✗[/red] No valid assignment found; use --force to save the best candidate")
                raise typer.Exit(code=1)

            written = engine.save(best)
            rprint(f"[green]✓[/green] Saved {written} assignments after {len(candidates)} attempt(s)")
    except AssignmentEngineError as e:
        logger.error(f"Inconsistent assessment data: {e}")
        raise typer.Exit(code=2)


@assign_app.command("validate")
def assign_validate(
    assessment_id: int = typer.Argument(..., help="Assessment to validate"),
) -> None:
    """Validate the current (non-submitted) bundle assignments."""
    try:
        with session_scope() as session:
            engine = BundleAssignmentEngine(session, assessment_id)
            report = engine.validate(engine.load())
            _print_report(report, engine.provider.user_names(engine.students))
    except AssignmentEngineError as e:
        logger.error(f"Inconsistent assessment data: {e}")
        raise typer.Exit(code=2)

    if not report.passed:
        raise typer.Exit(code=1)


# ========================================
# TIMELINE COMMANDS
# ========================================

timeline_app = typer.Typer(help="Personalized timelines")
app.add_typer(timeline_app, name="timeline")


@timeline_app.command("personalize")
def timeline_personalize(
    course_user_id: int = typer.Argument(..., help="Course user to personalize"),
    algorithm: Optional[TimelineAlgorithm] = typer.Option(
        None, "--algorithm", "-a", help="Override the course user's algorithm"
    ),
) -> None:
    """Recompute the personal timeline of one course user."""
    try:
        with session_scope() as session:
            course_user = session.get(CourseUser, course_user_id)
            if course_user is None:
                rprint(f"[red]✗[/red] Course user {course_user_id} not found")
                raise typer.Exit(code=1)
            update = update_personalized_timeline_for(session, course_user, algorithm)
    except MissingReferenceTimeline as e:
        logger.error(str(e))
        raise typer.Exit(code=1)

    rprint(
        f"[green]✓[/green] {update.algorithm.value}: created {update.created}, "
        f"updated {update.updated}, deleted {update.deleted}, fixed {len(update.fixed_item_ids)}"
    )


@timeline_app.command("personalize-course")
def timeline_personalize_course(
    course_id: int = typer.Argument(..., help="Course whose students are personalized"),
    algorithm: Optional[TimelineAlgorithm] = typer.Option(
        None, "--algorithm", "-a", help="Override the course user's algorithm"
    ),
) -> None:
    """Recompute personal timelines for every student, one transaction per student."""
    with session_scope() as session:
        course_user_ids = list(
            session.scalars(
                select(CourseUser.id).where(
                    CourseUser.course_id == course_id, CourseUser.role == "student"
                )
            )
        )

    table = Table(title=f"Personalized Timelines (course {course_id})")
    table.add_column("Course User", style="cyan")
    table.add_column("Algorithm")
    table.add_column("Created", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Deleted", justify="right")
    table.add_column("Fixed", justify="right")

    failures = 0
    for course_user_id in course_user_ids:
        try:
            with session_scope() as session:
                course_user = session.get(CourseUser, course_user_id)
                update = update_personalized_timeline_for(session, course_user, algorithm)
        except MissingReferenceTimeline as e:
            failures += 1
            logger.error(f"Course user {course_user_id}: {e}")
            continue
        table.add_row(
            str(course_user_id),
            update.algorithm.value,
            str(update.created),
            str(update.updated),
            str(update.deleted),
            str(len(update.fixed_item_ids)),
        )

    console.print(table)
    if failures:
        rprint(f"[red]{failures} course user(s) failed[/red]")
        raise typer.Exit(code=1)


# ========================================
# INFO COMMANDS
# ========================================


@app.command("info")
def show_info() -> None:
    """Show configuration."""
    settings = get_settings()

    table = Table(title="courseplan Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Database URL", settings.database_url)
    table.add_row("Max randomization attempts", str(settings.randomization_max_attempts))
    table.add_row("Randomization seed", settings.randomization_seed or "None")
    table.add_row("Timeline commit window", str(settings.timeline_commit_window))
    table.add_row("Default timeline algorithm", settings.default_timeline_algorithm)
    table.add_row("DRY_RUN", str(settings.dry_run))
    table.add_row("Log Level", settings.log_level)

    console.print(table)


@app.command("version")
def show_version() -> None:
    """Show version information."""
    rprint(f"[bold]courseplan[/bold] v{__version__}")
    rprint("  Question bundle assignment and personalized timelines")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
