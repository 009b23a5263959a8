import typer
from rich.console import Console
from rich.table import Table
from typing import Optional
from pathlib import Path
import json

from study_engine.database import SessionLocal, init_db
from study_engine.crud import add_concepts, get_study_sessions
from study_engine.exceptions import PersistenceFailedError, SessionUnavailableError
from study_engine.logging import setup_logging
from study_engine.schemas import Concept, ResponseQuality, SessionState, StudyIntensity, StudyMode
from study_engine.service import StudyService

app = typer.Typer(help="Study Engine CLI - spaced repetition study sessions")
console = Console()

def get_service() -> StudyService:
    return StudyService.from_session_factory(SessionLocal)

def format_date(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "now"

@app.callback()
def main(log_level: Optional[str] = typer.Option(None, help="Log level (DEBUG, INFO, WARNING, ERROR)")):
    setup_logging(log_level=log_level or "WARNING")

@app.command()
def init():
    """Initialize database tables"""
    init_db()
    console.print("[green]✓[/green] Database initialized successfully!")

@app.command()
def reset_db():
    """Delete all data and reinitialize database (WARNING: irreversible!)"""
    confirm = typer.confirm("⚠️  This will DELETE ALL DATA. Are you sure?")
    if not confirm:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    from study_engine.database import engine, Base
    import study_engine.models  # noqa: F401
    console.print("[yellow]Dropping all tables...[/yellow]")
    Base.metadata.drop_all(bind=engine)
    console.print("[yellow]Recreating tables...[/yellow]")
    Base.metadata.create_all(bind=engine)
    console.print("[green]✓[/green] Database reset complete! All data deleted.")

@app.command()
def import_concepts(
    notebook_id: str = typer.Option(..., prompt="Notebook ID"),
    file_path: Path = typer.Option(..., prompt="Concepts file (.json)", exists=True, dir_okay=False)
):
    """Load concepts into a notebook from a JSON list of {id, term, definition}"""
    items = json.loads(file_path.read_text(encoding="utf-8"))
    concepts = [Concept(notebook_id=notebook_id, **item) for item in items]

    db = SessionLocal()
    try:
        added = add_concepts(db, notebook_id, concepts)
        console.print(f"[green]✓[/green] Added {added} concepts to notebook {notebook_id}")
        if added < len(concepts):
            console.print(f"[dim]{len(concepts) - added} already present, skipped[/dim]")
    finally:
        db.close()

@app.command()
def availability(
    user_id: str = typer.Option(..., prompt="User ID"),
    notebook_id: str = typer.Option(..., prompt="Notebook ID")
):
    """Show which study modes are open for a notebook"""
    result = get_service().get_availability(user_id, notebook_id)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Mode", style="cyan")
    table.add_column("Available", style="green")
    table.add_column("Next available", style="yellow")

    table.add_row("Smart study", "yes" if result.can_smart_study else "no", format_date(result.next_smart_study_date))
    table.add_row("Free study", "yes" if result.can_free_study else "no", format_date(result.next_free_study_date))
    table.add_row("Quiz", "yes" if result.can_quiz else "no", format_date(result.next_quiz_date))

    console.print(table)
    console.print(f"  Concepts ready for smart study: {result.reviewable_count}")

@app.command()
def study(
    user_id: str = typer.Option(..., prompt="User ID"),
    notebook_id: str = typer.Option(..., prompt="Notebook ID"),
    mode: StudyMode = typer.Option(StudyMode.SMART, help="smart, free or quiz"),
    intensity: StudyIntensity = typer.Option(StudyIntensity.PROGRESS, help="warm_up, progress or rocket")
):
    """Run an interactive study session"""
    service = get_service()
    try:
        runtime = service.start_session(user_id, notebook_id, mode, intensity)
    except SessionUnavailableError as e:
        console.print(f"[yellow]{e}[/yellow]")
        return
    except PersistenceFailedError as e:
        console.print(f"[red]✗[/red] Could not start the session, try again: {e}")
        raise typer.Exit(code=1)

    console.print(f"\n[bold]{mode.value.title()} session started with {len(runtime.concepts)} concepts[/bold]")
    console.print("[dim]Answer m (mastered) or r (review later)[/dim]\n")

    try:
        while runtime.state in (SessionState.ACTIVE, SessionState.IMMEDIATE_REVIEW):
            concept = runtime.current_concept
            if runtime.state is SessionState.IMMEDIATE_REVIEW:
                console.print(f"[magenta]Review pass {runtime.pass_number}[/magenta]")
            console.print(f"[cyan]{concept.term or concept.id}[/cyan]")
            typer.prompt("Press enter to show the definition", default="", show_default=False)
            console.print(f"  {concept.definition or '-'}")

            answer = typer.prompt("Mastered? (m/r)", default="m")
            quality = ResponseQuality.REVIEW_LATER if answer.strip().lower().startswith("r") else ResponseQuality.MASTERED
            service.record_response(runtime.session_id, concept.id, quality)
    except PersistenceFailedError as e:
        console.print(f"[red]✗[/red] Could not save the session: {e}")
        raise typer.Exit(code=1)

    metrics = runtime.metrics
    console.print(f"\n[green]✓[/green] Session complete!")
    console.print(f"  Mastered: {metrics.concepts_dominados}")
    console.print(f"  To review: {metrics.conceptos_no_dominados}")
    console.print(f"  Time spent: {metrics.time_spent // 60} min {metrics.time_spent % 60} s")
    if runtime.valid is False:
        console.print("[yellow]  Session too short to count towards your score[/yellow]")
    if runtime.quiz_result:
        console.print(f"  Quiz score: {runtime.quiz_result['finalScore']} ({runtime.quiz_result['baseScore']} correct)")

    if runtime.state is SessionState.AWAITING_VALIDATION:
        score = typer.prompt("Mini quiz score (0-10)", type=float)
        try:
            service.submit_validation(runtime.session_id, score)
        except PersistenceFailedError as e:
            console.print(f"[red]✗[/red] Could not save the validation: {e}")
            raise typer.Exit(code=1)
        if runtime.validated:
            console.print(f"[green]✓[/green] Validated with {score}/10, review schedule updated")
        else:
            console.print(f"[yellow]Validation failed with {score}/10, schedule unchanged[/yellow]")

@app.command()
def stats(
    user_id: str = typer.Option(..., prompt="User ID"),
    notebook_id: str = typer.Option(..., prompt="Notebook ID")
):
    """View learning statistics and recent sessions for a notebook"""
    dashboard = get_service().get_dashboard(user_id, notebook_id)
    learning = dashboard["stats"]

    console.print(f"\n[bold]Learning Progress - notebook {notebook_id}[/bold]\n")
    console.print(f"[cyan]Statistics:[/cyan]")
    console.print(f"  Concepts tracked: {learning['total_concepts']}")
    console.print(f"  Ready for review: {learning['ready_for_review']}")
    console.print(f"  Due today: {learning['due_today']}")
    console.print(f"  Due tomorrow: {learning['due_tomorrow']}")
    console.print(f"  Average ease: {learning['average_ease_factor']:.2f}")
    console.print(f"  Average interval: {learning['average_interval']:.1f} days")
    console.print(f"  Best quiz score: {dashboard['max_quiz_score']:.0f}")
    console.print(f"  General score: {dashboard['general_score']:.0f}")

    db = SessionLocal()
    try:
        sessions = get_study_sessions(db, user_id, notebook_id, limit=5)
    finally:
        db.close()

    if sessions:
        console.print(f"\n[cyan]Recent Study Sessions:[/cyan]")
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Started", style="cyan")
        table.add_column("Mode", style="green")
        table.add_column("Concepts", justify="right")
        table.add_column("Mastered", justify="right")
        table.add_column("Validated", style="yellow")

        for session in sessions:
            details = session.detailed_results or {}
            validated = "-" if session.validated is None else ("yes" if session.validated else "no")
            table.add_row(
                session.start_time.strftime("%Y-%m-%d %H:%M"),
                session.mode,
                str(len(session.concepts or [])),
                str(details.get("conceptsDominados", "-")) if session.end_time else "unfinished",
                validated
            )
        console.print(table)

if __name__ == "__main__":
    app()
