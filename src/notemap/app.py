"""Interactive CLI application."""
import logging
import os
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.tree import Tree

from notemap.db import init_db, resolve_db_path
from notemap.dashboard import (
    get_mastery_color, get_mastery_label, get_review_stats, get_subjects_by_context,
    get_upcoming_reviews,
)
from notemap.importer import import_notes, read_mind_map
from notemap.models import MindMapNode, Subject, SUBJECT_CONTEXTS
from notemap.reminders import (
    get_reminder_settings, parse_reminder_time, pending_reminder_message, set_reminder,
    time_until_reminder,
)
from notemap.settings import get_review_batch_size, set_setting
from notemap.sm2 import Quality
from notemap.subjects import (
    StaleReviewError, create_subject, delete_subject, get_due_subjects, get_subject,
    list_subjects, record_review,
)

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")
RATING_PROMPT = "Rate your recall (3=hard, 4=medium, 5=easy)"


class SessionExitRequested(Exception):
    """User asked to leave the current session and return to the menu."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    # Exit words are accepted on top of the numeric choices
    answer = session_prompt(prompt, choices=list(choices) + list(EXIT_WORDS), show_choices=False)
    return int(answer)


def configure_logging() -> None:
    level = os.environ.get("NOTEMAP_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def show_welcome():
    console.print(Panel(
        "[bold]Notemap[/bold]\n[dim]Notes, mind maps and spaced repetition[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("add", "Write a new subject"),
        ("import", "Create a subject from a file"),
        ("library", "List all subjects"),
        ("view", "Show a subject"),
        ("review", "Review due subjects"),
        ("dashboard", "Review statistics"),
        ("settings", "Reminders and review options"),
        ("delete", "Delete a subject"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def build_mind_map_tree(node: MindMapNode, tree: Tree | None = None) -> Tree:
    label = f"[bold]{node.text}[/bold]" + (f" [dim]{node.description}[/dim]" if node.description else "")
    branch = Tree(label) if tree is None else tree.add(label)
    for child in node.children:
        build_mind_map_tree(child, branch)
    return branch


def format_interval(days: int) -> str:
    return f"{days} day" if days == 1 else f"{days} days"


def show_subject(subject: Subject) -> None:
    console.print(Panel(
        subject.raw_notes or "[dim]No notes[/dim]",
        title=f"{subject.title} [dim]({subject.context})[/dim]",
        border_style="cyan",
    ))
    if subject.mind_map:
        console.print(build_mind_map_tree(subject.mind_map))


def run_review_session(db_path: str, subjects: list[Subject]) -> int:
    """Walk through subjects, asking for a rating on each. Returns the number reviewed."""
    if not subjects:
        console.print("[yellow]Nothing to review right now![/yellow]")
        return 0
    console.print(f"\n[bold]Review Session[/bold] - {len(subjects)} subjects [dim](q to stop)[/dim]\n")
    reviewed = 0
    for i, subject in enumerate(subjects, 1):
        console.print(Panel(
            f"[bold]{subject.title}[/bold]\n[dim]Try to recall the key ideas before revealing.[/dim]",
            title=f"Subject {i}/{len(subjects)}", border_style="cyan",
        ))
        session_prompt("[dim]Press Enter to reveal your notes[/dim]", default="")
        show_subject(subject)
        quality = session_int_prompt(RATING_PROMPT, choices=[str(q.value) for q in Quality])
        try:
            updated = record_review(db_path, subject.id, quality, expected_version=subject.version)
        except StaleReviewError:
            console.print("[yellow]This subject was updated elsewhere, skipping.[/yellow]")
            continue
        reviewed += 1
        console.print(
            f"[green]Review saved ({Quality(quality).label}).[/green] "
            f"Next review in {format_interval(updated.interval_days)}.\n"
        )
    return reviewed


def select_subject(db_path: str) -> Subject | None:
    subject_id = Prompt.ask("Subject id")
    if not subject_id.isdigit():
        console.print("[red]Subject id must be a number.[/red]")
        return None
    subject = get_subject(db_path, int(subject_id))
    if subject is None:
        console.print(f"[red]No subject with id {subject_id}.[/red]")
    return subject


def cmd_add(db_path: str):
    title = Prompt.ask("Title")
    context = Prompt.ask("Context", choices=list(SUBJECT_CONTEXTS), default="idea")
    console.print("[dim]Enter your notes. Finish with an empty line.[/dim]")
    lines = []
    while True:
        line = Prompt.ask("", default="", show_default=False)
        if not line:
            break
        lines.append(line)
    mind_map_path = Prompt.ask("Mind map file (optional)", default="", show_default=False)
    mind_map = read_mind_map(mind_map_path) if mind_map_path else None
    subject = create_subject(db_path, title, "\n".join(lines), context=context, mind_map=mind_map)
    console.print(f"[green]Created subject {subject.id}: {subject.title}. First review tomorrow.[/green]")


def cmd_import(db_path: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    title = Prompt.ask("Title", default=Path(file_path).stem)
    mind_map_path = Prompt.ask("Mind map file (optional)", default="", show_default=False)
    subject = import_notes(db_path, file_path, title=title, mind_map_path=mind_map_path or None)
    console.print(
        f"[green]Imported {Path(file_path).name} ({len(subject.raw_notes)} chars) "
        f"→ subject {subject.id} ({subject.context})[/green]"
    )


def cmd_library(db_path: str):
    subjects = list_subjects(db_path)
    if not subjects:
        console.print("[yellow]Your library is empty. Use 'add' or 'import' to get started.[/yellow]")
        return
    table = Table(title="Library")
    table.add_column("Id", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Context")
    table.add_column("Next Review")
    table.add_column("Reviews", justify="right")
    table.add_column("Status")
    for s in subjects:
        color = get_mastery_color(s.ease_factor, s.repetitions)
        table.add_row(
            str(s.id),
            s.title,
            s.context,
            s.next_review_at.astimezone().strftime("%Y-%m-%d %H:%M"),
            str(s.repetitions),
            f"[{color}]{get_mastery_label(s.ease_factor, s.repetitions)}[/{color}]",
        )
    console.print(table)


def cmd_view(db_path: str):
    subject = select_subject(db_path)
    if subject:
        show_subject(subject)
        console.print(
            f"[dim]Ease {subject.ease_factor} · {subject.repetitions} reviews · "
            f"next {subject.next_review_at.astimezone():%Y-%m-%d %H:%M}[/dim]"
        )


def cmd_review(db_path: str):
    subjects = get_due_subjects(db_path, limit=get_review_batch_size(db_path))
    try:
        run_review_session(db_path, subjects)
    except SessionExitRequested:
        console.print("[dim]Review stopped. Progress so far is saved.[/dim]")


def cmd_dashboard(db_path: str):
    stats = get_review_stats(db_path)
    console.print(Panel(
        f"Subjects: [bold]{stats['total_subjects']}[/bold]  |  "
        f"Due now: [bold]{stats['due_now']}[/bold]  |  "
        f"Reviews: [bold]{stats['reviews_done']}[/bold]  |  "
        f"Avg ease: [bold]{stats['avg_ease_factor']}[/bold]",
        title="Review Dashboard", border_style="blue",
    ))

    table = Table(title="Next 7 Days")
    table.add_column("Date")
    table.add_column("Due", justify="right")
    for day in get_upcoming_reviews(db_path, days=7):
        table.add_row(day["date"], str(day["count"]))
    console.print(table)

    contexts = get_subjects_by_context(db_path)
    console.print("  " + "  ".join(f"{c}: [bold]{n}[/bold]" for c, n in contexts.items()))

    message = pending_reminder_message(db_path)
    if message:
        console.print(f"\n  [yellow]{message}[/yellow]")


def cmd_settings(db_path: str):
    reminder = get_reminder_settings(db_path)
    status = "on" if reminder["enabled"] else "off"
    console.print(f"Daily reminder: [bold]{reminder['time']}[/bold] ({status})")
    if reminder["enabled"]:
        wait = time_until_reminder(reminder["time"])
        console.print(f"[dim]Next reminder in {wait.seconds // 3600}h {wait.seconds % 3600 // 60}m[/dim]")
    enabled = Prompt.ask("Enable reminders?", choices=["y", "n"], default="y" if reminder["enabled"] else "n")
    time_str = Prompt.ask("Reminder time (HH:MM)", default=reminder["time"])
    batch = Prompt.ask("Subjects per review session", default=str(get_review_batch_size(db_path)))
    try:
        parse_reminder_time(time_str)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return
    if not batch.isdigit() or int(batch) < 1:
        console.print("[red]Batch size must be a positive number.[/red]")
        return
    set_reminder(db_path, time_str, enabled=enabled == "y")
    set_setting(db_path, "review_batch_size", batch)
    console.print("[green]Settings saved.[/green]")


def cmd_delete(db_path: str):
    subject = select_subject(db_path)
    if subject is None:
        return
    confirm = Prompt.ask(f"Delete '{subject.title}' and its review history?", choices=["y", "n"], default="n")
    if confirm == "y" and delete_subject(db_path, subject.id):
        console.print("[green]Subject deleted.[/green]")


COMMANDS = {
    "add": cmd_add,
    "import": cmd_import,
    "library": cmd_library,
    "view": cmd_view,
    "review": cmd_review,
    "dashboard": cmd_dashboard,
    "settings": cmd_settings,
    "delete": cmd_delete,
}


def main():
    configure_logging()
    db_path = resolve_db_path()
    init_db(db_path)

    show_welcome()
    message = pending_reminder_message(db_path)
    if message:
        console.print(f"[yellow]{message}[/yellow]")

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="review").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]See you at your next review![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(db_path)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
