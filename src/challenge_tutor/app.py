"""Interactive CLI application."""
import logging
import sys
import time

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.table import Table

from challenge_tutor.config import load_settings
from challenge_tutor.dashboard import get_accuracy_color, get_accuracy_label, get_study_stats
from challenge_tutor.db import init_db, DEFAULT_DB_PATH
from challenge_tutor.due import resolve_due_challenges
from challenge_tutor.errors import TutorError
from challenge_tutor.generator import create_note_with_challenges
from challenge_tutor.quiz import submit_answer
from challenge_tutor.streaks import validate_user_streak
from challenge_tutor.users import create_user, get_leaderboard, get_user_by_id

console = Console()

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """Raised when the user leaves a practice session early."""


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def session_prompt(text: str, **kwargs) -> str:
    answer = Prompt.ask(text, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(text: str, choices: list[str]) -> int:
    answer = Prompt.ask(text, choices=[*choices, *EXIT_WORDS])
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return int(answer)


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("practice", "Practice due challenges"),
        ("add", "Add a note and generate challenges"),
        ("dashboard", "XP, level and streak"),
        ("leaderboard", "Top learners"),
        ("login", "Switch user"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def ask_answer(challenge) -> str:
    """Prompt for an answer in the form the challenge type expects."""
    if challenge.type == "multiple-choice" and challenge.options:
        for i, option in enumerate(challenge.options, 1):
            console.print(f"  [cyan]{i})[/cyan] {option}")
        choice = session_int_prompt(
            "\nYour answer", choices=[str(i) for i in range(1, len(challenge.options) + 1)],
        )
        return challenge.options[choice - 1]
    if challenge.type == "true-false":
        return session_prompt("\nTrue or False", choices=["True", "False", *EXIT_WORDS])
    return session_prompt("\nYour answer")


def run_practice_session(db_path: str, user_id: str, due: list, settings) -> tuple[int, int]:
    if not due:
        console.print("[yellow]Nothing due right now![/yellow]")
        return 0, 0
    correct = xp = 0
    console.print(f"\n[bold]Practice[/bold] · {len(due)} challenges [dim](q to stop)[/dim]\n")
    for i, item in enumerate(due, 1):
        challenge = item.challenge
        console.print(Panel(challenge.question, title=f"{i}/{len(due)} · {challenge.difficulty}", border_style="cyan"))
        started = time.monotonic()
        answer = ask_answer(challenge)
        elapsed = time.monotonic() - started
        result = submit_answer(db_path, challenge.id, user_id, answer, elapsed, settings=settings)
        if result.correct:
            correct += 1
            xp += result.xp_awarded
            console.print(f"[green]Correct![/green] +{result.xp_awarded} XP")
        else:
            expected = challenge.answer_key.option_text(challenge.options)
            console.print(f"[red]Incorrect.[/red] Answer: [green]{expected}[/green]")
        if challenge.explanation:
            console.print(f"[dim]{challenge.explanation}[/dim]")
        status = "mastered" if result.mastered else f"next review {result.next_due_date:%Y-%m-%d}"
        console.print(f"[dim]{status} · streak {result.streak}[/dim]\n")
    console.print(f"[bold]Score: {correct}/{len(due)} ({correct/len(due)*100:.0f}%) · +{xp} XP[/bold]\n")
    return correct, len(due)


def cmd_login(db_path: str, settings) -> str:
    user_id = Prompt.ask("User name", default="me").strip()
    if get_user_by_id(db_path, user_id) is None:
        create_user(db_path, user_id, display_name=user_id)
        console.print(f"[green]Welcome, {user_id}![/green]")
    user = validate_user_streak(db_path, user_id, settings=settings)
    console.print(f"[dim]Level {user.level} · {user.xp} XP · streak {user.streak}[/dim]")
    return user_id


def cmd_add(db_path: str, user_id: str):
    title = Prompt.ask("Title")
    subject = Prompt.ask("Subject", default="") or None
    content = Prompt.ask("Content")
    difficulty = Prompt.ask("Difficulty", choices=["easy", "medium", "hard"], default="medium")
    count = IntPrompt.ask("Number of challenges", default=5)
    _, ids = create_note_with_challenges(
        db_path, user_id, title, content, subject=subject, difficulty=difficulty, count=count,
    )
    console.print(f"[green]Added '{title}' with {len(ids)} challenges.[/green]")


def cmd_practice(db_path: str, user_id: str, settings):
    due = resolve_due_challenges(db_path, user_id, limit=10)
    try:
        run_practice_session(db_path, user_id, due, settings)
    except SessionExitRequested:
        console.print("[dim]Session ended. Answers so far are saved.[/dim]")


def cmd_dashboard(db_path: str, user_id: str, settings):
    stats = get_study_stats(db_path, user_id, tz=settings.timezone)
    level = stats["level"]
    console.print(Panel(
        f"[bold]{stats['display_name']}[/bold]  ·  Level {level['level']}  ·  {level['xp']} XP  ·  "
        f"{stats['streak']} day streak",
        title="Dashboard", border_style="blue",
    ))

    bar_filled = int(level["percent"] / 5)
    bar = f"[cyan]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/cyan]"
    console.print(f"\n  Level {level['level'] + 1} in {level['to_next']} XP {bar} {level['percent']}%\n")

    score = stats["average_score"]
    color = get_accuracy_color(score)
    console.print(f"  Accuracy: [{color}]{score}% {get_accuracy_label(score)}[/{color}]  |  "
                  f"Completed: [bold]{stats['total_completed']}[/bold]  |  "
                  f"Attempts: [bold]{stats['total_attempts']}[/bold]  |  "
                  f"Today: [bold]{stats['today_completed']}[/bold] (+{stats['today_xp']} XP)")

    if stats["recent_days"]:
        table = Table(title="Recent Days")
        table.add_column("Date")
        table.add_column("Completed", justify="right")
        table.add_column("Correct", justify="right")
        table.add_column("XP", justify="right")
        for day in stats["recent_days"]:
            table.add_row(day.date, str(day.challenges_completed), str(day.correct_answers), str(day.xp_earned))
        console.print(table)


def cmd_leaderboard(db_path: str, settings):
    table = Table(title="Leaderboard")
    table.add_column("Rank", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Level", justify="right")
    table.add_column("XP", justify="right")
    table.add_column("Streak", justify="right")
    for entry in get_leaderboard(db_path, limit=settings.leaderboard_size):
        table.add_row(str(entry.rank), entry.display_name, str(entry.level), str(entry.xp), str(entry.streak))
    console.print(table)


def main():
    configure_logging(verbose="-v" in sys.argv[1:])
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    settings = load_settings(db_path)

    console.print(Panel("[bold]Challenge Tutor[/bold]\n[dim]Practice what you study[/dim]",
                        title="Welcome", border_style="blue"))
    user_id = cmd_login(db_path, settings)

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="practice").strip().lower()
        try:
            if choice == "practice":
                cmd_practice(db_path, user_id, settings)
            elif choice == "add":
                cmd_add(db_path, user_id)
            elif choice == "dashboard":
                cmd_dashboard(db_path, user_id, settings)
            elif choice == "leaderboard":
                cmd_leaderboard(db_path, settings)
            elif choice == "login":
                user_id = cmd_login(db_path, settings)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you tomorrow. Keep the streak going![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except TutorError as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
