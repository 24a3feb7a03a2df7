"""Interactive CLI application."""
import logging
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from exam_academy.clock import PolledClock
from exam_academy.config import get_setting, load_settings, set_setting
from exam_academy.dashboard import get_dashboard, get_readiness_color
from exam_academy.db import init_db
from exam_academy.exams import count_questions, list_exams
from exam_academy.exceptions import ExamAcademyError, InvalidInput
from exam_academy.importer import import_question_bank
from exam_academy.logging_config import configure_logging
from exam_academy.models import EXAM_MODES, Phase, QuizSettings
from exam_academy.questions import BankQuestionSource
from exam_academy.quiz import SqliteResultStore, get_history, load_in_progress
from exam_academy.review import get_weak_topics
from exam_academy.seed import is_seeded, seed_all
from exam_academy.session import ExamSession, default_time_limit, format_time

console = Console()
logger = logging.getLogger(__name__)

LETTERS = "abcdefghij"
EXAM_HELP = "[dim]letter=answer  x <letter>=strike  f=flag  n/p=next/prev  g <num>=go to  r=review  s=submit  q=save & exit[/dim]"
REVIEW_HELP = "[dim]<num>=revisit question  s=submit final answers  q=save & exit[/dim]"


def show_welcome():
    console.print(Panel(
        "[bold]Inspector Exam Academy[/bold]\n[dim]Certification Practice Exams[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("quiz", "Start a practice exam"),
        ("resume", "Resume your saved exam"),
        ("dashboard", "Readiness score + history"),
        ("review", "Drill weak areas"),
        ("history", "Past results"),
        ("exams", "Available certifications"),
        ("import", "Add questions from a JSON/YAML file"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def prompt_int(prompt: str, choices: list[str] | None = None, default: int | None = None) -> int:
    while True:
        raw = Prompt.ask(prompt, choices=choices, default=None if default is None else str(default))
        try:
            return int(raw)
        except (TypeError, ValueError):
            console.print("[red]Please enter a number.[/red]")


def option_for(session: ExamSession, letter: str) -> str:
    choices = session.current_question.choices
    index = LETTERS.find(letter)
    if index < 0 or index >= len(choices):
        raise InvalidInput(f"No option {letter!r} for this question")
    return choices[index]


def render_question(session: ExamSession) -> None:
    state = session.state
    question = session.current_question
    answer = session.current_answer
    title = f"Question {state.current_index + 1} of {state.total}"
    if answer.flagged:
        title += " [yellow](flagged)[/yellow]"
    if session.is_timed:
        color = "red" if session.time_left < 300 else "white"
        title += f"  [{color}]{format_time(session.time_left)}[/{color}]"
    console.print(Panel(escape(question.prompt), title=title, border_style="cyan"))
    for index, option in enumerate(question.choices):
        text = escape(option)
        if option in answer.struck_options:
            text = f"[strike dim]{text}[/strike dim]"
        elif answer.is_answered and option == question.answer:
            text = f"[green]{text}[/green]"
        elif answer.is_answered and option == answer.user_answer:
            text = f"[red]{text}[/red]"
        console.print(f"  [cyan]{LETTERS[index]})[/cyan] {text}")
    if answer.is_answered:
        if answer.user_answer == question.answer:
            console.print("\n[green]Correct![/green]")
        else:
            console.print(f"\n[red]Not quite.[/red] Answer: [green]{escape(question.answer)}[/green]")
        if question.reference:
            console.print(f"[dim]Reference: {escape(question.reference)}[/dim]")
        if question.explanation:
            console.print(f"[dim]{escape(question.explanation)}[/dim]")


def render_review(session: ExamSession) -> None:
    summary = session.review_summary()
    table = Table(title="Exam Review")
    table.add_column("Group")
    table.add_column("Count", justify="right")
    table.add_column("Questions")
    for label, indices, color in (
        ("Flagged for Review", summary.flagged, "yellow"),
        ("Unanswered", summary.unanswered, "red"),
        ("Answered", summary.answered, "green"),
    ):
        numbers = ", ".join(str(i + 1) for i in indices) or "None"
        table.add_row(f"[{color}]{label}[/{color}]", str(len(indices)), numbers)
    console.print(table)
    if session.is_timed:
        console.print(f"Time left: [bold]{format_time(session.time_left)}[/bold]")


def handle_exam_command(session: ExamSession, raw: str) -> str | None:
    """Apply one typed command to the session. Returns "quit" on save and exit."""
    parts = raw.strip().lower().split()
    if not parts:
        return None
    head = parts[0]
    if head == "q":
        return "quit"
    if head == "s":
        session.submit()
    elif head == "r":
        session.enter_review()
    elif head in ("n", "next"):
        session.navigate("next")
    elif head in ("p", "prev"):
        session.navigate("prev")
    elif head == "g" and len(parts) == 2 and parts[1].isdigit():
        session.navigate(int(parts[1]) - 1)
    elif head.isdigit() and session.phase is Phase.REVIEWING:
        session.navigate(int(head) - 1)
    elif head == "f":
        flagged = session.toggle_flag()
        console.print("[yellow]Flagged.[/yellow]" if flagged else "[dim]Flag removed.[/dim]")
    elif head == "x" and len(parts) == 2:
        session.toggle_strikethrough(option_for(session, parts[1]))
    elif len(head) == 1 and head in LETTERS:
        session.select_answer(option_for(session, head))
    else:
        console.print("[red]Unknown command.[/red]")
    return None


def run_exam(session: ExamSession, clock: PolledClock | None = None):
    """Drive a started session from the keyboard until submit or save."""
    while True:
        if clock is not None:
            clock.poll()
        if session.phase is Phase.SUBMITTED:
            break
        if session.phase is Phase.REVIEWING:
            render_review(session)
            console.print(REVIEW_HELP)
        else:
            render_question(session)
            console.print(EXAM_HELP)
        raw = Prompt.ask("\n[bold]>[/bold]", default="")
        if clock is not None:
            clock.poll()
        if session.phase is Phase.SUBMITTED:
            break
        try:
            action = handle_exam_command(session, raw)
        except ExamAcademyError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            continue
        if action == "quit":
            session.save_and_exit()
            console.print("[green]Exam saved. Use 'resume' to continue later.[/green]")
            return None
    if session.timed_out:
        console.print("[red]Time's up! Your exam has been submitted.[/red]")
    return session.result


def show_result(result) -> None:
    color = "green" if result.percentage >= 70 else "red"
    console.print(Panel(
        f"[bold]{result.score}/{result.total_questions}[/bold]  [{color}]{result.percentage:.1f}%[/{color}]",
        title=escape(result.exam_name), border_style=color,
    ))
    missed = [(i, ua) for i, ua in enumerate(result.user_answers, 1) if not ua.is_correct]
    if missed:
        table = Table(title="Questions to Review")
        table.add_column("#", justify="right")
        table.add_column("Your Answer")
        table.add_column("Correct Answer", style="green")
        table.add_column("Category", style="cyan")
        for number, ua in missed:
            table.add_row(str(number), escape(ua.user_answer), escape(ua.answer), escape(ua.category))
        console.print(table)


def make_session(db_path: str, exam_name: str, clock=None) -> ExamSession:
    store = SqliteResultStore(db_path)
    return ExamSession(
        exam_name=exam_name,
        result_store=store,
        snapshot_store=store,
        clock=clock,
        on_warning=lambda message: console.print(f"\n[bold yellow]{message}[/bold yellow]"),
    )


def run_quiz(db_path: str, quiz_settings: QuizSettings, seconds_per_question: int = 90, source=None):
    if load_in_progress(db_path) is not None:
        console.print("[yellow]Note: saving this exam will replace your previously saved one.[/yellow]")
    source = source or BankQuestionSource(db_path)
    topics = [t.strip() for t in quiz_settings.topics.split(",")] if quiz_settings.topics else None
    console.print(f"[dim]Preparing {quiz_settings.num_questions} {quiz_settings.exam_mode}-book questions...[/dim]")
    questions = source.generate(
        quiz_settings.exam_name, quiz_settings.num_questions, quiz_settings.exam_mode, topics,
    )
    set_setting(db_path, "last_exam", quiz_settings.exam_name)
    clock = PolledClock() if quiz_settings.is_timed else None
    session = make_session(db_path, quiz_settings.result_name, clock)
    timed_seconds = default_time_limit(len(questions), seconds_per_question) if quiz_settings.is_timed else None
    session.start(questions, timed_seconds)
    result = run_exam(session, clock)
    if result is not None:
        show_result(result)
    return result


def cmd_quiz(db_path: str, settings):
    exams = list_exams(db_path)
    if not exams:
        console.print("[yellow]No exams available.[/yellow]")
        return
    console.print("\n[bold]Practice Exam[/bold]")
    for i, exam in enumerate(exams, 1):
        console.print(f"  [cyan]{i}[/cyan]) {escape(exam.name)}")
    choice = prompt_int("Select exam", choices=[str(i) for i in range(1, len(exams) + 1)])
    mode = Prompt.ask("Exam mode", choices=list(EXAM_MODES), default="closed")
    count = prompt_int("Number of questions", default=settings.default_questions)
    timed = Prompt.ask("Timed?", choices=["y", "n"], default="n") == "y"
    quiz_settings = QuizSettings(
        exam_name=exams[choice - 1].name, num_questions=count, is_timed=timed, exam_mode=mode,
    )
    run_quiz(db_path, quiz_settings, settings.seconds_per_question)


def cmd_resume(db_path: str):
    snapshot = load_in_progress(db_path)
    if snapshot is None:
        console.print("[yellow]No saved exam to resume.[/yellow]")
        return None
    clock = PolledClock() if snapshot.get("time_left") else None
    store = SqliteResultStore(db_path)
    session = ExamSession.resume(
        snapshot, result_store=store, snapshot_store=store, clock=clock,
        on_warning=lambda message: console.print(f"\n[bold yellow]{message}[/bold yellow]"),
    )
    console.print(f"[green]Resuming {escape(session.exam_name)}[/green]")
    result = run_exam(session, clock)
    if result is not None:
        show_result(result)
    return result


def cmd_dashboard(db_path: str):
    data = get_dashboard(db_path)
    if not data["attempts"]:
        console.print("[yellow]You haven't completed any exams yet.[/yellow]")
        return
    score = data["readiness"]
    color = get_readiness_color(score)
    bar_filled = int(score / 5)
    bar = f"[{color}]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/{color}]"
    console.print(Panel("[bold]Performance Dashboard[/bold]", border_style="blue"))
    console.print(f"\n  Readiness: [bold]{score}%[/bold] {bar} [{color}]{data['label']}[/{color}]")
    console.print(f"  Exams: [bold]{data['attempts']}[/bold]  |  "
                  f"Average: [bold]{data['average_score']}%[/bold]  |  "
                  f"Passed: [bold]{data['passed']}[/bold]  |  "
                  f"Certifications practiced: [bold]{len(data['exams_practiced'])}[/bold]\n")
    if data["weak_topics"]:
        console.print("[bold]Areas for improvement:[/bold]")
        for topic in data["weak_topics"]:
            console.print(f"  [red]{topic['percentage']:.0f}%[/red] {escape(topic['category'])} ({topic['total']} questions)")
    else:
        console.print("[dim]Keep taking exams to unlock your weakness analysis.[/dim]")
    cmd_history(db_path, results=data["recent"])


def cmd_history(db_path: str, results=None):
    results = results if results is not None else get_history(db_path)
    if not results:
        console.print("[yellow]No results yet.[/yellow]")
        return
    table = Table(title="Exam History")
    table.add_column("Date")
    table.add_column("Exam")
    table.add_column("Score", justify="right")
    table.add_column("%", justify="right")
    for r in results:
        color = "green" if r.percentage >= 70 else "red"
        table.add_row(r.date[:10], escape(r.exam_name), f"{r.score}/{r.total_questions}", f"[{color}]{r.percentage:.0f}%[/{color}]")
    console.print(table)


def cmd_review(db_path: str, settings):
    console.print("\n[bold]Weak Area Review[/bold]\n")
    weak = get_weak_topics(get_history(db_path))
    if not weak:
        console.print("[green]No weak areas detected yet. Keep practicing![/green]")
        return None
    table = Table(title="Weakest Topics")
    table.add_column("Topic")
    table.add_column("Accuracy", justify="right")
    table.add_column("Questions Seen", justify="right")
    for w in weak:
        table.add_row(escape(w["category"]), f"{w['percentage']:.0f}%", str(w["total"]))
    console.print(table)
    if Prompt.ask("Start a 10-question drill on these topics?", choices=["y", "n"], default="y") != "y":
        return None
    exams = list_exams(db_path)
    exam_name = get_setting(db_path, "last_exam") or (exams[0].name if exams else "")
    quiz_settings = QuizSettings(
        exam_name=exam_name,
        num_questions=10,
        is_timed=False,
        # Both books: many weak categories only have closed-book questions.
        exam_mode="simulation",
        topics=", ".join(w["category"] for w in weak),
    )
    return run_quiz(db_path, quiz_settings, settings.seconds_per_question)


def cmd_exams(db_path: str):
    table = Table(title="Certifications")
    table.add_column("Exam", style="cyan")
    table.add_column("Questions", justify="right")
    for exam in list_exams(db_path):
        table.add_row(escape(exam.name), str(count_questions(db_path, exam.name)))
    console.print(table)


def cmd_import(db_path: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {escape(file_path)}[/red]")
        return
    result = import_question_bank(db_path, file_path)
    console.print(f"[green]Imported {result['imported']} questions from {escape(result['filename'])}[/green]"
                  + (f" [yellow]({result['skipped']} skipped)[/yellow]" if result["skipped"] else ""))


def main():
    settings = load_settings()
    configure_logging(settings.log_level)
    db_path = settings.db_path
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)
    if first_run:
        console.print("[green]Ready![/green]\n")

    show_welcome()
    if load_in_progress(db_path) is not None:
        console.print("[yellow]You have a saved exam. Type 'resume' to continue it.[/yellow]")

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="quiz").strip().lower()
        try:
            if choice == "quiz":
                cmd_quiz(db_path, settings)
            elif choice == "resume":
                cmd_resume(db_path)
            elif choice == "dashboard":
                cmd_dashboard(db_path)
            elif choice == "review":
                cmd_review(db_path, settings)
            elif choice == "history":
                cmd_history(db_path)
            elif choice == "exams":
                cmd_exams(db_path)
            elif choice == "import":
                cmd_import(db_path)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Good luck on your exam![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except ExamAcademyError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
        except Exception as e:
            logger.exception("Command %r failed", choice)
            console.print(f"[red]Error: {escape(str(e))}[/red]")


if __name__ == "__main__":
    main()
