"""Rich-powered terminal loop for playing a WhoCast game.

The loop renders the current phase, reads one command per turn from an
injectable input provider and forwards it to a :class:`GameSession`. Keeping
input behind a callable lets tests script a full play-through against a
recording console.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Literal, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .directory import FriendDirectory
from .errors import ConfigError, WhoCastError
from .game import GameSession, GameState
from .models import FRIENDS_PER_QUIZ, Friend, Phase
from .results import GameSummary, render_share_text, summarize

InputProvider = Callable[[], str]
CommandType = Literal["toggle", "search", "start", "answer", "quit", "reset"]

# Rows listed on the selection screen at once.
PAGE_SIZE = 15


@dataclass(frozen=True)
class SessionCommand:
    type: CommandType
    value: Optional[str] = None
    number: Optional[int] = None


@dataclass(frozen=True)
class ShareOptions:
    app_name: str = "WhoCast"
    concise_limit: int = 320
    detailed_limit: int = 1024


def parse_command(raw: Optional[str], phase: Phase) -> Optional[SessionCommand]:
    """Turn one line of console input into a command for ``phase``."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    if lowered in {"r", "reset"}:
        return SessionCommand("reset")
    if phase is Phase.SELECTING:
        if lowered in {"start", "go"}:
            return SessionCommand("start")
        if lowered.startswith("/"):
            return SessionCommand("search", value=text[1:].strip())
        if text.isdigit():
            return SessionCommand("toggle", number=int(text))
        return None
    if phase is Phase.PLAYING and text.isdigit():
        return SessionCommand("answer", number=int(text))
    return None


def run_game_session(
    session: GameSession,
    directory: FriendDirectory,
    console: Console,
    input_provider: InputProvider,
    *,
    share: ShareOptions = ShareOptions(),
) -> Optional[GameSummary]:
    """Play until the quiz finishes or the player quits.

    Returns the summary of a finished game, or ``None`` when the player quit
    or input ran out.
    """

    visible: List[Friend] = list(directory.friends)
    while True:
        state = session.state
        if state.phase is Phase.FINISHED:
            summary = summarize(state)
            _render_summary(console, summary, share)
            return summary

        if state.phase is Phase.SELECTING:
            _render_selection(console, state, visible)
        else:
            _render_question(console, state)

        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            return None
        command = parse_command(raw, state.phase)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("[bold yellow]Leaving without finishing.[/]")
            return None
        if command.type == "reset":
            session.reset()
            visible = list(directory.friends)
            continue
        if command.type == "search":
            visible = directory.search(command.value)
            if not visible:
                console.print("[yellow]No friends match that search.[/]")
                visible = list(directory.friends)
            continue
        if command.type == "toggle":
            _toggle(console, session, visible, command.number)
            continue
        if command.type == "start":
            _start(console, session)
            continue
        if command.type == "answer":
            _answer(console, session, command.number)


def _toggle(
    console: Console,
    session: GameSession,
    visible: List[Friend],
    number: Optional[int],
) -> None:
    if number is None or not 1 <= number <= min(len(visible), PAGE_SIZE):
        console.print("[red]Pick a number from the list.[/]")
        return
    before = session.state
    after = session.toggle_friend(visible[number - 1])
    if after is before:
        console.print(
            f"[yellow]You can pick at most {FRIENDS_PER_QUIZ} friends.[/]"
        )


def _start(console: Console, session: GameSession) -> None:
    state = session.state
    if not state.ready_to_start:
        console.print(
            f"[red]Select exactly {FRIENDS_PER_QUIZ} friends first "
            f"({len(state.selected_friends)}/{FRIENDS_PER_QUIZ}).[/]"
        )
        return
    try:
        with console.status("Fetching casts…"):
            session.start_quiz()
    except ConfigError:
        raise
    except WhoCastError as exc:
        console.print(Panel(str(exc), title="Could not start", border_style="red"))


def _answer(console: Console, session: GameSession, number: Optional[int]) -> None:
    question = session.state.current_question
    if question is None or number is None:
        return
    if not 1 <= number <= len(question.options):
        console.print("[red]Pick one of the listed friends.[/]")
        return
    choice = question.options[number - 1]
    session.submit_answer(choice)
    if question.is_correct(choice.id):
        console.print("[bold green]Correct![/]")
    else:
        console.print(
            f"[bold red]Nope[/], that was {question.correct_friend.handle}."
        )


def _render_selection(
    console: Console, state: GameState, visible: List[Friend]
) -> None:
    console.print()
    console.rule(
        Text(
            f"Pick {FRIENDS_PER_QUIZ} friends "
            f"({len(state.selected_friends)}/{FRIENDS_PER_QUIZ} selected)",
            style="bold cyan",
        )
    )
    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Friend")
    for index, friend in enumerate(visible[:PAGE_SIZE], start=1):
        label = Text(f"{friend.display_name} ")
        label.append(friend.handle, style="dim")
        if state.is_selected(friend):
            label.stylize("bold green")
            label = Text("✓ ") + label
        table.add_row(str(index), label)
    console.print(table)
    if len(visible) > PAGE_SIZE:
        console.print(
            Text(
                f"{len(visible) - PAGE_SIZE} more; narrow the list with /search",
                style="dim",
            )
        )
    console.print(
        Text(
            "Commands: number (toggle), /text (search), start, reset, quit",
            style="dim",
        )
    )


def _render_question(console: Console, state: GameState) -> None:
    question = state.current_question
    if question is None:
        return
    console.print()
    console.rule(
        Text.assemble(
            (f"Question {state.current_index + 1}", "bold cyan"),
            (f" / {state.total_questions}", "dim"),
            (f"   score {state.score}", "green"),
        )
    )
    console.print(Panel(Text(question.post.text), title="Who cast this?"))
    table = Table(show_header=False, box=box.SIMPLE)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Friend")
    for index, friend in enumerate(question.options, start=1):
        table.add_row(str(index), f"{friend.display_name} ({friend.handle})")
    console.print(table)


def _render_summary(
    console: Console, summary: GameSummary, share: ShareOptions
) -> None:
    console.print()
    console.rule(Text("Quiz complete", style="bold magenta"))
    tier = summary.tier
    console.print(
        Text(
            f"{summary.score}/{summary.total} ({summary.percentage}%) "
            f"{tier.emoji} {tier.label} {tier.message}",
            style="bold",
        )
    )

    per_friend = Table(title="By friend", box=box.SIMPLE)
    per_friend.add_column("Friend")
    per_friend.add_column("Correct", justify="right")
    per_friend.add_column("Accuracy", justify="right")
    for stats in summary.per_friend:
        accuracy = "—" if stats.accuracy is None else f"{stats.accuracy}%"
        per_friend.add_row(
            stats.friend.handle,
            f"{stats.correct_for_friend}/{stats.total_for_friend}",
            accuracy,
        )
    console.print(per_friend)

    console.print(
        Panel(
            render_share_text(
                summary,
                app_name=share.app_name,
                limit=share.concise_limit,
            ),
            title="Share",
            border_style="green",
        )
    )
    console.print(
        Panel(
            render_share_text(
                summary,
                detailed=True,
                app_name=share.app_name,
                limit=share.detailed_limit,
            ),
            title="Details",
        )
    )
