"""Command line entry point: ``whocast <command>``."""

from __future__ import annotations

import argparse
import random
import sys
from importlib import metadata
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich.console import Console
from rich.table import Table

from .config import WhoCastConfig, load_config, resolve_config_path, write_template
from .core.logging import configure_logger
from .directory import FriendDirectory
from .errors import ConfigError, WhoCastError
from .game import GameSession
from .models import FRIENDS_PER_QUIZ
from .neynar import NeynarClient, load_client
from .quiz import QuizGenerator, QuizSettings
from .session import ShareOptions, run_game_session

ClientFactory = Callable[[WhoCastConfig], NeynarClient]


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="whocast",
        description="Guess which of your Farcaster friends wrote the cast.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to whocast.toml (defaults to $WHOCAST_CONFIG or "
        "~/.whocast/config/whocast.toml).",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Echo log records to stderr."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sp_init = sub.add_parser("init", help="Write a whocast.toml template")
    sp_init.add_argument(
        "--force", action="store_true", help="Overwrite an existing file."
    )

    sp_friends = sub.add_parser("friends", help="List the accounts you follow")
    sp_friends.add_argument("--fid", type=int, required=True)
    sp_friends.add_argument("--query", "-q", help="Filter by name")
    sp_friends.add_argument(
        "--limit", type=int, default=50, help="Rows to print"
    )

    sp_play = sub.add_parser("play", help="Play a round in the terminal")
    sp_play.add_argument("--fid", type=int, required=True)
    sp_play.add_argument(
        "--questions", type=int, help="Override quiz.num_questions"
    )
    sp_play.add_argument(
        "--seed", type=int, help="Seed the random source for a repeatable quiz"
    )

    sub.add_parser("version", help="Print the installed version")
    return parser


def _cmd_init(args: argparse.Namespace, console: Console) -> int:
    path = resolve_config_path(explicit_path=args.config)
    try:
        write_template(path, overwrite=bool(args.force))
    except ConfigError as exc:
        console.print(f"[red]{exc}[/] (use --force to overwrite)")
        return 2
    console.print(f"Created template {path}")
    return 0


def _cmd_version(console: Console) -> int:
    try:
        version = metadata.version("whocast")
    except metadata.PackageNotFoundError:
        version = "unknown"
    console.print(version)
    return 0


def _cmd_friends(
    args: argparse.Namespace,
    config: WhoCastConfig,
    console: Console,
    client_factory: ClientFactory,
) -> int:
    with client_factory(config) as client:
        directory = _directory_for(client, args.fid, config)
        directory.load()
    friends = directory.search(args.query)
    if not friends:
        console.print("No friends match.")
        return 1
    table = Table(title=f"Following ({len(friends)} shown of {len(directory)})")
    table.add_column("fid", justify="right")
    table.add_column("Username")
    table.add_column("Display name")
    for friend in friends[: max(args.limit, 1)]:
        table.add_row(str(friend.id), friend.handle, friend.display_name)
    console.print(table)
    return 0


def _cmd_play(
    args: argparse.Namespace,
    config: WhoCastConfig,
    console: Console,
    client_factory: ClientFactory,
    input_provider: Callable[[], str],
) -> int:
    settings = QuizSettings.from_config(config.quiz)
    if args.questions is not None:
        if args.questions <= 0:
            console.print("[red]--questions must be positive.[/]")
            return 2
        settings = QuizSettings(
            num_questions=args.questions,
            posts_per_friend=settings.posts_per_friend,
            min_length=settings.min_length,
            max_length=settings.max_length,
            max_workers=settings.max_workers,
        )
    rng = random.Random(args.seed)
    with client_factory(config) as client:
        directory = _directory_for(client, args.fid, config)
        with console.status("Loading the accounts you follow…"):
            directory.load()
        if len(directory) < FRIENDS_PER_QUIZ:
            console.print(
                f"[red]You need to follow at least {FRIENDS_PER_QUIZ} accounts "
                f"(found {len(directory)}).[/]"
            )
            return 1
        session = GameSession(QuizGenerator(client, settings, rng=rng))
        summary = run_game_session(
            session,
            directory,
            console,
            input_provider,
            share=ShareOptions(
                app_name=config.share.app_name,
                concise_limit=config.share.concise_limit,
                detailed_limit=config.share.detailed_limit,
            ),
        )
    return 0 if summary is not None else 1


def _directory_for(
    client: NeynarClient, owner_id: int, config: WhoCastConfig
) -> FriendDirectory:
    return FriendDirectory(
        client,
        owner_id,
        target_count=config.directory.target_count,
        page_size=config.directory.page_size,
        max_pages=config.directory.max_pages,
    )


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    console: Optional[Console] = None,
    client_factory: Optional[ClientFactory] = None,
    input_provider: Optional[Callable[[], str]] = None,
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    console = console or Console()

    if args.command == "version":
        return _cmd_version(console)
    if args.command == "init":
        return _cmd_init(args, console)

    try:
        config = load_config(explicit_path=args.config)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/] {exc}")
        return 2

    logger, _ = configure_logger(
        "whocast",
        log_dir=config.log_dir,
        level=config.logging.level,
        verbose=bool(args.verbose or config.logging.verbose),
    )
    logger.debug("whocast CLI invoked", extra={"command": args.command})

    factory = client_factory or (lambda cfg: load_client(cfg.neynar))
    try:
        if args.command == "friends":
            return _cmd_friends(args, config, console, factory)
        if args.command == "play":
            return _cmd_play(
                args,
                config,
                console,
                factory,
                input_provider or (lambda: console.input("> ")),
            )
    except ConfigError as exc:
        logger.error("Configuration error", extra={"error": str(exc)})
        console.print(f"[red]Configuration error:[/] {exc}")
        return 2
    except WhoCastError as exc:
        logger.error("Command failed", extra={"error": str(exc)})
        console.print(f"[red]{exc}[/]")
        return 1
    except ValueError as exc:
        console.print(f"[red]{exc}[/]")
        return 2
    parser.print_help()  # pragma: no cover - argparse enforces a command
    return 2


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    sys.exit(main())
