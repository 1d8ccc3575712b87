import argparse
import asyncio
from typing import Optional

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from systems.pairvote import build_session, config_from_env, in_memory_store_from_file, postgrest_store_from_env
from vote_core.errors import InsufficientPopulation, PartialUpdate, VoteError
from vote_core.models.session_view import SessionView
from vote_core.session.vote_session import VoteSession

console = Console()


def render(view: SessionView) -> None:
    table = Table(title="Which one is more popular?", show_lines=True)
    table.add_column("#", justify="center")
    table.add_column("Item")
    table.add_column("Total votes", justify="right")
    table.add_column("Win ratio", justify="right")

    for idx, item in enumerate(view.items, start=1):
        table.add_row(
            str(idx),
            f"{item.id}\n[dim]{item.image_url}[/dim]",
            "" if item.votes is None else str(item.votes),
            item.win_ratio or "",
        )
    console.print(table)

    if view.outcome_message:
        console.print(f"[bold]{view.outcome_message}[/bold]")
    if view.error_message:
        console.print(f"[red]{view.error_message}[/red]")


async def play(session: VoteSession, rounds: Optional[int]) -> None:
    try:
        await session.start()
    except InsufficientPopulation:
        render(session.view())
        return

    played = 0
    while rounds is None or played < rounds:
        render(session.view())
        answer = Prompt.ask("Pick 1 or 2 (q to quit)", choices=["1", "2", "q"])
        if answer == "q":
            break

        try:
            await session.choose(int(answer) - 1)
        except PartialUpdate:
            render(session.view())
            if Prompt.ask("Retry the missing vote?", choices=["y", "n"], default="n") == "y":
                try:
                    await session.retry_pending()
                except VoteError as e:
                    console.print(f"[red]{session.error_message or e}[/red]")
        except VoteError as e:
            console.print(f"[red]{session.error_message or e}[/red]")
            continue

        render(session.view())
        played += 1

        try:
            await session.advance()
        except VoteError:
            render(session.view())
            break


def main():
    parser = argparse.ArgumentParser(description="Vote between two random items, one round at a time.")
    parser.add_argument("--items", type=str, default=None,
                        help="JSON file of items for an in-memory store (default: Supabase from env)")
    parser.add_argument("--rounds", type=int, default=None, help="Stop after this many rounds")
    parser.add_argument("--seed", type=int, default=None, help="Seed for pair sampling")
    args = parser.parse_args()

    cfg = config_from_env(random_seed=args.seed)
    store = in_memory_store_from_file(args.items) if args.items else postgrest_store_from_env(cfg)
    session = build_session(store, cfg)

    asyncio.run(play(session, args.rounds))


if __name__ == "__main__":
    main()
