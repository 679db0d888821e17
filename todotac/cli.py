"""
TodoTac CLI - Command-line interface for the engine.

Usage:
    todotac serve [--host H] [--port P]     Run the HTTP API
    todotac play [--offline]                Play a game in the terminal
    todotac themes                          List themes and difficulties
"""

import argparse
import asyncio
import sys

from . import config


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="TodoTac - Todo Tic-Tac-Toe",
        prog="todotac",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: TODOTAC_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play in the terminal")
    play_parser.add_argument("--offline", action="store_true", help="Use the offline oracles")
    play_parser.add_argument("--theme", default=None, help="Theme name")
    play_parser.add_argument("--difficulty", default=None, help="Easy, Medium or Hard")

    subparsers.add_parser("themes", help="List themes and difficulties")

    args = parser.parse_args()
    config.configure_logging(args.log_level)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "play":
        cmd_play(args)
    elif args.command == "themes":
        cmd_themes(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "todotac.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=(args.log_level or config.TODOTAC_LOG_LEVEL).lower(),
    )


def cmd_themes(args):
    """List themes and difficulties."""
    from .engine_core.state import DEFAULT_THEME, THEMES, Difficulty

    print("Themes:")
    for theme in THEMES:
        marker = " (default)" if theme == DEFAULT_THEME else ""
        print(f"  - {theme}{marker}")
    print("\nDifficulties:")
    for difficulty in Difficulty:
        print(f"  - {difficulty.value}: {difficulty.effort}")


def cmd_play(args):
    """Play one or more games in the terminal."""
    from .errors import OracleError
    from .oracles import create_oracles

    try:
        task_oracle, move_oracle = create_oracles("offline" if args.offline else None)
    except OracleError as e:
        print(f"Error: {e}")
        print("Use --offline to play without an API key.")
        sys.exit(1)

    try:
        asyncio.run(_play(task_oracle, move_oracle, args.theme, args.difficulty))
    except (KeyboardInterrupt, EOFError):
        print("\nBye!")


def _print_board(board):
    rows = []
    for row in range(3):
        cells = [
            board[row * 3 + col].value if board[row * 3 + col] else str(row * 3 + col)
            for col in range(3)
        ]
        rows.append(" " + " | ".join(cells))
    print("\n" + "\n---+---+---\n".join(rows) + "\n")


def rejection_message(board, index: int, last_error: str | None) -> str:
    """Explain a refused square, given the board as it was before the request."""
    from .engine_core.state import is_valid_index

    if not is_valid_index(index) or board[index] is not None:
        return "You can't claim that square."
    if last_error:
        return f"Could not get a task: {last_error}"
    return "You can't claim that square."


async def _ask(prompt: str) -> str:
    return (await asyncio.to_thread(input, prompt)).strip().lower()


async def _play(task_oracle, move_oracle, theme, difficulty):
    from .engine_core.state import Outcome
    from .session import GameSession, SessionPhase

    session = GameSession(task_oracle, move_oracle, auto_opponent=False)
    try:
        session.configure(theme=theme, difficulty=difficulty)
    except ValueError as e:
        print(f"Error: {e}")
        return

    while True:
        session.start()
        print(f"\nTheme: {session.theme} | Difficulty: {session.difficulty.value}")
        print("You are X. Pick a square (0-8), 'r' to restart, 'q' to quit.")

        while session.phase is not SessionPhase.FINISHED:
            _print_board(session.board)

            if session.phase is SessionPhase.OPPONENT_TURN:
                print("Opponent is thinking...")
                if not await session.run_opponent_turn():
                    print(f"Opponent failed: {session.last_error}")
                    if await _ask("Retry? [Y/n] ") == "n":
                        return
                    continue
                print(f"Opponent: \"{session.opponent_reasoning}\"")
                continue

            choice = await _ask("Square: ")
            if choice == "q":
                return
            if choice == "r":
                session.reset()
                session.configure(theme=theme, difficulty=difficulty)
                break
            if not choice.isdigit():
                continue

            index = int(choice)
            board = session.board
            if not await session.request_task(index):
                print(rejection_message(board, index, session.last_error))
                continue

            print(f"\nQuest for square {index}: \"{session.tasks[index].description}\"")
            if await _ask("Done? [y/N] ") == "y":
                session.complete_task(index)
            else:
                session.cancel_task(index)

        if session.phase is SessionPhase.NOT_STARTED:
            continue

        if session.phase is SessionPhase.FINISHED:
            _print_board(session.board)
            if session.outcome is Outcome.DRAW:
                print("It's a tie!")
            elif session.outcome is Outcome.X:
                print("You won!")
            else:
                print("The opponent won!")

        if await _ask("Play again? [y/N] ") != "y":
            return


if __name__ == "__main__":
    main()
