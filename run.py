#!/usr/bin/env python3
"""
Command-Line Interface for rookmove
-----------------------------------
Pick a move for a position, play a full game between two AI levels, or check
that the configured UCI engine completes its handshake.
"""

import argparse
import asyncio
import logging
import sys

import chess

from rookmove.engine.dispatcher import MoveDispatcher
from rookmove.engine.errors import RookMoveError
from rookmove.engine.session import EngineSession
from rookmove.play.game_loop import GameConfig, GameLoop
from rookmove.play.worker import AIPlayer
from rookmove.utils.config_loader import default_config, load_config
from rookmove.utils.config_schema import AILevel, custom_settings

logger = logging.getLogger("rookmove")


def setup_logging(config):
    log_cfg = config.get("logging", {})
    logging.basicConfig(
        level=getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO),
        format=log_cfg.get("format", "%(asctime)s - %(levelname)s - %(message)s"),
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    if log_cfg.get("quiet", True):
        for noisy in ("asyncio", "chess.engine"):
            logging.getLogger(noisy).setLevel(logging.ERROR)


async def test_environment(config):
    """
    Start the configured engine and complete the UCI handshake.
    """
    print("Testing engine handshake...")
    session = EngineSession.from_config(config)
    try:
        await session.initialize()
        print(f"✓ Engine ready ({config['engine']['path']})")
    finally:
        await session.aclose()


async def pick_move(config, args):
    """Entry point for the 'move' subcommand."""
    custom = None
    if args.level == AILevel.CUSTOM.value:
        custom = custom_settings(args.depth, args.time).model_dump(exclude={"level"}, exclude_none=True)

    dispatcher = MoveDispatcher.from_config(config)
    player = AIPlayer(dispatcher, args.level, custom_settings=custom, minimum_delay_ms=args.delay, config=config)
    try:
        if not await player.ensure_ready():
            print(f"✗ Engine unavailable: {player.error}")
            return 1
        move = await player.select_move(chess.Board(args.fen))
        if move is None:
            print(f"✗ {player.error}")
            return 1
        print(move.uci())
        return 0
    finally:
        await dispatcher.aclose()


async def play_game(config, args):
    """Entry point for the 'play' subcommand (AI vs AI)."""
    dispatcher = MoveDispatcher.from_config(config)
    player = AIPlayer(
        dispatcher,
        levels={chess.WHITE: args.white, chess.BLACK: args.black},
        minimum_delay_ms=args.delay,
        config=config,
    )
    try:
        if not await player.ensure_ready():
            print(f"✗ Engine unavailable: {player.error}")
            return 1
        loop = GameLoop(player, player, GameConfig(start_fen=args.fen, max_moves=args.max_moves))
        state = await loop.run()
        print(" ".join(state.moves))
        print(f"Result: {state.result}" + (f" ({state.termination})" if state.termination else ""))
        if state.error:
            print(f"Stopped: {state.error}")
        return 0
    finally:
        await dispatcher.aclose()


def main():
    """
    Main function to parse arguments and run commands.
    """
    levels = [level.value for level in AILevel]
    parser = argparse.ArgumentParser(description="rookmove CLI")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to the configuration file (defaults are used when omitted).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("test_env", help="Check that the engine completes the UCI handshake.")

    move_parser = subparsers.add_parser("move", help="Pick a move for a position.")
    move_parser.add_argument("--fen", type=str, default=chess.STARTING_FEN, help="Position in FEN.")
    move_parser.add_argument("--level", type=str, default=None, choices=levels, help="AI level (default from config).")
    move_parser.add_argument("--depth", type=int, default=None, help="Search depth (custom level).")
    move_parser.add_argument("--time", type=int, default=None, help="Search time in ms (custom level).")
    move_parser.add_argument("--delay", type=int, default=None, help="Minimum thinking time in ms.")

    play_parser = subparsers.add_parser("play", help="Play a game between two AI levels.")
    play_parser.add_argument("--white", type=str, default="medium", choices=levels)
    play_parser.add_argument("--black", type=str, default="medium", choices=levels)
    play_parser.add_argument("--fen", type=str, default=chess.STARTING_FEN, help="Starting position.")
    play_parser.add_argument("--max-moves", type=int, default=200, help="Stop after this many plies.")
    play_parser.add_argument("--delay", type=int, default=0, help="Minimum thinking time in ms.")

    args = parser.parse_args()
    config = load_config(args.config) if args.config else default_config()
    setup_logging(config)

    try:
        if args.command == "test_env":
            asyncio.run(test_environment(config))
            code = 0
        elif args.command == "move":
            code = asyncio.run(pick_move(config, args))
        else:
            code = asyncio.run(play_game(config, args))
    except (RookMoveError, FileNotFoundError) as e:
        print(f"✗ {e}")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
