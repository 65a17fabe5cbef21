"""peerduel entry point.

Usage:
    Host a game:    python -m src.main --host [PORT]
    Join a game:    python -m src.main --join 127.0.0.1:23457
    Pick the game:  python -m src.main --host 23457 --game rps
    Toggle fullscreen in-game: F11
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable

import pygame

from src.cancellation import CancelToken
from src.config import CONNECT_TIMEOUT_S, DEFAULT_PORT, SCREEN_HEIGHT, SCREEN_WIDTH
from src.coordinator import SessionCoordinator
from src.errors import CancelRequested, TransportIoError
from src.input.handler import PygameMoveSource
from src.input.source import InputKind, LocalMoveSource
from src.networking.channel import ByteChannel, accept_session, open_session
from src.networking.protocol import Role
from src.rendering.renderer import Renderer
from src.session.rock_paper_scissors import RockPaperScissorsSession
from src.session.tic_tac_toe import TicTacToeSession

logger = logging.getLogger(__name__)

GAMES = {
    "tictactoe": TicTacToeSession,
    "rps": RockPaperScissorsSession,
}


def main() -> None:
    parser = argparse.ArgumentParser(description="peerduel — two-player P2P games")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--host", type=int, nargs="?", const=DEFAULT_PORT, metavar="PORT",
        help=f"Wait for a peer on PORT (default {DEFAULT_PORT}; plays as server, moves first)",
    )
    group.add_argument(
        "--join", type=str, metavar="HOST:PORT",
        help="Join a peer at HOST:PORT (plays as client)",
    )
    parser.add_argument(
        "--game", choices=sorted(GAMES), default="tictactoe",
        help="Which game to play (default: tictactoe)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--fullscreen", action="store_true",
        help="Start in fullscreen mode (toggle with F11 in-game)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    if args.join is not None:
        address = parse_address(args.join)
        if address is None:
            print(f"Invalid address: {args.join}. Expected HOST:PORT")
            sys.exit(1)

    pygame.init()
    if args.fullscreen:
        screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
    else:
        screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT), pygame.RESIZABLE)
    pygame.display.set_caption(f"peerduel — {args.game}")

    renderer = Renderer(screen)
    source = PygameMoveSource()
    try:
        if args.host is not None:
            code = asyncio.run(_run_host(renderer, source, args.game, args.host))
        else:
            code = asyncio.run(_run_join(renderer, source, args.game, address))
    finally:
        pygame.quit()
    sys.exit(code)


def parse_address(addr: str) -> tuple[str, int] | None:
    """Split HOST:PORT. Returns None if it is not a valid address."""
    parts = addr.rsplit(":", 1)
    if len(parts) != 2 or not parts[0]:
        return None
    try:
        port = int(parts[1])
    except ValueError:
        return None
    if not 0 < port < 65536:
        return None
    return parts[0], port


async def _run_host(
    renderer: Renderer, source: LocalMoveSource, game: str, port: int,
) -> int:
    renderer.draw_waiting(None)
    try:
        channel = await _connect_or_quit(
            accept_session(port, on_listening=renderer.draw_waiting), source,
        )
    except TransportIoError as e:
        print(f"Could not host: {e}")
        return 1
    if channel is None:
        return 0
    return await _play(renderer, source, game, Role.SERVER, channel)


async def _run_join(
    renderer: Renderer, source: LocalMoveSource, game: str, address: tuple[str, int],
) -> int:
    host, port = address
    print(f"Connecting to {host}:{port}...")
    try:
        channel = await _connect_or_quit(
            open_session(host, port, CONNECT_TIMEOUT_S), source,
        )
    except TransportIoError as e:
        print(f"Connection failed: {e}")
        return 1
    if channel is None:
        return 0
    return await _play(renderer, source, game, Role.CLIENT, channel)


async def _connect_or_quit(
    connect: Awaitable[ByteChannel], source: LocalMoveSource,
) -> ByteChannel | None:
    """Wait for the connection while still honouring a quit key.

    Returns None if the player quit first.
    """
    token = CancelToken()

    async def watch_for_quit() -> None:
        while True:
            event = await source.next_event()
            if event is None or event.kind is InputKind.QUIT:
                token.cancel("quit")
                return

    watcher = asyncio.create_task(watch_for_quit())
    try:
        return await token.guard(connect)
    except CancelRequested:
        logger.info("Quit before a peer connected")
        return None
    finally:
        watcher.cancel()
        await asyncio.wait({watcher})


async def _play(
    renderer: Renderer,
    source: LocalMoveSource,
    game: str,
    role: Role,
    channel: ByteChannel,
) -> int:
    session = GAMES[game](role, renderer)
    coordinator = SessionCoordinator(session, channel, source, linger=True)
    outcome = await coordinator.run()
    print(f"Game over: {outcome.name.lower()}")
    if coordinator.failure is not None:
        # Aborted by the peer or the connection, not by the local player
        return 1
    return 0


if __name__ == "__main__":
    main()
