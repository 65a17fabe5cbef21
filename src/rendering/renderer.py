"""Game renderer — draws session snapshots with PyGame.

Tic-Tac-Toe: a status title above a 3x3 grid. The server's marks are X,
the client's O, whichever side is looking. On the local turn empty cells
show the key that claims them.

Rock/Paper/Scissors: a prompt, then a waiting line, then both guesses and
the outcome.
"""

from __future__ import annotations

import pygame

from src.config import (
    CELL_RENDER_SIZE,
    COLOR_ABORTED,
    COLOR_BG,
    COLOR_GRID,
    COLOR_HINT,
    COLOR_OPPONENT,
    COLOR_SELF,
    COLOR_TEXT,
    GRID_LINE_WIDTH,
    TITLE_HEIGHT,
)
from src.networking.protocol import Role
from src.session.base import RenderSink, SessionOutcome, SessionPhase
from src.session.rock_paper_scissors import ChoiceSnapshot
from src.session.tic_tac_toe import GridSnapshot
from src.simulation.grid import Field

QUIT_HINT = "<Q> Quit"


def mark_for(role: Role, field: Field) -> str:
    """Symbol for a cell as seen by the peer playing `role`."""
    if field is Field.EMPTY:
        return ""
    server_mark = (field is Field.SELF) == (role is Role.SERVER)
    return "X" if server_mark else "O"


def grid_title(snapshot: GridSnapshot) -> str:
    outcome = snapshot.outcome
    if outcome is None:
        if snapshot.phase is SessionPhase.AWAITING_HANDSHAKE:
            return "Waiting for opponent..."
        return "Your turn" if snapshot.local_turn else "Opponent's turn"
    if outcome is SessionOutcome.ABORTED:
        return f"Aborted: {snapshot.abort_reason}"
    if outcome is SessionOutcome.DRAW:
        return "Draw!"
    winner_role = snapshot.role if outcome is SessionOutcome.WON else _other(snapshot.role)
    return f"{'X' if winner_role is Role.SERVER else 'O'} wins!"


def choice_text(snapshot: ChoiceSnapshot) -> list[str]:
    if snapshot.phase is SessionPhase.AWAITING_HANDSHAKE:
        return ["Waiting for opponent..."]
    if snapshot.outcome is SessionOutcome.ABORTED:
        return [f"Aborted: {snapshot.abort_reason}"]
    if snapshot.outcome is None:
        if snapshot.phase is SessionPhase.CHOOSING:
            return ["Input your guess:", "Rock (1), Paper (2) or Scissors (3)?"]
        return [f"You chose {snapshot.mine.name.title()}",
                "Waiting for your opponent to respond"]
    verdict = {
        SessionOutcome.WON: "You won!",
        SessionOutcome.LOST: "You lost!",
        SessionOutcome.DRAW: "Draw!",
    }[snapshot.outcome]
    return [
        f"You: {snapshot.mine.name.title()}",
        f"Opponent: {snapshot.theirs.name.title()}",
        verdict,
    ]


def _other(role: Role) -> Role:
    return Role.CLIENT if role is Role.SERVER else Role.SERVER


class Renderer(RenderSink):
    """Draws snapshots to the screen and flips the display."""

    def __init__(self, screen: pygame.Surface) -> None:
        self._screen = screen
        self._font = pygame.font.SysFont("monospace", 22)
        self._mark_font = pygame.font.SysFont("monospace", 96, bold=True)
        self._hint_font = pygame.font.SysFont("monospace", 28)

    def render(self, snapshot: object) -> None:
        self._screen.fill(COLOR_BG)
        if isinstance(snapshot, GridSnapshot):
            self._draw_grid(snapshot)
        elif isinstance(snapshot, ChoiceSnapshot):
            self._draw_choice(snapshot)
        else:
            raise TypeError(f"Cannot render {type(snapshot).__name__}")
        self._draw_footer()
        pygame.display.flip()

    def draw_waiting(self, address: tuple[str, int] | None) -> None:
        """Draw the connection screen shown before a peer has joined."""
        self._screen.fill(COLOR_BG)
        lines = ["Waiting for connection..."]
        if address is not None:
            lines.append(f"Give your peer this address: {address[0]}:{address[1]}")
        self._draw_lines(lines, self._screen.get_height() // 2 - 20)
        self._draw_footer()
        pygame.display.flip()

    # ---- Tic-Tac-Toe ----

    def _draw_grid(self, snapshot: GridSnapshot) -> None:
        title_color = COLOR_ABORTED if snapshot.outcome is SessionOutcome.ABORTED else COLOR_TEXT
        title = self._font.render(grid_title(snapshot), True, title_color)
        self._screen.blit(title, title.get_rect(center=(self._screen.get_width() // 2, TITLE_HEIGHT // 2)))

        size = CELL_RENDER_SIZE
        left = (self._screen.get_width() - 3 * size) // 2
        top = TITLE_HEIGHT + 10

        for i in (1, 2):
            x = left + i * size
            y = top + i * size
            pygame.draw.line(self._screen, COLOR_GRID, (x, top), (x, top + 3 * size), GRID_LINE_WIDTH)
            pygame.draw.line(self._screen, COLOR_GRID, (left, y), (left + 3 * size, y), GRID_LINE_WIDTH)

        for index, field in enumerate(snapshot.cells):
            row, col = divmod(index, 3)
            center = (left + col * size + size // 2, top + row * size + size // 2)
            if field is Field.EMPTY:
                if snapshot.local_turn:
                    hint = self._hint_font.render(str(index + 1), True, COLOR_HINT)
                    self._screen.blit(hint, hint.get_rect(center=center))
                continue
            color = COLOR_SELF if field is Field.SELF else COLOR_OPPONENT
            mark = self._mark_font.render(mark_for(snapshot.role, field), True, color)
            self._screen.blit(mark, mark.get_rect(center=center))

    # ---- Rock/Paper/Scissors ----

    def _draw_choice(self, snapshot: ChoiceSnapshot) -> None:
        title = self._font.render("Rock, Paper, Scissors", True, COLOR_TEXT)
        self._screen.blit(title, title.get_rect(center=(self._screen.get_width() // 2, TITLE_HEIGHT // 2)))
        self._draw_lines(choice_text(snapshot), self._screen.get_height() // 2 - 40)

    # ---- Shared ----

    def _draw_lines(self, lines: list[str], y: int) -> None:
        cx = self._screen.get_width() // 2
        for line in lines:
            surf = self._font.render(line, True, COLOR_TEXT)
            self._screen.blit(surf, surf.get_rect(center=(cx, y)))
            y += 32

    def _draw_footer(self) -> None:
        surf = self._font.render(QUIT_HINT, True, COLOR_HINT)
        self._screen.blit(surf, (10, self._screen.get_height() - 32))
