"""Rock/Paper/Scissors rules."""

from __future__ import annotations

from enum import Enum, auto


class Guess(Enum):
    ROCK = auto()
    PAPER = auto()
    SCISSORS = auto()


class Outcome(Enum):
    WIN = auto()
    LOSE = auto()
    DRAW = auto()


# (winner, loser)
_BEATS = {
    (Guess.ROCK, Guess.SCISSORS),
    (Guess.SCISSORS, Guess.PAPER),
    (Guess.PAPER, Guess.ROCK),
}


def resolve(mine: Guess, theirs: Guess) -> Outcome:
    """Outcome from the perspective of whoever played `mine`."""
    if mine == theirs:
        return Outcome.DRAW
    return Outcome.WIN if (mine, theirs) in _BEATS else Outcome.LOSE
