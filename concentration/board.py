# concentration/board.py
from __future__ import annotations
import random
import string
from collections import Counter
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .errors import AlreadyRevealed, GameOver, InvalidDimension, OutOfBounds

Coord = Tuple[int, int]  # (row, col)

MIN_DIM = 2
MAX_DIM = 6
HIDDEN = "."


@dataclass(frozen=True)
class Card:
    row: int
    col: int
    letter: str
    hidden: bool = True

    @property
    def pos(self) -> Coord:
        return (self.row, self.col)


@dataclass(frozen=True)
class CardMatch:
    """
    Outcome of a reveal.

    `first` is the card that was pending before this reveal, or the revealed
    card itself when nothing was pending. `second` is only set once a pair is
    complete, which is what `ready` reports.
    """
    first: Card
    second: Optional[Card] = None
    match: bool = False

    @property
    def ready(self) -> bool:
        return self.first is not None and self.second is not None


def check_dimension(dimension: int) -> None:
    if dimension < MIN_DIM or dimension > MAX_DIM:
        raise InvalidDimension(f"Board size out of range: {dimension}")
    if dimension % 2 != 0:
        raise InvalidDimension(f"Board size not even: {dimension}")


def create_board(dimension: int, rng: Optional[random.Random] = None) -> "Board":
    """Build a freshly shuffled board with every card hidden."""
    check_dimension(dimension)
    letters = string.ascii_uppercase[: dimension * dimension // 2]
    values = [ch for ch in letters for _ in range(2)]
    (rng or random).shuffle(values)
    return Board(dimension, values)


class Board:
    """
    Mutable Board ADT for one game.

    Rep:
      - grid is dim x dim, dim even and within [MIN_DIM, MAX_DIM]
      - every letter appears on exactly two cards
      - pending, when set, is the position of a revealed card awaiting a partner
      - matches is even and never exceeds dim * dim
    Safety:
      - owned by a single connection handler, so no locking
    """

    def __init__(self, dimension: int, values: List[str]):
        check_dimension(dimension)
        if len(values) != dimension * dimension:
            raise ValueError("values length must equal dimension*dimension")
        bad = sorted(v for v, n in Counter(values).items() if n != 2)
        if bad:
            raise ValueError(f"every letter must appear exactly twice: {bad}")

        self._dim = dimension
        self._pending: Optional[Coord] = None
        self._matches = 0

        self._grid: List[List[Card]] = []
        i = 0
        for r in range(dimension):
            row_cards = []
            for c in range(dimension):
                row_cards.append(Card(row=r, col=c, letter=values[i]))
                i += 1
            self._grid.append(row_cards)

        self._check_rep()

    def _check_rep(self) -> None:
        assert len(self._grid) == self._dim
        for r in range(self._dim):
            assert len(self._grid[r]) == self._dim
        assert self._matches % 2 == 0
        assert 0 <= self._matches <= self._dim * self._dim
        if self._pending is not None:
            assert not self.card(*self._pending).hidden

    @property
    def dimension(self) -> int:
        return self._dim

    @property
    def matches(self) -> int:
        return self._matches

    @property
    def pending(self) -> Optional[Card]:
        if self._pending is None:
            return None
        return self.card(*self._pending)

    def card(self, row: int, col: int) -> Card:
        self._validate_coord((row, col))
        return self._grid[row][col]

    def reveal(self, row: int, col: int) -> CardMatch:
        if self.game_over():
            raise GameOver("Game is already over")
        requested = self.card(row, col)
        if not requested.hidden:
            raise AlreadyRevealed(f"Card already revealed: {row} {col}")

        requested = self._set_hidden(requested.pos, False)

        if self._pending is None:
            self._pending = requested.pos
            self._check_rep()
            return CardMatch(first=requested)

        first = self.card(*self._pending)
        self._pending = None
        self._check_rep()
        return CardMatch(first=first, second=requested, match=first.letter == requested.letter)

    def update_reveal_status(self, card_match: CardMatch) -> None:
        """Count a matched pair, or turn a mismatched pair face down again."""
        if not card_match.ready:
            raise ValueError("card match is not ready")
        if card_match.match:
            self._matches += 2
        else:
            self._set_hidden(card_match.first.pos, True)
            self._set_hidden(card_match.second.pos, True)
        self._check_rep()

    def game_over(self) -> bool:
        return self._matches == self._dim * self._dim

    def solution(self) -> str:
        return self._render(lambda card: card.letter)

    def __str__(self) -> str:
        return self._render(lambda card: HIDDEN if card.hidden else card.letter)

    def _render(self, show) -> str:
        lines = ["  " + "".join(str(c) for c in range(self._dim))]
        for r in range(self._dim):
            lines.append(f"{r}|" + "".join(show(card) for card in self._grid[r]))
        return "\n".join(lines) + "\n"

    def _set_hidden(self, pos: Coord, hidden: bool) -> Card:
        r, c = pos
        card = replace(self._grid[r][c], hidden=hidden)
        self._grid[r][c] = card
        return card

    def _validate_coord(self, pos: Coord) -> None:
        r, c = pos
        if not (0 <= r < self._dim and 0 <= c < self._dim):
            raise OutOfBounds(f"Invalid coordinates: {r} {c}")
