"""Network-playable Concentration (memory matching) game."""

from .board import Board, Card, CardMatch, create_board
from .errors import (
    AlreadyRevealed,
    BoardError,
    ConcentrationError,
    ConfigError,
    GameOver,
    InvalidDimension,
    OutOfBounds,
    ProtocolError,
)

__all__ = [
    "Board",
    "Card",
    "CardMatch",
    "create_board",
    "AlreadyRevealed",
    "BoardError",
    "ConcentrationError",
    "ConfigError",
    "GameOver",
    "InvalidDimension",
    "OutOfBounds",
    "ProtocolError",
]
