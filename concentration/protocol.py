"""Line-based wire protocol shared by the server and the client.

Every message is a single line of space separated tokens terminated by a
newline. The server greets with ``BOARD_DIM``; afterwards the client only ever
sends ``REVEAL`` and the server answers with the remaining messages.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .board import Card
from .errors import ProtocolError

ENCODING = "utf-8"
MAX_LINE = 1024  # characters per line, newline excluded

BOARD_DIM = "BOARD_DIM"
REVEAL = "REVEAL"
CARD = "CARD"
MATCH = "MATCH"
MISMATCH = "MISMATCH"
GAME_OVER = "GAME_OVER"
ERROR = "ERROR"

# number of integer arguments following each keyword
_ARITY = {
    BOARD_DIM: 1,
    REVEAL: 2,
    MATCH: 4,
    MISMATCH: 4,
    GAME_OVER: 0,
}


@dataclass(frozen=True)
class Reveal:
    row: int
    col: int


@dataclass(frozen=True)
class Message:
    """A parsed server message. `args` holds the integer arguments, `text` the rest."""
    kind: str
    args: Tuple[int, ...] = ()
    text: str = ""


def board_dim_msg(dimension: int) -> str:
    return f"{BOARD_DIM} {dimension}"


def reveal_msg(row: int, col: int) -> str:
    return f"{REVEAL} {row} {col}"


def card_msg(card: Card) -> str:
    return f"{CARD} {card.row} {card.col} {card.letter}"


def match_msg(first: Card, second: Card, match: bool) -> str:
    kind = MATCH if match else MISMATCH
    return f"{kind} {first.row} {first.col} {second.row} {second.col}"


def game_over_msg() -> str:
    return GAME_OVER


def error_msg(message: str) -> str:
    # keep the reply on one line whatever the message holds
    return f"{ERROR} {' '.join(str(message).split())}"


def _ints(tokens, line: str) -> Tuple[int, ...]:
    try:
        return tuple(int(t) for t in tokens)
    except ValueError:
        raise ProtocolError(f"Non-numeric argument: {line.strip()}") from None


def parse_request(line: str) -> Reveal:
    """Parse a client line; the only request the protocol knows is REVEAL."""
    parts = line.split()
    if not parts:
        raise ProtocolError("Empty command")
    if parts[0] != REVEAL:
        raise ProtocolError(f"Unknown command: {parts[0]}")
    if len(parts) != 1 + _ARITY[REVEAL]:
        raise ProtocolError(f"{REVEAL} expects 2 arguments, got {len(parts) - 1}")
    row, col = _ints(parts[1:], line)
    return Reveal(row, col)


def parse_response(line: str) -> Message:
    """Parse a server line into a Message."""
    parts = line.split()
    if not parts:
        raise ProtocolError("Empty message")
    kind = parts[0]

    if kind == ERROR:
        return Message(ERROR, text=" ".join(parts[1:]))

    if kind == CARD:
        if len(parts) != 4 or len(parts[3]) != 1:
            raise ProtocolError(f"Malformed message: {line.strip()}")
        return Message(CARD, _ints(parts[1:3], line), parts[3])

    if kind not in _ARITY or kind == REVEAL:
        raise ProtocolError(f"Unknown message: {kind}")
    if len(parts) != 1 + _ARITY[kind]:
        raise ProtocolError(f"Malformed message: {line.strip()}")
    return Message(kind, _ints(parts[1:], line))
