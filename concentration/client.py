from __future__ import annotations
import argparse
import logging
import socket
import sys
import threading
from typing import Callable, List, Optional, Sequence

from . import protocol
from .board import HIDDEN
from .errors import ProtocolError

logger = logging.getLogger(__name__)

Subscriber = Callable[["ClientModel"], None]


class ClientModel:
    """
    Local mirror of one game, driven only by server messages.

    Views call subscribe() with a plain callback; every state change invokes
    each callback with the model.
    """

    def __init__(self):
        self.dimension = 0
        self.grid: List[List[str]] = []
        self.matches = 0  # matched pairs
        self.moves_made = 0
        self.game_over = False
        self.last_error: Optional[str] = None
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def _notify(self) -> None:
        for callback in self._subscribers:
            callback(self)

    def create_board(self, dimension: int) -> None:
        self.dimension = dimension
        self.grid = [[HIDDEN] * dimension for _ in range(dimension)]
        self._notify()

    def is_hidden(self, row: int, col: int) -> bool:
        return self.grid[row][col] == HIDDEN

    def _check_coord(self, row: int, col: int) -> None:
        if not (0 <= row < self.dimension and 0 <= col < self.dimension):
            raise IndexError(f"{row} {col}")

    def reveal_card(self, row: int, col: int, letter: str) -> None:
        self._check_coord(row, col)
        self.grid[row][col] = letter
        self.moves_made += 1
        self._notify()

    def hide_cards(self, r1: int, c1: int, r2: int, c2: int) -> None:
        self._check_coord(r1, c1)
        self._check_coord(r2, c2)
        self.grid[r1][c1] = HIDDEN
        self.grid[r2][c2] = HIDDEN
        self._notify()

    def record_match(self) -> None:
        self.matches += 1
        self._notify()

    def set_game_over(self) -> None:
        self.game_over = True
        self._notify()

    def record_error(self, message: str) -> None:
        self.last_error = message
        self._notify()

    def apply(self, line: str) -> protocol.Message:
        """Update the model from one server line."""
        msg = protocol.parse_response(line)
        try:
            if msg.kind == protocol.BOARD_DIM:
                self.create_board(msg.args[0])
            elif msg.kind == protocol.CARD:
                self.reveal_card(msg.args[0], msg.args[1], msg.text)
            elif msg.kind == protocol.MATCH:
                self.record_match()
            elif msg.kind == protocol.MISMATCH:
                self.hide_cards(*msg.args)
            elif msg.kind == protocol.GAME_OVER:
                self.set_game_over()
            elif msg.kind == protocol.ERROR:
                self.record_error(msg.text)
        except IndexError:
            raise ProtocolError(f"coordinates outside the board: {line.strip()}") from None
        return msg

    def __str__(self) -> str:
        lines = ["  " + "".join(str(c) for c in range(self.dimension))]
        for r, row in enumerate(self.grid):
            lines.append(f"{r}|" + "".join(row))
        return "\n".join(lines) + "\n"


class ConcentrationClient:
    """Connects to a server and keeps a ClientModel in sync on a listener thread."""

    def __init__(self, host: str, port: int, model: Optional[ClientModel] = None, timeout: float = 10.0):
        self.host, self.port = host, port
        self.model = model or ClientModel()
        self.sock = socket.create_connection((host, port), timeout=timeout)
        self.sock.settimeout(None)
        self._reader = self.sock.makefile("r", encoding=protocol.ENCODING, newline="\n")
        self.listener: Optional[threading.Thread] = None
        self.finished = threading.Event()

    def start(self) -> None:
        greeting = self._reader.readline()
        if not greeting:
            raise ProtocolError("server closed the connection before BOARD_DIM")
        msg = self.model.apply(greeting)
        if msg.kind != protocol.BOARD_DIM:
            raise ProtocolError(f"expected {protocol.BOARD_DIM}, got: {greeting.strip()}")
        self.listener = threading.Thread(target=self._listen, name="concentration-listener", daemon=True)
        self.listener.start()

    def _listen(self) -> None:
        try:
            for line in self._reader:
                self.model.apply(line)
                if self.model.game_over:
                    break
        except (OSError, ValueError, ProtocolError) as e:
            logger.error("ending game listener: %s", e)
        finally:
            self.finished.set()

    def reveal(self, row: int, col: int) -> None:
        self.sock.sendall((protocol.reveal_msg(row, col) + "\n").encode(protocol.ENCODING))

    def close(self) -> None:
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._reader.close()
        self.sock.close()


def main(argv: Optional[Sequence[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Console client for the Concentration server")
    ap.add_argument("host")
    ap.add_argument("port", type=int)
    a = ap.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    def show(model: ClientModel) -> None:
        print(model)
        if model.last_error:
            print(f"error: {model.last_error}")
            model.last_error = None
        if model.game_over:
            print(f"Game over in {model.moves_made} moves")

    try:
        client = ConcentrationClient(a.host, a.port)
    except OSError as e:
        raise SystemExit(f"Failed to connect to {a.host}:{a.port}: {e}")
    client.model.subscribe(show)
    try:
        client.start()
        print("Enter moves as: row col")
        for line in sys.stdin:
            if client.finished.is_set():
                break
            parts = line.split()
            if len(parts) != 2 or not all(p.lstrip("-").isdigit() for p in parts):
                print("usage: row col")
                continue
            client.reveal(int(parts[0]), int(parts[1]))
    except (OSError, ProtocolError) as e:
        raise SystemExit(f"Connection lost: {e}")
    finally:
        client.close()


if __name__ == "__main__":
    main()
