from __future__ import annotations

import socket
import threading

import pytest

from concentration.board import Board
from concentration.handler import ConnectionHandler
from concentration.status import ServerStats


def scenario_factory(dimension: int) -> Board:
    # A B
    # B A
    return Board(dimension, ["A", "B", "B", "A"])


class Peer:
    """Client end of a socketpair talking to a handler running on a thread."""

    def __init__(self, sock: socket.socket, thread: threading.Thread, handler: ConnectionHandler):
        self.sock = sock
        self.thread = thread
        self.handler = handler
        self.reader = sock.makefile("r", encoding="utf-8", newline="\n")

    def send(self, line: str) -> None:
        self.sock.sendall((line + "\n").encode("utf-8"))

    def recv(self) -> str:
        return self.reader.readline().rstrip("\n")

    def disconnect(self) -> None:
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass

    def close(self) -> None:
        self.disconnect()
        self.reader.close()
        self.sock.close()


@pytest.fixture
def start_handler():
    peers = []

    def _start(dimension=2, board_factory=scenario_factory, stats=None, reveal_delay=0.0):
        server_side, client_side = socket.socketpair()
        client_side.settimeout(5)
        handler = ConnectionHandler(server_side, ("test", 0), dimension,
                                    reveal_delay=reveal_delay, stats=stats or ServerStats(),
                                    board_factory=board_factory)
        thread = threading.Thread(target=handler.run, daemon=True)
        thread.start()
        peer = Peer(client_side, thread, handler)
        peers.append(peer)
        return peer

    yield _start
    for peer in peers:
        peer.close()
        peer.thread.join(timeout=5)


@pytest.fixture
def scenario_board():
    """Board factory for the fixed 2x2 arrangement A B / B A."""
    return scenario_factory
