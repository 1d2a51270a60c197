from __future__ import annotations
import logging
import socket
import time
from typing import Callable, Optional, Tuple

from . import protocol
from .board import Board, create_board
from .errors import BoardError, InvalidDimension, ProtocolError
from .status import ServerStats

logger = logging.getLogger(__name__)

BoardFactory = Callable[[int], Board]


class ConnectionHandler:
    """
    Plays one game of Concentration over one connection.

    The handler owns its board outright; nothing else reads or mutates it.
    Requests are processed strictly one at a time, including the delay before
    a MATCH/MISMATCH verdict.
    """

    def __init__(self, conn: socket.socket, addr: Tuple, dimension: int,
                 reveal_delay: float = 0.0, cheat: bool = False,
                 stats: Optional[ServerStats] = None,
                 board_factory: BoardFactory = create_board):
        self.conn = conn
        self.addr = addr
        self.dimension = dimension
        self.reveal_delay = reveal_delay
        self.cheat = cheat
        self.stats = stats
        self.board_factory = board_factory
        self.board: Optional[Board] = None

    def run(self) -> None:
        if self.stats:
            self.stats.connection_opened()
        try:
            self._handle()
        except OSError as e:
            logger.warning("connection %s dropped: %s", self.addr, e)
        finally:
            try:
                self.conn.close()
            except OSError:
                pass
            if self.stats:
                self.stats.connection_closed()

    def send(self, line: str) -> None:
        self.conn.sendall((line + "\n").encode(protocol.ENCODING))

    def _handle(self) -> None:
        try:
            self.board = self.board_factory(self.dimension)
        except InvalidDimension as e:
            logger.error("cannot start game for %s: %s", self.addr, e)
            self.send(protocol.error_msg(str(e)))
            return

        logger.info("new game for %s (%dx%d)", self.addr, self.dimension, self.dimension)
        if self.cheat:
            logger.info("SOLUTION for %s:\n%s", self.addr, self.board.solution())

        self.send(protocol.board_dim_msg(self.board.dimension))

        with self.conn.makefile("r", encoding=protocol.ENCODING, errors="replace", newline="\n") as reader:
            overflow = False
            while True:
                line = reader.readline(protocol.MAX_LINE + 1)
                if not line:
                    break
                if overflow:
                    # drop the tail of an oversized line
                    overflow = not line.endswith("\n")
                    continue
                if len(line) > protocol.MAX_LINE and not line.endswith("\n"):
                    logger.debug("oversized line from %s", self.addr)
                    self.send(protocol.error_msg("Line too long"))
                    overflow = True
                    continue
                if self._process(line):
                    logger.info("game over for %s", self.addr)
                    if self.stats:
                        self.stats.game_completed()
                    return
        logger.info("peer %s disconnected", self.addr)

    def _process(self, line: str) -> bool:
        """Handle one request line. Returns True once the game is finished."""
        try:
            request = protocol.parse_request(line)
        except ProtocolError as e:
            logger.debug("bad request from %s: %r", self.addr, line)
            self.send(protocol.error_msg(str(e)))
            return False

        try:
            card_match = self.board.reveal(request.row, request.col)
        except BoardError as e:
            logger.debug("rejected reveal from %s: %s", self.addr, e)
            self.send(protocol.error_msg(str(e)))
            return False

        self.send(protocol.card_msg(self.board.card(request.row, request.col)))
        if not card_match.ready:
            return False

        self.board.update_reveal_status(card_match)
        if self.reveal_delay > 0:
            time.sleep(self.reveal_delay)
        self.send(protocol.match_msg(card_match.first, card_match.second, card_match.match))

        if self.board.game_over():
            self.send(protocol.game_over_msg())
            return True
        return False
