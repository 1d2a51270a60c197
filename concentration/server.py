from __future__ import annotations
import errno
import logging
import socket
import threading
import time
from typing import Optional, Sequence, Tuple

from .board import create_board
from .config import ServerConfig, load_config
from .errors import ConfigError
from .handler import BoardFactory, ConnectionHandler
from .status import ServerStats, serve_status

logger = logging.getLogger(__name__)

SERVER_NAME = "Concentration/1.0"

# accept() failures that only concern the one pending connection
_TRANSIENT_ACCEPT_ERRORS = (ConnectionAbortedError, ConnectionResetError, InterruptedError)
# out of descriptors or kernel buffers; accepting works again once peers go away
_RESOURCE_ERRNOS = (errno.EMFILE, errno.ENFILE, errno.ENOBUFS, errno.ENOMEM)
ACCEPT_RETRY_DELAY = 0.1  # seconds


class ConcentrationServer:
    """Accepts connections forever; every connection gets its own board and thread."""

    def __init__(self, host: str, port: int, dimension: int, reveal_delay: float = 0.0,
                 cheat: bool = False, stats: Optional[ServerStats] = None, backlog: int = 50,
                 board_factory: BoardFactory = create_board):
        self.host, self.port, self.dimension = host, port, dimension
        self.reveal_delay, self.cheat = float(max(0.0, reveal_delay)), bool(cheat)
        self.stats = stats if stats is not None else ServerStats()
        self.backlog = backlog
        self.board_factory = board_factory
        self.sock: socket.socket | None = None
        self.ready = threading.Event()
        self._closing = False

    @classmethod
    def from_config(cls, cfg: ServerConfig, stats: Optional[ServerStats] = None) -> "ConcentrationServer":
        return cls(cfg.host, cfg.port, cfg.dimension, cfg.reveal_delay, cfg.cheat, stats)

    @property
    def server_address(self) -> Tuple[str, int]:
        assert self.sock, "server is not bound"
        return self.sock.getsockname()[:2]

    def bind(self) -> None:
        s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            s.bind((self.host, self.port))
            s.listen(self.backlog)
        except OSError as e:
            s.close()
            raise ConfigError(f"cannot listen on {self.host}:{self.port}: {e}") from e
        self.sock = s

    def start(self) -> None:
        if self.sock is None:
            self.bind()
        host, port = self.server_address
        logger.info("[+] %s on %s:%d (board %dx%d)", SERVER_NAME, host, port, self.dimension, self.dimension)
        self.ready.set()
        try:
            self._serve_threaded()
        finally:
            self.sock.close()

    def shutdown(self) -> None:
        self._closing = True
        if self.sock is None:
            return
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()

    def _serve_threaded(self) -> None:
        assert self.sock
        while not self._closing:
            try:
                conn, addr = self.sock.accept()
            except _TRANSIENT_ACCEPT_ERRORS as e:
                logger.warning("accept failed: %s", e)
                continue
            except OSError as e:
                if self._closing:
                    break
                if e.errno in _RESOURCE_ERRNOS:
                    logger.warning("accept failed, retrying in %.1fs: %s", ACCEPT_RETRY_DELAY, e)
                    time.sleep(ACCEPT_RETRY_DELAY)
                    continue
                logger.error("listener stopped, accept failed: %s", e)
                raise
            self._dispatch(conn, addr)
        logger.info("listener on port %d closed", self.port)

    def _dispatch(self, conn: socket.socket, addr) -> None:
        handler = ConnectionHandler(conn, addr, self.dimension, self.reveal_delay, self.cheat,
                                    self.stats, self.board_factory)
        threading.Thread(target=handler.run, name=f"concentration-{addr[0]}:{addr[1]}", daemon=True).start()


def main(argv: Optional[Sequence[str]] = None) -> None:
    try:
        cfg = load_config(argv)
    except ConfigError as e:
        raise SystemExit(f"Failed to start the server: {e}")
    logging.basicConfig(
        level=logging.DEBUG if cfg.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    server = ConcentrationServer.from_config(cfg)
    try:
        server.bind()
    except ConfigError as e:
        raise SystemExit(f"Failed to start the server: {e}")
    if cfg.status_port is not None:
        serve_status(server.stats, cfg.host, cfg.status_port)
        logger.info("[+] status endpoint on %s:%d", cfg.host, cfg.status_port)
    try:
        server.start()
    except KeyboardInterrupt:
        logger.info("interrupted, shutting down")


if __name__ == "__main__":
    main()
