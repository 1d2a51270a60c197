from __future__ import annotations
import argparse
import math
import os
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import ConfigError

DEFAULT_HOST = "0.0.0.0"
DEFAULT_REVEAL_DELAY = 0.5  # seconds before MATCH/MISMATCH, lets viewers show the card


def _env_delay() -> float:
    raw = os.environ.get("CONCENTRATION_REVEAL_DELAY")
    if raw is None:
        return DEFAULT_REVEAL_DELAY
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"CONCENTRATION_REVEAL_DELAY is not a number: {raw!r}") from None


@dataclass(frozen=True)
class ServerConfig:
    port: int
    dimension: int
    host: str = DEFAULT_HOST
    reveal_delay: float = DEFAULT_REVEAL_DELAY
    cheat: bool = False
    status_port: Optional[int] = None
    verbose: bool = False

    def __post_init__(self):
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"port out of range: {self.port}")
        if self.status_port is not None and not 0 <= self.status_port <= 65535:
            raise ConfigError(f"status port out of range: {self.status_port}")
        if not math.isfinite(self.reveal_delay):
            raise ConfigError(f"reveal delay must be a finite number: {self.reveal_delay}")
        if self.reveal_delay < 0:
            raise ConfigError(f"reveal delay must not be negative: {self.reveal_delay}")

    @classmethod
    def from_args(cls, a: argparse.Namespace) -> "ServerConfig":
        return cls(
            port=a.port,
            dimension=a.dimension,
            host=a.host,
            reveal_delay=a.reveal_delay,
            cheat=a.cheat,
            status_port=a.status_port,
            verbose=a.verbose,
        )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Concentration game server")
    p.add_argument("port", type=int, help="port to listen on")
    p.add_argument("dimension", type=int, help="board side length (even, 2-6)")
    p.add_argument("-H", "--host", default=DEFAULT_HOST)
    p.add_argument("--reveal-delay", type=float, default=None,
                   help=f"seconds before a match verdict (default {DEFAULT_REVEAL_DELAY})")
    p.add_argument("--cheat", action="store_true", help="log every new board fully revealed")
    p.add_argument("--status-port", type=int, default=None, help="serve /health and /stats over HTTP")
    p.add_argument("-v", "--verbose", action="store_true")
    a = p.parse_args(argv)
    if a.reveal_delay is None:
        try:
            a.reveal_delay = _env_delay()
        except ConfigError as e:
            p.error(str(e))
    return a


def load_config(argv: Optional[Sequence[str]] = None) -> ServerConfig:
    return ServerConfig.from_args(parse_args(argv))
