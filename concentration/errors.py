from __future__ import annotations


class ConcentrationError(Exception):
    """Base class for every error raised by the concentration package."""


class ConfigError(ConcentrationError):
    """Bad server settings (unusable port, unreadable options)."""


class ProtocolError(ConcentrationError):
    """A line that is not a well-formed protocol message."""


class BoardError(ConcentrationError):
    """A board rule was violated; the board is left unchanged."""


class InvalidDimension(BoardError):
    pass


class OutOfBounds(BoardError):
    pass


class AlreadyRevealed(BoardError):
    pass


class GameOver(BoardError):
    pass
