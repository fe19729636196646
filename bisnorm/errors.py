"""Exception types raised while normalizing alignment and interval records."""

from __future__ import annotations


class BisnormError(Exception):
    pass


class FormatError(BisnormError, ValueError):
    """Malformed alignment or interval line."""

    def __init__(self, reason: str, line: str) -> None:
        self.reason = reason
        self.line = line.rstrip("\n")
        super().__init__(f"{reason}:\n{self.line}")


class UnsupportedDialectError(BisnormError, ValueError):
    def __init__(self, dialect: str) -> None:
        self.dialect = dialect
        super().__init__(f"mapper not supported: {dialect}")


class ChromosomeLookupError(BisnormError, LookupError):
    """Chromosome id (or name, for frozen tables) that was never interned."""

    def __init__(self, key: int | str, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"Unknown chromosome id: {key}")
