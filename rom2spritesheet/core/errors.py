"""Domain-specific exceptions for the sprite dumper."""

from pathlib import Path


class SpriteDecodeError(ValueError):
    """Raised when sprite data in the ROM cannot be decoded.

    Every instance records the operation that failed and the pointer or
    offset it was working from, since ROM-format problems are otherwise
    impossible to track down.
    """

    def __init__(self, reason: str, operation: str, pointer: int):
        self.reason = reason
        self.operation = operation
        self.pointer = pointer
        super().__init__(f"{operation} at 0x{pointer:08x}: {reason}")

    def within(self, operation: str, pointer: int) -> "SpriteDecodeError":
        """Return a copy of this error wrapped in an outer operation."""

        return type(self)(str(self), operation, pointer)


class PointerRangeError(SpriteDecodeError):
    """A pointer resolved outside of the buffer it points into."""


class ShortReadError(SpriteDecodeError):
    """Tile, palette or OAM data was truncated."""


class DecompressionError(SpriteDecodeError):
    """An LZ77 stream was malformed."""


class InvalidRomError(ValueError):
    """Raised when the ROM file is missing or unreadable."""

    def __init__(self, path: Path, reason: str | None = None):
        message = f"Invalid ROM file: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class UnsupportedRomError(ValueError):
    """Raised when the ROM id has no known sprite table."""

    def __init__(self, rom_id: str):
        self.rom_id = rom_id
        super().__init__(f"Unsupported game: {rom_id!r}")


class ValidationError(ValueError):
    """Raised when user-provided settings fail validation."""


class ProcessingError(RuntimeError):
    """Raised when writing a sprite sheet fails."""
