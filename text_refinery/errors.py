from __future__ import annotations


class BoundaryStallError(RuntimeError):
    """The chunker cannot move forward because the overlap swallows the cut."""

    def __init__(self, pos: int, cut: int, overlap_chars: int):
        self.pos = pos
        self.cut = cut
        self.overlap_chars = overlap_chars
        super().__init__(
            f"Chunker stalled at offset {pos}: cut {cut} <= overlap {overlap_chars}"
        )


class TransportError(RuntimeError):
    """A call to an external collaborator (generation service, memory store) failed."""


class ConfigError(ValueError):
    """Pipeline configuration is missing or invalid."""
