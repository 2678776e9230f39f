"""
Per-image result rows and the ordered results table.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from .accumulator import ParticleAccumulator

CHANNEL_TAGS: Tuple[str, ...] = ("presyn", "postsyn", "coloc")
CHANNEL_PREFIXES = {"presyn": "Presyn.", "postsyn": "Postsyn.", "coloc": "Coloc."}


@dataclass(frozen=True)
class ChannelSummary:
    """Particle count and mean size of one particle class."""
    count: int
    mean_size: float

    @classmethod
    def from_accumulator(cls, acc: ParticleAccumulator) -> "ChannelSummary":
        return cls(count=acc.count, mean_size=acc.mean_size)


@dataclass(frozen=True)
class ResultRow:
    """Result of one analyzed image."""
    file: str
    presyn: ChannelSummary
    postsyn: ChannelSummary
    coloc: ChannelSummary

    def summary(self, tag: str) -> ChannelSummary:
        return getattr(self, tag)

    def values(self) -> list:
        """Row values in `ResultsTable.columns()` order."""
        out: list = [self.file]
        for tag in CHANNEL_TAGS:
            s = self.summary(tag)
            out.extend([s.count, s.mean_size])
        return out


class ResultsTable:
    """Append-only, ordered table of ResultRow."""

    def __init__(self) -> None:
        self._rows: List[ResultRow] = []

    @staticmethod
    def columns() -> List[str]:
        cols = ["File"]
        for tag in CHANNEL_TAGS:
            p = CHANNEL_PREFIXES[tag]
            cols.extend([f"{p} N", f"{p} mean size"])
        return cols

    def append(self, row: ResultRow) -> None:
        self._rows.append(row)

    def clear(self) -> None:
        self._rows.clear()

    @property
    def rows(self) -> Tuple[ResultRow, ...]:
        return tuple(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[ResultRow]:
        return iter(list(self._rows))

    def __getitem__(self, i: int) -> ResultRow:
        return self._rows[i]
