from __future__ import annotations

import enum
import sys
from dataclasses import dataclass
from typing import NamedTuple

from bisnorm import types

# Returned by `Interval.distance` for intervals on different chromosomes
MAX_DISTANCE = sys.maxsize


class Strand(enum.StrEnum):
    FORWARD = "+"
    REVERSE = "-"

    @property
    def is_forward(self) -> bool:
        return self == Strand.FORWARD

    @property
    def is_reverse(self) -> bool:
        return self == Strand.REVERSE

    @property
    def inverse(self) -> Strand:
        return Strand.FORWARD if self == Strand.REVERSE else Strand.REVERSE

    @classmethod
    def parse(cls, token: str) -> Strand:
        """Anything other than a literal "-" is read as the forward strand."""
        return cls.REVERSE if token == "-" else cls.FORWARD


@dataclass
class Interval:
    """Half-open, 0-based genomic range on an interned chromosome."""

    chrom: types.ChromId
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.start > self.end:
            raise ValueError(
                f"Invalid interval bounds: start={self.start}, end={self.end}"
            )

    def __len__(self) -> int:
        return self.end - self.start

    @property
    def width(self) -> int:
        return self.end - self.start

    @property
    def sort_key(self) -> tuple:
        return (self.chrom, self.start, self.end)

    @property
    def end_sort_key(self) -> tuple:
        return (self.chrom, self.end, self.start)

    def __lt__(self, other: Interval) -> bool:
        return self.sort_key < other.sort_key

    def __le__(self, other: Interval) -> bool:
        return not other < self

    def less1(self, other: Interval) -> bool:
        """Ordering by end coordinate first, used for sweeps over ends."""
        return self.end_sort_key < other.end_sort_key

    def contains(self, other: Interval) -> bool:
        return (
            self.chrom == other.chrom
            and self.start <= other.start
            and other.end <= self.end
        )

    def overlaps(self, other: Interval) -> bool:
        return (
            self.chrom == other.chrom
            and self.start < other.end
            and other.start < self.end
        )

    def distance(self, other: Interval) -> int:
        """Gap between the nearest edges of two intervals.

        Overlapping intervals are at distance 0 and intervals on different
        chromosomes at `MAX_DISTANCE`. Otherwise the gap counts both edge
        positions, so abutting intervals ([10, 20) and [20, 30)) are at
        distance 1.
        """
        if self.chrom != other.chrom:
            return MAX_DISTANCE
        if self.overlaps(other) or other.overlaps(self):
            return 0
        if self.end <= other.start:
            return other.start - self.end + 1
        return self.start - other.end + 1


@dataclass
class AnnotatedInterval(Interval):
    name: str = ""
    score: float = 0.0
    strand: Strand = Strand.FORWARD

    @property
    def sort_key(self) -> tuple:
        return (self.chrom, self.start, self.end, self.strand.value)

    @property
    def end_sort_key(self) -> tuple:
        return (self.chrom, self.end, self.start, self.strand.value)

    @property
    def is_reverse(self) -> bool:
        return self.strand.is_reverse


class DecodedFlags(NamedTuple):
    """Semantic predicates decoded from a raw SAM flag for a mapper dialect."""

    is_pairend: bool
    is_mapping_paired: bool
    is_mapped: bool
    is_primary: bool
    is_revcomp: bool
    is_trich: bool
    is_arich: bool


@dataclass
class AlignedRead:
    """Normalized alignment: reference interval, projected sequence, flags."""

    interval: AnnotatedInterval
    seq: str
    flag: int
    is_mapped: bool = True
    is_primary: bool = True
    is_mapping_paired: bool = False
    is_trich: bool = True
    is_arich: bool = False
    seg_len: int = 0

    @property
    def name(self) -> types.ReadName:
        return self.interval.name

    @property
    def strand(self) -> Strand:
        return self.interval.strand

    def __lt__(self, other: AlignedRead) -> bool:
        return self.interval < other.interval
