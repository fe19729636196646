"""
Direct-access extraction of subsequences from per-chromosome FASTA files.

Each file holds one chromosome: a `>name` header line followed by the
sequence wrapped at a fixed line width. A logical (0-based) offset into the
sequence maps to a byte offset by skipping the header and one newline per
full line before it, so every region is fetched with a single seek and read.
The files must be wrapped at exactly the given width and use single-byte
newlines; anything else silently yields the wrong bases. Region bounds are
not checked against the chromosome length, so callers reading past the end
get truncated output.
"""

from __future__ import annotations

import logging
import os
import pathlib
from collections import defaultdict
from types import TracebackType
from typing import Sequence

from bisnorm.chrom_table import ChromTable
from bisnorm.cigar_parsing import reverse_complement
from bisnorm.datatypes import AnnotatedInterval, Interval
from bisnorm.partition import separate_chromosomes
from bisnorm.types import ChromId

logger = logging.getLogger(__name__)

DEFAULT_LINE_WIDTH = 50
FASTA_SUFFIX = ".fa"


def header_length(chrom_name: str) -> int:
    # '>' plus the trailing newline
    return len(chrom_name) + 2


def adjust_start_pos(
    orig_start: int, chrom_name: str, line_width: int = DEFAULT_LINE_WIDTH
) -> int:
    """File byte offset of a logical sequence offset."""
    preceding_newlines = orig_start // line_width
    return orig_start + preceding_newlines + header_length(chrom_name)


def adjust_region_size(
    orig_start: int, orig_size: int, line_width: int = DEFAULT_LINE_WIDTH
) -> int:
    """Number of bytes to read so that `orig_size` bases are covered."""
    newlines_before_start = orig_start // line_width
    newlines_before_end = (orig_start + orig_size) // line_width
    return orig_size + (newlines_before_end - newlines_before_start)


class FastaRandomAccess:
    """Open handle on one chromosome's FASTA file for repeated extraction."""

    def __init__(
        self,
        filepath: str | os.PathLike,
        chrom_name: str,
        line_width: int = DEFAULT_LINE_WIDTH,
    ) -> None:
        if line_width <= 0:
            raise ValueError(f"Invalid FASTA line width: {line_width}")
        self.filepath = pathlib.Path(filepath)
        self.chrom_name = chrom_name
        self.line_width = line_width
        self._fp = open(self.filepath, "rb")
        logger.debug(f"Opened {self.filepath} for {chrom_name}.")

    def __enter__(self) -> FastaRandomAccess:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._fp.close()

    def read_region(self, start: int, end: int) -> str:
        """Uppercased bases of the half-open logical range [start, end)."""
        size = end - start
        offset = adjust_start_pos(start, self.chrom_name, self.line_width)
        self._fp.seek(offset)
        buffer = self._fp.read(
            adjust_region_size(start, size, self.line_width)
        )
        bases = buffer.replace(b"\n", b"").replace(b"\r", b"")[:size]
        return bases.decode("ascii").upper()

    def extract(self, interval: Interval) -> str:
        seq = self.read_region(interval.start, interval.end)
        if isinstance(interval, AnnotatedInterval) and interval.is_reverse:
            return reverse_complement(seq)
        return seq

    def extract_all(self, intervals: Sequence[Interval]) -> list[str]:
        return [self.extract(interval) for interval in intervals]


def extract_regions_chrom_fasta(
    chrom_name: str,
    filepath: str | os.PathLike,
    intervals: Sequence[Interval],
    line_width: int = DEFAULT_LINE_WIDTH,
) -> list[str]:
    with FastaRandomAccess(filepath, chrom_name, line_width) as fasta:
        return fasta.extract_all(intervals)


def extract_regions_fasta(
    fasta_dir: str | os.PathLike,
    intervals: Sequence[Interval],
    chrom_table: ChromTable,
    line_width: int = DEFAULT_LINE_WIDTH,
    suffix: str = FASTA_SUFFIX,
) -> list[str]:
    """Extract every interval from a directory of `<chrom><suffix>` files.

    Intervals are grouped by chromosome so that each file is opened once; the
    returned sequences follow the input order.
    """
    fasta_dir = pathlib.Path(fasta_dir)
    input_positions: dict[ChromId, list[int]] = defaultdict(list)
    for idx, interval in enumerate(intervals):
        input_positions[interval.chrom].append(idx)

    sequences = [""] * len(intervals)
    by_chrom = separate_chromosomes(intervals)
    for chrom_id, chrom_intervals in by_chrom.items():
        chrom_name = chrom_table.lookup(chrom_id)
        filepath = fasta_dir / f"{chrom_name}{suffix}"
        if not filepath.is_file():
            raise FileNotFoundError(
                f"chrom not found: {chrom_name} (expected {filepath})"
            )
        chrom_seqs = extract_regions_chrom_fasta(
            chrom_name, filepath, chrom_intervals, line_width
        )
        for idx, seq in zip(input_positions[chrom_id], chrom_seqs):
            sequences[idx] = seq
    logger.debug(
        f"Extracted {len(sequences)} regions from {len(by_chrom)} chromosomes."
    )
    return sequences
