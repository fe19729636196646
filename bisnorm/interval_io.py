"""Reading and writing BED-like interval records."""

from __future__ import annotations

import logging
import os
import re
from typing import Sequence

from bisnorm.chrom_table import ChromTable
from bisnorm.datatypes import AnnotatedInterval, Interval, Strand
from bisnorm.errors import FormatError
from bisnorm.types import ChrName

logger = logging.getLogger(__name__)

# UCSC-style header lines
HEADER_PREFIXES = ("browser", "track")

REGION_NAME_REGEX = re.compile(r"(?:.*\s)?(\S+):(\d+)-(\d+)\s*")


def is_header_line(line: str) -> bool:
    return line.startswith(HEADER_PREFIXES)


def parse_interval_line(
    line: str, chrom_table: ChromTable
) -> Interval | AnnotatedInterval:
    """Parse `<chrom> <start> <end> [<name> <score> <strand>]`.

    Three columns give a plain `Interval`; anything longer gives an
    `AnnotatedInterval` with missing trailing columns left at their defaults.
    Strand tokens other than "-" are read as "+".
    """
    fields = line.split()
    if len(fields) < 3:
        raise FormatError("too few fields in interval record", line)
    try:
        start, end = int(fields[1]), int(fields[2])
        score = float(fields[4]) if len(fields) > 4 else 0.0
    except ValueError:
        raise FormatError("non-numeric field in interval record", line) from None
    if start < 0 or start > end:
        raise FormatError("invalid bounds in interval record", line)

    chrom = chrom_table.assign(fields[0])
    if len(fields) == 3:
        return Interval(chrom, start, end)
    return AnnotatedInterval(
        chrom,
        start,
        end,
        name=fields[3],
        score=score,
        strand=Strand.parse(fields[5]) if len(fields) > 5 else Strand.FORWARD,
    )


def format_score(score: float) -> str:
    """Shortest text that parses back to the same score, e.g. `2.0` -> `2`."""
    text = repr(float(score))
    return text[:-2] if text.endswith(".0") else text


def format_interval(
    interval: Interval | AnnotatedInterval, chrom_table: ChromTable
) -> str:
    text = (
        f"{chrom_table.lookup(interval.chrom)}\t{interval.start}\t{interval.end}"
    )
    if isinstance(interval, AnnotatedInterval) and interval.name:
        text += (
            f"\t{interval.name}\t{format_score(interval.score)}"
            f"\t{interval.strand.value}"
        )
    return text


def read_bed_file(
    filepath: str | os.PathLike, chrom_table: ChromTable
) -> list[Interval | AnnotatedInterval]:
    intervals = []
    with open(filepath) as fp:
        for line in fp:
            if not line.strip() or is_header_line(line):
                continue
            intervals.append(parse_interval_line(line, chrom_table))
    logger.debug(f"Read {len(intervals)} intervals from {filepath}.")
    return intervals


def write_bed_file(
    filepath: str | os.PathLike,
    intervals: Sequence[Interval | AnnotatedInterval],
    chrom_table: ChromTable,
) -> None:
    with open(filepath, "w") as fp:
        for interval in intervals:
            fp.write(format_interval(interval, chrom_table) + "\n")


def parse_region_name(region_name: str) -> tuple[ChrName, int, int]:
    """Split a region name such as `chr1:100-200` into its parts.

    Anything before the last whitespace preceding the chromosome is ignored,
    so `"peak chr1:100-200"` also parses.
    """
    match = REGION_NAME_REGEX.fullmatch(region_name)
    if match is None:
        raise FormatError("invalid region name", region_name)
    chrom, start, end = match.groups()
    return chrom, int(start), int(end)


def check_sorted(
    intervals: Sequence[Interval], by_end: bool = False
) -> bool:
    if by_end:
        return all(
            not b.less1(a) for a, b in zip(intervals, intervals[1:])
        )
    return all(not b < a for a, b in zip(intervals, intervals[1:]))
