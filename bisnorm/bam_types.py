from __future__ import annotations

import logging
import os
from types import TracebackType
from typing import Generator, Iterator

import pysam

from bisnorm.alignment_parsing import AlignmentRecordParser
from bisnorm.chrom_table import ChromTable
from bisnorm.datatypes import AlignedRead
from bisnorm.sam_flags import Dialect

logger = logging.getLogger(__name__)


class AlignmentFileReader:
    """Read SAM/BAM/CRAM through htslib and normalize every record.

    Records are rendered back to SAM text and handed to the dialect parser,
    so mapper-specific optional fields keep the layout the mapper wrote.
    """

    def __init__(
        self,
        filepath: str | os.PathLike,
        dialect: Dialect | str,
        chrom_table: ChromTable,
    ) -> None:
        self.filepath = filepath
        self.parser = AlignmentRecordParser(dialect, chrom_table)
        self._alignment_file = pysam.AlignmentFile(
            str(filepath), "r", check_sq=False
        )
        logger.debug(
            f"Opened {filepath} for {self.parser.dialect} records."
        )

    def __enter__(self) -> AlignmentFileReader:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._alignment_file.close()

    def fetch_lines(self) -> Generator[str, None, None]:
        segment: pysam.AlignedSegment
        for segment in self._alignment_file.fetch(until_eof=True):
            yield segment.to_string()

    def __iter__(self) -> Iterator[AlignedRead]:
        return self.parser.parse_lines(self.fetch_lines())


def read_alignment_text(
    filepath: str | os.PathLike,
    dialect: Dialect | str,
    chrom_table: ChromTable,
) -> Generator[AlignedRead, None, None]:
    """Normalize a plain-text SAM-like file without going through htslib."""
    parser = AlignmentRecordParser(dialect, chrom_table)
    with open(filepath) as fp:
        yield from parser.parse_lines(fp)
