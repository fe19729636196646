"""
Convert SAM-like text lines written by (bisulfite) short-read mappers into
normalized `AlignedRead` values.

All supported mappers share the 11 mandatory SAM columns; they differ in the
optional columns that follow and in how flag bits map to strand and
bisulfite conversion. Coordinates are converted from 1-based (on the wire)
to 0-based half-open intervals, and the read sequence is projected onto the
reference through its CIGAR.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator

from bisnorm.chrom_table import ChromTable
from bisnorm.cigar_parsing import (
    apply_cigar,
    cigar_query_length,
    cigar_reference_length,
    reverse_complement,
)
from bisnorm.datatypes import (
    AlignedRead,
    AnnotatedInterval,
    DecodedFlags,
    Strand,
)
from bisnorm.errors import FormatError
from bisnorm.sam_flags import Dialect, decode_flags

logger = logging.getLogger(__name__)

NUM_SAM_COLUMNS = 11
MAX_MAPQ = 255
SAM_SEQ_REGEX = re.compile(r"\*|[A-Za-z=.]+")
SAM_QUAL_REGEX = re.compile(r"[!-~]+")

# Length of the `XX:T:` prefix on optional SAM fields
TAG_PREFIX_LEN = 5

# Methylation call symbols that mark a converted (unmethylated) cytosine
BISMARK_CONVERSION_CALLS = frozenset("xhz")

# Number of whitespace-separated columns each mapper must provide
DIALECT_COLUMNS = {
    Dialect.BSMAP: 13,
    Dialect.BISMARK: 16,
    Dialect.BS_SEEKER: 16,
    Dialect.GENERAL: NUM_SAM_COLUMNS,
}


@dataclass
class SamRecord:
    """The mandatory SAM columns of one alignment line, plus trailing tags."""

    qname: str
    flag: int
    rname: str
    pos: int  # 1-based
    mapq: int
    cigar: str
    rnext: str
    pnext: int
    tlen: int
    seq: str
    qual: str
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_line(cls, line: str) -> SamRecord:
        fields = line.split()
        if len(fields) < NUM_SAM_COLUMNS:
            raise FormatError("malformed line in SAM format", line)
        try:
            record = cls(
                qname=fields[0],
                flag=int(fields[1]),
                rname=fields[2],
                pos=int(fields[3]),
                mapq=int(fields[4]),
                cigar=fields[5],
                rnext=fields[6],
                pnext=int(fields[7]),
                tlen=int(fields[8]),
                seq=fields[9],
                qual=fields[10],
                tags=fields[NUM_SAM_COLUMNS:],
            )
        except ValueError:
            raise FormatError("malformed line in SAM format", line) from None

        if record.flag < 0 or record.pos < 0 or record.pnext < 0:
            raise FormatError("negative field in SAM record", line)
        if not 0 <= record.mapq <= MAX_MAPQ:
            raise FormatError("invalid mapq in SAM record", line)
        if not SAM_SEQ_REGEX.fullmatch(record.seq):
            raise FormatError("invalid read in SAM record", line)
        if not SAM_QUAL_REGEX.fullmatch(record.qual):
            raise FormatError("invalid qual in SAM record", line)
        if record.has_cigar:
            try:
                query_len = cigar_query_length(record.cigar)
            except FormatError:
                raise FormatError("invalid cigar in SAM record", line) from None
            if record.has_seq and query_len != len(record.seq):
                raise FormatError("invalid cigar in SAM record", line)
        return record

    @property
    def has_cigar(self) -> bool:
        return self.cigar != "*"

    @property
    def has_seq(self) -> bool:
        return self.seq != "*"

    def __str__(self) -> str:
        return "\t".join(
            [
                self.qname,
                str(self.flag),
                self.rname,
                str(self.pos),
                str(self.mapq),
                self.cigar,
                self.rnext,
                str(self.pnext),
                str(self.tlen),
                self.seq,
                self.qual,
                *self.tags,
            ]
        )


def tag_value(tag: str, line: str) -> str:
    """Strip the `XX:T:` prefix of an optional field, e.g. `NM:i:3` -> `3`."""
    if len(tag) < TAG_PREFIX_LEN:
        raise FormatError(f"malformed optional field {tag!r}", line)
    return tag[TAG_PREFIX_LEN:]


def int_tag_value(tag: str, line: str) -> int:
    try:
        return int(tag_value(tag, line))
    except ValueError:
        raise FormatError(f"non-integer optional field {tag!r}", line) from None


def bismark_mismatches(
    edit_distance_tag: str, meth_call_tag: str, line: str
) -> int:
    """
    Approximate mismatch count for a bismark record: the edit distance minus
    the number of converted cytosines in the methylation call string. A
    sequencing error on a cytosine is reported as a conversion, so this can
    undercount.
    """
    edit_distance = int_tag_value(edit_distance_tag, line)
    meth_calls = tag_value(meth_call_tag, line)
    convert_count = sum(1 for c in meth_calls if c in BISMARK_CONVERSION_CALLS)
    return edit_distance - convert_count


def bsmap_strand(strand_tag: str, line: str) -> Strand:
    """Strand from a bsmap `ZS:Z:<strand><bs-direction>` field.

    A `-` bisulfite direction means the read came from the reverse
    complementary strand, so the reported strand is flipped.
    """
    value = tag_value(strand_tag, line)
    if len(value) < 2:
        raise FormatError(f"malformed bsmap strand field {strand_tag!r}", line)
    strand = Strand.parse(value[0])
    return strand.inverse if value[1] == "-" else strand


def _start_position(record: SamRecord, line: str) -> int:
    if record.pos < 1:
        raise FormatError("mapped SAM record with position < 1", line)
    return record.pos - 1


def _build_read(
    record: SamRecord,
    line: str,
    dialect: Dialect,
    chrom_table: ChromTable,
    score: float,
    strand: Strand,
    should_revcomp: bool,
) -> AlignedRead:
    flags = decode_flags(dialect, record.flag)
    start = _start_position(record, line)
    if not record.has_seq:
        # Secondary records may omit the sequence; the span still follows
        # the CIGAR
        seq = ""
        ref_len = (
            cigar_reference_length(record.cigar) if record.has_cigar else 0
        )
    else:
        seq = record.seq
        if record.has_cigar:
            seq = apply_cigar(record.cigar, seq)
        if should_revcomp:
            seq = reverse_complement(seq)
        ref_len = len(seq)
    interval = AnnotatedInterval(
        chrom_table.assign(record.rname),
        start,
        start + ref_len,
        name=record.qname,
        score=score,
        strand=strand,
    )
    return AlignedRead(
        interval=interval,
        seq=seq,
        flag=record.flag,
        is_mapped=flags.is_mapped,
        is_primary=flags.is_primary,
        is_mapping_paired=flags.is_mapping_paired,
        is_trich=flags.is_trich,
        is_arich=flags.is_arich,
        seg_len=record.tlen,
    )


def _unmapped_read(record: SamRecord, flags: DecodedFlags) -> AlignedRead:
    # Coordinates stay at their defaults and RNAME is not interned
    return AlignedRead(
        interval=AnnotatedInterval(0, 0, 0, name=record.qname),
        seq="",
        flag=record.flag,
        is_mapped=False,
        is_primary=flags.is_primary,
        is_mapping_paired=flags.is_mapping_paired,
        is_trich=flags.is_trich,
        is_arich=flags.is_arich,
        seg_len=record.tlen,
    )


def parse_bsmap(
    record: SamRecord, line: str, chrom_table: ChromTable
) -> AlignedRead:
    flags = decode_flags(Dialect.BSMAP, record.flag)
    if not flags.is_mapped:
        return _unmapped_read(record, flags)
    # bsmap already reports the read in reference orientation
    mismatch_tag, strand_tag = record.tags[0], record.tags[1]
    return _build_read(
        record,
        line,
        Dialect.BSMAP,
        chrom_table,
        score=int_tag_value(mismatch_tag, line),
        strand=bsmap_strand(strand_tag, line),
        should_revcomp=False,
    )


def parse_bismark(
    record: SamRecord, line: str, chrom_table: ChromTable
) -> AlignedRead:
    flags = decode_flags(Dialect.BISMARK, record.flag)
    if not flags.is_mapped:
        return _unmapped_read(record, flags)
    # edit distance, mismatch string, methylation call, read/genome conversion
    edit_distance_tag, _, meth_call_tag = record.tags[:3]
    return _build_read(
        record,
        line,
        Dialect.BISMARK,
        chrom_table,
        score=bismark_mismatches(edit_distance_tag, meth_call_tag, line),
        strand=Strand.REVERSE if flags.is_revcomp else Strand.FORWARD,
        should_revcomp=flags.is_revcomp,
    )


def parse_bs_seeker(
    record: SamRecord, line: str, chrom_table: ChromTable
) -> AlignedRead:
    flags = decode_flags(Dialect.BS_SEEKER, record.flag)
    if not flags.is_mapped:
        return _unmapped_read(record, flags)
    # orientation, conversion, mismatch count, mismatch types, genome sequence
    mismatch_tag = record.tags[2]
    return _build_read(
        record,
        line,
        Dialect.BS_SEEKER,
        chrom_table,
        score=int_tag_value(mismatch_tag, line),
        strand=Strand.REVERSE if flags.is_revcomp else Strand.FORWARD,
        should_revcomp=flags.is_revcomp,
    )


def parse_general(
    record: SamRecord, line: str, chrom_table: ChromTable
) -> AlignedRead:
    flags = decode_flags(Dialect.GENERAL, record.flag)
    if flags.is_mapped:
        read = _build_read(
            record,
            line,
            Dialect.GENERAL,
            chrom_table,
            score=0,
            strand=Strand.REVERSE if flags.is_revcomp else Strand.FORWARD,
            should_revcomp=flags.is_revcomp,
        )
    else:
        read = _unmapped_read(record, flags)
    # A "concordant" pair whose mates sit on different chromosomes is
    # recorded as discordant
    if read.is_mapping_paired and record.rnext not in ("=", record.rname):
        read.is_mapping_paired = False
    return read


DIALECT_PARSERS: dict[
    Dialect, Callable[[SamRecord, str, ChromTable], AlignedRead]
] = {
    Dialect.BSMAP: parse_bsmap,
    Dialect.BISMARK: parse_bismark,
    Dialect.BS_SEEKER: parse_bs_seeker,
    Dialect.GENERAL: parse_general,
}


def parse_alignment(
    line: str, dialect: Dialect, chrom_table: ChromTable
) -> AlignedRead:
    """Parse one alignment line written by the given mapper.

    Raises:
        FormatError: if the line has too few columns for the dialect or any
            mandatory or dialect-specific field is malformed.
    """
    record = SamRecord.from_line(line)
    if len(record.tags) + NUM_SAM_COLUMNS < DIALECT_COLUMNS[dialect]:
        raise FormatError(f"malformed line in {dialect} SAM format", line)
    return DIALECT_PARSERS[dialect](record, line, chrom_table)


def is_sam_header(line: str) -> bool:
    return line.startswith("@")


class AlignmentRecordParser:
    """Dialect-bound parser sharing one chromosome table across records."""

    def __init__(self, dialect: Dialect | str, chrom_table: ChromTable) -> None:
        self.dialect = (
            dialect
            if isinstance(dialect, Dialect)
            else Dialect.from_name(dialect)
        )
        self.chrom_table = chrom_table
        if self.dialect == Dialect.BSMAP:
            logger.warning("[BSMAP Converter] test version: may contain bugs")

    def parse(self, line: str) -> AlignedRead:
        return parse_alignment(line, self.dialect, self.chrom_table)

    def parse_lines(self, lines: Iterable[str]) -> Iterator[AlignedRead]:
        """Parse every alignment line, skipping headers and blank lines.

        The first malformed line stops iteration with a `FormatError`.
        """
        for line in lines:
            if not line.strip() or is_sam_header(line):
                continue
            yield self.parse(line)
