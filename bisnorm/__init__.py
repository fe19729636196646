from .alignment_parsing import (
    AlignmentRecordParser,
    SamRecord,
    parse_alignment,
)
from .chrom_table import ChromTable
from .datatypes import AlignedRead, AnnotatedInterval, Interval, Strand
from .errors import (
    ChromosomeLookupError,
    FormatError,
    UnsupportedDialectError,
)
from .fasta_access import FastaRandomAccess, extract_regions_fasta
from .partition import separate_chromosomes
from .sam_flags import Dialect

__all__ = [
    "AlignedRead",
    "AlignmentRecordParser",
    "AnnotatedInterval",
    "ChromTable",
    "ChromosomeLookupError",
    "Dialect",
    "FastaRandomAccess",
    "FormatError",
    "Interval",
    "SamRecord",
    "Strand",
    "UnsupportedDialectError",
    "extract_regions_fasta",
    "parse_alignment",
    "separate_chromosomes",
]
