"""
Pure helpers over CIGAR strings and read sequences.

The alignment parsers only need the reference projection of a read (what the
read looks like laid over the reference span it covers) and reverse
complementation; both are kept free of any record state here.
"""

from __future__ import annotations

import re

from bisnorm.errors import FormatError

CIGAR_OP_REGEX = re.compile(r"(\d+)([MIDNSHP=X])")
CIGAR_REGEX = re.compile(r"(?:\d+[MIDNSHP=X])+")

# Consumable ops on the query (read) and on the reference genome
QUERY_CONSUMABLE_OPS = {"M", "I", "S", "=", "X"}
REF_CONSUMABLE_OPS = {"M", "D", "N", "=", "X"}

_COMPLEMENT = str.maketrans("ACGTNacgtn", "TGCANtgcan")


def parse_cigar(cigar_str: str) -> list[tuple[int, str]]:
    """Split a CIGAR string into (length, operation) tuples.

    Raises:
        FormatError: if the string is not a run of `<length><op>` elements.
    """
    if not CIGAR_REGEX.fullmatch(cigar_str):
        raise FormatError("invalid CIGAR string", cigar_str)
    return [
        (int(length), op) for length, op in CIGAR_OP_REGEX.findall(cigar_str)
    ]


def cigar_query_length(cigar_str: str) -> int:
    return sum(
        length
        for length, op in parse_cigar(cigar_str)
        if op in QUERY_CONSUMABLE_OPS
    )


def cigar_reference_length(cigar_str: str) -> int:
    return sum(
        length
        for length, op in parse_cigar(cigar_str)
        if op in REF_CONSUMABLE_OPS
    )


def apply_cigar(cigar_str: str, seq: str, inflation_symbol: str = "N") -> str:
    """
    Project a read sequence onto the reference span described by its CIGAR.

    Args:
        cigar_str: CIGAR string
        seq: Read sequence, as stored in the alignment record
        inflation_symbol: Symbol filling deletions and skipped regions

    Returns:
        A string whose length equals the reference length of the alignment.
        Matches keep the read bases, insertions and soft clips are dropped,
        deletions and skips are filled with `inflation_symbol`.
    """
    projected = []
    read_pos = 0
    for length, op in parse_cigar(cigar_str):
        if op in QUERY_CONSUMABLE_OPS and op in REF_CONSUMABLE_OPS:
            projected.append(seq[read_pos : read_pos + length])
            read_pos += length
        elif op in QUERY_CONSUMABLE_OPS:
            read_pos += length
        elif op in REF_CONSUMABLE_OPS:
            projected.append(inflation_symbol * length)
        # H and P consume neither
    return "".join(projected)


def reverse_complement(seq: str) -> str:
    return seq.translate(_COMPLEMENT)[::-1]
