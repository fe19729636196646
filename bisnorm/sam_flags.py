"""SAM flag bits and their per-mapper interpretation."""

from __future__ import annotations

import enum
from typing import Callable

from bisnorm.datatypes import DecodedFlags
from bisnorm.errors import UnsupportedDialectError

READ_PAIRED = 0x1
READ_PAIR_MAPPED = 0x2
READ_UNMAPPED = 0x4
MATE_UNMAPPED = 0x8
READ_RC = 0x10
MATE_RC = 0x20
TEMPLATE_FIRST = 0x40  # T-rich mate for bisulfite mappers
TEMPLATE_SECOND = 0x80  # A-rich mate for bisulfite mappers
SECONDARY_ALN = 0x100
BELOW_QUALITY = 0x200
PCR_DUPLICATE = 0x400
SUPPLEMENTARY_ALN = 0x800


class Dialect(enum.StrEnum):
    """Mapper whose SAM-like output is being parsed."""

    BSMAP = "bsmap"
    BISMARK = "bismark"
    BS_SEEKER = "bs_seeker"
    GENERAL = "general"

    @property
    def is_bisulfite(self) -> bool:
        return self != Dialect.GENERAL

    @classmethod
    def from_name(cls, name: str) -> Dialect:
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedDialectError(name) from None


def is_set(flag: int, bit: int) -> bool:
    return (flag & bit) != 0


def _raw_flags(flag: int) -> DecodedFlags:
    return DecodedFlags(
        is_pairend=is_set(flag, READ_PAIRED),
        is_mapping_paired=is_set(flag, READ_PAIR_MAPPED),
        is_mapped=not is_set(flag, READ_UNMAPPED),
        is_primary=not is_set(flag, SECONDARY_ALN),
        is_revcomp=is_set(flag, READ_RC),
        is_trich=is_set(flag, TEMPLATE_FIRST),
        is_arich=is_set(flag, TEMPLATE_SECOND),
    )


def decode_bsmap(flag: int) -> DecodedFlags:
    return _raw_flags(flag)


def decode_general(flag: int) -> DecodedFlags:
    """Single-end reads count as T-rich; bismark uses the same rule."""
    raw = _raw_flags(flag)
    return raw._replace(is_trich=raw.is_trich if raw.is_pairend else True)


decode_bismark = decode_general


def decode_bs_seeker(flag: int) -> DecodedFlags:
    """
    For paired-end bs_seeker output the reverse-complement bit does not give
    the strand directly: if the T-rich mate is on +, both mates are +, and if
    it is on -, both are -. Single-end records use 0 for + and 16 for -.
    """
    raw = _raw_flags(flag)
    if not raw.is_pairend:
        return raw._replace(is_trich=True, is_arich=False)
    return raw._replace(
        is_revcomp=raw.is_trich if raw.is_revcomp else raw.is_arich
    )


FLAG_DECODERS: dict[Dialect, Callable[[int], DecodedFlags]] = {
    Dialect.BSMAP: decode_bsmap,
    Dialect.BISMARK: decode_bismark,
    Dialect.BS_SEEKER: decode_bs_seeker,
    Dialect.GENERAL: decode_general,
}


def decode_flags(dialect: Dialect, flag: int) -> DecodedFlags:
    return FLAG_DECODERS[dialect](flag)
