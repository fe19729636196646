"""
Tests for the per-mapper flag decoding in bisnorm/sam_flags.py
"""
import unittest

from bisnorm import sam_flags
from bisnorm.errors import UnsupportedDialectError
from bisnorm.sam_flags import Dialect, decode_flags

PAIRED = sam_flags.READ_PAIRED
RC = sam_flags.READ_RC
FIRST = sam_flags.TEMPLATE_FIRST
SECOND = sam_flags.TEMPLATE_SECOND


class TestDialect(unittest.TestCase):
    def test_from_name(self):
        self.assertEqual(Dialect.from_name("bismark"), Dialect.BISMARK)
        self.assertEqual(Dialect.from_name("bs_seeker"), Dialect.BS_SEEKER)
        with self.assertRaises(UnsupportedDialectError) as ctx:
            Dialect.from_name("bowtie2")
        self.assertEqual(ctx.exception.dialect, "bowtie2")

    def test_is_bisulfite(self):
        self.assertTrue(Dialect.BSMAP.is_bisulfite)
        self.assertFalse(Dialect.GENERAL.is_bisulfite)


class TestDecodeFlags(unittest.TestCase):
    def test_common_bits(self):
        flags = decode_flags(
            Dialect.GENERAL,
            PAIRED
            | sam_flags.READ_PAIR_MAPPED
            | sam_flags.READ_UNMAPPED
            | sam_flags.SECONDARY_ALN,
        )
        self.assertTrue(flags.is_pairend)
        self.assertTrue(flags.is_mapping_paired)
        self.assertFalse(flags.is_mapped)
        self.assertFalse(flags.is_primary)

        flags = decode_flags(Dialect.GENERAL, 0)
        self.assertTrue(flags.is_mapped)
        self.assertTrue(flags.is_primary)
        self.assertFalse(flags.is_revcomp)

    def test_bsmap_uses_raw_bits(self):
        self.assertFalse(decode_flags(Dialect.BSMAP, 0).is_trich)
        self.assertTrue(decode_flags(Dialect.BSMAP, FIRST).is_trich)
        self.assertTrue(decode_flags(Dialect.BSMAP, SECOND).is_arich)
        self.assertTrue(decode_flags(Dialect.BSMAP, RC).is_revcomp)

    def test_single_end_is_trich(self):
        for dialect in (Dialect.GENERAL, Dialect.BISMARK, Dialect.BS_SEEKER):
            self.assertTrue(decode_flags(dialect, 0).is_trich, dialect)
            self.assertTrue(decode_flags(dialect, RC).is_trich, dialect)

    def test_paired_trich_follows_first_mate_bit(self):
        for dialect in (Dialect.GENERAL, Dialect.BISMARK, Dialect.BS_SEEKER):
            self.assertTrue(decode_flags(dialect, PAIRED | FIRST).is_trich)
            self.assertFalse(decode_flags(dialect, PAIRED | SECOND).is_trich)

    def test_bs_seeker_single_end_strand(self):
        self.assertFalse(decode_flags(Dialect.BS_SEEKER, 0).is_revcomp)
        self.assertTrue(decode_flags(Dialect.BS_SEEKER, RC).is_revcomp)
        self.assertFalse(decode_flags(Dialect.BS_SEEKER, SECOND).is_arich)

    def test_bs_seeker_paired_strand_from_role(self):
        decode = sam_flags.decode_bs_seeker
        # RC bit set: strand follows the T-rich role
        self.assertTrue(decode(PAIRED | RC | FIRST).is_revcomp)
        self.assertFalse(decode(PAIRED | RC | SECOND).is_revcomp)
        # RC bit unset: strand follows the A-rich role
        self.assertTrue(decode(PAIRED | SECOND).is_revcomp)
        self.assertFalse(decode(PAIRED | FIRST).is_revcomp)
        self.assertTrue(decode(PAIRED | SECOND).is_arich)

    def test_decoder_table_is_complete(self):
        self.assertEqual(set(sam_flags.FLAG_DECODERS), set(Dialect))

    def test_bits_above_supplementary_are_ignored(self):
        for dialect in Dialect:
            self.assertEqual(
                decode_flags(dialect, 0x1000 | RC),
                decode_flags(dialect, RC),
            )


if __name__ == "__main__":
    unittest.main()
