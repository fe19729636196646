"""
Tests for bisnorm/fasta_access.py
"""
import pathlib
import tempfile
import unittest

from bisnorm.chrom_table import ChromTable
from bisnorm.datatypes import AnnotatedInterval, Interval, Strand
from bisnorm.fasta_access import (
    FastaRandomAccess,
    adjust_region_size,
    adjust_start_pos,
    extract_regions_chrom_fasta,
    extract_regions_fasta,
)

CHR1_SEQ = ("acgtacgtac" * 5) + ("GGGGGccccc" * 5) + "TTTTAAAACC" * 2
CHR2_SEQ = "AACCGGTTNN" * 8


def write_fasta(filepath, chrom_name, seq, line_width=50):
    lines = [f">{chrom_name}"]
    lines += [seq[i : i + line_width] for i in range(0, len(seq), line_width)]
    filepath.write_text("\n".join(lines) + "\n")


class TestOffsets(unittest.TestCase):
    def test_adjust_start_pos(self):
        # ">chr1\n" is 6 bytes
        self.assertEqual(adjust_start_pos(0, "chr1"), 6)
        self.assertEqual(adjust_start_pos(49, "chr1"), 55)
        self.assertEqual(adjust_start_pos(50, "chr1"), 57)
        self.assertEqual(adjust_start_pos(10, "chr1", line_width=4), 18)

    def test_adjust_region_size(self):
        self.assertEqual(adjust_region_size(0, 10), 10)
        self.assertEqual(adjust_region_size(45, 10), 11)
        self.assertEqual(adjust_region_size(0, 120), 122)
        self.assertEqual(adjust_region_size(3, 10, line_width=4), 13)


class TestFastaRandomAccess(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.dir = pathlib.Path(self.temp_dir.name)
        self.table = ChromTable()
        self.chr1 = self.table.assign("chr1")
        self.chr2 = self.table.assign("chr2")
        write_fasta(self.dir / "chr1.fa", "chr1", CHR1_SEQ)
        write_fasta(self.dir / "chr2.fa", "chr2", CHR2_SEQ)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_first_bases(self):
        with FastaRandomAccess(self.dir / "chr1.fa", "chr1") as fasta:
            seq = fasta.extract(Interval(self.chr1, 0, 10))
        self.assertEqual(seq, "ACGTACGTAC")
        self.assertNotIn("\n", seq)

    def test_regions_spanning_lines(self):
        with FastaRandomAccess(self.dir / "chr1.fa", "chr1") as fasta:
            regions = [(45, 55), (40, 50), (50, 60), (0, 120), (99, 101)]
            for start, end in regions:
                self.assertEqual(
                    fasta.extract(Interval(self.chr1, start, end)),
                    CHR1_SEQ[start:end].upper(),
                    (start, end),
                )

    def test_empty_region(self):
        with FastaRandomAccess(self.dir / "chr1.fa", "chr1") as fasta:
            self.assertEqual(fasta.extract(Interval(self.chr1, 7, 7)), "")

    def test_reverse_strand(self):
        interval = AnnotatedInterval(
            self.chr1, 0, 4, "r", 0.0, Strand.REVERSE
        )
        with FastaRandomAccess(self.dir / "chr1.fa", "chr1") as fasta:
            self.assertEqual(fasta.extract(interval), "ACGT")
            interval.start, interval.end = 50, 56
            self.assertEqual(fasta.extract(interval), "GCCCCC")

    def test_custom_line_width(self):
        write_fasta(self.dir / "chr3.fa", "chr3", CHR2_SEQ, line_width=7)
        seqs = extract_regions_chrom_fasta(
            "chr3",
            self.dir / "chr3.fa",
            [Interval(2, 5, 20), Interval(2, 0, 80)],
            line_width=7,
        )
        self.assertEqual(seqs, [CHR2_SEQ[5:20], CHR2_SEQ])

    def test_past_end_is_truncated(self):
        with FastaRandomAccess(self.dir / "chr2.fa", "chr2") as fasta:
            seq = fasta.extract(Interval(self.chr2, 75, 90))
        self.assertEqual(seq, CHR2_SEQ[75:])

    def test_missing_file(self):
        with self.assertRaises(OSError):
            FastaRandomAccess(self.dir / "chrZ.fa", "chrZ")

    def test_invalid_line_width(self):
        with self.assertRaises(ValueError):
            FastaRandomAccess(self.dir / "chr1.fa", "chr1", line_width=0)

    def test_extract_regions_fasta_keeps_input_order(self):
        intervals = [
            Interval(self.chr2, 0, 5),
            Interval(self.chr1, 50, 55),
            AnnotatedInterval(self.chr2, 10, 14, "x", 0.0, Strand.REVERSE),
            Interval(self.chr1, 0, 3),
        ]
        seqs = extract_regions_fasta(self.dir, intervals, self.table)
        self.assertEqual(seqs, ["AACCG", "GGGGG", "GGTT", "ACG"])

    def test_extract_regions_fasta_missing_chrom(self):
        chr9 = self.table.assign("chr9")
        with self.assertRaises(FileNotFoundError):
            extract_regions_fasta(
                self.dir, [Interval(chr9, 0, 1)], self.table
            )


if __name__ == "__main__":
    unittest.main()
