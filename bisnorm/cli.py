from __future__ import annotations

import logging
import pathlib
from typing import Annotated, Iterator, Optional

import colorama
import typer

from bisnorm import config as bisnorm_config
from bisnorm.bam_types import AlignmentFileReader, read_alignment_text
from bisnorm.chrom_table import ChromTable
from bisnorm.datatypes import AlignedRead
from bisnorm.fasta_access import extract_regions_fasta
from bisnorm.interval_io import check_sorted, format_interval, read_bed_file
from bisnorm.sam_flags import Dialect

colorama.init()
app = typer.Typer(
    help="Normalize bisulfite mapper output into genomic intervals.",
    pretty_exceptions_show_locals=False,
)
logger = logging.getLogger(__name__)


# Note: typer.Arguments are required, typer.Options are optional
OutputArg = Annotated[pathlib.Path, typer.Option(help="Output file.")]
ConfigArg = Annotated[
    Optional[pathlib.Path],
    typer.Option(help="JSON configuration file (see bisnorm.config)."),
]
DialectArg = Annotated[
    Optional[Dialect],
    typer.Option(
        help="Mapper that produced the alignments. Overrides the config file."
    ),
]


def print_status(message: str) -> None:
    print(
        f"{colorama.Style.DIM}{colorama.Fore.LIGHTYELLOW_EX}"
        f"{message}"
        f"{colorama.Style.RESET_ALL}"
    )


def exit_with_error(error: Exception) -> None:
    logger.error(str(error))
    typer.echo(
        f"{colorama.Fore.RED}ERROR: {error}{colorama.Style.RESET_ALL}",
        err=True,
    )
    raise typer.Exit(code=1)


def setup_run(
    config_path: pathlib.Path | None, output: pathlib.Path
) -> bisnorm_config.BisnormConfig:
    output.parent.mkdir(parents=True, exist_ok=True)
    run_config = bisnorm_config.load_config(config_path)
    bisnorm_config.configure_logging(run_config, f"{output}.log")
    return run_config


def iter_reads(
    alignments: pathlib.Path,
    dialect: Dialect,
    chrom_table: ChromTable,
    text: bool,
) -> Iterator[AlignedRead]:
    if text:
        yield from read_alignment_text(alignments, dialect, chrom_table)
        return
    with AlignmentFileReader(alignments, dialect, chrom_table) as reader:
        yield from reader


@app.command(help="Convert mapper output into normalized interval records.")
def normalize(
    ctx: typer.Context,
    alignments: Annotated[
        pathlib.Path, typer.Option(help="SAM/BAM file written by the mapper.")
    ],
    output: OutputArg,
    dialect: DialectArg = None,
    config: ConfigArg = None,
    keep_unmapped: Annotated[
        bool,
        typer.Option(help="If specified, also write unmapped records."),
    ] = False,
    text: Annotated[
        bool,
        typer.Option(
            help="If specified, read alignments as plain text instead of "
            "through htslib."
        ),
    ] = False,
) -> None:
    print_status(f"Normalizing alignments with options: {ctx.params}")
    try:
        run_config = setup_run(config, output)
        dialect = dialect or run_config.dialect
        skip_unmapped = run_config.skip_unmapped and not keep_unmapped
        chrom_table = ChromTable()

        num_written = num_skipped = 0
        with open(output, "w") as out:
            for read in iter_reads(alignments, dialect, chrom_table, text):
                if skip_unmapped and not read.is_mapped:
                    num_skipped += 1
                    continue
                if read.is_mapped:
                    region = format_interval(read.interval, chrom_table)
                else:
                    region = f"*\t0\t0\t{read.name}\t0\t+"
                out.write(f"{region}\t{read.seq}\n")
                num_written += 1
    except (OSError, ValueError) as error:  # Includes FormatError
        exit_with_error(error)

    logger.info(
        f"Wrote {num_written} reads to {output}, skipped {num_skipped} "
        f"unmapped reads across {len(chrom_table)} chromosomes."
    )
    print(f"\nCompleted normalization: {num_written} reads written.")


@app.command(help="Extract reference sequences for intervals in a BED file.")
def extract(
    ctx: typer.Context,
    regions: Annotated[
        pathlib.Path, typer.Option(help="BED file of intervals to extract.")
    ],
    fasta_dir: Annotated[
        pathlib.Path,
        typer.Option(help="Directory of per-chromosome <chrom>.fa files."),
    ],
    output: OutputArg,
    line_width: Annotated[
        Optional[int],
        typer.Option(help="FASTA line width. Overrides the config file."),
    ] = None,
    config: ConfigArg = None,
) -> None:
    print_status(f"Extracting sequences with options: {ctx.params}")
    try:
        run_config = setup_run(config, output)
        chrom_table = ChromTable()
        intervals = read_bed_file(regions, chrom_table)
        if not check_sorted(intervals):
            logger.warning(
                f"Intervals in {regions} are not sorted; output keeps the "
                "input order."
            )
        sequences = extract_regions_fasta(
            fasta_dir,
            intervals,
            chrom_table,
            line_width=line_width or run_config.fasta_line_width,
            suffix=run_config.fasta_suffix,
        )
        with open(output, "w") as out:
            for interval, seq in zip(intervals, sequences):
                name = getattr(interval, "name", "") or (
                    f"{chrom_table.lookup(interval.chrom)}:"
                    f"{interval.start}-{interval.end}"
                )
                out.write(f">{name}\n{seq}\n")
    except (OSError, ValueError) as error:  # Includes FormatError
        exit_with_error(error)

    logger.info(f"Wrote {len(sequences)} sequences to {output}.")
    print(f"\nCompleted extraction: {len(sequences)} sequences written.")


if __name__ == "__main__":
    app()
