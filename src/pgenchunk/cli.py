"""pgenchunk command-line interface.

This module provides a Typer-based CLI over the PLINK2 reader:
- info: print the variant and sample counts of a .pgen file
- chunk: decode a rectangular window and write it as a table
"""

import sys
import time
from pathlib import Path
from typing import Annotated

import typer

import pgenchunk
from pgenchunk.core import DecodeMode, OutputConfig, ReaderConfig
from pgenchunk.errors import PgenError
from pgenchunk.io import write_genotype_chunk
from pgenchunk.reader import open_plink2, pfile_paths
from pgenchunk.utils import setup_logging, write_run_log

app = typer.Typer(
    name="pgenchunk",
    help="pgenchunk: chunked reads of PLINK2 .pgen/.pvar/.psam files.",
    add_completion=False,
)

# Store global options set by callback
_global_config: OutputConfig | None = None


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"pgenchunk version {pgenchunk.__version__}")
        raise typer.Exit()


def parse_range(text: str) -> tuple[int, int]:
    """Parse a "START:END" range option into integers.

    Example:
        >>> parse_range("0:10")
        (0, 10)
    """
    parts = text.split(":")
    if len(parts) != 2:
        raise typer.BadParameter(f"expected START:END, got '{text}'")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        raise typer.BadParameter(
            f"START and END must be integers, got '{text}'"
        ) from None


def _resolve_paths(
    pfile: Path | None,
    pgen: Path | None,
    pvar: Path | None,
    psam: Path | None,
) -> tuple[Path, Path, Path]:
    if pfile is not None:
        return pfile_paths(pfile)
    if pgen is None or pvar is None or psam is None:
        typer.echo("Error: give --pfile or all of --pgen, --pvar, --psam", err=True)
        raise typer.Exit(code=1)
    return pgen, pvar, psam


@app.callback()
def main(
    outdir: Annotated[
        Path,
        typer.Option("-outdir", help="Output directory"),
    ] = Path("output"),
    output: Annotated[
        str,
        typer.Option("-o", help="Output file prefix"),
    ] = "result",
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Verbose output"),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """pgenchunk: chunked reads of PLINK2 genotype files.

    Reads the fixed-width 2-bit .pgen layout and its .pvar/.psam tables.
    """
    global _global_config
    _global_config = OutputConfig(outdir=outdir, prefix=output, verbose=verbose)
    setup_logging(verbose=verbose)


@app.command("info")
def info_command(
    pfile: Annotated[
        Path | None,
        typer.Option("--pfile", help="PLINK2 file prefix (.pgen/.pvar/.psam)"),
    ] = None,
    pgen: Annotated[
        Path | None, typer.Option("--pgen", help="Genotype (.pgen) file")
    ] = None,
    pvar: Annotated[
        Path | None, typer.Option("--pvar", help="Variant (.pvar) file")
    ] = None,
    psam: Annotated[
        Path | None, typer.Option("--psam", help="Sample (.psam) file")
    ] = None,
) -> None:
    """Print the variant and sample counts of a PLINK2 file set."""
    paths = _resolve_paths(pfile, pgen, pvar, psam)

    try:
        reader = open_plink2(*paths)
    except PgenError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    with reader:
        typer.echo(f"Variant count: {reader.variant_count}")
        typer.echo(f"Sample count: {reader.sample_count}")
        typer.echo(f"File size: {reader.file_size} bytes")


@app.command("chunk")
def chunk_command(
    pfile: Annotated[
        Path,
        typer.Option("--pfile", help="PLINK2 file prefix (.pgen/.pvar/.psam)"),
    ],
    variants: Annotated[
        str,
        typer.Option("--variants", help="Variant range START:END (end exclusive)"),
    ],
    samples: Annotated[
        str,
        typer.Option("--samples", help="Sample range START:END (end exclusive)"),
    ],
    legacy: Annotated[
        bool,
        typer.Option(
            "--legacy",
            help="Decode one byte per cell (legacy chunk layout)",
        ),
    ] = False,
    full_range: Annotated[
        bool,
        typer.Option(
            "--full-range",
            help="Allow END equal to the count (default rejects END >= count)",
        ),
    ] = False,
    max_line_length: Annotated[
        int,
        typer.Option("--max-line-length", help="Longest .pvar/.psam line in bytes"),
    ] = 1024,
    check_memory: Annotated[
        bool,
        typer.Option(
            "--check-memory/--no-check-memory",
            help="Enable/disable pre-flight memory check (default: enabled)",
        ),
    ] = True,
) -> None:
    """Decode a genotype window and write it as a tab-separated table.

    Writes {outdir}/{prefix}.geno.txt (samples as rows, variants as columns,
    missing calls as NA) and a run log {outdir}/{prefix}.log.txt.
    """
    start_time = time.perf_counter()

    global _global_config
    if _global_config is None:
        _global_config = OutputConfig()

    command_line = " ".join(sys.argv)

    start_variant, end_variant = parse_range(variants)
    start_sample, end_sample = parse_range(samples)

    try:
        config = ReaderConfig(
            decode_mode=DecodeMode.LEGACY if legacy else DecodeMode.PACKED,
            full_range=full_range,
            max_line_length=max_line_length,
            check_memory=check_memory,
        )
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    try:
        with open_plink2(*pfile_paths(pfile), config=config) as reader:
            typer.echo(
                f"Loaded {reader.variant_count} variants, "
                f"{reader.sample_count} samples"
            )
            read_start = time.perf_counter()
            chunk = reader.read_chunk(
                start_variant, end_variant, start_sample, end_sample
            )
            read_time = time.perf_counter() - read_start
            variant_count = reader.variant_count
            sample_count = reader.sample_count
    except (PgenError, MemoryError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(
        f"Decoded {chunk.n_variants} variants x {chunk.n_samples} samples "
        f"in {read_time:.2f}s"
    )

    _global_config.ensure_outdir()
    geno_path = _global_config.genotype_path
    write_genotype_chunk(chunk, geno_path)
    typer.echo(f"Genotypes written to {geno_path}")

    elapsed = time.perf_counter() - start_time
    params = {
        "variant_count": variant_count,
        "sample_count": sample_count,
        "variant_range": f"[{start_variant}, {end_variant})",
        "sample_range": f"[{start_sample}, {end_sample})",
        "decode_mode": config.decode_mode.value,
        "n_missing": int((chunk.genotypes < 0).sum()),
        "genotype_file": str(geno_path),
    }
    timing = {"total": elapsed, "read": read_time}

    log_path = write_run_log(_global_config, params, timing, command_line)
    typer.echo(f"Log written to {log_path}")


if __name__ == "__main__":
    app()
