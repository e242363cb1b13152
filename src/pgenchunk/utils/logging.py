"""Logging utilities for pgenchunk.

This module provides loguru-based logging configuration and the ##-style run
log written next to CLI output.
"""

import sys
from datetime import datetime
from pathlib import Path

from loguru import logger

import pgenchunk


def setup_logging(
    verbose: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure loguru for pgenchunk.

    Sets up console logging with INFO level (or DEBUG if verbose), and
    optional file logging with JSON serialization.

    Args:
        verbose: If True, set console logging to DEBUG level.
        log_file: Optional path to log file. If provided, DEBUG-level
            logs are written with JSON serialization.
    """
    logger.remove()

    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stdout,
        level=level,
        format="{time:HH:mm:ss} | <level>{level: <8}</level> | {message}",
        colorize=True,
    )

    if log_file:
        logger.add(
            log_file,
            serialize=True,
            level="DEBUG",
        )


def write_run_log(
    output_config: "pgenchunk.core.config.OutputConfig",
    params: dict,
    timing: dict,
    command_line: str,
) -> Path:
    """Write the run summary log.

    Produces a .log.txt file with ## prefixes for section headers.

    Args:
        output_config: Output configuration specifying directory and prefix.
        params: Dictionary of parameters to log (e.g., variant_count).
        timing: Dictionary of timing information in seconds.
        command_line: The command line used to invoke the program.

    Returns:
        Path to the written log file.

    Example output format:
        ##
        ## pgenchunk Version = 0.1.0
        ## Date = 2024-01-31T10:30:00
        ##
        ## Command Line Input = pgenchunk chunk --pfile data
        ##
        ## Summary Statistics:
        ## variant_count = 12226
        ## sample_count = 1940
        ##
        ## Computation Time:
        ## total time = 1.23 seconds
        ##
    """
    output_config.ensure_outdir()

    log_path = output_config.log_path

    with open(log_path, "w") as f:
        f.write("##\n")
        f.write(f"## pgenchunk Version = {pgenchunk.__version__}\n")
        f.write(f"## Date = {datetime.now().isoformat()}\n")
        f.write("##\n")

        f.write(f"## Command Line Input = {command_line}\n")
        f.write("##\n")

        f.write("## Summary Statistics:\n")
        for key, value in params.items():
            f.write(f"## {key} = {value}\n")
        f.write("##\n")

        f.write("## Computation Time:\n")
        for key, seconds in timing.items():
            f.write(f"## {key} time = {seconds:.2f} seconds\n")
        f.write("##\n")

    return log_path
