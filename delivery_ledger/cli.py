"""
Command Line Interface for Delivery Ledger

Consolidates one or more delivery order exports into a single report.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from .ingest.pipeline import ExtractionPipeline, resolve_file_type
from .models import FileType, SinkFailure, UnsupportedFileType
from .reporting.sink import make_sink
from .utils.config import load_ingest_config
from .utils.structured_logging import configure_structured_logging

logger = logging.getLogger(__name__)


@click.command()
@click.option('--type', '-t', 'file_type', default=FileType.HTSC.value,
              show_default=True,
              help=f"Export file type ({', '.join(t.value for t in FileType)})")
@click.option('--output', '-o', default=None,
              help='Report path, .xlsx or .csv (default: output from config, output.xlsx)')
@click.option('--config-dir', default='config', show_default=True,
              help='Directory holding ingest.yml')
@click.option('--debug', '-d', is_flag=True, default=False,
              help='Verbose output')
@click.option('--json-logs', is_flag=True, default=False,
              help='Emit logs as JSON lines')
@click.option('--log-file', default=None, type=click.Path(dir_okay=False),
              help='Also write logs to this file')
@click.argument('inputs', nargs=-1, required=True,
                type=click.Path(dir_okay=False, path_type=Path))
def main(file_type: str, output: Optional[str], config_dir: str, debug: bool,
         json_logs: bool, log_file: Optional[str], inputs: Tuple[Path, ...]):
    """
    Consolidate delivery order exports into one report

    Examples:
        dlv export1.txt export2.txt
        dlv -t HTSC_FIXED -o report.csv 2023.txt
    """
    configure_structured_logging(
        log_level="DEBUG" if debug else "INFO",
        log_file=log_file,
        json_format=json_logs
    )

    try:
        kind = resolve_file_type(file_type)
    except UnsupportedFileType as e:
        raise click.BadParameter(str(e), param_hint="'--type'")

    try:
        config = load_ingest_config(config_dir)
    except ValueError as e:
        click.echo(f"❌ Invalid configuration in {config_dir}: {e}", err=True)
        sys.exit(1)
    output_path = Path(output or config.output)

    logger.debug(f"Input files ({kind.value}): {[str(p) for p in inputs]}")
    logger.debug(f"Output file: {output_path}")

    pipeline = ExtractionPipeline(make_sink(output_path), config)

    try:
        result = asyncio.run(pipeline.run([(path, kind) for path in inputs]))
    except SinkFailure as e:
        click.echo(f"❌ Report could not be written: {e}", err=True)
        sys.exit(1)

    click.echo(f"✅ Wrote {result.records_written:,} records to {output_path}")
    for report in result.files:
        if report.ok:
            click.echo(f"   • {report.path}: {report.records} records"
                       + (f", {report.skipped} lines skipped" if report.skipped else ""))
        else:
            click.echo(f"   • {report.path}: FAILED ({report.error})")

    if result.mismatches:
        click.echo(f"⚠️  {len(result.mismatches)} position mismatches against broker remaining quantity")
        if debug:
            for m in result.mismatches:
                click.echo(f"   • {m.date} {m.security_code}: broker={m.vendor_value} local={m.local_value}")

    if result.failed_files:
        sys.exit(1)


if __name__ == "__main__":
    main()
