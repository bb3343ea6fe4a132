"""
Extraction pipeline

One producer task per export file parses lines into records and feeds a
shared bounded queue; a single consumer drains the queue into the report
sink. Each producer finishes with exactly one sentinel, and the consumer
finalizes the sink once it has seen one sentinel per producer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple, Union

from ..models import (FileReport, FileType, FormatMismatch, ParseError,
                      PipelineResult, UnsupportedFileType)
from ..reporting.sink import ReportSink
from ..utils.config import IngestConfig
from ..utils.structured_logging import RunContext, get_ingest_logger
from .classifier import TradeClassifier
from .column_mapper import map_line
from .ledger import PositionLedger
from .reader import LineReader, check_export_file
from .schema import schema_from_title

logger = logging.getLogger(__name__)

SENTINEL = None

InputSpec = Tuple[Union[str, Path], FileType]


def resolve_file_type(tag: Union[str, FileType]) -> FileType:
    """
    Map a file type tag to its parser variant

    Raises:
        UnsupportedFileType: If the tag names no known variant
    """
    if isinstance(tag, FileType):
        return tag
    try:
        return FileType(str(tag).upper())
    except ValueError:
        known = ", ".join(t.value for t in FileType)
        raise UnsupportedFileType(f"Unknown file type: {tag} (known: {known})")


class ExtractionPipeline:
    """
    Concurrent export file extraction

    The ledger is shared by all producers of a run because any file may
    reference any security.
    """

    def __init__(self, sink: ReportSink, config: Optional[IngestConfig] = None,
                 ledger: Optional[PositionLedger] = None):
        self.sink = sink
        self.config = config or IngestConfig()
        self.context = RunContext.create(component="pipeline")
        self.ingest_logger = get_ingest_logger(__name__, self.context)
        self.ledger = ledger or PositionLedger(self.ingest_logger)
        self.classifier = TradeClassifier(self.config.business_types)

    async def run(self, inputs: Sequence[InputSpec]) -> PipelineResult:
        """
        Extract every input file into the sink

        Raises:
            SinkFailure: If the sink rejects a record; all producers are cancelled
        """
        inputs = [(Path(path), resolve_file_type(file_type)) for path, file_type in inputs]
        if not inputs:
            logger.warning("No input files, nothing to extract")
            return PipelineResult(records_written=0)

        logger.info(f"Starting extraction {self.context.run_id}: {len(inputs)} files -> {self.sink.path}")

        queue: asyncio.Queue = asyncio.Queue(maxsize=self.config.queue_size)
        producers = [
            asyncio.create_task(self._produce(path, file_type, queue), name=f"produce:{path.name}")
            for path, file_type in inputs
        ]

        try:
            written = await self._consume(queue, len(producers))
        except BaseException:
            for task in producers:
                task.cancel()
            await asyncio.gather(*producers, return_exceptions=True)
            logger.error(f"Extraction {self.context.run_id} aborted, producers cancelled")
            raise

        reports = list(await asyncio.gather(*producers))
        result = PipelineResult(
            records_written=written,
            files=reports,
            mismatches=list(self.ledger.mismatches),
        )
        logger.info(f"Extraction {self.context.run_id} complete: {written} records, "
                    f"{len(result.failed_files)} failed files, {len(result.mismatches)} ledger mismatches")
        return result

    async def _produce(self, path: Path, file_type: FileType, queue: asyncio.Queue) -> FileReport:
        report = FileReport(path=str(path), file_type=file_type)
        try:
            await self._read_file(path, file_type, queue, report)
            self.ingest_logger.file_event(
                str(path), "completed",
                f"Finished {path.name}: {report.records} records, {report.skipped} skipped",
                records=report.records, skipped=report.skipped)
        except asyncio.CancelledError:
            logger.info(f"Reading {path.name} cancelled after {report.records} records")
            raise
        except Exception as e:
            report.error = f"{type(e).__name__}: {e}"
            self.ingest_logger.file_event(
                str(path), "failed", f"Rejected {path.name}: {report.error}",
                records=report.records)

        await queue.put(SENTINEL)
        return report

    async def _read_file(self, path: Path, file_type: FileType,
                         queue: asyncio.Queue, report: FileReport):
        check_export_file(path)
        reader = LineReader(path, self.config.encoding)
        try:
            await asyncio.to_thread(reader.open)
            title = await asyncio.to_thread(reader.readline)
            if title is None:
                raise FormatMismatch(f"{path.name} is empty")
            schema = schema_from_title(file_type, title, self.config.column_synonyms)
            logger.debug(f"Reading {path.name} as {file_type.value} with {len(schema)} columns")

            while True:
                line = await asyncio.to_thread(reader.readline)
                if line is None:
                    break
                if not line.strip():
                    continue

                try:
                    builder = map_line(schema, line, self.classifier)
                except ParseError as e:
                    report.skipped += 1
                    self.ingest_logger.line_skipped(str(path), reader.line_no, str(e))
                    continue
                except FormatMismatch as e:
                    raise FormatMismatch(f"{path.name}:{reader.line_no}: {e}") from e

                self.ledger.apply(builder)
                record = builder.build()
                if not record.is_valid:
                    continue

                await queue.put(record)
                report.records += 1
        finally:
            reader.close()

    async def _consume(self, queue: asyncio.Queue, producers: int) -> int:
        finished = 0
        while finished < producers:
            item = await queue.get()
            if item is SENTINEL:
                finished += 1
                continue
            self.sink.write(item)

        self.sink.finalize()
        return self.sink.rows_written


async def extract(inputs: Iterable[InputSpec], sink: ReportSink,
                  config: Optional[IngestConfig] = None) -> PipelineResult:
    """Run one extraction with a fresh ledger"""
    pipeline = ExtractionPipeline(sink, config)
    return await pipeline.run(list(inputs))


def extract_files(paths: Sequence[Union[str, Path]], file_type: Union[str, FileType],
                  sink: ReportSink, config: Optional[IngestConfig] = None) -> PipelineResult:
    """Blocking helper: extract files that all share one file type"""
    file_type = resolve_file_type(file_type)
    return asyncio.run(extract([(p, file_type) for p in paths], sink, config))

