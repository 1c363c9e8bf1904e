"""
Chunked transactional updates over large record sets.

Each chunk is written under its own transaction. A failure rolls back the
chunk in progress and stops the run; chunks committed before it stay
committed, and the report records where to resume.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence

logger = logging.getLogger(__name__)

# Default number of records per transaction
STEP = 50


@dataclass
class Chunk:
    index: int
    offset: int
    records: Sequence[Dict]

    @property
    def end(self) -> int:
        return self.offset + len(self.records)


@dataclass
class BatchReport:
    total: int
    chunk_size: int
    committed_chunks: List[int] = field(default_factory=list)
    committed_records: int = 0
    # Offset of the first record not yet committed
    resume_offset: int = 0
    error: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.error is None and self.resume_offset >= self.total


class BatchAbortedError(Exception):
    """Raised when a chunk fails. Carries the report of what was committed."""

    def __init__(self, report: BatchReport, cause: Exception):
        self.report = report
        self.cause = cause
        super().__init__(
            f"Batch update aborted at record {report.resume_offset} of {report.total} "
            f"after {len(report.committed_chunks)} committed chunk(s): {cause}"
        )


def iter_chunks(records: Sequence[Dict], chunk_size: int, start: int = 0) -> Iterator[Chunk]:
    """Yield consecutive chunks of at most chunk_size records, beginning at start."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if start < 0:
        raise ValueError(f"start must not be negative, got {start}")

    for index, offset in enumerate(range(start, len(records), chunk_size)):
        yield Chunk(index, offset, records[offset:offset + chunk_size])


class BatchTransactionExecutor:
    """Runs an update function over records, one transaction per chunk."""

    def __init__(self, db):
        self.db = db

    def run_chunked(self, records: Sequence[Dict], chunk_size: int,
                    update_fn: Callable, start: int = 0) -> BatchReport:
        """Apply update_fn(conn, record) to every record from start onwards.

        Raises BatchAbortedError if update_fn (or the commit) fails.
        """
        report = BatchReport(total=len(records), chunk_size=chunk_size, resume_offset=start)

        for chunk in iter_chunks(records, chunk_size, start):
            try:
                with self.db.transaction() as conn:
                    for record in chunk.records:
                        update_fn(conn, record)
            except Exception as e:
                report.error = str(e)
                logger.error(f"Chunk {chunk.index} (records {chunk.offset}-{chunk.end - 1}) rolled back: {e}")
                raise BatchAbortedError(report, e) from e

            report.committed_chunks.append(chunk.index)
            report.committed_records += len(chunk.records)
            report.resume_offset = chunk.end
            logger.debug(f"Committed chunk {chunk.index} ({len(chunk.records)} records)")

        logger.info(f"Committed {report.committed_records} record(s) in {len(report.committed_chunks)} chunk(s)")
        return report
