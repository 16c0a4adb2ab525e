"""Bulk recomputation of derived attributes across all records."""

import asyncio
import enum
from collections.abc import Sequence

from pycatalog.core.config import settings
from pycatalog.core.exceptions import StoreError, StoreTimeoutError
from pycatalog.core.logging import get_logger
from pycatalog.schemas.formula import RecomputeReport
from pycatalog.schemas.record import Record
from pycatalog.services.computation import ComputationPipeline, FormulaLike
from pycatalog.stores.base import RecordStore

logger = get_logger(__name__)


class _Outcome(enum.Enum):
    UPDATED = "updated"
    FAILED = "failed"
    SKIPPED = "skipped"


class RecomputeCoordinator:
    """
    Applies the computation pipeline to every record and persists the result.

    Records are independent, so they are processed concurrently, bounded by
    ``concurrency``. Only the derived attributes are written back. A record
    whose write fails or times out is reported, never raised, and the pass
    carries on; there is no atomicity across the batch.
    """

    def __init__(
        self,
        record_store: RecordStore,
        pipeline: ComputationPipeline | None = None,
        concurrency: int | None = None,
        write_timeout: float | None = None,
    ) -> None:
        """
        Args:
            record_store: Store the derived values are written to
            pipeline: Computation pipeline (a default one is built if omitted)
            concurrency: Max records in flight (defaults to settings)
            write_timeout: Seconds allowed per record write (defaults to settings)
        """
        self.record_store = record_store
        self.pipeline = pipeline or ComputationPipeline()
        self.concurrency = concurrency or settings.recompute_concurrency
        self.write_timeout = write_timeout or settings.recompute_write_timeout_seconds

    async def recompute_all(
        self,
        formulas: Sequence[FormulaLike],
        records: Sequence[Record] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> RecomputeReport:
        """
        Recompute and persist derived attributes for a set of records.

        Args:
            formulas: Active formulas in evaluation order. The list is fixed
                for the whole pass; later edits need a new pass.
            records: Records to process (all records in the store if omitted)
            cancel_event: When set, no further records are started. Writes
                already in flight complete; unstarted records are reported
                as failed so they can be retried.

        Returns:
            RecomputeReport

        Raises:
            StoreError: If ``records`` is omitted and listing them fails
        """
        formulas = list(formulas)
        if records is None:
            records = await self.record_store.list_all()

        semaphore = asyncio.Semaphore(self.concurrency)

        async def process_with_semaphore(record: Record) -> _Outcome:
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    return _Outcome.SKIPPED
                return await self._process_record(record, formulas)

        logger.info(
            f"Recomputing {len(formulas)} formula(s) over {len(records)} record(s)",
            extra={"formula_count": len(formulas), "record_count": len(records)},
        )

        outcomes = await asyncio.gather(*[process_with_semaphore(r) for r in records])

        report = RecomputeReport(total=len(records))
        for record, outcome in zip(records, outcomes):
            if outcome is _Outcome.UPDATED:
                report.succeeded_count += 1
            else:
                report.failed_record_ids.append(record.id)
            if outcome is _Outcome.SKIPPED:
                report.cancelled = True

        log = logger.info if report.all_succeeded else logger.warning
        log(
            f"Recomputation finished: {report.succeeded_count}/{report.total} updated",
            extra={
                "succeeded_count": report.succeeded_count,
                "failed_count": report.failed_count,
                "cancelled": report.cancelled,
            },
        )
        return report

    async def recompute_records(
        self,
        formulas: Sequence[FormulaLike],
        record_ids: Sequence[str],
        cancel_event: asyncio.Event | None = None,
    ) -> RecomputeReport:
        """
        Recompute specific records, e.g. the failures of an earlier pass.

        Records that cannot be loaded count as failed.
        """
        records: list[Record] = []
        unreadable: list[str] = []
        for record_id in dict.fromkeys(record_ids):
            try:
                records.append(await self.record_store.get(record_id))
            except StoreError as e:
                logger.error(f"Could not load record {record_id} for recomputation: {e.message}")
                unreadable.append(record_id)

        report = await self.recompute_all(formulas, records, cancel_event=cancel_event)
        report.total += len(unreadable)
        report.failed_record_ids.extend(unreadable)
        return report

    async def _process_record(self, record: Record, formulas: list[FormulaLike]) -> _Outcome:
        """Compute and write one record; never raises."""
        try:
            derived = self.pipeline.compute(record.data, formulas, record_id=record.id)
            await asyncio.wait_for(
                self.record_store.update_fields(record.id, derived),
                timeout=self.write_timeout,
            )
        except asyncio.TimeoutError:
            error = StoreTimeoutError(record.id, self.write_timeout)
            logger.error(
                f"Write for record {record.id} failed: {error.message}",
                extra={"record_id": record.id, "error_code": error.code},
            )
            return _Outcome.FAILED
        except StoreError as e:
            logger.error(
                f"Write for record {record.id} failed: {e.message}",
                extra={"record_id": record.id, "error_code": e.code},
            )
            return _Outcome.FAILED
        except Exception as e:
            logger.exception(
                f"Unexpected error recomputing record {record.id}: {e}",
                extra={"record_id": record.id},
            )
            return _Outcome.FAILED

        return _Outcome.UPDATED
