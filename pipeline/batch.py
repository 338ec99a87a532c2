"""Batch tooling: many scans at once, one report.

A failing item is recorded in the report and never stops the batch.
"""

import asyncio
import logging
from pathlib import Path
from pydantic import BaseModel, Field
from typing import Iterable, List, Optional, Union

from models import ScanResult
from pipeline.processor import ScanOutcome, ScorecardPipeline
from reconciliation.engine import ReconciliationEngine, ReconciliationResult


logger = logging.getLogger(__name__)


class BatchItem(BaseModel):
    source: str
    scan_id: Optional[str] = None
    status: str = "processing"
    reconciliation: Optional[ReconciliationResult] = None
    errors: List[str] = Field(default_factory=list)


class BatchReport(BaseModel):
    processed: int = 0
    created: int = 0
    rounds_created: int = 0
    scores_created: int = 0
    unverified_courses: int = 0
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)
    items: List[BatchItem] = Field(default_factory=list)

    def add(self, item: BatchItem) -> None:
        self.items.append(item)
        self.processed += 1
        for error in item.errors:
            self.errors.append(f"{item.source}: {error}")

        result = item.reconciliation
        if result is None:
            self.skipped += 1
            return
        if result.course_created:
            self.created += 1
        if result.round_created:
            self.rounds_created += 1
        if result.added_to_unverified:
            self.unverified_courses += 1
        self.scores_created += result.scores_created
        if result.course_id is None and not result.added_to_unverified:
            self.skipped += 1


def _item_from_outcome(source: str, outcome: ScanOutcome) -> BatchItem:
    item = BatchItem(
        source=source,
        scan_id=outcome.scan.id,
        status=outcome.scan.status.value,
        reconciliation=outcome.reconciliation,
    )
    if outcome.scan.error_message:
        item.errors.append(outcome.scan.error_message)
    if outcome.reconciliation:
        item.errors.extend(outcome.reconciliation.errors)
    return item


async def process_batch(
    pipeline: ScorecardPipeline,
    image_paths: Iterable[Union[str, Path]],
    *,
    user_id: Optional[str] = None,
    max_concurrent: Optional[int] = None,
) -> BatchReport:
    """Run the pipeline over many images, at most ``max_concurrent`` at a time."""
    semaphore = asyncio.Semaphore(max_concurrent or pipeline.config.max_concurrent_scans)

    async def run_one(path: Union[str, Path]) -> BatchItem:
        source = str(path)
        async with semaphore:
            try:
                outcome = await pipeline.process(path, user_id=user_id)
            except Exception as e:
                logger.exception("Batch item %s failed", source)
                return BatchItem(source=source, status="error", errors=[str(e)])
        return _item_from_outcome(source, outcome)

    items = await asyncio.gather(*(run_one(p) for p in image_paths))

    report = BatchReport()
    for item in items:
        report.add(item)
    logger.info(
        "Batch done: %d processed, %d courses created, %d skipped, %d errors",
        report.processed, report.created, report.skipped, len(report.errors),
    )
    return report


async def convert_scans_to_courses(
    engine: ReconciliationEngine,
    scans: Iterable[ScanResult],
    *,
    max_concurrent: int = 4,
) -> BatchReport:
    """Re-run course reconciliation over already-processed scans."""
    semaphore = asyncio.Semaphore(max_concurrent)

    async def run_one(scan: ScanResult) -> BatchItem:
        source = scan.id or scan.original_image_ref
        async with semaphore:
            try:
                result = await engine.reconcile_scan(scan)
            except Exception as e:
                logger.exception("Reconciliation of scan %s failed", source)
                return BatchItem(source=source, scan_id=scan.id, status="error", errors=[str(e)])
        return BatchItem(
            source=source,
            scan_id=scan.id,
            status=scan.status.value,
            reconciliation=result,
            errors=list(result.errors),
        )

    items = await asyncio.gather(*(run_one(s) for s in scans))

    report = BatchReport()
    for item in items:
        report.add(item)
    return report
