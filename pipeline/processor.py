"""End-to-end scan processing.

image -> preprocess -> OCR -> parse -> score -> store scan -> training
record -> reconcile course -> materialize round.

Each call handles one scan sequentially. Blocking work (Pillow, HTTP
providers) runs in a worker thread so many scans can share one event
loop; the OCR step is time-bounded and degrades to the mock result.
"""

import asyncio
import logging
from pathlib import Path
from pydantic import BaseModel
from typing import Optional, Union
from uuid import uuid4

from database.exceptions import DatabaseError
from database.repositories import (
    CourseRepositoryDB,
    RoundRepositoryDB,
    ScanRepositoryDB,
    TrainingDataRepositoryDB,
)
from imaging.preprocess import ImageProcessingError, ImagePreprocessor, validate_upload
from models import OcrResult, ScanResult, ScanStatus, TrainingDataRecord
from ocr.exceptions import OcrError
from ocr.service import OcrService
from parsing.parser import ScorecardParser
from pipeline.config import ScannerConfig
from quality.scoring import ConfidenceScorer
from reconciliation.engine import ReconciliationEngine, ReconciliationResult
from reconciliation.stores import ScanStore
from training.service import TrainingDataService


logger = logging.getLogger(__name__)

# Extra seconds on top of the provider's own HTTP timeout.
OCR_TIMEOUT_GRACE_SECONDS = 5.0


class ScanProcessingError(Exception):
    """A scan ended in the failed state and the caller asked for an exception."""

    def __init__(self, message: str, scan: Optional[ScanResult] = None):
        super().__init__(message)
        self.scan = scan


class ScanOutcome(BaseModel):
    """Everything one pipeline run produced."""
    scan: ScanResult
    ocr_result: Optional[OcrResult] = None
    reconciliation: Optional[ReconciliationResult] = None
    training_record: Optional[TrainingDataRecord] = None

    @property
    def completed(self) -> bool:
        return self.scan.status == ScanStatus.COMPLETED


class ScorecardPipeline:
    """Wires the scan stages together. Configuration is fixed per instance."""

    def __init__(
        self,
        config: ScannerConfig,
        *,
        ocr: Optional[OcrService] = None,
        preprocessor: Optional[ImagePreprocessor] = None,
        parser: Optional[ScorecardParser] = None,
        scorer: Optional[ConfidenceScorer] = None,
        engine: Optional[ReconciliationEngine] = None,
        scan_store: Optional[ScanStore] = None,
        training: Optional[TrainingDataService] = None,
    ):
        self.config = config
        self.ocr = ocr or OcrService(config)
        self.preprocessor = preprocessor or ImagePreprocessor(config.imaging)
        self.parser = parser or ScorecardParser()
        self.scorer = scorer or ConfidenceScorer(config.training)
        self.engine = engine
        self.scan_store = scan_store
        self.training = training

    @classmethod
    def from_pool(cls, config: ScannerConfig, pool) -> "ScorecardPipeline":
        """Pipeline backed by the Postgres repositories sharing one pool."""
        return cls(
            config,
            engine=ReconciliationEngine(
                CourseRepositoryDB(pool),
                RoundRepositoryDB(pool),
                config=config.reconciliation,
            ),
            scan_store=ScanRepositoryDB(pool),
            training=TrainingDataService(
                TrainingDataRepositoryDB(pool),
                thresholds=config.training,
                model_version=config.model_version,
            ),
        )

    @property
    def ocr_timeout(self) -> float:
        return self.config.provider_config(self.ocr.provider.name).timeout_seconds + OCR_TIMEOUT_GRACE_SECONDS

    async def process(
        self,
        image_path: Union[str, Path],
        *,
        user_id: Optional[str] = None,
        raise_on_failure: bool = False,
    ) -> ScanOutcome:
        scan = ScanResult(user_id=user_id, original_image_ref=str(image_path))
        scan = await self._create(scan)
        outcome = ScanOutcome(scan=scan)

        try:
            await self._run(Path(image_path), outcome)
        except (ImageProcessingError, OcrError, ValueError) as e:
            logger.error("Scan %s failed: %s", scan.id, e)
            outcome.scan.mark_failed(str(e))
        except Exception as e:
            logger.exception("Unexpected error processing scan %s", scan.id)
            outcome.scan.mark_failed(f"Processing failed: {e}")

        outcome.scan = await self._save(outcome.scan)

        if outcome.completed:
            outcome.training_record = await self._record_training(outcome)
            if self.engine is not None:
                outcome.reconciliation = await self.engine.reconcile_scan(outcome.scan)

        if raise_on_failure and not outcome.completed:
            raise ScanProcessingError(outcome.scan.error_message or "Scan failed", outcome.scan)
        return outcome

    async def _run(self, image_path: Path, outcome: ScanOutcome) -> None:
        scan = outcome.scan
        validate_upload(image_path)

        processed = await asyncio.to_thread(self.preprocessor.preprocess, image_path)
        scan.processed_image_ref = str(processed)

        ocr_result = await self.extract(processed)
        outcome.ocr_result = ocr_result
        raw = ocr_result.model_dump(mode="json")
        scan.raw_ocr_payload = raw

        data = self.parser.parse(raw)
        report = self.scorer.score(raw, data)
        if data.confidence_score is None:
            data.confidence_score = report.overall

        scan.parsed_data = data
        scan.confidence_scores = report.as_scores()
        scan.mark_completed()
        logger.info(
            "Scan %s completed via %s (confidence %.2f, completeness %d%%)",
            scan.id, ocr_result.provider, report.overall, report.completeness,
        )

    async def extract(self, image_path: Path) -> OcrResult:
        """Run the provider off the event loop, bounded by its timeout."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.ocr.extract_text, image_path),
                timeout=self.ocr_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "OCR provider %s timed out after %.0fs on %s, using mock data",
                self.ocr.provider_name, self.ocr_timeout, image_path,
            )
            return self.ocr.fallback_result()

    # ================================================================
    # Persistence
    # ================================================================

    async def _create(self, scan: ScanResult) -> ScanResult:
        if self.scan_store is None:
            scan.id = str(uuid4())
            return scan
        return await self.scan_store.create_scan(scan)

    async def _save(self, scan: ScanResult) -> ScanResult:
        if self.scan_store is None:
            return scan
        return await self.scan_store.update_scan(scan)

    async def _record_training(self, outcome: ScanOutcome) -> Optional[TrainingDataRecord]:
        if self.training is None or outcome.ocr_result is None:
            return None
        try:
            return await self.training.save_from_scan(
                outcome.scan,
                outcome.ocr_result,
                metadata={"perspective": False},
            )
        except DatabaseError:
            logger.exception("Could not save training data for scan %s", outcome.scan.id)
            return None
