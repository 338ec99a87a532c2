"""Training data capture and export.

A TrainingDataRecord is written for every completed scan. Export is a
read-only view over the stored records used for offline evaluation of
OCR providers and prompts; nothing here feeds back into the pipeline.
"""

import csv
import io
import json
import logging
from pathlib import Path
from pydantic import BaseModel
from typing import Any, Dict, Iterable, List, Optional, Union

from PIL import Image, UnidentifiedImageError

from models import OcrResult, ScanResult, StructuredCourseData, TrainingDataRecord
from pipeline.config import TrainingThresholds
from quality.scoring import ConfidenceScorer
from quality.validator import GolfDataValidator, ValidationPolicy
from reconciliation.stores import TrainingStore


logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "id",
    "scan_id",
    "image_path",
    "processed_image_path",
    "ocr_provider",
    "used_enhanced_prompt",
    "model_version",
    "confidence_score",
    "data_completeness",
    "accuracy_score",
    "has_validation_errors",
    "is_verified",
    "processing_time_ms",
    "extracted_data",
    "verified_data",
    "created_at",
]


class ExportFilters(BaseModel):
    verified_only: bool = False
    min_confidence: Optional[float] = None
    ocr_provider: Optional[str] = None
    enhanced_prompt_only: bool = False


def image_size(image_ref: Optional[str]) -> Optional[Dict[str, Any]]:
    """Width/height/mime/bytes of an image, or None if it cannot be read."""
    if not image_ref:
        return None
    path = Path(image_ref)
    try:
        with Image.open(path) as img:
            width, height = img.size
            mime = Image.MIME.get(img.format or "")
        return {"width": width, "height": height, "type": mime, "size_bytes": path.stat().st_size}
    except (OSError, UnidentifiedImageError) as e:
        logger.warning("Could not get image size for %s: %s", image_ref, e)
        return None


def preprocessing_steps(metadata: Dict[str, Any]) -> Dict[str, bool]:
    return {
        "grayscale_applied": metadata.get("grayscale", True),
        "contrast_enhanced": metadata.get("contrast", True),
        "noise_reduction": metadata.get("noise_reduction", False),
        "perspective_correction": metadata.get("perspective", False),
    }


def export_row(record: TrainingDataRecord) -> Dict[str, Any]:
    """Flattened view of one record for export."""
    return {
        "id": record.id,
        "scan_id": record.scan_id,
        "image_path": record.original_image_ref,
        "processed_image_path": record.processed_image_ref,
        "raw_response": record.raw_ocr_response,
        "extracted_data": record.extracted_data,
        "verified_data": record.verified_data,
        "confidence_score": record.confidence_score,
        "quality_metrics": record.quality_metrics(),
        "processing_metadata": record.processing_metadata,
        "ocr_provider": record.ocr_provider,
        "used_enhanced_prompt": record.used_enhanced_prompt,
        "model_version": record.model_version,
        "is_verified": record.is_verified,
        "created_at": record.created_at.isoformat() if record.created_at else None,
    }


def matches_filters(record: TrainingDataRecord, filters: ExportFilters) -> bool:
    if not record.is_training_candidate:
        return False
    if filters.verified_only and not record.is_verified:
        return False
    if filters.min_confidence is not None and record.confidence_score < filters.min_confidence:
        return False
    if filters.ocr_provider and record.ocr_provider != filters.ocr_provider:
        return False
    if filters.enhanced_prompt_only and not record.used_enhanced_prompt:
        return False
    return True


def export_csv(rows: Iterable[Dict[str, Any]]) -> str:
    """Render export rows as CSV. Nested values are JSON-encoded."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        metrics = row.get("quality_metrics") or {}
        flat = {
            **row,
            "data_completeness": metrics.get("data_completeness"),
            "accuracy_score": metrics.get("accuracy_score"),
            "has_validation_errors": metrics.get("has_validation_errors"),
            "processing_time_ms": metrics.get("processing_time"),
            "extracted_data": json.dumps(row.get("extracted_data") or {}, sort_keys=True),
            "verified_data": (
                json.dumps(row["verified_data"], sort_keys=True) if row.get("verified_data") else ""
            ),
        }
        writer.writerow(flat)
    return buffer.getvalue()


class TrainingDataService:
    """Builds, stores and exports TrainingDataRecords."""

    def __init__(
        self,
        store: Optional[TrainingStore] = None,
        *,
        thresholds: Optional[TrainingThresholds] = None,
        model_version: str = "v1",
    ):
        self.store = store
        self.scorer = ConfidenceScorer(thresholds)
        self.validator = GolfDataValidator(ValidationPolicy.LENIENT)
        self.model_version = model_version

    def build_record(
        self,
        scan: ScanResult,
        ocr_result: Union[OcrResult, Dict[str, Any]],
        data: Optional[StructuredCourseData] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> TrainingDataRecord:
        raw = ocr_result.model_dump(mode="json") if isinstance(ocr_result, OcrResult) else dict(ocr_result)
        data = data or scan.parsed_data or StructuredCourseData()
        metadata = dict(metadata or {})

        report = self.scorer.score(raw, data)
        validation = self.validator.validate(data)
        issues = [issue.as_dict() for issue in validation.all_issues()]

        return TrainingDataRecord(
            scan_id=scan.id,
            raw_ocr_response=raw,
            extracted_data=data.to_payload(),
            confidence_score=report.overall,
            is_training_candidate=self.scorer.is_training_candidate(report, issues),
            ocr_provider=raw.get("provider") or "unknown",
            used_enhanced_prompt=bool(raw.get("enhanced_format")),
            model_version=self.model_version,
            data_completeness_score=report.completeness,
            field_confidence_scores=report.fields,
            validation_errors=issues,
            processing_time_ms=raw.get("processing_time_ms"),
            processing_metadata={
                **metadata,
                "image_size": image_size(scan.original_image_ref),
                "preprocessing_steps": preprocessing_steps(metadata),
            },
            original_image_ref=scan.original_image_ref,
            processed_image_ref=scan.processed_image_ref,
        )

    async def save_from_scan(
        self,
        scan: ScanResult,
        ocr_result: Union[OcrResult, Dict[str, Any]],
        data: Optional[StructuredCourseData] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> TrainingDataRecord:
        record = self.build_record(scan, ocr_result, data, metadata)
        if self.store is not None:
            record = await self.store.create_record(record)
        logger.info(
            "Training data saved for scan %s (confidence %.2f, completeness %d, candidate %s)",
            scan.id, record.confidence_score, record.data_completeness_score,
            record.is_training_candidate,
        )
        return record

    async def verify(self, record: TrainingDataRecord, corrections: Dict[str, Any]) -> TrainingDataRecord:
        """Apply reviewer corrections to the extracted data and mark the record verified.

        Rejected corrections raise ValueError before anything is changed.
        """
        data = StructuredCourseData.model_validate(record.extracted_data)
        rejected = data.apply_corrections(corrections)
        if rejected:
            details = ", ".join(f"{field} ({msg})" for field, msg in sorted(rejected.items()))
            raise ValueError(f"Invalid corrections: {details}")

        record.mark_verified(data.to_payload(), dict(corrections))
        if self.store is not None:
            record = await self.store.save_verification(record)
        logger.info(
            "Training record %s verified with %d correction(s), accuracy %s",
            record.id, len(corrections), record.accuracy_score(),
        )
        return record

    async def export(self, filters: Optional[ExportFilters] = None) -> List[Dict[str, Any]]:
        """Flattened training candidates matching the filters."""
        if self.store is None:
            raise RuntimeError("No training store configured")
        filters = filters or ExportFilters()
        records = await self.store.list_records(
            candidates_only=True,
            verified_only=filters.verified_only,
            min_confidence=filters.min_confidence,
            ocr_provider=filters.ocr_provider,
            enhanced_prompt_only=filters.enhanced_prompt_only,
        )
        return [export_row(r) for r in records if matches_filters(r, filters)]

    async def export_csv(self, filters: Optional[ExportFilters] = None) -> str:
        return export_csv(await self.export(filters))
