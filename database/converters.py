"""Conversion between asyncpg database rows and Pydantic domain models.

JSONB columns are written with json.dumps and read back tolerating either
an already-decoded value or the raw JSON string (no codec registered).
"""

import json
from typing import Any, Optional
from uuid import UUID

from models import (
    Course,
    Round,
    RoundScore,
    ScanResult,
    StructuredCourseData,
    TrainingDataRecord,
    UnverifiedCourse,
)


def _json(value: Any, default: Any = None) -> Any:
    if value is None:
        return default
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def _dumps(value: Any) -> Optional[str]:
    return json.dumps(value) if value is not None else None


def _str_id(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _uuid(value: Optional[str]) -> Optional[UUID]:
    return UUID(value) if value else None


def _float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


# ================================================================
# Row -> Model (reads)
# ================================================================

def course_from_row(row) -> Course:
    """courses.courses row -> Course model."""
    return Course(
        id=str(row["id"]),
        name=row["name"],
        tee_name=row["tee_name"] or "",
        par_values=_json(row["par_values"], []),
        handicap_values=_json(row["handicap_values"], []),
        slope=row["slope"],
        rating=_float(row["rating"]),
        location=row["location"],
        is_verified=row["is_verified"],
        created_at=row["created_at"],
    )


def unverified_course_from_row(row) -> UnverifiedCourse:
    """courses.unverified_courses row -> UnverifiedCourse model."""
    return UnverifiedCourse(
        id=str(row["id"]),
        name=row["name"],
        tee_name=row["tee_name"] or "",
        par_values=_json(row["par_values"], []),
        handicap_values=_json(row["handicap_values"], []),
        slope=row["slope"],
        rating=_float(row["rating"]),
        location=row["location"],
        submission_count=row["submission_count"],
        status=row["status"],
        admin_notes=row["admin_notes"],
        created_at=row["created_at"],
    )


def round_score_from_row(row) -> RoundScore:
    """users.round_scores row -> RoundScore model."""
    return RoundScore(
        id=_str_id(row["id"]),
        round_id=_str_id(row["round_id"]),
        player_name=row["player_name"],
        hole_number=row["hole_number"],
        score=row["score"],
        par=row["par"],
        handicap=row["handicap"],
    )


def round_from_rows(round_row, score_rows: list) -> Round:
    """Assemble a Round from its row plus its score rows."""
    scores = sorted(
        [round_score_from_row(r) for r in score_rows],
        key=lambda s: (s.player_name, s.hole_number),
    )
    return Round(
        id=str(round_row["id"]),
        user_id=str(round_row["user_id"]),
        course_id=str(round_row["course_id"]),
        scan_id=_str_id(round_row["scan_id"]),
        played_at=round_row["played_at"],
        total_score=round_row["total_score"],
        front_nine_score=round_row["front_nine_score"],
        back_nine_score=round_row["back_nine_score"],
        weather=round_row["weather"],
        notes=round_row["notes"],
        created_at=round_row["created_at"],
        scores=scores,
    )


def scan_from_row(row) -> ScanResult:
    """users.scorecard_scans row -> ScanResult model."""
    parsed = _json(row["parsed_data"])
    return ScanResult(
        id=str(row["id"]),
        user_id=_str_id(row["user_id"]),
        status=row["status"],
        original_image_ref=row["original_image_ref"],
        processed_image_ref=row["processed_image_ref"],
        raw_ocr_payload=_json(row["raw_ocr_payload"]),
        parsed_data=StructuredCourseData.model_validate(parsed) if parsed else None,
        confidence_scores=_json(row["confidence_scores"], {}),
        error_message=row["error_message"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def training_record_from_row(row) -> TrainingDataRecord:
    """users.scan_training_data row -> TrainingDataRecord model."""
    return TrainingDataRecord(
        id=str(row["id"]),
        scan_id=str(row["scan_id"]),
        raw_ocr_response=_json(row["raw_ocr_response"], {}),
        extracted_data=_json(row["extracted_data"], {}),
        confidence_score=float(row["confidence_score"] or 0),
        verified_data=_json(row["verified_data"]),
        corrections=_json(row["corrections"]),
        error_analysis=_json(row["error_analysis"]),
        is_verified=row["is_verified"],
        is_training_candidate=row["is_training_candidate"],
        ocr_provider=row["ocr_provider"],
        used_enhanced_prompt=row["used_enhanced_prompt"],
        model_version=row["model_version"],
        data_completeness_score=row["data_completeness_score"],
        field_confidence_scores=_json(row["field_confidence_scores"], {}),
        validation_errors=_json(row["validation_errors"], []),
        processing_time_ms=row["processing_time_ms"],
        processing_metadata=_json(row["processing_metadata"], {}),
        original_image_ref=row["original_image_ref"],
        processed_image_ref=row["processed_image_ref"],
        created_at=row["created_at"],
    )


# ================================================================
# Model -> Row (writes)
# ================================================================

def course_to_row(course: Course) -> dict:
    """Course -> dict for courses.courses INSERT."""
    return {
        "name": course.name,
        "tee_name": course.tee_name,
        "par_values": json.dumps(course.par_values),
        "handicap_values": json.dumps(course.handicap_values),
        "slope": course.slope,
        "rating": course.rating,
        "location": course.location,
        "is_verified": course.is_verified,
    }


def unverified_course_to_row(course: UnverifiedCourse) -> dict:
    """UnverifiedCourse -> dict for courses.unverified_courses INSERT."""
    return {
        "name": course.name,
        "tee_name": course.tee_name,
        "par_values": json.dumps(course.par_values),
        "handicap_values": json.dumps(course.handicap_values),
        "slope": course.slope,
        "rating": course.rating,
        "location": course.location,
        "submission_count": course.submission_count,
        "status": course.status.value,
    }


def round_to_row(round_: Round) -> dict:
    """Round -> dict for users.rounds INSERT."""
    return {
        "user_id": UUID(round_.user_id),
        "course_id": UUID(round_.course_id),
        "scan_id": _uuid(round_.scan_id),
        "played_at": round_.played_at,
        "total_score": round_.total_score,
        "front_nine_score": round_.front_nine_score,
        "back_nine_score": round_.back_nine_score,
        "weather": round_.weather,
        "notes": round_.notes,
    }


def round_score_to_row(score: RoundScore, round_id: UUID) -> tuple:
    """RoundScore -> tuple for users.round_scores INSERT (for executemany)."""
    return (round_id, score.player_name, score.hole_number, score.score, score.par, score.handicap)


def scan_to_row(scan: ScanResult) -> dict:
    """ScanResult -> dict for users.scorecard_scans INSERT/UPDATE."""
    return {
        "user_id": _uuid(scan.user_id),
        "status": scan.status.value,
        "original_image_ref": scan.original_image_ref,
        "processed_image_ref": scan.processed_image_ref,
        "raw_ocr_payload": _dumps(scan.raw_ocr_payload),
        "parsed_data": _dumps(scan.parsed_data.to_payload()) if scan.parsed_data else None,
        "confidence_scores": json.dumps(scan.confidence_scores),
        "error_message": scan.error_message,
    }


def training_record_to_row(record: TrainingDataRecord) -> dict:
    """TrainingDataRecord -> dict for users.scan_training_data INSERT."""
    return {
        "scan_id": UUID(record.scan_id),
        "raw_ocr_response": json.dumps(record.raw_ocr_response),
        "extracted_data": json.dumps(record.extracted_data),
        "confidence_score": record.confidence_score,
        "verified_data": _dumps(record.verified_data),
        "corrections": _dumps(record.corrections),
        "error_analysis": _dumps(record.error_analysis),
        "is_verified": record.is_verified,
        "is_training_candidate": record.is_training_candidate,
        "ocr_provider": record.ocr_provider,
        "used_enhanced_prompt": record.used_enhanced_prompt,
        "model_version": record.model_version,
        "data_completeness_score": record.data_completeness_score,
        "field_confidence_scores": json.dumps(record.field_confidence_scores),
        "validation_errors": json.dumps(record.validation_errors),
        "processing_time_ms": record.processing_time_ms,
        "processing_metadata": json.dumps(record.processing_metadata),
        "original_image_ref": record.original_image_ref,
        "processed_image_ref": record.processed_image_ref,
    }


def insert_sql(table: str, row: dict) -> str:
    """INSERT ... RETURNING * for the row's keys, in insertion order."""
    columns = ", ".join(row)
    placeholders = ", ".join(f"${i}" for i in range(1, len(row) + 1))
    return f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) RETURNING *"