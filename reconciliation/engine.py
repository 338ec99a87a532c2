"""Course reconciliation.

Per scan: pick the best data source, validate it, then match an existing
verified course, create a verified course (high confidence) or stage the
submission in the unverified queue (low confidence). When a verified
course is resolved and players were read, the round is materialized.
"""

import logging
from pydantic import BaseModel, Field
from typing import Any, List, Mapping, Optional

from database.exceptions import DuplicateError
from models import Course, ScanResult, StructuredCourseData, UnverifiedCourse
from parsing.parser import ScorecardParser, select_best_source
from pipeline.config import ReconciliationConfig
from quality.scoring import completeness_score
from quality.validator import GolfDataValidator, Severity, ValidationPolicy
from reconciliation.materializer import RoundMaterializer
from reconciliation.stores import CourseStore, RoundStore


logger = logging.getLogger(__name__)

STAGED_WARNING = "Course added to unverified database for admin review"
NO_DATA_ERROR = "No valid golf course data found in scan"


class ReconciliationResult(BaseModel):
    """Outcome of reconciling one scan. Errors are collected, never raised."""
    course_created: bool = False
    course_matched: bool = False
    course_id: Optional[str] = None
    added_to_unverified: bool = False
    unverified_course_id: Optional[str] = None
    submission_count: Optional[int] = None
    round_created: bool = False
    round_id: Optional[str] = None
    scores_created: int = 0
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ReconciliationEngine:
    """Matches parsed course data against the course store."""

    def __init__(
        self,
        course_store: CourseStore,
        round_store: Optional[RoundStore] = None,
        config: Optional[ReconciliationConfig] = None,
        validator: Optional[GolfDataValidator] = None,
        parser: Optional[ScorecardParser] = None,
    ):
        self.course_store = course_store
        self.materializer = RoundMaterializer(round_store) if round_store else None
        self.config = config or ReconciliationConfig()
        self.validator = validator or GolfDataValidator(ValidationPolicy.LENIENT)
        self.parser = parser or ScorecardParser()

    async def reconcile_scan(self, scan: ScanResult) -> ReconciliationResult:
        return await self.reconcile(
            scan.parsed_data,
            raw_payload=scan.raw_ocr_payload,
            user_id=scan.user_id,
            scan_id=scan.id,
        )

    async def reconcile(
        self,
        parsed: Optional[StructuredCourseData],
        *,
        raw_payload: Optional[Mapping[str, Any]] = None,
        user_id: Optional[str] = None,
        scan_id: Optional[str] = None,
    ) -> ReconciliationResult:
        result = ReconciliationResult()
        try:
            await self._reconcile(parsed, raw_payload, user_id, scan_id, result)
        except Exception as e:
            logger.exception("Failed to reconcile scan %s", scan_id)
            result.errors.append(f"Processing failed: {e}")
        return result

    async def _reconcile(
        self,
        parsed: Optional[StructuredCourseData],
        raw_payload: Optional[Mapping[str, Any]],
        user_id: Optional[str],
        scan_id: Optional[str],
        result: ReconciliationResult,
    ) -> None:
        parsed = parsed or StructuredCourseData()
        flat = self.parser.parse_flat(raw_payload) if raw_payload else StructuredCourseData()
        if parsed.is_empty() and flat.is_empty():
            result.errors.append(NO_DATA_ERROR)
            return

        data = select_best_source(parsed, flat)

        validation = self.validator.validate(data)
        result.errors.extend(validation.messages(Severity.ERROR))
        result.warnings.extend(validation.messages(Severity.WARNING))
        if not validation.can_proceed:
            return

        completeness = completeness_score(data)
        if completeness < self.config.min_completeness:
            result.warnings.append(
                f"Data completeness below threshold ({completeness}% < {self.config.min_completeness}%)"
            )

        course = await self.find_or_create_course(data, result, scan_id=scan_id)
        if course is None or course.id is None:
            return

        if self.materializer is None or not data.players:
            return
        if not user_id:
            result.errors.append("Cannot create round without a user")
            return

        round_, scores_created = await self.materializer.materialize(
            course, data, user_id=user_id, scan_id=scan_id, errors=result.errors,
        )
        if round_ is not None:
            result.round_created = True
            result.round_id = round_.id
            result.scores_created = scores_created

    # ================================================================
    # Course resolution
    # ================================================================

    async def find_or_create_course(
        self,
        data: StructuredCourseData,
        result: ReconciliationResult,
        *,
        scan_id: Optional[str] = None,
    ) -> Optional[Course]:
        name = data.course_name.strip()
        tee_name = (data.tee_name or "").strip()

        existing = await self.course_store.find_verified_course(name, tee_name)
        if existing:
            result.course_matched = True
            result.course_id = existing.id
            return existing

        confidence = data.confidence_score or 0.0
        if confidence < self.config.course_confidence_threshold:
            await self.stage_unverified(data, result, scan_id=scan_id)
            return None

        course = Course(
            name=name,
            tee_name=tee_name,
            par_values=data.par_values or [],
            handicap_values=data.handicap_values or [],
            slope=data.slope_rating,
            rating=data.course_rating,
            location=data.location,
            is_verified=True,
        )
        try:
            created = await self.course_store.create_verified_course(course)
        except DuplicateError:
            # Another scan created it between our lookup and insert.
            matched = await self._rematch(name, tee_name)
            if matched:
                logger.info("Course %r/%r already exists, using %s", name, tee_name, matched.id)
                result.course_matched = True
                result.course_id = matched.id
                return matched
            logger.warning("Duplicate on create but no match for %r/%r, staging", name, tee_name)
        except Exception:
            logger.exception("Failed to create course %r for scan %s, staging", name, scan_id)
        else:
            logger.info(
                "Auto-created verified course %s (%r, confidence %.2f)", created.id, name, confidence
            )
            result.course_created = True
            result.course_id = created.id
            return created

        await self.stage_unverified(data, result, scan_id=scan_id)
        return None

    async def _rematch(self, name: str, tee_name: str) -> Optional[Course]:
        for _ in range(self.config.match_retry_attempts):
            course = await self.course_store.find_verified_course(name, tee_name)
            if course:
                return course
        return None

    async def stage_unverified(
        self,
        data: StructuredCourseData,
        result: ReconciliationResult,
        *,
        scan_id: Optional[str] = None,
    ) -> None:
        submission = UnverifiedCourse(
            name=data.course_name,
            tee_name=data.tee_name or "",
            par_values=data.par_values or [],
            handicap_values=data.handicap_values or [],
            slope=data.slope_rating,
            rating=data.course_rating,
            location=data.location,
        )
        try:
            staged = await self.course_store.upsert_unverified_course(submission)
        except Exception as e:
            logger.exception("Failed to stage course %r for scan %s", data.course_name, scan_id)
            result.errors.append(f"Failed to stage unverified course: {e}")
            return

        result.added_to_unverified = True
        result.unverified_course_id = staged.id
        result.submission_count = staged.submission_count
        result.warnings.append(STAGED_WARNING)
