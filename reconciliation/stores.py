from typing import List, Optional, Protocol

from models import Course, Round, RoundScore, ScanResult, TrainingDataRecord, UnverifiedCourse


class CourseStore(Protocol):
    """Interface for the shared course tables (verified + unverified).

    Implementors must make create and upsert atomic check-then-act
    operations; concurrent scans of the same course rely on it.
    """

    async def find_verified_course(self, name: str, tee_name: str) -> Optional[Course]:
        """Case-insensitive substring match on (name, tee_name), verified rows only.

        First match wins.
        """
        ...

    async def create_verified_course(self, course: Course) -> Course:
        """Insert a verified course.

        Raises DuplicateError when (name, tee_name) already exists.
        """
        ...

    async def upsert_unverified_course(self, course: UnverifiedCourse) -> UnverifiedCourse:
        """Increment submission_count on a matching pending row, else insert one."""
        ...


class RoundStore(Protocol):
    """Interface for round persistence."""

    async def create_round_with_scores(self, round_: Round, scores: List[RoundScore]) -> Round:
        """Insert the round and every score in one transaction.

        Nothing is persisted if any insert fails.
        """
        ...



class ScanStore(Protocol):
    """Interface for scan persistence used by the pipeline."""

    async def create_scan(self, scan: ScanResult) -> ScanResult:
        ...

    async def update_scan(self, scan: ScanResult) -> ScanResult:
        ...


class TrainingStore(Protocol):
    """Interface for training-data persistence and export queries."""

    async def create_record(self, record: TrainingDataRecord) -> TrainingDataRecord:
        ...

    async def save_verification(self, record: TrainingDataRecord) -> TrainingDataRecord:
        ...

    async def list_records(
        self,
        *,
        candidates_only: bool = True,
        verified_only: bool = False,
        min_confidence: Optional[float] = None,
        ocr_provider: Optional[str] = None,
        enhanced_prompt_only: bool = False,
        limit: int = 1000,
    ) -> List[TrainingDataRecord]:
        ...
