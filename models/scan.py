from datetime import datetime
from enum import Enum
from pydantic import Field
from typing import Any, Dict, Optional

from .base import BaseGolfModel
from .structured import StructuredCourseData


class ScanStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ScanResult(BaseGolfModel):
    """One uploaded scorecard image and everything derived from it."""
    id: Optional[str] = None
    user_id: Optional[str] = None
    status: ScanStatus = ScanStatus.PROCESSING
    original_image_ref: str
    processed_image_ref: Optional[str] = None
    raw_ocr_payload: Optional[Dict[str, Any]] = None
    parsed_data: Optional[StructuredCourseData] = None
    confidence_scores: Dict[str, float] = Field(default_factory=dict)
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ScanStatus.COMPLETED, ScanStatus.FAILED)

    def _ensure_open(self) -> None:
        if self.is_terminal:
            raise ValueError(f"Scan {self.id} is already {self.status.value}")

    def mark_completed(self) -> None:
        self._ensure_open()
        self.status = ScanStatus.COMPLETED
        self.error_message = None

    def mark_failed(self, message: str) -> None:
        self._ensure_open()
        self.status = ScanStatus.FAILED
        self.error_message = message
