from datetime import datetime
from enum import Enum
from pydantic import Field, field_validator
from typing import List, Optional

from .base import BaseGolfModel
from .hole import Hole


DEFAULT_PAR = 4


class Course(BaseGolfModel):
    """Verified golf course for one tee. Unique on (name, tee_name)."""
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    tee_name: str = ""
    par_values: List[int] = Field(default_factory=list)
    handicap_values: List[int] = Field(default_factory=list)
    slope: Optional[int] = None
    rating: Optional[float] = None
    location: Optional[str] = None
    is_verified: bool = True
    created_at: Optional[datetime] = None

    def get_hole(self, number: int) -> Optional[Hole]:
        """Get a hole by its number (1-18), with par/handicap fallbacks.

        Courses scanned from partial cards may lack full 18-length arrays.
        Missing par falls back to 4, missing handicap to the hole number.
        """
        if not 1 <= number <= 18:
            return None
        idx = number - 1
        par = self.par_values[idx] if idx < len(self.par_values) and self.par_values[idx] else DEFAULT_PAR
        handicap = (
            self.handicap_values[idx]
            if idx < len(self.handicap_values) and self.handicap_values[idx]
            else number
        )
        return Hole(number=number, par=par, handicap=handicap, course_id=self.id)

    def get_par(self) -> Optional[int]:
        """Total par, or None when no par values are known."""
        return sum(self.par_values) if self.par_values else None

    @property
    def front_nine_par(self) -> Optional[int]:
        """Calculate par for holes 1-9."""
        if len(self.par_values) < 9:
            return None
        return sum(self.par_values[:9])

    @property
    def back_nine_par(self) -> Optional[int]:
        """Calculate par for holes 10-18."""
        if len(self.par_values) < 18:
            return None
        return sum(self.par_values[9:18])


class UnverifiedStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UnverifiedCourse(BaseGolfModel):
    """Course submission staged for admin review.

    Low-confidence scans of the same (name, tee_name) increment
    submission_count instead of inserting another pending row.
    """
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    tee_name: str = ""
    par_values: List[int] = Field(default_factory=list)
    handicap_values: List[int] = Field(default_factory=list)
    slope: Optional[int] = None
    rating: Optional[float] = None
    location: Optional[str] = None
    submission_count: int = Field(1, ge=1)
    status: UnverifiedStatus = UnverifiedStatus.PENDING
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator('name', 'tee_name')
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()

    @property
    def is_pending(self) -> bool:
        return self.status == UnverifiedStatus.PENDING

    def approve(self) -> Course:
        """Mark approved and return the verified Course it spawns (not yet persisted)."""
        if not self.is_pending:
            raise ValueError(f"Cannot approve course in status '{self.status.value}'")
        self.status = UnverifiedStatus.APPROVED
        return Course(
            name=self.name,
            tee_name=self.tee_name,
            par_values=list(self.par_values),
            handicap_values=list(self.handicap_values),
            slope=self.slope,
            rating=self.rating,
            location=self.location,
            is_verified=True,
        )

    def reject(self, notes: Optional[str] = None) -> None:
        if not self.is_pending:
            raise ValueError(f"Cannot reject course in status '{self.status.value}'")
        self.status = UnverifiedStatus.REJECTED
        self.admin_notes = notes
