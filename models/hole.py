from pydantic import Field
from typing import Optional

from .base import BaseGolfModel


class Hole(BaseGolfModel):
    """Par and handicap for one hole, as resolved from a Course's arrays."""
    number: int = Field(..., ge=1, le=18)
    par: int = Field(..., ge=1)
    handicap: int = Field(..., ge=1)
    course_id: Optional[str] = None

    @property
    def is_front_nine(self) -> bool:
        return self.number <= 9
