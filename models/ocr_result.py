from pydantic import Field, field_validator
from typing import Any, Dict, List, Optional

from .base import BaseGolfModel


def normalize_confidence(value: Any) -> float:
    """Bring a provider confidence onto [0, 1].

    Providers report either a fraction or a percentage; anything above 1
    is treated as a percentage. Non-numeric input maps to 0.
    """
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return 0.0
    if conf > 1.0:
        conf = conf / 100.0
    return max(0.0, min(conf, 1.0))


class OcrWord(BaseGolfModel):
    text: str
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    bbox: Optional[Any] = None

    @field_validator('confidence', mode='before')
    @classmethod
    def _normalize(cls, v):
        return normalize_confidence(v)


class OcrLine(BaseGolfModel):
    text: str = ""
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    words: List[OcrWord] = Field(default_factory=list)

    @field_validator('confidence', mode='before')
    @classmethod
    def _normalize(cls, v):
        return normalize_confidence(v)


class OcrResult(BaseGolfModel):
    """Common result shape returned by every OCR provider."""
    raw_text: str = ""
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    words: List[OcrWord] = Field(default_factory=list)
    lines: List[OcrLine] = Field(default_factory=list)
    provider: str
    structured_data: Optional[Dict[str, Any]] = None
    golf_course_properties: Optional[Dict[str, Any]] = None
    enhanced_format: bool = False
    used_fallback: bool = False
    processing_time_ms: Optional[int] = None

    @field_validator('confidence', mode='before')
    @classmethod
    def _normalize(cls, v):
        return normalize_confidence(v)

    def mean_word_confidence(self) -> Optional[float]:
        if not self.words:
            return None
        return sum(w.confidence for w in self.words) / len(self.words)
