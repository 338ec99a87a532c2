from .base import BaseGolfModel
from .course import Course, UnverifiedCourse, UnverifiedStatus
from .hole import Hole
from .ocr_result import OcrLine, OcrResult, OcrWord, normalize_confidence
from .round import Round, RoundScore
from .scan import ScanResult, ScanStatus
from .structured import PlayerScore, StructuredCourseData, TeeBox
from .training import TrainingDataRecord

__all__ = [
    "BaseGolfModel",
    "Course",
    "Hole",
    "OcrLine",
    "OcrResult",
    "OcrWord",
    "PlayerScore",
    "Round",
    "RoundScore",
    "ScanResult",
    "ScanStatus",
    "StructuredCourseData",
    "TeeBox",
    "TrainingDataRecord",
    "UnverifiedCourse",
    "UnverifiedStatus",
    "normalize_confidence",
]
