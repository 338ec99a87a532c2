from reconciliation.engine import NO_DATA_ERROR, STAGED_WARNING, ReconciliationEngine, ReconciliationResult
from reconciliation.materializer import RoundMaterializer, build_round_notes, build_scores, parse_played_at
from reconciliation.stores import CourseStore, RoundStore, ScanStore, TrainingStore

__all__ = [
    "CourseStore",
    "NO_DATA_ERROR",
    "ReconciliationEngine",
    "ReconciliationResult",
    "RoundMaterializer",
    "RoundStore",
    "STAGED_WARNING",
    "ScanStore",
    "TrainingStore",
    "build_round_notes",
    "build_scores",
    "parse_played_at",
]
