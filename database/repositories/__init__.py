from .course_repo import CourseRepositoryDB
from .round_repo import RoundRepositoryDB
from .scan_repo import ScanRepositoryDB
from .training_repo import TrainingDataRepositoryDB

__all__ = ["CourseRepositoryDB", "RoundRepositoryDB", "ScanRepositoryDB", "TrainingDataRepositoryDB"]
