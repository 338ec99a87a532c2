from database.connection import DatabasePool, SCHEMA_PATH
from database.repositories import (
    CourseRepositoryDB,
    RoundRepositoryDB,
    ScanRepositoryDB,
    TrainingDataRepositoryDB,
)
from database.exceptions import DatabaseError, NotFoundError, DuplicateError, IntegrityError

__all__ = [
    "DatabasePool",
    "SCHEMA_PATH",
    "CourseRepositoryDB",
    "RoundRepositoryDB",
    "ScanRepositoryDB",
    "TrainingDataRepositoryDB",
    "DatabaseError",
    "NotFoundError",
    "DuplicateError",
    "IntegrityError",
]
