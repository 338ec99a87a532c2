from typing import Optional


class DatabaseError(Exception):
    """Base for errors raised by the scorecard repositories.

    ``constraint`` names the Postgres constraint that was violated, when known.
    """

    def __init__(self, message: str, *, constraint: Optional[str] = None):
        super().__init__(message)
        self.constraint = constraint

    @classmethod
    def from_pg(cls, error: Exception, prefix: Optional[str] = None) -> "DatabaseError":
        message = f"{prefix}: {error}" if prefix else str(error)
        return cls(message, constraint=getattr(error, "constraint_name", None))


class NotFoundError(DatabaseError):
    """Row to update or approve does not exist."""


class DuplicateError(DatabaseError):
    """Unique index hit, e.g. the same course and tee created by two scans at once."""


class IntegrityError(DatabaseError):
    """Foreign key or check constraint violation (unknown user, course or scan)."""
