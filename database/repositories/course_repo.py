"""Verified and unverified course tables.

Both create paths are check-then-act; each runs in one transaction that
first takes a transaction-scoped advisory lock keyed on the normalized
(name, tee_name), so concurrent scans of the same course serialize.
"""

import asyncpg
import logging
from typing import List, Optional
from uuid import UUID

from models import Course, UnverifiedCourse
from database.converters import (
    course_from_row,
    course_to_row,
    insert_sql,
    unverified_course_from_row,
    unverified_course_to_row,
)
from database.exceptions import DuplicateError, IntegrityError, NotFoundError


logger = logging.getLogger(__name__)


def course_lock_key(name: str, tee_name: str) -> str:
    return f"{name.strip().lower()}|{tee_name.strip().lower()}"


class CourseRepositoryDB:
    """Async course store backed by courses.courses / courses.unverified_courses."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Private helpers
    # ================================================================

    async def _lock(self, conn, name: str, tee_name: str) -> None:
        await conn.execute(
            "SELECT pg_advisory_xact_lock(hashtext($1))",
            course_lock_key(name, tee_name),
        )

    async def _find_verified(self, conn, name: str, tee_name: str):
        # Tier 1: exact (case-insensitive)
        row = await conn.fetchrow(
            """SELECT * FROM courses.courses
               WHERE is_verified AND LOWER(name) = LOWER($1) AND LOWER(tee_name) = LOWER($2)
               LIMIT 1""",
            name, tee_name,
        )
        # Tier 2: ILIKE substring
        if not row:
            row = await conn.fetchrow(
                """SELECT * FROM courses.courses
                   WHERE is_verified AND name ILIKE $1 AND tee_name ILIKE $2
                   ORDER BY created_at LIMIT 1""",
                f"%{name}%", f"%{tee_name}%",
            )
        return row

    # ================================================================
    # Verified courses
    # ================================================================

    async def get_course(self, course_id: str) -> Optional[Course]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM courses.courses WHERE id = $1", UUID(course_id)
            )
            return course_from_row(row) if row else None

    async def find_verified_course(self, name: str, tee_name: str) -> Optional[Course]:
        """Case-insensitive substring match restricted to verified rows. First match wins."""
        async with self._pool.acquire() as conn:
            row = await self._find_verified(conn, name, tee_name)
            return course_from_row(row) if row else None

    async def create_verified_course(self, course: Course) -> Course:
        """Insert a verified course unless one with the same (name, tee_name) exists.

        Raises DuplicateError if it does, whether found under the lock or
        rejected by the unique constraint.
        """
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    await self._lock(conn, course.name, course.tee_name)
                    existing = await conn.fetchrow(
                        """SELECT id FROM courses.courses
                           WHERE LOWER(name) = LOWER($1) AND LOWER(tee_name) = LOWER($2)""",
                        course.name, course.tee_name,
                    )
                    if existing:
                        raise DuplicateError(
                            f"Course already exists: {course.name} ({course.tee_name})"
                        )
                    row_data = course_to_row(course)
                    row = await conn.fetchrow(
                        insert_sql("courses.courses", row_data), *row_data.values()
                    )
                    return course_from_row(row)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError.from_pg(e, "Course already exists") from e
        except asyncpg.ForeignKeyViolationError as e:
            raise IntegrityError.from_pg(e) from e

    async def list_courses(self, *, limit: int = 50, offset: int = 0) -> List[Course]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM courses.courses WHERE is_verified
                   ORDER BY name, tee_name LIMIT $1 OFFSET $2""",
                limit, offset,
            )
            return [course_from_row(r) for r in rows]

    # ================================================================
    # Unverified courses
    # ================================================================

    async def upsert_unverified_course(self, course: UnverifiedCourse) -> UnverifiedCourse:
        """Increment a matching pending row's submission_count, else insert a new one."""
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    await self._lock(conn, course.name, course.tee_name)
                    existing = await conn.fetchrow(
                        """SELECT * FROM courses.unverified_courses
                           WHERE status = 'pending' AND name ILIKE $1 AND tee_name ILIKE $2
                           ORDER BY created_at LIMIT 1
                           FOR UPDATE""",
                        f"%{course.name}%", f"%{course.tee_name}%",
                    )
                    if existing:
                        row = await conn.fetchrow(
                            """UPDATE courses.unverified_courses
                               SET submission_count = submission_count + 1
                               WHERE id = $1 RETURNING *""",
                            existing["id"],
                        )
                        logger.info(
                            "Unverified course %s now has %d submissions",
                            row["id"], row["submission_count"],
                        )
                    else:
                        row_data = unverified_course_to_row(course)
                        row = await conn.fetchrow(
                            insert_sql("courses.unverified_courses", row_data), *row_data.values()
                        )
                    return unverified_course_from_row(row)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError.from_pg(e, "Pending submission already exists") from e

    async def get_unverified_course(self, course_id: str) -> Optional[UnverifiedCourse]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM courses.unverified_courses WHERE id = $1", UUID(course_id)
            )
            return unverified_course_from_row(row) if row else None

    async def list_pending_courses(self, *, limit: int = 50) -> List[UnverifiedCourse]:
        """Pending submissions, most-submitted first."""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM courses.unverified_courses WHERE status = 'pending'
                   ORDER BY submission_count DESC, created_at LIMIT $1""",
                limit,
            )
            return [unverified_course_from_row(r) for r in rows]

    async def approve_unverified_course(self, course_id: str) -> Course:
        """Mark a pending submission approved and create its verified course."""
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        "SELECT * FROM courses.unverified_courses WHERE id = $1 FOR UPDATE",
                        UUID(course_id),
                    )
                    if not row:
                        raise NotFoundError(f"Unverified course {course_id} not found")
                    submission = unverified_course_from_row(row)
                    course = submission.approve()

                    await self._lock(conn, course.name, course.tee_name)
                    row_data = course_to_row(course)
                    course_row = await conn.fetchrow(
                        insert_sql("courses.courses", row_data), *row_data.values()
                    )
                    await conn.execute(
                        "UPDATE courses.unverified_courses SET status = $2 WHERE id = $1",
                        row["id"], submission.status.value,
                    )
                    return course_from_row(course_row)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError.from_pg(e, "Course already exists") from e

    async def reject_unverified_course(
        self, course_id: str, notes: Optional[str] = None
    ) -> UnverifiedCourse:
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    "SELECT * FROM courses.unverified_courses WHERE id = $1 FOR UPDATE",
                    UUID(course_id),
                )
                if not row:
                    raise NotFoundError(f"Unverified course {course_id} not found")
                submission = unverified_course_from_row(row)
                submission.reject(notes)
                updated = await conn.fetchrow(
                    """UPDATE courses.unverified_courses
                       SET status = $2, admin_notes = $3
                       WHERE id = $1 RETURNING *""",
                    row["id"], submission.status.value, submission.admin_notes,
                )
                return unverified_course_from_row(updated)
