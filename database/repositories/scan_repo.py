"""CRUD operations for users.scorecard_scans."""

import asyncpg
from typing import List, Optional
from uuid import UUID

from models import ScanResult, ScanStatus
from database.converters import insert_sql, scan_from_row, scan_to_row
from database.exceptions import IntegrityError, NotFoundError


class ScanRepositoryDB:

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def create_scan(self, scan: ScanResult) -> ScanResult:
        try:
            async with self._pool.acquire() as conn:
                row_data = scan_to_row(scan)
                row = await conn.fetchrow(
                    insert_sql("users.scorecard_scans", row_data), *row_data.values()
                )
                return scan_from_row(row)
        except asyncpg.ForeignKeyViolationError as e:
            raise IntegrityError.from_pg(e) from e

    async def update_scan(self, scan: ScanResult) -> ScanResult:
        """Write back every mutable column of an existing scan."""
        if not scan.id:
            raise NotFoundError("Scan has no id; create it first")
        row_data = scan_to_row(scan)
        row_data.pop("user_id")
        row_data.pop("original_image_ref")
        set_clause = ", ".join(f"{k} = ${i + 2}" for i, k in enumerate(row_data))

        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""UPDATE users.scorecard_scans
                    SET {set_clause}, updated_at = now()
                    WHERE id = $1 RETURNING *""",
                UUID(scan.id), *row_data.values(),
            )
            if not row:
                raise NotFoundError(f"Scan {scan.id} not found")
            return scan_from_row(row)

    async def get_scan(self, scan_id: str) -> Optional[ScanResult]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM users.scorecard_scans WHERE id = $1", UUID(scan_id)
            )
            return scan_from_row(row) if row else None

    async def list_scans(
        self,
        *,
        status: Optional[ScanStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ScanResult]:
        """Scans oldest first, optionally filtered by status."""
        async with self._pool.acquire() as conn:
            if status:
                rows = await conn.fetch(
                    """SELECT * FROM users.scorecard_scans WHERE status = $1
                       ORDER BY created_at LIMIT $2 OFFSET $3""",
                    ScanStatus(status).value, limit, offset,
                )
            else:
                rows = await conn.fetch(
                    """SELECT * FROM users.scorecard_scans
                       ORDER BY created_at LIMIT $1 OFFSET $2""",
                    limit, offset,
                )
            return [scan_from_row(r) for r in rows]
