"""CRUD operations for users.scan_training_data."""

import asyncpg
import json
from typing import List, Optional
from uuid import UUID

from models import TrainingDataRecord
from database.converters import insert_sql, training_record_from_row, training_record_to_row
from database.exceptions import IntegrityError, NotFoundError


class TrainingDataRepositoryDB:

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def create_record(self, record: TrainingDataRecord) -> TrainingDataRecord:
        try:
            async with self._pool.acquire() as conn:
                row_data = training_record_to_row(record)
                row = await conn.fetchrow(
                    insert_sql("users.scan_training_data", row_data), *row_data.values()
                )
                return training_record_from_row(row)
        except asyncpg.ForeignKeyViolationError as e:
            raise IntegrityError.from_pg(e) from e

    async def get_record(self, record_id: str) -> Optional[TrainingDataRecord]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM users.scan_training_data WHERE id = $1", UUID(record_id)
            )
            return training_record_from_row(row) if row else None

    async def save_verification(self, record: TrainingDataRecord) -> TrainingDataRecord:
        """Persist the review fields set by TrainingDataRecord.mark_verified()."""
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """UPDATE users.scan_training_data
                   SET verified_data = $2, corrections = $3, error_analysis = $4,
                       is_verified = $5
                   WHERE id = $1 RETURNING *""",
                UUID(record.id),
                json.dumps(record.verified_data) if record.verified_data is not None else None,
                json.dumps(record.corrections) if record.corrections is not None else None,
                json.dumps(record.error_analysis) if record.error_analysis is not None else None,
                record.is_verified,
            )
            if not row:
                raise NotFoundError(f"Training record {record.id} not found")
            return training_record_from_row(row)

    async def list_records(
        self,
        *,
        candidates_only: bool = True,
        verified_only: bool = False,
        min_confidence: Optional[float] = None,
        ocr_provider: Optional[str] = None,
        enhanced_prompt_only: bool = False,
        limit: int = 1000,
    ) -> List[TrainingDataRecord]:
        """Records matching the export filters, oldest first."""
        clauses = []
        values = []
        if candidates_only:
            clauses.append("is_training_candidate")
        if verified_only:
            clauses.append("is_verified")
        if enhanced_prompt_only:
            clauses.append("used_enhanced_prompt")
        if min_confidence is not None:
            values.append(min_confidence)
            clauses.append(f"confidence_score >= ${len(values)}")
        if ocr_provider:
            values.append(ocr_provider)
            clauses.append(f"ocr_provider = ${len(values)}")
        values.append(limit)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"""SELECT * FROM users.scan_training_data {where}
                    ORDER BY created_at LIMIT ${len(values)}""",
                *values,
            )
            return [training_record_from_row(r) for r in rows]
