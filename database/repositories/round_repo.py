"""CRUD operations for rounds and round_scores."""

import asyncpg
from typing import List, Optional
from uuid import UUID

from models import Round, RoundScore
from database.converters import insert_sql, round_from_rows, round_score_to_row, round_to_row
from database.exceptions import DuplicateError, IntegrityError


class RoundRepositoryDB:
    """Async CRUD for rounds and their per-hole scores."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def _assemble_round(self, conn, round_row) -> Round:
        score_rows = await conn.fetch(
            """SELECT * FROM users.round_scores
               WHERE round_id = $1 ORDER BY player_name, hole_number""",
            round_row["id"],
        )
        return round_from_rows(round_row, score_rows)

    # ================================================================
    # Read
    # ================================================================

    async def get_round(self, round_id: str) -> Optional[Round]:
        """Get a round with its scores."""
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM users.rounds WHERE id = $1", UUID(round_id)
            )
            if not row:
                return None
            return await self._assemble_round(conn, row)

    async def get_rounds_for_user(
        self, user_id: str, *, limit: int = 20, offset: int = 0
    ) -> List[Round]:
        """Get a user's rounds ordered by date DESC."""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM users.rounds
                   WHERE user_id = $1
                   ORDER BY played_at DESC
                   LIMIT $2 OFFSET $3""",
                UUID(user_id), limit, offset,
            )
            return [await self._assemble_round(conn, r) for r in rows]

    # ================================================================
    # Create
    # ================================================================

    async def create_round_with_scores(self, round_: Round, scores: List[RoundScore]) -> Round:
        """Insert the round and all its scores in one transaction.

        Any failure rolls back the round row together with every score.
        """
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    row_data = round_to_row(round_)
                    round_row = await conn.fetchrow(
                        insert_sql("users.rounds", row_data), *row_data.values()
                    )
                    if scores:
                        await conn.executemany(
                            """INSERT INTO users.round_scores
                               (round_id, player_name, hole_number, score, par, handicap)
                               VALUES ($1, $2, $3, $4, $5, $6)""",
                            [round_score_to_row(s, round_row["id"]) for s in scores],
                        )
                    return await self._assemble_round(conn, round_row)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError.from_pg(e) from e
        except asyncpg.ForeignKeyViolationError as e:
            raise IntegrityError.from_pg(e) from e

    # ================================================================
    # Delete
    # ================================================================

    async def delete_round(self, round_id: str) -> bool:
        """Delete round and its scores (CASCADE). Returns True if deleted."""
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM users.rounds WHERE id = $1", UUID(round_id)
            )
            return result == "DELETE 1"
