import json
import pytest
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import asyncpg

from database.connection import DatabasePool
from database.converters import (
    course_from_row,
    insert_sql,
    round_from_rows,
    round_score_to_row,
    round_to_row,
    scan_from_row,
    scan_to_row,
    training_record_from_row,
    training_record_to_row,
    unverified_course_from_row,
)
from database.exceptions import DuplicateError, NotFoundError
from database.repositories import (
    CourseRepositoryDB,
    RoundRepositoryDB,
    ScanRepositoryDB,
    TrainingDataRepositoryDB,
)
from database.repositories.course_repo import course_lock_key
from models import (
    Course,
    Round,
    RoundScore,
    ScanResult,
    ScanStatus,
    StructuredCourseData,
    TrainingDataRecord,
    UnverifiedCourse,
)


NOW = datetime(2024, 7, 24, 12, 0, 0)


def _course_row(course_id=None, *, name="Pine Valley", tee_name="Blue", par_values=None):
    return {
        "id": course_id or uuid4(),
        "name": name,
        "tee_name": tee_name,
        "par_values": json.dumps(par_values if par_values is not None else [4] * 18),
        "handicap_values": json.dumps(list(range(1, 19))),
        "slope": 130,
        "rating": Decimal("72.4"),
        "location": "Pine Valley, NJ",
        "is_verified": True,
        "created_at": NOW,
    }


def _unverified_row(course_id=None, *, submission_count=1, status="pending"):
    return {
        "id": course_id or uuid4(),
        "name": "Oak Hill",
        "tee_name": "White",
        "par_values": [4] * 18,
        "handicap_values": [],
        "slope": None,
        "rating": None,
        "location": None,
        "submission_count": submission_count,
        "status": status,
        "admin_notes": None,
        "created_at": NOW,
    }


def _round_row(round_id=None, *, user_id=None, course_id=None, total_score=72):
    return {
        "id": round_id or uuid4(),
        "user_id": user_id or uuid4(),
        "course_id": course_id or uuid4(),
        "scan_id": None,
        "played_at": date(2024, 7, 24),
        "total_score": total_score,
        "front_nine_score": 36,
        "back_nine_score": 36,
        "weather": None,
        "notes": "Played with: B",
        "created_at": NOW,
    }


def _score_row(round_id, *, player_name="A", hole_number=1, score=4, par=4, handicap=7):
    return {
        "id": uuid4(),
        "round_id": round_id,
        "player_name": player_name,
        "hole_number": hole_number,
        "score": score,
        "par": par,
        "handicap": handicap,
    }


def _scan_row(scan_id=None, *, status="completed", parsed_data=None):
    return {
        "id": scan_id or uuid4(),
        "user_id": None,
        "status": status,
        "original_image_ref": "scans/originals/card.jpg",
        "processed_image_ref": "scans/processed/card.jpg",
        "raw_ocr_payload": json.dumps({"provider": "mock"}),
        "parsed_data": json.dumps(parsed_data) if parsed_data is not None else None,
        "confidence_scores": json.dumps({"overall": 0.95}),
        "error_message": None,
        "created_at": NOW,
        "updated_at": NOW,
    }


def _training_row(record_id=None, *, scan_id=None):
    return {
        "id": record_id or uuid4(),
        "scan_id": scan_id or uuid4(),
        "raw_ocr_response": json.dumps({"provider": "mock"}),
        "extracted_data": json.dumps({"course_name": "Pine Valley"}),
        "confidence_score": Decimal("0.95"),
        "verified_data": None,
        "corrections": None,
        "error_analysis": None,
        "is_verified": False,
        "is_training_candidate": True,
        "ocr_provider": "mock",
        "used_enhanced_prompt": False,
        "model_version": "v1",
        "data_completeness_score": 100,
        "field_confidence_scores": json.dumps({"course_name": 0.7}),
        "validation_errors": json.dumps([]),
        "processing_time_ms": 42,
        "processing_metadata": json.dumps({}),
        "original_image_ref": "scans/originals/card.jpg",
        "processed_image_ref": None,
        "created_at": NOW,
    }


# ================================================================
# Converters
# ================================================================

def test_course_converter_decodes_json_arrays():
    course = course_from_row(_course_row(par_values=[3] * 18))
    assert course.par_values == [3] * 18
    assert course.handicap_values == list(range(1, 19))
    assert course.rating == pytest.approx(72.4)
    assert isinstance(course.id, str)


def test_unverified_converter_accepts_decoded_json():
    course = unverified_course_from_row(_unverified_row(submission_count=4))
    assert course.par_values == [4] * 18
    assert course.submission_count == 4
    assert course.is_pending


def test_round_converter_scores_sorted():
    round_id = uuid4()
    rows = [
        _score_row(round_id, player_name="B", hole_number=1),
        _score_row(round_id, player_name="A", hole_number=2),
        _score_row(round_id, player_name="A", hole_number=1),
    ]
    rnd = round_from_rows(_round_row(round_id), rows)
    assert [(s.player_name, s.hole_number) for s in rnd.scores] == [("A", 1), ("A", 2), ("B", 1)]
    assert rnd.id == str(round_id)
    assert rnd.scan_id is None


def test_round_to_row_converts_ids():
    user_id, course_id = str(uuid4()), str(uuid4())
    rnd = Round(user_id=user_id, course_id=course_id, played_at=date(2024, 7, 24), total_score=80)
    row = round_to_row(rnd)
    assert row["user_id"] == UUID(user_id)
    assert row["course_id"] == UUID(course_id)
    assert row["scan_id"] is None
    assert "scores" not in row


def test_round_score_to_row_tuple():
    round_id = uuid4()
    score = RoundScore(player_name="A", hole_number=3, score=5, par=4, handicap=15)
    assert round_score_to_row(score, round_id) == (round_id, "A", 3, 5, 4, 15)


def test_scan_converter_parsed_data():
    row = _scan_row(parsed_data={"course_name": "Pine Valley", "players": ["A"]})
    scan = scan_from_row(row)
    assert scan.status == ScanStatus.COMPLETED
    assert scan.parsed_data.course_name == "Pine Valley"
    assert scan.raw_ocr_payload == {"provider": "mock"}
    assert scan.confidence_scores == {"overall": 0.95}
    assert scan.user_id is None


def test_scan_to_row_serializes_parsed_data():
    scan = ScanResult(
        original_image_ref="card.jpg",
        parsed_data=StructuredCourseData(course_name="Pine Valley"),
        confidence_scores={"overall": 0.9},
    )
    row = scan_to_row(scan)
    assert json.loads(row["parsed_data"]) == {"course_name": "Pine Valley"}
    assert row["raw_ocr_payload"] is None
    assert row["status"] == "processing"


def test_training_record_converters():
    record = training_record_from_row(_training_row())
    assert record.confidence_score == pytest.approx(0.95)
    assert record.extracted_data == {"course_name": "Pine Valley"}
    assert record.validation_errors == []

    row = training_record_to_row(record)
    assert row["scan_id"] == UUID(record.scan_id)
    assert row["verified_data"] is None
    assert json.loads(row["field_confidence_scores"]) == {"course_name": 0.7}


def test_insert_sql_placeholders():
    sql = insert_sql("users.rounds", {"a": 1, "b": 2, "c": 3})
    assert sql == "INSERT INTO users.rounds (a, b, c) VALUES ($1, $2, $3) RETURNING *"


def test_course_lock_key_normalizes():
    assert course_lock_key("  Pine Valley ", "BLUE") == course_lock_key("pine valley", "blue")


# ================================================================
# Course repository
# ================================================================

@pytest.mark.asyncio
async def test_find_verified_course_exact_match(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = _course_row()

    course = await CourseRepositoryDB(pool).find_verified_course("Pine Valley", "Blue")

    assert course.name == "Pine Valley"
    assert conn.fetchrow.call_count == 1


@pytest.mark.asyncio
async def test_find_verified_course_falls_back_to_substring(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.side_effect = [None, _course_row(name="Pine Valley Golf Club")]

    course = await CourseRepositoryDB(pool).find_verified_course("Pine Valley", "Blue")

    assert course.name == "Pine Valley Golf Club"
    args = conn.fetchrow.call_args[0]
    assert "ILIKE" in args[0]
    assert args[1:] == ("%Pine Valley%", "%Blue%")


@pytest.mark.asyncio
async def test_find_verified_course_no_match(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = None
    assert await CourseRepositoryDB(pool).find_verified_course("Nowhere", "Red") is None


@pytest.mark.asyncio
async def test_create_verified_course_takes_lock_then_inserts(mock_pool):
    pool, conn = mock_pool
    course_id = uuid4()
    conn.fetchrow.side_effect = [None, _course_row(course_id)]

    created = await CourseRepositoryDB(pool).create_verified_course(
        Course(name="Pine Valley", tee_name="Blue", par_values=[4] * 18)
    )

    assert created.id == str(course_id)
    lock_args = conn.execute.call_args_list[0][0]
    assert "pg_advisory_xact_lock" in lock_args[0]
    assert lock_args[1] == "pine valley|blue"
    insert_args = conn.fetchrow.call_args_list[1][0]
    assert insert_args[0].startswith("INSERT INTO courses.courses")
    assert insert_args[3] == json.dumps([4] * 18)
    conn.transaction.assert_called_once()


@pytest.mark.asyncio
async def test_create_verified_course_existing_is_duplicate(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = {"id": uuid4()}

    with pytest.raises(DuplicateError):
        await CourseRepositoryDB(pool).create_verified_course(Course(name="Pine Valley", tee_name="Blue"))
    assert conn.fetchrow.call_count == 1


@pytest.mark.asyncio
async def test_create_verified_course_unique_violation_is_duplicate(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.side_effect = [None, asyncpg.UniqueViolationError("duplicate key value")]

    with pytest.raises(DuplicateError, match="Course already exists"):
        await CourseRepositoryDB(pool).create_verified_course(Course(name="Pine Valley", tee_name="Blue"))


def test_pg_error_keeps_constraint_name():
    class FakeViolation(Exception):
        constraint_name = "courses_name_tee_unique"

    err = DuplicateError.from_pg(FakeViolation("duplicate key"), "Course already exists")
    assert str(err) == "Course already exists: duplicate key"
    assert err.constraint == "courses_name_tee_unique"
    assert NotFoundError("Scan s1 not found").constraint is None


@pytest.mark.asyncio
async def test_upsert_unverified_increments_existing(mock_pool):
    pool, conn = mock_pool
    existing = _unverified_row(submission_count=2)
    conn.fetchrow.side_effect = [existing, {**existing, "submission_count": 3}]

    staged = await CourseRepositoryDB(pool).upsert_unverified_course(
        UnverifiedCourse(name="Oak Hill", tee_name="White")
    )

    assert staged.submission_count == 3
    select_sql, name_arg, tee_arg = conn.fetchrow.call_args_list[0][0]
    assert "FOR UPDATE" in select_sql
    assert "status = 'pending'" in select_sql
    assert (name_arg, tee_arg) == ("%Oak Hill%", "%White%")
    update_args = conn.fetchrow.call_args_list[1][0]
    assert "submission_count + 1" in update_args[0]
    assert update_args[1] == existing["id"]


@pytest.mark.asyncio
async def test_upsert_unverified_inserts_new(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.side_effect = [None, _unverified_row()]

    staged = await CourseRepositoryDB(pool).upsert_unverified_course(
        UnverifiedCourse(name="Oak Hill", tee_name="White")
    )

    assert staged.submission_count == 1
    insert_args = conn.fetchrow.call_args_list[1][0]
    assert insert_args[0].startswith("INSERT INTO courses.unverified_courses")


@pytest.mark.asyncio
async def test_approve_unverified_course(mock_pool):
    pool, conn = mock_pool
    pending = _unverified_row()
    conn.fetchrow.side_effect = [pending, _course_row(name="Oak Hill", tee_name="White")]

    course = await CourseRepositoryDB(pool).approve_unverified_course(str(pending["id"]))

    assert course.name == "Oak Hill"
    status_args = conn.execute.call_args_list[-1][0]
    assert status_args[0].startswith("UPDATE courses.unverified_courses")
    assert status_args[1:] == (pending["id"], "approved")


@pytest.mark.asyncio
async def test_approve_unverified_course_not_found(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = None
    with pytest.raises(NotFoundError):
        await CourseRepositoryDB(pool).approve_unverified_course(str(uuid4()))


@pytest.mark.asyncio
async def test_approve_already_rejected_course(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = _unverified_row(status="rejected")
    with pytest.raises(ValueError):
        await CourseRepositoryDB(pool).approve_unverified_course(str(uuid4()))
    conn.execute.assert_not_called()


@pytest.mark.asyncio
async def test_reject_unverified_course(mock_pool):
    pool, conn = mock_pool
    pending = _unverified_row()
    conn.fetchrow.side_effect = [pending, {**pending, "status": "rejected", "admin_notes": "typo"}]

    rejected = await CourseRepositoryDB(pool).reject_unverified_course(str(pending["id"]), "typo")

    assert rejected.admin_notes == "typo"
    assert conn.fetchrow.call_args_list[1][0][2:] == ("rejected", "typo")


@pytest.mark.asyncio
async def test_get_course_by_id(mock_pool):
    pool, conn = mock_pool
    course_id = uuid4()
    conn.fetchrow.return_value = _course_row(course_id)

    course = await CourseRepositoryDB(pool).get_course(str(course_id))

    assert course.id == str(course_id)
    assert course.par_values == [4] * 18
    sql, value = conn.fetchrow.call_args[0]
    assert "FROM courses.courses WHERE id = $1" in sql
    assert value == course_id


@pytest.mark.asyncio
async def test_get_course_missing(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = None
    assert await CourseRepositoryDB(pool).get_course(str(uuid4())) is None
    assert await CourseRepositoryDB(pool).get_unverified_course(str(uuid4())) is None


@pytest.mark.asyncio
async def test_list_courses_pages_verified_rows(mock_pool):
    pool, conn = mock_pool
    conn.fetch.return_value = [_course_row(name="Oak Hill"), _course_row(name="Pine Valley")]

    courses = await CourseRepositoryDB(pool).list_courses(limit=2, offset=4)

    assert [c.name for c in courses] == ["Oak Hill", "Pine Valley"]
    sql, *values = conn.fetch.call_args[0]
    assert "WHERE is_verified" in sql
    assert "ORDER BY name, tee_name" in sql
    assert values == [2, 4]


@pytest.mark.asyncio
async def test_get_unverified_course_by_id(mock_pool):
    pool, conn = mock_pool
    course_id = uuid4()
    conn.fetchrow.return_value = _unverified_row(course_id, submission_count=3)

    course = await CourseRepositoryDB(pool).get_unverified_course(str(course_id))

    assert course.submission_count == 3
    assert course.is_pending
    assert conn.fetchrow.call_args[0][1] == course_id


@pytest.mark.asyncio
async def test_list_pending_courses_most_submitted_first(mock_pool):
    pool, conn = mock_pool
    conn.fetch.return_value = [_unverified_row(submission_count=5), _unverified_row(submission_count=1)]

    pending = await CourseRepositoryDB(pool).list_pending_courses(limit=10)

    assert [c.submission_count for c in pending] == [5, 1]
    sql, *values = conn.fetch.call_args[0]
    assert "status = 'pending'" in sql
    assert "ORDER BY submission_count DESC, created_at" in sql
    assert values == [10]


# ================================================================
# Round repository
# ================================================================

@pytest.mark.asyncio
async def test_create_round_with_scores_single_transaction(mock_pool):
    pool, conn = mock_pool
    round_id = uuid4()
    round_row = _round_row(round_id)
    conn.fetchrow.return_value = round_row
    conn.fetch.return_value = [
        _score_row(round_id, hole_number=1),
        _score_row(round_id, hole_number=2, score=5),
    ]
    rnd = Round(user_id=str(uuid4()), course_id=str(uuid4()), played_at=date(2024, 7, 24))
    scores = [
        RoundScore(player_name="A", hole_number=1, score=4, par=4, handicap=7),
        RoundScore(player_name="A", hole_number=2, score=5, par=4, handicap=3),
    ]

    saved = await RoundRepositoryDB(pool).create_round_with_scores(rnd, scores)

    assert saved.id == str(round_id)
    assert len(saved.scores) == 2
    conn.transaction.assert_called_once()
    sql, rows = conn.executemany.call_args[0]
    assert "INSERT INTO users.round_scores" in sql
    assert rows == [(round_id, "A", 1, 4, 4, 7), (round_id, "A", 2, 5, 4, 3)]


@pytest.mark.asyncio
async def test_create_round_without_scores_skips_batch(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = _round_row()
    conn.fetch.return_value = []
    rnd = Round(user_id=str(uuid4()), course_id=str(uuid4()), played_at=date(2024, 7, 24))

    await RoundRepositoryDB(pool).create_round_with_scores(rnd, [])

    conn.executemany.assert_not_called()


@pytest.mark.asyncio
async def test_create_round_score_conflict_is_duplicate(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = _round_row()
    conn.executemany.side_effect = asyncpg.UniqueViolationError("round_scores_key")
    rnd = Round(user_id=str(uuid4()), course_id=str(uuid4()), played_at=date(2024, 7, 24))
    scores = [RoundScore(player_name="A", hole_number=1, score=4, par=4, handicap=7)]

    with pytest.raises(DuplicateError):
        await RoundRepositoryDB(pool).create_round_with_scores(rnd, scores)


@pytest.mark.asyncio
async def test_get_round_not_found(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = None
    assert await RoundRepositoryDB(pool).get_round(str(uuid4())) is None


@pytest.mark.asyncio
async def test_get_rounds_for_user_loads_scores(mock_pool):
    pool, conn = mock_pool
    user_id, first_id, second_id = uuid4(), uuid4(), uuid4()
    conn.fetch.side_effect = [
        [_round_row(first_id, user_id=user_id, total_score=80), _round_row(second_id, user_id=user_id)],
        [_score_row(first_id, hole_number=2), _score_row(first_id, hole_number=1)],
        [],
    ]

    rounds = await RoundRepositoryDB(pool).get_rounds_for_user(str(user_id), limit=5)

    assert [r.id for r in rounds] == [str(first_id), str(second_id)]
    assert [s.hole_number for s in rounds[0].scores] == [1, 2]
    assert rounds[1].scores == []
    sql, *values = conn.fetch.call_args_list[0][0]
    assert "ORDER BY played_at DESC" in sql
    assert values == [user_id, 5, 0]
    assert conn.fetch.call_args_list[1][0][1] == first_id


@pytest.mark.asyncio
async def test_delete_round(mock_pool):
    pool, conn = mock_pool
    conn.execute.return_value = "DELETE 1"
    assert await RoundRepositoryDB(pool).delete_round(str(uuid4())) is True
    conn.execute.return_value = "DELETE 0"
    assert await RoundRepositoryDB(pool).delete_round(str(uuid4())) is False


# ================================================================
# Scan repository
# ================================================================

@pytest.mark.asyncio
async def test_update_scan_requires_id(mock_pool):
    pool, _ = mock_pool
    with pytest.raises(NotFoundError):
        await ScanRepositoryDB(pool).update_scan(ScanResult(original_image_ref="card.jpg"))


@pytest.mark.asyncio
async def test_update_scan_writes_mutable_columns(mock_pool):
    pool, conn = mock_pool
    scan_id = uuid4()
    conn.fetchrow.return_value = _scan_row(scan_id, status="failed")
    scan = ScanResult(id=str(scan_id), original_image_ref="card.jpg")
    scan.mark_failed("Cannot open image")

    saved = await ScanRepositoryDB(pool).update_scan(scan)

    assert saved.status == ScanStatus.FAILED
    sql, *values = conn.fetchrow.call_args[0]
    assert "updated_at = now()" in sql
    assert "user_id" not in sql
    assert "original_image_ref" not in sql
    assert values[0] == scan_id
    assert "failed" in values
    assert "Cannot open image" in values


@pytest.mark.asyncio
async def test_update_scan_missing_row(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = None
    with pytest.raises(NotFoundError):
        await ScanRepositoryDB(pool).update_scan(ScanResult(id=str(uuid4()), original_image_ref="x.jpg"))


@pytest.mark.asyncio
async def test_list_scans_by_status(mock_pool):
    pool, conn = mock_pool
    conn.fetch.return_value = [_scan_row()]

    scans = await ScanRepositoryDB(pool).list_scans(status=ScanStatus.COMPLETED, limit=10)

    assert len(scans) == 1
    assert conn.fetch.call_args[0][1:] == ("completed", 10, 0)


@pytest.mark.asyncio
async def test_get_scan_by_id(mock_pool):
    pool, conn = mock_pool
    scan_id = uuid4()
    conn.fetchrow.return_value = _scan_row(scan_id, parsed_data={"course_name": "Oak Hill"})

    scan = await ScanRepositoryDB(pool).get_scan(str(scan_id))

    assert scan.id == str(scan_id)
    assert scan.parsed_data.course_name == "Oak Hill"
    assert conn.fetchrow.call_args[0][1] == scan_id

    conn.fetchrow.return_value = None
    assert await ScanRepositoryDB(pool).get_scan(str(uuid4())) is None


# ================================================================
# Training repository
# ================================================================

@pytest.mark.asyncio
async def test_list_training_records_builds_filters(mock_pool):
    pool, conn = mock_pool
    conn.fetch.return_value = [_training_row()]

    records = await TrainingDataRepositoryDB(pool).list_records(
        min_confidence=0.8, ocr_provider="vision_chat", enhanced_prompt_only=True, limit=5,
    )

    assert len(records) == 1
    sql, *values = conn.fetch.call_args[0]
    assert "is_training_candidate" in sql
    assert "used_enhanced_prompt" in sql
    assert "confidence_score >= $1" in sql
    assert "ocr_provider = $2" in sql
    assert "LIMIT $3" in sql
    assert values == [0.8, "vision_chat", 5]


@pytest.mark.asyncio
async def test_list_training_records_without_filters(mock_pool):
    pool, conn = mock_pool
    conn.fetch.return_value = []

    await TrainingDataRepositoryDB(pool).list_records(candidates_only=False)

    sql, *values = conn.fetch.call_args[0]
    assert "WHERE" not in sql
    assert values == [1000]


@pytest.mark.asyncio
async def test_get_training_record_by_id(mock_pool):
    pool, conn = mock_pool
    record_id = uuid4()
    conn.fetchrow.return_value = _training_row(record_id)

    record = await TrainingDataRepositoryDB(pool).get_record(str(record_id))

    assert record.id == str(record_id)
    assert record.ocr_provider == "mock"
    assert record.processing_time_ms == 42
    sql, value = conn.fetchrow.call_args[0]
    assert "FROM users.scan_training_data WHERE id = $1" in sql
    assert value == record_id

    conn.fetchrow.return_value = None
    assert await TrainingDataRepositoryDB(pool).get_record(str(uuid4())) is None


@pytest.mark.asyncio
async def test_save_verification(mock_pool):
    pool, conn = mock_pool
    record_id = uuid4()
    row = _training_row(record_id)
    conn.fetchrow.return_value = {**row, "is_verified": True, "verified_data": json.dumps({"course_name": "Pine Valley"})}
    record = TrainingDataRecord(
        id=str(record_id), scan_id=str(uuid4()), ocr_provider="mock",
        extracted_data={"course_name": "Pine Valley"},
    )
    record.mark_verified({"course_name": "Pine Valley"})

    saved = await TrainingDataRepositoryDB(pool).save_verification(record)

    assert saved.is_verified
    args = conn.fetchrow.call_args[0]
    assert args[1] == record_id
    assert json.loads(args[2]) == {"course_name": "Pine Valley"}
    assert args[5] is True


# ================================================================
# Connection pool
# ================================================================

@pytest.mark.asyncio
async def test_pool_requires_dsn():
    with pytest.raises(RuntimeError):
        await DatabasePool().initialize()
    with pytest.raises(RuntimeError):
        DatabasePool().pool


@pytest.mark.asyncio
async def test_apply_schema_and_health_check(mock_pool):
    pool, conn = mock_pool
    db = DatabasePool("postgresql://localhost/scorecards")
    db._pool = pool
    conn.fetchval.return_value = 1

    await db.apply_schema()
    assert "CREATE TABLE IF NOT EXISTS courses.courses" in conn.execute.call_args[0][0]
    assert await db.health_check() is True

    conn.fetchval.side_effect = OSError("connection refused")
    assert await db.health_check() is False

    pool.close = AsyncMock()
    await db.close()
    assert db._pool is None
