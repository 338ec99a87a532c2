import pytest
from datetime import date
from pydantic import ValidationError

from models import (
    Course,
    Hole,
    OcrResult,
    OcrWord,
    PlayerScore,
    Round,
    RoundScore,
    ScanResult,
    ScanStatus,
    StructuredCourseData,
    TrainingDataRecord,
    UnverifiedCourse,
    UnverifiedStatus,
    normalize_confidence,
)


# ================================================================
# Hole / Course
# ================================================================

def test_hole_validation():
    h = Hole(number=1, par=4, handicap=18)
    assert h.is_front_nine

    with pytest.raises(ValidationError):
        Hole(number=19, par=4, handicap=1)   # hole > 18

    with pytest.raises(ValidationError):
        Hole(number=1, par=0, handicap=1)


def test_course_get_hole_uses_arrays():
    course = Course(
        id="c1", name="Pine Valley", tee_name="Blue",
        par_values=[4] * 17 + [5], handicap_values=list(range(18, 0, -1)),
    )
    hole = course.get_hole(18)
    assert hole.par == 5
    assert hole.handicap == 1
    assert hole.course_id == "c1"
    assert course.get_hole(0) is None
    assert course.get_hole(19) is None


def test_course_get_hole_fallbacks_for_short_arrays():
    course = Course(name="Short Card", par_values=[3, 5], handicap_values=[])
    assert course.get_hole(2).par == 5
    assert course.get_hole(2).handicap == 2   # handicap falls back to hole number
    assert course.get_hole(12).par == 4       # par falls back to 4
    assert course.get_hole(12).handicap == 12


def test_course_nine_pars():
    course = Course(name="Test", par_values=[4] * 9 + [5] * 9)
    assert course.front_nine_par == 36
    assert course.back_nine_par == 45
    assert course.get_par() == 81

    partial = Course(name="Partial", par_values=[4] * 9)
    assert partial.front_nine_par == 36
    assert partial.back_nine_par is None
    assert Course(name="Empty").get_par() is None


def test_course_requires_name():
    with pytest.raises(ValidationError):
        Course(name="")


# ================================================================
# UnverifiedCourse
# ================================================================

def test_unverified_course_approve_spawns_verified_course():
    pending = UnverifiedCourse(
        name="  Oak Hill ", tee_name="White", par_values=[4] * 18, rating=71.0, slope=130,
    )
    assert pending.name == "Oak Hill"
    assert pending.is_pending

    course = pending.approve()
    assert pending.status == UnverifiedStatus.APPROVED
    assert course.is_verified
    assert course.name == "Oak Hill"
    assert course.par_values == [4] * 18
    assert course.id is None

    with pytest.raises(ValueError):
        pending.approve()


def test_unverified_course_reject():
    pending = UnverifiedCourse(name="Oak Hill", tee_name="White")
    pending.reject("duplicate of an existing course")
    assert pending.status == UnverifiedStatus.REJECTED
    assert pending.admin_notes == "duplicate of an existing course"

    with pytest.raises(ValueError):
        pending.reject()


def test_unverified_course_submission_count_at_least_one():
    with pytest.raises(ValidationError):
        UnverifiedCourse(name="Oak Hill", submission_count=0)


# ================================================================
# Round / RoundScore
# ================================================================

def test_round_score_types():
    assert RoundScore(player_name="A", hole_number=1, score=3, par=4, handicap=1).get_score_type() == "birdie"
    assert RoundScore(player_name="A", hole_number=1, score=4, par=4, handicap=1).get_score_type() == "par"
    assert RoundScore(player_name="A", hole_number=1, score=6, par=4, handicap=1).get_score_type() == "double bogey"
    assert RoundScore(player_name="A", hole_number=1, score=2, par=5, handicap=1).get_score_type() == "albatross"
    assert RoundScore(player_name="A", hole_number=1, score=9, par=4, handicap=1).get_score_type() == "quintuple+"


def test_round_score_hole_range():
    with pytest.raises(ValidationError):
        RoundScore(player_name="A", hole_number=19, score=4, par=4, handicap=1)


def test_round_players_and_to_par():
    scores = [
        RoundScore(player_name="A", hole_number=2, score=5, par=4, handicap=2),
        RoundScore(player_name="B", hole_number=1, score=3, par=4, handicap=1),
        RoundScore(player_name="A", hole_number=1, score=4, par=4, handicap=1),
    ]
    rnd = Round(user_id="u1", course_id="c1", played_at=date(2024, 7, 24), scores=scores)
    assert rnd.players() == ["A", "B"]
    assert [s.hole_number for s in rnd.scores_for("A")] == [1, 2]
    assert rnd.total_to_par("A") == 1
    assert rnd.total_to_par("B") == -1
    assert rnd.total_to_par("C") is None


# ================================================================
# StructuredCourseData / PlayerScore
# ================================================================

def test_player_score_totals_prefer_explicit_values():
    scores = PlayerScore(hole_scores=[4] * 18, total_score=70)
    assert scores.total() == 70
    assert scores.front_nine() == 36
    assert scores.back_nine() == 36


def test_player_score_skips_unreadable_holes():
    scores = PlayerScore(hole_scores=[4, None, 5] + [None] * 15)
    assert scores.total() == 9
    assert scores.score_for_hole(2) is None
    assert scores.score_for_hole(3) == 5
    assert scores.score_for_hole(19) is None


def test_player_score_back_nine_needs_full_card():
    assert PlayerScore(hole_scores=[4] * 9).back_nine() is None
    assert PlayerScore().total() is None


def test_structured_merge_fills_gaps_only():
    base = StructuredCourseData(course_name="Pine Valley", tee_name="", par_values=[])
    fallback = StructuredCourseData(course_name="Other", tee_name="Blue", par_values=[4] * 18)
    merged = base.merged_with(fallback)
    assert merged.course_name == "Pine Valley"
    assert merged.tee_name == "Blue"
    assert merged.par_values == [4] * 18


def test_structured_empty_and_primary_player():
    assert StructuredCourseData().is_empty()
    data = StructuredCourseData(players=["A", "B"])
    assert not data.is_empty()
    assert data.primary_player() == "A"
    assert data.scores_for("A").hole_scores == []


def test_update_field_returns_error_message():
    data = StructuredCourseData()
    assert data.update_field("slope_rating", 130) is None
    assert data.slope_rating == 130
    assert data.update_field("slope_rating", "not a number") is not None
    assert data.update_field("green_speed", 11) == "Unknown field: green_speed"


def test_apply_corrections_keeps_valid_ones():
    data = StructuredCourseData(course_name="Pine Vally")
    rejected = data.apply_corrections({"course_name": "Pine Valley", "slope_rating": "steep"})
    assert data.course_name == "Pine Valley"
    assert data.slope_rating is None
    assert list(rejected) == ["slope_rating"]


# ================================================================
# OCR result
# ================================================================

@pytest.mark.parametrize("raw, expected", [
    (0.5, 0.5),
    (95, 0.95),
    (150, 1.0),
    (-3, 0.0),
    ("abc", 0.0),
    (None, 0.0),
])
def test_normalize_confidence(raw, expected):
    assert normalize_confidence(raw) == pytest.approx(expected)


def test_ocr_result_confidence_rescaled():
    result = OcrResult(
        provider="mock",
        confidence=87,
        words=[OcrWord(text="A", confidence=0.5), OcrWord(text="B", confidence=100)],
    )
    assert result.confidence == pytest.approx(0.87)
    assert result.mean_word_confidence() == pytest.approx(0.75)
    assert OcrResult(provider="mock").mean_word_confidence() is None


# ================================================================
# ScanResult
# ================================================================

def test_scan_status_is_terminal_once_completed():
    scan = ScanResult(original_image_ref="card.jpg")
    assert scan.status == ScanStatus.PROCESSING
    scan.mark_completed()
    assert scan.is_terminal

    with pytest.raises(ValueError):
        scan.mark_failed("late failure")


def test_scan_mark_failed_records_message():
    scan = ScanResult(original_image_ref="card.jpg")
    scan.mark_failed("Cannot open image")
    assert scan.status == ScanStatus.FAILED
    assert scan.error_message == "Cannot open image"

    with pytest.raises(ValueError):
        scan.mark_completed()


# ================================================================
# TrainingDataRecord
# ================================================================

def test_training_record_accuracy_and_error_analysis():
    record = TrainingDataRecord(
        scan_id="s1",
        ocr_provider="mock",
        extracted_data={"course_name": "pine valley ", "course_rating": 72.45, "slope_rating": 128},
    )
    assert record.accuracy_score() is None

    record.mark_verified({"course_name": "Pine Valley", "course_rating": 72.4, "slope_rating": 130, "tee_name": "Blue"})
    assert record.is_verified
    # name and rating match, slope wrong, tee missing from extraction
    assert record.accuracy_score() == pytest.approx(2 / 4)
    analysis = record.error_analysis
    assert analysis["missing_fields"] == ["tee_name"]
    assert analysis["incorrect_fields"] == [{"field": "slope_rating", "extracted": 128, "correct": 130}]
    assert analysis["overall_accuracy"] == pytest.approx(0.5)


def test_training_record_quality_metrics():
    record = TrainingDataRecord(
        scan_id="s1",
        ocr_provider="mock",
        extracted_data={"course_name": "X"},
        confidence_score=0.9,
        data_completeness_score=80,
        validation_errors=[{"field": "slope_rating", "message": "bad"}],
        processing_time_ms=120,
    )
    metrics = record.quality_metrics()
    assert metrics["confidence_score"] == 0.9
    assert metrics["data_completeness"] == 80
    assert metrics["field_count"] == 1
    assert metrics["has_validation_errors"] is True
    assert metrics["processing_time"] == 120
