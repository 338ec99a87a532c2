from pydantic import BaseModel, Field
from typing import List, Optional


# ================================================================
# Shared prompt fragments
# ================================================================

_PREAMBLE = (
    "You are a specialized golf scorecard OCR system. Extract the information "
    "on this golf scorecard image and return it as structured JSON. The data "
    "populates a golf course database of courses, rounds and hole scores."
)

_HOLE_ORDER_RULES = """
HOLE ORDER:
- Arrays are in hole order 1, 2, 3 ... 18 (not front nine then back nine).
- Front nine (holes 1-9) is usually the left side or top half of the card.
- Back nine (holes 10-18) is usually the right side or bottom half."""

_VALIDATION_RULES = """
VALIDATION REQUIREMENTS:
- par_values: exactly 18 integers, each 3-6
- handicap_values: exactly 18 unique integers 1-18
- yardages: exactly 18 integers, reasonable range 50-700
- course_rating: decimal, typically 67.0-77.0
- slope_rating: integer 55-155
- total_par must equal the sum of par_values
- hole scores 1-15 each"""

_UNREADABLE_RULES = """
If a value is unclear, give your best interpretation and lower the confidence.
Use null for anything you cannot see at all. Do not invent players or scores."""

_JSON_ONLY = "\nReturn ONLY the JSON object with no additional text."

# --- JSON schema fragments ---

_FLAT_JSON_SCHEMA = """
{
  "course_name": "Full official name of the golf course",
  "course_location": "City, State/Province, Country",
  "date": "Date of play in YYYY-MM-DD format if visible",
  "tee_name": "Tee designation (Championship, Blue, White, Red, Gold, Black, Tips)",
  "course_rating": 72.1,
  "slope_rating": 113,
  "par_values": [4, 3, 5, 4, 4, 3, 4, 5, 4, 4, 3, 5, 4, 4, 3, 4, 5, 4],
  "handicap_values": [10, 18, 2, 14, 6, 16, 8, 4, 12, 1, 17, 3, 13, 7, 15, 9, 5, 11],
  "yardages": [350, 155, 520, 380, 410, 165, 425, 545, 390, 420, 180, 565, 375, 445, 170, 400, 510, 385],
  "total_par": 72,
  "total_yardage": 6600,
  "players": ["Player Name 1"],
  "player_scores": {
    "Player Name 1": {
      "hole_scores": [4, 3, 5, 4, 5, 3, 4, 6, 4, 4, 2, 5, 4, 4, 3, 4, 5, 4],
      "front_nine_score": 38,
      "back_nine_score": 35,
      "total_score": 73
    }
  },
  "weather": "Weather conditions if noted",
  "additional_notes": "Tournament info or course conditions"
}"""

_ENHANCED_JSON_SCHEMA = """
{
  "course_information": {
    "course_name": "Full official name of the golf course",
    "location": {"address": "", "city": "", "state": "", "country": "US", "postal_code": ""},
    "architect": "Course architect if mentioned",
    "established_year": 1925,
    "confidence": 0.95
  },
  "tee_boxes": [
    {
      "tee_name": "Championship",
      "tee_color": "Black",
      "gender": "Men",
      "par_values": [4, 3, 5, 4, 4, 3, 4, 5, 4, 4, 3, 5, 4, 4, 3, 4, 5, 4],
      "handicap_values": [1, 17, 3, 13, 7, 15, 9, 5, 11, 2, 18, 4, 14, 6, 16, 8, 10, 12],
      "yardages": [420, 155, 545, 385, 410, 165, 425, 520, 395, 440, 180, 565, 375, 445, 170, 400, 510, 385],
      "course_rating": 72.8,
      "slope_rating": 142,
      "total_par": 72,
      "total_yardage": 6935,
      "confidence": 0.92
    }
  ],
  "player_scores": [
    {
      "player_name": "John Doe",
      "hole_scores": [4, 3, 6, 5, 4, 3, 4, 6, 4, 4, 2, 5, 4, 4, 3, 4, 5, 4],
      "front_nine_total": 39,
      "back_nine_total": 35,
      "total_score": 74,
      "confidence": 0.88
    }
  ],
  "round_metadata": {
    "date_played": "2024-07-24",
    "weather_conditions": "Clear, light wind",
    "tournament_name": "Club Championship",
    "notes": "Any special notes"
  }
}"""

_MULTI_TEE_RULES = """
MULTI-TEE RECOGNITION:
- Many scorecards show several yardage columns, one per tee.
- Create a separate tee_boxes entry for EVERY tee configuration shown.
- Men's and Ladies' tees carry different course and slope ratings.
- Provide a confidence (0.0-1.0) for the course information, each tee box and each player."""


# ================================================================
# Prompt builders
# ================================================================

def build_standard_prompt() -> str:
    """Flat extraction: one tee, players keyed by name."""
    return "\n".join([
        _PREAMBLE,
        "\nREQUIRED JSON OUTPUT FORMAT:",
        _FLAT_JSON_SCHEMA,
        _HOLE_ORDER_RULES,
        _VALIDATION_RULES,
        _UNREADABLE_RULES,
    ])


def build_enhanced_prompt() -> str:
    """Nested extraction: course_information, every tee box, every player."""
    return "\n".join([
        _PREAMBLE,
        "\nENHANCED JSON SCHEMA (MANDATORY FORMAT):",
        _ENHANCED_JSON_SCHEMA,
        _MULTI_TEE_RULES,
        _HOLE_ORDER_RULES,
        _VALIDATION_RULES,
        _UNREADABLE_RULES,
        _JSON_ONLY,
    ])


# ================================================================
# Response schemas (sent as response_json_schema)
# ================================================================

class RawLocation(BaseModel):
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class RawCourseInformation(BaseModel):
    course_name: Optional[str] = None
    location: Optional[RawLocation] = None
    architect: Optional[str] = None
    established_year: Optional[int] = None
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)


class RawTeeBox(BaseModel):
    tee_name: Optional[str] = None
    tee_color: Optional[str] = None
    gender: Optional[str] = None
    par_values: List[Optional[int]] = Field(default_factory=list)
    handicap_values: List[Optional[int]] = Field(default_factory=list)
    yardages: List[Optional[int]] = Field(default_factory=list)
    course_rating: Optional[float] = None
    slope_rating: Optional[int] = None
    total_par: Optional[int] = None
    total_yardage: Optional[int] = None
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)


class RawEnhancedPlayer(BaseModel):
    player_name: Optional[str] = None
    hole_scores: List[Optional[int]] = Field(default_factory=list)
    front_nine_total: Optional[int] = None
    back_nine_total: Optional[int] = None
    total_score: Optional[int] = None
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)


class RawRoundMetadata(BaseModel):
    date_played: Optional[str] = None
    weather_conditions: Optional[str] = None
    tournament_name: Optional[str] = None
    notes: Optional[str] = None


class RawEnhancedScorecard(BaseModel):
    course_information: Optional[RawCourseInformation] = None
    tee_boxes: List[RawTeeBox] = Field(default_factory=list)
    player_scores: List[RawEnhancedPlayer] = Field(default_factory=list)
    round_metadata: Optional[RawRoundMetadata] = None
