from parsing.extractors import ENHANCED_EXTRACTORS, FLAT_EXTRACTORS, first_present, path
from parsing.parser import ScorecardParser, select_best_source

__all__ = [
    "ENHANCED_EXTRACTORS",
    "FLAT_EXTRACTORS",
    "ScorecardParser",
    "first_present",
    "path",
    "select_best_source",
]
