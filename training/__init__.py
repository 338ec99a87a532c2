from training.service import (
    ExportFilters,
    TrainingDataService,
    export_csv,
    export_row,
    matches_filters,
)

__all__ = [
    "ExportFilters",
    "TrainingDataService",
    "export_csv",
    "export_row",
    "matches_filters",
]
