from pipeline.config import (
    ImageProcessingConfig,
    OcrProviderConfig,
    OcrProviderName,
    ReconciliationConfig,
    ScannerConfig,
    TrainingThresholds,
)

__all__ = [
    "ImageProcessingConfig",
    "OcrProviderConfig",
    "OcrProviderName",
    "ReconciliationConfig",
    "ScannerConfig",
    "TrainingThresholds",
]
