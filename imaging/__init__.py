from imaging.preprocess import (
    ImagePreprocessor,
    ImageProcessingError,
    processed_path_for,
    validate_upload,
)

__all__ = ["ImagePreprocessor", "ImageProcessingError", "processed_path_for", "validate_upload"]
